"""
Metadata model.

Language-neutral description of the groups, structs, hints and properties
of every module. Built by ``ModelBuilder`` and rendered by the metadata
generator.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

from ..errors import ModelError


class GroupKind(Enum):
    """Kind of a group of related constants."""

    ENUM = "Enum"
    FLAGS = "Flags"
    ID = "Id"
    LOCK = "Lock"


class PropertyType(Enum):
    POINTER = "POINTER"
    STRING = "STRING"
    NUMBER = "NUMBER"
    FLOAT = "FLOAT"
    BOOLEAN = "BOOLEAN"


# =============================================================================
# Availability
# =============================================================================

_AVAILABILITY_HEADING = "## Availability"


@dataclass(frozen=True, order=True)
class Availability:
    """Library version a declaration first appeared in."""

    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def render(self) -> str:
        return f"SDL_VERSIONNUM({self.major}, {self.minor}, {self.patch})"

    @classmethod
    def from_doc(
        cls,
        doc: Optional[str],
        lib_name: str = "SDL",
        module: str = "",
        name: str = "",
    ) -> Optional["Availability"]:
        """
        Parse the ``## Availability`` section of a rendered doc.

        Returns None when there is no such section.

        Raises:
            ModelError: If the section has no ``available since <lib> X.Y.Z``
        """
        if not doc:
            return None
        lines = doc.split("\n")
        try:
            start = lines.index(_AVAILABILITY_HEADING)
        except ValueError:
            return None
        section = []
        for line in lines[start + 1:]:
            if line.startswith("## "):
                break
            section.append(line)
        pattern = re.compile(rf"available since {re.escape(lib_name)} (\d+)\.(\d+)\.(\d+)")
        m = pattern.search(" ".join(section))
        if m is None:
            raise ModelError(module, name, "availability section without a version")
        return cls(int(m.group(1)), int(m.group(2)), int(m.group(3)))


# =============================================================================
# Entries
# =============================================================================

@dataclass
class GroupValue:
    name: str
    short_name: str
    doc: Optional[str] = None
    available_since: Optional[Availability] = None


@dataclass
class Group:
    """An enum, a set of flags, an id type or a lock type."""

    module: str
    kind: GroupKind
    name: str
    short_name: str
    doc: Optional[str] = None
    available_since: Optional[Availability] = None
    values: list[GroupValue] = field(default_factory=list)


@dataclass
class Field:
    name: str
    ty: str
    doc: Optional[str] = None
    available_since: Optional[Availability] = None


@dataclass
class Struct:
    module: str
    name: str
    kind: str
    doc: Optional[str] = None
    available_since: Optional[Availability] = None
    fields: list[Field] = field(default_factory=list)
    opaque: bool = False
    # `#[cfg(...)]` predicate when only defined on some platforms
    cfg: Optional[str] = None


@dataclass
class Property:
    module: str
    name: str
    short_name: str
    value: str
    ty: PropertyType
    doc: Optional[str] = None
    available_since: Optional[Availability] = None


@dataclass
class Hint:
    module: str
    name: str
    short_name: str
    value: str
    doc: Optional[str] = None
    available_since: Optional[Availability] = None


# =============================================================================
# Containers
# =============================================================================

@dataclass
class ModuleModel:
    """Everything known about one module, in source order."""

    module: str
    doc: Optional[str] = None
    dependencies: list[str] = field(default_factory=list)
    groups: list[Group] = field(default_factory=list)
    structs: list[Struct] = field(default_factory=list)
    hints: list[Hint] = field(default_factory=list)
    properties: list[Property] = field(default_factory=list)

    def group(self, name: str) -> Optional[Group]:
        for group in self.groups:
            if group.name == name:
                return group
        return None


@dataclass
class Model:
    """Per-module models, iterated in module name order."""

    modules: dict[str, ModuleModel] = field(default_factory=dict)

    def __iter__(self) -> Iterator[ModuleModel]:
        for name in sorted(self.modules):
            yield self.modules[name]

    def __len__(self) -> int:
        return len(self.modules)

    def __getitem__(self, module: str) -> ModuleModel:
        return self.modules[module]

    @property
    def hints(self) -> list[Hint]:
        return [hint for m in self for hint in m.hints]

    @property
    def properties(self) -> list[Property]:
        return [prop for m in self for prop in m.properties]

    @property
    def groups(self) -> list[Group]:
        return [group for m in self for group in m.groups]

    @property
    def structs(self) -> list[Struct]:
        """Structs and unions with a definition (opaque ones have no metadata)."""
        return [s for m in self for s in m.structs if not s.opaque]
