"""
Header files and module tracking.

Each ``SDL_xxx.h`` header is one module named ``xxx``. Parsing a header
yields its items in source order along with the module's file doc, its
includes and the modules it depends on.
"""

from __future__ import annotations

import fnmatch
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..config import GeneratorConfig
from ..model.metadata import GroupKind
from .base import ParseContext
from .doc_comment import DocComment
from .items import FileDoc, iter_items, parse_items
from .preproc import Define, EmptyValue, ExprValue, Include, PreProcBlock
from .span import Source
from .types import CType, TypeDef

logger = logging.getLogger("sdlgen.parser")


@dataclass
class ParsedHeader:
    """
    Parsed representation of one header.

    Items keep source order; conditional blocks keep their branches.
    """

    path: Path
    module: str
    source: Source
    items: list = field(default_factory=list)
    file_doc: Optional[DocComment] = None
    includes: list[Include] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)

    @property
    def has_content(self) -> bool:
        """Check if the header declares anything besides includes and docs."""
        return any(not isinstance(item, (Include, FileDoc)) for item in iter_items(self.items))


# =============================================================================
# Module names
# =============================================================================

def module_name_for(path: Path, header_prefix: str = "SDL_") -> str:
    """``SDL_power.h`` -> ``power``."""
    stem = path.name
    if stem.endswith(".h"):
        stem = stem[:-2]
    if header_prefix and stem.startswith(header_prefix):
        stem = stem[len(header_prefix):]
    return stem.lower()


def is_skipped_module(module: str, patterns: list[str]) -> bool:
    return any(fnmatch.fnmatchcase(module, pattern) for pattern in patterns)


def upper_snake(name: str) -> str:
    """``SDL_InitFlags`` -> ``SDL_INIT_FLAGS``."""
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", name).upper()


def default_define_prefix(typedef_name: str) -> str:
    """Prefix of the defines that belong to a group typedef."""
    base = typedef_name[:-len("Flags")] if typedef_name.endswith("Flags") else typedef_name
    return upper_snake(base).rstrip("_") + "_"


# =============================================================================
# Post-processing
# =============================================================================

def unwrap_header_guard(items: list) -> list:
    """Replace an ``#ifndef X / #define X ... #endif`` guard by its contents."""
    for i, item in enumerate(items):
        if not isinstance(item, PreProcBlock):
            continue
        cond = item.cond
        if (
            cond is not None
            and cond.kind == "ifndef"
            and item.else_block is None
            and item.items
            and isinstance(item.items[0], Define)
            and item.items[0].name == cond.ident.name
            and isinstance(item.items[0].value, EmptyValue)
        ):
            return items[:i] + item.items[1:] + items[i + 1:]
        # only the first conditional block can be the guard
        break
    return items


def associate_defines(items: list) -> None:
    """
    Attach the defines that follow a group typedef to it.

    Each matching define is cast to the typedef type. Association stops at
    the first item that is not a matching object-like define.
    """
    for i, item in enumerate(items):
        if isinstance(item, PreProcBlock):
            block = item
            while block is not None:
                associate_defines(block.items)
                block = block.else_block
            continue
        if not isinstance(item, TypeDef):
            continue
        if item.group_kind is None and item.name.endswith("Flags"):
            item.group_kind = GroupKind.FLAGS
        if item.group_kind is None:
            continue

        matches = item.define_filter
        if matches is None:
            prefix = default_define_prefix(item.name)
            matches = lambda name, prefix=prefix: name.startswith(prefix)
        ty = CType.named(item.name)
        item.associated = []
        for follower in items[i + 1:]:
            if not (
                isinstance(follower, Define)
                and not follower.is_function_like
                and isinstance(follower.value, ExprValue)
                and matches(follower.name)
            ):
                break
            follower.cast_value(ty)
            item.associated.append(follower)
        logger.debug(f"{item.module}: `{item.name}` has {len(item.associated)} associated defines")


# =============================================================================
# Parser
# =============================================================================

class HeaderParser:
    """
    Parser for SDL-style C headers.

    Extracts items in source order, resolves the module name and module
    dependencies, and applies the header-level passes (guard unwrapping,
    typedef define association).
    """

    def __init__(self, config: Optional[GeneratorConfig] = None):
        self.config = config or GeneratorConfig()

    @property
    def header_prefix(self) -> str:
        return self.config.generation.header_prefix

    def module_name(self, path: Path) -> str:
        return module_name_for(path, self.header_prefix)

    def is_skipped(self, path: Path) -> bool:
        return is_skipped_module(self.module_name(path), self.config.generation.skip_modules)

    def find_headers(self, headers_dir: Optional[Path] = None) -> list[Path]:
        """Sorted header paths that produce modules."""
        if headers_dir is None:
            headers_dir = self.config.headers_dir_abs
        headers = sorted(headers_dir.glob("*.h"), key=lambda p: p.name)
        kept = []
        for path in headers:
            if self.is_skipped(path):
                logger.debug(f"Skipping module: {self.module_name(path)}")
                continue
            kept.append(path)
        return kept

    def parse(self, header_path: Path) -> ParsedHeader:
        """
        Parse a single header file.

        Args:
            header_path: Path to the header file

        Returns:
            ParsedHeader with all items of the file

        Raises:
            ParseError: On malformed input
        """
        text = header_path.read_text(encoding="utf-8")
        return self.parse_source(header_path.name, text, header_path)

    def parse_source(self, name: str, text: str, path: Optional[Path] = None) -> ParsedHeader:
        """Parse header text that doesn't come from disk (or already read)."""
        path = path or Path(name)
        module = self.module_name(path)
        ctx = ParseContext(module)
        source = Source(name, text)

        _, items = parse_items(ctx, source.span())
        items = unwrap_header_guard(items)
        associate_defines(items)

        result = ParsedHeader(path=path, module=module, source=source, items=items)
        for item in items:
            if isinstance(item, FileDoc) and item.doc.detached:
                result.file_doc = item.doc
                break
        result.includes = [item for item in iter_items(items) if isinstance(item, Include)]
        result.dependencies = self._dependencies(module, result.includes)
        return result

    def _dependencies(self, module: str, includes: list[Include]) -> list[str]:
        deps = set()
        for include in includes:
            header = Path(include.path)
            if not header.name.startswith(self.header_prefix):
                continue
            dep = self.module_name(header)
            if dep == module or is_skipped_module(dep, self.config.generation.skip_modules):
                continue
            deps.add(dep)
        return sorted(deps)

    def parse_headers(self, header_paths: list[Path]) -> list[ParsedHeader]:
        """Parse multiple headers, skipping configured modules."""
        results = []
        for path in header_paths:
            if self.is_skipped(path):
                continue
            logger.debug(f"Parsing: {path}")
            results.append(self.parse(path))
        return results
