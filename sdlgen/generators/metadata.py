"""
Metadata generator.

Renders the model's groups, structs, hints and properties as Rust
constants, one file per module that has any, plus a ``mod.rs`` that
aggregates them. Opaque structs have no metadata.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from jinja2 import Environment

from ..errors import EmitError
from ..model.metadata import Availability, Model, ModuleModel
from .base import GeneratedFile, Generator, rust_str

logger = logging.getLogger("sdlgen.emit")


def opt_doc(doc: Optional[str]) -> str:
    """``Some("...\\n")`` or ``None``; metadata docs end with a newline."""
    if doc is None:
        return "None"
    text = rust_str(doc + "\n")
    return f"Some({text})"


def opt_version(since: Optional[Availability]) -> str:
    if since is None:
        return "None"
    return f"Some({since.render()})"


class MetadataGenerator(Generator):
    """Generator for the metadata sub-tree."""

    def _create_jinja_env(self) -> Environment:
        env = super()._create_jinja_env()
        env.filters["opt_doc"] = opt_doc
        env.filters["opt_version"] = opt_version
        return env

    def get_output_dir(self) -> Path:
        return self.config.metadata_dir_abs

    @staticmethod
    def has_metadata(mm: ModuleModel) -> bool:
        return bool(mm.groups or mm.hints or mm.properties or any(not s.opaque for s in mm.structs))

    def _check(self, mm: ModuleModel) -> None:
        for group in mm.groups:
            for value in group.values:
                if not value.short_name:
                    raise EmitError(mm.module, value.name, "group value without a short name")

    def generate_module(self, mm: ModuleModel) -> GeneratedFile:
        self._check(mm)
        content = self.render_template(
            "metadata_module.rs.j2",
            module=mm.module,
            groups=mm.groups,
            structs=[s for s in mm.structs if not s.opaque],
            hints=mm.hints,
            properties=mm.properties,
        )
        return GeneratedFile(Path(f"{mm.module}.rs"), content)

    def generate_mod(self, model: Model, modules: list[str]) -> GeneratedFile:
        content = self.render_template(
            "metadata_mod.rs.j2",
            crate_name=self.config.generation.crate_name,
            modules=modules,
            hints=model.hints,
            properties=model.properties,
            groups=model.groups,
            structs=model.structs,
        )
        return GeneratedFile(Path("mod.rs"), content)

    def generate(self, model: Model) -> list[GeneratedFile]:
        """
        Generate the metadata files for a model.

        Args:
            model: Built metadata model

        Returns:
            Generated files, sorted by path
        """
        files = []
        modules = []
        for mm in model:
            if not self.has_metadata(mm):
                continue
            modules.append(mm.module)
            files.append(self.generate_module(mm))
        files.append(self.generate_mod(model, modules))
        logger.debug(f"Metadata for {len(modules)} modules")
        return sorted(files, key=lambda f: f.path.as_posix())
