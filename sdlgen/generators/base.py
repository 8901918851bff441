"""
Base classes for code generators.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, PackageLoader, select_autoescape

from ..config import GeneratorConfig


@dataclass
class GeneratedFile:
    """A generated file, relative to the output tree it belongs to."""
    path: Path
    content: str
    source: Optional[Path] = None  # Header the file was generated from


def rust_str(text: str) -> str:
    """Quote text as a Rust string literal."""
    escaped = (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def doc_lines(doc: Optional[str], marker: str = "///") -> list[str]:
    """Prefix each line of a rendered doc with a Rust doc comment marker."""
    if not doc:
        return []
    return [f"{marker} {line}" if line else marker for line in doc.split("\n")]


class Generator(ABC):
    """
    Abstract base class for code generators.

    Subclasses turn parsed headers (and the model built from them) into
    GeneratedFile objects; nothing is written to disk here.
    """

    def __init__(self, config: GeneratorConfig):
        """
        Initialize the generator.

        Args:
            config: Generator configuration
        """
        self.config = config
        self._env: Optional[Environment] = None

    @property
    def env(self) -> Environment:
        """Lazy-load Jinja2 environment."""
        if self._env is None:
            self._env = self._create_jinja_env()
        return self._env

    def _create_jinja_env(self) -> Environment:
        """Create and configure Jinja2 environment."""
        try:
            loader = PackageLoader("sdlgen", "templates")
        except ValueError:
            # running from a source tree without package metadata
            loader = FileSystemLoader(str(Path(__file__).parent.parent / "templates"))

        env = Environment(
            loader=loader,
            autoescape=select_autoescape(default=False),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

        # Add custom filters
        env.filters["rust_str"] = rust_str
        env.filters["doc_lines"] = doc_lines

        return env

    def render_template(self, name: str, **context) -> str:
        return self.env.get_template(name).render(**context)

    @abstractmethod
    def generate(self, *args) -> list[GeneratedFile]:
        """
        Generate the files of one output tree.

        Returns:
            Generated files, sorted by path
        """
        pass

    @abstractmethod
    def get_output_dir(self) -> Path:
        """Absolute directory the generated files belong in."""
        pass
