"""
Configuration system for sdlgen.

Supports:
- TOML configuration files (``sdlgen.toml``, discovered upwards from cwd)
- CLI argument overrides for paths

Configuration only selects paths and naming; it never changes how headers
are parsed.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from .errors import SdlGenError


CONFIG_FILENAME = "sdlgen.toml"

# Headers that never produce bindings
DEFAULT_SKIP_MODULES = [
    "begin_code",
    "close_code",
    "copying",
    "dlopennote",
    "egl",
    "endian",
    "intrin",
    "main_impl",
    "oldnames",
    "platform_defines",
    "opengl*",
    "test*",
]


class ConfigError(SdlGenError):
    """Invalid or unreadable configuration file."""


@dataclass
class PathsConfig:
    """Path configuration."""

    headers_dir: Path = field(default_factory=lambda: Path("SDL/include/SDL3"))
    output_dir: Path = field(default_factory=lambda: Path("src/generated"))
    metadata_dir: Path = field(default_factory=lambda: Path("src/metadata/generated"))


@dataclass
class GenerationConfig:
    """Generation options."""

    metadata: bool = True
    header_prefix: str = "SDL_"
    sym_prefix: str = "SDL_"
    hint_prop_prefix: str = "SDL_"
    lib_name: str = "SDL"
    crate_name: str = "crate"
    skip_modules: list[str] = field(default_factory=lambda: list(DEFAULT_SKIP_MODULES))
    external_types: list[str] = field(default_factory=list)


@dataclass
class GeneratorConfig:
    """Main configuration container."""

    project_root: Path = field(default_factory=Path.cwd)
    paths: PathsConfig = field(default_factory=PathsConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)

    def __post_init__(self):
        """Ensure project_root is a Path."""
        if isinstance(self.project_root, str):
            self.project_root = Path(self.project_root)

    @classmethod
    def from_file(cls, path: Path) -> "GeneratorConfig":
        """Load configuration from a TOML file."""
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"{path}: {e}") from e

        return cls._from_dict(data, path.parent)

    @classmethod
    def _from_dict(cls, data: dict, base_path: Path) -> "GeneratorConfig":
        """Create config from dictionary."""
        paths_data = data.get("paths", {})
        gen_data = data.get("generation", {})

        defaults = PathsConfig()
        paths = PathsConfig(
            headers_dir=Path(paths_data.get("headers_dir", defaults.headers_dir)),
            output_dir=Path(paths_data.get("output_dir", defaults.output_dir)),
            metadata_dir=Path(paths_data.get("metadata_dir", defaults.metadata_dir)),
        )

        generation = GenerationConfig(
            metadata=gen_data.get("metadata", True),
            header_prefix=gen_data.get("header_prefix", "SDL_"),
            sym_prefix=gen_data.get("sym_prefix", "SDL_"),
            hint_prop_prefix=gen_data.get("hint_prop_prefix", "SDL_"),
            lib_name=gen_data.get("lib_name", "SDL"),
            crate_name=gen_data.get("crate_name", "crate"),
            skip_modules=list(gen_data.get("skip_modules", DEFAULT_SKIP_MODULES)),
            external_types=list(gen_data.get("external_types", [])),
        )

        return cls(
            project_root=base_path,
            paths=paths,
            generation=generation,
        )

    @classmethod
    def find_config(cls, start_path: Optional[Path] = None) -> Optional[Path]:
        """Find sdlgen.toml in current or parent directories."""
        if start_path is None:
            start_path = Path.cwd()

        current = start_path.resolve()

        for _ in range(10):  # Max 10 levels up
            config_path = current / CONFIG_FILENAME
            if config_path.exists():
                return config_path

            parent = current.parent
            if parent == current:
                break
            current = parent

        return None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "GeneratorConfig":
        """Load configuration, auto-discovering if path not provided."""
        if config_path is None:
            config_path = cls.find_config()
        elif not config_path.exists():
            raise ConfigError(f"config file not found: {config_path}")

        if config_path is not None:
            return cls.from_file(config_path)

        # Default config with current directory as root
        return cls(project_root=Path.cwd())

    def resolve_path(self, path: Path) -> Path:
        """Resolve a relative path against project root."""
        if path.is_absolute():
            return path
        return self.project_root / path

    @property
    def headers_dir_abs(self) -> Path:
        """Absolute path to the header directory."""
        return self.resolve_path(self.paths.headers_dir)

    @property
    def output_dir_abs(self) -> Path:
        """Absolute path to the generated module tree."""
        return self.resolve_path(self.paths.output_dir)

    @property
    def metadata_dir_abs(self) -> Path:
        """Absolute path to the generated metadata tree."""
        return self.resolve_path(self.paths.metadata_dir)
