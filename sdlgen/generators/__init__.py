"""
Rust code generators.
"""

from .base import Generator, GeneratedFile
from .rust_binding import RustBindingGenerator
from .metadata import MetadataGenerator
from .writer import OutputWriter

__all__ = [
    "Generator",
    "GeneratedFile",
    "RustBindingGenerator",
    "MetadataGenerator",
    "OutputWriter",
]
