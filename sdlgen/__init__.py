"""
sdlgen - SDL3 Rust Binding Generator

Parses SDL3 C headers and generates raw Rust FFI bindings plus a metadata
tree describing hints, properties and constant groups.
"""

__version__ = "0.1.0"
__author__ = "sdlgen Team"

from .config import GeneratorConfig
from .errors import EmitError, ModelError, ParseError, SdlGenError

__all__ = [
    "GeneratorConfig",
    "SdlGenError",
    "ParseError",
    "ModelError",
    "EmitError",
    "__version__",
]
