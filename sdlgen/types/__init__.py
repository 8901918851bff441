"""
Type system for C to Rust mapping.
"""

from .registry import TypeInfo, TypeKind, TypeRegistry
from .rust_mapper import RustMapper, rust_ident

__all__ = ["TypeInfo", "TypeKind", "TypeRegistry", "RustMapper", "rust_ident"]
