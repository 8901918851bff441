"""
Type registry for C to Rust type mappings.

Primitive C types map to fixed ``core`` paths. Names declared in headers
(typedefs, enums, structs, groups) are registered as modules are emitted so
that later items can look them up.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Optional

from ..parser.primitive import PrimitiveType

if TYPE_CHECKING:
    from ..parser.types import CType


class TypeKind(Enum):
    """Classification of named types."""
    PRIMITIVE = auto()    # int, uint32_t, size_t, ...
    TYPEDEF = auto()      # Plain type aliases
    GROUP = auto()        # Typedefs carrying a group kind
    ENUM = auto()         # Enumerations (newtype structs)
    STRUCT = auto()       # Structs and unions
    OPAQUE = auto()       # Forward-declared structs
    EXTERNAL = auto()     # Declared outside the header tree


@dataclass
class TypeInfo:
    """Information about a named type."""
    c_name: str
    rust_name: str
    kind: TypeKind
    module: Optional[str] = None
    aliased: Optional["CType"] = None  # For typedefs and groups
    primitive: Optional[PrimitiveType] = None


# =============================================================================
# Primitive Types
# =============================================================================

PRIMITIVE_TYPES: dict[PrimitiveType, str] = {
    # Basic integer types
    PrimitiveType.SHORT: "::core::ffi::c_short",
    PrimitiveType.UNSIGNED_SHORT: "::core::ffi::c_ushort",
    PrimitiveType.INT: "::core::ffi::c_int",
    PrimitiveType.UNSIGNED_INT: "::core::ffi::c_uint",
    PrimitiveType.LONG: "::core::ffi::c_long",
    PrimitiveType.UNSIGNED_LONG: "::core::ffi::c_ulong",
    PrimitiveType.LONG_LONG: "::core::ffi::c_longlong",
    PrimitiveType.UNSIGNED_LONG_LONG: "::core::ffi::c_ulonglong",

    # Character types
    PrimitiveType.CHAR: "::core::ffi::c_char",
    PrimitiveType.SIGNED_CHAR: "::core::ffi::c_schar",
    PrimitiveType.UNSIGNED_CHAR: "::core::ffi::c_uchar",
    PrimitiveType.WCHAR_T: "crate::ffi::c_wchar_t",

    # Floating point
    PrimitiveType.FLOAT: "::core::ffi::c_float",
    PrimitiveType.DOUBLE: "::core::ffi::c_double",

    # Boolean and void
    PrimitiveType.BOOL: "::core::primitive::bool",
    PrimitiveType.VOID: "::core::ffi::c_void",

    # Fixed-width (stdint.h)
    PrimitiveType.INT8_T: "::core::primitive::i8",
    PrimitiveType.UINT8_T: "::core::primitive::u8",
    PrimitiveType.INT16_T: "::core::primitive::i16",
    PrimitiveType.UINT16_T: "::core::primitive::u16",
    PrimitiveType.INT32_T: "::core::primitive::i32",
    PrimitiveType.UINT32_T: "::core::primitive::u32",
    PrimitiveType.INT64_T: "::core::primitive::i64",
    PrimitiveType.UINT64_T: "::core::primitive::u64",

    # Size types
    PrimitiveType.SIZE_T: "::core::primitive::usize",
    PrimitiveType.INTPTR_T: "::core::primitive::isize",
    PrimitiveType.UINTPTR_T: "::core::primitive::usize",

    PrimitiveType.VA_LIST: "crate::ffi::VaList",
}


class TypeRegistry:
    """
    Central registry for type mappings.

    Holds every named type seen so far in the run along with what it maps
    to, so that constants can be typed and typedef chains followed.
    """

    def __init__(self, external_types: Optional[list[str]] = None):
        """
        Initialize the type registry.

        Args:
            external_types: Names declared outside the header tree
        """
        self._types: dict[str, TypeInfo] = {}
        for name in external_types or ():
            self.register_type(TypeInfo(name, name, TypeKind.EXTERNAL))

    def register_type(self, info: TypeInfo) -> None:
        """Register a named type; a later definition replaces an opaque one."""
        existing = self._types.get(info.c_name)
        if existing is not None and existing.kind is not TypeKind.OPAQUE and info.kind is TypeKind.OPAQUE:
            return
        self._types[info.c_name] = info

    def lookup(self, c_name: str) -> Optional[TypeInfo]:
        """
        Look up type information for a C type name.

        Args:
            c_name: The C type name (e.g., "Uint32", "SDL_Window")

        Returns:
            TypeInfo if found, None otherwise
        """
        return self._types.get(c_name.strip())

    def rust_name(self, c_name: str) -> str:
        info = self.lookup(c_name)
        return info.rust_name if info is not None else c_name

    def primitive_of(self, c_name: str) -> Optional[PrimitiveType]:
        """Follow typedefs (and enum base types) down to a primitive."""
        seen = set()
        info = self.lookup(c_name)
        while info is not None and info.c_name not in seen:
            seen.add(info.c_name)
            if info.primitive is not None:
                return info.primitive
            aliased = info.aliased
            if aliased is None:
                return None
            prim = getattr(aliased, "primitive", None)
            if isinstance(prim, PrimitiveType):
                return prim
            name = getattr(aliased, "name", None)
            if not isinstance(name, str):
                return None
            info = self.lookup(name)
        return None

    def is_known_type(self, c_name: str) -> bool:
        """Check if a type is recognized."""
        return self.lookup(c_name) is not None

    def is_opaque(self, c_name: str) -> bool:
        info = self.lookup(c_name)
        return info is not None and info.kind is TypeKind.OPAQUE
