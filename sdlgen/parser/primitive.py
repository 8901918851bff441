"""
C primitive types.
"""

from __future__ import annotations

from collections import Counter
from enum import Enum
from typing import Optional


class PrimitiveType(Enum):
    """Built-in C types, valued by their canonical C spelling."""

    CHAR = "char"
    SIGNED_CHAR = "signed char"
    UNSIGNED_CHAR = "unsigned char"
    SHORT = "short"
    UNSIGNED_SHORT = "unsigned short"
    INT = "int"
    UNSIGNED_INT = "unsigned int"
    LONG = "long"
    UNSIGNED_LONG = "unsigned long"
    LONG_LONG = "long long"
    UNSIGNED_LONG_LONG = "unsigned long long"
    FLOAT = "float"
    DOUBLE = "double"
    LONG_DOUBLE = "long double"
    VOID = "void"
    BOOL = "bool"
    SIZE_T = "size_t"
    INT8_T = "int8_t"
    UINT8_T = "uint8_t"
    INT16_T = "int16_t"
    UINT16_T = "uint16_t"
    INT32_T = "int32_t"
    UINT32_T = "uint32_t"
    INT64_T = "int64_t"
    UINT64_T = "uint64_t"
    INTPTR_T = "intptr_t"
    UINTPTR_T = "uintptr_t"
    WCHAR_T = "wchar_t"
    VA_LIST = "va_list"

    @property
    def is_integer(self) -> bool:
        return self in _INTEGER_RANGES

    @property
    def range(self) -> Optional[tuple[int, int]]:
        """Representable (min, max) for integer types whose width is fixed."""
        return _INTEGER_RANGES.get(self)


def _signed(bits: int) -> tuple[int, int]:
    return -(1 << (bits - 1)), (1 << (bits - 1)) - 1


def _unsigned(bits: int) -> tuple[int, int]:
    return 0, (1 << bits) - 1


# `long` is 32 bits on Windows, so only the portable range is assumed
_INTEGER_RANGES = {
    PrimitiveType.CHAR: _signed(8),
    PrimitiveType.SIGNED_CHAR: _signed(8),
    PrimitiveType.UNSIGNED_CHAR: _unsigned(8),
    PrimitiveType.SHORT: _signed(16),
    PrimitiveType.UNSIGNED_SHORT: _unsigned(16),
    PrimitiveType.INT: _signed(32),
    PrimitiveType.UNSIGNED_INT: _unsigned(32),
    PrimitiveType.LONG: _signed(32),
    PrimitiveType.UNSIGNED_LONG: _unsigned(32),
    PrimitiveType.LONG_LONG: _signed(64),
    PrimitiveType.UNSIGNED_LONG_LONG: _unsigned(64),
    PrimitiveType.BOOL: _unsigned(1),
    PrimitiveType.INT8_T: _signed(8),
    PrimitiveType.UINT8_T: _unsigned(8),
    PrimitiveType.INT16_T: _signed(16),
    PrimitiveType.UINT16_T: _unsigned(16),
    PrimitiveType.INT32_T: _signed(32),
    PrimitiveType.UINT32_T: _unsigned(32),
    PrimitiveType.INT64_T: _signed(64),
    PrimitiveType.UINT64_T: _unsigned(64),
    PrimitiveType.SIZE_T: _unsigned(32),
    PrimitiveType.INTPTR_T: _signed(32),
    PrimitiveType.UINTPTR_T: _unsigned(32),
}

# Words that stand alone as a complete type
SINGLE_WORD_TYPES = {
    "bool": PrimitiveType.BOOL,
    "_Bool": PrimitiveType.BOOL,
    "size_t": PrimitiveType.SIZE_T,
    "int8_t": PrimitiveType.INT8_T,
    "uint8_t": PrimitiveType.UINT8_T,
    "int16_t": PrimitiveType.INT16_T,
    "uint16_t": PrimitiveType.UINT16_T,
    "int32_t": PrimitiveType.INT32_T,
    "uint32_t": PrimitiveType.UINT32_T,
    "int64_t": PrimitiveType.INT64_T,
    "uint64_t": PrimitiveType.UINT64_T,
    "intptr_t": PrimitiveType.INTPTR_T,
    "uintptr_t": PrimitiveType.UINTPTR_T,
    "wchar_t": PrimitiveType.WCHAR_T,
    "va_list": PrimitiveType.VA_LIST,
    "void": PrimitiveType.VOID,
    "float": PrimitiveType.FLOAT,
}

# Words that combine (`unsigned long long int`)
COMBINING_WORDS = frozenset({"signed", "unsigned", "short", "long", "int", "char", "double"})


def classify_words(words: list[str]) -> Optional[PrimitiveType]:
    """
    Map a sequence of type words to a primitive type.

    Returns None for an invalid combination such as ``short char``.
    """
    if len(words) == 1 and words[0] in SINGLE_WORD_TYPES:
        return SINGLE_WORD_TYPES[words[0]]
    counts = Counter(words)
    if any(w not in COMBINING_WORDS for w in counts):
        return None
    signed = counts.pop("signed", 0)
    unsigned = counts.pop("unsigned", 0)
    if signed + unsigned > 1:
        return None
    longs = counts.pop("long", 0)
    shorts = counts.pop("short", 0)
    ints = counts.pop("int", 0)
    chars = counts.pop("char", 0)
    doubles = counts.pop("double", 0)
    if ints > 1 or chars > 1 or doubles > 1 or longs > 2 or shorts > 1:
        return None

    if doubles:
        if signed or unsigned or shorts or ints or chars or longs > 1:
            return None
        return PrimitiveType.LONG_DOUBLE if longs else PrimitiveType.DOUBLE
    if chars:
        if longs or shorts or ints:
            return None
        if unsigned:
            return PrimitiveType.UNSIGNED_CHAR
        return PrimitiveType.SIGNED_CHAR if signed else PrimitiveType.CHAR
    if shorts:
        if longs:
            return None
        return PrimitiveType.UNSIGNED_SHORT if unsigned else PrimitiveType.SHORT
    if longs == 2:
        return PrimitiveType.UNSIGNED_LONG_LONG if unsigned else PrimitiveType.LONG_LONG
    if longs == 1:
        return PrimitiveType.UNSIGNED_LONG if unsigned else PrimitiveType.LONG
    if ints or signed or unsigned:
        return PrimitiveType.UNSIGNED_INT if unsigned else PrimitiveType.INT
    return None


PRIMITIVE_WORDS = frozenset(SINGLE_WORD_TYPES) | COMBINING_WORDS
