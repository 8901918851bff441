"""
Identifiers.
"""

from __future__ import annotations

from dataclasses import dataclass

from .base import Expr, ParseContext, word
from .span import Source, Span


C_KEYWORDS = frozenset({
    "auto", "break", "case", "char", "const", "continue", "default", "do",
    "double", "else", "enum", "extern", "float", "for", "goto", "if",
    "inline", "int", "long", "register", "restrict", "return", "short",
    "signed", "sizeof", "static", "struct", "switch", "typedef", "union",
    "unsigned", "void", "volatile", "while", "bool",
    "_Alignas", "_Alignof", "_Atomic", "_Bool", "_Complex", "_Generic",
    "_Imaginary", "_Noreturn", "_Static_assert", "_Thread_local",
})


def is_keyword(name: str) -> bool:
    return name in C_KEYWORDS


@dataclass(frozen=True)
class Ident(Expr):
    """A C identifier (keywords rejected)."""

    span: Span
    desc = "identifier"

    @property
    def name(self) -> str:
        return self.span.text

    def __str__(self) -> str:
        return self.name

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span):
        rest, w = word(span)
        if w is None or is_keyword(w.text):
            return span, None
        return rest, cls(w)

    @classmethod
    def try_parse_any(cls, ctx: ParseContext, span: Span):
        """Like ``try_parse`` but keywords are accepted (macro names)."""
        rest, w = word(span)
        if w is None:
            return span, None
        return rest, cls(w)

    @classmethod
    def synthetic(cls, name: str) -> "Ident":
        """An identifier that does not come from a header."""
        return cls(Source("<generated>", name).span())
