"""
Numeric, character and string literals.

Literals keep their raw text (``span.text``) next to the decoded value, and
infer the C primitive type the literal would have.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..errors import ParseError
from .base import Expr, ParseContext
from .primitive import PrimitiveType
from .span import Span


# C "pp-number": anything that starts like a number and continues with
# alphanumerics, dots, digit separators or signed exponents
_PP_NUMBER_RE = re.compile(r"(?:\d|\.\d)(?:[eEpP][+-]|[0-9A-Za-z_.'])*")
_HEX_RE = re.compile(r"0[xX]([0-9A-Fa-f']*)([A-Za-z]*)$")
_DEC_RE = re.compile(r"([0-9][0-9']*)([A-Za-z]*)$")
_FLOAT_RE = re.compile(
    r"((?:\d[\d']*)?\.\d[\d']*(?:[eE][+-]?\d+)?|\d[\d']*\.(?:[eE][+-]?\d+)?|\d[\d']*[eE][+-]?\d+)([fFlL]?)$"
)

_MAX_U64 = (1 << 64) - 1

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", "\\": "\\", "'": "'", '"': '"', "a": "\a", "b": "\b", "f": "\f", "v": "\v"}


class IntSuffix(Enum):
    """Integer literal suffix, normalised to lower case."""

    NONE = ""
    U = "u"
    L = "l"
    UL = "ul"
    LL = "ll"
    ULL = "ull"


_SUFFIXES = {
    "": IntSuffix.NONE,
    "u": IntSuffix.U,
    "l": IntSuffix.L,
    "ul": IntSuffix.UL,
    "lu": IntSuffix.UL,
    "ll": IntSuffix.LL,
    "ull": IntSuffix.ULL,
    "llu": IntSuffix.ULL,
}

_P = PrimitiveType

# Candidate types in C promotion order: (decimal, hex/octal)
_CANDIDATES = {
    IntSuffix.NONE: (
        (_P.INT, _P.LONG_LONG),
        (_P.INT, _P.UNSIGNED_INT, _P.LONG_LONG, _P.UNSIGNED_LONG_LONG),
    ),
    IntSuffix.U: (
        (_P.UNSIGNED_INT, _P.UNSIGNED_LONG_LONG),
        (_P.UNSIGNED_INT, _P.UNSIGNED_LONG_LONG),
    ),
    IntSuffix.L: (
        (_P.LONG, _P.LONG_LONG),
        (_P.LONG, _P.UNSIGNED_LONG, _P.LONG_LONG, _P.UNSIGNED_LONG_LONG),
    ),
    IntSuffix.UL: (
        (_P.UNSIGNED_LONG, _P.UNSIGNED_LONG_LONG),
        (_P.UNSIGNED_LONG, _P.UNSIGNED_LONG_LONG),
    ),
    IntSuffix.LL: (
        (_P.LONG_LONG,),
        (_P.LONG_LONG, _P.UNSIGNED_LONG_LONG),
    ),
    IntSuffix.ULL: (
        (_P.UNSIGNED_LONG_LONG,),
        (_P.UNSIGNED_LONG_LONG,),
    ),
}


def _scan_number(span: Span) -> Optional[Span]:
    s = span.skip_wsc()
    m = _PP_NUMBER_RE.match(s.source.text, s.start, s.end)
    if m is None:
        return None
    end = m.end()
    token = m.group(0)
    if token[:2] in ("0x", "0X"):
        # `e` is a hex digit, so `0xE-1` is a subtraction
        exp = re.search(r"[eE][+-]", token)
        if exp is not None:
            end = m.start() + exp.start() + 1
    return Span(s.source, m.start(), end)


class Literal(Expr):
    """Base for literal expressions; ``try_parse`` tries every form."""

    desc = "literal"

    @property
    def primitive_type(self) -> PrimitiveType:
        raise NotImplementedError

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span):
        for kind in (FloatLiteral, IntegerLiteral, CharLiteral, StringLiteral):
            rest, lit = kind.try_parse(ctx, span)
            if lit is not None:
                return rest, lit
        return span, None


@dataclass(frozen=True)
class IntegerLiteral(Literal):
    span: Span
    value: int
    base: int
    suffix: IntSuffix = IntSuffix.NONE
    desc = "integer literal"

    @property
    def digits(self) -> str:
        """Raw digits without prefix, suffix or separators."""
        text = self.span.text.replace("'", "")
        text = text.rstrip("uUlL")
        if self.base == 16:
            return text[2:]
        if self.base == 8:
            return text[1:]
        return text

    @property
    def primitive_type(self) -> PrimitiveType:
        decimal, other = _CANDIDATES[self.suffix]
        for ty in (decimal if self.base == 10 else other):
            lo, hi = ty.range
            if lo <= self.value <= hi:
                return ty
        return PrimitiveType.UNSIGNED_LONG_LONG

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span):
        tok = _scan_number(span)
        if tok is None:
            return span, None
        text = tok.text
        rest = Span(tok.source, tok.end, span.end)

        m = _HEX_RE.match(text)
        if m is not None:
            digits, suffix = m.group(1).replace("'", ""), m.group(2)
            if not digits:
                raise ParseError(tok, "expected hexadecimal digit")
            base = 16
        else:
            m = _DEC_RE.match(text)
            if m is None:
                # a float or something malformed; not ours
                return span, None
            digits, suffix = m.group(1).replace("'", ""), m.group(2)
            base = 8 if len(digits) > 1 and digits.startswith("0") else 10
            if base == 8 and any(d in "89" for d in digits):
                raise ParseError(tok, "invalid digit in octal literal")

        norm = _SUFFIXES.get(suffix.lower())
        # `lL` and `Ll` are not valid spellings of `ll`
        if norm is None or "lL" in suffix or "Ll" in suffix:
            raise ParseError(tok, f"invalid integer suffix `{suffix}`")
        value = int(digits, base)
        if value > _MAX_U64:
            raise ParseError(tok, "integer literal overflow")
        return rest, cls(tok, value, base, norm)

    @classmethod
    def synthetic(cls, value: int) -> "IntegerLiteral":
        return cls(Span.of("<generated>", str(value)), value, 10)


@dataclass(frozen=True)
class FloatLiteral(Literal):
    span: Span
    value: float
    is_single: bool = False
    desc = "float literal"

    @property
    def primitive_type(self) -> PrimitiveType:
        return PrimitiveType.FLOAT if self.is_single else PrimitiveType.DOUBLE

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span):
        tok = _scan_number(span)
        if tok is None or tok.text.lower().startswith("0x"):
            return span, None
        m = _FLOAT_RE.match(tok.text)
        if m is None:
            return span, None
        body, suffix = m.group(1).replace("'", ""), m.group(2)
        rest = Span(tok.source, tok.end, span.end)
        return rest, cls(tok, float(body), suffix in ("f", "F"))


@dataclass(frozen=True)
class CharLiteral(Literal):
    span: Span
    value: int
    desc = "character literal"

    @property
    def primitive_type(self) -> PrimitiveType:
        return PrimitiveType.CHAR

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span):
        s = span.skip_wsc()
        if not s.startswith("'"):
            return span, None
        ch = s.char(1)
        if ch == "\\":
            esc = s.char(2)
            if esc not in _ESCAPES:
                raise ParseError(s.slice(1, 3), "unsupported escape in character literal")
            value, close = ord(_ESCAPES[esc]), 3
        elif ch in ("", "'", "\n"):
            raise ParseError(s.peek(), "empty or unterminated character literal")
        else:
            value, close = ord(ch), 2
        if s.char(close) != "'":
            raise ParseError(s.slice(0, close), "unterminated character literal")
        return s.slice(close + 1), cls(s.slice(0, close + 1), value)


@dataclass(frozen=True)
class StringLiteral(Literal):
    span: Span
    value: str
    desc = "string literal"

    @property
    def primitive_type(self) -> PrimitiveType:
        # the pointee; the literal itself is `const char *`
        return PrimitiveType.CHAR

    @classmethod
    def _try_one(cls, span: Span) -> tuple[Span, Optional[tuple[Span, str]]]:
        s = span.skip_wsc()
        if not s.startswith('"'):
            return span, None
        text = s.source.text
        i = s.start + 1
        while i < s.end:
            ch = text[i]
            if ch == "\\":
                raise ParseError(Span(s.source, i, i + 1), "escapes aren't supported")
            if ch == "\n":
                break
            if ch == '"':
                tok = Span(s.source, s.start, i + 1)
                return Span(s.source, i + 1, s.end), (tok, text[s.start + 1:i])
            i += 1
        raise ParseError(s.peek(), "unterminated string literal")

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span):
        rest, first = cls._try_one(span)
        if first is None:
            return span, None
        tok, value = first
        # adjacent literals concatenate
        while True:
            after, nxt = cls._try_one(rest)
            if nxt is None:
                break
            tok = tok.join(nxt[0])
            value += nxt[1]
            rest = after
        return rest, cls(tok, value)
