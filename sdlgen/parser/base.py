"""
Parser protocol and shared combinators.

Every parser implements ``try_parse(ctx, span) -> (rest, node | None)``:

* ``(rest, node)``: matched, ``rest`` is the remaining input
* ``(span, None)``: no match here, input unchanged, caller tries something else
* ``ParseError``: malformed construct, aborts the file

Parsers skip leading whitespace and (non-doc) comments themselves, but never
consume trailing whitespace.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, ClassVar, Optional, TypeVar

from ..errors import ParseError
from .span import Span

T = TypeVar("T")


# =============================================================================
# Context
# =============================================================================

@dataclass
class ParseContext:
    """State shared by all parsers working on one header."""

    module: str = ""


# =============================================================================
# Parser protocol
# =============================================================================

class Parser:
    """
    Base class for all parse nodes.

    Subclasses implement ``try_parse``; the strict and whole-input variants
    are derived from it.
    """

    desc: ClassVar[str] = "item"

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span):
        raise NotImplementedError

    @classmethod
    def parse(cls, ctx: ParseContext, span: Span):
        """Like ``try_parse`` but a non-match is an error."""
        rest, node = cls.try_parse(ctx, span)
        if node is None:
            raise ParseError(span.skip_wsc().peek(), f"expected {cls.desc}")
        return rest, node

    @classmethod
    def try_parse_exact(cls, ctx: ParseContext, span: Span):
        """Return the node only if it spans the whole input, else None."""
        rest, node = cls.try_parse(ctx, span)
        if node is None or not rest.skip_wsc().is_empty():
            return None
        return node

    @classmethod
    def try_parse_all(cls, ctx: ParseContext, span: Span):
        """
        Parse the whole input.

        Returns None if nothing matched; trailing unparsed data is an error.
        """
        rest, node = cls.try_parse(ctx, span)
        if node is None:
            return None
        rest = rest.skip_wsc()
        if not rest.is_empty():
            raise ParseError(rest.trim_wsc_end(), f"unexpected data after {cls.desc}")
        return node

    @classmethod
    def parse_all(cls, ctx: ParseContext, span: Span):
        node = cls.try_parse_all(ctx, span)
        if node is None:
            raise ParseError(span.skip_wsc().peek(), f"expected {cls.desc}")
        return node


class Expr(Parser):
    """
    Marker base for expression nodes.

    Variants: Ident, the Literal classes, FnCall, Cast, SizeOf,
    Parenthesized, UnaryOp and BinaryOp.
    """

    desc = "expression"

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span):
        from .expr import parse_expr
        return parse_expr(ctx, span)


# =============================================================================
# Tokens
# =============================================================================

_WORD_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

# Longest first so that e.g. `<<=` is not read as `<`
OPERATORS = (
    "...", "<<=", ">>=",
    "<<", ">>", "<=", ">=", "==", "!=", "&&", "||", "->", "++", "--",
    "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "##",
    "+", "-", "*", "/", "%", "<", ">", "=", "!", "~", "&", "|", "^",
    "?", ":", ";", ",", ".", "(", ")", "{", "}", "[", "]", "#",
)


def word(span: Span) -> tuple[Span, Optional[Span]]:
    """Match an identifier-shaped word (keywords included)."""
    s = span.skip_wsc()
    m = _WORD_RE.match(s.source.text, s.start, s.end)
    if m is None:
        return span, None
    return Span(s.source, m.end(), s.end), Span(s.source, m.start(), m.end())


def keyword(span: Span, kw: str) -> tuple[Span, Optional[Span]]:
    """Match the exact word ``kw``."""
    rest, w = word(span)
    if w is None or w.text != kw:
        return span, None
    return rest, w


def operator(span: Span) -> tuple[Span, Optional[Span]]:
    """Match the longest operator or punctuation token."""
    s = span.skip_wsc()
    for op in OPERATORS:
        if s.startswith(op):
            return s.slice(len(op)), s.slice(0, len(op))
    return span, None


def punct(span: Span, op: str) -> tuple[Span, Optional[Span]]:
    """Match operator ``op`` (and not a longer operator starting with it)."""
    rest, tok = operator(span)
    if tok is None or tok.text != op:
        return span, None
    return rest, tok


def expect_punct(span: Span, op: str) -> tuple[Span, Span]:
    rest, tok = punct(span, op)
    if tok is None:
        raise ParseError(span.skip_wsc().peek(), f"expected `{op}`")
    return rest, tok


def punctuated(
    ctx: ParseContext,
    span: Span,
    item: Callable[[ParseContext, Span], tuple[Span, Optional[T]]],
    sep: str = ",",
) -> tuple[Span, Optional[list[T]]]:
    """
    Parse ``item (sep item)*``.

    No first item is a non-match; a separator not followed by an item is
    a non-match too, so callers can fall back.
    """
    rest, first = item(ctx, span)
    if first is None:
        return span, None
    items = [first]
    while True:
        after_sep, tok = punct(rest, sep)
        if tok is None:
            break
        after_item, node = item(ctx, after_sep)
        if node is None:
            return span, None
        items.append(node)
        rest = after_item
    return rest, items


def balanced(span: Span, open_: str = "(", close: str = ")") -> tuple[Span, Optional[Span]]:
    """
    Match a bracketed region with nesting.

    Returns the inner span (without the brackets).

    Raises:
        ParseError: If the opening bracket is never closed
    """
    s = span.skip_wsc()
    if not s.startswith(open_):
        return span, None
    text = s.source.text
    depth = 0
    i = s.start
    quote = ""
    while i < s.end:
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 1
            elif ch == quote:
                quote = ""
        elif ch in "\"'":
            quote = ch
        elif text.startswith("/*", i, s.end):
            close_comment = text.find("*/", i + 2, s.end)
            if close_comment < 0:
                raise ParseError(Span(s.source, i, i + 2), "unterminated block comment")
            i = close_comment + 1
        elif ch == open_:
            depth += 1
        elif ch == close:
            depth -= 1
            if depth == 0:
                inner = Span(s.source, s.start + 1, i)
                return Span(s.source, i + 1, s.end), inner
        i += 1
    raise ParseError(s.peek(), f"no matching `{close}` for `{open_}`")
