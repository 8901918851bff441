"""
Preprocessor lines and conditional blocks.

Directives are read as logical lines (backslash continuations joined, block
comments kept whole). Only the subset of the preprocessor that SDL headers
use for declarations is understood; nothing is expanded.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from ..errors import ParseError
from .base import Expr, ParseContext, Parser, punct, word
from .doc_comment import DocComment, combine
from .expr import Cast
from .ident import Ident
from .span import Span
from .types import CType, TypeWithIdent

logger = logging.getLogger("sdlgen.parser")


# Conditions mentioning these guard C++ or static-analysis only code
SKIPPED_CONDITIONS = ("__cplusplus", "SDL_THREAD_SAFETY_ANALYSIS")

_CONDITIONAL_START = frozenset({"if", "ifdef", "ifndef"})
_CONDITIONAL_BRANCH = frozenset({"elif", "elifdef", "elifndef", "else", "endif"})


# =============================================================================
# Define values
# =============================================================================

class DefineValue:
    """Body of a ``#define``: ExprValue, TypeValue, OtherValue or EmptyValue."""

    span: Span


@dataclass(frozen=True)
class ExprValue(DefineValue):
    span: Span
    expr: Expr


@dataclass(frozen=True)
class TypeValue(DefineValue):
    span: Span
    ty: CType


@dataclass(frozen=True)
class OtherValue(DefineValue):
    """Tokens that are neither an expression nor a type; passed through."""

    span: Span


@dataclass(frozen=True)
class EmptyValue(DefineValue):
    span: Span


def parse_define_value(ctx: ParseContext, body: Span, function_like: bool = False) -> DefineValue:
    body = body.trim_wsc()
    if body.is_empty():
        return EmptyValue(body)
    if body.contains("##") or body.contains("_cast<"):
        return OtherValue(body)
    expr = Expr.try_parse_exact(ctx, body)
    if expr is not None:
        return ExprValue(body, expr)
    if function_like:
        return OtherValue(body)
    rest, ty = TypeWithIdent.try_parse_type(ctx, body)
    if ty is not None and rest.skip_wsc().is_empty():
        return TypeValue(body, ty)
    return OtherValue(body)


# =============================================================================
# Lines
# =============================================================================

@dataclass
class Define(Parser):
    """
    ``#define NAME[(args)] body``

    ``args`` is None for object-like macros. ``arg_types`` holds a type per
    parameter, or None where it is not known. Patches may replace ``value``
    and set parameter types. ``cast`` is the type the value was cast to by
    ``cast_value``.
    """

    span: Span
    module: str
    doc: Optional[DocComment]
    ident: Ident
    args: Optional[list[Ident]]
    value: DefineValue
    arg_types: Optional[list[Optional[CType]]] = None
    cast: Optional[CType] = None
    desc = "define"

    def __post_init__(self):
        if self.args is not None and self.arg_types is None:
            self.arg_types = [None] * len(self.args)

    @property
    def name(self) -> str:
        return self.ident.name

    @property
    def is_function_like(self) -> bool:
        return self.args is not None

    def cast_value(self, ty: CType) -> None:
        """
        Wrap the value in a cast to ``ty``.

        Casting to the type the value is already cast to does nothing, and a
        second cast replaces the first one instead of nesting it.

        Raises:
            ParseError: If the value is not an expression
        """
        if not isinstance(self.value, ExprValue):
            raise ParseError(self.span, f"can't cast value of `{self.name}`: not an expression")
        expr = self.value.expr
        if isinstance(expr, Cast) and expr.ty.describe() == ty.describe():
            return
        if self.cast is not None:
            expr = expr.expr
        self.value = ExprValue(self.value.span, Cast(expr.span, ty, expr))
        self.cast = ty

    def set_arg_types(self, *types: CType) -> None:
        """
        Set the parameter types of a function-like macro.

        Raises:
            ParseError: If the number of types doesn't match the parameters
        """
        count = len(self.args) if self.args is not None else 0
        if self.args is None or len(types) != count:
            raise ParseError(self.span, f"`{self.name}` takes {count} parameters, not {len(types)}")
        self.arg_types = list(types)


class IncludeKind(Enum):
    SYSTEM = "system"
    LOCAL = "local"


@dataclass(frozen=True)
class Include:
    span: Span
    kind: IncludeKind
    path: str


@dataclass(frozen=True)
class Undef:
    span: Span
    ident: Ident


@dataclass(frozen=True)
class Pragma:
    span: Span
    text: str


@dataclass(frozen=True)
class Diagnostic:
    """``#error`` or ``#warning``."""

    span: Span
    level: str
    message: str


@dataclass(frozen=True)
class Skipped:
    """A conditional branch that is kept as raw text and never parsed."""

    span: Span


# =============================================================================
# Conditional blocks
# =============================================================================

@dataclass(frozen=True)
class Conditional:
    """
    The condition of a branch.

    ``kind`` is ``if``, ``ifdef`` or ``ifndef`` (``elif`` forms are
    normalised). ``ident`` is set for ``ifdef``/``ifndef``; ``expr`` for
    ``if`` when the condition parses as an expression.
    """

    span: Span
    kind: str
    expr: Optional[Expr] = None
    ident: Optional[Ident] = None

    @property
    def text(self) -> str:
        return self.span.text

    @property
    def is_skipped(self) -> bool:
        return any(re.search(rf"\b{name}\b", self.text) for name in SKIPPED_CONDITIONS)


@dataclass
class PreProcBlock:
    """
    ``#if cond items [#elif ... | #else items] #endif``

    An ``#elif`` chain is a nested block in ``else_block``; a plain ``#else``
    is a block with ``cond`` None.
    """

    span: Span
    cond: Optional[Conditional]
    items: list = field(default_factory=list)
    else_block: Optional["PreProcBlock"] = None


PreProcItem = Union[Define, Include, Undef, Pragma, Diagnostic, PreProcBlock]


def read_logical_line(span: Span) -> tuple[Span, Span]:
    """
    Split off one logical line starting at ``span``.

    Returns ``(rest, line)``; ``rest`` starts at the terminating newline.
    """
    s = span.skip_wsc()
    text = s.source.text
    i, end = s.start, s.end
    while i < end:
        ch = text[i]
        if ch == "\\" and text.startswith("\n", i + 1, end):
            i += 2
        elif ch == "\\" and text.startswith("\r\n", i + 1, end):
            i += 3
        elif text.startswith("/*", i, end):
            close = text.find("*/", i + 2, end)
            if close < 0:
                raise ParseError(Span(s.source, i, i + 2), "unterminated block comment")
            i = close + 2
        elif text.startswith("//", i, end):
            nl = text.find("\n", i, end)
            i = end if nl < 0 else nl
        elif ch in "\"'":
            j = i + 1
            while j < end and text[j] not in (ch, "\n"):
                j += 2 if text[j] == "\\" else 1
            i = j + 1 if j < end and text[j] == ch else j
        elif ch == "\n":
            break
        else:
            i += 1
    return Span(s.source, i, end), Span(s.source, s.start, i)


def peek_directive(span: Span) -> Optional[str]:
    """Name of the directive starting at ``span``, without consuming it."""
    s = span.skip_wsc()
    if not s.startswith("#"):
        return None
    _, line = read_logical_line(s)
    _, w = word(line.slice(1))
    return w.text if w is not None else ""


def _split_directive(line: Span) -> tuple[str, Span, Span]:
    """``# name args`` -> (name, name span, args span)."""
    rest, w = word(line.slice(1))
    if w is None:
        return "", line.peek(), rest
    return w.text, w, rest


def _parse_condition(ctx: ParseContext, line: Span) -> Conditional:
    name, w, args = _split_directive(line)
    args = args.trim_wsc()
    kind = {"elif": "if", "elifdef": "ifdef", "elifndef": "ifndef"}.get(name, name)
    if kind in ("ifdef", "ifndef"):
        ident = Ident.try_parse_any(ctx, args)[1]
        if ident is None:
            raise ParseError(w, f"expected identifier after `#{name}`")
        return Conditional(args, kind, ident=ident)
    # `defined X` without parentheses and such stay unparsed
    return Conditional(args, kind, expr=Expr.try_parse_exact(ctx, args))


def _skip_branch(span: Span) -> tuple[Span, Span]:
    """Skip raw lines up to the next same-level ``#elif``/``#else``/``#endif``."""
    depth = 0
    rest = span
    start = span
    while True:
        s = rest.skip_wsc()
        if s.is_empty():
            return s, start.until(s)
        if s.startswith("#"):
            directive = peek_directive(s)
            if depth == 0 and directive in _CONDITIONAL_BRANCH:
                return s, start.until(s)
            if directive in _CONDITIONAL_START:
                depth += 1
            elif directive == "endif":
                depth -= 1
        # advance a physical line (or a whole comment)
        if s.startswith("/**"):
            close = s.find("*/", 3)
            if close < 0:
                raise ParseError(s.peek(3), "doc comment with no end")
            rest = s.slice(close + 2)
        else:
            rest, _ = read_logical_line(s)
            rest = rest.slice(1)


def _parse_block(ctx: ParseContext, span: Span) -> tuple[Span, PreProcBlock]:
    """Parse a conditional block starting at ``#if``/``#ifdef``/``#ifndef``/``#elif...``."""
    from .items import parse_items

    rest, line = read_logical_line(span)
    cond = _parse_condition(ctx, line)
    if cond.is_skipped:
        rest, raw = _skip_branch(rest)
        items = [Skipped(raw)]
    else:
        rest, items = parse_items(ctx, rest, nested=True)

    directive = peek_directive(rest)
    if directive is None:
        raise ParseError(line, "unterminated #if")

    else_block = None
    if directive in ("elif", "elifdef", "elifndef"):
        rest, else_block = _parse_block(ctx, rest)
        return rest, PreProcBlock(line.join(else_block.span), cond, items, else_block)

    if directive == "else":
        rest, else_line = read_logical_line(rest)
        rest, else_items = parse_items(ctx, rest, nested=True)
        directive = peek_directive(rest)
        if directive is None:
            raise ParseError(line, "unterminated #if")
        if directive != "endif":
            _, bad = read_logical_line(rest)
            raise ParseError(bad, f"`#{directive}` after `#else`")
        else_block = PreProcBlock(else_line, None, else_items)

    rest, endif = read_logical_line(rest)
    return rest, PreProcBlock(line.join(endif), cond, items, else_block)


def parse_preproc(ctx: ParseContext, span: Span) -> tuple[Span, Optional[PreProcItem]]:
    """
    Match one preprocessor line or a whole conditional block.

    ``#elif``/``#else``/``#endif`` are not matched here; they end the
    items of the enclosing block.
    """
    from .patch import patch_define

    rest, doc = DocComment.try_parse(ctx, span)
    s = rest.skip_wsc()
    if not s.startswith("#"):
        return span, None
    directive = peek_directive(s)
    if directive in _CONDITIONAL_BRANCH:
        return span, None
    if directive in _CONDITIONAL_START:
        if doc is not None:
            return span, None
        return _parse_block(ctx, s)

    rest, line = read_logical_line(s)
    name, w, args = _split_directive(line)

    if name == "define":
        define = _parse_define(ctx, line, args, doc)
        patch_define(ctx, define)
        return rest, define
    if doc is not None:
        # only defines take a leading doc comment
        return span, None
    if name == "undef":
        _, ident = Ident.try_parse_any(ctx, args)
        if ident is None:
            raise ParseError(w, "expected identifier after `#undef`")
        return rest, Undef(line, ident)
    if name == "include":
        return rest, _parse_include(line, args)
    if name == "pragma":
        return rest, Pragma(line, args.trim_wsc().text)
    if name in ("error", "warning"):
        return rest, Diagnostic(line, name, args.trim_wsc().text)
    if name == "":
        # null directive
        return rest, Pragma(line, "")
    raise ParseError(w, f"unsupported preprocessor directive `#{name}`")


def _parse_define(ctx: ParseContext, line: Span, args: Span, doc: Optional[DocComment]) -> Define:
    rest, ident = Ident.try_parse_any(ctx, args)
    if ident is None:
        raise ParseError(args.skip_wsc().peek(), "expected macro name after `#define`")

    params = None
    if rest.char() == "(":
        params = []
        rest = rest.slice(1)
        while True:
            after, close = punct(rest, ")")
            if close is not None:
                rest = after
                break
            after, dots = punct(rest, "...")
            if dots is not None:
                params.append(Ident(dots))
                rest = after
                continue
            rest, param = Ident.try_parse_any(ctx, rest)
            if param is None:
                raise ParseError(rest.skip_wsc().peek(), "expected macro parameter")
            params.append(param)
            rest, _ = punct(rest, ",")

    body, postfix = DocComment.split_postfix(rest)
    value = parse_define_value(ctx, body, params is not None)
    return Define(line, ctx.module, combine(doc, postfix), ident, params, value)


def _parse_include(line: Span, args: Span) -> Include:
    s = args.trim_wsc()
    text = s.text
    if len(text) >= 2 and text[0] == "<" and text[-1] == ">":
        return Include(line, IncludeKind.SYSTEM, text[1:-1].strip())
    if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
        return Include(line, IncludeKind.LOCAL, text[1:-1].strip())
    raise ParseError(s if not s.is_empty() else line, "invalid `#include`")
