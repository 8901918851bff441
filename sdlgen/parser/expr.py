"""
Expressions and call argument lists.

The expression grammar is the subset that appears in SDL constant macros and
enum initialisers: identifiers, literals, calls, casts, ``sizeof``,
parentheses, prefix unary operators and binary operators with C precedence.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

from ..errors import ParseError
from .base import Expr, ParseContext, Parser, keyword, operator, punct
from .ident import Ident
from .literal import Literal
from .span import Span

if TYPE_CHECKING:
    from .types import CType


BINARY_PRECEDENCE = {
    "*": 10, "/": 10, "%": 10,
    "+": 9, "-": 9,
    "<<": 8, ">>": 8,
    "<": 7, "<=": 7, ">": 7, ">=": 7,
    "==": 6, "!=": 6,
    "&": 5,
    "^": 4,
    "|": 3,
    "&&": 2,
    "||": 1,
}

UNARY_OPERATORS = frozenset({"-", "+", "!", "~"})


# =============================================================================
# Expression variants
# =============================================================================

@dataclass(frozen=True)
class CallArgs(Parser):
    """Parenthesised, comma separated expressions: ``(a, b, c)``."""

    span: Span
    args: tuple = ()
    desc = "arguments"

    def __len__(self) -> int:
        return len(self.args)

    def __iter__(self):
        return iter(self.args)

    @classmethod
    def empty(cls, at: Span) -> "CallArgs":
        return cls(at.end_span(), ())

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span):
        """
        Match ``( [expr {, expr}] )``.

        Content that is not an expression list is a non-match, so callers
        can fall back to treating the parentheses as something else.
        """
        rest, open_ = punct(span, "(")
        if open_ is None:
            return span, None
        after, close = punct(rest, ")")
        if close is not None:
            return after, cls(open_.join(close), ())
        args = []
        while True:
            rest, arg = Expr.try_parse(ctx, rest)
            if arg is None:
                return span, None
            args.append(arg)
            rest, comma = punct(rest, ",")
            if comma is None:
                break
        rest, close = punct(rest, ")")
        if close is None:
            return span, None
        return rest, cls(open_.join(close), tuple(args))


@dataclass(frozen=True)
class FnCall(Expr):
    """Call of a function or function-like macro: ``NAME(args)``."""

    span: Span
    ident: Ident
    args: CallArgs
    desc = "function call"

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span):
        rest, ident = Ident.try_parse(ctx, span)
        if ident is None:
            return span, None
        rest, args = CallArgs.try_parse(ctx, rest)
        if args is None:
            return span, None
        return rest, cls(ident.span.join(args.span), ident, args)


@dataclass(frozen=True)
class Cast(Expr):
    span: Span
    ty: "CType"
    expr: Expr
    desc = "cast expression"

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span):
        from .types import NamedType, TypeWithIdent

        rest, open_ = punct(span, "(")
        if open_ is None:
            return span, None
        # may just be a parenthesised expression, so nothing here is an error
        rest, typed = TypeWithIdent.try_parse_type(ctx, rest)
        if typed is None:
            return span, None
        rest, close = punct(rest, ")")
        if close is None:
            return span, None
        if isinstance(typed, NamedType) and rest.skip_wsc().char() in ("+", "-", "&", "*"):
            # `(NAME) - 1` is a subtraction, not a cast of `-1`
            return span, None
        rest, expr = parse_unary(ctx, rest)
        if expr is None:
            return span, None
        return rest, cls(open_.join(expr.span), typed, expr)


@dataclass(frozen=True)
class SizeOf(Expr):
    """``sizeof(type)`` or ``sizeof expr``."""

    span: Span
    operand: Union["CType", Expr]
    desc = "sizeof"

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span):
        from .types import TypeWithIdent

        rest, kw = keyword(span, "sizeof")
        if kw is None:
            return span, None
        after_open, open_ = punct(rest, "(")
        if open_ is not None:
            after_ty, ty = TypeWithIdent.try_parse_type(ctx, after_open)
            if ty is not None:
                after_close, close = punct(after_ty, ")")
                if close is not None:
                    return after_close, cls(kw.join(close), ty)
        rest, expr = parse_unary(ctx, rest)
        if expr is None:
            raise ParseError(kw, "missing operand for `sizeof`")
        return rest, cls(kw.join(expr.span), expr)


@dataclass(frozen=True)
class Parenthesized(Expr):
    span: Span
    inner: Expr
    desc = "parenthesized expression"

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span):
        rest, open_ = punct(span, "(")
        if open_ is None:
            return span, None
        rest, inner = parse_expr(ctx, rest)
        if inner is None:
            return span, None
        rest, close = punct(rest, ")")
        if close is None:
            return span, None
        return rest, cls(open_.join(close), inner)


@dataclass(frozen=True)
class UnaryOp(Expr):
    span: Span
    op: str
    operand: Expr
    desc = "unary expression"


@dataclass(frozen=True)
class BinaryOp(Expr):
    span: Span
    op: str
    lhs: Expr
    rhs: Expr
    desc = "binary expression"


# =============================================================================
# Expression parsing
# =============================================================================

_PRIMARY = (Cast, SizeOf, Parenthesized, FnCall, Ident, Literal)


def parse_primary(ctx: ParseContext, span: Span) -> tuple[Span, Optional[Expr]]:
    """First matching primary form wins."""
    for kind in _PRIMARY:
        rest, node = kind.try_parse(ctx, span)
        if node is not None:
            return rest, node
    return span, None


def parse_unary(ctx: ParseContext, span: Span) -> tuple[Span, Optional[Expr]]:
    rest, op = operator(span)
    if op is not None and op.text in UNARY_OPERATORS:
        after, operand = parse_unary(ctx, rest)
        if operand is None:
            return span, None
        return after, UnaryOp(op.join(operand.span), op.text, operand)
    return parse_primary(ctx, span)


def parse_expr(
    ctx: ParseContext,
    span: Span,
    min_prec: int = 1,
) -> tuple[Span, Optional[Expr]]:
    """
    Parse an expression by precedence climbing.

    An operator that is not followed by an operand ends the expression
    without consuming the operator.
    """
    rest, lhs = parse_unary(ctx, span)
    if lhs is None:
        return span, None
    while True:
        after_op, op = operator(rest)
        if op is None:
            break
        prec = BINARY_PRECEDENCE.get(op.text)
        if prec is None or prec < min_prec:
            break
        after_rhs, rhs = parse_expr(ctx, after_op, prec + 1)
        if rhs is None:
            break
        lhs = BinaryOp(lhs.span.join(rhs.span), op.text, lhs, rhs)
        rest = after_rhs
    return rest, lhs


def strip_parens(expr: Expr) -> Expr:
    while isinstance(expr, Parenthesized):
        expr = expr.inner
    return expr
