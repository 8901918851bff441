"""
Top-level items of a header.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..errors import ParseError
from .base import Expr, ParseContext, balanced, expect_punct, punct
from .decl import Enum, Function, StructOrUnion, VarDecl
from .doc_comment import DocComment
from .expr import FnCall
from .preproc import PreProcBlock, parse_preproc, peek_directive, read_logical_line
from .span import Span
from .types import TypeDef

_BRANCH_DIRECTIVES = frozenset({"elif", "elifdef", "elifndef", "else", "endif"})


@dataclass(frozen=True)
class Block:
    """A braced block at file level, kept unparsed."""

    span: Span


@dataclass(frozen=True)
class ExprStmt:
    span: Span
    expr: Expr


@dataclass(frozen=True)
class MacroCall:
    """A macro invocation used as a statement, e.g. ``SDL_COMPILE_TIME_ASSERT(...)``."""

    span: Span
    call: FnCall


@dataclass(frozen=True)
class FileDoc:
    """A doc comment not attached to a declaration."""

    doc: DocComment

    @property
    def span(self) -> Span:
        return self.doc.span


def _terminated(parser, ctx: ParseContext, span: Span):
    rest, node = parser.try_parse(ctx, span)
    if node is None:
        return span, None
    rest, semi = punct(rest, ";")
    if semi is None:
        return span, None
    return rest, node


def parse_item(ctx: ParseContext, span: Span):
    """Match one item; alternatives are tried in a fixed order."""
    s = span.skip_wsc()

    rest, body = balanced(s, "{", "}")
    if body is not None:
        return rest, Block(s.until(rest))

    rest, node = parse_preproc(ctx, s)
    if node is not None:
        return rest, node

    rest, node = Function.try_parse(ctx, s)
    if node is not None:
        return rest, node

    rest, node = TypeDef.try_parse(ctx, s)
    if node is not None:
        return rest, node

    rest, node = Enum.try_parse(ctx, s)
    if node is not None:
        rest, _ = expect_punct(rest, ";")
        return rest, node

    rest, node = _terminated(StructOrUnion, ctx, s)
    if node is not None:
        if node.ident is None:
            raise ParseError(node.span, f"top level anonymous {node.kind}")
        return rest, node

    rest, node = VarDecl.try_parse(ctx, s)
    if node is not None:
        return rest, node

    rest, node = _terminated(Expr, ctx, s)
    if node is not None:
        return rest, ExprStmt(s.until(rest), node)

    rest, node = FnCall.try_parse(ctx, s)
    if node is not None:
        return rest, MacroCall(node.span, node)

    rest, doc = DocComment.try_parse_detached(ctx, s)
    if doc is None:
        # an attached doc whose declaration isn't one we know
        rest, doc = DocComment.try_parse(ctx, s)
    if doc is not None:
        return rest, FileDoc(doc)

    return span, None


def parse_items(ctx: ParseContext, span: Span, nested: bool = False) -> tuple[Span, list]:
    """
    Parse items until the end of input.

    With ``nested`` the items belong to a conditional branch and parsing
    stops at its ``#elif``/``#else``/``#endif``.

    Raises:
        ParseError: On input that matches no item
    """
    items: list = []
    rest = span
    while True:
        s = rest.skip_wsc()
        if s.is_empty():
            return s, items
        directive = peek_directive(s)
        if directive in _BRANCH_DIRECTIVES:
            if nested:
                return s, items
            _, line = read_logical_line(s)
            raise ParseError(line, f"`#{directive}` without `#if`")
        rest, item = parse_item(ctx, s)
        if item is None:
            _, line = read_logical_line(s)
            raise ParseError(line, "expected item")
        items.append(item)


def iter_items(items: list, with_blocks: bool = False):
    """Depth-first walk over items, descending into conditional branches."""
    for item in items:
        if isinstance(item, PreProcBlock):
            if with_blocks:
                yield item
            block: Optional[PreProcBlock] = item
            while block is not None:
                yield from iter_items(block.items, with_blocks)
                block = block.else_block
        else:
            yield item
