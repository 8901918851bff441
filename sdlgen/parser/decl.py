"""
Declarations: enums, structs and unions, functions and variables.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..errors import ParseError
from .attr import Attributes, AttrKind
from .base import Expr, ParseContext, Parser, balanced, expect_punct, keyword, punct, word
from .doc_comment import DocComment, combine
from .ident import Ident
from .primitive import PrimitiveType
from .span import Span
from .types import ABI_NAMES, CType, FnArgs, IdentMode, TypeWithIdent


# =============================================================================
# Enums
# =============================================================================

@dataclass(frozen=True)
class EnumVariant:
    span: Span
    doc: Optional[DocComment]
    ident: Ident
    value: Optional[Expr] = None

    @property
    def name(self) -> str:
        return self.ident.name


@dataclass
class Enum(Parser):
    """
    ``enum [name] { A [= expr], ... }``

    ``base_type`` and ``hidden`` are adjusted by patches.
    """

    span: Span
    module: str
    doc: Optional[DocComment]
    ident: Optional[Ident]
    variants: list[EnumVariant]
    base_type: CType = field(default_factory=lambda: CType.primitive(PrimitiveType.INT))
    hidden: bool = False
    desc = "enum"

    @property
    def has_body(self) -> bool:
        return True

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span):
        from .patch import patch_enum

        rest, doc = DocComment.try_parse(ctx, span)
        rest, kw = keyword(rest, "enum")
        if kw is None:
            return span, None
        rest, ident = Ident.try_parse(ctx, rest)
        rest, open_ = punct(rest, "{")
        if open_ is None:
            return span, None

        variants = []
        while True:
            rest, vdoc = DocComment.try_parse(ctx, rest)
            after, close = punct(rest, "}")
            if close is not None:
                rest = after
                break
            rest, vident = Ident.parse(ctx, rest)
            value = None
            after, eq = punct(rest, "=")
            if eq is not None:
                rest, value = Expr.parse(ctx, after)
            rest, comma = punct(rest, ",")
            rest, postfix = DocComment.try_parse_postfix(ctx, rest)
            end = value.span if value is not None else vident.span
            variants.append(EnumVariant(vident.span.join(end), combine(vdoc, postfix), vident, value))
            if comma is None:
                rest, close = expect_punct(rest, "}")
                break

        e = cls(kw.join(close), ctx.module, doc, ident, variants)
        if ident is not None:
            patch_enum(ctx, e, ident.name)
        return rest, e


# =============================================================================
# Structs and unions
# =============================================================================

@dataclass(frozen=True)
class StructField:
    span: Span
    doc: Optional[DocComment]
    ident: Ident
    ty: CType

    @property
    def name(self) -> str:
        return self.ident.name


@dataclass
class StructOrUnion(Parser):
    """
    ``struct|union [name] [{ fields }]``.

    ``fields`` is None for a forward declaration.
    """

    span: Span
    module: str
    doc: Optional[DocComment]
    kind: str
    ident: Optional[Ident]
    fields: Optional[list[StructField]] = None
    desc = "struct or union"

    @property
    def has_body(self) -> bool:
        return self.fields is not None

    @property
    def name(self) -> Optional[str]:
        return self.ident.name if self.ident is not None else None

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span):
        rest, doc = DocComment.try_parse(ctx, span)
        rest, kw = word(rest)
        if kw is None or kw.text not in ("struct", "union"):
            return span, None
        rest, ident = Ident.try_parse(ctx, rest)
        after, open_ = punct(rest, "{")
        if open_ is None:
            if ident is None:
                return span, None
            return rest, cls(kw.join(ident.span), ctx.module, doc, kw.text, ident)

        rest = after
        fields: list[StructField] = []
        while True:
            rest, fdoc = DocComment.try_parse(ctx, rest)
            after, close = punct(rest, "}")
            if close is not None:
                rest = after
                break
            rest, group = cls._parse_field_group(ctx, rest, fdoc)
            fields.extend(group)
        return rest, cls(kw.join(close), ctx.module, doc, kw.text, ident, fields)

    @staticmethod
    def _parse_field_group(ctx: ParseContext, span: Span, doc: Optional[DocComment]):
        """``T a, b[4];`` followed by an optional postfix doc."""
        rest, typed = TypeWithIdent.try_parse(ctx, span, IdentMode.REQUIRED)
        if typed is None:
            raise ParseError(span.skip_wsc().peek(), "expected field")
        declared = [(typed.span, typed.ident, typed.ty)]
        while True:
            after, comma = punct(rest, ",")
            if comma is None:
                break
            rest, ident = Ident.parse(ctx, after)
            declared.append((ident.span, ident, typed.ty))
        rest, _ = expect_punct(rest, ";")
        rest, postfix = DocComment.try_parse_postfix(ctx, rest)
        doc = combine(doc, postfix)
        return rest, [StructField(sp, doc, ident, ty) for sp, ident, ty in declared]


# =============================================================================
# Functions and variables
# =============================================================================

@dataclass
class Function(Parser):
    """A function prototype, or an inline function with its body."""

    span: Span
    module: str
    doc: Optional[DocComment]
    attrs: Attributes
    return_type: CType
    abi: Optional[str]
    ident: Ident
    args: FnArgs
    body: Optional[Span] = None
    desc = "function"

    @property
    def name(self) -> str:
        return self.ident.name

    @property
    def is_inline(self) -> bool:
        return self.body is not None or any(
            self.attrs.contains(name) for name in ("SDL_FORCE_INLINE", "inline", "__inline", "__inline__")
        )

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span):
        rest, doc = DocComment.try_parse(ctx, span)
        start = rest.skip_wsc()
        rest, _ = keyword(rest, "extern")
        rest, attrs = Attributes.try_parse(ctx, rest, AttrKind.FN)
        rest, ret = TypeWithIdent.try_parse_type(ctx, rest)
        if ret is None:
            return span, None
        abi = None
        after, w = word(rest)
        if w is not None and w.text in ABI_NAMES:
            abi, rest = w.text, after
        rest, ident = Ident.try_parse(ctx, rest)
        if ident is None:
            return span, None
        rest, args = FnArgs.try_parse(ctx, rest)
        if args is None:
            return span, None
        rest, post_attrs = Attributes.try_parse(ctx, rest, AttrKind.FN)
        attrs = Attributes(tuple(attrs) + tuple(post_attrs))

        after, semi = punct(rest, ";")
        if semi is not None:
            return after, cls(start.until(after), ctx.module, doc, attrs, ret, abi, ident, args)
        after, body = balanced(rest, "{", "}")
        if body is None:
            return span, None
        return after, cls(start.until(after), ctx.module, doc, attrs, ret, abi, ident, args, body)


@dataclass(frozen=True)
class VarDecl(Parser):
    """``[extern] T name [= expr];``"""

    span: Span
    module: str
    doc: Optional[DocComment]
    ident: Ident
    ty: CType
    init: Optional[Expr] = None
    desc = "variable declaration"

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span):
        rest, doc = DocComment.try_parse(ctx, span)
        start = rest.skip_wsc()
        rest, _ = keyword(rest, "extern")
        rest, _ = Attributes.try_parse(ctx, rest, AttrKind.FN)
        rest, typed = TypeWithIdent.try_parse(ctx, rest, IdentMode.REQUIRED)
        if typed is None:
            return span, None
        init = None
        after, eq = punct(rest, "=")
        if eq is not None:
            rest, init = Expr.parse(ctx, after)
            rest, _ = expect_punct(rest, ";")
        else:
            rest, semi = punct(rest, ";")
            if semi is None:
                return span, None
        return rest, cls(start.until(rest), ctx.module, doc, typed.ident, typed.ty, init)
