"""
C types and typedefs.

A type is parsed together with its declarator so that pointer, array and
function pointer forms (``void (SDLCALL *cb)(void *userdata)``) come out as
one CType tree.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional, Union

from ..errors import ParseError
from .attr import Attributes, AttrKind
from .base import Expr, ParseContext, Parser, expect_punct, keyword, punct, word
from .doc_comment import DocComment, combine
from .ident import Ident
from .primitive import PRIMITIVE_WORDS, PrimitiveType, classify_words
from .span import Span

if TYPE_CHECKING:
    from ..model.metadata import GroupKind
    from .decl import Enum as EnumDecl, StructOrUnion


# Calling convention macros
ABI_NAMES = frozenset({"SDLCALL", "__cdecl", "WINAPI", "APIENTRY", "__stdcall"})

# Accepted and dropped
IGNORED_QUALIFIERS = frozenset({"SDL_RESTRICT", "restrict", "__restrict", "volatile"})

TAG_KEYWORDS = ("struct", "union", "enum")


# =============================================================================
# Type variants
# =============================================================================

class CType:
    """Base for C type nodes. Every variant has ``span`` and ``is_const``."""

    span: Span
    is_const: bool

    def describe(self) -> str:
        """C spelling of the type, used for comparisons and metadata."""
        raise NotImplementedError

    def _const(self, text: str) -> str:
        return f"const {text}" if self.is_const else text

    @property
    def is_void(self) -> bool:
        return isinstance(self, PrimitiveTypeRef) and self.primitive is PrimitiveType.VOID

    @staticmethod
    def primitive(p: PrimitiveType, is_const: bool = False) -> "PrimitiveTypeRef":
        return PrimitiveTypeRef(Span.synthetic(), p, is_const)

    @staticmethod
    def named(name: str) -> "NamedType":
        return NamedType(Span.synthetic(), Ident.synthetic(name))


@dataclass(frozen=True)
class PrimitiveTypeRef(CType):
    span: Span
    primitive: PrimitiveType
    is_const: bool = False

    def describe(self) -> str:
        return self._const(self.primitive.value)


@dataclass(frozen=True)
class NamedType(CType):
    """A typedef name."""

    span: Span
    ident: Ident
    is_const: bool = False

    @property
    def name(self) -> str:
        return self.ident.name

    def describe(self) -> str:
        return self._const(self.name)


@dataclass(frozen=True)
class TaggedType(CType):
    """``struct X``, ``union X`` or ``enum X`` without a body."""

    span: Span
    tag: str
    ident: Ident
    is_const: bool = False

    @property
    def name(self) -> str:
        return self.ident.name

    def describe(self) -> str:
        return self._const(f"{self.tag} {self.name}")


@dataclass(frozen=True)
class PointerType(CType):
    """``is_const`` applies to the pointer itself (``T *const``)."""

    span: Span
    pointee: CType
    is_const: bool = False

    def describe(self) -> str:
        base = self.pointee.describe()
        text = f"{base}*" if base.endswith("*") else f"{base} *"
        return f"{text}const" if self.is_const else text


@dataclass(frozen=True)
class ArrayType(CType):
    span: Span
    element: CType
    length: Optional[Expr] = None
    is_const: bool = False

    def describe(self) -> str:
        length = self.length.span.text if self.length is not None else ""
        return f"{self.element.describe()}[{length}]"


@dataclass(frozen=True)
class FnPointerType(CType):
    span: Span
    abi: Optional[str]
    return_type: CType
    args: "FnArgs"
    is_const: bool = False

    def describe(self) -> str:
        return f"{self.return_type.describe()} (*)({self.args.describe()})"


@dataclass(frozen=True)
class InlineAggregate(CType):
    """A struct, union or enum defined in place (``struct { int x; } field``)."""

    span: Span
    decl: Union["StructOrUnion", "EnumDecl"]
    is_const: bool = False

    def describe(self) -> str:
        kind = getattr(self.decl, "kind", "enum")
        name = self.decl.ident.name if self.decl.ident is not None else ""
        return self._const(f"{kind} {name}".rstrip() + " {...}")


# =============================================================================
# Function arguments
# =============================================================================

@dataclass(frozen=True)
class FnArg(Parser):
    span: Span
    attrs: Attributes
    ty: CType
    ident: Optional[Ident] = None
    desc = "argument"

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span):
        rest, attrs = Attributes.try_parse(ctx, span, AttrKind.ARG)
        rest, typed = TypeWithIdent.try_parse(ctx, rest, IdentMode.OPTIONAL)
        if typed is None:
            return span, None
        start = span.skip_wsc()
        return rest, cls(start.until(rest).trim_wsc_end(), attrs, typed.ty, typed.ident)


@dataclass(frozen=True)
class FnArgs(Parser):
    """
    A parenthesised argument list.

    ``(void)`` and ``()`` are both empty. A trailing ``...`` sets
    ``variadic``.
    """

    span: Span
    args: tuple = ()
    variadic: bool = False
    desc = "argument list"

    def __len__(self) -> int:
        return len(self.args)

    def __iter__(self):
        return iter(self.args)

    def describe(self) -> str:
        parts = [arg.ty.describe() for arg in self.args]
        if self.variadic:
            parts.append("...")
        return ", ".join(parts) or "void"

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span):
        rest, open_ = punct(span, "(")
        if open_ is None:
            return span, None

        after, close = punct(rest, ")")
        if close is not None:
            return after, cls(open_.join(close))
        after_void, void = keyword(rest, "void")
        if void is not None:
            after, close = punct(after_void, ")")
            if close is not None:
                return after, cls(open_.join(close))

        args = []
        variadic = False
        while True:
            after, dots = punct(rest, "...")
            if dots is not None:
                variadic = True
                rest = after
                break
            rest, arg = FnArg.try_parse(ctx, rest)
            if arg is None:
                return span, None
            args.append(arg)
            after, comma = punct(rest, ",")
            if comma is None:
                break
            rest = after
        rest, close = punct(rest, ")")
        if close is None:
            return span, None
        return rest, cls(open_.join(close), tuple(args), variadic)


# =============================================================================
# Types with declarators
# =============================================================================

class IdentMode(Enum):
    """Whether a declarator identifier is forbidden, allowed or required."""

    NONE = 0
    OPTIONAL = 1
    REQUIRED = 2


def _skip_qualifiers(span: Span) -> tuple[Span, bool]:
    """Skip ``const`` and ignored qualifiers; returns whether const was seen."""
    is_const = False
    rest = span
    while True:
        after, w = word(rest)
        if w is None:
            break
        if w.text == "const":
            is_const = True
        elif w.text not in IGNORED_QUALIFIERS:
            break
        rest = after
    return rest, is_const


def _parse_base_type(ctx: ParseContext, span: Span) -> tuple[Span, Optional[CType]]:
    """Match the type specifier part (before any ``*`` or declarator)."""
    start = span.skip_wsc()
    rest, is_const = _skip_qualifiers(span)

    words = []
    while True:
        after, w = word(rest)
        if w is None or w.text not in PRIMITIVE_WORDS:
            break
        if classify_words(words + [w.text]) is None:
            break
        words.append(w.text)
        rest = after
    if words:
        rest, trailing_const = _skip_qualifiers(rest)
        ty = PrimitiveTypeRef(start.until(rest).trim_wsc_end(), classify_words(words), is_const or trailing_const)
        return rest, ty

    after, w = word(rest)
    if w is None:
        return span, None

    if w.text in TAG_KEYWORDS:
        from .decl import Enum as EnumDecl, StructOrUnion

        parser = EnumDecl if w.text == "enum" else StructOrUnion
        after_decl, decl = parser.try_parse(ctx, rest)
        if decl is not None and decl.has_body:
            rest, trailing_const = _skip_qualifiers(after_decl)
            return rest, InlineAggregate(start.until(after_decl), decl, is_const or trailing_const)
        after_ident, ident = Ident.try_parse(ctx, after)
        if ident is None:
            raise ParseError(after.skip_wsc().peek(), f"expected name after `{w.text}`")
        rest, trailing_const = _skip_qualifiers(after_ident)
        return rest, TaggedType(start.until(after_ident), w.text, ident, is_const or trailing_const)

    rest, ident = Ident.try_parse(ctx, rest)
    if ident is None or ident.name in ABI_NAMES or ident.name in IGNORED_QUALIFIERS:
        return span, None
    after_ident = rest
    rest, trailing_const = _skip_qualifiers(rest)
    return rest, NamedType(start.until(after_ident), ident, is_const or trailing_const)


def _parse_abi(span: Span) -> tuple[Span, Optional[str]]:
    rest, w = word(span)
    if w is None or w.text not in ABI_NAMES:
        return span, None
    return rest, w.text


@dataclass(frozen=True)
class TypeWithIdent(Parser):
    """A type and the identifier declared with it (if any)."""

    span: Span
    ty: CType
    ident: Optional[Ident] = None
    desc = "type"

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span, mode: IdentMode = IdentMode.OPTIONAL):
        start = span.skip_wsc()
        rest, ty = _parse_base_type(ctx, span)
        if ty is None:
            return span, None

        # pointers
        while True:
            after, star = punct(rest, "*")
            if star is None:
                break
            after, is_const = _skip_qualifiers(after)
            rest = after
            ty = PointerType(start.until(rest).trim_wsc_end(), ty, is_const)

        # function pointer declarator: `(ABI *name)(args)`
        fn_abi = None
        fn_args = None
        ident = None
        after_open, open_ = punct(rest, "(")
        if open_ is not None:
            after, abi = _parse_abi(after_open)
            after, star = punct(after, "*")
            if star is None:
                if mode is IdentMode.NONE:
                    return rest, cls(start.until(rest).trim_wsc_end(), ty)
                return span, None
            after, _ = _skip_qualifiers(after)
            if mode is not IdentMode.NONE:
                after_ident, ident = Ident.try_parse(ctx, after)
                if ident is None and mode is IdentMode.REQUIRED:
                    raise ParseError(after.skip_wsc().peek(), "expected identifier")
                if ident is not None:
                    after = after_ident
            after, _ = expect_punct(after, ")")
            after, fn_args = FnArgs.try_parse(ctx, after)
            if fn_args is None:
                raise ParseError(after.skip_wsc().peek(), "expected argument list")
            rest = after
            fn_abi = abi
        elif mode is not IdentMode.NONE:
            after, ident = Ident.try_parse(ctx, rest)
            if ident is not None and ident.name not in ABI_NAMES:
                rest = after
            elif mode is IdentMode.REQUIRED:
                return span, None
            else:
                ident = None

        # array suffixes, outermost first
        if ident is not None:
            lengths = []
            while True:
                after, bracket = punct(rest, "[")
                if bracket is None:
                    break
                after, length = Expr.try_parse(ctx, after)
                rest, _ = expect_punct(after, "]")
                lengths.append(length)
            for length in reversed(lengths):
                ty = ArrayType(start.until(rest).trim_wsc_end(), ty, length)

        if fn_args is not None:
            ty = FnPointerType(start.until(rest).trim_wsc_end(), fn_abi, ty, fn_args)

        return rest, cls(start.until(rest).trim_wsc_end(), ty, ident)

    @classmethod
    def try_parse_type(cls, ctx: ParseContext, span: Span) -> tuple[Span, Optional[CType]]:
        """Match a type with no declarator identifier (casts, ``sizeof``)."""
        rest, typed = cls.try_parse(ctx, span, IdentMode.NONE)
        if typed is None:
            return span, None
        return rest, typed.ty


# =============================================================================
# Typedefs
# =============================================================================

@dataclass
class TypeDef(Parser):
    """
    ``typedef T name;``

    ``group_kind`` and ``define_filter`` are set by patches (or by the
    ``...Flags`` naming rule) and make the following ``#define`` lines the
    values of a group; those defines are collected in ``associated``.
    """

    span: Span
    module: str
    doc: Optional[DocComment]
    ident: Ident
    ty: CType
    group_kind: Optional["GroupKind"] = None
    define_filter: Optional[Callable[[str], bool]] = None
    associated: list[Any] = field(default_factory=list)
    desc = "typedef"

    @property
    def name(self) -> str:
        return self.ident.name

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span):
        from .patch import patch_enum, patch_typedef

        rest, doc = DocComment.try_parse(ctx, span)
        rest, kw = keyword(rest, "typedef")
        if kw is None:
            return span, None
        rest, typed = TypeWithIdent.try_parse(ctx, rest, IdentMode.REQUIRED)
        if typed is None:
            raise ParseError(rest.skip_wsc().peek(), "expected type and name after `typedef`")
        rest, semi = expect_punct(rest, ";")
        rest, postfix = DocComment.try_parse_postfix(ctx, rest)

        td = cls(kw.join(semi), ctx.module, combine(doc, postfix), typed.ident, typed.ty)
        if isinstance(td.ty, InlineAggregate) and td.ty.decl.ident is None:
            from .decl import Enum as EnumDecl

            if isinstance(td.ty.decl, EnumDecl):
                patch_enum(ctx, td.ty.decl, td.name)
        patch_typedef(ctx, td)
        return rest, td
