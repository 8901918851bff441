"""
Attribute macros.

SDL decorates declarations with macros such as ``SDL_DECLSPEC`` or
``SDL_PRINTF_FORMAT_STRING``. Only whitelisted names are attributes; any
other identifier is left for the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..errors import ParseError
from .base import ParseContext, Parser, balanced, word
from .expr import CallArgs
from .ident import Ident
from .span import Span


class AttrKind(Enum):
    """Where an attribute may appear."""

    ARG = "argument"
    FN = "function"


# name -> takes call arguments
ARG_ATTRIBUTES = {
    "SDL_PRINTF_FORMAT_STRING": False,
    "SDL_SCANF_FORMAT_STRING": False,
    "SDL_WPRINTF_FORMAT_STRING": False,
    "SDL_UNUSED": False,
    "SDL_IN_BYTECAP": True,
    "SDL_OUT_BYTECAP": True,
    "SDL_INOUT_Z_CAP": True,
    "SDL_OUT_Z_CAP": True,
    "SDL_OUT_CAP": True,
}

FN_ATTRIBUTES = {
    "SDL_DECLSPEC": False,
    "SDL_DEPRECATED": False,
    "SDL_FORCE_INLINE": False,
    "SDL_MALLOC": False,
    "SDL_ANALYZER_NORETURN": False,
    "SDL_NORETURN": False,
    "SDLMAIN_DECLSPEC": False,
    "__inline": False,
    "__inline__": False,
    "inline": False,
    "static": False,
    "SDL_ACQUIRE": True,
    "SDL_ACQUIRE_SHARED": True,
    "SDL_ALLOC_SIZE": True,
    "SDL_ALLOC_SIZE2": True,
    "SDL_PRINTF_VARARG_FUNC": True,
    "SDL_PRINTF_VARARG_FUNCV": True,
    "SDL_RELEASE": True,
    "SDL_RELEASE_SHARED": True,
    "SDL_RELEASE_GENERIC": True,
    "SDL_SCANF_VARARG_FUNC": True,
    "SDL_SCANF_VARARG_FUNCV": True,
    "SDL_TRY_ACQUIRE": True,
    "SDL_TRY_ACQUIRE_SHARED": True,
    "SDL_WPRINTF_VARARG_FUNC": True,
    "SDL_WPRINTF_VARARG_FUNCV": True,
    "SDL_REQUIRES": True,
    "SDL_REQUIRES_SHARED": True,
    "SDL_EXCLUDES": True,
    "SDL_ASSERT_CAPABILITY": True,
    "SDL_RETURN_CAPABILITY": True,
    "SDL_CAPABILITY": True,
    "__attribute__": True,
}

WHITELISTS = {
    AttrKind.ARG: ARG_ATTRIBUTES,
    AttrKind.FN: FN_ATTRIBUTES,
}

@dataclass(frozen=True)
class Attribute(Parser):
    """
    A whitelisted attribute macro.

    ``args`` is empty for attributes that take none. ``__attribute__((...))``
    keeps its raw contents in ``raw`` since GNU attribute syntax is not an
    expression list.
    """

    span: Span
    kind: AttrKind
    ident: Ident
    args: CallArgs
    raw: Optional[Span] = None
    desc = "attribute"

    @property
    def name(self) -> str:
        return self.ident.name

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span, kind: AttrKind = AttrKind.FN):
        rest, w = word(span)
        if w is None:
            return span, None
        whitelist = WHITELISTS[kind]
        takes_args = whitelist.get(w.text)
        if takes_args is None:
            return span, None
        ident = Ident(w)
        if not takes_args:
            return rest, cls(w, kind, ident, CallArgs.empty(w))

        if ident.name == "__attribute__":
            after, inner = balanced(rest, "(", ")")
            if inner is None:
                raise ParseError(w, "expected `((` after `__attribute__`")
            return after, cls(w.join(after.start_span()), kind, ident, CallArgs.empty(w), inner)

        after, args = CallArgs.try_parse(ctx, rest)
        if args is None:
            raise ParseError(w, f"expected arguments for `{ident.name}`")
        return after, cls(w.join(args.span), kind, ident, args)


class Attributes(tuple):
    """A run of attributes at one position."""

    def contains(self, name: str) -> bool:
        return any(attr.name == name for attr in self)

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span, kind: AttrKind = AttrKind.FN):
        """Collect attributes until the next non-attribute. Always matches."""
        attrs = []
        rest = span
        while True:
            rest, attr = Attribute.try_parse(ctx, rest, kind)
            if attr is None:
                break
            attrs.append(attr)
        return rest, cls(attrs)
