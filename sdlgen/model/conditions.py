"""
Conditional compilation.

Conditions on platform symbols are translated to Rust ``cfg`` predicates.
Branches whose condition can't be translated are resolved statically.
"""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from ..parser.expr import BinaryOp, FnCall, UnaryOp, strip_parens
from ..parser.ident import Ident
from ..parser.preproc import Conditional, Define, PreProcBlock, Skipped

logger = logging.getLogger("sdlgen.model")


PLATFORM_CFG = {
    "SDL_PLATFORM_WINDOWS": "windows",
    "_WIN32": "windows",
    "SDL_PLATFORM_APPLE": 'target_vendor = "apple"',
    "__APPLE__": 'target_vendor = "apple"',
    "SDL_PLATFORM_LINUX": 'target_os = "linux"',
    "SDL_PLATFORM_ANDROID": 'target_os = "android"',
    "SDL_PLATFORM_IOS": 'target_os = "ios"',
    "SDL_PLATFORM_MACOS": 'target_os = "macos"',
    "SDL_PLATFORM_EMSCRIPTEN": 'target_os = "emscripten"',
    "SDL_PLATFORM_UNIX": "unix",
}


def _expr_to_cfg(expr) -> Optional[str]:
    expr = strip_parens(expr)
    if isinstance(expr, FnCall) and expr.ident.name == "defined" and len(expr.args) == 1:
        arg = strip_parens(expr.args.args[0])
        if isinstance(arg, Ident):
            return PLATFORM_CFG.get(arg.name)
        return None
    if isinstance(expr, Ident):
        return PLATFORM_CFG.get(expr.name)
    if isinstance(expr, UnaryOp) and expr.op == "!":
        inner = _expr_to_cfg(expr.operand)
        return f"not({inner})" if inner is not None else None
    if isinstance(expr, BinaryOp) and expr.op in ("&&", "||"):
        lhs = _expr_to_cfg(expr.lhs)
        rhs = _expr_to_cfg(expr.rhs)
        if lhs is None or rhs is None:
            return None
        return f"{'all' if expr.op == '&&' else 'any'}({lhs}, {rhs})"
    return None


def condition_to_cfg(cond: Conditional) -> Optional[str]:
    """``cfg`` predicate for a branch condition, or None if untranslatable."""
    if cond.kind in ("ifdef", "ifndef"):
        cfg = PLATFORM_CFG.get(cond.ident.name)
        if cfg is None:
            return None
        return cfg if cond.kind == "ifdef" else f"not({cfg})"
    if cond.expr is None:
        return None
    return _expr_to_cfg(cond.expr)


def _defines_own_guard(cond: Conditional, items: list) -> bool:
    """``#ifndef X`` followed by ``#define X`` provides a default."""
    if cond.kind != "ifndef":
        return False
    return any(isinstance(item, Define) and item.name == cond.ident.name for item in items)


def render_cfg(cfg: tuple) -> Optional[str]:
    if not cfg:
        return None
    if len(cfg) == 1:
        return cfg[0]
    return f"all({', '.join(cfg)})"


def walk_items(items: list, cfg: tuple = ()) -> Iterator[tuple[object, tuple]]:
    """
    Yield ``(item, cfg)`` for every item that survives conditional
    compilation, in source order.

    ``cfg`` holds the predicates of the enclosing branches.
    """
    for item in items:
        if isinstance(item, PreProcBlock):
            yield from _walk_block(item, cfg)
        elif isinstance(item, Skipped):
            continue
        else:
            yield item, cfg


def _walk_block(block: PreProcBlock, cfg: tuple) -> Iterator[tuple[object, tuple]]:
    previous: list[str] = []
    branch: Optional[PreProcBlock] = block
    while branch is not None:
        negated = tuple(f"not({c})" for c in previous)
        if branch.cond is None:
            yield from walk_items(branch.items, cfg + negated)
            return
        translated = condition_to_cfg(branch.cond)
        if translated is not None:
            yield from walk_items(branch.items, cfg + negated + (translated,))
            previous.append(translated)
        elif _defines_own_guard(branch.cond, branch.items):
            yield from walk_items(branch.items, cfg + negated)
            return
        else:
            logger.debug(f"Dropping branch `#{branch.cond.kind} {branch.cond.text}`")
        branch = branch.else_block
