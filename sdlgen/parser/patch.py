"""
Declaration patches.

A few SDL declarations can't be translated from the header text alone: a
constant needs an explicit type, an enum has a wider base type, a typedef is
really a group of flags. Each table is scanned in order and the first rule
matching ``(module, name)`` is applied in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from ..model.metadata import GroupKind
from .base import ParseContext
from .primitive import PrimitiveType
from .types import CType

logger = logging.getLogger("sdlgen.parser")


class PatchResult(Enum):
    PATCHED = "patched"
    UNPATCHED = "unpatched"


@dataclass(frozen=True)
class PatchRule:
    """Applies ``apply`` to declarations named so that ``matches`` holds.

    ``module`` None matches any module.
    """

    module: Optional[str]
    matches: Callable[[str], bool]
    apply: Callable[[Any], None]


# =============================================================================
# Rule helpers
# =============================================================================

def _named(*names: str) -> Callable[[str], bool]:
    wanted = frozenset(names)
    return lambda name: name in wanted


def _prefixed(prefix: str, suffix: str = "") -> Callable[[str], bool]:
    return lambda name: name.startswith(prefix) and name.endswith(suffix)


def _never(name: str) -> bool:
    return False


def _cast(primitive: PrimitiveType) -> Callable[[Any], None]:
    def apply(define):
        define.cast_value(CType.primitive(primitive))
    return apply


def _macro(*arg_types: CType, cast: Optional[CType] = None) -> Callable[[Any], None]:
    def apply(define):
        define.set_arg_types(*arg_types)
        if cast is not None:
            define.cast_value(cast)
    return apply


def _base_type(primitive: PrimitiveType) -> Callable[[Any], None]:
    def apply(enum):
        enum.base_type = CType.primitive(primitive)
    return apply


def _hide(enum) -> None:
    enum.hidden = True


def _group(kind: GroupKind, define_filter: Optional[Callable[[str], bool]] = None) -> Callable[[Any], None]:
    def apply(typedef):
        typedef.group_kind = kind
        if define_filter is not None:
            typedef.define_filter = define_filter
    return apply


# =============================================================================
# Rule tables
# =============================================================================

_P = PrimitiveType

DEFINE_PATCHES = (
    PatchRule("joystick", _prefixed("SDL_HAT_"), _cast(_P.UINT8_T)),
    PatchRule("joystick", _named("SDL_JOYSTICK_AXIS_MAX", "SDL_JOYSTICK_AXIS_MIN"), _cast(_P.INT16_T)),
    PatchRule(
        "haptic",
        _named("SDL_HAPTIC_CARTESIAN", "SDL_HAPTIC_POLAR", "SDL_HAPTIC_SPHERICAL", "SDL_HAPTIC_STEERING_AXIS"),
        _cast(_P.UINT8_T),
    ),
    PatchRule("haptic", _named("SDL_HAPTIC_INFINITY"), _cast(_P.UINT32_T)),
    PatchRule("pixels", _named("SDL_ALPHA_OPAQUE", "SDL_ALPHA_TRANSPARENT"), _cast(_P.UINT8_T)),
    PatchRule("render", _prefixed("SDL_RENDERER_VSYNC_"), _cast(_P.INT)),
    PatchRule("system", _prefixed("SDL_ANDROID_EXTERNAL_STORAGE_"), _cast(_P.UINT32_T)),
    PatchRule(
        "mouse",
        _named("SDL_BUTTON_LEFT", "SDL_BUTTON_MIDDLE", "SDL_BUTTON_RIGHT", "SDL_BUTTON_X1", "SDL_BUTTON_X2"),
        _cast(_P.INT),
    ),
    PatchRule("mouse", _named("SDL_BUTTON_MASK"), _macro(CType.primitive(_P.INT), cast=CType.named("SDL_MouseButtonFlags"))),
    PatchRule(
        "video",
        _named("SDL_WINDOWPOS_CENTERED_DISPLAY", "SDL_WINDOWPOS_UNDEFINED_DISPLAY"),
        _macro(CType.named("SDL_DisplayID"), cast=CType.primitive(_P.INT)),
    ),
)

ENUM_PATCHES = (
    PatchRule("audio", _named("SDL_AudioFormat"), _base_type(_P.UNSIGNED_INT)),
    PatchRule("events", _named("SDL_EventType"), _base_type(_P.UINT32_T)),
    PatchRule("pixels", _named("SDL_Colorspace"), _base_type(_P.UINT32_T)),
    PatchRule("pixels", _named("SDL_PixelFormat"), _base_type(_P.UINT32_T)),
    PatchRule("stdinc", _named("SDL_DUMMY_ENUM"), _hide),
)

TYPEDEF_PATCHES = (
    PatchRule("atomic", _named("SDL_SpinLock"), _group(GroupKind.LOCK, _never)),
    PatchRule("blendmode", _named("SDL_BlendMode"), _group(GroupKind.FLAGS, _prefixed("SDL_BLENDMODE_"))),
    PatchRule("gpu", _named("SDL_GPUShaderFormat"), _group(GroupKind.FLAGS, _prefixed("SDL_GPU_SHADERFORMAT_"))),
    PatchRule("haptic", _named("SDL_HapticDirectionType"), _group(GroupKind.ENUM, _prefixed("SDL_HAPTIC_"))),
    PatchRule("haptic", _named("SDL_HapticEffectType"), _group(GroupKind.FLAGS, _prefixed("SDL_HAPTIC_"))),
    PatchRule("keycode", _named("SDL_Keymod"), _group(GroupKind.FLAGS, _prefixed("SDL_KMOD_"))),
    PatchRule("keycode", _named("SDL_Keycode"), _group(GroupKind.ID, _prefixed("SDLK_"))),
    PatchRule("mouse", _named("SDL_MouseButtonFlags"), _group(GroupKind.FLAGS, _prefixed("SDL_BUTTON_", "MASK"))),
    PatchRule("pen", _named("SDL_PenID"), _group(GroupKind.ID, _never)),
    PatchRule("sensor", _named("SDL_SensorID"), _group(GroupKind.ID, _never)),
    PatchRule("video", _named("SDL_WindowID"), _group(GroupKind.ID, _never)),
    PatchRule("video", _named("SDL_WindowFlags"), _group(GroupKind.FLAGS, _prefixed("SDL_WINDOW_"))),
    PatchRule("init", _named("SDL_InitFlags"), _group(GroupKind.FLAGS)),
)


# =============================================================================
# Application
# =============================================================================

def apply_patches(rules: tuple, module: str, name: str, node: Any) -> PatchResult:
    """Apply the first rule in ``rules`` that matches. No match is not an error."""
    for rule in rules:
        if rule.module is not None and rule.module != module:
            continue
        if rule.matches(name):
            rule.apply(node)
            logger.debug(f"{module}: patched `{name}`")
            return PatchResult.PATCHED
    return PatchResult.UNPATCHED


def patch_define(ctx: ParseContext, define) -> PatchResult:
    return apply_patches(DEFINE_PATCHES, ctx.module, define.name, define)


def patch_enum(ctx: ParseContext, enum, name: str) -> PatchResult:
    """``name`` is the enum tag, or the typedef name for ``typedef enum {...} X``."""
    return apply_patches(ENUM_PATCHES, ctx.module, name, enum)


def patch_typedef(ctx: ParseContext, typedef) -> PatchResult:
    return apply_patches(TYPEDEF_PATCHES, ctx.module, typedef.name, typedef)
