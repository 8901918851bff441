"""
Pytest configuration and shared fixtures for sdlgen tests.
"""

import pytest
from pathlib import Path
import sys

# Add project root to path for imports
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from sdlgen.config import GeneratorConfig, PathsConfig
from sdlgen.parser.base import ParseContext
from sdlgen.parser.span import Span


# =============================================================================
# Sample headers
# =============================================================================

STDINC_H = """\
/*
  Simple DirectMedia Layer
  Copyright (C) 1997-2025 Sam Lantinga <slouken@libsdl.org>
*/

#ifndef SDL_stdinc_h_
#define SDL_stdinc_h_

/**
 * # CategoryStdinc
 *
 * SDL provides its own implementation of some of the most important C runtime
 * functions.
 */

#include <stdint.h>

/**
 * An unsigned 8-bit integer type.
 *
 * \\since This macro is available since SDL 3.2.0.
 */
typedef uint8_t Uint8;
typedef int16_t Sint16;
typedef uint32_t Uint32;

#define SDL_MAX_UINT8   ((Uint8)0xFF)

#endif /* SDL_stdinc_h_ */
"""

POWER_H = """\
/*
  Simple DirectMedia Layer
  Copyright (C) 1997-2025 Sam Lantinga <slouken@libsdl.org>
*/

#ifndef SDL_power_h_
#define SDL_power_h_

/**
 * # CategoryPower
 *
 * SDL power management routines.
 */

#include <SDL3/SDL_stdinc.h>
#include <SDL3/SDL_error.h>

#include <SDL3/SDL_begin_code.h>
/* Set up for C function definitions, even when using C++ */
#ifdef __cplusplus
extern "C" {
#endif

/**
 * The basic state for the system's power supply.
 *
 * These are results returned by SDL_GetPowerInfo().
 *
 * \\since This enum is available since SDL 3.2.0.
 */
typedef enum SDL_PowerState
{
    SDL_POWERSTATE_ERROR = -1,   /**< error determining power status */
    SDL_POWERSTATE_UNKNOWN,      /**< cannot determine power status */
    SDL_POWERSTATE_ON_BATTERY,   /**< Not plugged in, running on the battery */
    SDL_POWERSTATE_NO_BATTERY,   /**< Plugged in, no battery available */
    SDL_POWERSTATE_CHARGING,     /**< Plugged in, charging battery */
    SDL_POWERSTATE_CHARGED       /**< Plugged in, battery charged */
} SDL_PowerState;

/**
 * Get the current power supply details.
 *
 * \\param seconds a pointer filled in with the seconds of battery life left.
 * \\param percent a pointer filled in with the percentage of battery life left.
 * \\returns the current battery state or `SDL_POWERSTATE_ERROR` on failure.
 *
 * \\since This function is available since SDL 3.2.0.
 */
extern SDL_DECLSPEC SDL_PowerState SDLCALL SDL_GetPowerInfo(int *seconds, int *percent);

/* Ends C function definitions when using C++ */
#ifdef __cplusplus
}
#endif
#include <SDL3/SDL_close_code.h>

#endif /* SDL_power_h_ */
"""

JOYSTICK_H = """\
#ifndef SDL_joystick_h_
#define SDL_joystick_h_

#include <SDL3/SDL_stdinc.h>

#define SDL_HAT_CENTERED    0x00
#define SDL_HAT_UP          0x01
#define SDL_HAT_RIGHT       0x02
#define SDL_HAT_RIGHTUP     (SDL_HAT_RIGHT|SDL_HAT_UP)

#define SDL_JOYSTICK_AXIS_MAX   32767

#endif /* SDL_joystick_h_ */
"""

INIT_H = """\
#ifndef SDL_init_h_
#define SDL_init_h_

#include <SDL3/SDL_stdinc.h>

/**
 * Initialization flags for SDL_Init and/or SDL_InitSubSystem
 *
 * \\since This datatype is available since SDL 3.2.0.
 */
typedef Uint32 SDL_InitFlags;

#define SDL_INIT_AUDIO      0x00000010u /**< `SDL_INIT_AUDIO` implies `SDL_INIT_EVENTS` */
#define SDL_INIT_VIDEO      0x00000020u
#define SDL_INIT_EVENTS     0x00004000u

extern SDL_DECLSPEC bool SDLCALL SDL_Init(SDL_InitFlags flags);

#endif /* SDL_init_h_ */
"""

VIDEO_H = """\
#ifndef SDL_video_h_
#define SDL_video_h_

#include <SDL3/SDL_stdinc.h>

typedef Uint32 SDL_WindowID;

/**
 * The struct used as an opaque handle to a window.
 *
 * \\since This struct is available since SDL 3.2.0.
 */
typedef struct SDL_Window SDL_Window;

/**
 * The title of the window, in UTF-8 encoding.
 */
#define SDL_PROP_WINDOW_CREATE_TITLE_STRING "SDL.window.create.title"
#define SDL_PROP_WINDOW_CREATE_WIDTH_NUMBER "SDL.window.create.width"

/**
 * A variable controlling whether the screensaver is enabled.
 *
 * \\since This hint is available since SDL 3.2.0.
 */
#define SDL_HINT_VIDEO_ALLOW_SCREENSAVER "SDL_VIDEO_ALLOW_SCREENSAVER"

/**
 * The structure that defines a display mode.
 */
typedef struct SDL_DisplayMode
{
    Uint32 displayID;      /**< the display this mode is associated with */
    int w;                 /**< width */
    int h;                 /**< height */
    float refresh_rate;    /**< refresh rate (or 0.0f for unspecified) */
} SDL_DisplayMode;

#ifdef SDL_PLATFORM_WINDOWS
extern SDL_DECLSPEC void * SDLCALL SDL_GetWindowHWND(SDL_Window *window);
#else
extern SDL_DECLSPEC void SDLCALL SDL_NotWindows(void);
#endif

extern SDL_DECLSPEC SDL_Window * SDLCALL SDL_CreateWindow(const char *title, int w, int h, Uint32 flags);

#endif /* SDL_video_h_ */
"""

SAMPLE_HEADERS = {
    "SDL_stdinc.h": STDINC_H,
    "SDL_power.h": POWER_H,
    "SDL_joystick.h": JOYSTICK_H,
    "SDL_init.h": INIT_H,
    "SDL_video.h": VIDEO_H,
    # never parsed
    "SDL_begin_code.h": "this is not C\n",
}


# =============================================================================
# Fixtures
# =============================================================================

def span_of(text: str, name: str = "test.h") -> Span:
    """Span over a fresh source buffer."""
    return Span.of(name, text)


@pytest.fixture
def make_ctx():
    """Factory for parse contexts."""
    def factory(module: str = "test") -> ParseContext:
        return ParseContext(module)
    return factory


@pytest.fixture
def ctx(make_ctx):
    return make_ctx()


@pytest.fixture
def header_dir(tmp_path):
    """Directory with the sample headers."""
    include = tmp_path / "include"
    include.mkdir()
    for name, text in SAMPLE_HEADERS.items():
        (include / name).write_text(text, encoding="utf-8")
    return include


@pytest.fixture
def config(tmp_path, header_dir):
    """Default config rooted at tmp_path, pointing at the sample headers."""
    return GeneratorConfig(
        project_root=tmp_path,
        paths=PathsConfig(
            headers_dir=Path("include"),
            output_dir=Path("out/generated"),
            metadata_dir=Path("out/metadata"),
        ),
    )


@pytest.fixture
def parsed_headers(config):
    """All sample headers, parsed."""
    from sdlgen.parser import HeaderParser

    parser = HeaderParser(config)
    return parser.parse_headers(parser.find_headers())
