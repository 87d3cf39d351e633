"""Defaults for sweepgram, overridable through ``SWEEPGRAM_*`` variables.

The CLI takes its option defaults from here, so a flag on the command line
always beats the environment. Unset, empty or unparsable variables fall back
to the built-in value.
"""
from __future__ import annotations

import os
from typing import Callable, Optional, TypeVar

T = TypeVar("T", int, float)


def _env(name: str, default: T, cast: Callable[..., T], minimum: Optional[T] = None) -> T:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = cast(float(raw)) if cast is int else cast(raw)
    except (ValueError, OverflowError):
        return default
    return value if minimum is None else max(minimum, value)


def _int_env(name: str, default: int, minimum: int = 0) -> int:
    return _env(name, default, int, minimum)


def _float_env(name: str, default: float) -> float:
    return _env(name, default, float)


# ---------------------------------------------------------------------------
# Log file format
# ---------------------------------------------------------------------------
COMMENT_MARKER: str = "#"
"""Lines starting with this marker are ignored by the parser."""

HEADER_MARKER: str = "$"
"""First token of every record header line."""

MAX_RBW_KHZ: float = 1000.0
"""Upper bound (inclusive) for a record's resolution bandwidth."""


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------
MAX_ROWS: int = _int_env("SWEEPGRAM_MAX_ROWS", 1024, minimum=0)
"""Record cap for rendering; older records beyond it are dropped, 0 keeps all."""

FONT_FAMILY: str = os.getenv("SWEEPGRAM_FONT", "Liberation Mono")
"""Font used for banner and footer text."""

FONT_SIZE: int = _int_env("SWEEPGRAM_FONT_SIZE", 12, minimum=1)

BANNER_HEIGHT: int = _int_env("SWEEPGRAM_BANNER_HEIGHT", 16)
"""Height in pixels of the title strip above the data rows."""

FOOTER_HEIGHT: int = _int_env("SWEEPGRAM_FOOTER_HEIGHT", 16)
"""Height in pixels of the summary strip below the data rows."""

MIN_GRIDLINES: int = _int_env("SWEEPGRAM_MIN_GRIDLINES", 6, minimum=1)
"""Minimum number of frequency gridlines across the span."""

RENDER_WORKERS: int = _int_env("SWEEPGRAM_RENDER_WORKERS", 1, minimum=1)
"""Threads used to color sample rows."""


# ---------------------------------------------------------------------------
# Acquisition (tinySA)
# ---------------------------------------------------------------------------
SERIAL_BAUDRATE: int = _int_env("SWEEPGRAM_BAUDRATE", 115200, minimum=1)

SERIAL_TIMEOUT_S: float = _float_env("SWEEPGRAM_SERIAL_TIMEOUT", 30.0)
"""Seconds to wait for the prompt before a command is considered lost."""

ZERO_LEVEL: int = _int_env("SWEEPGRAM_ZERO_LEVEL", 174)
"""Raw power offset in dB: 128 for tinySA, 174 for tinySA Ultra."""

DEFAULT_RBW_KHZ: float = _float_env("SWEEPGRAM_RBW_KHZ", 10.0)
"""Resolution bandwidth requested from the analyzer before sweeping."""
