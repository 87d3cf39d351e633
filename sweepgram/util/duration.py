"""Duration parsing and interval alignment helpers for the acquisition loop."""

from __future__ import annotations

import argparse
import math
from typing import Any, Optional

_UNIT_SECONDS = {
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
    "d": 86400.0,
}


def parse_duration_to_seconds(duration: Optional[Any]) -> Optional[float]:
    """Parse strings like '30', '10m', '2h', returning seconds as float."""

    if duration is None:
        return None
    if isinstance(duration, (int, float)):
        return float(duration)
    text = str(duration).strip().lower()
    if not text:
        return None
    unit = text[-1] if text[-1].isalpha() else "s"
    value_part = text[:-1] if text[-1].isalpha() else text
    if unit not in _UNIT_SECONDS:
        raise argparse.ArgumentTypeError(f"Unsupported duration suffix '{unit}'")
    try:
        value = float(value_part)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid duration '{duration}'") from exc
    return value * _UNIT_SECONDS[unit]


def interval_arg(text: str) -> float:
    """argparse ``type=`` for strictly positive durations."""
    seconds = parse_duration_to_seconds(text)
    if seconds is None or seconds <= 0:
        raise argparse.ArgumentTypeError(f"Interval must be positive, got '{text}'")
    return seconds


def seconds_until_boundary(now: float, interval_s: float) -> float:
    """Seconds from ``now`` (epoch) to the next multiple of ``interval_s``.

    A sweep started exactly on a boundary waits a full interval, so two sweeps
    never share a slot.
    """
    if interval_s <= 0:
        raise ValueError("interval_s must be positive")
    next_slot = (math.floor(now / interval_s) + 1) * interval_s
    return next_slot - now
