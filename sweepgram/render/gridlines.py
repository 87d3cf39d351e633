"""Adaptive frequency gridline placement."""

from __future__ import annotations

import math
from typing import List

from sweepgram.log.record import SweepHeader

# Largest decade tried; 5 * 10**11 Hz is far above any analyzer span
MAX_DECADE_EXPONENT = 11
DECADE_MULTIPLIERS = (5, 2, 1)


def gridline_spacing_hz(freq_range_hz: float, min_count: int = 6) -> int:
    """Pick the widest 1-2-5 spacing giving at least ``min_count`` gridlines.

    Candidates are tried from 5e11 Hz downwards: 5, 2, then 1 times each power
    of ten. 88-108 MHz with ``min_count=6`` yields 2 MHz (5 MHz only fits 4).
    """
    if freq_range_hz <= 0:
        raise ValueError(f"frequency range must be positive, got {freq_range_hz}")
    if min_count < 1:
        raise ValueError("min_count must be >= 1")
    for exponent in range(MAX_DECADE_EXPONENT, -1, -1):
        for mult in DECADE_MULTIPLIERS:
            spacing = mult * 10**exponent
            if freq_range_hz / spacing >= min_count:
                return spacing
    return 1


def gridline_frequencies_hz(start_hz: float, stop_hz: float, spacing_hz: int) -> List[int]:
    """Multiples of ``spacing_hz`` inside [start, stop], ascending."""
    last = math.floor(stop_hz / spacing_hz) * spacing_hz
    freqs = []
    freq = last
    while freq >= start_hz:
        freqs.append(freq)
        freq -= spacing_hz
    freqs.reverse()
    return freqs


def gridline_columns(header: SweepHeader, spacing_hz: int) -> List[int]:
    """Pixel columns of the gridlines for a sweep's frequency plan."""
    start_hz = round(header.start_freq * 1e6)
    stop_hz = round(header.stop_freq * 1e6)
    bin_hz = header.bin_hz
    columns: List[int] = []
    for freq in gridline_frequencies_hz(start_hz, stop_hz, spacing_hz):
        x = 0 if bin_hz == 0 else int(round((freq - start_hz) / bin_hz))
        if 0 <= x < header.steps and (not columns or columns[-1] != x):
            columns.append(x)
    return columns
