"""Sweep record types shared by the parser, timing checks, and renderer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Tuple

import numpy as np  # type: ignore


@dataclass(frozen=True)
class SweepHeader:
    """Header of one sweep: frequency plan, RBW, and timing."""

    start_freq: float  # MHz
    stop_freq: float  # MHz
    steps: int
    rbw: float  # kHz
    start_time: datetime
    end_time: datetime

    @property
    def span_hz(self) -> float:
        return (self.stop_freq - self.start_freq) * 1e6

    @property
    def bin_hz(self) -> float:
        """Frequency distance between adjacent bins; 0 for a single-bin sweep."""
        if self.steps < 2:
            return 0.0
        return self.span_hz / (self.steps - 1)

    @property
    def lines_per_record(self) -> int:
        # header + one line per bin + blank trailer
        return self.steps + 2

    def same_configuration(self, other: "SweepHeader") -> bool:
        return (
            self.start_freq == other.start_freq
            and self.stop_freq == other.stop_freq
            and self.steps == other.steps
            and self.rbw == other.rbw
        )


@dataclass(frozen=True)
class SweepLog:
    """Parsed log: homogeneous headers plus record-major power samples (dBm)."""

    headers: Tuple[SweepHeader, ...]
    samples: np.ndarray

    def __post_init__(self) -> None:
        if not self.headers:
            raise ValueError("SweepLog requires at least one record")
        expected = len(self.headers) * self.headers[0].steps
        if self.samples.shape != (expected,):
            raise ValueError(f"expected {expected} samples, got {self.samples.size}")
        self.samples.setflags(write=False)

    @property
    def record_count(self) -> int:
        return len(self.headers)

    @property
    def steps(self) -> int:
        return self.headers[0].steps

    @property
    def first(self) -> SweepHeader:
        return self.headers[0]

    @property
    def last(self) -> SweepHeader:
        return self.headers[-1]

    @property
    def rows(self) -> np.ndarray:
        """Samples as a (record_count, steps) view."""
        return self.samples.reshape(self.record_count, self.steps)

    def tail(self, max_records: int) -> "SweepLog":
        """Return a log holding only the newest ``max_records`` records."""
        if max_records < 1:
            raise ValueError("max_records must be >= 1")
        if self.record_count <= max_records:
            return self
        dropped = self.record_count - max_records
        return SweepLog(self.headers[dropped:], self.samples[dropped * self.steps :].copy())
