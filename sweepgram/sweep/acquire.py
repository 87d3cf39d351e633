"""Acquisition loop: sweep the analyzer and append records to a log."""

from __future__ import annotations

import time
from typing import Callable, Optional

from sweepgram.drivers.tinysa import TinySA, decode_scanraw
from sweepgram.errors import DeviceError
from sweepgram.log.record import SweepHeader
from sweepgram.log.writer import LogWriter
from sweepgram.util.duration import seconds_until_boundary
from sweepgram.util.logging import get_logger
from sweepgram.util.time import utc_now

logger = get_logger(__name__)


def steps_for(start_hz: int, stop_hz: int, step_hz: int) -> int:
    """Number of sweep points covering [start, stop] at ``step_hz`` spacing."""
    if step_hz <= 0:
        raise ValueError("step_hz must be positive")
    return (stop_hz - start_hz) // step_hz + 1


class SweepAcquirer:
    """Bind a device, a sweep plan, and a log writer."""

    def __init__(
        self,
        device: TinySA,
        writer: LogWriter,
        *,
        start_hz: int,
        stop_hz: int,
        steps: int,
        rbw_khz: float,
        zero_level: float,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if stop_hz <= start_hz:
            raise ValueError("stop_hz must be > start_hz")
        if steps < 1:
            raise ValueError("steps must be >= 1")
        self.device = device
        self.writer = writer
        self.start_hz = int(start_hz)
        self.stop_hz = int(stop_hz)
        self.steps = int(steps)
        self.rbw_khz = float(rbw_khz)
        self.zero_level = float(zero_level)
        self._clock = clock
        self._sleep = sleep

    def initialize(self) -> None:
        """Wake the prompt, pause the live display and set the RBW."""
        for cmd in ("", "pause", f"rbw {self.rbw_khz:g}"):
            self.device.command(cmd)

    def sweep_once(self) -> SweepHeader:
        started = utc_now()
        reply = self.device.scanraw(self.start_hz, self.stop_hz, self.steps)
        ended = utc_now()
        points = decode_scanraw(reply, self.start_hz, self.stop_hz, self.steps, self.zero_level)
        if len(points) != self.steps:
            raise DeviceError(f"scanraw returned {len(points)} points, expected {self.steps}")
        header = SweepHeader(
            start_freq=self.start_hz / 1e6,
            stop_freq=self.stop_hz / 1e6,
            steps=self.steps,
            rbw=self.rbw_khz,
            start_time=started,
            end_time=ended,
        )
        self.writer.append(header, [power for _, power in points])
        logger.info(
            "Sweep %s-%s done, %d points",
            started.strftime("%H:%M:%S"),
            ended.strftime("%H:%M:%S"),
            self.steps,
        )
        return header

    def run(
        self,
        *,
        loop: bool = False,
        repeat: Optional[int] = None,
        duration_s: Optional[float] = None,
        interval_s: Optional[float] = None,
    ) -> int:
        """Sweep until the termination policy is met; returns sweeps done.

        With ``interval_s`` each sweep starts on the next interval boundary.
        """
        if loop:
            sweeps_remaining: Optional[int] = None
        elif repeat is not None:
            sweeps_remaining = int(repeat)
        elif duration_s is not None:
            sweeps_remaining = None
        else:
            sweeps_remaining = 1

        started = self._clock()
        done = 0
        while sweeps_remaining is None or sweeps_remaining > 0:
            if duration_s is not None and (self._clock() - started) >= duration_s:
                break
            if interval_s:
                self._sleep(seconds_until_boundary(self._clock(), interval_s))
            self.sweep_once()
            done += 1
            if sweeps_remaining is not None:
                sweeps_remaining -= 1
        return done
