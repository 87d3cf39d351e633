"""Append sweep records to a log file in the format the parser reads."""

from __future__ import annotations

import os
from typing import Sequence

from sweepgram import config
from sweepgram.errors import LogWriteError
from sweepgram.log.record import SweepHeader
from sweepgram.util.time import format_stamp

FILE_BANNER = f"{config.COMMENT_MARKER} start(MHz),stop(MHz),steps,rbw(kHz),start,end / RSSI(dBm) per step\n"


def format_header(header: SweepHeader) -> str:
    return (
        f"{config.HEADER_MARKER} {header.start_freq:.6f},{header.stop_freq:.6f},{header.steps},"
        f"{header.rbw:.3f},{format_stamp(header.start_time)},{format_stamp(header.end_time)}"
    )


def format_record(header: SweepHeader, powers: Sequence[float]) -> str:
    """Header, one power value per line, blank trailer."""
    if len(powers) != header.steps:
        raise ValueError(f"record has {header.steps} steps but {len(powers)} power values")
    lines = [format_header(header)]
    lines.extend(f"{p:f}" for p in powers)
    lines.append("")
    return "\n".join(lines) + "\n"


class LogWriter:
    def __init__(self, path: str):
        self.path = path

    def append(self, header: SweepHeader, powers: Sequence[float]) -> None:
        text = format_record(header, powers)
        try:
            fresh = not os.path.exists(self.path) or os.path.getsize(self.path) == 0
            with open(self.path, "a", encoding="ascii") as fh:
                if fresh:
                    fh.write(FILE_BANNER)
                fh.write(text)
        except OSError as exc:
            raise LogWriteError(self.path, exc) from exc
