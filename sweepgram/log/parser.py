"""Streaming parser for sweep log files.

A log is a sequence of records, each made of a header line, ``steps`` data
lines and one blank trailer::

    # comment lines are ignored anywhere
    $ 88.000000,108.000000,5,10.000,20260101T000000,20260101T000004
    -81.250000
    ...
    <blank>

The record length is only known after the first header has been read. From
then on every non-comment line is classified purely by its position modulo
``steps + 2``, so a single missing or extra line desynchronizes the rest of the
file. The parser reports that as an error; it never tries to resynchronize.
"""

from __future__ import annotations

import enum
import math
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

import numpy as np  # type: ignore

from sweepgram import config
from sweepgram.errors import LogParseError, LogReadError
from sweepgram.log.record import SweepHeader, SweepLog
from sweepgram.util.logging import get_logger
from sweepgram.util.time import parse_stamp

logger = get_logger(__name__)

_NUMBER = r"[-+]?(?:\d+\.?\d*|\.\d+)"
_STAMP = r"\d{8}T\d{6}"
HEADER_RE = re.compile(
    r"^" + re.escape(config.HEADER_MARKER) + r" "
    rf"(?P<start>{_NUMBER}),(?P<stop>{_NUMBER}),(?P<steps>\d+),(?P<rbw>{_NUMBER}),"
    rf"(?P<start_time>{_STAMP}),(?P<end_time>{_STAMP})$"
)


class FailureReason(str, enum.Enum):
    GRAMMAR = "grammar"
    SANITY = "sanity"
    FIELD_MISMATCH = "field_mismatch"
    TRAILER_NOT_BLANK = "trailer_not_blank"
    BAD_SAMPLE = "bad_sample"
    NO_RECORD = "no_record"
    COUNT_MISMATCH = "count_mismatch"


@dataclass(frozen=True)
class ParseFailure:
    """Why and where parsing stopped. ``line_no`` is 1-based, 0 at end of input."""

    reason: FailureReason
    line_no: int
    message: str

    def __str__(self) -> str:
        where = f"line {self.line_no}" if self.line_no else "end of input"
        return f"{where}: {self.message} [{self.reason.value}]"


def parse_header(text: str, line_no: int = 0) -> Union[SweepHeader, ParseFailure]:
    """Parse and sanity-check one header line."""
    m = HEADER_RE.match(text)
    if m is None:
        return ParseFailure(FailureReason.GRAMMAR, line_no, f"malformed record header {text!r}")
    try:
        start_time = parse_stamp(m.group("start_time"))
        end_time = parse_stamp(m.group("end_time"))
    except ValueError as exc:
        return ParseFailure(FailureReason.GRAMMAR, line_no, f"bad timestamp in header: {exc}")

    header = SweepHeader(
        start_freq=float(m.group("start")),
        stop_freq=float(m.group("stop")),
        steps=int(m.group("steps")),
        rbw=float(m.group("rbw")),
        start_time=start_time,
        end_time=end_time,
    )
    if header.start_freq >= header.stop_freq:
        return ParseFailure(
            FailureReason.SANITY,
            line_no,
            f"start frequency {header.start_freq} MHz is not below stop frequency {header.stop_freq} MHz",
        )
    if header.steps == 0:
        return ParseFailure(FailureReason.SANITY, line_no, "step count is zero")
    if not 0.0 < header.rbw <= config.MAX_RBW_KHZ:
        return ParseFailure(
            FailureReason.SANITY,
            line_no,
            f"RBW {header.rbw} kHz outside (0, {config.MAX_RBW_KHZ:g}]",
        )
    return header


def parse_sample(text: str, line_no: int = 0) -> Union[float, ParseFailure]:
    try:
        value = float(text)
    except ValueError:
        return ParseFailure(FailureReason.BAD_SAMPLE, line_no, f"power value {text!r} is not a number")
    if not math.isfinite(value):
        return ParseFailure(FailureReason.BAD_SAMPLE, line_no, f"power value {text!r} is not finite")
    return value


class LogParser:
    """Line-by-line parser state for one log.

    Feed lines in order with :meth:`feed`, then call :meth:`finish`. Each step
    returns a :class:`ParseFailure` instead of raising; after the first failure
    the parser refuses further input. Instances share nothing, so several logs
    can be parsed side by side.
    """

    def __init__(self) -> None:
        self.reference: Optional[SweepHeader] = None
        self.headers: List[SweepHeader] = []
        self.samples: List[float] = []
        self.line_no = 0  # physical lines seen, comments included
        self.position = 0  # structural lines seen since the first header
        self.failure: Optional[ParseFailure] = None

    def _fail(self, reason: FailureReason, message: str) -> ParseFailure:
        self.failure = ParseFailure(reason, self.line_no, message)
        return self.failure

    def feed(self, line: str) -> Optional[ParseFailure]:
        if self.failure is not None:
            return self.failure
        self.line_no += 1
        text = line.rstrip("\r\n")
        if text.startswith(config.COMMENT_MARKER):
            return None

        if self.reference is None:
            result = self._feed_header(text)
        else:
            slot = self.position % self.reference.lines_per_record
            if slot == 0:
                result = self._feed_header(text)
            elif slot <= self.reference.steps:
                result = self._feed_sample(text)
            elif text:
                result = self._fail(
                    FailureReason.TRAILER_NOT_BLANK,
                    f"expected blank line after {self.reference.steps} samples of record "
                    f"#{len(self.headers)}, got {text!r}",
                )
            else:
                result = None
        if result is None:
            self.position += 1
        return result

    def _feed_header(self, text: str) -> Optional[ParseFailure]:
        parsed = parse_header(text, self.line_no)
        if isinstance(parsed, ParseFailure):
            self.failure = parsed
            return parsed
        if self.reference is None:
            self.reference = parsed
            logger.debug(
                "First header: %.6f-%.6f MHz, %d steps, %d lines per record",
                parsed.start_freq,
                parsed.stop_freq,
                parsed.steps,
                parsed.lines_per_record,
            )
        elif not parsed.same_configuration(self.reference):
            ref = self.reference
            return self._fail(
                FailureReason.FIELD_MISMATCH,
                f"record #{len(self.headers) + 1} header "
                f"({parsed.start_freq},{parsed.stop_freq},{parsed.steps},{parsed.rbw}) differs from "
                f"first record ({ref.start_freq},{ref.stop_freq},{ref.steps},{ref.rbw})",
            )
        self.headers.append(parsed)
        return None

    def _feed_sample(self, text: str) -> Optional[ParseFailure]:
        parsed = parse_sample(text, self.line_no)
        if isinstance(parsed, ParseFailure):
            self.failure = parsed
            return parsed
        self.samples.append(parsed)
        return None

    def finish(self) -> Union[SweepLog, ParseFailure]:
        if self.failure is not None:
            return self.failure
        self.line_no = 0
        if self.reference is None or not self.headers:
            return self._fail(FailureReason.NO_RECORD, "no valid record found")
        expected = len(self.headers) * self.reference.steps
        if len(self.samples) != expected:
            return self._fail(
                FailureReason.COUNT_MISMATCH,
                f"{len(self.samples)} samples for {len(self.headers)} records of "
                f"{self.reference.steps} steps (expected {expected})",
            )
        return SweepLog(tuple(self.headers), np.asarray(self.samples, dtype=np.float64))


def parse_lines(lines: Iterable[str]) -> Union[SweepLog, ParseFailure]:
    """Run a fresh parser over ``lines`` and return the log or the first failure."""
    parser = LogParser()
    for line in lines:
        failure = parser.feed(line)
        if failure is not None:
            return failure
    return parser.finish()


def parse_log(lines: Iterable[str]) -> SweepLog:
    """Parse a whole log, raising :class:`LogParseError` on the first failure."""
    result = parse_lines(lines)
    if isinstance(result, ParseFailure):
        raise LogParseError(result)
    logger.info("Parsed %d records of %d steps", result.record_count, result.steps)
    return result


def parse_file(path: str) -> SweepLog:
    """Open ``path`` and parse it; open/read failures raise :class:`LogReadError`."""
    try:
        with open(path, "r", encoding="ascii", errors="replace", newline="") as fh:
            return parse_log(fh)
    except OSError as exc:
        raise LogReadError(path, exc) from exc
