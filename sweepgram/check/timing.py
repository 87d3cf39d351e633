"""Sweep timing consistency checks.

The checker looks at record start/end timestamps and flags anything that would
make time-based processing of a log unreliable: overlapping sweeps, a changing
or negative sweep interval, or a time range that does not split evenly into the
record count. Findings are advisory; nothing here raises for bad data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from sweepgram.log.record import SweepHeader


@dataclass(frozen=True)
class TimingIssue:
    kind: str
    record: int  # 1-based number of the first record involved
    message: str


@dataclass
class ProblemReport:
    """Accumulated timing flags for one log."""

    record_count: int = 0
    nominal_interval_s: Optional[int] = None
    time_range_not_divisible_by_record_count: bool = False
    interval_not_divisible_by_60: bool = False
    time_overlap: bool = False
    variant_interval: bool = False
    negative_interval: bool = False
    issues: List[TimingIssue] = field(default_factory=list)
    inconsistency_count: int = 0

    @property
    def has_problems(self) -> bool:
        return (
            self.time_range_not_divisible_by_record_count
            or self.interval_not_divisible_by_60
            or self.time_overlap
            or self.variant_interval
            or self.negative_interval
        )

    def flags(self) -> List[str]:
        names = (
            "time_range_not_divisible_by_record_count",
            "interval_not_divisible_by_60",
            "time_overlap",
            "variant_interval",
            "negative_interval",
        )
        return [name for name in names if getattr(self, name)]

    def add(self, kind: str, record: int, message: str, *, per_pair: bool = True) -> None:
        setattr(self, kind, True)
        self.issues.append(TimingIssue(kind, record, message))
        if per_pair:
            self.inconsistency_count += 1

    def log_warnings(self, logger: logging.Logger) -> None:
        """Emit every finding as a warning, followed by a summary."""
        for issue in self.issues:
            logger.warning("%s", issue.message, extra={"record": issue.record, "reason": issue.kind})
        if self.inconsistency_count > 0:
            logger.warning("%d inconsistency(s) found", self.inconsistency_count)
        if self.has_problems:
            logger.warning("Problems found, operations involving time may not be performed correctly")


def _seconds(later, earlier) -> int:
    return int((later - earlier).total_seconds())


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


def check_time_consistency(headers: Sequence[SweepHeader]) -> ProblemReport:
    """Check the timestamps of an ordered record sequence."""
    report = ProblemReport(record_count=len(headers))
    if not headers:
        return report

    if len(headers) == 1:
        only = headers[0]
        if only.end_time < only.start_time:
            report.add("time_overlap", 1, "end time is earlier than start time in record #1")
        return report

    intervals = len(headers) - 1
    span = _seconds(headers[-1].start_time, headers[0].start_time)
    interval = _trunc_div(span, intervals)
    report.nominal_interval_s = interval

    if span % intervals != 0:
        report.add(
            "time_range_not_divisible_by_record_count",
            1,
            f"time range in seconds ({span}) is not divisible by record count ({len(headers)})",
            per_pair=False,
        )
    if interval == 0 or 60 % interval != 0:
        report.add(
            "interval_not_divisible_by_60",
            1,
            f"time interval {interval}sec is not a factor of 60",
            per_pair=False,
        )

    last_delta = interval
    for i in range(intervals):
        ts1, te1 = headers[i].start_time, headers[i].end_time
        ts2, te2 = headers[i + 1].start_time, headers[i + 1].end_time
        n1, n2 = i + 1, i + 2

        # equal timestamps are not an overlap
        if ts1 > ts2 or te1 > te2 or ts1 > te2 or te1 > ts2:
            report.add("time_overlap", n1, f"timestamp overlap between record #{n1} and #{n2}")
        if te1 < ts1:
            report.add("time_overlap", n1, f"end time is earlier than start time in record #{n1}")
        if i == intervals - 1 and te2 < ts2:
            report.add("time_overlap", n2, f"end time is earlier than start time in record #{n2}")

        delta = _seconds(ts2, ts1)
        if delta != last_delta:
            report.add(
                "variant_interval",
                n1,
                f"interval between record #{n1} and #{n2} changed from {last_delta}s to {delta}s",
            )
        if delta < 0:
            report.add("negative_interval", n1, f"negative interval ({delta}s) between record #{n1} and #{n2}")
        last_delta = delta

    return report
