"""Timestamp helpers for the compact UTC stamps used in logs and filenames."""

from __future__ import annotations

from datetime import datetime, timezone

STAMP_FORMAT = "%Y%m%dT%H%M%S"


def utc_now() -> datetime:
    """Return the current UTC time truncated to whole seconds."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def format_stamp(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).strftime(STAMP_FORMAT)


def parse_stamp(text: str) -> datetime:
    """Parse a ``YYYYMMDDTHHMMSS`` stamp as UTC; raises ValueError on bad input."""
    if len(text) != 15:
        raise ValueError(f"timestamp '{text}' is not YYYYMMDDTHHMMSS")
    return datetime.strptime(text, STAMP_FORMAT).replace(tzinfo=timezone.utc)
