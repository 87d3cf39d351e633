"""Exception types raised at sweepgram API boundaries."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from sweepgram.log.parser import ParseFailure


class SweepgramError(Exception):
    """Base class for all sweepgram errors."""


class LogParseError(SweepgramError):
    """A sweep log is malformed; carries the first failure found."""

    def __init__(self, failure: "ParseFailure"):
        super().__init__(str(failure))
        self.failure = failure

    @property
    def line_no(self) -> int:
        return self.failure.line_no


class LogReadError(SweepgramError):
    """A sweep log could not be opened or read."""

    def __init__(self, path: str, cause: OSError):
        super().__init__(f"cannot read log {path}: {cause.strerror or cause}")
        self.path = path


class RenderWriteError(SweepgramError):
    """The rendered image could not be written."""

    def __init__(self, path: str, cause: OSError):
        super().__init__(f"cannot write image {path}: {cause.strerror or cause}")
        self.path = path


class DeviceError(SweepgramError):
    """The analyzer could not be opened or returned an unusable reply."""


class LogWriteError(SweepgramError):
    """A record could not be appended to a sweep log."""

    def __init__(self, path: str, cause: OSError):
        super().__init__(f"cannot write log {path}: {cause.strerror or cause}")
        self.path = path
