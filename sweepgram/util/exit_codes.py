"""Process exit statuses of the ``sweepgram`` command.

0 and 1 keep their usual meaning and 2 is argparse's usage error; 3-5 tell a
calling script whether the log, the filesystem or the analyzer was at fault.
"""

from __future__ import annotations


class ExitCode:
    SUCCESS: int = 0
    GENERAL_ERROR: int = 1
    INVALID_ARGS: int = 2
    PARSE_ERROR: int = 3  # malformed sweep log, nothing rendered
    IO_ERROR: int = 4  # log/image/output path unreadable or unwritable
    DEVICE_UNAVAILABLE: int = 5  # serial port or analyzer not answering

    _MESSAGES = {
        0: "success",
        1: "unexpected error",
        2: "invalid arguments",
        3: "malformed sweep log",
        4: "file read/write failed",
        5: "analyzer unavailable",
    }

    @classmethod
    def message(cls, code: int) -> str:
        return cls._MESSAGES.get(code, f"unknown exit status {code}")
