"""tinySA serial driver (pyserial) and ``scanraw`` reply decoding."""

from __future__ import annotations

from typing import List, Tuple

from sweepgram import config
from sweepgram.errors import DeviceError
from sweepgram.util.logging import get_logger

try:  # pragma: no cover - optional dependency
    import serial  # type: ignore

    HAVE_SERIAL = True
except Exception:  # pragma: no cover - optional dependency
    HAVE_SERIAL = False
    serial = None  # type: ignore

logger = get_logger(__name__)

PROMPT = b"ch> "


def decode_scanraw(
    reply: bytes,
    start_hz: float,
    stop_hz: float,
    steps: int,
    zero_level: float = config.ZERO_LEVEL,
) -> List[Tuple[float, float]]:
    """Decode a ``scanraw`` reply into (frequency Hz, power dBm) pairs.

    The data block starts after the first ``{`` and is a run of 3-byte groups:
    ``x`` followed by a little-endian uint16 in 1/32 dB steps above
    ``-zero_level``. Decoding stops at the first group not starting with ``x``;
    a reply with no ``{x`` block at all raises :class:`DeviceError`.
    """
    begin = reply.find(b"{")
    if begin < 0 or reply[begin + 1 : begin + 2] != b"x":
        raise DeviceError("scanraw reply has no data block")
    step_hz = (stop_hz - start_hz) / (steps - 1) if steps > 1 else 0.0
    points: List[Tuple[float, float]] = []
    i = begin + 1
    while i + 2 < len(reply) and reply[i] == ord("x"):
        raw = reply[i + 1] | (reply[i + 2] << 8)
        points.append((start_hz + step_hz * len(points), raw / 32.0 - zero_level))
        i += 3
    return points


class TinySA:
    """Command/response channel to a tinySA over an open serial port."""

    def __init__(self, ser, *, port: str = ""):
        self.ser = ser
        self.port = port

    @classmethod
    def open(
        cls,
        port: str,
        *,
        baudrate: int = config.SERIAL_BAUDRATE,
        timeout: float = config.SERIAL_TIMEOUT_S,
    ) -> "TinySA":
        if not HAVE_SERIAL:
            raise DeviceError("pyserial not available")
        try:
            ser = serial.Serial(port, baudrate=baudrate, timeout=timeout)
        except (OSError, ValueError) as exc:
            raise DeviceError(f"cannot open {port}: {exc}") from exc
        logger.info("Opened %s at %d baud", port, baudrate, extra={"port": port})
        return cls(ser, port=port)

    def send(self, cmd: str) -> None:
        logger.debug("<< %s", cmd, extra={"port": self.port})
        try:
            self.ser.write((cmd + "\r").encode("ascii"))
        except OSError as exc:
            raise DeviceError(f"write to {self.port or 'device'} failed: {exc}") from exc

    def read_response(self) -> bytes:
        """Read up to and including the prompt; return the reply without it."""
        try:
            data = self.ser.read_until(PROMPT)
        except OSError as exc:
            raise DeviceError(f"read from {self.port or 'device'} failed: {exc}") from exc
        if not data.endswith(PROMPT):
            raise DeviceError(f"timed out waiting for prompt after {len(data)} bytes")
        reply = data[: -len(PROMPT)]
        logger.debug(">> %r", reply[:80], extra={"port": self.port})
        return reply

    def command(self, cmd: str) -> bytes:
        self.send(cmd)
        return self.read_response()

    def scanraw(self, start_hz: int, stop_hz: int, steps: int) -> bytes:
        return self.command(f"scanraw {int(start_hz)} {int(stop_hz)} {int(steps)}")

    def close(self) -> None:
        try:
            self.ser.close()
        except OSError:
            logger.debug("Ignoring error while closing %s", self.port)

    def __enter__(self) -> "TinySA":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
