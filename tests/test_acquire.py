import argparse
from datetime import timedelta
from typing import List, Sequence

import numpy as np
import pytest

from conftest import T0
from sweepgram.errors import DeviceError, LogWriteError
from sweepgram.log.parser import parse_file
from sweepgram.log.record import SweepHeader
from sweepgram.log.writer import FILE_BANNER, LogWriter, format_record
from sweepgram.sweep.acquire import SweepAcquirer, steps_for
from sweepgram.util.duration import interval_arg, parse_duration_to_seconds, seconds_until_boundary


def _scanraw_reply(powers: Sequence[float], zero_level: float = 174) -> bytes:
    body = b"".join(b"x" + int(round((p + zero_level) * 32)).to_bytes(2, "little") for p in powers)
    return b"{" + body + b"}\r\n"


class FakeDevice:
    def __init__(self, sweeps: List[Sequence[float]]):
        self.sweeps = list(sweeps)
        self.commands: List[str] = []

    def command(self, cmd: str) -> bytes:
        self.commands.append(cmd)
        return b""

    def scanraw(self, start_hz: int, stop_hz: int, steps: int) -> bytes:
        self.commands.append(f"scanraw {start_hz} {stop_hz} {steps}")
        return _scanraw_reply(self.sweeps.pop(0))


class FakeClock:
    def __init__(self, now: float):
        self.now = now
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _acquirer(device, path, clock=None, steps=3) -> SweepAcquirer:
    clock = clock or FakeClock(0.0)
    return SweepAcquirer(
        device,
        LogWriter(str(path)),
        start_hz=433_000_000,
        stop_hz=433_000_000 + 100_000 * (steps - 1),
        steps=steps,
        rbw_khz=10.0,
        zero_level=174,
        clock=clock,
        sleep=clock.sleep,
    )


def test_steps_for_includes_both_ends() -> None:
    assert steps_for(88_000_000, 108_000_000, 100_000) == 201
    assert steps_for(433_000_000, 433_050_000, 100_000) == 1
    with pytest.raises(ValueError):
        steps_for(0, 10, 0)


def test_initialize_pauses_and_sets_rbw(tmp_path) -> None:
    device = FakeDevice([])
    _acquirer(device, tmp_path / "a.log").initialize()
    assert device.commands == ["", "pause", "rbw 10"]


def test_acquired_log_parses_back(tmp_path) -> None:
    path = tmp_path / "sweeps.log"
    sweeps = [[-90.0, -85.5, -40.25], [-100.0, -99.96875, -20.0]]
    acquirer = _acquirer(FakeDevice(sweeps), path)
    assert acquirer.run(repeat=2) == 2

    log = parse_file(str(path))
    assert log.record_count == 2
    assert log.first.start_freq == pytest.approx(433.0)
    assert log.first.stop_freq == pytest.approx(433.2)
    assert log.first.rbw == pytest.approx(10.0)
    np.testing.assert_array_equal(log.rows, np.array(sweeps))
    assert path.read_text().startswith(FILE_BANNER)
    assert path.read_text().count(FILE_BANNER) == 1


def test_point_count_mismatch_is_a_device_error(tmp_path) -> None:
    path = tmp_path / "short.log"
    acquirer = _acquirer(FakeDevice([[-90.0, -80.0]]), path)
    with pytest.raises(DeviceError, match="expected 3"):
        acquirer.sweep_once()
    assert not path.exists()


def test_default_policy_is_a_single_sweep(tmp_path) -> None:
    clock = FakeClock(10.0)
    assert _acquirer(FakeDevice([[-1.0] * 3]), tmp_path / "one.log", clock).run() == 1
    assert clock.sleeps == []


def test_interval_aligns_each_sweep_to_next_boundary(tmp_path) -> None:
    clock = FakeClock(125.0)
    sweeps = [[-50.0] * 3 for _ in range(3)]
    _acquirer(FakeDevice(sweeps), tmp_path / "i.log", clock).run(repeat=3, interval_s=60)
    assert clock.sleeps == [55.0, 60.0, 60.0]


def test_duration_bounds_the_loop(tmp_path) -> None:
    clock = FakeClock(125.0)
    sweeps = [[-50.0] * 3 for _ in range(5)]
    done = _acquirer(FakeDevice(sweeps), tmp_path / "d.log", clock).run(duration_s=100, interval_s=60)
    assert done == 2


def test_seconds_until_boundary() -> None:
    assert seconds_until_boundary(125.0, 60) == pytest.approx(55.0)
    assert seconds_until_boundary(120.0, 60) == pytest.approx(60.0)
    with pytest.raises(ValueError):
        seconds_until_boundary(0.0, 0)


def test_duration_parsing() -> None:
    assert parse_duration_to_seconds("90") == 90.0
    assert parse_duration_to_seconds("10m") == 600.0
    assert parse_duration_to_seconds("2h") == 7200.0
    assert parse_duration_to_seconds(None) is None
    assert interval_arg("5m") == 300.0
    with pytest.raises(argparse.ArgumentTypeError):
        parse_duration_to_seconds("3w")
    with pytest.raises(argparse.ArgumentTypeError):
        interval_arg("0")


def test_format_record_rejects_wrong_power_count() -> None:
    header = SweepHeader(88.0, 108.0, 3, 10.0, T0, T0 + timedelta(seconds=4))
    assert format_record(header, [-1.0, -2.0, -3.0]).splitlines() == [
        "$ 88.000000,108.000000,3,10.000,20260301T120000,20260301T120004",
        "-1.000000",
        "-2.000000",
        "-3.000000",
        "",
    ]
    with pytest.raises(ValueError):
        format_record(header, [-1.0])


def test_writer_wraps_os_errors(tmp_path) -> None:
    header = SweepHeader(88.0, 108.0, 1, 10.0, T0, T0)
    writer = LogWriter(str(tmp_path / "no-such-dir" / "x.log"))
    with pytest.raises(LogWriteError):
        writer.append(header, [-50.0])
