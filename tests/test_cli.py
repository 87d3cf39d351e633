import io
import json

import pytest
from PIL import Image  # type: ignore

from conftest import build_log_text
from sweepgram.cli import main, parse_args
from sweepgram.util.exit_codes import ExitCode


@pytest.fixture
def log_path(tmp_path, three_by_five):
    path = tmp_path / "fm.log"
    path.write_text(build_log_text(three_by_five))
    return path


def test_render_writes_png_named_after_last_record(tmp_path, log_path, capsys) -> None:
    prefix = str(tmp_path / "fm")
    rc = main(["--log-level", "ERROR", "render", str(log_path), prefix, "--title", "FM", "--gridlines"])
    assert rc == ExitCode.SUCCESS
    expected = f"{prefix}.20260301T120204.png"
    assert capsys.readouterr().out.strip() == expected
    with Image.open(expected) as image:
        assert image.size[0] == 5
        assert image.mode == "RGB"


def test_max_rows_keeps_newest_records(tmp_path, log_path) -> None:
    prefix = str(tmp_path / "cut")
    rc = main(["--log-level", "ERROR", "render", str(log_path), prefix, "--max-rows", "2"])
    assert rc == ExitCode.SUCCESS
    full = str(tmp_path / "full")
    assert main(["--log-level", "ERROR", "render", str(log_path), full, "--max-rows", "0"]) == ExitCode.SUCCESS
    with Image.open(f"{prefix}.20260301T120204.png") as cut, Image.open(f"{full}.20260301T120204.png") as whole:
        assert whole.size[1] - cut.size[1] == 1


def test_malformed_log_returns_parse_error(tmp_path) -> None:
    bad = tmp_path / "bad.log"
    bad.write_text("garbage\n")
    json_log = tmp_path / "events.jsonl"
    rc = main(["--log-json", str(json_log), "render", str(bad), str(tmp_path / "out")])
    assert rc == ExitCode.PARSE_ERROR
    assert not list(tmp_path.glob("out*.png"))
    events = [json.loads(line) for line in json_log.read_text().splitlines()]
    errors = [e for e in events if e["level"] == "ERROR"]
    assert errors[0]["reason"] == "grammar"
    assert errors[0]["line_no"] == 1


def test_render_reads_log_from_stdin(tmp_path, three_by_five, monkeypatch, capsys) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO(build_log_text(three_by_five)))
    prefix = str(tmp_path / "piped")
    assert main(["--log-level", "ERROR", "render", "-", prefix]) == ExitCode.SUCCESS
    expected = f"{prefix}.20260301T120204.png"
    assert capsys.readouterr().out.strip() == expected
    with Image.open(expected) as image:
        assert image.size[0] == 5


def test_malformed_stdin_log_is_reported_as_stdin(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("$ 88,108,5,10\n"))
    json_log = tmp_path / "events.jsonl"
    rc = main(["--log-json", str(json_log), "render", "-", str(tmp_path / "out")])
    assert rc == ExitCode.PARSE_ERROR
    assert not list(tmp_path.glob("out*.png"))
    events = [json.loads(line) for line in json_log.read_text().splitlines()]
    errors = [e for e in events if e["level"] == "ERROR"]
    assert errors[0]["path"] == "<stdin>"
    assert errors[0]["reason"] == "grammar"


def test_missing_log_returns_io_error(tmp_path) -> None:
    rc = main(["--log-level", "ERROR", "render", str(tmp_path / "absent.log"), str(tmp_path / "out")])
    assert rc == ExitCode.IO_ERROR


def test_unwritable_prefix_returns_io_error(tmp_path, log_path) -> None:
    rc = main(["--log-level", "ERROR", "render", str(log_path), str(tmp_path / "no-dir" / "out")])
    assert rc == ExitCode.IO_ERROR


def test_unavailable_port_returns_device_error(tmp_path) -> None:
    argv = [
        "--log-level", "ERROR",
        "acquire", str(tmp_path / "ttyNOPE"),
        "--start", "88", "--stop", "108", "--step", "100",
        "-o", str(tmp_path / "sweeps.log"),
    ]
    assert main(argv) == ExitCode.DEVICE_UNAVAILABLE


def test_acquire_arguments_are_converted() -> None:
    args = parse_args(["acquire", "/dev/ttyACM0", "--start", "88", "--stop", "108", "--step", "100", "-o", "x.log", "--repeat", "3", "--interval", "5m"])
    assert args.repeat == 3
    assert args.interval == 300.0
    assert args.zero_level == 174


@pytest.mark.parametrize(
    "argv",
    [
        ["render", "in.log", "out", "--workers", "0"],
        ["render", "in.log", "out", "--max-rows", "-1"],
        ["acquire", "p", "--start", "108", "--stop", "88", "--step", "100", "-o", "x"],
        ["acquire", "p", "--start", "88", "--stop", "108", "--step", "0", "-o", "x"],
        ["acquire", "p", "--start", "88", "--stop", "108", "--step", "100", "-o", "x", "--rbw", "2000"],
        ["acquire", "p", "--start", "88", "--stop", "108", "--step", "100", "-o", "x", "--loop", "--repeat", "2"],
        ["acquire", "p", "--start", "88", "--stop", "108", "--step", "100", "-o", "x", "--duration", "5x"],
        ["acquire", "p", "--start", "88", "--stop", "108", "--step", "100", "-o", "x", "--interval", "-5"],
    ],
)
def test_invalid_arguments_exit_with_usage_error(argv) -> None:
    with pytest.raises(SystemExit) as excinfo:
        parse_args(argv)
    assert excinfo.value.code == ExitCode.INVALID_ARGS
