#!/usr/bin/env python3
"""sweepgram CLI entrypoint: render sweep logs and acquire new ones."""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from sweepgram import config
from sweepgram.check.timing import check_time_consistency
from sweepgram.drivers.tinysa import TinySA
from sweepgram.errors import DeviceError, LogParseError, LogReadError, LogWriteError, RenderWriteError
from sweepgram.log.parser import parse_file, parse_log
from sweepgram.log.writer import LogWriter
from sweepgram.render.renderer import RenderOptions, SpectrogramRenderer, output_filename, save_png
from sweepgram.sweep.acquire import SweepAcquirer, steps_for
from sweepgram.util.duration import interval_arg, parse_duration_to_seconds
from sweepgram.util.exit_codes import ExitCode
from sweepgram.util.logging import configure_logging, get_logger, log_exception


def run_render(args: argparse.Namespace) -> int:
    logger = get_logger(__name__)
    source = "<stdin>" if args.input == "-" else args.input
    try:
        log = parse_log(sys.stdin) if args.input == "-" else parse_file(args.input)
    except LogParseError as exc:
        logger.error(
            "%s: %s",
            source,
            exc,
            extra={"path": source, "line_no": exc.line_no, "reason": exc.failure.reason.value},
        )
        return ExitCode.PARSE_ERROR
    except LogReadError as exc:
        logger.error("%s", exc, extra={"path": exc.path})
        return ExitCode.IO_ERROR

    if args.max_rows and log.record_count > args.max_rows:
        logger.debug("Keeping newest %d of %d records", args.max_rows, log.record_count)
        log = log.tail(args.max_rows)

    report = check_time_consistency(log.headers)
    report.log_warnings(logger)

    options = RenderOptions(
        title=args.title,
        gridlines=args.gridlines,
        font_family=args.font,
        workers=args.workers,
    )
    image = SpectrogramRenderer(options).render(log, report)
    path = output_filename(args.prefix, log)
    try:
        save_png(image, path)
    except RenderWriteError as exc:
        logger.error("%s", exc, extra={"path": exc.path})
        return ExitCode.IO_ERROR
    logger.info("Wrote %s (%d records x %d steps)", path, log.record_count, log.steps, extra={"path": path})
    print(path, flush=True)
    return ExitCode.SUCCESS


def run_acquire(args: argparse.Namespace) -> int:
    logger = get_logger(__name__)
    start_hz = int(round(args.start * 1e6))
    stop_hz = int(round(args.stop * 1e6))
    steps = steps_for(start_hz, stop_hz, int(round(args.step * 1e3)))
    duration_s = parse_duration_to_seconds(args.duration)
    looping = args.loop or args.repeat is not None or duration_s is not None
    logger.info(
        "tty=%s start=%d stop=%d steps=%d log=%s",
        args.port,
        start_hz,
        stop_hz,
        steps,
        args.output,
        extra={"port": args.port},
    )
    try:
        with TinySA.open(args.port, baudrate=args.baudrate) as device:
            acquirer = SweepAcquirer(
                device,
                LogWriter(args.output),
                start_hz=start_hz,
                stop_hz=stop_hz,
                steps=steps,
                rbw_khz=args.rbw,
                zero_level=args.zero_level,
            )
            acquirer.initialize()
            acquirer.run(
                loop=args.loop,
                repeat=args.repeat,
                duration_s=duration_s,
                interval_s=args.interval if looping else None,
            )
    except DeviceError as exc:
        logger.error("%s", exc, extra={"port": args.port, "error_type": "device"})
        return ExitCode.DEVICE_UNAVAILABLE
    except LogWriteError as exc:
        logger.error("%s", exc, extra={"path": exc.path})
        return ExitCode.IO_ERROR
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return ExitCode.SUCCESS


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    if argv is None:
        argv = sys.argv[1:]

    p = argparse.ArgumentParser(description="Spectrum analyzer sweep logger and spectrogram renderer")
    p.add_argument("--log-level", dest="log_level", type=str, default=None, help="DEBUG, INFO, WARNING or ERROR (default from SWEEPGRAM_LOG_LEVEL)")
    p.add_argument("--log-json", dest="log_json", type=str, default=None, help="Also write JSON-lines logs to this path")
    p.add_argument("--no-color", dest="color", action="store_false", help="Disable colored console output")
    sub = p.add_subparsers(dest="command", required=True)

    r = sub.add_parser("render", help="Render a sweep log to a PNG spectrogram")
    r.add_argument("input", help="Sweep log path, or '-' for standard input")
    r.add_argument("prefix", help="Output filename prefix; writes <prefix>.<last end time>.png")
    r.add_argument("--title", type=str, default="", help="Banner text")
    r.add_argument("--gridlines", action="store_true", help="Draw frequency gridlines")
    r.add_argument("--max-rows", dest="max_rows", type=int, default=config.MAX_ROWS, help=f"Keep only the newest N records, 0 keeps all (default {config.MAX_ROWS})")
    r.add_argument("--font", type=str, default=config.FONT_FAMILY, help=f"Banner/footer font (default '{config.FONT_FAMILY}')")
    r.add_argument("--workers", type=int, default=config.RENDER_WORKERS, help="Threads used to color rows")
    r.set_defaults(func=run_render)

    a = sub.add_parser("acquire", help="Sweep a tinySA and append records to a log")
    a.add_argument("port", help="Serial device of the analyzer (e.g. /dev/ttyACM0)")
    a.add_argument("--start", type=float, required=True, help="Start frequency in MHz")
    a.add_argument("--stop", type=float, required=True, help="Stop frequency in MHz")
    a.add_argument("--step", type=float, required=True, help="Frequency step in kHz")
    a.add_argument("--output", "-o", type=str, required=True, help="Log file to append records to")
    a.add_argument("--rbw", type=float, default=config.DEFAULT_RBW_KHZ, help=f"Resolution bandwidth in kHz (default {config.DEFAULT_RBW_KHZ:g})")
    a.add_argument("--zero-level", dest="zero_level", type=float, default=config.ZERO_LEVEL, help="Raw power offset: 174 for tinySA Ultra, 128 for tinySA")
    a.add_argument("--baudrate", type=int, default=config.SERIAL_BAUDRATE)
    a.add_argument("--interval", type=interval_arg, default=60.0, help="Align looping sweeps to this interval (e.g. '60', '5m'; default 60s)")
    group = a.add_mutually_exclusive_group()
    group.add_argument("--loop", action="store_true", help="Sweep until interrupted")
    group.add_argument("--repeat", type=int, help="Run exactly N sweeps, then exit")
    group.add_argument("--duration", type=str, help="Sweep for a duration (e.g. '300', '10m', '2h')")
    a.set_defaults(func=run_acquire)

    args = p.parse_args(argv)

    if args.command == "render":
        if args.max_rows < 0:
            p.error("--max-rows must be >= 0")
        if args.workers < 1:
            p.error("--workers must be >= 1")
    elif args.command == "acquire":
        if args.stop <= args.start:
            p.error("--stop must be > --start")
        if args.step <= 0:
            p.error("--step must be > 0")
        if not 0 < args.rbw <= 1000:
            p.error("--rbw must be in (0, 1000] kHz")
        if args.repeat is not None and args.repeat < 1:
            p.error("--repeat must be >= 1")
        if args.duration:
            try:
                parse_duration_to_seconds(args.duration)
            except argparse.ArgumentTypeError as exc:
                p.error(str(exc))

    return args


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(level=args.log_level, json_file=args.log_json, use_color=args.color)
    logger = get_logger(__name__)
    try:
        rc = args.func(args)
    except Exception:
        log_exception(logger, f"Unhandled error in '{args.command}'", error_type="internal")
        rc = ExitCode.GENERAL_ERROR
    if rc != ExitCode.SUCCESS:
        logger.debug("Exiting with %d (%s)", rc, ExitCode.message(rc))
    return rc


if __name__ == "__main__":
    sys.exit(main())
