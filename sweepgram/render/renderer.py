"""Spectrogram rendering: canvas layout, sample coloring, text and gridlines."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont  # type: ignore

from sweepgram import config
from sweepgram.check.timing import ProblemReport
from sweepgram.errors import RenderWriteError
from sweepgram.log.record import SweepLog
from sweepgram.render.canvas import PixelBuffer
from sweepgram.render.colormap import power_to_rgb8
from sweepgram.render.gridlines import gridline_columns, gridline_spacing_hz
from sweepgram.util.logging import get_logger
from sweepgram.util.time import format_stamp, utc_now

logger = get_logger(__name__)

TEXT_COLOR = (255, 255, 255)


@dataclass
class RenderOptions:
    title: str = ""
    gridlines: bool = False
    banner_height: int = config.BANNER_HEIGHT
    footer_height: int = config.FOOTER_HEIGHT
    font_family: str = config.FONT_FAMILY
    font_size: int = config.FONT_SIZE
    min_gridlines: int = config.MIN_GRIDLINES
    gridline_color: Tuple[int, int, int] = (128, 128, 128)
    workers: int = config.RENDER_WORKERS


def load_font(family: str, size: int):
    """Load a TrueType font by family name or file, else Pillow's built-in font."""
    candidates = [family, f"{family.replace(' ', '')}-Regular.ttf", f"{family.replace(' ', '')}.ttf"]
    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    logger.debug("Font '%s' not found, using Pillow default", family)
    return ImageFont.load_default()


def row_blocks(rows: int, workers: int) -> List[Tuple[int, int]]:
    """Split ``rows`` into at most ``workers`` contiguous, disjoint [start, stop) blocks."""
    workers = max(1, min(int(workers), rows))
    size, extra = divmod(rows, workers)
    blocks = []
    start = 0
    for i in range(workers):
        stop = start + size + (1 if i < extra else 0)
        blocks.append((start, stop))
        start = stop
    return blocks


def footer_text(log: SweepLog, generated_at: datetime, report: Optional[ProblemReport] = None) -> str:
    first, last = log.first, log.last
    text = (
        f"{format_stamp(first.start_time)}~{format_stamp(last.end_time)} "
        f"{first.start_freq:.3f}-{first.stop_freq:.3f}MHz "
        f"{log.record_count}x{log.steps} "
        f"RBW {first.rbw:.3f}kHz "
        f"gen {format_stamp(generated_at)}"
    )
    if report is not None and report.has_problems:
        text += " [timing]"
    return text


class SpectrogramRenderer:
    """Render a parsed sweep log to an RGB image.

    Layout, top to bottom: banner strip with the title, one pixel row per
    record, footer strip with a summary. Width is one pixel per frequency bin.
    """

    def __init__(self, options: Optional[RenderOptions] = None):
        self.options = options or RenderOptions()
        self._font = None

    @property
    def font(self):
        if self._font is None:
            self._font = load_font(self.options.font_family, self.options.font_size)
        return self._font

    def canvas_for(self, log: SweepLog) -> PixelBuffer:
        opts = self.options
        if log.record_count < 1 or log.steps < 1:
            raise ValueError("cannot render an empty sweep log")
        height = log.record_count + opts.banner_height + opts.footer_height
        return PixelBuffer(width=log.steps, height=height)

    def color_samples(self, log: SweepLog, buffer: PixelBuffer) -> None:
        """Write one colored pixel per sample below the banner.

        Sample ``i`` lands at ``(i % steps, i // steps + banner_height)``.
        """
        rows = log.rows
        y0 = self.options.banner_height

        def paint(block: Tuple[int, int]) -> None:
            start, stop = block
            buffer.write_rows(y0 + start, power_to_rgb8(rows[start:stop]))

        blocks = row_blocks(log.record_count, self.options.workers)
        if len(blocks) == 1:
            paint(blocks[0])
            return
        with ThreadPoolExecutor(max_workers=len(blocks)) as pool:
            # list() surfaces worker exceptions
            list(pool.map(paint, blocks))

    def _text_strip(self, width: int, height: int, text: str, align: str) -> Image.Image:
        strip = Image.new("RGB", (width, height), (0, 0, 0))
        if not text:
            return strip
        draw = ImageDraw.Draw(strip)
        if align == "right":
            x = max(0.0, width - draw.textlength(text, font=self.font) - 2)
        else:
            x = 2
        draw.text((x, 1), text, font=self.font, fill=TEXT_COLOR)
        return strip

    def draw_gridlines(self, image: Image.Image, log: SweepLog) -> List[int]:
        spacing = gridline_spacing_hz(log.first.span_hz, self.options.min_gridlines)
        columns = gridline_columns(log.first, spacing)
        top = self.options.banner_height
        bottom = top + log.record_count - 1
        draw = ImageDraw.Draw(image)
        for x in columns:
            draw.line([(x, top), (x, bottom)], fill=self.options.gridline_color)
        logger.debug("Drew %d gridlines at %d Hz spacing", len(columns), spacing)
        return columns

    def render(
        self,
        log: SweepLog,
        report: Optional[ProblemReport] = None,
        *,
        generated_at: Optional[datetime] = None,
    ) -> Image.Image:
        opts = self.options
        buffer = self.canvas_for(log)
        self.color_samples(log, buffer)
        image = buffer.to_image()

        if opts.banner_height > 0:
            image.paste(self._text_strip(buffer.width, opts.banner_height, opts.title, "left"), (0, 0))
        if opts.footer_height > 0:
            footer = footer_text(log, generated_at or utc_now(), report)
            strip = self._text_strip(buffer.width, opts.footer_height, footer, "right")
            image.paste(strip, (0, opts.banner_height + log.record_count))
        if opts.gridlines:
            self.draw_gridlines(image, log)

        logger.info("Rendered %dx%d spectrogram", buffer.width, buffer.height)
        return image


def output_filename(prefix: str, log: SweepLog) -> str:
    """``<prefix>.<last record end time>.png``"""
    return f"{prefix}.{format_stamp(log.last.end_time)}.png"


def save_png(image: Image.Image, path: str) -> None:
    try:
        image.save(path, format="PNG")
    except OSError as exc:
        raise RenderWriteError(path, exc) from exc
