"""
Luminance Converter
===================

Default Converter implementation built on numpy + OpenCV.

Each output cell covers a block of source pixels:
    1. Resize to (width, height) with area interpolation
    2. Luminance from BGR, then exposure shift and contrast around mid-gray
    3. Optional seeded noise (export mode only)
    4. Luminance -> character ramp (brightest -> last char);
       luminance >= white_threshold -> last char
    5. Cell color = resized source pixel as #rrggbb

Character cells are about twice as tall as they are wide, so the row
count is halved unless square pixels are requested.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import cv2
import numpy as np

from ascii_video.converter.protocol import (
    ConversionOptions,
    ConversionResult,
    ConverterSettings,
    Progress,
    ProgressCallback,
    ProgressStage,
    VideoPath,
)
from ascii_video.models.cell import AsciiFrame, Cell
from ascii_video.sampling.source import OpenCVVideoSource


logger = logging.getLogger(__name__)


CHAR_ASPECT = 0.5
SQUARE_ASPECT = 1.0
MID_GRAY = 128.0


def output_height(src_width: int, src_height: int, width: int, square_pixels: bool = False) -> int:
    """Rows needed to keep the source aspect ratio at `width` cells."""
    ratio = SQUARE_ASPECT if square_pixels else CHAR_ASPECT
    return max(1, int(round(width * src_height / src_width * ratio)))


def _adjust(luminance: np.ndarray, settings: ConverterSettings) -> np.ndarray:
    exposure = settings.exposure
    if exposure is None:
        offset = MID_GRAY - float(luminance.mean())
    else:
        offset = exposure / 100.0 * MID_GRAY

    factor = settings.contrast / 100.0
    return (luminance - MID_GRAY) * factor + MID_GRAY + offset


class LuminanceConverter:
    """
    Luminance-ramp ASCII converter.

    Attributes:
        settings: Rendering parameters
        seed: Seed of the export noise generator

    Example:
        converter = LuminanceConverter(ConverterSettings(chars="@#+. "))
        frame = converter.frame_to_ascii(raster.pixels, width=120)
    """

    def __init__(self, settings: Optional[ConverterSettings] = None, seed: int = 0) -> None:
        self.settings = settings or ConverterSettings()
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def frame_to_ascii(
        self,
        raster: np.ndarray,
        width: int,
        export_mode: bool = False,
        square_pixels: bool = False,
        settings: Optional[ConverterSettings] = None,
    ) -> AsciiFrame:
        if raster.ndim != 3 or raster.shape[2] != 3:
            raise ValueError(f"Expected (H, W, 3) raster, got shape {raster.shape}")
        if width < 1:
            raise ValueError("width must be >= 1")
        settings = settings or self.settings

        src_height, src_width = raster.shape[:2]
        height = output_height(src_width, src_height, width, square_pixels)
        small = cv2.resize(raster, (width, height), interpolation=cv2.INTER_AREA)

        luminance = _adjust(cv2.cvtColor(small, cv2.COLOR_BGR2GRAY).astype(np.float32), settings)
        if export_mode and settings.noise_level > 0:
            luminance += self._rng.normal(0.0, settings.noise_level * 64.0, luminance.shape)
        luminance = np.clip(luminance, 0, 255)

        chars = settings.chars
        last = len(chars) - 1
        indices = np.minimum((luminance / 256.0 * len(chars)).astype(np.int64), last)
        indices[luminance >= settings.white_threshold] = last

        rows: AsciiFrame = []
        for y in range(height):
            row = []
            for x in range(width):
                b, g, r = (int(v) for v in small[y, x])
                row.append(Cell(char=chars[int(indices[y, x])], color=f"#{r:02x}{g:02x}{b:02x}"))
            rows.append(row)
        return rows

    async def convert_to_text(
        self,
        video_path: VideoPath,
        options: ConversionOptions,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ConversionResult:
        """
        Render a whole video as ASCII frames.

        Each frame is converted right after it is captured, in a worker
        thread, so only one native-resolution raster is held at a time.
        """
        def report(progress: Progress) -> None:
            if on_progress is not None:
                on_progress(progress)

        report(Progress(stage=ProgressStage.LOADING, percent=0))
        self._rng = np.random.default_rng(self.seed)
        settings = options.rendering or self.settings

        text_frames: List[AsciiFrame] = []
        source = OpenCVVideoSource(video_path)
        try:
            metadata = await source.load()

            total = int(metadata.duration * options.fps)
            times = [i / options.fps for i in range(total)]
            times = times[options.skip_start_frames:max(0, total - options.skip_end_frames)]

            for i, seconds in enumerate(times):
                await source.seek(seconds)
                report(Progress(
                    stage=ProgressStage.EXTRACTING,
                    percent=5 + 90 * (i + 0.5) / len(times),
                    current=i + 1,
                    total=len(times),
                ))

                text_frames.append(await asyncio.to_thread(
                    self.frame_to_ascii,
                    source.capture(),
                    options.ascii_width,
                    True,
                    options.square_pixels,
                    settings,
                ))
                report(Progress(
                    stage=ProgressStage.CONVERTING,
                    percent=5 + 90 * (i + 1) / len(times),
                    current=i + 1,
                    total=len(times),
                ))
        finally:
            source.close()

        report(Progress(stage=ProgressStage.COMPLETE, percent=100))
        logger.info(
            f"Converted {Path(video_path).name}: {len(text_frames)} frames at "
            f"{options.fps} fps, width {options.ascii_width}"
        )

        return ConversionResult(
            fps=options.fps,
            ascii_width=options.ascii_width,
            ascii_height=output_height(
                metadata.width, metadata.height, options.ascii_width, options.square_pixels
            ),
            duration=metadata.duration,
            text_frames=text_frames,
        )
