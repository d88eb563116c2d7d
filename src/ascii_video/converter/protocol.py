"""
Converter Protocols
===================

Interfaces of the rasterization and video-encoding collaborators.

The export workflow consumes ONLY these interfaces:
    - Converter: renders raster frames / whole videos as ASCII frames
    - Encoder: renders a video as an MP4 (or WebM fallback) artifact

Progress is reported through an optional callback receiving Progress
records with a stage in {loading, extracting, converting, encoding,
complete}.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Literal, Optional, Protocol, Union

import numpy as np
from pydantic import BaseModel, Field

from ascii_video.models.cell import AsciiFrame


class ProgressStage(str, Enum):
    """Stages reported while converting a video."""

    LOADING = "loading"
    EXTRACTING = "extracting"
    CONVERTING = "converting"
    ENCODING = "encoding"
    COMPLETE = "complete"


@dataclass(frozen=True, slots=True)
class Progress:
    """
    One progress report.

    Attributes:
        stage: Current stage
        percent: Overall completion in [0, 100]
        current: Items done in this stage, when countable
        total: Items in this stage, when countable
    """

    stage: ProgressStage
    percent: float
    current: Optional[int] = None
    total: Optional[int] = None


ProgressCallback = Callable[[Progress], None]


class ConverterSettings(BaseModel):
    """
    Rendering parameters shared by preview and export.

    exposure is optional: None selects automatic exposure, which is
    distinct from an explicit 0 (no shift).
    """

    chars: str = Field(default="F$V* ", min_length=1, description="Dense-to-sparse ramp")
    noise_level: float = Field(default=0.15, ge=0, le=1, description="Export noise level")
    white_threshold: int = Field(default=160, ge=0, le=255, description="Luminance mapped to blank")
    contrast: int = Field(default=100, ge=0, le=400, description="Contrast percent")
    exposure: Optional[int] = Field(default=None, ge=-100, le=100, description="Exposure shift")

    def merged(self, overrides: Dict[str, Any]) -> "ConverterSettings":
        """Copy with per-request overrides applied and validated."""
        if not overrides:
            return self
        return ConverterSettings.model_validate({**self.model_dump(), **overrides})


@dataclass(frozen=True, slots=True)
class ConversionOptions:
    """Per-conversion parameters; rendering None keeps the converter's own settings."""

    fps: int
    ascii_width: int
    skip_start_frames: int = 0
    skip_end_frames: int = 0
    square_pixels: bool = False
    rendering: Optional[ConverterSettings] = None


@dataclass
class ConversionResult:
    """
    Output of Converter.convert_to_text.

    Attributes:
        fps: Frames per second of text_frames
        ascii_width: Frame width in cells
        ascii_height: Frame height in rows
        duration: Source duration in seconds
        text_frames: ASCII frames in temporal order
    """

    fps: int
    ascii_width: int
    ascii_height: int
    duration: float
    text_frames: List[AsciiFrame] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class VideoResult:
    """Output of Encoder.convert_to_mp4."""

    blob: bytes
    format: Literal["mp4", "webm"]


VideoPath = Union[str, Path]


class Converter(Protocol):
    """
    Protocol for ASCII rasterizers.

    Implementations:
        - LuminanceConverter (default, numpy + OpenCV)
    """

    def frame_to_ascii(
        self,
        raster: np.ndarray,
        width: int,
        export_mode: bool = False,
        square_pixels: bool = False,
        settings: Optional[ConverterSettings] = None,
    ) -> AsciiFrame:
        """Render one (H, W, 3) BGR raster as an ASCII frame of `width` cells."""
        ...

    async def convert_to_text(
        self,
        video_path: VideoPath,
        options: ConversionOptions,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ConversionResult:
        """Render a whole video as ASCII frames."""
        ...


class Encoder(Protocol):
    """Protocol for ASCII video encoders."""

    async def convert_to_mp4(
        self,
        video_path: VideoPath,
        options: ConversionOptions,
        on_progress: Optional[ProgressCallback] = None,
    ) -> VideoResult:
        """Render a whole video as an encoded ASCII video."""
        ...
