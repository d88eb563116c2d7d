"""
Test Configuration
==================

Pytest fixtures and test doubles for ascii-video.
"""

import asyncio
from typing import Callable, List, Optional

import numpy as np
import pytest

from ascii_video.converter.protocol import (
    ConversionOptions,
    ConversionResult,
    ConverterSettings,
    VideoResult,
)
from ascii_video.models.cell import Cell
from ascii_video.models.output import OutputRecord
from ascii_video.sampling.source import VideoMetadata, VideoSourceError
from ascii_video.storage.backends import MemoryBackend
from ascii_video.storage.output_store import OutputStore


# =============================================================================
# Test Doubles
# =============================================================================

class FakeVideoSource:
    """
    In-memory video source.

    Every captured frame is filled with the number of completed seeks, so
    tests can check which seek produced which frame. Like OpenCV, a seek
    that is still in flight when the source is closed fails.
    """

    def __init__(
        self,
        duration: float = 2.0,
        width: int = 8,
        height: int = 4,
        fail_at: Optional[int] = None,
        fail_load: bool = False,
        on_seek: Optional[Callable[[int], None]] = None,
    ) -> None:
        self.duration = duration
        self.width = width
        self.height = height
        self.fail_at = fail_at
        self.fail_load = fail_load
        self.on_seek = on_seek
        self.seeks: List[float] = []
        self.overlapping_seeks = 0
        self.closed = False
        self._pending = False
        self._current: Optional[np.ndarray] = None

    async def load(self) -> VideoMetadata:
        if self.fail_load:
            raise VideoSourceError("unsupported codec")
        return VideoMetadata(
            duration=self.duration,
            width=self.width,
            height=self.height,
            fps=30.0,
            frame_count=int(self.duration * 30),
        )

    async def seek(self, seconds: float) -> None:
        if self._pending:
            self.overlapping_seeks += 1
        self._pending = True
        try:
            await asyncio.sleep(0)
            if self.closed:
                raise VideoSourceError("Video not loaded")
            if self.fail_at is not None and len(self.seeks) == self.fail_at:
                raise VideoSourceError(f"decode failed at {seconds:.3f}s")
            self._current = np.full(
                (self.height, self.width, 3), len(self.seeks) % 256, dtype=np.uint8
            )
            self.seeks.append(seconds)
        finally:
            self._pending = False

        if self.on_seek is not None:
            self.on_seek(len(self.seeks) - 1)

    def capture(self) -> np.ndarray:
        if self._current is None:
            raise VideoSourceError("No frame captured yet")
        return self._current

    def close(self) -> None:
        self.closed = True


class FakeConverter:
    """Converter returning fixed frames and recording its calls."""

    def __init__(
        self,
        frame_count: int = 3,
        error: Optional[Exception] = None,
        ascii_height: int = 1,
    ) -> None:
        self.frame_count = frame_count
        self.error = error
        self.ascii_height = ascii_height
        self.render_calls: List[dict] = []
        self.render_settings: List[Optional[ConverterSettings]] = []
        self.convert_calls: List[ConversionOptions] = []

    def frame_to_ascii(self, raster, width, export_mode=False, square_pixels=False, settings=None):
        self.render_settings.append(settings)
        self.render_calls.append({
            "shape": raster.shape,
            "width": width,
            "export_mode": export_mode,
            "square_pixels": square_pixels,
        })
        rows = 4 if square_pixels else 2
        return [[Cell("#", "#ffffff") for _ in range(width)] for _ in range(rows)]

    async def convert_to_text(self, video_path, options, on_progress=None):
        self.convert_calls.append(options)
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error

        frames = [
            [[Cell("a", "#000000"), Cell("a", "#000000")]],
            [[Cell("a", "#000000"), Cell("b", "#ffffff")]],
            [[Cell("c", None), Cell("c", None)]],
        ]
        return ConversionResult(
            fps=options.fps,
            ascii_width=2,
            ascii_height=self.ascii_height,
            duration=0.3,
            text_frames=frames[:self.frame_count],
        )


class FakeEncoder:
    """Encoder returning a fixed blob."""

    def __init__(self, format: str = "mp4", error: Optional[Exception] = None) -> None:
        self.format = format
        self.error = error

    async def convert_to_mp4(self, video_path, options, on_progress=None):
        if self.error is not None:
            raise self.error
        return VideoResult(blob=b"\x00\x00\x00\x18ftyp", format=self.format)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def red():
    return Cell("#", "#ff0000")


@pytest.fixture
def blue():
    return Cell("#", "#0000ff")


@pytest.fixture
def sample_frame(red, blue):
    """Provide a 3x2 frame with a run crossing a row boundary."""
    return [
        [red, red, red],
        [red, blue, Cell(" ", None)],
    ]


@pytest.fixture
def memory_backend():
    return MemoryBackend()


@pytest.fixture
def memory_store(memory_backend):
    """Provide an OutputStore over an unlimited in-memory backend."""
    return OutputStore(memory_backend)


@pytest.fixture
def make_record():
    """Factory for OutputRecords with distinct ids."""

    def make(index: int = 0, **overrides) -> OutputRecord:
        fields = {
            "id": f"rec{index}",
            "name": "clip",
            "filename": f"clip-2026-10-18T09-45-{index:02d}.jsonl.gz",
            "type": "Text",
            "dimensions": "300x84",
            "fps": 10,
            "frame_count": 120,
            "duration": 12.0,
            "size": 2048,
            "timestamp": 1792316712345 + index,
            "data": "H4sIAAAAAAAAAw==",
        }
        fields.update(overrides)
        return OutputRecord(**fields)

    return make


@pytest.fixture
def fake_source():
    """Factory for FakeVideoSource instances."""
    return FakeVideoSource


@pytest.fixture
def fake_converter_cls():
    return FakeConverter


@pytest.fixture
def fake_converter():
    return FakeConverter()


@pytest.fixture
def fake_encoder_cls():
    return FakeEncoder


@pytest.fixture
def failing_converter():
    return FakeConverter(error=RuntimeError("decoder crashed"))


@pytest.fixture
def video_file(tmp_path):
    """Provide a placeholder video file on disk."""
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"not really a video")
    return path
