"""
Video Source
============

Seekable video source used by the frame sampler.

A video source has ONE seek cursor. A seek must complete before the next
one is issued; the OpenCV source enforces this and raises
SeekInProgressError on an overlapping seek.

Decoding runs in a worker thread (asyncio.to_thread) so the event loop
stays responsive while a seek is in flight. The capture is guarded by a
lock: close() waits for an in-flight read and a read after close() fails
with VideoSourceError.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Union

import cv2
import numpy as np


logger = logging.getLogger(__name__)


class VideoSourceError(Exception):
    """Raised when a video cannot be opened, seeked, or read."""
    pass


class SeekInProgressError(VideoSourceError):
    """Raised when a seek is issued before the previous one completed."""
    pass


@dataclass(frozen=True, slots=True)
class VideoMetadata:
    """
    Basic properties of a loaded video.

    Attributes:
        duration: Length in seconds
        width: Native frame width in pixels
        height: Native frame height in pixels
        fps: Native frame rate
        frame_count: Native number of frames
    """

    duration: float
    width: int
    height: int
    fps: float
    frame_count: int


class VideoSource(Protocol):
    """
    Protocol for seekable video sources.

    Implementations must complete `seek` before `capture` returns the
    frame at the seeked position.
    """

    async def load(self) -> VideoMetadata:
        """Open the video and return its metadata."""
        ...

    async def seek(self, seconds: float) -> None:
        """Move the cursor to `seconds`; returns when the seek completed."""
        ...

    def capture(self) -> np.ndarray:
        """Return the frame at the current cursor (H, W, 3) uint8."""
        ...

    def close(self) -> None:
        """Release decoder resources."""
        ...


class OpenCVVideoSource:
    """
    Video file source backed by cv2.VideoCapture.

    Attributes:
        path: Path of the video file
        metadata: Metadata after load(), None before
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self.metadata: Optional[VideoMetadata] = None
        self._capture: Optional[cv2.VideoCapture] = None
        self._current: Optional[np.ndarray] = None
        self._seeking: bool = False
        self._lock = threading.Lock()

    async def load(self) -> VideoMetadata:
        self.metadata = await asyncio.to_thread(self._open)
        logger.info(
            f"Loaded {self.path.name}: {self.metadata.duration:.2f}s, "
            f"{self.metadata.width}x{self.metadata.height} @ {self.metadata.fps:.2f} fps"
        )
        return self.metadata

    def _open(self) -> VideoMetadata:
        capture = cv2.VideoCapture(str(self.path))
        if not capture.isOpened():
            capture.release()
            raise VideoSourceError(f"Cannot open video: {self.path}")

        fps = capture.get(cv2.CAP_PROP_FPS)
        frame_count = int(capture.get(cv2.CAP_PROP_FRAME_COUNT))
        if fps <= 0 or frame_count <= 0:
            capture.release()
            raise VideoSourceError(
                f"Cannot determine duration of {self.path} (fps={fps}, frames={frame_count})"
            )

        with self._lock:
            self._capture = capture
        return VideoMetadata(
            duration=frame_count / fps,
            width=int(capture.get(cv2.CAP_PROP_FRAME_WIDTH)),
            height=int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            fps=fps,
            frame_count=frame_count,
        )

    async def seek(self, seconds: float) -> None:
        if self._seeking:
            raise SeekInProgressError(f"Seek to {seconds:.3f}s issued while another seek is pending")
        if self._capture is None or self.metadata is None:
            raise VideoSourceError("Video not loaded")

        self._seeking = True
        try:
            self._current = await asyncio.to_thread(self._seek_and_read, seconds)
        finally:
            self._seeking = False

    def _seek_and_read(self, seconds: float) -> np.ndarray:
        target = min(self.metadata.frame_count - 1, max(0, int(round(seconds * self.metadata.fps))))
        with self._lock:
            if self._capture is None:
                raise VideoSourceError("Video not loaded")
            self._capture.set(cv2.CAP_PROP_POS_FRAMES, target)
            ok, frame = self._capture.read()
        if not ok or frame is None:
            raise VideoSourceError(f"Failed to read frame at {seconds:.3f}s (frame {target})")
        return frame

    def capture(self) -> np.ndarray:
        if self._current is None:
            raise VideoSourceError("No frame captured yet")
        return self._current

    def close(self) -> None:
        with self._lock:
            if self._capture is not None:
                self._capture.release()
                self._capture = None
        self._current = None
