"""
Raster Frame Model
==================

Captured pixel snapshot of a video at one sampled time offset.

Design Rules:
    - Immutable: the dataclass is frozen and the pixel buffer is read-only
    - Captured at native resolution, BGR, uint8 (OpenCV layout)
    - Owned by one session's sampler cache
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, slots=True, eq=False)
class RasterFrame:
    """
    Pixel snapshot taken by the frame sampler.

    Attributes:
        index: Position in the sampler cache
        offset_seconds: Time offset the source was seeked to
        pixels: Read-only (H, W, 3) uint8 array
    """

    index: int
    offset_seconds: float
    pixels: np.ndarray

    @classmethod
    def from_array(cls, index: int, offset_seconds: float, array: np.ndarray) -> "RasterFrame":
        """Snapshot an array, detaching it from the capture buffer."""
        pixels = np.array(array, copy=True)
        pixels.setflags(write=False)
        return cls(index=index, offset_seconds=offset_seconds, pixels=pixels)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the pixels."""
        return (
            f"RasterFrame(index={self.index}, "
            f"offset={self.offset_seconds:.3f}s, "
            f"size={self.width}x{self.height})"
        )
