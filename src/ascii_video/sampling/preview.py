"""
Preview Window
==============

Maps a skip range and slider position onto a sampler cache index.

Mapping:
    effective    = max(0, total_frames - skip_start - skip_end)
    position     in [0, effective - 1]
    actual_index = skip_start + position

When the skip region consumes every frame (effective == 0) there is no
valid index: actual_index is None and the preview shows an empty state.
"""

import logging
from typing import Callable, Optional


logger = logging.getLogger(__name__)


class PreviewWindow:
    """
    Slider state over the sampled frames.

    Every change recomputes the effective range, clamps the position and,
    when the cache holds a frame at the resulting index, fires on_render.

    Attributes:
        has_frame: Returns True if the cache holds a frame at an index
        on_render: Called with the index to render after a change

    Example:
        window = PreviewWindow(total_frames=50)
        window.configure(skip_start=5, skip_end=10)
        window.move_to(40)          # clamps to 34
        window.actual_index         # 39
    """

    def __init__(
        self,
        total_frames: int = 0,
        skip_start: int = 0,
        skip_end: int = 0,
        has_frame: Optional[Callable[[int], bool]] = None,
        on_render: Optional[Callable[[int], None]] = None,
    ) -> None:
        self._total_frames = 0
        self._skip_start = 0
        self._skip_end = 0
        self._position = 0
        self.has_frame = has_frame or (lambda index: 0 <= index < self._total_frames)
        self.on_render = on_render

        self._set(total_frames, skip_start, skip_end)

    @property
    def total_frames(self) -> int:
        return self._total_frames

    @property
    def skip_start(self) -> int:
        return self._skip_start

    @property
    def skip_end(self) -> int:
        return self._skip_end

    @property
    def position(self) -> int:
        """Current slider position."""
        return self._position

    @property
    def effective_frames(self) -> int:
        """Number of frames left after both skips."""
        return max(0, self._total_frames - self._skip_start - self._skip_end)

    @property
    def max_position(self) -> int:
        """Largest valid slider position (0 when empty)."""
        return max(0, self.effective_frames - 1)

    @property
    def actual_index(self) -> Optional[int]:
        """Cache index under the slider, or None when no frame is in range."""
        if self.effective_frames == 0:
            return None
        return self._skip_start + self._position

    def configure(
        self,
        total_frames: Optional[int] = None,
        skip_start: Optional[int] = None,
        skip_end: Optional[int] = None,
    ) -> Optional[int]:
        """
        Update the frame total and/or skip range.

        Args left as None keep their current value.

        Returns:
            Index to render, or None if no cached frame is selected.

        Raises:
            ValueError: If any value is negative
        """
        self._set(
            self._total_frames if total_frames is None else total_frames,
            self._skip_start if skip_start is None else skip_start,
            self._skip_end if skip_end is None else skip_end,
        )
        return self._refresh()

    def move_to(self, position: int) -> Optional[int]:
        """
        Move the slider, clamped to [0, max_position].

        Returns:
            Index to render, or None if no cached frame is selected.
        """
        self._position = position
        return self._refresh()

    def state(self) -> dict:
        """Snapshot of the window for display."""
        return {
            "total_frames": self._total_frames,
            "skip_start": self._skip_start,
            "skip_end": self._skip_end,
            "effective_frames": self.effective_frames,
            "position": self._position,
            "max_position": self.max_position,
            "actual_index": self.actual_index,
            "empty": self.effective_frames == 0,
        }

    def _set(self, total_frames: int, skip_start: int, skip_end: int) -> None:
        if total_frames < 0:
            raise ValueError("total_frames must be >= 0")
        if skip_start < 0 or skip_end < 0:
            raise ValueError("skip values must be >= 0")

        self._total_frames = total_frames
        self._skip_start = skip_start
        self._skip_end = skip_end
        self._clamp()

    def _clamp(self) -> None:
        self._position = max(0, min(self._position, self.max_position))

    def _refresh(self) -> Optional[int]:
        self._clamp()
        index = self.actual_index
        if index is None:
            logger.debug("Preview window empty: skip range covers all frames")
            return None
        if not self.has_frame(index):
            return None

        if self.on_render is not None:
            self.on_render(index)
        return index
