"""
Frame Sampler
=============

Sequential sampling of preview frames from a video source.

Sampling:
    sample_count = min(max_samples, floor(duration * samples_per_second))
    interval     = duration / sample_count
    for i in [0, sample_count): seek to i * interval, wait, capture

Design Rules:
    - Seeks are issued strictly one at a time (one seek cursor)
    - The cache is all-or-nothing: fully populated, or empty on failure
    - A run that is superseded (is_current() turns False) stops at the
      next await and its frames are never published; a failure of a
      superseded run is discarded the same way instead of raised
"""

import logging
import math
from typing import Callable, Optional, Tuple

from ascii_video.sampling.frame import RasterFrame
from ascii_video.sampling.source import VideoSource


logger = logging.getLogger(__name__)


DEFAULT_MAX_SAMPLES = 100
DEFAULT_SAMPLES_PER_SECOND = 10


class SamplingError(Exception):
    """Raised when sampling fails; the cache is left empty."""
    pass


def sample_count(
    duration: float,
    max_samples: int = DEFAULT_MAX_SAMPLES,
    samples_per_second: int = DEFAULT_SAMPLES_PER_SECOND,
) -> int:
    """Number of preview samples for a video of `duration` seconds."""
    if not math.isfinite(duration) or duration <= 0:
        return 0
    return min(max_samples, math.floor(duration * samples_per_second))


def _always_current() -> bool:
    return True


class FrameSampler:
    """
    Samples a video source into an ordered frame cache.

    Attributes:
        source: Video source to sample
        max_samples: Upper bound on cached frames
        samples_per_second: Sampling density before the bound applies

    Example:
        sampler = FrameSampler(OpenCVVideoSource("clip.mp4"))
        frames = await sampler.sample()
        print(f"Cached {sampler.total_frames} frames")
    """

    def __init__(
        self,
        source: VideoSource,
        max_samples: int = DEFAULT_MAX_SAMPLES,
        samples_per_second: int = DEFAULT_SAMPLES_PER_SECOND,
    ) -> None:
        if max_samples < 1:
            raise ValueError("max_samples must be >= 1")
        if samples_per_second < 1:
            raise ValueError("samples_per_second must be >= 1")

        self.source = source
        self.max_samples = max_samples
        self.samples_per_second = samples_per_second
        self._cache: Tuple[RasterFrame, ...] = ()

    @property
    def frames(self) -> Tuple[RasterFrame, ...]:
        """Cached frames in sample order (empty until sampling completes)."""
        return self._cache

    @property
    def total_frames(self) -> int:
        return len(self._cache)

    def frame_at(self, index: int) -> Optional[RasterFrame]:
        """Cached frame at index, or None."""
        if 0 <= index < len(self._cache):
            return self._cache[index]
        return None

    def clear(self) -> None:
        self._cache = ()

    async def sample(
        self,
        is_current: Callable[[], bool] = _always_current,
    ) -> Optional[Tuple[RasterFrame, ...]]:
        """
        Load the source and capture every sample point, in order.

        Args:
            is_current: Returns False once this run has been superseded

        Returns:
            The populated cache, or None if the run was superseded.

        Raises:
            SamplingError: If loading, seeking or capturing fails
        """
        self._cache = ()

        try:
            metadata = await self.source.load()
        except Exception as e:
            if not is_current():
                logger.info(f"Sampling superseded during load ({e}), discarding")
                return None
            raise SamplingError(f"Failed to load video: {e}") from e

        if not is_current():
            logger.info("Sampling superseded after load, discarding")
            return None

        count = sample_count(metadata.duration, self.max_samples, self.samples_per_second)
        if count == 0:
            logger.warning(f"Video too short to sample ({metadata.duration:.3f}s)")
            return self._cache

        interval = metadata.duration / count
        logger.info(f"Sampling {count} frames every {interval:.3f}s")

        frames = []
        for i in range(count):
            offset = i * interval
            try:
                await self.source.seek(offset)
                pixels = self.source.capture()
            except Exception as e:
                if not is_current():
                    logger.info(f"Sampling superseded at frame {i}/{count} ({e}), discarding")
                    return None
                raise SamplingError(f"Failed to sample frame {i} at {offset:.3f}s: {e}") from e

            if not is_current():
                logger.info(f"Sampling superseded at frame {i}/{count}, discarding")
                return None

            frames.append(RasterFrame.from_array(i, offset, pixels))

        self._cache = tuple(frames)
        logger.info(f"Sampling complete: {len(self._cache)} frames")
        return self._cache
