"""
Sessions
========

Explicit per-selection session context.

Selecting a video opens a NEW SessionContext with the next generation
number; the previous context is replaced wholesale, never mutated. Any
sampling still running for an older generation notices at its next await
and its frames are discarded.

A superseded session is released (source closed, on_release called) only
once nothing uses it: immediately when idle, otherwise when its running
load() or export finishes.

Phase Ordering (per session):
    open -> load (sample) -> preview | export
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Union

from ascii_video.codec.container import source_base_name
from ascii_video.converter.protocol import Converter, ConverterSettings
from ascii_video.models.cell import AsciiFrame
from ascii_video.sampling.preview import PreviewWindow
from ascii_video.sampling.sampler import (
    DEFAULT_MAX_SAMPLES,
    DEFAULT_SAMPLES_PER_SECOND,
    FrameSampler,
)
from ascii_video.sampling.source import OpenCVVideoSource, VideoSource


logger = logging.getLogger(__name__)


SourceFactory = Callable[[Path], VideoSource]
ReleaseHook = Callable[["SessionContext"], None]


@dataclass(eq=False)
class SessionContext:
    """
    State of one video selection.

    Attributes:
        generation: Sequence number of this selection
        video_path: Path of the selected video
        base_name: Source filename without extension
        sampler: Frame sampler over the video
        preview: Preview window over the sampler cache
        square_pixels: Round-pixel preview mode
        export_in_flight: True while an export runs
        sampling: True while load() samples the video
        on_idle: Deferred release, run by settle() once not busy
    """

    generation: int
    video_path: Path
    base_name: str
    sampler: FrameSampler
    preview: PreviewWindow = field(default_factory=PreviewWindow)
    square_pixels: bool = False
    export_in_flight: bool = False
    sampling: bool = False
    on_idle: Optional[Callable[[], None]] = field(default=None, repr=False)

    @property
    def has_video(self) -> bool:
        return self.video_path is not None

    @property
    def source(self) -> VideoSource:
        return self.sampler.source

    @property
    def busy(self) -> bool:
        return self.sampling or self.export_in_flight

    def settle(self) -> None:
        """Run the pending on_idle callback once the session is no longer busy."""
        if self.busy or self.on_idle is None:
            return
        callback, self.on_idle = self.on_idle, None
        callback()


class SessionManager:
    """
    Owns the current session and the generation counter.

    Example:
        manager = SessionManager()
        session = manager.open("/tmp/upload.mp4", filename="clip.mp4")
        if await manager.load(session):
            frame = render_preview(session, converter, width=120)
    """

    def __init__(
        self,
        max_samples: int = DEFAULT_MAX_SAMPLES,
        samples_per_second: int = DEFAULT_SAMPLES_PER_SECOND,
        source_factory: SourceFactory = OpenCVVideoSource,
        on_release: Optional[ReleaseHook] = None,
    ) -> None:
        self.max_samples = max_samples
        self.samples_per_second = samples_per_second
        self.source_factory = source_factory
        self.on_release = on_release
        self._generation: int = 0
        self._current: Optional[SessionContext] = None

    @property
    def current(self) -> Optional[SessionContext]:
        return self._current

    @property
    def generation(self) -> int:
        return self._generation

    def open(self, video_path: Union[str, Path], filename: Optional[str] = None) -> SessionContext:
        """
        Start a new session, superseding the current one.

        Args:
            video_path: Local path of the selected video
            filename: Original filename (defaults to the path's name)

        Returns:
            The new current session
        """
        self.close()
        self._generation += 1

        path = Path(video_path)
        sampler = FrameSampler(
            self.source_factory(path),
            max_samples=self.max_samples,
            samples_per_second=self.samples_per_second,
        )
        session = SessionContext(
            generation=self._generation,
            video_path=path,
            base_name=source_base_name(filename or path.name),
            sampler=sampler,
            preview=PreviewWindow(has_frame=lambda index: sampler.frame_at(index) is not None),
        )
        self._current = session

        logger.info(f"Opened session {session.generation} for {session.base_name!r}")
        return session

    def is_current(self, session: SessionContext) -> bool:
        """True if session is the live selection."""
        return self._current is session and session.generation == self._generation

    async def load(self, session: SessionContext) -> bool:
        """
        Sample the session's video and size its preview window.

        Returns:
            True if frames were published, False if the session was
            superseded while sampling.

        Raises:
            SamplingError: If sampling fails (the cache stays empty)
        """
        if not self.is_current(session):
            return False

        session.sampling = True
        try:
            frames = await session.sampler.sample(is_current=lambda: self.is_current(session))
        finally:
            session.sampling = False
            session.settle()

        if frames is None or not self.is_current(session):
            session.sampler.clear()
            logger.info(f"Discarding stale sampling results of session {session.generation}")
            return False

        session.preview.configure(total_frames=len(frames))
        return True

    def close(self) -> None:
        """Drop the current session; a busy one is released when it settles."""
        session, self._current = self._current, None
        if session is None:
            return
        session.on_idle = lambda: self._release(session)
        session.settle()

    def _release(self, session: SessionContext) -> None:
        session.source.close()
        if self.on_release is not None:
            self.on_release(session)
        logger.debug(f"Released session {session.generation}")


def render_preview(
    session: SessionContext,
    converter: Converter,
    width: int,
    settings: Optional[ConverterSettings] = None,
) -> Optional[AsciiFrame]:
    """
    Render the frame under the preview slider.

    settings overrides the converter's own rendering parameters.

    Returns:
        The rendered frame, or None for the empty preview state.
    """
    index = session.preview.actual_index
    if index is None:
        return None

    raster = session.sampler.frame_at(index)
    if raster is None:
        return None

    return converter.frame_to_ascii(
        raster.pixels,
        width,
        export_mode=False,
        square_pixels=session.square_pixels,
        settings=settings,
    )
