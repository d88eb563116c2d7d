"""
Sampling Module
===============

Preview frame sampling and selection.

This module provides:
    - RasterFrame: Immutable captured pixel snapshot
    - VideoSource / OpenCVVideoSource: Seekable video source (one cursor)
    - FrameSampler: Sequential seek-and-capture into an ordered cache
    - PreviewWindow: Skip range + slider position -> cache index

Example:
    from ascii_video.sampling import FrameSampler, OpenCVVideoSource, PreviewWindow

    sampler = FrameSampler(OpenCVVideoSource("clip.mp4"))
    await sampler.sample()

    window = PreviewWindow(total_frames=sampler.total_frames)
    index = window.move_to(12)
    raster = sampler.frame_at(index) if index is not None else None
"""

from ascii_video.sampling.frame import RasterFrame
from ascii_video.sampling.source import (
    OpenCVVideoSource,
    SeekInProgressError,
    VideoMetadata,
    VideoSource,
    VideoSourceError,
)
from ascii_video.sampling.sampler import FrameSampler, SamplingError, sample_count
from ascii_video.sampling.preview import PreviewWindow


__all__ = [
    "RasterFrame",
    "VideoSource",
    "VideoMetadata",
    "OpenCVVideoSource",
    "VideoSourceError",
    "SeekInProgressError",
    "FrameSampler",
    "SamplingError",
    "sample_count",
    "PreviewWindow",
]
