"""
Export Workflows
================

Text (.jsonl.gz) and video exports of the current session.

Text Export Pipeline:
    1. Validate (before any work)
    2. Converter.convert_to_text -> ASCII frames
    3. Run-length encode each frame, build container lines
    4. gzip the container (off the event loop)
    5. Build an OutputRecord with the base64 payload and save it

A failed save does NOT fail the export: the artifact is returned with
saved=False and the caller can still offer the download.

Only one export runs per session at a time.
"""

import asyncio
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterator, Optional

from ascii_video.codec.container import (
    PAYLOAD_CHUNK_SIZE,
    ContainerFormatError,
    compress_lines,
    container_lines,
    encode_payload,
    export_filename,
)
from ascii_video.converter.protocol import (
    ConversionOptions,
    ConversionResult,
    Converter,
    ConverterSettings,
    Encoder,
    ProgressCallback,
)
from ascii_video.models.container import ContainerHeader
from ascii_video.models.options import ExportOptions
from ascii_video.models.output import ROUND_PIXELS_TYPE, TEXT_TYPE, OutputRecord, generate_id
from ascii_video.session import SessionContext
from ascii_video.storage.output_store import OutputStore


logger = logging.getLogger(__name__)


VIDEO_FILENAMES = {
    "mp4": "ascii-video.mp4",
    "webm": "ascii-video.webm",
}


class ExportValidationError(Exception):
    """Raised when an export is requested without valid input."""
    pass


class ExportBusyError(Exception):
    """Raised when an export is requested while another one runs."""
    pass


class ConversionError(Exception):
    """Raised when a converter or encoder fails; carries the user message."""
    pass


@dataclass
class TextExport:
    """
    Result of a text export.

    Attributes:
        filename: Download filename
        payload: Compressed .jsonl.gz bytes
        record: History record built for the export
        saved: Whether the record reached the output store
    """

    filename: str
    payload: bytes
    record: OutputRecord
    saved: bool


@dataclass
class VideoExport:
    """Result of a video export."""

    filename: str
    blob: bytes
    format: str


def validate_export(session: Optional[SessionContext], options: ExportOptions) -> None:
    """
    Fail fast before any work starts.

    Range checks live on ExportOptions; this adds the checks that need
    the session.
    """
    if session is None or not session.has_video:
        raise ExportValidationError("Please select a video file")
    if not session.video_path.exists():
        raise ExportValidationError(f"Video file is missing: {session.video_path.name}")


@contextmanager
def _exclusive(session: SessionContext) -> Iterator[None]:
    if session.export_in_flight:
        raise ExportBusyError("An export is already running")
    session.export_in_flight = True
    try:
        yield
    finally:
        session.export_in_flight = False
        session.settle()


def _conversion_options(
    options: ExportOptions,
    square_pixels: bool = False,
    rendering: Optional[ConverterSettings] = None,
) -> ConversionOptions:
    return ConversionOptions(
        fps=options.fps,
        ascii_width=options.width,
        skip_start_frames=options.skip_start_frames,
        skip_end_frames=options.skip_end_frames,
        square_pixels=square_pixels,
        rendering=rendering,
    )


def build_record(
    result: ConversionResult,
    base_name: str,
    filename: str,
    payload: bytes,
    square_pixels: bool,
    now: datetime,
    chunk_size: int = PAYLOAD_CHUNK_SIZE,
) -> OutputRecord:
    """Build the history record of a finished text export."""
    timestamp = int(now.timestamp() * 1000)
    suffix = "-round" if square_pixels else ""
    return OutputRecord(
        id=generate_id(timestamp),
        name=f"{base_name}{suffix}",
        filename=filename,
        type=ROUND_PIXELS_TYPE if square_pixels else TEXT_TYPE,
        dimensions=f"{result.ascii_width}x{result.ascii_height}",
        fps=result.fps,
        frame_count=len(result.text_frames),
        duration=result.duration,
        size=len(payload),
        timestamp=timestamp,
        data=encode_payload(payload, chunk_size),
    )


async def export_text(
    session: Optional[SessionContext],
    converter: Converter,
    store: OutputStore,
    options: ExportOptions,
    square_pixels: bool = False,
    rendering: Optional[ConverterSettings] = None,
    on_progress: Optional[ProgressCallback] = None,
    compress_level: int = 9,
    chunk_size: int = PAYLOAD_CHUNK_SIZE,
    default_base_name: str = "ascii-video",
    now: Optional[datetime] = None,
) -> TextExport:
    """
    Export the session's video as a compressed ASCII frame stream.

    Args:
        session: Current session
        converter: ASCII rasterizer
        store: Output history
        options: Validated export parameters
        square_pixels: Round-pixel variant
        rendering: Converter settings for this export (None keeps the converter's own)
        on_progress: Progress callback
        compress_level: gzip level
        chunk_size: Payload embedding chunk size
        default_base_name: Base name used when the source has none
        now: Export time (defaults to now, UTC)

    Returns:
        TextExport with the payload and its history record

    Raises:
        ExportValidationError: Before any work, on invalid input
        ExportBusyError: If an export is already running
        ConversionError: If the converter fails or returns mis-sized frames
    """
    validate_export(session, options)

    with _exclusive(session):
        try:
            result = await converter.convert_to_text(
                session.video_path,
                _conversion_options(options, square_pixels, rendering),
                on_progress,
            )
        except Exception as e:
            logger.error(f"Conversion error: {e}")
            raise ConversionError(str(e) or "Unknown error occurred") from e

        header = ContainerHeader(
            fps=result.fps,
            width=result.ascii_width,
            height=result.ascii_height,
            frame_count=len(result.text_frames),
            duration=result.duration,
            rle=True,
        )
        try:
            lines = container_lines(header, result.text_frames)
        except ContainerFormatError as e:
            logger.error(f"Converter produced an invalid frame stream: {e}")
            raise ConversionError(str(e)) from e
        payload = await asyncio.to_thread(compress_lines, lines, compress_level)

        if now is None:
            now = datetime.now(timezone.utc)
        base_name = session.base_name or default_base_name
        filename = export_filename(base_name, square_pixels, now)
        record = build_record(result, base_name, filename, payload, square_pixels, now, chunk_size)

        saved = await asyncio.to_thread(store.save, record)
        if not saved:
            logger.warning(f"Export {filename} not saved to history; download still available")

    logger.info(
        f"Text export complete: {filename} ({header.frame_count} frames, {len(payload)} bytes)"
    )
    return TextExport(filename=filename, payload=payload, record=record, saved=saved)


async def export_video(
    session: Optional[SessionContext],
    encoder: Encoder,
    options: ExportOptions,
    rendering: Optional[ConverterSettings] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> VideoExport:
    """
    Export the session's video as an encoded ASCII video.

    Raises:
        ExportValidationError: Before any work, on invalid input
        ExportBusyError: If an export is already running
        ConversionError: If the encoder fails
    """
    validate_export(session, options)

    with _exclusive(session):
        try:
            result = await encoder.convert_to_mp4(
                session.video_path,
                _conversion_options(options, rendering=rendering),
                on_progress,
            )
        except Exception as e:
            logger.error(f"Encoding error: {e}")
            raise ConversionError(str(e) or "Unknown error occurred") from e

    logger.info(f"Video export complete: {result.format}, {len(result.blob)} bytes")
    return VideoExport(
        filename=VIDEO_FILENAMES[result.format],
        blob=result.blob,
        format=result.format,
    )
