"""
Container Format
================

Newline-delimited JSON frame streams, gzip-compressed (.jsonl.gz).

Layout (before compression):
    line 0:               ContainerHeader
    lines 1..frameCount:  encoded frames, in original temporal order

Lines are joined with "\\n", with no trailing newline and no blank lines.
The persisted and downloaded artifact is ALWAYS the compressed bytes.

Filename Convention:
    {base}[-round]-{UTC timestamp, ':' and '.' -> '-', first 19 chars}.jsonl.gz
    e.g. clip-round-2026-10-18T09-45-12.jsonl.gz

Payload Embedding:
    Records embed the compressed bytes as base64. Encoding is done in
    fixed-size chunks which are concatenated, so large payloads never go
    through one oversized conversion.
"""

import base64
import binascii
import gzip
import io
import json
import logging
import re
import zlib
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from ascii_video.codec.rle import decode_frame, encode_frame, frame_from_wire, frame_to_wire
from ascii_video.models.cell import AsciiFrame, frame_height, frame_width
from ascii_video.models.container import ContainerHeader


logger = logging.getLogger(__name__)


DEFAULT_BASE_NAME = "ascii-video"
ROUND_SUFFIX = "-round"
CONTAINER_EXTENSION = ".jsonl.gz"
PAYLOAD_CHUNK_SIZE = 8192

_EXTENSION_RE = re.compile(r"\.[^/.]+$")


class ContainerFormatError(Exception):
    """Raised when a container payload is not a valid frame stream."""
    pass


def _dumps(data) -> str:
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


# =============================================================================
# Writing
# =============================================================================

def container_lines(header: ContainerHeader, frames: Iterable[AsciiFrame]) -> List[str]:
    """
    Build the uncompressed container lines.

    Args:
        header: Stream header (frame_count must match the frames)
        frames: ASCII frames in temporal order, each header.width x header.height

    Returns:
        Header line followed by one encoded line per frame

    Raises:
        ContainerFormatError: On a frame count or frame shape mismatch
    """
    lines = [_dumps(header.to_wire())]
    for index, frame in enumerate(frames):
        _check_shape(header, frame, index)
        lines.append(_dumps(frame_to_wire(encode_frame(frame))))

    if len(lines) - 1 != header.frame_count:
        raise ContainerFormatError(
            f"Header declares {header.frame_count} frames, got {len(lines) - 1}"
        )
    return lines


def _check_shape(header: ContainerHeader, frame: AsciiFrame, index: int) -> None:
    if frame_height(frame) != header.height or any(len(row) != header.width for row in frame):
        raise ContainerFormatError(
            f"Frame {index} is not {header.width}x{header.height} "
            f"(got {frame_width(frame)}x{frame_height(frame)})"
        )


def serialize_container(lines: Sequence[str]) -> str:
    """Join container lines into the newline-delimited text blob."""
    return "\n".join(lines)


def compress_lines(lines: Sequence[str], compress_level: int = 9) -> bytes:
    """
    Gzip the container text, streaming it line by line.

    Args:
        lines: Container lines as built by container_lines
        compress_level: gzip compression level (0-9)

    Returns:
        Compressed container bytes
    """
    buffer = io.BytesIO()
    with gzip.GzipFile(fileobj=buffer, mode="wb", compresslevel=compress_level, mtime=0) as gz:
        for index, line in enumerate(lines):
            if index:
                gz.write(b"\n")
            gz.write(line.encode("utf-8"))
    return buffer.getvalue()


def decompress_text(data: bytes) -> str:
    """
    Decompress a container payload to its text form.

    Raises:
        ContainerFormatError: If the bytes are not valid gzip / UTF-8
    """
    try:
        return gzip.decompress(data).decode("utf-8")
    except (OSError, EOFError, zlib.error, UnicodeDecodeError) as e:
        raise ContainerFormatError(f"Payload is not a gzip text stream: {e}")


# =============================================================================
# Reading
# =============================================================================

def parse_header(line: str) -> ContainerHeader:
    """
    Parse and validate a header line.

    Raises:
        ContainerFormatError: If the line is not a complete header
    """
    try:
        return ContainerHeader.model_validate_json(line)
    except ValidationError as e:
        raise ContainerFormatError(f"Invalid container header: {e}")


def read_container(data: bytes) -> Tuple[ContainerHeader, List[AsciiFrame]]:
    """
    Decompress and decode a container.

    Args:
        data: Compressed .jsonl.gz bytes

    Returns:
        (header, frames) with frames in temporal order

    Raises:
        ContainerFormatError: On a bad gzip stream, header, blank line,
            or frame-count mismatch
        CorruptFrameError: If any frame fails to decode
    """
    lines = decompress_text(data).split("\n")
    header = parse_header(lines[0])

    frame_lines = lines[1:]
    if len(frame_lines) != header.frame_count:
        raise ContainerFormatError(
            f"Header declares {header.frame_count} frames, found {len(frame_lines)} lines"
        )

    frames: List[AsciiFrame] = []
    for index, line in enumerate(frame_lines):
        if not line.strip():
            raise ContainerFormatError(f"Blank line at frame {index}")
        try:
            wire = json.loads(line)
        except json.JSONDecodeError as e:
            raise ContainerFormatError(f"Frame {index} is not valid JSON: {e}")
        frames.append(decode_frame(frame_from_wire(wire), header.width, header.height))

    logger.debug(f"Read container: {header.frame_count} frames, {header.width}x{header.height}")
    return header, frames


# =============================================================================
# Naming and Embedding
# =============================================================================

def source_base_name(filename: Optional[str]) -> str:
    """Strip the final extension from an uploaded filename."""
    if not filename:
        return ""
    return _EXTENSION_RE.sub("", filename)


def export_filename(
    base_name: Optional[str],
    square_pixels: bool = False,
    now: Optional[datetime] = None,
) -> str:
    """
    Build the download filename of a text export.

    Args:
        base_name: Source base name; DEFAULT_BASE_NAME when empty
        square_pixels: Whether this is the round-pixel variant
        now: Export time (defaults to the current UTC time)

    Returns:
        Filename such as "clip-round-2026-10-18T09-45-12.jsonl.gz"
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc)

    iso = now.isoformat(timespec="milliseconds")
    stamp = iso.replace(":", "-").replace(".", "-")[:19]
    suffix = ROUND_SUFFIX if square_pixels else ""
    return f"{base_name or DEFAULT_BASE_NAME}{suffix}-{stamp}{CONTAINER_EXTENSION}"


def encode_payload(data: bytes, chunk_size: int = PAYLOAD_CHUNK_SIZE) -> str:
    """
    Base64-encode a payload in fixed-size chunks.

    Chunk boundaries are kept on whole 3-byte groups, so every chunk
    encodes without padding and the concatenation equals a single-shot
    encoding.

    Args:
        data: Compressed payload
        chunk_size: Upper bound of bytes converted per step

    Returns:
        ASCII base64 text
    """
    if chunk_size < 3:
        raise ValueError("chunk_size must be >= 3")

    step = chunk_size - chunk_size % 3
    view = memoryview(data)
    parts = [
        base64.b64encode(view[i:i + step]).decode("ascii")
        for i in range(0, len(data), step)
    ]
    return "".join(parts)


def decode_payload(text: str) -> bytes:
    """
    Decode an embedded payload back to bytes.

    Raises:
        ContainerFormatError: If the text is not valid base64
    """
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ContainerFormatError(f"Embedded payload is not valid base64: {e}")
