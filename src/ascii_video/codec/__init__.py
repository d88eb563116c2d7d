"""
Codec Module
============

Frame serialization for exports.

This module provides:
    - encode_frame / decode_frame: Run-length codec for one ASCII frame
    - container_lines / compress_lines: .jsonl.gz container writer
    - read_container: .jsonl.gz container reader (replay)
    - export_filename / encode_payload: Naming and text-safe embedding

Example:
    from ascii_video.codec import container_lines, compress_lines, read_container

    lines = container_lines(header, frames)
    payload = compress_lines(lines)
    header, frames = read_container(payload)
"""

from ascii_video.codec.rle import (
    CorruptFrameError,
    EncodedFrame,
    decode_frame,
    encode_frame,
    frame_from_wire,
    frame_to_wire,
)
from ascii_video.codec.container import (
    ContainerFormatError,
    compress_lines,
    container_lines,
    decode_payload,
    decompress_text,
    encode_payload,
    export_filename,
    read_container,
    serialize_container,
    source_base_name,
)


__all__ = [
    "CorruptFrameError",
    "EncodedFrame",
    "encode_frame",
    "decode_frame",
    "frame_to_wire",
    "frame_from_wire",
    "ContainerFormatError",
    "container_lines",
    "serialize_container",
    "compress_lines",
    "decompress_text",
    "read_container",
    "source_base_name",
    "export_filename",
    "encode_payload",
    "decode_payload",
]
