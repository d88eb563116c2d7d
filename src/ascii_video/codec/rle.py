"""
Frame Codec
===========

Run-length encoding of one ASCII frame matrix.

Encoding:
    The frame is flattened in row-major order and scanned left to right.
    Each maximal run of structurally-equal cells becomes one entry:
        - run of length 1  -> the bare Cell
        - run of length >= 2 -> (count, Cell)

Decoding:
    Entries are expanded back into a flat cell sequence and reshaped into
    rows of `width` cells.

Laws:
    decode_frame(encode_frame(F), frame_width(F)) == F
    len(encode_frame(F)) <= cell_count(F)

Design Rules:
    - Cell comparison goes through cells_equal, never through serialization
    - Any malformed input fails the WHOLE frame with CorruptFrameError
    - Never returns a truncated or padded matrix
"""

import logging
from typing import Any, List, Optional, Tuple, Union

from ascii_video.models.cell import CELL_KEYS, AsciiFrame, Cell, cells_equal


logger = logging.getLogger(__name__)


RunEntry = Union[Cell, Tuple[int, Cell]]
EncodedFrame = List[RunEntry]


class CorruptFrameError(Exception):
    """Raised when encoded frame data cannot be decoded into a frame."""
    pass


def encode_frame(frame: AsciiFrame) -> EncodedFrame:
    """
    Run-length encode a frame.

    Args:
        frame: Rows of cells

    Returns:
        Encoded run entries in row-major order
    """
    flat = [cell for row in frame for cell in row]
    encoded: EncodedFrame = []

    i = 0
    total = len(flat)
    while i < total:
        cell = flat[i]
        count = 1
        while i + count < total and cells_equal(flat[i + count], cell):
            count += 1

        if count > 1:
            encoded.append((count, cell))
        else:
            encoded.append(cell)
        i += count

    return encoded


def _check_count(count: Any, position: int) -> int:
    # bool is an int subclass and never a valid count
    if isinstance(count, bool) or not isinstance(count, int):
        raise CorruptFrameError(
            f"Run entry {position}: count must be an integer, got {count!r}"
        )
    if count < 1:
        raise CorruptFrameError(
            f"Run entry {position}: count must be positive, got {count}"
        )
    return count


def decode_frame(
    encoded: EncodedFrame,
    width: int,
    height: Optional[int] = None,
) -> AsciiFrame:
    """
    Expand run entries and reshape them into rows.

    Args:
        encoded: Run entries as produced by encode_frame
        width: Row width in cells
        height: Expected row count, checked when given

    Returns:
        The decoded frame

    Raises:
        CorruptFrameError: On a malformed entry, a non-positive count,
            or a cell total that does not fit the requested shape
    """
    limit = width * height if height is not None and width > 0 else None
    flat: List[Cell] = []

    for position, entry in enumerate(encoded):
        if isinstance(entry, Cell):
            flat.append(entry)
        elif isinstance(entry, tuple) and len(entry) == 2:
            count = _check_count(entry[0], position)
            cell = entry[1]
            if not isinstance(cell, Cell):
                raise CorruptFrameError(
                    f"Run entry {position}: expected a Cell, got {type(cell).__name__}"
                )
            flat.extend([cell] * count)
        else:
            raise CorruptFrameError(
                f"Run entry {position}: malformed entry {entry!r}"
            )

        if limit is not None and len(flat) > limit:
            raise CorruptFrameError(
                f"Frame overflows {width}x{height} at run entry {position}"
            )

    if not flat:
        if height:
            raise CorruptFrameError(f"Empty frame data, expected {height} rows")
        return []

    if width <= 0:
        raise CorruptFrameError(f"Invalid width {width} for {len(flat)} cells")

    if len(flat) % width != 0:
        raise CorruptFrameError(
            f"{len(flat)} cells do not fill rows of width {width}"
        )

    rows = [flat[i:i + width] for i in range(0, len(flat), width)]

    if height is not None and len(rows) != height:
        raise CorruptFrameError(f"Expected {height} rows, decoded {len(rows)}")

    return rows


# =============================================================================
# Wire Form
# =============================================================================

def frame_to_wire(encoded: EncodedFrame) -> List[Any]:
    """
    Convert run entries to their JSON-ready form.

    A bare cell becomes a JSON object, a run becomes [count, object].
    """
    wire: List[Any] = []
    for entry in encoded:
        if isinstance(entry, Cell):
            wire.append(entry.to_wire())
        else:
            count, cell = entry
            wire.append([count, cell.to_wire()])
    return wire


def _cell_from_wire(data: Any, position: int) -> Cell:
    if not isinstance(data, dict) or set(data) != CELL_KEYS:
        raise CorruptFrameError(f"Run entry {position}: cell shape mismatch {data!r}")

    char = data["char"]
    color = data["color"]
    if not isinstance(char, str):
        raise CorruptFrameError(f"Run entry {position}: char must be a string")
    if color is not None and not isinstance(color, str):
        raise CorruptFrameError(f"Run entry {position}: color must be a string or null")

    return Cell(char=char, color=color)


def frame_from_wire(data: Any) -> EncodedFrame:
    """
    Parse the JSON form of an encoded frame.

    Raises:
        CorruptFrameError: If the data is not a list of valid run entries
    """
    if not isinstance(data, list):
        raise CorruptFrameError(f"Encoded frame must be a list, got {type(data).__name__}")

    encoded: EncodedFrame = []
    for position, entry in enumerate(data):
        if isinstance(entry, dict):
            encoded.append(_cell_from_wire(entry, position))
        elif isinstance(entry, list) and len(entry) == 2:
            count = _check_count(entry[0], position)
            encoded.append((count, _cell_from_wire(entry[1], position)))
        else:
            raise CorruptFrameError(f"Run entry {position}: malformed entry {entry!r}")

    return encoded
