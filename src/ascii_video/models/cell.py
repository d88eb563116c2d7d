"""
Cell and Frame Models
=====================

Character cells and the ASCII frame matrix built from them.

An AsciiFrame is a list of rows, each row a list of Cells. All rows of a
frame have the same length (the frame width).

Design Rules:
    - Cells are immutable
    - Cell equality is structural over the named fields (see cells_equal)
    - The wire form of a cell is a JSON object with BOTH keys present
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True, slots=True)
class Cell:
    """
    One character cell of an ASCII frame.

    Attributes:
        char: The rendered character (normally a single character)
        color: Optional "#rrggbb" color of the cell, None for uncolored
    """

    char: str
    color: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        """JSON-ready form of the cell."""
        return {"char": self.char, "color": self.color}


AsciiFrame = List[List[Cell]]


CELL_KEYS = frozenset({"char", "color"})


def cells_equal(a: Cell, b: Cell) -> bool:
    """Structural equality of two cells, field by field."""
    return a.char == b.char and a.color == b.color


def frame_width(frame: AsciiFrame) -> int:
    """Width of a frame in cells (0 for an empty frame)."""
    return len(frame[0]) if frame else 0


def frame_height(frame: AsciiFrame) -> int:
    """Height of a frame in rows."""
    return len(frame)


def cell_count(frame: AsciiFrame) -> int:
    """Total number of cells in a frame."""
    return sum(len(row) for row in frame)


def frame_to_text(frame: AsciiFrame) -> List[str]:
    """Render a frame as plain text lines, dropping colors."""
    return ["".join(cell.char for cell in row) for row in frame]
