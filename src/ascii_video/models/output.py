"""
Output Record Schema
====================

Pydantic model for one persisted export result.

Persistence Contract (one entry of the stored JSON array):
    {
        "id": "m1x2y3z4abc123def",
        "name": "clip-round",
        "filename": "clip-round-2026-10-18T09-45-12.jsonl.gz",
        "type": "Round Pixels",
        "dimensions": "300x84",
        "fps": 10,
        "frameCount": 120,
        "duration": 12.0,
        "size": 48211,
        "timestamp": 1792316712345,
        "data": "<base64 of the gzip payload>"
    }

Identity is the id, which is time-based plus a random suffix. It is
practically unique, NOT cryptographically unique.
"""

import secrets
import string
import time
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


TEXT_TYPE = "Text"
ROUND_PIXELS_TYPE = "Round Pixels"

_BASE36 = string.digits + string.ascii_lowercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_id(now_ms: Optional[int] = None) -> str:
    """
    Generate a record id: base-36 milliseconds plus 9 random base-36 chars.

    Args:
        now_ms: Epoch milliseconds to use instead of the current time

    Returns:
        Practically-unique id string
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return _to_base36(now_ms) + suffix


class OutputRecord(BaseModel):
    """
    One export result kept in the output history.

    Attributes:
        id: Practically-unique record id
        name: Display name ("{base}" or "{base}-round")
        filename: Download filename of the payload
        type: "Text" or "Round Pixels"
        dimensions: "{width}x{height}" in cells
        fps: Exported frames per second
        frame_count: Number of frames in the payload
        duration: Source duration in seconds
        size: Compressed payload size in bytes
        timestamp: Creation time in epoch milliseconds
        data: Base64 of the compressed .jsonl.gz payload
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1, description="Record id")
    name: str = Field(..., description="Display name")
    filename: str = Field(..., description="Download filename")
    type: Literal["Text", "Round Pixels"] = Field(
        default=TEXT_TYPE,
        description="Export variant",
    )
    dimensions: str = Field(..., description="Frame size as WIDTHxHEIGHT")
    fps: int = Field(..., ge=1, description="Frames per second")
    frame_count: int = Field(..., ge=0, alias="frameCount")
    duration: float = Field(..., ge=0, description="Duration in seconds")
    size: int = Field(..., ge=0, description="Compressed size in bytes")
    timestamp: int = Field(..., ge=0, description="Epoch milliseconds")
    data: str = Field(default="", description="Base64 compressed payload")

    def to_wire(self) -> Dict[str, Any]:
        """JSON-ready dict as stored."""
        return self.model_dump(by_alias=True)

    def summary(self) -> Dict[str, Any]:
        """Metadata without the embedded payload."""
        return self.model_dump(by_alias=True, exclude={"data"})
