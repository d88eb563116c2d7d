"""
Container Header Schema
=======================

Pydantic model for line 0 of a .jsonl.gz frame-stream container.

Header Contract:
    {"fps":10,"width":2,"height":1,"frameCount":3,"duration":0.3,"rle":true}

Guarantees:
    - Exactly one header precedes the frame records
    - All six fields are present
    - rle is always true (frames are run-length encoded)
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ContainerHeader(BaseModel):
    """
    Header record of a frame-stream container.

    Attributes:
        fps: Frames per second of the exported stream
        width: Frame width in cells
        height: Frame height in rows
        frame_count: Number of frame records following the header
        duration: Source duration in seconds
        rle: Always True
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    fps: int = Field(..., ge=1, description="Frames per second")
    width: int = Field(..., ge=0, description="Frame width in cells")
    height: int = Field(..., ge=0, description="Frame height in rows")
    frame_count: int = Field(
        ...,
        ge=0,
        alias="frameCount",
        description="Number of frame records after the header",
    )
    duration: float = Field(..., ge=0, description="Duration in seconds")
    rle: Literal[True] = Field(..., description="Frames are RLE encoded")

    def to_wire(self) -> dict:
        """JSON-ready dict in wire key order."""
        return self.model_dump(by_alias=True)
