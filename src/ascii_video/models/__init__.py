"""
Data Models
===========

Data models for ascii-video.

This module re-exports all data models for convenient access.

Models:
    Frames:
        - Cell: One character cell (char + optional color)
        - AsciiFrame: Rows of cells

    Container:
        - ContainerHeader: Line 0 of a .jsonl.gz container

    Output:
        - OutputRecord: One persisted export result

    Options:
        - ExportOptions: Validated export parameters
        - RenderingOptions: Per-request converter overrides
        - PreviewRequest: Preview window adjustments
"""

from ascii_video.models.cell import AsciiFrame, Cell, cells_equal
from ascii_video.models.container import ContainerHeader
from ascii_video.models.output import OutputRecord, generate_id
from ascii_video.models.options import ExportOptions, PreviewRequest, RenderingOptions

__all__ = [
    # Frames
    "Cell",
    "AsciiFrame",
    "cells_equal",
    # Container
    "ContainerHeader",
    # Output
    "OutputRecord",
    "generate_id",
    # Options
    "ExportOptions",
    "PreviewRequest",
    "RenderingOptions",
]
