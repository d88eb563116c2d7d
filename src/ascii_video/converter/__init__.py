"""
Converter Module
================

ASCII rasterization and video encoding collaborators.

This module provides a black-box abstraction for rendering. The export
workflow consumes ONLY the protocols defined here.

Components:
    - Converter: Protocol for ASCII rasterizers
    - Encoder: Protocol for ASCII video encoders
    - LuminanceConverter: Default numpy + OpenCV rasterizer
"""

from ascii_video.converter.protocol import (
    ConversionOptions,
    ConversionResult,
    Converter,
    ConverterSettings,
    Encoder,
    Progress,
    ProgressCallback,
    ProgressStage,
    VideoResult,
)
from ascii_video.converter.luminance import LuminanceConverter, output_height


__all__ = [
    "Converter",
    "Encoder",
    "ConverterSettings",
    "ConversionOptions",
    "ConversionResult",
    "VideoResult",
    "Progress",
    "ProgressCallback",
    "ProgressStage",
    "LuminanceConverter",
    "output_height",
]
