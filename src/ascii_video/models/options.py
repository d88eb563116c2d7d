"""
Export and Preview Options
==========================

Pydantic models for user-supplied export parameters and preview settings.

Validation happens BEFORE any work starts: a model that fails validation
blocks the export entirely.

Ranges:
    fps:   1 - 30
    width: 40 - 720
    skip_start_frames / skip_end_frames: >= 0

Rendering overrides (chars, noise_level, white_threshold, contrast,
exposure) are optional on every request. Omitted fields keep the
configured converter settings; an explicit `"exposure": null` selects
automatic exposure, which is not the same as `"exposure": 0`.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


RENDERING_FIELDS = ("chars", "noise_level", "white_threshold", "contrast", "exposure")


class RenderingOptions(BaseModel):
    """Per-request overrides of the converter settings."""

    chars: Optional[str] = Field(default=None, min_length=1, description="Dense-to-sparse ramp")
    noise_level: Optional[float] = Field(default=None, ge=0, le=1, description="Export noise level")
    white_threshold: Optional[int] = Field(
        default=None, ge=0, le=255, description="Luminance mapped to blank"
    )
    contrast: Optional[int] = Field(default=None, ge=0, le=400, description="Contrast percent")
    exposure: Optional[int] = Field(
        default=None, ge=-100, le=100, description="Exposure shift; null for automatic"
    )

    def rendering_overrides(self) -> Dict[str, Any]:
        """Rendering fields the request actually set."""
        overrides = {}
        for name in RENDERING_FIELDS:
            if name not in self.model_fields_set:
                continue
            value = getattr(self, name)
            # only exposure has a meaning for null
            if value is None and name != "exposure":
                continue
            overrides[name] = value
        return overrides


class ExportOptions(RenderingOptions):
    """
    Parameters of one export request.

    Attributes:
        fps: Output frames per second
        width: ASCII width in characters
        skip_start_frames: Output frames dropped from the start
        skip_end_frames: Output frames dropped from the end
    """

    fps: int = Field(default=10, ge=1, le=30, description="Output FPS")
    width: int = Field(default=300, ge=40, le=720, description="ASCII width")
    skip_start_frames: int = Field(default=0, ge=0, description="Frames skipped at start")
    skip_end_frames: int = Field(default=0, ge=0, description="Frames skipped at end")

    class Config:
        """Pydantic model configuration."""

        json_schema_extra = {
            "example": {
                "fps": 10,
                "width": 300,
                "skip_start_frames": 0,
                "skip_end_frames": 0,
                "contrast": 120,
                "exposure": 0,
            }
        }


class PreviewRequest(RenderingOptions):
    """Preview window adjustments for the current session."""

    skip_start: int = Field(default=0, ge=0, description="Sampled frames skipped at start")
    skip_end: int = Field(default=0, ge=0, description="Sampled frames skipped at end")
    position: int = Field(default=0, ge=0, description="Slider position")
    square_pixels: bool = Field(default=False, description="Round-pixel preview")
    width: int = Field(default=300, ge=40, le=720, description="ASCII width")
