"""
Liquid Glass — Configuration Models

Pydantic models for the parameter surface of a glass filter.
Each field maps 1:1 to a reactive source in core.glass.GlassFilter.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from core.safety import ConfigurationError, MAX_BLUR, MAX_DPR, validate_filter_id

DEFAULT_SPECULAR_SATURATION = 4.0
DEFAULT_FILTER_ID = "liquid-glass"


def _require_profile(name: str) -> str:
    from optics import PROFILES

    if name not in PROFILES:
        raise ValueError(
            f"Unknown profile '{name}'. "
            f"Choose from: {', '.join(sorted(PROFILES))}"
        )
    return name


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ColorScheme(str, Enum):
    """Brightness preset applied before the blur."""
    LIGHT = "light"  # lift + slight contrast
    DARK = "dark"    # darken


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class OpticalParameters(BaseModel):
    """Inputs of the refraction field solver.

    Immutable; a change to any field is a new evaluation.
    """
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    thickness: float = Field(ge=0, description="Glass thickness (CSS px).")
    bezel_width: float = Field(ge=0, description="Width of the sloped edge (CSS px).")
    refractive_index: float = Field(
        default=1.5, ge=1.0,
        description="Index of refraction of the glass. 1.0 = no refraction.",
    )
    profile: str = Field(default="convex", description="Bezel height profile name.")

    @field_validator("profile")
    @classmethod
    def validate_profile(cls, value: str) -> str:
        return _require_profile(value)


class GlassConfig(BaseModel):
    """Complete parameter surface of one glass filter.

    Geometry is in CSS px. `canvas_width`/`canvas_height` default to the
    shape size; the shape is centred in the canvas. `magnifying_scale=None`
    removes the magnification stage entirely; `color_scheme=None` removes
    the colour matrix.
    """
    model_config = ConfigDict(allow_inf_nan=False, extra="forbid")

    filter_id: str = Field(default=DEFAULT_FILTER_ID, description="Id of the <filter> element.")

    # Geometry
    width: float = Field(gt=0, description="Shape width.")
    height: float = Field(gt=0, description="Shape height.")
    radius: float = Field(default=0.0, ge=0, description="Corner radius.")
    canvas_width: float | None = Field(default=None, gt=0, description="Canvas width.")
    canvas_height: float | None = Field(default=None, gt=0, description="Canvas height.")
    dpr: float = Field(default=1.0, gt=0, le=MAX_DPR, description="Device pixel ratio.")

    # Optics
    glass_thickness: float = Field(default=50.0, ge=0)
    bezel_width: float = Field(default=16.0, ge=0)
    refractive_index: float = Field(default=1.5, ge=1.0)
    profile: str = Field(default="convex")

    # Filter controls
    blur: float = Field(default=0.0, ge=0, le=MAX_BLUR, description="Backdrop blur stdDeviation.")
    scale_ratio: float = Field(
        default=1.0,
        description="Multiplier on the measured max displacement (pressed/resting widgets).",
    )
    specular_opacity: float = Field(default=0.4, ge=0, le=1)
    specular_saturation: float = Field(default=DEFAULT_SPECULAR_SATURATION, ge=0)
    magnifying_scale: float | None = Field(default=None)
    color_scheme: ColorScheme | None = Field(default=None)

    @field_validator("profile")
    @classmethod
    def validate_profile(cls, value: str) -> str:
        return _require_profile(value)

    @model_validator(mode="after")
    def validate_config(self) -> "GlassConfig":
        try:
            validate_filter_id(self.filter_id)
        except ConfigurationError as e:
            raise ValueError(str(e))
        return self


def load_config(data: dict | None = None, **overrides) -> GlassConfig:
    """Build a GlassConfig, reporting invalid values as ConfigurationError.

    Raises:
        ConfigurationError: With pydantic's message, original error chained.
    """
    merged = {**(data or {}), **overrides}
    try:
        return GlassConfig(**merged)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e
