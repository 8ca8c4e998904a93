"""
Liquid Glass — Optics
Profile registry plus the pure numpy rasterizers.
Every profile is a function: (t: float | np.ndarray) -> height
"""

from optics.profiles import convex, convex_circle, convex_squircle, concave, lip
from optics.refraction import (
    FIELD_SAMPLES,
    refract_angle,
    critical_angle,
    solve_refraction_field,
    max_displacement,
)
from optics.shape import ShapeGeometry
from optics.displacement import VectorBitmap, decode_vector_rgba, rasterize_displacement
from optics.specular import ScalarBitmap, rasterize_specular
from optics.magnify import rasterize_magnifying

DEFAULT_PROFILE = "convex"

# Profile registry: name -> function + description
PROFILES = {
    "convex": {
        "fn": convex,
        "description": "Raised-cosine shoulder, flat at rim and interior (symmetric field)",
    },
    "convex_circle": {
        "fn": convex_circle,
        "description": "Quarter-circle edge, steepest at the rim",
    },
    "convex_squircle": {
        "fn": convex_squircle,
        "description": "Superellipse edge with a flatter top than the circle",
    },
    "concave": {
        "fn": concave,
        "description": "Dished edge, pushes the background outward",
    },
    "lip": {
        "fn": lip,
        "description": "Convex rim that rolls into a concave trough",
    },
}


def get_profile(name: str):
    """Look up a profile function by name.

    Raises:
        KeyError: If the profile doesn't exist.
    """
    if name not in PROFILES:
        raise KeyError(f"Unknown profile: {name}. Available: {', '.join(sorted(PROFILES))}")
    return PROFILES[name]["fn"]


def list_profiles() -> list[dict]:
    """All profiles as [{"name", "description"}], default first."""
    names = [DEFAULT_PROFILE] + sorted(n for n in PROFILES if n != DEFAULT_PROFILE)
    return [{"name": n, "description": PROFILES[n]["description"]} for n in names]
