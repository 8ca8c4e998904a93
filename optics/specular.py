"""
Liquid Glass — Specular Rasterizer
Thin rim highlight along the silhouette, brightest where the edge faces the
light.
"""

import math
from dataclasses import dataclass

import numpy as np

from optics.shape import ShapeGeometry, shape_distance

DEFAULT_LIGHT_ANGLE = math.pi / 3
DEFAULT_RIM_WIDTH = 1.0


@dataclass
class ScalarBitmap:
    """Greyscale intensity + alpha, both (H, W) floats in [0, 1]."""
    intensity: np.ndarray
    alpha: np.ndarray

    @property
    def shape(self) -> tuple[int, int]:
        return self.intensity.shape

    def to_rgba(self) -> np.ndarray:
        h, w = self.intensity.shape
        rgba = np.empty((h, w, 4), dtype=np.uint8)
        grey = np.rint(np.clip(self.intensity, 0.0, 1.0) * 255).astype(np.uint8)
        rgba[:, :, 0] = grey
        rgba[:, :, 1] = grey
        rgba[:, :, 2] = grey
        rgba[:, :, 3] = np.rint(np.clip(self.alpha, 0.0, 1.0) * 255).astype(np.uint8)
        return rgba


def rasterize_specular(geometry: ShapeGeometry, intensity: float = 1.0,
                       light_angle: float = DEFAULT_LIGHT_ANGLE,
                       rim_width: float = DEFAULT_RIM_WIDTH) -> ScalarBitmap:
    """Rasterize the specular rim.

    The rim is a half-disc falloff of width 2 * rim_width centred rim_width
    inside the boundary, so it fades out both toward the exterior and toward
    the interior. It is weighted by |n . L| with the light direction at
    `light_angle` (radians, y up), giving a Fresnel-like band on the two
    edges facing toward and away from the light.

    Args:
        geometry: Shape, canvas and dpr.
        intensity: Overall highlight strength in [0, 1].
        light_angle: Light direction.
        rim_width: Half-width of the highlight band (CSS px).

    Returns:
        ScalarBitmap at device resolution.
    """
    bw, bh = geometry.buffer_size
    out_i = np.zeros((bh, bw), dtype=np.float64)
    out_a = np.zeros((bh, bw), dtype=np.float64)
    w = rim_width * geometry.dpr
    if w <= 0 or intensity <= 0:
        return ScalarBitmap(intensity=out_i, alpha=out_a)

    depth, nx, ny, coverage = shape_distance(geometry)
    band = (depth >= 0) & (depth <= 2.0 * w)

    lx, ly = math.cos(light_angle), math.sin(light_angle)
    # bitmap rows grow downward; flip y so the light angle reads y-up
    facing = np.abs(nx[band] * lx - ny[band] * ly)
    u = 1.0 - depth[band] / w
    rim = np.sqrt(np.clip(1.0 - u * u, 0.0, 1.0))
    coef = facing * rim

    strength = min(1.0, float(intensity))
    out_i[band] = coef * strength
    out_a[band] = coef * coef * strength * coverage[band]
    return ScalarBitmap(intensity=out_i, alpha=out_a)
