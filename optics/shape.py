"""
Liquid Glass — Shape Geometry
Rounded-rectangle silhouette shared by the rasterizers.

Geometry is given in CSS pixels and rasterized at `dpr` device pixels per
CSS pixel. The shape is centred in its canvas.
"""

import math
from dataclasses import dataclass

import numpy as np

from core.safety import ConfigurationError, MAX_CANVAS_PX


@dataclass(frozen=True)
class ShapeGeometry:
    """Shape + canvas description.

    Configuration:
        width, height: Shape size (CSS px), both > 0.
        radius: Corner radius (CSS px), >= 0. Clamped to half the short side.
        canvas_width, canvas_height: Canvas size (CSS px). Default to the
            shape size.
        dpr: Device pixel ratio (> 0).
    """
    width: float
    height: float
    radius: float = 0.0
    canvas_width: float | None = None
    canvas_height: float | None = None
    dpr: float = 1.0

    def __post_init__(self):
        if self.canvas_width is None:
            object.__setattr__(self, "canvas_width", self.width)
        if self.canvas_height is None:
            object.__setattr__(self, "canvas_height", self.height)

        for name in ("width", "height", "radius", "canvas_width", "canvas_height", "dpr"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise ConfigurationError(f"{name} must be finite, got {value}")
        if self.width <= 0 or self.height <= 0:
            raise ConfigurationError(
                f"Shape must have a positive area, got {self.width}x{self.height}"
            )
        if self.radius < 0:
            raise ConfigurationError(f"Corner radius must be >= 0, got {self.radius}")
        if self.dpr <= 0:
            raise ConfigurationError(f"Device pixel ratio must be > 0, got {self.dpr}")
        bw, bh = self.buffer_size
        if bw < 1 or bh < 1:
            raise ConfigurationError(
                f"Canvas {self.canvas_width}x{self.canvas_height} @ {self.dpr}x "
                f"rasterizes to an empty buffer"
            )
        if bw > MAX_CANVAS_PX or bh > MAX_CANVAS_PX:
            raise ConfigurationError(
                f"Canvas buffer {bw}x{bh} exceeds {MAX_CANVAS_PX}px limit"
            )

    @property
    def buffer_size(self) -> tuple[int, int]:
        """(width, height) of the device-pixel buffer."""
        return (int(math.floor(self.canvas_width * self.dpr)),
                int(math.floor(self.canvas_height * self.dpr)))

    @property
    def effective_radius(self) -> float:
        return min(self.radius, self.width / 2, self.height / 2)


def pixel_grid(geometry: ShapeGeometry) -> tuple[np.ndarray, np.ndarray]:
    """Device-pixel centre coordinates relative to the shape centre."""
    bw, bh = geometry.buffer_size
    xs = np.arange(bw, dtype=np.float64) + 0.5 - bw / 2.0
    ys = np.arange(bh, dtype=np.float64) + 0.5 - bh / 2.0
    return np.meshgrid(xs, ys)


def rounded_rect_sdf(px: np.ndarray, py: np.ndarray, half_w: float,
                     half_h: float, radius: float):
    """Signed distance + outward normal of a rounded rectangle.

    Args:
        px, py: Point coordinates relative to the rectangle centre.
        half_w, half_h: Half extents.
        radius: Corner radius, <= min(half_w, half_h).

    Returns:
        (sd, nx, ny): distance (negative inside) and the unit normal of the
        nearest boundary point. Straight edges give axis-aligned normals,
        corners give radial ones.
    """
    sx = np.where(px >= 0, 1.0, -1.0)
    sy = np.where(py >= 0, 1.0, -1.0)
    qx = np.abs(px) - (half_w - radius)
    qy = np.abs(py) - (half_h - radius)

    ox = np.maximum(qx, 0.0)
    oy = np.maximum(qy, 0.0)
    outside = np.hypot(ox, oy)
    sd = outside + np.minimum(np.maximum(qx, qy), 0.0) - radius

    corner = (qx > 0) & (qy > 0)
    safe = np.where(outside > 0, outside, 1.0)
    x_edge = qx >= qy
    nx = np.where(corner, ox / safe, np.where(x_edge, 1.0, 0.0)) * sx
    ny = np.where(corner, oy / safe, np.where(x_edge, 0.0, 1.0)) * sy
    return sd, nx, ny


def shape_distance(geometry: ShapeGeometry):
    """Rasterize the shape SDF at device resolution.

    Returns:
        (depth, nx, ny, coverage): depth inside the shape (device px,
        negative outside), outward normals, and a one-pixel antialias
        coverage in [0, 1].
    """
    px, py = pixel_grid(geometry)
    dpr = geometry.dpr
    sd, nx, ny = rounded_rect_sdf(
        px, py,
        geometry.width * dpr / 2.0,
        geometry.height * dpr / 2.0,
        geometry.effective_radius * dpr,
    )
    coverage = np.clip(0.5 - sd, 0.0, 1.0)
    return -sd, nx, ny, coverage
