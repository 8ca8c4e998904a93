"""
Liquid Glass — Displacement Rasterizer
Projects the 1-D refraction field onto the 2-D silhouette.

The bitmap follows the feDisplacementMap convention: R carries x, G carries
y, both centred on 128 so a neutral pixel means "no shift". Values are
normalized by the field maximum; the filter's `scale` attribute restores
absolute magnitude.
"""

from dataclasses import dataclass

import numpy as np

from optics.shape import ShapeGeometry, shape_distance

NEUTRAL = 128
AMPLITUDE = 127


@dataclass
class VectorBitmap:
    """Per-pixel (dx, dy) displacement in absolute units.

    dx, dy: (H, W) float arrays.
    max_displacement: Normalization magnitude used when encoding.
    """
    dx: np.ndarray
    dy: np.ndarray
    max_displacement: float

    @property
    def shape(self) -> tuple[int, int]:
        return self.dx.shape

    def to_rgba(self) -> np.ndarray:
        """Encode into an (H, W, 4) uint8 RGBA buffer.

        Each component is clamped to [-max, max] and mapped linearly onto
        [1, 255]. A zero maximum encodes a neutral map.
        """
        h, w = self.dx.shape
        rgba = np.zeros((h, w, 4), dtype=np.uint8)
        rgba[:, :, 3] = 255
        m = float(self.max_displacement)
        if m <= 0:
            rgba[:, :, 0] = NEUTRAL
            rgba[:, :, 1] = NEUTRAL
            return rgba
        for ch, comp in enumerate((self.dx, self.dy)):
            norm = np.clip(comp, -m, m) / m
            rgba[:, :, ch] = np.rint(NEUTRAL + norm * AMPLITUDE).astype(np.uint8)
        return rgba


def decode_vector_rgba(rgba: np.ndarray, max_displacement: float) -> VectorBitmap:
    """Inverse of VectorBitmap.to_rgba (up to max/127 quantization)."""
    data = rgba.astype(np.float64)
    dx = (data[:, :, 0] - NEUTRAL) / AMPLITUDE * max_displacement
    dy = (data[:, :, 1] - NEUTRAL) / AMPLITUDE * max_displacement
    return VectorBitmap(dx=dx, dy=dy, max_displacement=max_displacement)


def rasterize_displacement(field: np.ndarray, max_displacement: float,
                           geometry: ShapeGeometry,
                           bezel_width: float) -> VectorBitmap:
    """Rasterize the bezel displacement field.

    Args:
        field: 1-D refraction field, index 0 at the outer edge.
        max_displacement: max |field|; used as the encoding scale.
        geometry: Shape, canvas and dpr.
        bezel_width: Bezel width in CSS px.

    Returns:
        VectorBitmap in absolute units (CSS px). Zero outside the bezel band.
    """
    bw, bh = geometry.buffer_size
    dx = np.zeros((bh, bw), dtype=np.float64)
    dy = np.zeros((bh, bw), dtype=np.float64)

    bezel = bezel_width * geometry.dpr
    if bezel <= 0 or max_displacement <= 0 or len(field) == 0:
        return VectorBitmap(dx=dx, dy=dy, max_displacement=max_displacement)

    depth, nx, ny, coverage = shape_distance(geometry)
    band = (depth >= 0) & (depth <= bezel)

    n = len(field)
    idx = np.clip((depth[band] / bezel * n).astype(np.int64), 0, n - 1)
    magnitude = field[idx] * coverage[band]
    dx[band] = nx[band] * magnitude
    dy[band] = ny[band] * magnitude
    return VectorBitmap(dx=dx, dy=dy, max_displacement=max_displacement)
