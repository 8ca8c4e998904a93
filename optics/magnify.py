"""
Liquid Glass — Magnifying Field Rasterizer
Radial displacement over the whole canvas, used as a lens pre-pass.

The bitmap only stores direction and relative magnitude (outward, growing
with distance from the centre, capped at 1). Whether the lens magnifies or
shrinks is decided by the sign of the filter's scale.
"""

import numpy as np

from core.safety import ConfigurationError, MAX_CANVAS_PX
from optics.displacement import VectorBitmap


def rasterize_magnifying(canvas_width: float, canvas_height: float,
                         dpr: float = 1.0) -> VectorBitmap:
    """Rasterize the radial lens field.

    Args:
        canvas_width, canvas_height: Canvas size (CSS px).
        dpr: Device pixel ratio.

    Returns:
        VectorBitmap with max_displacement = 1.
    """
    if canvas_width <= 0 or canvas_height <= 0 or dpr <= 0:
        raise ConfigurationError(
            f"Magnifying canvas must be positive, got {canvas_width}x{canvas_height} @ {dpr}x"
        )
    bw = int(np.floor(canvas_width * dpr))
    bh = int(np.floor(canvas_height * dpr))
    if bw < 1 or bh < 1 or bw > MAX_CANVAS_PX or bh > MAX_CANVAS_PX:
        raise ConfigurationError(f"Magnifying buffer {bw}x{bh} is out of range")

    xs = (np.arange(bw, dtype=np.float64) + 0.5 - bw / 2.0) / (bw / 2.0)
    ys = (np.arange(bh, dtype=np.float64) + 0.5 - bh / 2.0) / (bh / 2.0)
    rx, ry = np.meshgrid(xs, ys)

    length = np.hypot(rx, ry)
    cap = np.where(length > 1.0, 1.0 / np.maximum(length, 1e-12), 1.0)
    return VectorBitmap(dx=rx * cap, dy=ry * cap, max_displacement=1.0)
