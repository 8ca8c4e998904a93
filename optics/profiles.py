"""
Liquid Glass — Surface Profiles
Height functions for the bezel cross-section.

Every profile maps a normalized bezel coordinate t (0 = outer edge of the
shape, 1 = start of the flat interior) to a height in [0, 1]. All profiles
accept scalars or numpy arrays.
"""

import numpy as np


def _unit(t):
    return np.clip(np.asarray(t, dtype=np.float64), 0.0, 1.0)


def convex(t):
    """Smooth raised-cosine shoulder. Flat at both ends, steepest mid-bezel."""
    t = _unit(t)
    return 0.5 - 0.5 * np.cos(np.pi * t)


def convex_circle(t):
    """Quarter circle: vertical at the outer edge, flat at the interior."""
    t = _unit(t)
    return np.sqrt(1.0 - (1.0 - t) ** 2)


def convex_squircle(t):
    """Superellipse (n=4) edge. Flatter top than the circle, sharper rim."""
    t = _unit(t)
    return (1.0 - (1.0 - t) ** 4) ** 0.25


def concave(t):
    """Inverted circle: the bezel dips before rising into the interior."""
    return 1.0 - convex_circle(t)


def _smootherstep(t):
    t = _unit(t)
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


def lip(t):
    """Raised lip: convex rim that blends into a concave trough."""
    mix = _smootherstep(t)
    return convex_squircle(t) * (1.0 - mix) + concave(t) * mix
