"""
Conftest: shared fixtures for all Liquid Glass test modules.

1. Synthetic backdrop frames (gradients), so displacement is visible
2. Geometry / filter factories using the switch-thumb dimensions
3. Counting and failing encoders for the bitmap-encoding seam
"""

import os
import sys

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.encode import encode_png_data_url
from core.glass import GlassFilter
from optics.shape import ShapeGeometry

SWITCH_PARAMS = {
    "width": 146,
    "height": 92,
    "radius": 46,
    "bezel_width": 19,
    "glass_thickness": 47,
    "refractive_index": 1.5,
}


def _make_test_frame(width=64, height=48):
    """Generate a synthetic test frame (gradient, not blank)."""
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[:, :, 0] = np.linspace(0, 255, width, dtype=np.uint8)  # R gradient
    frame[:, :, 1] = 128  # constant G
    frame[:, :, 2] = np.linspace(255, 0, width, dtype=np.uint8)[None, :]  # B inverse
    return frame


class CountingEncoder:
    """PNG encoder that records how often it ran."""

    def __init__(self):
        self.calls = 0

    def __call__(self, rgba):
        self.calls += 1
        return encode_png_data_url(rgba)


@pytest.fixture
def test_frame():
    return _make_test_frame()


@pytest.fixture
def switch_geometry():
    return ShapeGeometry(width=146, height=92, radius=46)


@pytest.fixture
def counting_encoder():
    return CountingEncoder()


@pytest.fixture
def glass(counting_encoder):
    """Switch-thumb sized filter with a counting encoder."""
    return GlassFilter(encoder=counting_encoder, **SWITCH_PARAMS)


@pytest.fixture
def failing_encoder():
    def _fail(rgba):
        raise OSError("disk full")
    return _fail
