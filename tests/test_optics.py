"""
Liquid Glass — Optics Tests
Profiles, the refraction field solver, and the three rasterizers.

Run with: pytest tests/test_optics.py -v
"""

import math

import numpy as np
import pytest

from core.encode import decode_data_url, encode_png_data_url
from core.safety import ConfigurationError
from optics import PROFILES, DEFAULT_PROFILE, get_profile, list_profiles
from optics.profiles import convex, convex_circle, convex_squircle, concave, lip
from optics.refraction import (
    FIELD_SAMPLES,
    refract_angle,
    critical_angle,
    solve_refraction_field,
    max_displacement,
)
from optics.shape import ShapeGeometry, shape_distance
from optics.displacement import NEUTRAL, rasterize_displacement, decode_vector_rgba
from optics.specular import rasterize_specular
from optics.magnify import rasterize_magnifying


# ===========================================================================
# Profiles
# ===========================================================================

class TestProfiles:

    @pytest.mark.parametrize("name", sorted(PROFILES))
    def test_heights_stay_in_unit_range(self, name):
        t = np.linspace(0, 1, 257)
        h = get_profile(name)(t)
        assert h.shape == t.shape
        assert np.all(h >= 0.0)
        assert np.all(h <= 1.0)

    def test_endpoints(self):
        assert convex(0.0) == pytest.approx(0.0)
        assert convex(1.0) == pytest.approx(1.0)
        assert convex_circle(0.0) == pytest.approx(0.0)
        assert convex_circle(1.0) == pytest.approx(1.0)
        assert convex_squircle(1.0) == pytest.approx(1.0)
        assert concave(0.0) == pytest.approx(1.0)
        assert concave(1.0) == pytest.approx(0.0)
        assert lip(0.0) == pytest.approx(0.0)

    def test_inputs_outside_bezel_are_clamped(self):
        assert convex(-0.5) == pytest.approx(0.0)
        assert convex(1.5) == pytest.approx(1.0)

    def test_convex_is_point_symmetric(self):
        t = np.linspace(0, 1, 101)
        np.testing.assert_allclose(convex(t) + convex(1 - t), 1.0, atol=1e-12)

    def test_registry_lists_default_first(self):
        names = [p["name"] for p in list_profiles()]
        assert names[0] == DEFAULT_PROFILE
        assert sorted(names) == sorted(PROFILES)

    def test_unknown_profile(self):
        with pytest.raises(KeyError, match="Unknown profile"):
            get_profile("wobbly")


# ===========================================================================
# Refraction
# ===========================================================================

class TestRefraction:

    def test_normal_incidence_is_unbent(self):
        assert refract_angle(0.0) == pytest.approx(0.0)

    def test_snell(self):
        theta = 0.4
        out = refract_angle(theta, 1.0, 1.5)
        assert math.sin(theta) == pytest.approx(1.5 * math.sin(out))

    def test_total_internal_reflection_is_clamped(self):
        """Past the critical angle the refracted angle saturates at pi/2."""
        assert critical_angle(1.5, 1.0) == pytest.approx(math.asin(1 / 1.5))
        out = refract_angle(1.2, n_from=1.5, n_to=1.0)
        assert not np.isnan(out)
        assert out == pytest.approx(math.pi / 2)

    def test_critical_angle_entering_denser_medium(self):
        assert critical_angle(1.0, 1.5) == pytest.approx(math.pi / 2)

    def test_incidence_past_critical_angle_saturates_with_sign(self):
        limit = critical_angle(1.5, 1.0)
        incident = np.array([-1.4, -limit, limit, 1.4])
        out = refract_angle(incident, n_from=1.5, n_to=1.0)
        np.testing.assert_allclose(out, [-math.pi / 2, -math.pi / 2, math.pi / 2, math.pi / 2], atol=1e-6)

    def test_zero_bezel_gives_zero_field(self):
        field = solve_refraction_field(47, 0, convex, 1.5)
        assert field.shape == (FIELD_SAMPLES,)
        assert np.all(field == 0)
        assert max_displacement(field) == 0.0

    def test_unit_index_gives_zero_field(self):
        field = solve_refraction_field(47, 19, convex, 1.0)
        assert np.all(field == 0)

    def test_max_bounds_every_sample_and_is_reached(self):
        field = solve_refraction_field(47, 19, convex_squircle, 1.5)
        peak = max_displacement(field)
        assert np.all(np.abs(field) <= peak)
        assert np.any(np.abs(field) == peak)

    def test_switch_field_is_symmetric_and_peaks_mid_bezel(self):
        """47px glass, 19px convex bezel, n=1.5."""
        field = solve_refraction_field(47, 19, convex, 1.5)
        mag = np.abs(field)
        np.testing.assert_allclose(field, field[::-1], rtol=1e-6, atol=1e-9)
        half = FIELD_SAMPLES // 2
        assert np.all(np.diff(mag[:half]) > 0)
        assert np.all(np.diff(mag[half:]) < 0)

    def test_convex_bends_toward_centre(self):
        field = solve_refraction_field(47, 19, convex, 1.5)
        assert np.all(field <= 0)

    def test_concave_bends_away_from_centre(self):
        field = solve_refraction_field(47, 19, concave, 1.5)
        assert np.all(field >= 0)

    def test_thicker_glass_shifts_more(self):
        thin = max_displacement(solve_refraction_field(20, 19, convex, 1.5))
        thick = max_displacement(solve_refraction_field(80, 19, convex, 1.5))
        assert thick > thin

    @pytest.mark.parametrize("kwargs", [
        {"thickness": -1, "bezel_width": 19, "refractive_index": 1.5},
        {"thickness": 47, "bezel_width": -1, "refractive_index": 1.5},
        {"thickness": 47, "bezel_width": 19, "refractive_index": 0.9},
    ])
    def test_invalid_inputs(self, kwargs):
        with pytest.raises(ConfigurationError):
            solve_refraction_field(profile=convex, **kwargs)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            solve_refraction_field(-1, 19, convex, 1.5)


# ===========================================================================
# Geometry
# ===========================================================================

class TestShapeGeometry:

    def test_canvas_defaults_to_shape(self):
        g = ShapeGeometry(width=40, height=30)
        assert (g.canvas_width, g.canvas_height) == (40, 30)
        assert g.buffer_size == (40, 30)

    def test_dpr_scales_buffer(self):
        assert ShapeGeometry(width=40, height=30, dpr=2).buffer_size == (80, 60)

    def test_radius_clamped_to_half_short_side(self):
        assert ShapeGeometry(width=40, height=30, radius=100).effective_radius == 15

    @pytest.mark.parametrize("kwargs", [
        {"width": 0, "height": 30},
        {"width": 40, "height": -1},
        {"width": 40, "height": 30, "radius": -2},
        {"width": 40, "height": 30, "dpr": 0},
        {"width": float("nan"), "height": 30},
        {"width": 40, "height": 30, "canvas_width": 10000},
    ])
    def test_invalid_geometry(self, kwargs):
        with pytest.raises(ConfigurationError):
            ShapeGeometry(**kwargs)


# ===========================================================================
# Displacement rasterizer
# ===========================================================================

@pytest.fixture
def padded_geometry():
    """Shape smaller than its canvas, so there is exterior to check."""
    return ShapeGeometry(width=40, height=30, radius=10, canvas_width=60, canvas_height=50)


BAND_GEOMETRIES = {
    "padded": dict(width=40, height=30, radius=10, canvas_width=60, canvas_height=50),
    "square_corners": dict(width=40, height=30, radius=0, canvas_width=60, canvas_height=50),
    "radius_clamped": dict(width=40, height=30, radius=100, canvas_width=60, canvas_height=50),
    "canvas_crops_shape": dict(width=40, height=30, radius=10, canvas_width=30, canvas_height=20),
    "dpr_1.5": dict(width=40, height=30, radius=10, canvas_width=60, canvas_height=50, dpr=1.5),
    "dpr_2.25": dict(width=40, height=30, radius=12, canvas_width=55, canvas_height=41, dpr=2.25),
}


@pytest.fixture(params=list(BAND_GEOMETRIES.values()), ids=list(BAND_GEOMETRIES))
def band_geometry(request):
    return ShapeGeometry(**request.param)


class TestDisplacement:

    def _raster(self, geometry, bezel=6.0):
        field = solve_refraction_field(30, bezel, convex, 1.5)
        return rasterize_displacement(field, max_displacement(field), geometry, bezel)

    def test_zero_outside_bezel_band(self, band_geometry):
        bitmap = self._raster(band_geometry)
        depth, _, _, _ = shape_distance(band_geometry)
        # depth is in device px
        outside = (depth < 0) | (depth > 6.0 * band_geometry.dpr)
        assert bitmap.shape == band_geometry.buffer_size[::-1]
        assert np.all(bitmap.dx[outside] == 0)
        assert np.all(bitmap.dy[outside] == 0)
        assert np.any(bitmap.dx != 0)
        assert np.any(bitmap.dy != 0)

    def test_magnitude_never_exceeds_max(self, band_geometry):
        bitmap = self._raster(band_geometry)
        assert np.all(np.hypot(bitmap.dx, bitmap.dy) <= bitmap.max_displacement + 1e-9)

    def test_png_round_trip_within_quantization(self, band_geometry):
        bitmap = self._raster(band_geometry)
        rgba = decode_data_url(encode_png_data_url(bitmap.to_rgba()))
        assert rgba.shape == bitmap.shape + (4,)
        decoded = decode_vector_rgba(rgba, bitmap.max_displacement)
        tol = bitmap.max_displacement / 127
        assert np.max(np.abs(decoded.dx - bitmap.dx)) <= tol
        assert np.max(np.abs(decoded.dy - bitmap.dy)) <= tol

    def test_straight_edges_are_axis_aligned(self, padded_geometry):
        bitmap = self._raster(padded_geometry)
        h, w = bitmap.shape
        mid = h // 2
        left_band = slice(10, 16)  # canvas x 10..16 is the shape's left bezel
        assert np.all(bitmap.dy[mid, left_band] == 0)
        # convex bezel pulls inward: left edge pixels sample from the right
        assert np.all(bitmap.dx[mid, left_band] >= 0)
        assert np.any(bitmap.dx[mid, left_band] > 0)

    def test_zero_max_encodes_neutral(self, padded_geometry):
        field = np.zeros(FIELD_SAMPLES)
        rgba = rasterize_displacement(field, 0.0, padded_geometry, 6).to_rgba()
        assert np.all(rgba[:, :, 0] == NEUTRAL)
        assert np.all(rgba[:, :, 1] == NEUTRAL)
        assert np.all(rgba[:, :, 3] == 255)

    def test_dpr_doubles_resolution(self):
        g = ShapeGeometry(width=40, height=30, radius=10, dpr=2)
        assert self._raster(g).shape == (60, 80)


# ===========================================================================
# Specular rasterizer
# ===========================================================================

class TestSpecular:

    def test_only_rim_is_lit(self, padded_geometry):
        bitmap = rasterize_specular(padded_geometry)
        depth, _, _, _ = shape_distance(padded_geometry)
        off_rim = (depth < 0) | (depth > 2.0)
        assert np.all(bitmap.alpha[off_rim] == 0)
        assert np.all(bitmap.intensity[off_rim] == 0)
        assert bitmap.alpha.max() > 0
        assert bitmap.alpha.max() <= 1.0

    def test_edge_facing_light_is_brighter(self):
        """Light at 60 degrees: horizontal edges face it more than vertical ones."""
        g = ShapeGeometry(width=100, height=100)
        bitmap = rasterize_specular(g)
        top = bitmap.intensity[0, 50]
        left = bitmap.intensity[50, 0]
        assert top > left > 0

    def test_zero_intensity_is_blank(self, padded_geometry):
        bitmap = rasterize_specular(padded_geometry, intensity=0)
        assert np.all(bitmap.to_rgba()[:, :, 3] == 0)


# ===========================================================================
# Magnifying rasterizer
# ===========================================================================

class TestMagnifying:

    def test_radial_and_capped(self):
        bitmap = rasterize_magnifying(64, 48)
        assert bitmap.shape == (48, 64)
        assert bitmap.max_displacement == 1.0
        assert np.all(np.hypot(bitmap.dx, bitmap.dy) <= 1.0 + 1e-12)
        # centre is still, edges point outward
        assert abs(bitmap.dx[24, 32]) < 0.05
        assert bitmap.dx[24, -1] > 0.9
        assert bitmap.dx[24, 0] < -0.9
        assert bitmap.dy[0, 32] < -0.9

    def test_invalid_size(self):
        with pytest.raises(ConfigurationError):
            rasterize_magnifying(0, 48)
