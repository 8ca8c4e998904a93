"""
Liquid Glass — Refraction Field Solver
Turns a bezel height profile into a 1-D field of lateral ray shifts.

The viewer looks straight down through the glass. At each sample across the
bezel the surface tilts by the profile slope; the ray refracts on entry and
travels through the glass thickness, landing shifted sideways. Positive
values point away from the shape centre.
"""

import math

import numpy as np

from core.safety import ConfigurationError

FIELD_SAMPLES = 128
SLOPE_EPSILON = 1e-4


def refract_angle(incident, n_from: float = 1.0, n_to: float = 1.5):
    """Snell's law on signed angles (radians, measured from the normal).

    Angles past the critical angle are clamped to it instead of raising,
    so the refracted angle saturates at +/- pi/2.

    Args:
        incident: Incident angle(s), scalar or array.
        n_from: Refractive index of the medium the ray leaves.
        n_to: Refractive index of the medium the ray enters.

    Returns:
        Refracted angle(s), same shape as incident.
    """
    limit = critical_angle(n_from, n_to)
    incident = np.clip(incident, -limit, limit)
    sin_t = np.sin(incident) * (n_from / n_to)
    return np.arcsin(np.clip(sin_t, -1.0, 1.0))


def critical_angle(n_from: float, n_to: float) -> float:
    """Incidence angle at which total internal reflection starts (or pi/2)."""
    if n_from <= n_to:
        return math.pi / 2
    return math.asin(n_to / n_from)


def profile_slope(profile, t, epsilon: float = SLOPE_EPSILON):
    """Central-difference slope of a profile at t."""
    t = np.asarray(t, dtype=np.float64)
    return (profile(t + epsilon) - profile(t - epsilon)) / (2.0 * epsilon)


def solve_refraction_field(thickness: float, bezel_width: float, profile,
                           refractive_index: float,
                           samples: int = FIELD_SAMPLES) -> np.ndarray:
    """Compute the lateral displacement across the bezel.

    Samples sit at cell centres, t_i = (i + 0.5) / samples, so a profile
    whose slope is symmetric about the bezel midpoint yields a symmetric
    field.

    Args:
        thickness: Glass thickness (CSS px). Must be >= 0.
        bezel_width: Bezel width (CSS px). Must be >= 0; 0 means flat glass.
        profile: Height function t -> h, see optics.profiles.
        refractive_index: Index of the glass, >= 1.
        samples: Field resolution.

    Returns:
        float64 array of length `samples`, index 0 at the outer edge.

    Raises:
        ConfigurationError: On negative geometry or an index below 1.
    """
    if thickness < 0:
        raise ConfigurationError(f"Glass thickness must be >= 0, got {thickness}")
    if bezel_width < 0:
        raise ConfigurationError(f"Bezel width must be >= 0, got {bezel_width}")
    if refractive_index < 1:
        raise ConfigurationError(f"Refractive index must be >= 1, got {refractive_index}")
    if samples < 2:
        raise ConfigurationError(f"Field needs at least 2 samples, got {samples}")

    if bezel_width == 0 or refractive_index == 1 or thickness == 0:
        return np.zeros(samples, dtype=np.float64)

    t = (np.arange(samples, dtype=np.float64) + 0.5) / samples
    slope = profile_slope(profile, t)
    incident = np.arctan(slope)
    refracted = refract_angle(incident, 1.0, refractive_index)
    return thickness * np.tan(refracted - incident)


def max_displacement(field: np.ndarray) -> float:
    """Largest absolute shift in the field (0.0 for an empty or flat field)."""
    if field.size == 0:
        return 0.0
    return float(np.max(np.abs(field)))
