"""
Liquid Glass — Errors & Resource Guards
Centralized validation run before any rasterization.
Prevents invalid geometry and runaway buffer sizes.
"""

import math

# --- Configurable Limits ---
MAX_CANVAS_PX = 4096        # Maximum buffer edge in device pixels
MAX_DPR = 8.0               # Maximum device pixel ratio
MAX_BLUR = 200.0            # Maximum Gaussian blur radius
MAX_FILTER_ID_LEN = 100     # Maximum length of a filter id


class LiquidGlassError(Exception):
    """Base class for everything raised by the core."""
    pass


class ConfigurationError(LiquidGlassError, ValueError):
    """Raised for invalid geometry or optical parameters."""
    pass


class ResourceError(LiquidGlassError):
    """Raised when the bitmap encoder (or another collaborator) fails."""
    pass


class FilterGraphError(LiquidGlassError):
    """Raised when a filter graph would reference an undeclared result."""
    pass


def require_finite(name: str, value: float) -> float:
    """Reject NaN/Inf and non-numeric values.

    Raises:
        ConfigurationError: If value isn't a finite number.
    """
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(v):
        raise ConfigurationError(f"NaN/Inf not allowed for {name}: {value}")
    return v


def require_non_negative(name: str, value: float) -> float:
    """Finite and >= 0.

    Raises:
        ConfigurationError: On negative or non-finite values.
    """
    v = require_finite(name, value)
    if v < 0:
        raise ConfigurationError(f"{name} must be >= 0, got {v}")
    return v


def validate_filter_id(filter_id: str) -> str:
    """Check that a filter id can be used as an XML id and a url(#...) target.

    Raises:
        ConfigurationError: If the id is empty, too long, or has unsafe chars.
    """
    if not filter_id:
        raise ConfigurationError("Filter id must not be empty")
    if len(filter_id) > MAX_FILTER_ID_LEN:
        raise ConfigurationError(
            f"Filter id too long ({len(filter_id)} chars, max {MAX_FILTER_ID_LEN})"
        )
    if not (filter_id[0].isalpha() or filter_id[0] == "_"):
        raise ConfigurationError(f"Filter id must start with a letter or '_': {filter_id!r}")
    for ch in filter_id:
        if not (ch.isalnum() or ch in "-_."):
            raise ConfigurationError(f"Invalid character {ch!r} in filter id {filter_id!r}")
    return filter_id
