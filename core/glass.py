"""
Liquid Glass — Glass Filter

Wires parameters, optics and the filter assembler into one reactive
Scheduler graph:

    glass_thickness, bezel_width, refractive_index, profile -> optical -> field -> max_displacement
    width, height, radius, canvas_*, dpr -> geometry -> specular_bitmap
    geometry, bezel_width, field, max_displacement -> displacement_bitmap
    canvas_size, dpr, magnification_enabled -> magnifying_bitmap
    bitmaps -> hrefs (encoder)
    max_displacement, scale_ratio -> scale
    hrefs + scalar controls -> graph -> svg

Scalar controls (blur, specular opacity/saturation, magnifying scale,
colour scheme, scale ratio) only reach `graph`, so changing them never
re-rasterizes a bitmap.

The caller owns the parameters: pass new values to update() or tick() each
frame; the filter keeps no state beyond its memoized artifacts.
"""

import logging
from typing import Mapping

from core.assembler import assemble_filter_graph
from core.encode import Encoder, encode_bitmap, encode_png_data_url
from core.models import GlassConfig, OpticalParameters, load_config
from core.scheduler import Scheduler
from optics import get_profile, rasterize_displacement, rasterize_specular, rasterize_magnifying
from optics.refraction import solve_refraction_field, max_displacement
from optics.shape import ShapeGeometry

logger = logging.getLogger(__name__)

PARAMETERS = tuple(GlassConfig.model_fields)


def _optical(glass_thickness, bezel_width, refractive_index, profile):
    return OpticalParameters(thickness=glass_thickness, bezel_width=bezel_width,
                             refractive_index=refractive_index, profile=profile)


def _field(optical: OpticalParameters):
    return solve_refraction_field(optical.thickness, optical.bezel_width,
                                  get_profile(optical.profile), optical.refractive_index)


def _geometry(width, height, radius, canvas_width, canvas_height, dpr):
    return ShapeGeometry(width=width, height=height, radius=radius,
                         canvas_width=canvas_width, canvas_height=canvas_height, dpr=dpr)


def _canvas_size(width, height, canvas_width, canvas_height):
    return (canvas_width if canvas_width is not None else width,
            canvas_height if canvas_height is not None else height)


def _magnifying(canvas_size, dpr, enabled):
    if not enabled:
        return None
    return rasterize_magnifying(canvas_size[0], canvas_size[1], dpr)


class GlassFilter:
    """Reactive glass filter.

    Usage:
        glass = GlassFilter(width=146, height=92, radius=46, bezel_width=19,
                            glass_thickness=47, refractive_index=1.5)
        svg = glass.to_svg()
        glass.update(blur=2.0)        # only the graph is rebuilt
        svg = glass.to_svg()

    Args:
        config: GlassConfig, dict, or None.
        encoder: RGBA -> href callable; defaults to PNG data URLs.
        **params: Overrides on top of config.

    Raises:
        ConfigurationError: On invalid parameters.
    """

    def __init__(self, config: GlassConfig | dict | None = None,
                 encoder: Encoder = encode_png_data_url, **params):
        if isinstance(config, GlassConfig):
            config = config.model_dump()
        self._config = load_config(config, **params)
        self._encoder = encoder
        self._scheduler = self._build(self._config)

    def _build(self, cfg: GlassConfig) -> Scheduler:
        s = Scheduler()
        for name in PARAMETERS:
            s.source(name, getattr(cfg, name))

        s.derive("optical", _optical,
                 ["glass_thickness", "bezel_width", "refractive_index", "profile"])
        s.derive("field", _field, ["optical"])
        s.derive("max_displacement", max_displacement, ["field"])

        s.derive("geometry", _geometry,
                 ["width", "height", "radius", "canvas_width", "canvas_height", "dpr"])
        s.derive("canvas_size", _canvas_size,
                 ["width", "height", "canvas_width", "canvas_height"])
        s.derive("magnification_enabled", lambda v: v is not None, ["magnifying_scale"])

        s.derive("displacement_bitmap",
                 lambda field, peak, geometry, bezel: rasterize_displacement(field, peak, geometry, bezel),
                 ["field", "max_displacement", "geometry", "bezel_width"])
        s.derive("specular_bitmap", rasterize_specular, ["geometry"])
        s.derive("magnifying_bitmap", _magnifying,
                 ["canvas_size", "dpr", "magnification_enabled"])

        s.derive("displacement_href", self._encode, ["displacement_bitmap"])
        s.derive("specular_href", self._encode, ["specular_bitmap"])
        s.derive("magnifying_href",
                 lambda bitmap: None if bitmap is None else self._encode(bitmap),
                 ["magnifying_bitmap"])

        s.derive("scale", lambda peak, ratio: peak * ratio, ["max_displacement", "scale_ratio"])
        s.derive("graph", self._assemble, [
            "displacement_href", "specular_href", "magnifying_href", "canvas_size",
            "scale", "blur", "specular_opacity", "specular_saturation",
            "magnifying_scale", "color_scheme",
        ])
        s.derive("svg", lambda graph, filter_id: graph.to_svg(filter_id), ["graph", "filter_id"])
        return s

    def _encode(self, bitmap) -> str:
        return encode_bitmap(bitmap, self._encoder)

    @staticmethod
    def _assemble(displacement_href, specular_href, magnifying_href, canvas_size, scale,
                  blur, specular_opacity, specular_saturation, magnifying_scale, color_scheme):
        return assemble_filter_graph(
            displacement_href,
            specular_href,
            width=canvas_size[0],
            height=canvas_size[1],
            scale=scale,
            blur=blur,
            specular_opacity=specular_opacity,
            specular_saturation=specular_saturation,
            magnifying_href=magnifying_href,
            magnifying_scale=magnifying_scale,
            color_scheme=color_scheme,
        )

    # --- parameters ---

    @property
    def config(self) -> GlassConfig:
        return self._config

    def update(self, **params) -> list[str]:
        """Validate and apply parameter changes.

        Returns:
            Names of parameters whose value actually changed.

        Raises:
            ConfigurationError: If the merged parameters are invalid; nothing
                is applied in that case.
        """
        unknown = set(params) - set(PARAMETERS)
        if unknown:
            raise KeyError(f"Unknown parameter(s): {', '.join(sorted(unknown))}")
        cfg = load_config(self._config.model_dump(), **params)
        self._config = cfg
        return self._scheduler.update(**{name: getattr(cfg, name) for name in params})

    def tick(self, params: Mapping | None = None) -> list[str]:
        """One update cycle: apply the caller's current values, recompute.

        Returns:
            Names of artifacts recomputed in this pass.
        """
        if params:
            self.update(**dict(params))
        recomputed = self._scheduler.flush()
        if recomputed:
            logger.debug("tick recomputed: %s", ", ".join(recomputed))
        return recomputed

    # --- artifacts ---

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def field(self):
        return self._scheduler.get("field")

    @property
    def max_displacement(self) -> float:
        return self._scheduler.get("max_displacement")

    @property
    def scale(self) -> float:
        return self._scheduler.get("scale")

    @property
    def displacement_bitmap(self):
        return self._scheduler.get("displacement_bitmap")

    @property
    def specular_bitmap(self):
        return self._scheduler.get("specular_bitmap")

    @property
    def magnifying_bitmap(self):
        return self._scheduler.get("magnifying_bitmap")

    @property
    def graph(self):
        return self._scheduler.get("graph")

    def to_svg(self, wrapper: bool = True) -> str:
        """SVG markup of the current filter graph."""
        if wrapper:
            return self._scheduler.get("svg")
        return self.graph.to_svg(self._config.filter_id, wrapper=False)
