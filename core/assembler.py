"""
Liquid Glass — Filter Graph Assembler
Builds the fixed glass pipeline from encoded bitmaps and scalar controls.

Stage order (skipped stages are noted):
    magnify (if magnifying_scale is set) -> color matrix (if color_scheme)
    -> blur (if blur > 0) -> RGB split -> per-channel displacement
    -> screen recombine -> soft blur overlay -> saturate
    -> specular composite -> final blend
"""

from core.graph import (
    FilterGraph,
    FeImage,
    FeDisplacementMap,
    FeColorMatrix,
    FeGaussianBlur,
    FeComponentTransfer,
    FeBlend,
    FeComposite,
    TransferFunction,
    SOURCE_GRAPHIC,
)
from core.models import ColorScheme, DEFAULT_SPECULAR_SATURATION
from core.safety import ConfigurationError, ResourceError, require_finite, require_non_negative

# Lower multiplier = less lateral shift, i.e. a lower effective index for
# that wavelength.
DISPERSION_MULTIPLIERS = (
    ("red", "R", 0.8),
    ("green", "G", 0.9),
    ("blue", "B", 1.0),
)

OVERLAY_BLUR = 10.0
OVERLAY_FADE = 0.7

COLOR_SCHEME_MATRICES = {
    ColorScheme.DARK: (
        0.9, 0, 0, 0, -0.3,
        0, 0.9, 0, 0, -0.3,
        0, 0, 0.9, 0, -0.3,
        0, 0, 0, 1, 0,
    ),
    ColorScheme.LIGHT: (
        1.03, 0, 0, 0, 0.2,
        0, 1.03, 0, 0, 0.2,
        0, 0, 1.03, 0, 0.2,
        0, 0, 0, 1, 0,
    ),
}


def _isolate(channel: str) -> tuple[TransferFunction, ...]:
    """Transfer functions keeping one colour channel (alpha untouched)."""
    return tuple(
        TransferFunction(channel=ch, slope=1.0 if ch == channel else 0.0, intercept=0.0)
        for ch in ("R", "G", "B")
    )


def assemble_filter_graph(
    displacement_href: str,
    specular_href: str,
    *,
    width: float,
    height: float,
    scale: float,
    blur: float = 0.0,
    specular_opacity: float = 0.4,
    specular_saturation: float = DEFAULT_SPECULAR_SATURATION,
    magnifying_href: str | None = None,
    magnifying_scale: float | None = None,
    color_scheme: ColorScheme | str | None = None,
) -> FilterGraph:
    """Assemble the glass filter graph.

    Args:
        displacement_href: Encoded bezel displacement bitmap.
        specular_href: Encoded specular bitmap.
        width, height: Canvas size the bitmaps cover (user units).
        scale: Auto-scale for the bezel displacement (max displacement x
            scale ratio). The per-channel multipliers are applied on top.
        blur: Backdrop blur stdDeviation; 0 skips the stage.
        specular_opacity: Alpha slope of the raw specular layer.
        specular_saturation: Saturation applied to the displaced composite.
        magnifying_href: Encoded magnifying field; required when
            magnifying_scale is set.
        magnifying_scale: Signed lens strength, None disables the stage.
        color_scheme: "light" / "dark" / None.

    Returns:
        A validated FilterGraph whose last node is the unnamed final blend.

    Raises:
        ResourceError: If a required bitmap reference is missing.
        ConfigurationError: On invalid scalar controls.
    """
    if not displacement_href:
        raise ResourceError("Displacement bitmap is missing; refusing to assemble")
    if not specular_href:
        raise ResourceError("Specular bitmap is missing; refusing to assemble")
    if magnifying_scale is not None and not magnifying_href:
        raise ResourceError("Magnification is enabled but its bitmap is missing")

    width = require_non_negative("width", width)
    height = require_non_negative("height", height)
    scale = require_finite("scale", scale)
    blur = require_non_negative("blur", blur)
    specular_opacity = require_non_negative("specular_opacity", specular_opacity)
    specular_saturation = require_non_negative("specular_saturation", specular_saturation)
    if color_scheme is not None:
        try:
            color_scheme = ColorScheme(color_scheme)
        except ValueError:
            raise ConfigurationError(f"Unknown color scheme: {color_scheme!r}")

    graph = FilterGraph()
    current = SOURCE_GRAPHIC

    # 1. Lens pre-pass
    if magnifying_scale is not None:
        magnifying_scale = require_finite("magnifying_scale", magnifying_scale)
        graph.add(FeImage(href=magnifying_href, x=0, y=0, width=width, height=height,
                          result="magnifying_displacement_map"))
        graph.add(FeDisplacementMap(in1=current, in2="magnifying_displacement_map",
                                    scale=magnifying_scale, result="magnified_source"))
        current = "magnified_source"

    # 2. Brightness / contrast
    if color_scheme is not None:
        graph.add(FeColorMatrix(in1=current, type="matrix",
                                values=COLOR_SCHEME_MATRICES[color_scheme],
                                result="brightened_source"))
        current = "brightened_source"

    # 3. Backdrop blur
    if blur > 0:
        graph.add(FeGaussianBlur(in1=current, std_deviation=blur, result="blurred_source"))
        current = "blurred_source"

    # 4-5. Dispersion: split channels, displace each by its own scale
    graph.add(FeImage(href=displacement_href, x=0, y=0, width=width, height=height,
                      result="displacement_map"))
    for name, channel, _ in DISPERSION_MULTIPLIERS:
        graph.add(FeComponentTransfer(in1=current, funcs=_isolate(channel),
                                      result=f"{name}_channel"))
    for name, _, multiplier in DISPERSION_MULTIPLIERS:
        graph.add(FeDisplacementMap(in1=f"{name}_channel", in2="displacement_map",
                                    scale=scale * multiplier, result=f"displaced_{name}"))

    # 6. Recombine
    graph.add(FeBlend(in1="displaced_red", in2="displaced_green", mode="screen",
                      result="displaced_rg"))
    graph.add(FeBlend(in1="displaced_rg", in2="displaced_blue", mode="screen",
                      result="displaced_combined"))

    # 7. Soft overlay: faded blur laid under the sharp composite
    graph.add(FeGaussianBlur(in1="displaced_combined", std_deviation=OVERLAY_BLUR,
                             result="displaced_blurred"))
    graph.add(FeComponentTransfer(in1="displaced_blurred",
                                  funcs=(TransferFunction(channel="A", slope=OVERLAY_FADE),),
                                  result="displaced_blurred_faded"))
    graph.add(FeBlend(in1="displaced_combined", in2="displaced_blurred_faded", mode="normal",
                      result="displaced"))

    # 8. Saturation
    graph.add(FeColorMatrix(in1="displaced", type="saturate", values=specular_saturation,
                            result="displaced_saturated"))

    # 9. Specular
    graph.add(FeImage(href=specular_href, x=0, y=0, width=width, height=height,
                      result="specular_layer"))
    graph.add(FeComposite(in1="displaced_saturated", in2="specular_layer", operator="in",
                          result="specular_saturated"))
    graph.add(FeComponentTransfer(in1="specular_layer",
                                  funcs=(TransferFunction(channel="A", slope=specular_opacity),),
                                  result="specular_faded"))
    graph.add(FeBlend(in1="specular_saturated", in2="displaced", mode="normal",
                      result="withSaturation"))
    graph.add(FeBlend(in1="specular_faded", in2="withSaturation", mode="normal"))

    return graph
