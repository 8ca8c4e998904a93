"""
Liquid Glass — Filter Graph
Typed filter-primitive nodes and the DAG that wires them together.

Nodes reference their inputs by result name. A graph only accepts a node
whose inputs are reserved source tokens or results declared by an earlier
node, so every FilterGraph is a DAG in evaluation order. Serialization to
SVG markup (string-keyed in/in2 attributes) happens only at the boundary,
in FilterGraph.to_svg().
"""

from dataclasses import dataclass, field
from typing import ClassVar
import xml.etree.ElementTree as ET

from core.safety import FilterGraphError, validate_filter_id

SVG_NS = "http://www.w3.org/2000/svg"

SOURCE_GRAPHIC = "SourceGraphic"
SOURCE_ALPHA = "SourceAlpha"
RESERVED_INPUTS = frozenset({
    SOURCE_GRAPHIC, SOURCE_ALPHA, "BackgroundImage", "BackgroundAlpha",
    "FillPaint", "StrokePaint",
})

BLEND_MODES = frozenset({
    "normal", "multiply", "screen", "overlay", "darken", "lighten",
    "color-dodge", "color-burn", "hard-light", "soft-light", "difference",
    "exclusion", "hue", "saturation", "color", "luminosity",
})
COMPOSITE_OPERATORS = frozenset({"over", "in", "out", "atop", "xor", "lighter", "arithmetic"})
CHANNELS = ("R", "G", "B", "A")


def _fmt(value) -> str:
    """Compact number formatting for SVG attributes."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if float(value).is_integer():
        return str(int(value))
    return format(float(value), ".6g")


# ---------------------------------------------------------------------------
# Primitive nodes
# ---------------------------------------------------------------------------

@dataclass(frozen=True, kw_only=True)
class Primitive:
    """Base filter primitive. `result` names the output slot (None = final)."""
    TAG: ClassVar[str] = ""

    result: str | None = None

    def inputs(self) -> tuple[str, ...]:
        return tuple(ref for ref in (getattr(self, "in1", None), getattr(self, "in2", None))
                     if ref is not None)

    def attributes(self) -> dict:
        """SVG attributes in document order (excluding result)."""
        return {}

    def children(self) -> list[tuple[str, dict]]:
        return []


@dataclass(frozen=True, kw_only=True)
class FeImage(Primitive):
    TAG: ClassVar[str] = "feImage"

    href: str
    x: float = 0
    y: float = 0
    width: float
    height: float

    def attributes(self):
        return {"href": self.href, "x": self.x, "y": self.y,
                "width": self.width, "height": self.height}


@dataclass(frozen=True, kw_only=True)
class FeDisplacementMap(Primitive):
    TAG: ClassVar[str] = "feDisplacementMap"

    in1: str
    in2: str
    scale: float
    x_channel: str = "R"
    y_channel: str = "G"

    def __post_init__(self):
        for ch in (self.x_channel, self.y_channel):
            if ch not in CHANNELS:
                raise FilterGraphError(f"Invalid channel selector: {ch!r}")

    def attributes(self):
        return {"in": self.in1, "in2": self.in2, "scale": self.scale,
                "xChannelSelector": self.x_channel, "yChannelSelector": self.y_channel}


@dataclass(frozen=True, kw_only=True)
class FeColorMatrix(Primitive):
    TAG: ClassVar[str] = "feColorMatrix"

    in1: str
    type: str = "matrix"
    values: tuple | float = ()

    def __post_init__(self):
        if self.type == "matrix":
            if not isinstance(self.values, (tuple, list)) or len(self.values) != 20:
                raise FilterGraphError(f"Color matrix needs 20 values (4x5), got {self.values!r}")
        elif self.type == "saturate":
            if isinstance(self.values, (tuple, list)):
                raise FilterGraphError("Saturate takes a single value")
        else:
            raise FilterGraphError(f"Unsupported color matrix type: {self.type!r}")

    def attributes(self):
        if self.type == "matrix":
            values = " ".join(_fmt(v) for v in self.values)
        else:
            values = _fmt(self.values)
        return {"in": self.in1, "type": self.type, "values": values}


@dataclass(frozen=True, kw_only=True)
class FeGaussianBlur(Primitive):
    TAG: ClassVar[str] = "feGaussianBlur"

    in1: str
    std_deviation: float

    def attributes(self):
        return {"in": self.in1, "stdDeviation": self.std_deviation}


@dataclass(frozen=True)
class TransferFunction:
    """One feFuncX child of feComponentTransfer (linear only)."""
    channel: str
    slope: float = 1.0
    intercept: float = 0.0
    type: str = "linear"

    def __post_init__(self):
        if self.channel not in CHANNELS:
            raise FilterGraphError(f"Invalid transfer channel: {self.channel!r}")
        if self.type != "linear":
            raise FilterGraphError(f"Unsupported transfer type: {self.type!r}")


@dataclass(frozen=True, kw_only=True)
class FeComponentTransfer(Primitive):
    TAG: ClassVar[str] = "feComponentTransfer"

    in1: str
    funcs: tuple[TransferFunction, ...] = field(default_factory=tuple)

    def __post_init__(self):
        seen = [f.channel for f in self.funcs]
        if len(seen) != len(set(seen)):
            raise FilterGraphError(f"Duplicate transfer channels: {seen}")

    def attributes(self):
        return {"in": self.in1}

    def children(self):
        return [(f"feFunc{f.channel}",
                 {"type": f.type, "slope": f.slope, "intercept": f.intercept})
                for f in self.funcs]

    def func(self, channel: str) -> TransferFunction | None:
        for f in self.funcs:
            if f.channel == channel:
                return f
        return None


@dataclass(frozen=True, kw_only=True)
class FeBlend(Primitive):
    TAG: ClassVar[str] = "feBlend"

    in1: str
    in2: str
    mode: str = "normal"

    def __post_init__(self):
        if self.mode not in BLEND_MODES:
            raise FilterGraphError(f"Unknown blend mode: {self.mode!r}")

    def attributes(self):
        return {"in": self.in1, "in2": self.in2, "mode": self.mode}


@dataclass(frozen=True, kw_only=True)
class FeComposite(Primitive):
    TAG: ClassVar[str] = "feComposite"

    in1: str
    in2: str
    operator: str = "over"

    def __post_init__(self):
        if self.operator not in COMPOSITE_OPERATORS:
            raise FilterGraphError(f"Unknown composite operator: {self.operator!r}")

    def attributes(self):
        return {"in": self.in1, "in2": self.in2, "operator": self.operator}


# ---------------------------------------------------------------------------
# Graph
# ---------------------------------------------------------------------------

class FilterGraph:
    """Ordered, validated list of filter primitives."""

    def __init__(self):
        self._nodes: list[Primitive] = []
        self._results: dict[str, Primitive] = {}

    def add(self, node: Primitive) -> Primitive:
        """Append a node after checking its wiring.

        Raises:
            FilterGraphError: On a forward/unknown reference or a reused
                result name.
        """
        for ref in node.inputs():
            if ref not in RESERVED_INPUTS and ref not in self._results:
                raise FilterGraphError(
                    f"{node.TAG} references '{ref}' before it is declared"
                )
        if node.result is not None:
            if node.result in RESERVED_INPUTS:
                raise FilterGraphError(f"Result name '{node.result}' is reserved")
            if node.result in self._results:
                raise FilterGraphError(f"Result name '{node.result}' already declared")
            self._results[node.result] = node
        self._nodes.append(node)
        return node

    @property
    def nodes(self) -> list[Primitive]:
        return list(self._nodes)

    @property
    def results(self) -> list[str]:
        return list(self._results)

    @property
    def terminal(self) -> Primitive | None:
        return self._nodes[-1] if self._nodes else None

    def get(self, result: str) -> Primitive:
        return self._results[result]

    def __contains__(self, result: str) -> bool:
        return result in self._results

    def __iter__(self):
        return iter(self._nodes)

    def __len__(self):
        return len(self._nodes)

    def to_dict(self) -> list[dict]:
        """JSON-friendly description, one dict per primitive."""
        out = []
        for node in self._nodes:
            entry = {"primitive": node.TAG, **node.attributes()}
            children = node.children()
            if children:
                entry["funcs"] = [{"tag": tag, **attrs} for tag, attrs in children]
            if node.result is not None:
                entry["result"] = node.result
            out.append(entry)
        return out

    def to_element(self, filter_id: str) -> ET.Element:
        """Build the <filter> element."""
        validate_filter_id(filter_id)
        root = ET.Element("filter", {"id": filter_id})
        for node in self._nodes:
            attrs = {k: _fmt(v) for k, v in node.attributes().items()}
            if node.result is not None:
                attrs["result"] = node.result
            el = ET.SubElement(root, node.TAG, attrs)
            for tag, child_attrs in node.children():
                ET.SubElement(el, tag, {k: _fmt(v) for k, v in child_attrs.items()})
        return root

    def to_svg(self, filter_id: str, wrapper: bool = True) -> str:
        """Serialize to SVG markup.

        Args:
            filter_id: Id used by `filter: url(#id)` / `backdrop-filter`.
            wrapper: Wrap in a hidden <svg><defs> with sRGB filter
                interpolation. Without it, only the <filter> element is
                returned.
        """
        element = self.to_element(filter_id)
        if wrapper:
            svg = ET.Element("svg", {
                "xmlns": SVG_NS,
                "color-interpolation-filters": "sRGB",
                "style": "display: none",
            })
            defs = ET.SubElement(svg, "defs")
            defs.append(element)
            element = svg
        return ET.tostring(element, encoding="unicode")
