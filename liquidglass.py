#!/usr/bin/env python3
"""
Liquid Glass — SVG Refraction Filter
CLI entry point. Also importable as a library.

Usage:
    python liquidglass.py svg --preset switch_thumb --state active
    python liquidglass.py svg --params width=200 height=80 radius=40 blur=2 -o glass.svg
    python liquidglass.py maps --preset slider_thumb --out maps/
    python liquidglass.py preview photo.jpg --preset switch_thumb --out glass.png
    python liquidglass.py list-profiles
    python liquidglass.py list-presets --tag slider
    python liquidglass.py serve
"""

import sys
import os
import math
import json
import logging
import argparse
from pathlib import Path

# Add project root to path so imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import numpy as np
from PIL import Image

from core.glass import GlassFilter, PARAMETERS
from core.preview import render_graph
from core.safety import LiquidGlassError, MAX_CANVAS_PX
from optics import list_profiles
from presets import BUILT_IN_PRESETS, get_presets_by_tag, preset_config

__version__ = "0.1.0"

_NONE_VALUES = ("none", "null", "off")


def _parse_param_value(val: str):
    """Parse a CLI parameter value (None, number, or string)."""
    text = val.strip()
    if text.lower() in _NONE_VALUES:
        return None
    if text.lower() in ('nan', 'inf', '-inf', '+inf', 'infinity', '-infinity'):
        raise ValueError(f"NaN/Inf not allowed: {val}")
    try:
        number = float(text)
    except ValueError:
        return text
    if not math.isfinite(number):
        raise ValueError(f"NaN/Inf not allowed: {val}")
    if number.is_integer() and '.' not in text and 'e' not in text.lower():
        return int(number)
    return number


def _parse_params(pairs) -> dict:
    """key=value pairs -> dict, rejecting unknown parameter names."""
    params = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise ValueError(f"Expected key=value, got: {pair}")
        key, val = pair.split("=", 1)
        key = key.strip()
        if key not in PARAMETERS:
            raise ValueError(f"Unknown parameter: {key}. Available: {', '.join(PARAMETERS)}")
        params[key] = _parse_param_value(val)
    return params


def _build_filter(args, **extra) -> GlassFilter:
    config = preset_config(args.preset, args.state) if args.preset else {}
    config.update(_parse_params(args.params))
    config.update(extra)
    return GlassFilter(config)


def _save_rgba(rgba: np.ndarray, path: Path) -> None:
    Image.fromarray(rgba).save(path, format="PNG")


def cmd_svg(args):
    """Print (or write) the filter SVG."""
    glass = _build_filter(args)
    svg = glass.to_svg(wrapper=not args.bare)
    if args.output:
        Path(args.output).write_text(svg, encoding="utf-8")
        print(f"Filter: {args.output}")
        print(f"  Max displacement: {glass.max_displacement:.3f}px  scale: {glass.scale:.3f}")
    else:
        print(svg)


def cmd_maps(args):
    """Write the rasterized bitmaps as PNG files."""
    glass = _build_filter(args)
    out = Path(args.out)
    out.mkdir(parents=True, exist_ok=True)

    written = []
    _save_rgba(glass.displacement_bitmap.to_rgba(), out / "displacement.png")
    written.append("displacement.png")
    _save_rgba(glass.specular_bitmap.to_rgba(), out / "specular.png")
    written.append("specular.png")
    if glass.magnifying_bitmap is not None:
        _save_rgba(glass.magnifying_bitmap.to_rgba(), out / "magnifying.png")
        written.append("magnifying.png")

    print(f"Maps written to {out}/")
    for name in written:
        print(f"  {name}")
    print(f"  Max displacement: {glass.max_displacement:.3f}px")


def cmd_preview(args):
    """Apply the filter to an image in software."""
    image = Image.open(args.image).convert("RGBA")
    w, h = image.size
    if max(w, h) > MAX_CANVAS_PX:
        raise LiquidGlassError(f"Image {w}x{h} exceeds {MAX_CANVAS_PX}px")
    glass = _build_filter(args, canvas_width=w, canvas_height=h, dpr=1.0)
    frame = np.asarray(image)
    result = render_graph(glass.graph, frame)
    _save_rgba(result, Path(args.out))
    print(f"Preview: {args.out}")


def cmd_list_profiles(args):
    """List bezel profiles."""
    profiles = list_profiles()
    print(f"\n  Bezel Profiles ({len(profiles)} available)")
    print(f"  {'-' * 50}")
    for p in profiles:
        print(f"    {p['name']:16s}  {p['description']}")
    print()


def cmd_list_presets(args):
    """List built-in presets."""
    presets = get_presets_by_tag(args.tag) if args.tag else BUILT_IN_PRESETS
    if args.json:
        print(json.dumps(presets, indent=2))
        return
    label = f" tagged '{args.tag}'" if args.tag else ""
    print(f"\n  Presets{label} ({len(presets)} available)")
    print(f"  {'-' * 50}")
    for p in presets:
        cfg = p["config"]
        print(f"    {p['name']:14s}  {p['description']}")
        print(f"    {'':14s}  {cfg['width']}x{cfg['height']} r={cfg['radius']} "
              f"profile={cfg['profile']} states: {', '.join(p['states'])}")
    print(f"\n  Usage: --preset <name> [--state <state>]\n")


def cmd_serve(args):
    """Launch the HTTP API."""
    from server import start
    start(host=args.host, port=args.port)


def _add_filter_args(p):
    p.add_argument("--preset", help="Start from a built-in preset")
    p.add_argument("--state", help="Preset interaction state (rest, active)")
    p.add_argument("--params", nargs="*", help="Filter params as key=value pairs (value 'none' unsets)")


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="liquidglass",
        description="Liquid Glass — SVG refraction filter generator",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    # svg
    p = sub.add_parser("svg", help="Generate the filter SVG")
    _add_filter_args(p)
    p.add_argument("-o", "--output", help="Write to file instead of stdout")
    p.add_argument("--bare", action="store_true", help="Only the <filter> element, no <svg> wrapper")

    # maps
    p = sub.add_parser("maps", help="Write displacement/specular/magnifying PNGs")
    _add_filter_args(p)
    p.add_argument("--out", default="maps", help="Output directory")

    # preview
    p = sub.add_parser("preview", help="Render the filter over an image")
    p.add_argument("image", help="Backdrop image")
    _add_filter_args(p)
    p.add_argument("--out", default="preview.png", help="Output PNG")

    # list-profiles
    sub.add_parser("list-profiles", help="List bezel profiles")

    # list-presets
    p = sub.add_parser("list-presets", help="List built-in presets")
    p.add_argument("--tag", help="Only presets with this tag (e.g. slider)")
    p.add_argument("--json", action="store_true", help="Machine-readable output")

    # serve
    p = sub.add_parser("serve", help="Launch the HTTP API")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=7860)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "svg": cmd_svg,
        "maps": cmd_maps,
        "preview": cmd_preview,
        "list-profiles": cmd_list_profiles,
        "list-presets": cmd_list_presets,
        "serve": cmd_serve,
    }

    if args.command in commands:
        try:
            commands[args.command](args)
        except (LiquidGlassError, KeyError, ValueError, OSError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
