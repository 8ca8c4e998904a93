"""
Liquid Glass — Built-in Presets
Glass settings tuned for the toggle-switch and slider thumbs.

Each preset is a GlassConfig-compatible dict plus named interaction states.
A state is a set of overrides the widget layer animates toward (e.g. the
thumb swelling into glass while pressed).
"""

BUILT_IN_PRESETS = [
    {
        "name": "switch_thumb",
        "description": "Toggle-switch thumb. Lip-profiled pill that turns to glass while dragged.",
        "config": {
            "filter_id": "thumb-filter-refined",
            "width": 146,
            "height": 92,
            "radius": 46,
            "bezel_width": 19,
            "glass_thickness": 47,
            "refractive_index": 1.5,
            "profile": "lip",
            "blur": 0.2,
            "specular_opacity": 0.5,
            "specular_saturation": 6,
            "scale_ratio": 0.4,
            "magnifying_scale": 12,
        },
        "states": {
            "rest": {"scale_ratio": 0.4, "magnifying_scale": 12},
            "active": {"scale_ratio": 0.9, "magnifying_scale": -12},
        },
        "tags": ["switch", "toggle", "pill"],
    },
    {
        "name": "slider_thumb",
        "description": "Slider thumb. Thick squircle-edged lens that magnifies when picked up.",
        "config": {
            "filter_id": "thumb-filter-slider",
            "width": 90,
            "height": 60,
            "radius": 30,
            "bezel_width": 16,
            "glass_thickness": 80,
            "refractive_index": 1.45,
            "profile": "convex_squircle",
            "blur": 0,
            "specular_opacity": 0.4,
            "specular_saturation": 7,
            "scale_ratio": 0.4,
            "magnifying_scale": 24,
        },
        "states": {
            "rest": {"scale_ratio": 0.4, "magnifying_scale": 24},
            "active": {"scale_ratio": 0.9, "magnifying_scale": -24},
        },
        "tags": ["slider", "thumb", "lens"],
    },
]


def get_preset(name: str) -> dict | None:
    """Look up a preset by name (case-insensitive)."""
    name_lower = name.lower()
    for preset in BUILT_IN_PRESETS:
        if preset["name"].lower() == name_lower:
            return preset
    return None


def preset_config(name: str, state: str | None = None) -> dict:
    """Config dict for a preset, with an interaction state applied.

    Raises:
        KeyError: Unknown preset or state.
    """
    preset = get_preset(name)
    if preset is None:
        raise KeyError(f"Unknown preset: {name}. Available: {', '.join(list_preset_names())}")
    config = dict(preset["config"])
    if state is not None:
        if state not in preset["states"]:
            raise KeyError(
                f"Preset {name} has no state '{state}'. "
                f"Available: {', '.join(preset['states'])}"
            )
        config.update(preset["states"][state])
    return config


def get_presets_by_tag(tag: str) -> list[dict]:
    """Get all presets that have a given tag."""
    tag_lower = tag.lower()
    return [p for p in BUILT_IN_PRESETS if tag_lower in [t.lower() for t in p["tags"]]]


def list_preset_names() -> list[str]:
    """Return all preset names."""
    return [p["name"] for p in BUILT_IN_PRESETS]
