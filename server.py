#!/usr/bin/env python3
"""
Liquid Glass — FastAPI Backend
Generates glass filters over HTTP for a browser front end.
"""

import sys
import os
import logging
from typing import Any

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from core.glass import GlassFilter
from core.safety import ConfigurationError, ResourceError, FilterGraphError
from optics import list_profiles
from presets import BUILT_IN_PRESETS, get_presets_by_tag, preset_config

app = FastAPI(title="Liquid Glass")

ERROR_RECOVERY = {
    "invalid_config": {
        "code": "INVALID_CONFIG",
        "hint": "Check the parameter ranges: sizes > 0, thickness/bezel >= 0, refractive index >= 1.",
    },
    "unknown_preset": {
        "code": "UNKNOWN_PRESET",
        "hint": "GET /api/presets lists the available presets and states.",
    },
    "render_failed": {
        "code": "RENDER_FAILED",
        "hint": "A bitmap could not be produced. Try a smaller canvas or device pixel ratio.",
    },
}


def _error_detail(key: str, message: str) -> dict:
    """Structured error detail for the front end."""
    recovery = ERROR_RECOVERY.get(key, {})
    return {
        "detail": message,
        "code": recovery.get("code", "UNKNOWN"),
        "hint": recovery.get("hint", ""),
    }


class FilterRequest(BaseModel):
    preset: str | None = None
    state: str | None = None
    params: dict[str, Any] = Field(default_factory=dict)
    wrapper: bool = True
    include_maps: bool = False


@app.get("/api/health")
async def health_check():
    return {"status": "ok"}


@app.get("/api/profiles")
async def get_profiles():
    """Available bezel profiles, default first."""
    return list_profiles()


@app.get("/api/presets")
async def get_presets(tag: str | None = None):
    """Built-in presets, optionally filtered by tag."""
    if tag:
        return get_presets_by_tag(tag)
    return BUILT_IN_PRESETS


@app.post("/api/filter")
async def build_filter(req: FilterRequest):
    """Build a glass filter and return its SVG plus the serialized graph."""
    try:
        config = preset_config(req.preset, req.state) if req.preset else {}
    except KeyError as e:
        raise HTTPException(status_code=400, detail=_error_detail("unknown_preset", str(e.args[0])))
    config.update(req.params)

    try:
        glass = GlassFilter(config)
        result = {
            "filter_id": glass.config.filter_id,
            "svg": glass.to_svg(wrapper=req.wrapper),
            "graph": glass.graph.to_dict(),
            "max_displacement": glass.max_displacement,
            "scale": glass.scale,
        }
        if req.include_maps:
            s = glass.scheduler
            result["maps"] = {
                "displacement": s.get("displacement_href"),
                "specular": s.get("specular_href"),
                "magnifying": s.get("magnifying_href"),
            }
        return result
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=_error_detail("invalid_config", str(e)))
    except (ResourceError, FilterGraphError) as e:
        logging.exception("Filter generation failed")
        raise HTTPException(status_code=500, detail=_error_detail("render_failed", str(e)[:200]))


def start(host: str = "127.0.0.1", port: int = 7860):
    import uvicorn
    print(f"Liquid Glass — serving at http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="warning")


if __name__ == "__main__":
    start()
