"""
Liquid Glass — HTTP API & CLI Tests

Run with: pytest tests/test_interfaces.py -v
"""

import json
import xml.etree.ElementTree as ET

import numpy as np
import pytest
from PIL import Image
from starlette.testclient import TestClient

import liquidglass
import server
from core.glass import GlassFilter
from server import app


@pytest.fixture
def client():
    return TestClient(app)


# ===========================================================================
# HTTP API
# ===========================================================================

class TestServer:

    def test_health(self, client):
        assert client.get("/api/health").json() == {"status": "ok"}

    def test_profiles(self, client):
        resp = client.get("/api/profiles")
        assert resp.status_code == 200
        names = [p["name"] for p in resp.json()]
        assert names[0] == "convex"
        assert "lip" in names

    def test_presets(self, client):
        resp = client.get("/api/presets")
        assert [p["name"] for p in resp.json()] == ["switch_thumb", "slider_thumb"]

    def test_presets_by_tag(self, client):
        resp = client.get("/api/presets", params={"tag": "Slider"})
        assert [p["name"] for p in resp.json()] == ["slider_thumb"]
        assert client.get("/api/presets", params={"tag": "bubble"}).json() == []

    def test_filter_from_params(self, client):
        resp = client.post("/api/filter", json={"params": {"width": 40, "height": 30, "radius": 10}})
        assert resp.status_code == 200
        data = resp.json()
        assert data["filter_id"] == "liquid-glass"
        assert data["max_displacement"] > 0
        assert data["scale"] == pytest.approx(data["max_displacement"])
        ET.fromstring(data["svg"])
        assert data["graph"][-1]["primitive"] == "feBlend"
        assert "result" not in data["graph"][-1]
        assert "maps" not in data

    def test_filter_from_preset_state(self, client):
        resp = client.post("/api/filter", json={
            "preset": "switch_thumb", "state": "active", "wrapper": False, "include_maps": True,
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["svg"].startswith("<filter")
        assert data["maps"]["magnifying"].startswith("data:image/png;base64,")
        lens = next(n for n in data["graph"] if n.get("result") == "magnified_source")
        assert lens["scale"] == -12

    def test_invalid_config_is_400(self, client):
        resp = client.post("/api/filter", json={"params": {"width": 40, "height": 30,
                                                           "glass_thickness": -3}})
        assert resp.status_code == 400
        assert resp.json()["detail"]["code"] == "INVALID_CONFIG"

    def test_unknown_param_is_400(self, client):
        resp = client.post("/api/filter", json={"params": {"width": 40, "height": 30, "glow": 1}})
        assert resp.status_code == 400

    def test_unknown_preset_is_400(self, client):
        resp = client.post("/api/filter", json={"preset": "bubble"})
        assert resp.status_code == 400
        assert resp.json()["detail"]["code"] == "UNKNOWN_PRESET"

    def test_encoder_failure_is_500(self, client, monkeypatch, failing_encoder):
        monkeypatch.setattr(server, "GlassFilter",
                            lambda config: GlassFilter(config, encoder=failing_encoder))
        resp = client.post("/api/filter", json={"params": {"width": 40, "height": 30}})
        assert resp.status_code == 500
        assert resp.json()["detail"]["code"] == "RENDER_FAILED"


# ===========================================================================
# CLI
# ===========================================================================

class TestCli:

    def test_parse_param_value(self):
        assert liquidglass._parse_param_value("12") == 12
        assert liquidglass._parse_param_value("1.5") == 1.5
        assert liquidglass._parse_param_value("none") is None
        assert liquidglass._parse_param_value("dark") == "dark"
        with pytest.raises(ValueError):
            liquidglass._parse_param_value("nan")

    def test_parse_params_rejects_unknown(self):
        with pytest.raises(ValueError, match="Unknown parameter"):
            liquidglass._parse_params(["glow=1"])
        with pytest.raises(ValueError):
            liquidglass._parse_params(["width"])

    def test_svg_to_stdout(self, capsys):
        liquidglass.main(["svg", "--params", "width=40", "height=30", "color_scheme=dark"])
        out = capsys.readouterr().out
        assert out.startswith("<svg")
        assert 'result="brightened_source"' in out

    def test_svg_to_file(self, tmp_path, capsys):
        target = tmp_path / "glass.svg"
        liquidglass.main(["svg", "--preset", "switch_thumb", "-o", str(target)])
        assert 'id="thumb-filter-refined"' in target.read_text()
        assert "Max displacement" in capsys.readouterr().out

    def test_maps(self, tmp_path):
        liquidglass.main(["maps", "--preset", "slider_thumb", "--out", str(tmp_path)])
        for name in ("displacement.png", "specular.png", "magnifying.png"):
            assert (tmp_path / name).exists()
        with Image.open(tmp_path / "displacement.png") as img:
            assert img.size == (90, 60)

    def test_preview(self, tmp_path, test_frame):
        src = tmp_path / "backdrop.png"
        Image.fromarray(test_frame).save(src)
        out = tmp_path / "glass.png"
        liquidglass.main(["preview", str(src), "--params", "width=40", "height=30",
                          "radius=10", "--out", str(out)])
        with Image.open(out) as img:
            assert img.size == (64, 48)
            assert np.asarray(img).shape == (48, 64, 4)

    def test_list_commands(self, capsys):
        liquidglass.main(["list-profiles"])
        liquidglass.main(["list-presets"])
        out = capsys.readouterr().out
        assert "convex_squircle" in out
        assert "switch_thumb" in out

    def test_list_presets_by_tag(self, capsys):
        liquidglass.main(["list-presets", "--tag", "toggle", "--json"])
        presets = json.loads(capsys.readouterr().out)
        assert [p["name"] for p in presets] == ["switch_thumb"]

        liquidglass.main(["list-presets", "--tag", "slider"])
        out = capsys.readouterr().out
        assert "slider_thumb" in out
        assert "switch_thumb" not in out

    def test_errors_exit_nonzero(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            liquidglass.main(["svg", "--preset", "bubble"])
        assert exc_info.value.code == 1
        assert "Error" in capsys.readouterr().err
