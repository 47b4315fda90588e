import json
import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'scripts')))
import warm_geocode_cache as warm


def test_read_names_from_text(tmp_path):
    names_file = tmp_path / "clubs.txt"
    names_file.write_text("Cardiff RFC\n\n  Neath RFC \nCardiff RFC\n", encoding="utf-8")
    assert warm.read_names(names_file) == ["Cardiff RFC", "Neath RFC"]


def test_read_names_from_json(tmp_path):
    names_file = tmp_path / "clubs.json"
    names_file.write_text(json.dumps(["Bridgend RFC", 3, "Bridgend RFC", "Aberavon RFC"]), encoding="utf-8")
    assert warm.read_names(names_file) == ["Bridgend RFC", "Aberavon RFC"]


def test_read_names_rejects_json_object(tmp_path):
    names_file = tmp_path / "clubs.json"
    names_file.write_text(json.dumps({"a": 1}), encoding="utf-8")
    with pytest.raises(ValueError):
        warm.read_names(names_file)


def test_remote_mode_posts_batch(monkeypatch, tmp_path):
    names_file = tmp_path / "clubs.txt"
    names_file.write_text("Cardiff RFC\nUnknown FC\n", encoding="utf-8")
    posted = {}

    class Resp:
        status_code = 200
        text = ""

        def json(self):
            return {"results": {"Cardiff RFC": {"latitude": 51.48, "longitude": -3.18}, "Unknown FC": None}}

    def fake_post(url, json=None, timeout=None):
        posted.update(url=url, json=json, timeout=timeout)
        return Resp()

    monkeypatch.setattr(warm.requests, "post", fake_post)
    monkeypatch.setattr(warm, "load_dotenv", lambda *a, **k: False)
    monkeypatch.setattr(warm, "find_dotenv", lambda *a, **k: "")

    assert warm.main([str(names_file), "--server", "http://localhost:5010/"]) == 0
    assert posted["url"] == "http://localhost:5010/api/geocode"
    assert posted["json"] == {"organizationNames": ["Cardiff RFC", "Unknown FC"]}


def test_local_mode_requires_api_key(monkeypatch, tmp_path):
    names_file = tmp_path / "clubs.txt"
    names_file.write_text("Cardiff RFC\n", encoding="utf-8")
    monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)
    monkeypatch.delenv("NEXT_PUBLIC_GOOGLE_MAPS_API_KEY", raising=False)
    monkeypatch.setattr(warm, "load_dotenv", lambda *a, **k: False)
    monkeypatch.setattr(warm, "find_dotenv", lambda *a, **k: "")

    assert warm.main([str(names_file)]) == 2
