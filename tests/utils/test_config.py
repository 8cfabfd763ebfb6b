"""Tests for Config overrides and the typed config sections."""

from __future__ import annotations

import json
from dataclasses import fields

import pytest

from utils import config as config_module
from utils.config import Config, apply_env_overrides, apply_overrides, load_config_file, parse_label_list
from utils.config_sections import (
    VoiceConfig,
    load_backend_config,
    load_navigation_config,
    load_overlay_config,
    load_scheduler_config,
    load_voice_config,
)


@pytest.fixture(autouse=True)
def restore_config(monkeypatch: pytest.MonkeyPatch):
    for name in ("API_BASE_URL", "OBSTACLE_LABELS", "CAMERA_INDEX", "AUTO_PROCESS_ENABLED", "PROCESS_TIMEOUT"):
        monkeypatch.setattr(Config, name, getattr(Config, name))


def test_parse_label_list_normalizes() -> None:
    assert parse_label_list(" Person, car ,,PERSON, pole ") == ("person", "car", "pole")
    assert parse_label_list(["Dog", "dog"]) == ("dog",)


def test_apply_overrides_coerces_types() -> None:
    applied = apply_overrides({"camera_index": "3", "auto_process_enabled": "yes", "process_timeout": "12"})

    assert applied == {"CAMERA_INDEX": 3, "AUTO_PROCESS_ENABLED": True, "PROCESS_TIMEOUT": 12.0}
    assert Config.CAMERA_INDEX == 3
    assert load_scheduler_config().auto_process_enabled is True


def test_unknown_key_raises() -> None:
    with pytest.raises(KeyError):
        apply_overrides({"obstacle_lables": "person"})


def test_env_overrides() -> None:
    apply_env_overrides({"NAVAID_API_URL": "http://10.0.0.2:8000/", "NAVAID_OBSTACLE_LABELS": "pole,stairs"})

    assert load_backend_config().base_url == "http://10.0.0.2:8000"
    assert load_navigation_config().obstacle_labels == frozenset({"pole", "stairs"})


def test_env_overrides_ignore_unset() -> None:
    assert apply_env_overrides({}) == {}


def test_load_config_file(tmp_path) -> None:
    path = tmp_path / "navaid.json"
    path.write_text(json.dumps({"OBSTACLE_LABELS": ["Chair", "Table"], "API_BASE_URL": "http://example:5000"}))

    load_config_file(path)

    assert Config.OBSTACLE_LABELS == ("chair", "table")
    assert Config.API_BASE_URL == "http://example:5000"


def test_load_config_file_rejects_non_object(tmp_path) -> None:
    path = tmp_path / "bad.json"
    path.write_text("[1, 2]")

    with pytest.raises(ValueError):
        load_config_file(path)


def test_default_sections_match_config() -> None:
    voice = load_voice_config()
    overlay = load_overlay_config()

    assert voice.rate == pytest.approx(0.9)
    assert voice.volume == pytest.approx(1.0)
    assert overlay.zone_colors["right"] == (80, 175, 76)
    assert overlay.zone_colors["front"] == (243, 150, 33)
    assert overlay.zone_colors["left"] == (0, 152, 255)
    assert "person" in load_navigation_config().obstacle_labels
    assert config_module.ENV_OVERRIDES["NAVAID_CAMERA_INDEX"] == "CAMERA_INDEX"


def test_voice_section_holds_only_engine_settings() -> None:
    names = {f.name for f in fields(VoiceConfig)}

    assert names == {"rate", "volume", "base_rate_say", "base_rate_pyttsx3"}
    with pytest.raises(KeyError):
        apply_overrides({"voice_pitch": 1.2})
