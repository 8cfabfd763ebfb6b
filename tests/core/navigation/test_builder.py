"""Tests for the Builder convenience helpers."""

from __future__ import annotations

import types

import pytest

from core.navigation import builder as builder_module
from utils.config import Config


class StubCoordinator:
    def __init__(self, client, voice, **kwargs):
        self.client = client
        self.voice = voice
        self.kwargs = kwargs


class StubVoiceFeedback:
    def __init__(self, audio_system):
        self.audio_system = audio_system


@pytest.fixture()
def stubbed_builder(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(builder_module, "BackendClient", lambda config: types.SimpleNamespace(config=config))
    monkeypatch.setattr(builder_module, "AudioSystem", lambda: "audio")
    monkeypatch.setattr(builder_module, "VoiceFeedback", StubVoiceFeedback)
    monkeypatch.setattr(builder_module, "NavigationDecisionEngine", lambda config: ("decision", config))
    monkeypatch.setattr(builder_module, "OverlayRenderer", lambda: "renderer")
    monkeypatch.setattr(builder_module, "Coordinator", StubCoordinator)
    return builder_module.Builder(obstacle_labels=["pole"])


def test_build_full_system_wires_dependencies(stubbed_builder) -> None:
    coordinator = stubbed_builder.build_full_system()

    assert isinstance(coordinator, StubCoordinator)
    assert isinstance(coordinator.voice, StubVoiceFeedback)
    assert coordinator.voice.audio_system == "audio"
    assert coordinator.kwargs["renderer"] == "renderer"
    assert coordinator.kwargs["decision_engine"][0] == "decision"
    assert coordinator.kwargs["obstacle_labels"] == ["pole"]


def test_backend_client_reads_config(monkeypatch: pytest.MonkeyPatch, stubbed_builder) -> None:
    monkeypatch.setattr(Config, "API_BASE_URL", "http://jetson.local:5000/")

    client = stubbed_builder.build_backend_client()

    assert client.config.base_url == "http://jetson.local:5000"


def test_decision_engine_uses_configured_labels(monkeypatch: pytest.MonkeyPatch, stubbed_builder) -> None:
    monkeypatch.setattr(Config, "OBSTACLE_LABELS", ("Stairs",))

    _, config = stubbed_builder.build_decision_engine()

    assert config.obstacle_labels == frozenset({"stairs"})
