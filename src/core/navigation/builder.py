"""
Builder - creates every dependency of the navigation aid front-end
"""

import logging
from typing import Iterable, Optional

from communication.backend_client import BackendClient
from core.audio.audio_system import AudioSystem
from core.audio.voice_feedback import VoiceFeedback
from core.navigation.coordinator import Coordinator
from core.navigation.navigation_decision_engine import NavigationDecisionEngine
from presentation.renderers.overlay_renderer import OverlayRenderer
from utils.config_sections import load_backend_config, load_navigation_config

log = logging.getLogger(__name__)


class Builder:
    """Builder que crea todas las dependencias del sistema"""

    def __init__(self, obstacle_labels: Optional[Iterable[str]] = None):
        self.obstacle_labels = obstacle_labels

    def build_backend_client(self) -> BackendClient:
        config = load_backend_config()
        log.info("Creating BackendClient (%s)", config.base_url)
        return BackendClient(config)

    def build_audio_system(self) -> AudioSystem:
        log.info("Creating AudioSystem")
        return AudioSystem()  # reads Config internally

    def build_voice_feedback(self, audio_system) -> VoiceFeedback:
        return VoiceFeedback(audio_system)

    def build_decision_engine(self) -> NavigationDecisionEngine:
        return NavigationDecisionEngine(load_navigation_config())

    def build_overlay_renderer(self) -> OverlayRenderer:
        return OverlayRenderer()

    def build_coordinator(
        self,
        client,
        voice,
        decision_engine=None,
        renderer=None,
    ) -> Coordinator:
        log.info("Creating Coordinator")
        return Coordinator(
            client,
            voice,
            decision_engine=decision_engine,
            renderer=renderer,
            obstacle_labels=self.obstacle_labels,
        )

    def build_full_system(self) -> Coordinator:
        client = self.build_backend_client()
        audio_system = self.build_audio_system()
        voice = self.build_voice_feedback(audio_system)
        decision_engine = self.build_decision_engine()
        renderer = self.build_overlay_renderer()
        coordinator = self.build_coordinator(client, voice, decision_engine, renderer)
        log.info("Navigation aid system built")
        return coordinator


def build_navigation_system(obstacle_labels: Optional[Iterable[str]] = None) -> Coordinator:
    """Convenience wrapper used by main."""
    return Builder(obstacle_labels).build_full_system()
