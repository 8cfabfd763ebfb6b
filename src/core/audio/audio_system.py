import platform
import shutil
import subprocess
import threading
from typing import Optional

import pyttsx3

from core.audio.announcement_slot import AnnouncementSlot
from core.telemetry.loggers.navigation_logger import get_navigation_logger
from utils.config_sections import VoiceConfig, load_voice_config


class AudioSystem:
    """Preemptive text-to-speech output, multi-platform.

    At most one utterance is audible: speak() always replaces what is being
    said. macOS uses the `say` command (one subprocess per utterance, killed
    on preemption); other platforms use pyttsx3 driven by a worker thread
    that consumes a single-slot channel.
    """

    def __init__(self, config: Optional[VoiceConfig] = None):
        self.config = config or load_voice_config()
        self.tts_engine = None
        self.tts_backend: Optional[str] = None
        self.tts_rate = 0
        self.log = get_navigation_logger().audio

        self._slot = AnnouncementSlot()
        self._process: Optional[subprocess.Popen] = None
        self._worker: Optional[threading.Thread] = None
        self._speaking = False
        self.last_phrase: Optional[str] = None
        self.utterances = 0
        self.preemptions = 0

        self._setup_tts()
        self.log.info("Audio system initialized (backend=%s, rate=%s)", self.tts_backend, self.tts_rate)

    @property
    def is_speaking(self) -> bool:
        if self.tts_backend == "say":
            return self._process is not None and self._process.poll() is None
        return self._speaking

    def _setup_tts(self):
        """Configure TTS based on the operating system."""
        system = platform.system()

        if system == "Darwin" and shutil.which('say'):
            self.tts_backend = "say"
            self.tts_rate = int(round(self.config.base_rate_say * self.config.rate))
            self.log.info("Using 'say' for TTS on macOS")
            return

        try:
            self.tts_engine = pyttsx3.init()
            self.tts_rate = int(round(self.config.base_rate_pyttsx3 * self.config.rate))
            self.tts_engine.setProperty('rate', self.tts_rate)
            self.tts_engine.setProperty('volume', float(self.config.volume))
            self.tts_backend = "pyttsx3"
            self.log.info("Using pyttsx3 for TTS on %s", system)
        except Exception as e:
            self.log.error("Failed to initialize pyttsx3 on %s: %s", system, e)
            self.tts_engine = None
            self.tts_backend = None
            return

        self._worker = threading.Thread(target=self._pyttsx3_loop, name="tts-worker", daemon=True)
        self._worker.start()

    # ------------------------------------------------------------------
    # speech
    # ------------------------------------------------------------------

    def speak(self, message: str) -> bool:
        """Speak message, preempting anything currently audible."""
        if not message or not self.tts_backend:
            return False

        self.last_phrase = message
        self.utterances += 1
        self.log.info("Speak: %s", message)

        if self.tts_backend == "say":
            self._terminate_process()
            self._process = subprocess.Popen(["say", "-r", str(self.tts_rate), message])
            return True

        self._slot.post(message)
        if self._speaking:
            self._stop_engine()
        return True

    def cancel(self) -> None:
        """Silence the current utterance and drop anything pending."""
        if self.tts_backend == "say":
            self._terminate_process()
        elif self.tts_backend == "pyttsx3":
            self._slot.clear()
            if self._speaking:
                self._stop_engine()

    def _terminate_process(self) -> None:
        process = self._process
        self._process = None
        if process is not None and process.poll() is None:
            self.preemptions += 1
            self.log.debug("Preempting utterance (pid=%s)", process.pid)
            process.terminate()

    def _stop_engine(self) -> None:
        self.preemptions += 1
        self.log.debug("Preempting pyttsx3 utterance")
        try:
            self.tts_engine.stop()
        except Exception as e:
            self.log.warning("pyttsx3 stop failed: %s", e)

    def _pyttsx3_loop(self) -> None:
        while True:
            item = self._slot.take()
            if item is None:
                return
            generation, message = item
            if not self._slot.is_current(generation):
                continue
            try:
                self._speaking = True
                self.tts_engine.say(message)
                self.tts_engine.runAndWait()  # Blocking, interrupted by engine.stop()
            except Exception as e:
                self.log.warning("TTS error: %s", e)
            finally:
                self._speaking = False

    def close(self):
        self.cancel()
        self._slot.close()
        if self.tts_backend == "pyttsx3" and self.tts_engine:
            try:
                self.tts_engine.stop()
            except Exception as e:
                self.log.debug("pyttsx3 stop on close failed: %s", e)
        self.log.info("AudioSystem closed.")
