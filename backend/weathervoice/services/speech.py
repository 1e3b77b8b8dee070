"""
Speech sinks.

A sink turns an utterance into audio with a chosen voice, or with its own
default voice when none is given. ``Pyttsx3SpeechSink`` drives the platform's
offline text-to-speech engine (SAPI5, NSSpeechSynthesizer or eSpeak).
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Protocol

import pyttsx3

from weathervoice.errors import SpeechUnavailableError
from weathervoice.services.voices import VoiceInfo

logger = logging.getLogger(__name__)


class SpeechSink(Protocol):
    def list_voices(self) -> list[VoiceInfo]: ...

    def speak(self, text: str, voice: VoiceInfo | None = None) -> None: ...


class Pyttsx3SpeechSink:
    """Blocking sink; callers on an event loop should run it in a worker thread."""

    def __init__(self, rate: int = 175, volume: float = 0.9) -> None:
        self.rate = rate
        self.volume = volume
        self._engine: Any = None
        self._default_voice_id: str | None = None
        # pyttsx3 engines are not safe to drive from two threads at once
        self._lock = threading.Lock()

    def list_voices(self) -> list[VoiceInfo]:
        with self._lock:
            engine = self._ensure_engine()
            return [_to_voice_info(voice) for voice in engine.getProperty("voices") or []]

    def speak(self, text: str, voice: VoiceInfo | None = None) -> None:
        with self._lock:
            engine = self._ensure_engine()
            voice_id = voice.id if voice is not None else self._default_voice_id
            if voice_id:
                engine.setProperty("voice", voice_id)
            engine.say(text)
            engine.runAndWait()

    def _ensure_engine(self) -> Any:
        if self._engine is not None:
            return self._engine
        try:
            engine = pyttsx3.init()
        except (ImportError, OSError, RuntimeError) as exc:
            raise SpeechUnavailableError(f"Text-to-speech engine unavailable: {exc}") from exc

        engine.setProperty("rate", self.rate)
        engine.setProperty("volume", self.volume)
        self._default_voice_id = engine.getProperty("voice")
        self._engine = engine
        logger.info("Speech engine ready (default voice %s)", self._default_voice_id)
        return engine


def _to_voice_info(voice: Any) -> VoiceInfo:
    return VoiceInfo(
        id=str(voice.id),
        name=str(getattr(voice, "name", None) or voice.id),
        language=_first_language(getattr(voice, "languages", None)),
        gender=_normalize_gender(getattr(voice, "gender", None)),
    )


def _first_language(languages: Any) -> str | None:
    if not languages:
        return None
    first = languages[0]
    if isinstance(first, bytes):
        # eSpeak prefixes the tag with a priority byte
        if first and first[0] < 32:
            first = first[1:]
        first = first.decode("utf-8", errors="ignore")
    text = str(first).strip()
    return text or None


def _normalize_gender(value: Any) -> str | None:
    if not value:
        return None
    text = str(value).lower()
    if "female" in text:
        return "female"
    if "male" in text:
        return "male"
    return None
