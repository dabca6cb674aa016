# src/flowx/voice/tts_speaker.py

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

XTTS_MODEL_NAME = "tts_models/multilingual/multi-dataset/xtts_v2"
DEFAULT_SAMPLE_RATE = 24000


@dataclass(frozen=True, slots=True)
class TtsVoice:
    """Voice selection resolved from settings."""

    speaker_wav: str | None
    speaker_name: str
    language: str

    @classmethod
    def from_settings(cls, settings: Any) -> TtsVoice:
        wav = str(getattr(settings, "speaker_wav", "") or "").strip()
        if wav and not Path(wav).is_file():
            logger.warning("speaker_wav %s does not exist; using speaker name instead.", wav)
            wav = ""
        return cls(
            speaker_wav=wav or None,
            speaker_name=str(getattr(settings, "xtts_speaker_name", "Ana Florence")),
            language=str(getattr(settings, "xtts_language", "en")),
        )


@dataclass(slots=True)
class TtsBackend:
    """Loaded synthesis model plus the playback module."""

    model: Any
    player: Any
    sample_rate: int


def load_xtts_backend() -> TtsBackend:
    """Import torch / Coqui TTS / sounddevice and load the XTTS model (slow on first run)."""
    logger.info("TTS enabling: importing torch, TTS and sounddevice... this may take a while.")
    import sounddevice
    import torch
    from TTS.api import TTS

    device = "cuda" if torch.cuda.is_available() else "cpu"
    logger.info("Initializing XTTS (device=%s). First run may download large model files.", device)
    model = TTS(XTTS_MODEL_NAME).to(device)

    sample_rate = getattr(getattr(model, "synthesizer", None), "output_sample_rate", None)
    return TtsBackend(model=model, player=sounddevice, sample_rate=int(sample_rate or DEFAULT_SAMPLE_RATE))


class TtsSpeaker:
    """
    Speaker that reads reminder scripts aloud with Coqui XTTS.

    Synthesis and playback run on one worker thread; speak() blocks until the
    script has been played so the completion question comes after the voice.
    A failed synthesis or playback is logged and skipped.
    """

    def __init__(self, settings: Any, *, backend_loader: Callable[[], TtsBackend] | None = None) -> None:
        self._voice = TtsVoice.from_settings(settings)
        self._backend = (backend_loader or load_xtts_backend)()
        self._queue: queue.Queue[str | None] = queue.Queue()
        self._stop_requested = False
        self._worker = threading.Thread(target=self._run, name="tts-worker", daemon=True)
        self._worker.start()
        logger.info("TTS ready (sample_rate=%s).", self._backend.sample_rate)

    def _synthesize(self, text: str) -> Any:
        if self._voice.speaker_wav:
            return self._backend.model.tts(text=text, language=self._voice.language, speaker_wav=self._voice.speaker_wav)
        return self._backend.model.tts(text=text, language=self._voice.language, speaker=self._voice.speaker_name)

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is None:
                    return
                text = " ".join(item.split())
                if not text:
                    continue
                try:
                    audio = self._synthesize(text)
                except Exception:
                    logger.exception("TTS synthesis failed.")
                    continue
                try:
                    self._backend.player.play(audio, self._backend.sample_rate)
                    self._backend.player.wait()
                except Exception:
                    logger.exception("TTS playback failed.")
            finally:
                self._queue.task_done()

    def speak(self, text: str) -> None:
        if self._stop_requested:
            return
        self._queue.put(text)
        self._queue.join()

    def shutdown(self) -> None:
        if self._stop_requested:
            return
        self._stop_requested = True
        logger.info("Stopping TTS worker...")
        self._queue.put(None)
        self._queue.join()
        self._worker.join(timeout=2.0)
        logger.info("TTS stopped.")
