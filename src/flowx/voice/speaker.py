# src/flowx/voice/speaker.py

from __future__ import annotations

import logging
import sys
from typing import TextIO

logger = logging.getLogger(__name__)


class ConsoleSpeaker:
    """
    Text stand-in for speech output: the reminder script is printed, not played.

    Swap in a real TTS-backed Speaker through the composition root.
    """

    def __init__(self, out: TextIO | None = None) -> None:
        self._out = out

    def speak(self, text: str) -> None:
        out = self._out or sys.stdout
        logger.debug("speak chars=%d", len(text))
        print(f"[VOICE] {text}", file=out, flush=True)
