# src/flowx/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, runs the console REPL, then shuts down.
"""

from __future__ import annotations

import logging

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    # Every TaskStore mutation is already written through; this is a final flush.
    try:
        state.task_store.save()
    except Exception:
        logger.exception("Failed to save tasks on shutdown.")

    speaker = getattr(state, "speaker", None)
    if speaker is not None and hasattr(speaker, "shutdown"):
        try:
            speaker.shutdown()
        except Exception:
            logger.debug("Speaker shutdown failed.", exc_info=True)

    storage = getattr(state, "storage", None)
    if storage is not None and hasattr(storage, "close"):
        try:
            storage.close()
        except Exception:
            logger.debug("Storage close failed.", exc_info=True)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    state = create_initial_state(settings=settings)
    try:
        run_console_loop(state)
    finally:
        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
