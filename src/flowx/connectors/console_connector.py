# src/flowx/connectors/console_connector.py

from __future__ import annotations

import logging
from datetime import datetime

from ..cli.commands import CommandContext
from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)

_YES = {"y", "yes", "1", "true", "ok", "done"}


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def _ask_yes_no(question: str) -> bool:
    try:
        answer = input(f"{question} [y/N]: ").strip().lower()
    except (EOFError, KeyboardInterrupt):
        print()
        return False
    return answer in _YES


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    app_name = str(getattr(state.settings, "app_name", "flow-x"))
    _print_ts(f"[{app_name}] Use /login <name> to start, /help for commands, /exit to quit.\n")

    def emit(text: str) -> None:
        print(f"[{_ts_local()}] {text}", flush=True)

    ctx = CommandContext(emit=emit, confirm=_ask_yes_no)

    while True:
        user = state.profile.username if state.profile else "guest"
        try:
            line = input(f"{user}> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not line:
            continue

        if line.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        if not line.startswith("/"):
            line = "/" + line

        try:
            reply = command_registry.handle(state, line, ctx)
        except KeyboardInterrupt:
            print()
            _print_ts("Interrupted.")
            continue
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply is not None:
            _print_ts(reply)

    logger.info("Console connector finished.")
