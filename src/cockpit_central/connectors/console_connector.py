# src/cockpit_central/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.errors import CockpitError, friendly_error_message
from ..core.state import AppState

logger = logging.getLogger(__name__)

_LEVEL_TAGS = {"warn": "[WARN]", "error": "[ERROR]", "info": "[INFO]"}


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def _flush_notifications(state: AppState) -> None:
    for level, message in state.notifier.drain():
        _print_ts(f"{_LEVEL_TAGS.get(level, '[INFO]')} {message}")


async def run_console_loop(state: AppState) -> None:
    logger.info("Console started (configured=%s).", not state.needs_configuration)
    _print_ts("[CONSOLE] Use /help for commands, /load to fetch tasks, /exit to quit.\n")

    if state.needs_configuration:
        _print_ts(
            "[CONFIG] Needs configuration. Missing: " + ", ".join(state.missing_settings)
        )

    def emit(text: str) -> None:
        print(f"[{_ts_local()}] {text}", flush=True)

    while True:
        try:
            # input() blocks; keep the event loop free while waiting.
            user_input = (await asyncio.to_thread(input, ">>> ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        if not user_input.startswith("/"):
            _print_ts("Commands start with '/'. Use /help.")
            continue

        try:
            reply = await command_registry.handle(state, user_input, emit=emit)
        except CockpitError as e:
            logger.info("Command failed: %s", e)
            reply = friendly_error_message(e)
        except ValueError as e:
            reply = str(e)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        _flush_notifications(state)
        if reply is not None:
            print(f"[{_ts_local()}] {reply}")

    logger.info("Console finished.")
