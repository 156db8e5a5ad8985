# src/taskflow/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


async def run_console_loop(state: AppState) -> None:
    """
    Interactive REPL over the command registry.

    input() runs in a worker thread so the event loop stays free for
    in-flight store requests.
    """
    logger.info("Console started (store=%s).", state.manager.backend.name)
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")

    app_name = str(getattr(state.settings, "app_name", "taskflow"))

    while True:
        try:
            user_input = (await asyncio.to_thread(input, f"{app_name}> ")).strip()
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
            # Bare text is a quick add for today.
            user_input = f"/add {user_input}"

        try:
            reply = await command_registry.handle(state, user_input)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply is not None:
            print(f"[{_ts_local()}] {reply}")

        if state.manager.error_message:
            print(f"[{_ts_local()}] [!] {state.manager.error_message} (use /dismiss to hide)")

    logger.info("Console finished.")
