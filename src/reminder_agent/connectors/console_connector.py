# src/reminder_agent/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..errors import RpcClientError, TransportError
from ..llm.client import friendly_llm_error_message

logger = logging.getLogger(__name__)

_EXIT_WORDS = ("/exit", "/quit", "exit", "quit")


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


async def run_console_loop(state: AppState) -> None:
    """
    Interactive REPL on stdin/stdout.

    input() runs in a worker thread so the event loop (and with it the RPC
    reader tasks) keeps running while the user types.
    """
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Type a question about your tasks. 'summary' for a digest, /help for commands, 'exit' to quit.\n")

    while True:
        try:
            user_input = (await asyncio.to_thread(input, ">>> You: ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in _EXIT_WORDS:
            logger.info("Console exit command received.")
            break

        if user_input.lower() == "summary":
            user_input = "/summary"

        try:
            reply = await command_registry.handle(state, user_input)
            if reply is None:
                reply = await state.agent.chat(user_input)
        except (RpcClientError, TransportError) as e:
            logger.warning("Tool server error: %s", e)
            reply = f"Tool server error: {e}"
        except RuntimeError as e:
            logger.warning("LLM error: %s", e)
            reply = friendly_llm_error_message(e)
        except Exception:
            logger.exception("Console handler crashed.")
            reply = "Internal error while handling your message."

        _print_ts(f"<<< {state.settings.app_name}:\n{reply}\n")
