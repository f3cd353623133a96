# src/reminder_agent/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, connects the agent to the tool server,
then runs one of three modes:
- daemon: a summary now, then one per cron tick until SIGINT/SIGTERM,
- once: a single summary, then exit,
- interactive: console REPL.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.schedule import next_fire_time, run_on_schedule, validate_cron
from ..core.state import AppState
from ..errors import RpcClientError, TransportError
from ..llm.client import friendly_llm_error_message
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)

MODES = ("daemon", "once", "interactive")

_RULE = "=" * 60


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reminder-agent",
        description="Task reminder assistant backed by a JSON-RPC tool server.",
    )
    parser.add_argument("mode", nargs="?", choices=MODES, default=None, help="run mode (default: daemon)")
    parser.add_argument("-i", "--interactive", action="store_true", help="shortcut for the interactive mode")
    return parser


def resolve_mode(args: argparse.Namespace) -> str:
    if args.interactive:
        return "interactive"
    return args.mode or "daemon"


def print_header(title: str) -> None:
    print(f"\n{_RULE}\n  {title}\n{_RULE}\n", flush=True)


async def print_summary(state: AppState) -> None:
    """Print one summary; failures are reported and do not stop the caller."""
    try:
        summary = await state.agent.get_summary()
    except (RpcClientError, TransportError) as e:
        logger.error("Summary failed, tool server error: %s", e)
        return
    except RuntimeError as e:
        logger.error("Summary failed: %s", friendly_llm_error_message(e))
        return

    print_header("Task reminder")
    print(summary, flush=True)
    print(f"\n{_RULE}\n", flush=True)


async def run_daemon(state: AppState) -> None:
    expr = validate_cron(state.settings.reminder_cron)
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            # Not available on some platforms (e.g. Windows event loops).
            pass

    logger.info("Daemon mode: schedule %r, next run at %s", expr, next_fire_time(expr).isoformat())
    await print_summary(state)

    ticker = asyncio.create_task(run_on_schedule(expr, lambda: print_summary(state)))
    try:
        await stop.wait()
        logger.info("Signal received, shutting down...")
    finally:
        ticker.cancel()
        try:
            await ticker
        except asyncio.CancelledError:
            pass


async def run_mode(state: AppState) -> int:
    try:
        await state.agent.initialize()
    except (RpcClientError, TransportError) as e:
        logger.error("Could not start the tool server: %s", e)
        await state.agent.close()
        return 1

    try:
        if state.mode == "once":
            await print_summary(state)
        elif state.mode == "interactive":
            await run_console_loop(state)
        else:
            await run_daemon(state)
    finally:
        await state.agent.close()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    mode = resolve_mode(args)
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s in %s mode...", settings.app_name, mode)

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings, mode=mode)

    try:
        code = asyncio.run(run_mode(state))
    except KeyboardInterrupt:
        code = 0
    logger.info("Bye.")
    return code


if __name__ == "__main__":
    raise SystemExit(main())
