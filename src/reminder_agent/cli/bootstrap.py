# src/reminder_agent/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the local (gitignored) data directory exists,
- wires the RPC client (tool server subprocess) and the completion client
  into a ReminderAgent.
"""

from __future__ import annotations

import logging
import os

from ..config import get_settings
from ..core.agent import ReminderAgent
from ..core.ports import CompletionClient
from ..core.state import AppState
from ..llm.client import OpenAICompletionClient
from ..llm.offline import OfflineCompletionClient
from ..rpc.client import RpcClient

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_file.parent.mkdir(parents=True, exist_ok=True)


def server_env(settings) -> dict[str, str]:
    """Environment for the tool server: same document and data dir as the agent."""
    env = dict(os.environ)
    env["REMINDER_TASKS_FILE"] = str(settings.tasks_file)
    env["REMINDER_DATA_DIR"] = str(settings.data_dir)
    env["REMINDER_LOG_LEVEL"] = str(settings.log_level)
    env["PYTHONUNBUFFERED"] = "1"
    return env


def build_rpc_client(settings) -> RpcClient:
    return RpcClient(
        settings.server_command,
        env=server_env(settings),
        request_timeout=settings.rpc_request_timeout,
        connect_timeout=settings.rpc_connect_timeout,
        client_name=settings.app_name,
    )


def build_completion_client(settings) -> CompletionClient:
    try:
        return OpenAICompletionClient(settings)
    except RuntimeError as e:
        # Fallback for demos / local runs without an LLM.
        logger.warning("%s Using offline mode.", e)
        return OfflineCompletionClient()


def create_initial_state(*, settings=None, mode: str = "daemon") -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    agent = ReminderAgent(build_rpc_client(settings), build_completion_client(settings))
    return AppState(settings=settings, agent=agent, mode=mode)
