# src/reminder_agent/server.py

"""
Tool server process: `python -m reminder_agent.server`.

stdout carries JSON-RPC lines only; all logging goes to stderr (which the agent
forwards into its own log) and to <data_dir>/server.log.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from . import __version__
from .config import Settings, get_settings
from .errors import ToolArgumentError
from .logging_setup import setup_logging
from .rpc.messages import TOOLS_CALL, TOOLS_LIST
from .rpc.server import RpcServer, run_stdio
from .tasks.task_store import TaskStore
from .tasks.tools import TOOLS, ToolDispatcher

logger = logging.getLogger(__name__)

SERVER_NAME = "reminder-task-server"


def build_server(dispatcher: ToolDispatcher) -> RpcServer:
    server = RpcServer(
        SERVER_NAME,
        __version__,
        instructions="Personal task list: query, summarise, add, update and delete tasks.",
    )
    # Store calls run in a worker thread so framing never stalls; the lock keeps
    # them one at a time (single writer).
    store_lock = asyncio.Lock()

    def list_tools(_params: dict[str, Any]) -> dict[str, Any]:
        return {"tools": TOOLS}

    async def call_tool(params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise ToolArgumentError("tools/call requires a tool 'name'")
        arguments = params.get("arguments") or {}
        logger.info("tools/call %s", name)
        async with store_lock:
            result = await asyncio.to_thread(dispatcher.call, name, arguments)
        return result.to_content()

    server.register(TOOLS_LIST, list_tools)
    server.register(TOOLS_CALL, call_tool)
    return server


def main(settings: Settings | None = None) -> None:
    if settings is None:
        settings = get_settings()

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level, log_file_name="server.log")

    store = TaskStore(settings.tasks_file)
    server = build_server(ToolDispatcher(store))
    logger.info("%s %s started (tasks=%s)", SERVER_NAME, __version__, settings.tasks_file)

    try:
        asyncio.run(run_stdio(server))
    except KeyboardInterrupt:
        pass
    logger.info("%s stopped", SERVER_NAME)


if __name__ == "__main__":
    main()
