# tests/test_server_process.py

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import pytest

from reminder_agent.rpc.client import RpcClient

SRC = Path(__file__).resolve().parents[1] / "src"


def _server_client(tmp_path: Path) -> RpcClient:
    env = dict(os.environ)
    env["REMINDER_TASKS_FILE"] = str(tmp_path / "tasks.json")
    env["REMINDER_DATA_DIR"] = str(tmp_path / "data")
    env["PYTHONPATH"] = os.pathsep.join(p for p in (str(SRC), env.get("PYTHONPATH", "")) if p)
    env["PYTHONUNBUFFERED"] = "1"
    return RpcClient(
        [sys.executable, "-m", "reminder_agent.server"],
        env=env,
        cwd=str(tmp_path),
        request_timeout=15.0,
        connect_timeout=15.0,
    )


@pytest.mark.asyncio
async def test_real_tool_server_round_trip(tmp_path: Path) -> None:
    async with _server_client(tmp_path) as client:
        assert client.server_info["name"] == "reminder-task-server"

        tools = await client.list_tools()
        assert len(tools) == 8

        summary = await client.call_tool("get_task_summary")
        assert summary.is_error is False
        data = json.loads(summary.text)
        assert data["total"] == 5
        assert data["byStatus"]["overdue"] >= 1

        created = await client.call_tool("add_task", {"title": "End to end", "priority": "critical"})
        assert created.is_error is False
        task_id = json.loads(created.text.partition("\n")[2])["id"]

        fetched = await client.call_tool("get_task_by_id", {"id": task_id})
        assert json.loads(fetched.text)["title"] == "End to end"

        missing = await client.call_tool("get_task_by_id", {"id": "does-not-exist"})
        assert missing.is_error is True
        assert missing.text == "Task not found: does-not-exist"

    doc = json.loads((tmp_path / "tasks.json").read_text("utf-8"))
    assert any(t["title"] == "End to end" for t in doc["tasks"])
    assert (tmp_path / "data" / "server.log").exists()
