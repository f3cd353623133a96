# tests/fakes.py

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from reminder_agent.core.ports import ChatMessage, Completion, ToolCall
from reminder_agent.rpc.client import ToolCallResult


class FrozenClock:
    """Callable clock for TaskStore / run_on_schedule; only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 0.0, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds, **kwargs)
        return self.now


def write_document(path: Path, tasks: list[dict[str, Any]]) -> None:
    """Write a tasks document by hand, as another process (or a person) would."""
    path.write_text(
        json.dumps({"tasks": tasks, "lastUpdated": "2024-06-15T12:00:00.000Z"}, indent=2),
        "utf-8",
    )


def read_document(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text("utf-8"))


class FakeCompletionClient:
    """
    Deterministic completion client for agent tests.

    - Replays a scripted list of completions (the last one repeats)
    - Captures a copy of every message list it was given
    """

    def __init__(self, *script: Completion) -> None:
        self.script = list(script) or [Completion(content="ok")]
        self.calls: list[tuple[list[ChatMessage], list[dict[str, Any]]]] = []
        self.closed = False

    async def complete(self, messages: list[ChatMessage], tools: list[dict[str, Any]]) -> Completion:
        self.calls.append(([dict(m) for m in messages], list(tools)))
        if len(self.script) > 1:
            return self.script.pop(0)
        return self.script[0]

    async def close(self) -> None:
        self.closed = True


def tool_call(name: str, arguments: str = "{}", call_id: str = "call-1") -> Completion:
    return Completion(content=None, tool_calls=[ToolCall(id=call_id, name=name, arguments=arguments)])


@dataclass(slots=True)
class FakeToolClient:
    """
    In-memory ToolClient: a fixed catalog and canned results per tool name.

    A result may be an exception instance; it is raised from call_tool.
    """

    catalog: list[dict[str, Any]] = field(default_factory=list)
    results: dict[str, Any] = field(default_factory=dict)
    calls: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    connected: bool = False
    disconnects: int = 0
    connect_error: BaseException | None = None

    async def connect(self) -> None:
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False
        self.disconnects += 1

    async def list_tools(self) -> list[dict[str, Any]]:
        return list(self.catalog)

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> ToolCallResult:
        self.calls.append((name, dict(arguments or {})))
        result = self.results.get(name, ToolCallResult(text=f"Unknown tool: {name}", is_error=True))
        if isinstance(result, BaseException):
            raise result
        return result


class FakeWriter:
    """MessageWriter that keeps every line the server wrote."""

    def __init__(self) -> None:
        self.data = b""

    async def write(self, data: bytes) -> None:
        self.data += data

    @property
    def messages(self) -> list[dict[str, Any]]:
        return [json.loads(line) for line in self.data.decode("utf-8").splitlines() if line.strip()]
