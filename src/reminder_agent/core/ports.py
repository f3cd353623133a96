# src/reminder_agent/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The agent depends on Protocols instead of concrete implementations, so the LLM
provider and the tool transport stay swappable and tests can use fakes.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol

from ..rpc.client import ToolCallResult

ChatMessage = dict[str, Any]
# OpenAI-style chat messages: {"role": "...", "content": "...", ...}.


@dataclass(slots=True, frozen=True)
class ToolCall:
    id: str
    name: str
    arguments: str  # raw JSON text, exactly as the model produced it


@dataclass(slots=True, frozen=True)
class Completion:
    content: str | None
    tool_calls: list[ToolCall] = field(default_factory=list)

    def assistant_message(self) -> ChatMessage:
        """The assistant turn to append to the history before sending tool results."""
        msg: ChatMessage = {"role": "assistant", "content": self.content}
        if self.tool_calls:
            msg["tool_calls"] = [
                {
                    "id": c.id,
                    "type": "function",
                    "function": {"name": c.name, "arguments": c.arguments},
                }
                for c in self.tool_calls
            ]
        return msg


class CompletionClient(Protocol):
    """Chat completion with tool calling: complete(messages, tools) -> Completion."""

    async def complete(self, messages: list[ChatMessage], tools: list[dict[str, Any]]) -> Completion: ...


class ToolClient(Protocol):
    """What the agent needs from the tool transport (RpcClient satisfies it)."""

    async def connect(self) -> None: ...
    async def disconnect(self) -> None: ...
    async def list_tools(self) -> list[dict[str, Any]]: ...
    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> ToolCallResult: ...
