# src/reminder_agent/core/agent.py

"""
Agent loop.

Sends the conversation plus the tool catalog to the completion client; while
the model asks for tools, each call is forwarded to the tool server and its
result appended as a "tool" message, then the model is asked again. The first
reply without tool calls is the answer.

Key invariants:
- a failing tool call never aborts the loop: the model sees "Error: ..." as the
  tool result and can recover or explain,
- the loop is bounded by max_tool_rounds.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from ..errors import RpcClientError, TransportError
from .persona import SUMMARY_REQUEST, get_system_prompt
from .ports import ChatMessage, CompletionClient, ToolCall, ToolClient

logger = logging.getLogger(__name__)


def to_openai_tool(descriptor: dict[str, Any]) -> dict[str, Any]:
    """tools/list descriptor -> OpenAI function-tool definition."""
    return {
        "type": "function",
        "function": {
            "name": descriptor["name"],
            "description": descriptor.get("description", ""),
            "parameters": descriptor.get("inputSchema") or {"type": "object", "properties": {}},
        },
    }


class ReminderAgent:
    def __init__(self, tools_client: ToolClient, llm: CompletionClient, *, max_tool_rounds: int = 8) -> None:
        self._rpc = tools_client
        self._llm = llm
        self._max_tool_rounds = max(1, int(max_tool_rounds))
        self.tools: list[dict[str, Any]] = []

    @property
    def tool_names(self) -> list[str]:
        return [t["function"]["name"] for t in self.tools]

    @property
    def llm(self) -> CompletionClient:
        return self._llm

    @property
    def tools_client(self) -> ToolClient:
        return self._rpc

    async def initialize(self) -> None:
        """Connect to the tool server and load its tool catalog."""
        await self._rpc.connect()
        catalog = await self._rpc.list_tools()
        self.tools = [to_openai_tool(t) for t in catalog if isinstance(t.get("name"), str)]
        logger.info("Loaded %d tools: %s", len(self.tools), ", ".join(self.tool_names))

    async def close(self) -> None:
        try:
            await self._rpc.disconnect()
        finally:
            close = getattr(self._llm, "close", None)
            if callable(close):
                await close()

    async def get_summary(self) -> str:
        messages: list[ChatMessage] = [
            {"role": "system", "content": get_system_prompt(summary=True)},
            {"role": "user", "content": SUMMARY_REQUEST},
        ]
        return await self._run(messages, fallback="Could not get a task summary.")

    async def chat(self, user_message: str) -> str:
        messages: list[ChatMessage] = [
            {"role": "system", "content": get_system_prompt(summary=False)},
            {"role": "user", "content": user_message},
        ]
        return await self._run(messages, fallback="No answer.")

    async def _run(self, messages: list[ChatMessage], *, fallback: str) -> str:
        completion = await self._llm.complete(messages, self.tools)
        rounds = 0

        while completion.tool_calls:
            if rounds >= self._max_tool_rounds:
                logger.warning("Tool loop stopped after %d rounds", rounds)
                break
            rounds += 1

            messages.append(completion.assistant_message())
            for call in completion.tool_calls:
                messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": call.id,
                        "content": await self._invoke(call),
                    }
                )

            completion = await self._llm.complete(messages, self.tools)

        return (completion.content or "").strip() or fallback

    async def _invoke(self, call: ToolCall) -> str:
        logger.info("Tool call: %s", call.name)
        try:
            args = json.loads(call.arguments or "{}")
        except json.JSONDecodeError as e:
            return f"Error: invalid JSON arguments for {call.name}: {e.msg}"
        if not isinstance(args, dict):
            return f"Error: arguments for {call.name} must be a JSON object"

        try:
            result = await self._rpc.call_tool(call.name, args)
        except (RpcClientError, TransportError) as e:
            logger.warning("Tool %s failed: %s", call.name, e)
            return f"Error: {e}"

        if result.is_error:
            logger.info("Tool %s returned an error: %s", call.name, result.text[:200])
            return f"Error: {result.text}"
        return result.text
