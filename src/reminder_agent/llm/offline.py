# src/reminder_agent/llm/offline.py

from __future__ import annotations

import json
from typing import Any

from ..core.ports import ChatMessage, Completion, ToolCall


class OfflineCompletionClient:
    """
    Offline deterministic completion client used when no LLM is configured.

    Behavior:
    - first turn with the summary tool available -> requests get_task_summary
    - turn after a tool result -> renders a plain-text digest of that result
    - anything else -> a short "offline mode" notice echoing the user
    """

    async def complete(self, messages: list[ChatMessage], tools: list[dict[str, Any]]) -> Completion:
        last = messages[-1] if messages else {}

        if last.get("role") == "tool":
            return Completion(content=_digest(str(last.get("content") or "")))

        names = {t.get("function", {}).get("name") for t in tools}
        if "get_task_summary" in names:
            return Completion(
                content=None,
                tool_calls=[ToolCall(id="offline-1", name="get_task_summary", arguments="{}")],
            )

        user_text = ""
        for m in reversed(messages):
            if m.get("role") == "user":
                user_text = str(m.get("content") or "")
                break
        return Completion(content=_offline_notice(f"You said: {user_text}"))


def _offline_notice(body: str) -> str:
    return (
        "Offline demo mode: no LLM is configured.\n"
        "Set REMINDER_LLM_API_KEY (or REMINDER_LLM_BASE_URL for a local model) to enable real answers.\n\n"
        f"{body}"
    )


def _titles(tasks: Any) -> str:
    if not isinstance(tasks, list) or not tasks:
        return "none"
    return ", ".join(f"{t.get('title', '?')} [{t.get('priority', '?')}]" for t in tasks if isinstance(t, dict))


def _digest(text: str) -> str:
    if text.startswith("Error:"):
        return _offline_notice(text)
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return _offline_notice(text)
    if not isinstance(data, dict) or "total" not in data:
        return _offline_notice(text)

    by_status = data.get("byStatus") or {}
    lines = [
        f"Tasks: {data.get('total', 0)} total "
        f"({by_status.get('pending', 0)} pending, {by_status.get('in_progress', 0)} in progress, "
        f"{by_status.get('completed', 0)} completed, {by_status.get('overdue', 0)} overdue)",
        f"Overdue: {_titles(data.get('overdueTasks'))}",
        f"Due today: {_titles(data.get('todayTasks'))}",
        f"Due in the next 24h: {_titles(data.get('upcomingTasks'))}",
    ]
    return _offline_notice("\n".join(lines))
