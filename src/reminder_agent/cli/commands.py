# src/reminder_agent/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from ..core.state import AppState

CommandHandler = Callable[[AppState, list[str]], Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /summary, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return await handler(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("  /exit - quit")
        lines.append("Any other text is sent to the assistant.")
        return "\n".join(lines)


registry = CommandRegistry()


async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_summary(state: AppState, args: list[str]) -> str:
    return await state.agent.get_summary()


async def cmd_tools(state: AppState, args: list[str]) -> str:
    names = state.agent.tool_names
    if not names:
        return "No tools loaded."
    lines = [f"Tools ({len(names)}):"]
    for tool in state.agent.tools:
        fn = tool["function"]
        lines.append(f"  {fn['name']} - {fn.get('description', '')}")
    return "\n".join(lines)


async def cmd_status(state: AppState, args: list[str]) -> str:
    settings = state.settings
    endpoint = getattr(settings, "llm_base_url", None) or "OpenAI default"
    llm_kind = type(state.agent.llm).__name__
    return (
        "Status:\n"
        f"  LLM: {llm_kind} model={getattr(settings, 'llm_model', '?')} endpoint={endpoint}\n"
        f"  Tasks file: {getattr(settings, 'tasks_file', '?')}\n"
        f"  Schedule: {getattr(settings, 'reminder_cron', '?')}\n"
        f"  Tools loaded: {len(state.agent.tools)}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("summary", cmd_summary, help_text="Ask for a task summary now.", aliases=["s"])
registry.register("tools", cmd_tools, help_text="List the tools the assistant can use.")
registry.register("status", cmd_status, help_text="Show LLM, tasks file and schedule settings.")
