# tests/test_cli.py

from __future__ import annotations

import pytest

from reminder_agent.cli import main as cli_main
from reminder_agent.cli.bootstrap import build_completion_client, server_env
from reminder_agent.connectors.console_connector import run_console_loop
from reminder_agent.core.ports import Completion
from reminder_agent.core.state import AppState
from reminder_agent.errors import HandshakeError
from reminder_agent.llm.client import OpenAICompletionClient, friendly_llm_error_message
from reminder_agent.llm.offline import OfflineCompletionClient
from reminder_agent.rpc.client import ToolCallResult

from .fakes import tool_call


@pytest.mark.parametrize(
    "argv, mode",
    [
        ([], "daemon"),
        (["once"], "once"),
        (["interactive"], "interactive"),
        (["-i"], "interactive"),
        (["daemon", "--interactive"], "interactive"),
    ],
)
def test_mode_selection(argv, mode) -> None:
    assert cli_main.resolve_mode(cli_main.build_parser().parse_args(argv)) == mode


def test_unknown_mode_is_rejected() -> None:
    with pytest.raises(SystemExit):
        cli_main.build_parser().parse_args(["sometimes"])


def test_completion_client_falls_back_to_offline(settings) -> None:
    assert isinstance(build_completion_client(settings), OfflineCompletionClient)

    settings.llm_base_url = "http://localhost:1234/v1"
    assert isinstance(build_completion_client(settings), OpenAICompletionClient)


def test_server_env_points_at_the_same_document(settings) -> None:
    env = server_env(settings)
    assert env["REMINDER_TASKS_FILE"] == str(settings.tasks_file)
    assert env["PYTHONUNBUFFERED"] == "1"


def test_friendly_llm_error_message() -> None:
    assert "missing API key" in friendly_llm_error_message(RuntimeError("LLM API key is not set."))
    assert friendly_llm_error_message(RuntimeError("")) == "LLM error."


@pytest.mark.asyncio
async def test_once_mode_prints_a_summary(state: AppState, capsys) -> None:
    state.mode = "once"
    state.agent.tools_client.results["get_task_summary"] = ToolCallResult(text='{"total": 1}')
    state.agent.llm.script[:] = [tool_call("get_task_summary"), Completion(content="One task left.")]

    assert await cli_main.run_mode(state) == 0

    out = capsys.readouterr().out
    assert "Task reminder" in out
    assert "One task left." in out
    assert state.agent.tools_client.disconnects == 1


@pytest.mark.asyncio
async def test_failed_start_returns_non_zero(state: AppState) -> None:
    state.agent.tools_client.connect_error = HandshakeError("tool-server did not answer initialize within 1.0s")

    assert await cli_main.run_mode(state) == 1
    assert state.agent.tools_client.disconnects == 1


@pytest.mark.asyncio
async def test_summary_failure_is_logged_not_raised(state: AppState, capsys, caplog) -> None:
    class BrokenLLM:
        async def complete(self, messages, tools):
            raise RuntimeError("LLM is rate-limited. Try again later.")

    state.agent._llm = BrokenLLM()

    await cli_main.print_summary(state)

    assert "Task reminder" not in capsys.readouterr().out
    assert any("rate-limited" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_console_loop(state: AppState, monkeypatch, capsys) -> None:
    lines = iter(["", "/tools", "what is overdue?", "exit", "never read"])
    monkeypatch.setattr("builtins.input", lambda _prompt="": next(lines))
    state.agent.llm.script[:] = [Completion(content="Nothing is overdue.")]

    await run_console_loop(state)

    out = capsys.readouterr().out
    assert "No tools loaded." in out
    assert "Nothing is overdue." in out
    assert next(lines) == "never read"


@pytest.mark.asyncio
async def test_console_loop_stops_on_eof(state: AppState, monkeypatch) -> None:
    def eof(_prompt: str = "") -> str:
        raise EOFError

    monkeypatch.setattr("builtins.input", eof)

    await run_console_loop(state)
