# tests/test_tools.py

from __future__ import annotations

import json
from datetime import timedelta

import pytest

from reminder_agent.errors import ToolArgumentError
from reminder_agent.tasks.task_models import Priority, TaskStatus, format_timestamp
from reminder_agent.tasks.task_store import TaskStore
from reminder_agent.tasks.tools import (
    TOOL_NAMES,
    TOOLS,
    AddTaskArgs,
    GetTasksArgs,
    TaskIdArgs,
    ToolDispatcher,
    parse_arguments,
)

from .conftest import FIXED_NOW


@pytest.fixture()
def dispatcher(store: TaskStore) -> ToolDispatcher:
    return ToolDispatcher(store)


def _created(dispatcher: ToolDispatcher, **arguments) -> dict:
    result = dispatcher.call("add_task", arguments)
    assert not result.is_error, result.text
    header, _, body = result.text.partition("\n")
    assert header == "Task created:"
    return json.loads(body)


def test_catalog_lists_every_tool_with_object_schema() -> None:
    assert TOOL_NAMES == {
        "get_tasks",
        "get_task_summary",
        "get_task_by_id",
        "add_task",
        "update_task_status",
        "delete_task",
        "get_overdue_tasks",
        "get_today_tasks",
    }
    for tool in TOOLS:
        assert tool["description"]
        assert tool["inputSchema"]["type"] == "object"

    add = next(t for t in TOOLS if t["name"] == "add_task")
    assert add["inputSchema"]["required"] == ["title", "priority"]


def test_unknown_tool_is_an_error_result(dispatcher: ToolDispatcher) -> None:
    result = dispatcher.call("launch_rockets", {})
    assert result.is_error
    assert result.text == "Unknown tool: launch_rockets"


def test_add_task_then_fetch_by_id(dispatcher: ToolDispatcher) -> None:
    due = format_timestamp(FIXED_NOW + timedelta(days=2))
    task = _created(
        dispatcher,
        title="Renew passport",
        priority="high",
        description="Book an appointment",
        dueDate=due,
        tags=["personal"],
    )
    assert task["status"] == "pending"
    assert task["dueDate"] == due

    fetched = dispatcher.call("get_task_by_id", {"id": task["id"]})
    assert not fetched.is_error
    assert json.loads(fetched.text) == task


@pytest.mark.parametrize(
    "arguments, fragment",
    [
        ({"priority": "high"}, "missing required argument 'title'"),
        ({"title": "x"}, "missing required argument 'priority'"),
        ({"title": "x", "priority": "urgent"}, "'priority' must be one of"),
        ({"title": "x", "priority": "low", "dueDate": "next tuesday"}, "'dueDate' must be an ISO-8601"),
        ({"title": "x", "priority": "low", "tags": [1, 2]}, "'tags' must be a list of strings"),
    ],
)
def test_add_task_rejects_bad_arguments(dispatcher: ToolDispatcher, store: TaskStore, arguments, fragment) -> None:
    result = dispatcher.call("add_task", arguments)

    assert result.is_error
    assert result.text.startswith("Invalid arguments: ")
    assert fragment in result.text
    assert store.list_tasks() == []


def test_unknown_ids_report_not_found(dispatcher: ToolDispatcher) -> None:
    for name, arguments in (
        ("get_task_by_id", {"id": "42"}),
        ("update_task_status", {"id": "42", "status": "completed"}),
        ("delete_task", {"id": "42"}),
    ):
        result = dispatcher.call(name, arguments)
        assert result.is_error
        assert result.text == "Task not found: 42"


def test_update_status_and_delete(dispatcher: ToolDispatcher, store: TaskStore) -> None:
    task = _created(dispatcher, title="Water plants", priority="low")

    result = dispatcher.call("update_task_status", {"id": task["id"], "status": "completed"})
    assert not result.is_error
    assert result.text.startswith("Status updated:\n")
    assert json.loads(result.text.partition("\n")[2])["status"] == "completed"

    bad = dispatcher.call("update_task_status", {"id": task["id"], "status": "done"})
    assert bad.is_error
    assert store.get_task(task["id"]).status == TaskStatus.COMPLETED

    deleted = dispatcher.call("delete_task", {"id": task["id"]})
    assert not deleted.is_error
    assert deleted.text == "Task deleted"
    assert store.list_tasks() == []


def test_get_tasks_with_filters(dispatcher: ToolDispatcher) -> None:
    _created(dispatcher, title="a", priority="high", tags=["work"])
    _created(dispatcher, title="b", priority="low", tags=["home"])

    everything = json.loads(dispatcher.call("get_tasks", {}).text)
    assert [t["title"] for t in everything] == ["a", "b"]

    high = json.loads(dispatcher.call("get_tasks", {"priority": "high"}).text)
    assert [t["title"] for t in high] == ["a"]

    home = json.loads(dispatcher.call("get_tasks", {"tag": "home", "status": "pending"}).text)
    assert [t["title"] for t in home] == ["b"]

    bad = dispatcher.call("get_tasks", {"status": "sleeping"})
    assert bad.is_error


def test_summary_overdue_and_today_views(dispatcher: ToolDispatcher) -> None:
    late = _created(
        dispatcher,
        title="late",
        priority="critical",
        dueDate=format_timestamp(FIXED_NOW - timedelta(hours=3)),
    )
    soon = _created(
        dispatcher,
        title="soon",
        priority="medium",
        dueDate=format_timestamp(FIXED_NOW + timedelta(minutes=1)),
    )

    summary = json.loads(dispatcher.call("get_task_summary", {}).text)
    assert summary["total"] == 2
    assert summary["byStatus"]["overdue"] == 1
    assert summary["byPriority"] == {"low": 0, "medium": 1, "high": 0, "critical": 1}

    overdue = json.loads(dispatcher.call("get_overdue_tasks", {}).text)
    assert [t["id"] for t in overdue] == [late["id"]]

    today = json.loads(dispatcher.call("get_today_tasks", {}).text)
    assert soon["id"] in [t["id"] for t in today]


def test_store_failure_becomes_error_text(dispatcher: ToolDispatcher, store: TaskStore, monkeypatch) -> None:
    def boom(*_args, **_kwargs):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(store, "summary", boom)

    result = dispatcher.call("get_task_summary", {})
    assert result.is_error
    assert result.text == "Error: disk on fire"


def test_result_content_shape(dispatcher: ToolDispatcher) -> None:
    content = dispatcher.call("get_tasks", {}).to_content()
    assert content == {"content": [{"type": "text", "text": "[]"}], "isError": False}


def test_parse_arguments_accepts_lenient_shapes() -> None:
    assert parse_arguments("get_task_by_id", {"id": 17}) == TaskIdArgs(id="17")

    args = parse_arguments("add_task", {"title": "t", "priority": "low", "tags": "a, b,,c"})
    assert isinstance(args, AddTaskArgs)
    assert args.priority == Priority.LOW
    assert args.tags == ["a", "b", "c"]

    assert parse_arguments("get_tasks", None) == GetTasksArgs()
    assert parse_arguments("get_tasks", {"status": ""}) == GetTasksArgs()


def test_parse_arguments_rejects_non_object() -> None:
    with pytest.raises(ToolArgumentError):
        parse_arguments("get_tasks", ["status", "pending"])
    with pytest.raises(ToolArgumentError):
        parse_arguments("get_task_by_id", {"id": True})
