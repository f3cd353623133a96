# src/reminder_agent/tasks/tools.py

"""
Tool catalog and dispatcher.

The tool server exposes TOOLS via tools/list and routes tools/call here.
Arguments arrive as a loosely-typed mapping; parse_arguments() turns them into
one typed variant per tool and rejects bad shapes with ToolArgumentError before
anything touches the store.

ToolDispatcher.call() never raises: unknown tools, bad arguments, unknown ids
and store failures all come back as error-flagged results.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..errors import NotFoundError, ToolArgumentError
from .task_models import Priority, TaskFilter, TaskStatus, parse_timestamp
from .task_store import TaskStore

logger = logging.getLogger(__name__)

_STATUS_VALUES = [s.value for s in TaskStatus]
_PRIORITY_VALUES = [p.value for p in Priority]

TOOLS: list[dict[str, Any]] = [
    {
        "name": "get_tasks",
        "description": "List tasks, optionally filtered by status, priority, tag or due date range.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "status": {"type": "string", "enum": _STATUS_VALUES, "description": "Only tasks with this status"},
                "priority": {"type": "string", "enum": _PRIORITY_VALUES, "description": "Only tasks with this priority"},
                "tag": {"type": "string", "description": "Only tasks carrying this tag"},
                "dueBefore": {"type": "string", "description": "Only tasks due at or before this ISO-8601 time"},
                "dueAfter": {"type": "string", "description": "Only tasks due at or after this ISO-8601 time"},
            },
        },
    },
    {
        "name": "get_task_summary",
        "description": (
            "Summary of all tasks: totals, counts by status and priority, overdue tasks, "
            "tasks due in the next 24 hours and tasks due today."
        ),
        "inputSchema": {"type": "object", "properties": {}},
    },
    {
        "name": "get_task_by_id",
        "description": "Full details of one task by its ID.",
        "inputSchema": {
            "type": "object",
            "properties": {"id": {"type": "string", "description": "Task ID"}},
            "required": ["id"],
        },
    },
    {
        "name": "add_task",
        "description": "Create a new task.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "title": {"type": "string", "description": "Task title"},
                "description": {"type": "string", "description": "Task description"},
                "priority": {"type": "string", "enum": _PRIORITY_VALUES, "description": "Task priority"},
                "dueDate": {"type": "string", "description": "Due date (ISO-8601)"},
                "tags": {"type": "array", "items": {"type": "string"}, "description": "Task tags"},
            },
            "required": ["title", "priority"],
        },
    },
    {
        "name": "update_task_status",
        "description": "Change the status of a task.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "id": {"type": "string", "description": "Task ID"},
                "status": {"type": "string", "enum": _STATUS_VALUES, "description": "New status"},
            },
            "required": ["id", "status"],
        },
    },
    {
        "name": "delete_task",
        "description": "Delete a task by its ID.",
        "inputSchema": {
            "type": "object",
            "properties": {"id": {"type": "string", "description": "ID of the task to delete"}},
            "required": ["id"],
        },
    },
    {
        "name": "get_overdue_tasks",
        "description": "List overdue tasks.",
        "inputSchema": {"type": "object", "properties": {}},
    },
    {
        "name": "get_today_tasks",
        "description": "List tasks due today.",
        "inputSchema": {"type": "object", "properties": {}},
    },
]

TOOL_NAMES = frozenset(t["name"] for t in TOOLS)


# ---- argument variants ----


@dataclass(slots=True, frozen=True)
class NoArgs:
    pass


@dataclass(slots=True, frozen=True)
class GetTasksArgs:
    status: TaskStatus | None = None
    priority: Priority | None = None
    tag: str | None = None
    due_before: datetime | None = None
    due_after: datetime | None = None

    def to_filter(self) -> TaskFilter:
        return TaskFilter(
            status=self.status,
            priority=self.priority,
            tag=self.tag,
            due_before=self.due_before,
            due_after=self.due_after,
        )


@dataclass(slots=True, frozen=True)
class TaskIdArgs:
    id: str


@dataclass(slots=True, frozen=True)
class AddTaskArgs:
    title: str
    priority: Priority
    description: str | None = None
    due_date: datetime | None = None
    tags: list[str] | None = None


@dataclass(slots=True, frozen=True)
class UpdateTaskStatusArgs:
    id: str
    status: TaskStatus


ToolArgs = NoArgs | GetTasksArgs | TaskIdArgs | AddTaskArgs | UpdateTaskStatusArgs


def _optional_str(raw: Mapping[str, Any], key: str) -> str | None:
    value = raw.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ToolArgumentError(f"'{key}' must be a string")
    return value


def _required_str(raw: Mapping[str, Any], key: str) -> str:
    value = raw.get(key)
    # Models sometimes send numeric ids.
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str) or not value.strip():
        raise ToolArgumentError(f"missing required argument '{key}'")
    return value.strip()


def _enum(raw: Mapping[str, Any], key: str, enum_cls: type[Priority] | type[TaskStatus], *, required: bool) -> Any:
    value = _required_str(raw, key) if required else _optional_str(raw, key)
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ToolArgumentError(f"'{key}' must be one of: {allowed} (got {value!r})") from None


def _timestamp(raw: Mapping[str, Any], key: str) -> datetime | None:
    value = _optional_str(raw, key)
    if value is None:
        return None
    try:
        return parse_timestamp(value)
    except ValueError:
        raise ToolArgumentError(f"'{key}' must be an ISO-8601 date/time (got {value!r})") from None


def _tags(raw: Mapping[str, Any]) -> list[str] | None:
    value = raw.get("tags")
    if value is None:
        return None
    if isinstance(value, str):
        value = [p.strip() for p in value.split(",") if p.strip()]
    if not isinstance(value, list) or not all(isinstance(t, str) for t in value):
        raise ToolArgumentError("'tags' must be a list of strings")
    return list(value)


def parse_arguments(name: str, raw: Mapping[str, Any] | None) -> ToolArgs:
    """Validate a raw argument mapping against the shape of tool `name`."""
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ToolArgumentError("arguments must be an object")

    if name == "get_tasks":
        return GetTasksArgs(
            status=_enum(raw, "status", TaskStatus, required=False),
            priority=_enum(raw, "priority", Priority, required=False),
            tag=_optional_str(raw, "tag"),
            due_before=_timestamp(raw, "dueBefore"),
            due_after=_timestamp(raw, "dueAfter"),
        )
    if name in ("get_task_by_id", "delete_task"):
        return TaskIdArgs(id=_required_str(raw, "id"))
    if name == "add_task":
        return AddTaskArgs(
            title=_required_str(raw, "title"),
            priority=_enum(raw, "priority", Priority, required=True),
            description=_optional_str(raw, "description"),
            due_date=_timestamp(raw, "dueDate"),
            tags=_tags(raw),
        )
    if name == "update_task_status":
        return UpdateTaskStatusArgs(
            id=_required_str(raw, "id"),
            status=_enum(raw, "status", TaskStatus, required=True),
        )
    if name in ("get_task_summary", "get_overdue_tasks", "get_today_tasks"):
        return NoArgs()
    raise ToolArgumentError(f"Unknown tool: {name}")


# ---- results ----


@dataclass(slots=True, frozen=True)
class ToolResult:
    text: str
    is_error: bool = False

    def to_content(self) -> dict[str, Any]:
        return {"content": [{"type": "text", "text": self.text}], "isError": self.is_error}


def render(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)


class ToolDispatcher:
    def __init__(self, store: TaskStore) -> None:
        self._store = store
        self._handlers: dict[str, Callable[[Any], str]] = {
            "get_tasks": self._get_tasks,
            "get_task_summary": self._get_task_summary,
            "get_task_by_id": self._get_task_by_id,
            "add_task": self._add_task,
            "update_task_status": self._update_task_status,
            "delete_task": self._delete_task,
            "get_overdue_tasks": self._get_overdue_tasks,
            "get_today_tasks": self._get_today_tasks,
        }

    def call(self, name: str, arguments: Mapping[str, Any] | None = None) -> ToolResult:
        handler = self._handlers.get(name)
        if handler is None:
            logger.info("Unknown tool requested: %s", name)
            return ToolResult(f"Unknown tool: {name}", is_error=True)

        try:
            args = parse_arguments(name, arguments)
            text = handler(args)
        except ToolArgumentError as e:
            logger.info("Tool %s rejected arguments: %s", name, e)
            return ToolResult(f"Invalid arguments: {e}", is_error=True)
        except NotFoundError as e:
            return ToolResult(str(e), is_error=True)
        except Exception as e:
            logger.exception("Tool %s failed", name)
            return ToolResult(f"Error: {e}", is_error=True)

        logger.debug("Tool %s ok (%d chars)", name, len(text))
        return ToolResult(text)

    # ---- handlers ----

    def _get_tasks(self, args: GetTasksArgs) -> str:
        return render([t.to_dict() for t in self._store.list_tasks(args.to_filter())])

    def _get_task_summary(self, _args: NoArgs) -> str:
        return render(self._store.summary().to_dict())

    def _get_task_by_id(self, args: TaskIdArgs) -> str:
        task = self._store.get_task(args.id)
        if task is None:
            raise NotFoundError(args.id)
        return render(task.to_dict())

    def _add_task(self, args: AddTaskArgs) -> str:
        task = self._store.add_task(
            title=args.title,
            priority=args.priority,
            description=args.description,
            due_date=args.due_date,
            tags=args.tags,
        )
        return f"Task created:\n{render(task.to_dict())}"

    def _update_task_status(self, args: UpdateTaskStatusArgs) -> str:
        task = self._store.update_task_status(args.id, args.status)
        if task is None:
            raise NotFoundError(args.id)
        return f"Status updated:\n{render(task.to_dict())}"

    def _delete_task(self, args: TaskIdArgs) -> str:
        if not self._store.delete_task(args.id):
            raise NotFoundError(args.id)
        return "Task deleted"

    def _get_overdue_tasks(self, _args: NoArgs) -> str:
        return render(self._store.summary().to_dict()["overdueTasks"])

    def _get_today_tasks(self, _args: NoArgs) -> str:
        return render(self._store.summary().to_dict()["todayTasks"])
