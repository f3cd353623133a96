# src/reminder_agent/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    Notes:
    - "overdue" is derived by the store (due date passed, not completed) and is
      only ever left through an explicit status update.
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"


def parse_timestamp(raw: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    "Z" is accepted; a value without an offset is taken as local time.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise ValueError("timestamp must be a non-empty ISO-8601 string")
    try:
        dt = datetime.fromisoformat(raw.strip())
    except ValueError as e:
        raise ValueError(f"invalid ISO-8601 timestamp: {raw!r}") from e
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return truncate_ms(dt.astimezone(UTC))


def truncate_ms(dt: datetime) -> datetime:
    """Drop sub-millisecond digits: the document stores milliseconds only."""
    return dt.replace(microsecond=dt.microsecond - dt.microsecond % 1000)


def format_timestamp(dt: datetime) -> str:
    """UTC, millisecond precision, "Z" suffix: 2024-01-31T09:00:00.000Z."""
    return dt.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(slots=True)
class Task:
    id: str
    title: str
    priority: Priority
    status: TaskStatus
    created_at: datetime
    updated_at: datetime

    description: str | None = None
    due_date: datetime | None = None
    tags: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "title": self.title}
        if self.description is not None:
            out["description"] = self.description
        out["priority"] = self.priority.value
        out["status"] = self.status.value
        if self.due_date is not None:
            out["dueDate"] = format_timestamp(self.due_date)
        if self.tags is not None:
            out["tags"] = list(self.tags)
        out["createdAt"] = format_timestamp(self.created_at)
        out["updatedAt"] = format_timestamp(self.updated_at)
        return out

    @classmethod
    def from_dict(cls, raw: Any, *, now: datetime | None = None) -> Task:
        """
        Build a task from a stored record.

        Only the id is mandatory. A missing title reads as "", a missing
        priority as medium, a missing status as pending, and missing
        timestamps as `now` (the load instant). Values that are present but
        unreadable (unknown enum, bad timestamp) raise ValueError.
        """
        if not isinstance(raw, dict):
            raise ValueError("task record must be an object")

        task_id = raw.get("id")
        if task_id is None or str(task_id).strip() == "":
            raise ValueError("task record has no id")
        title = raw.get("title")

        try:
            priority = Priority(raw.get("priority") or Priority.MEDIUM)
        except ValueError as e:
            raise ValueError(f"task {task_id}: unknown priority {raw.get('priority')!r}") from e
        try:
            status = TaskStatus(raw.get("status") or TaskStatus.PENDING)
        except ValueError as e:
            raise ValueError(f"task {task_id}: unknown status {raw.get('status')!r}") from e

        loaded_at = truncate_ms((now or datetime.now(UTC)).astimezone(UTC))
        created_raw = raw.get("createdAt")
        updated_raw = raw.get("updatedAt") or created_raw
        created_at = parse_timestamp(created_raw) if created_raw else loaded_at
        updated_at = parse_timestamp(updated_raw) if updated_raw else created_at
        if updated_at < created_at:
            updated_at = created_at

        due_raw = raw.get("dueDate")
        tags_raw = raw.get("tags")
        description = raw.get("description")

        return cls(
            id=str(task_id),
            title=str(title) if title is not None else "",
            priority=priority,
            status=status,
            created_at=created_at,
            updated_at=updated_at,
            description=str(description) if description is not None else None,
            due_date=parse_timestamp(due_raw) if due_raw else None,
            tags=[str(t) for t in tags_raw] if isinstance(tags_raw, list) else None,
        )


@dataclass(slots=True, frozen=True)
class TaskFilter:
    """All given predicates must hold. Due bounds are inclusive and skip undated tasks."""

    status: TaskStatus | None = None
    priority: Priority | None = None
    tag: str | None = None
    due_before: datetime | None = None
    due_after: datetime | None = None

    def matches(self, task: Task) -> bool:
        if self.status is not None and task.status != self.status:
            return False
        if self.priority is not None and task.priority != self.priority:
            return False
        if self.tag is not None and self.tag not in (task.tags or []):
            return False
        if self.due_before is not None and (task.due_date is None or task.due_date > self.due_before):
            return False
        if self.due_after is not None and (task.due_date is None or task.due_date < self.due_after):
            return False
        return True


@dataclass(slots=True)
class TaskSummary:
    total: int = 0
    by_status: dict[TaskStatus, int] = field(default_factory=lambda: {s: 0 for s in TaskStatus})
    by_priority: dict[Priority, int] = field(default_factory=lambda: {p: 0 for p in Priority})
    overdue_tasks: list[Task] = field(default_factory=list)
    upcoming_tasks: list[Task] = field(default_factory=list)
    today_tasks: list[Task] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "byStatus": {s.value: self.by_status.get(s, 0) for s in TaskStatus},
            "byPriority": {p.value: self.by_priority.get(p, 0) for p in Priority},
            "overdueTasks": [t.to_dict() for t in self.overdue_tasks],
            "upcomingTasks": [t.to_dict() for t in self.upcoming_tasks],
            "todayTasks": [t.to_dict() for t in self.today_tasks],
        }
