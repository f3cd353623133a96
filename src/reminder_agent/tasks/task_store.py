# src/reminder_agent/tasks/task_store.py

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime, time, timedelta
from pathlib import Path
from typing import Any

from .task_models import (
    Priority,
    Task,
    TaskFilter,
    TaskStatus,
    TaskSummary,
    format_timestamp,
    truncate_ms,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


def starter_tasks(now: datetime) -> list[Task]:
    """Deterministic first-run content: every priority, past and future due dates."""
    tomorrow = now + timedelta(days=1)
    next_week = now + timedelta(days=7)
    yesterday = now - timedelta(days=1)

    def make(task_id: str, title: str, description: str, priority: Priority, status: TaskStatus,
             due: datetime, tags: list[str]) -> Task:
        return Task(
            id=task_id,
            title=title,
            description=description,
            priority=priority,
            status=status,
            due_date=due,
            tags=tags,
            created_at=now,
            updated_at=now,
        )

    return [
        make("1", "Prepare the project report", "Quarterly report for management",
             Priority.HIGH, TaskStatus.IN_PROGRESS, tomorrow, ["work", "report"]),
        make("2", "Team call", "Weekly status meeting",
             Priority.MEDIUM, TaskStatus.PENDING, tomorrow, ["work", "meeting"]),
        make("3", "Pay the bills", "Utility payments",
             Priority.HIGH, TaskStatus.PENDING, yesterday, ["personal", "finance"]),
        make("4", "Learn a new framework", "Read through the framework documentation",
             Priority.LOW, TaskStatus.PENDING, next_week, ["learning"]),
        make("5", "Code review", "Review a colleague's pull request",
             Priority.CRITICAL, TaskStatus.PENDING, now, ["work", "code"]),
    ]


class TaskStore:
    """
    JSON-document task store.

    The document on disk is the source of truth:
        {"tasks": [...], "lastUpdated": "<ISO-8601>"}

    Read-through reload policy:
    - with read_through=True (default) every query and every mutation re-reads
      the document first, so edits made by another process are picked up;
    - with read_through=False the document is read once, at construction.
    Either way overdue status is derived before anything is reported.

    Every mutation is followed by a full, atomic rewrite of the document.
    Records that cannot be modelled (no id, unknown enum value, bad timestamp,
    duplicate id) are kept as-is and written back unchanged. After a failed
    write the in-memory collection wins: reloads are suspended until a write
    succeeds again.
    Single writer per process; not thread-safe.
    """

    def __init__(
        self,
        path: str | Path = "tasks.json",
        *,
        read_through: bool = True,
        clock: Clock | None = None,
    ) -> None:
        self._path = Path(path)
        self._read_through = read_through
        self._clock = clock or _utc_now
        self._tasks: list[Task] = []
        self._unreadable: list[Any] = []
        self._dirty = False

        self.reload_count = 0
        self.save_count = 0

        self.reload()
        logger.info(
            "TaskStore ready path=%s total=%s read_through=%s",
            self._path,
            len(self._tasks),
            self._read_through,
        )

    @property
    def path(self) -> Path:
        return self._path

    def _now(self) -> datetime:
        return truncate_ms(self._clock().astimezone(UTC))

    # ---- persistence ----

    def reload(self) -> None:
        """
        Re-read the document (creating the starter set if missing) and derive overdue status.

        While a failed write is outstanding the document is stale, so it is not read.
        """
        if not self._dirty and not self._path.exists():
            self._bootstrap()
        if not self._dirty:
            self._tasks, self._unreadable = self._read_document()
        self.reload_count += 1
        self._derive_overdue()

    def _bootstrap(self) -> None:
        now = self._now()
        self._tasks = starter_tasks(now)
        self._unreadable = []
        if self._save():
            logger.info("Created %s with %d starter tasks", self._path, len(self._tasks))

    def _read_document(self) -> tuple[list[Task], list[Any]]:
        """Return (modelled tasks, raw records carried through unchanged)."""
        try:
            raw: Any = json.loads(self._path.read_text("utf-8"))
        except FileNotFoundError:
            logger.error("Tasks document %s is missing; continuing with an empty collection", self._path)
            return [], []
        except (OSError, ValueError):
            logger.exception("Failed to load tasks document %s; continuing with an empty collection", self._path)
            return [], []

        if not isinstance(raw, dict) or not isinstance(raw.get("tasks"), list):
            logger.error("Tasks document %s has no 'tasks' list; continuing with an empty collection", self._path)
            return [], []

        now = self._now()
        tasks: list[Task] = []
        unreadable: list[Any] = []
        seen: set[str] = set()
        for record in raw["tasks"]:
            try:
                task = Task.from_dict(record, now=now)
            except ValueError as e:
                logger.warning("Keeping unreadable task record in %s as-is: %s", self._path, e)
                unreadable.append(record)
                continue
            if task.id in seen:
                logger.warning("Keeping duplicate task id=%s in %s as-is", task.id, self._path)
                unreadable.append(record)
                continue
            seen.add(task.id)
            tasks.append(task)
        return tasks, unreadable

    def _save(self) -> bool:
        doc = {
            "tasks": [t.to_dict() for t in self._tasks] + self._unreadable,
            "lastUpdated": format_timestamp(self._now()),
        }
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(doc, ensure_ascii=False, indent=2) + "\n", "utf-8")
            os.replace(tmp, self._path)
        except OSError:
            logger.exception("Failed to save tasks document %s (keeping in-memory state)", self._path)
            self._dirty = True
            return False
        self._dirty = False
        self.save_count += 1
        return True

    def _read_through_step(self) -> None:
        # Unsaved changes must not be replaced by the stale document.
        if self._read_through and not self._dirty:
            self.reload()
        else:
            self._derive_overdue()

    def _derive_overdue(self) -> None:
        """Forward-only: pending/in_progress with a past due date -> overdue."""
        now = self._now()
        changed: list[str] = []
        for task in self._tasks:
            if task.due_date is None or task.status in (TaskStatus.COMPLETED, TaskStatus.OVERDUE):
                continue
            if task.due_date < now:
                task.status = TaskStatus.OVERDUE
                task.updated_at = max(now, task.created_at)
                changed.append(task.id)

        if changed:
            logger.info("Marked %d task(s) overdue: %s", len(changed), ", ".join(changed))
            self._save()

    # ---- queries ----

    def list_tasks(self, task_filter: TaskFilter | None = None) -> list[Task]:
        self._read_through_step()
        tasks = self._tasks if task_filter is None else [t for t in self._tasks if task_filter.matches(t)]
        return [_copy(t) for t in tasks]

    def get_task(self, task_id: str) -> Task | None:
        self._read_through_step()
        task = self._find(task_id)
        return _copy(task) if task is not None else None

    def summary(self) -> TaskSummary:
        """
        Totals per status/priority plus three views:
        - overdue: status overdue
        - upcoming: due within [now, now + 24h], not completed
        - today: due within the local calendar day, not completed
        """
        self._read_through_step()
        now = self._now()
        horizon = now + timedelta(hours=24)
        local_now = now.astimezone()
        today_start = datetime.combine(local_now.date(), time.min).astimezone()
        today_end = datetime.combine(local_now.date() + timedelta(days=1), time.min).astimezone()

        out = TaskSummary(total=len(self._tasks))
        for task in self._tasks:
            out.by_status[task.status] += 1
            out.by_priority[task.priority] += 1

            if task.status == TaskStatus.OVERDUE:
                out.overdue_tasks.append(_copy(task))

            if task.due_date is None or task.status == TaskStatus.COMPLETED:
                continue
            if today_start <= task.due_date < today_end:
                out.today_tasks.append(_copy(task))
            if now <= task.due_date <= horizon:
                out.upcoming_tasks.append(_copy(task))
        return out

    # ---- mutations ----

    def add_task(
        self,
        *,
        title: str,
        priority: Priority | str,
        description: str | None = None,
        due_date: datetime | None = None,
        tags: list[str] | None = None,
    ) -> Task:
        if not isinstance(title, str) or not title.strip():
            raise ValueError("title is required")
        priority = Priority(priority)

        self._read_through_step()
        now = self._now()
        task = Task(
            id=self._new_id(now),
            title=title.strip(),
            description=description,
            priority=priority,
            status=TaskStatus.PENDING,
            due_date=truncate_ms(due_date.astimezone(UTC)) if due_date is not None else None,
            tags=list(tags) if tags is not None else None,
            created_at=now,
            updated_at=now,
        )
        self._tasks.append(task)
        self._save()
        logger.info("Task added id=%s priority=%s due=%s", task.id, task.priority.value, task.due_date)
        return _copy(task)

    def update_task_status(self, task_id: str, status: TaskStatus | str) -> Task | None:
        status = TaskStatus(status)
        self._read_through_step()
        task = self._find(task_id)
        if task is None:
            return None
        task.status = status
        task.updated_at = max(self._now(), task.created_at)
        self._save()
        logger.info("Task %s -> %s", task.id, status.value)
        return _copy(task)

    def delete_task(self, task_id: str) -> bool:
        self._read_through_step()
        for i, task in enumerate(self._tasks):
            if task.id == task_id:
                del self._tasks[i]
                self._save()
                logger.info("Task deleted id=%s", task_id)
                return True
        return False

    # ---- helpers ----

    def _find(self, task_id: str) -> Task | None:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def _new_id(self, now: datetime) -> str:
        """Millisecond timestamp, bumped until unique within the collection."""
        existing = {t.id for t in self._tasks}
        existing.update(str(r["id"]) for r in self._unreadable if isinstance(r, dict) and r.get("id") is not None)
        candidate = int(now.timestamp() * 1000)
        while str(candidate) in existing:
            candidate += 1
        return str(candidate)


def _copy(task: Task) -> Task:
    return replace(task, tags=list(task.tags) if task.tags is not None else None)
