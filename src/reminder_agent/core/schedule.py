# src/reminder_agent/core/schedule.py

"""
Cron-driven periodic callback.

Sleeps until the next fire time of a cron expression (local time), awaits the
callback, and repeats. A failing callback is logged and the schedule goes on.
To stop it, cancel the coroutine/task.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from croniter import croniter

logger = logging.getLogger(__name__)


def validate_cron(expression: str) -> str:
    expr = (expression or "").strip()
    if not expr or not croniter.is_valid(expr):
        raise ValueError(f"Invalid cron expression: {expression!r}")
    return expr


def next_fire_time(expression: str, now: datetime | None = None) -> datetime:
    """First fire time strictly after `now` (local time when `now` is omitted)."""
    expr = validate_cron(expression)
    base = now if now is not None else datetime.now().astimezone()
    return croniter(expr, base).get_next(datetime)


def next_fire_delay(expression: str, now: datetime | None = None) -> float:
    base = now if now is not None else datetime.now().astimezone()
    return max(0.0, (next_fire_time(expression, base) - base).total_seconds())


async def run_on_schedule(
    expression: str,
    callback: Callable[[], Awaitable[None]],
    *,
    clock: Callable[[], datetime] | None = None,
) -> None:
    expr = validate_cron(expression)
    now_fn = clock or (lambda: datetime.now().astimezone())
    last_fire: datetime | None = None

    while True:
        now = now_fn()
        # asyncio.sleep may wake a hair early; never fire the same slot twice.
        base = now if last_fire is None or now > last_fire else last_fire
        fire_at = next_fire_time(expr, base)
        delay = max(0.0, (fire_at - now).total_seconds())
        logger.debug("Next scheduled run at %s (in %.0fs)", fire_at.isoformat(), delay)

        await asyncio.sleep(delay)
        last_fire = fire_at

        try:
            await callback()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Scheduled run failed")
