# src/reminder_agent/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .agent import ReminderAgent


@dataclass
class AppState:
    # Settings object (config.Settings or a test stand-in).
    settings: Any
    agent: ReminderAgent
    mode: str = "daemon"
