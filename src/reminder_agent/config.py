# src/reminder_agent/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (agent and tool server alike).
- No secrets required at import time.
- The unprefixed variable names of the first release (TASKS_FILE, LLM_MODEL, ...)
  are still honoured as fallbacks.
"""

from __future__ import annotations

import os
import shlex
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

ENV_PREFIX = "REMINDER"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally without overriding the real environment."""
    from dotenv import load_dotenv

    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _default_server_command() -> List[str]:
    return [sys.executable, "-m", "reminder_agent.server"]


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data ----
    data_dir: Path
    tasks_file: Path

    # ---- Schedule ----
    reminder_cron: str

    # ---- LLM (OpenAI-compatible) ----
    llm_base_url: Optional[str]
    llm_model: str
    llm_api_key: Optional[str]
    llm_max_tokens: int
    llm_timeout_seconds: float

    # ---- Tool server / RPC ----
    server_command: List[str]
    rpc_request_timeout: float
    rpc_connect_timeout: float

    @property
    def llm_configured(self) -> bool:
        """A local endpoint (LM Studio etc.) works without a real key."""
        return bool(self.llm_api_key) or bool(self.llm_base_url)

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "reminder-agent")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/reminder"))
        tasks_raw = _first_env(_k("TASKS_FILE"), "TASKS_FILE", default=None)
        tasks_file = Path(tasks_raw).expanduser() if tasks_raw else data_dir / "tasks.json"

        reminder_cron = (_first_env(_k("CRON"), default="*/30 * * * *") or "*/30 * * * *").strip()

        llm_base_url = _first_env(_k("LLM_BASE_URL"), "LLM_BASE_URL", default=None)
        llm_model = _first_env(_k("LLM_MODEL"), "LLM_MODEL", default="gpt-4o-mini") or "gpt-4o-mini"
        llm_api_key = _first_env(_k("LLM_API_KEY"), "LLM_API_KEY", "OPENAI_API_KEY", default=None)
        llm_max_tokens = _env_int(_k("LLM_MAX_TOKENS"), 2048)
        llm_timeout_seconds = _env_float(_k("LLM_TIMEOUT_SECONDS"), 60.0)

        raw_cmd = _env(_k("SERVER_COMMAND"), "").strip()
        server_command = shlex.split(raw_cmd) if raw_cmd else _default_server_command()

        rpc_request_timeout = _env_float(_k("RPC_REQUEST_TIMEOUT"), 10.0)
        rpc_connect_timeout = _env_float(_k("RPC_CONNECT_TIMEOUT"), 10.0)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            tasks_file=tasks_file,
            reminder_cron=reminder_cron,
            llm_base_url=llm_base_url.strip() if llm_base_url else None,
            llm_model=llm_model.strip(),
            llm_api_key=llm_api_key.strip() if llm_api_key else None,
            llm_max_tokens=llm_max_tokens,
            llm_timeout_seconds=llm_timeout_seconds,
            server_command=server_command,
            rpc_request_timeout=rpc_request_timeout,
            rpc_connect_timeout=rpc_connect_timeout,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
