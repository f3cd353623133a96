# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets; keep them in .env (local, gitignored).

Both processes read the same variables: the agent passes REMINDER_TASKS_FILE and
REMINDER_DATA_DIR through to the tool server it spawns.
"""

ENV_VARS = {
    # App / logging
    "REMINDER_APP_NAME": "App display name (default: reminder-agent).",
    "REMINDER_LOG_LEVEL": "Console logging level (default: INFO). Files always get DEBUG.",
    # Paths (gitignored)
    "REMINDER_DATA_DIR": "Local data directory for logs (default: .local/reminder).",
    "REMINDER_TASKS_FILE": "Tasks JSON document (default: <data_dir>/tasks.json). Legacy name: TASKS_FILE.",
    # Schedule
    "REMINDER_CRON": "Cron expression for daemon summaries (default: */30 * * * *).",
    # LLM (OpenAI-compatible)
    "REMINDER_LLM_API_KEY": "API key. Fallbacks: LLM_API_KEY, OPENAI_API_KEY. Without key and base URL => offline mode.",
    "REMINDER_LLM_BASE_URL": "Base URL of a compatible server, e.g. http://localhost:1234/v1. Legacy: LLM_BASE_URL.",
    "REMINDER_LLM_MODEL": "Model name (default: gpt-4o-mini). Legacy name: LLM_MODEL.",
    "REMINDER_LLM_MAX_TOKENS": "max_tokens per completion (default: 2048).",
    "REMINDER_LLM_TIMEOUT_SECONDS": "HTTP read timeout for the LLM (default: 60).",
    # Tool server / RPC
    "REMINDER_SERVER_COMMAND": "Command line of the tool server (default: <python> -m reminder_agent.server).",
    "REMINDER_RPC_REQUEST_TIMEOUT": "Per-request timeout in seconds (default: 10).",
    "REMINDER_RPC_CONNECT_TIMEOUT": "Timeout for the initialize handshake in seconds (default: 10).",
}
