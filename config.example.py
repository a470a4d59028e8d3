# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets. Put them in .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "LEGALINTEL_APP_NAME": "App display name (default: LegalIntel).",
    "LEGALINTEL_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Console
    "LEGALINTEL_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
    "LEGALINTEL_DEFAULT_OWNER": "Owner tasks are created under until /login (default: local-user).",
    # LLM / OpenRouter
    "LEGALINTEL_OPENROUTER_API_KEY": "OpenRouter API key. Without it the offline demo client is used.",
    "LEGALINTEL_OPENROUTER_BASE_URL": "OpenRouter base URL (default: https://openrouter.ai/api/v1).",
    "LEGALINTEL_LLM_MODELS": "Comma/space separated list of models to try in order.",
    "LEGALINTEL_HTTP_REFERER": "Optional OpenRouter metadata header.",
    "LEGALINTEL_APP_TITLE": "Optional OpenRouter metadata header title.",
    "LEGALINTEL_LLM_CONNECT_TIMEOUT_SECONDS": "Connect timeout per model attempt (default: 5).",
    "LEGALINTEL_LLM_FIRST_TOKEN_TIMEOUT_SECONDS": "Give up on a model with no content after this (default: 60).",
    "LEGALINTEL_LLM_READ_TIMEOUT_SECONDS": "Read timeout per model attempt (default: 90).",
    # Paths (gitignored)
    "LEGALINTEL_DATA_DIR": "Local data directory (default: .local/legalintel).",
    "LEGALINTEL_TASKS_DB_PATH": "TaskStore SQLite path (default: <data_dir>/tasks.sqlite3).",
    "LEGALINTEL_RECORDS_DB_PATH": "RecordStore SQLite path (default: <data_dir>/records.sqlite3).",
    # Tasks / analysis tuning
    "LEGALINTEL_TASK_TIMEOUT_SECONDS": "Fail a task whose handler runs longer than this; 0 disables (default: 180).",
    "LEGALINTEL_MAX_UPLOAD_BYTES": "Largest document /analyze and /ask accept (default: 10 MiB).",
    "LEGALINTEL_RECOMMENDED_LAWYERS_LIMIT": "Lawyers attached to a document analysis (default: 3).",
}
