# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Local machine tweaks go to config_local.py (gitignored), see config_local.example.py.

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "TASKFLOW_APP_NAME": "App display name (default: taskflow).",
    "TASKFLOW_LOG_LEVEL": "Console logging level (default: INFO).",
    # Connectors
    "TASKFLOW_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
    # Reminders
    "TASKFLOW_REMINDERS_ENABLED": "Run the background reminder scheduler (true/false, default: true).",
    "TASKFLOW_REMINDER_INTERVAL_SECONDS": "Seconds between reminder scans (default: 60, min: 1).",
    "TASKFLOW_SNOOZE_MINUTES": "Default /snooze delay in minutes (default: 15).",
    # Paths (gitignored)
    "TASKFLOW_DATA_DIR": "Local data directory (default: .local/taskflow).",
    "TASKFLOW_DB_PATH": "SQLite store path (default: <data_dir>/taskflow.sqlite3).",
}
