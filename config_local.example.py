# config_local.example.py

"""
Example local overrides.

Usage:
  1) Copy this file to `config_local.py`
  2) Adjust values for your machine
  3) Never commit `config_local.py` (it is gitignored)

Prefer `.env` for anything environment-specific. Only the names below are read.
"""

# Example: run headless (reminders only, no REPL)
# CONSOLE_ENABLED = False

# Example: disable background reminders
# REMINDERS_ENABLED = False

# Example: scan for due reminders more often while testing
# REMINDER_INTERVAL_SECONDS = 5
