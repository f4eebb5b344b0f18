"""
Centralized constants for gitplus.

This module contains hardcoded strings and magic numbers that are used
across the codebase. Centralizing them here makes them easier to find
and modify.
"""

# Config file location (under the user's home directory)
SETTINGS_PATH = ".config/gitplus/settings.json"

# Signature used when git config has no user.name / user.email
DEFAULT_AUTHOR_NAME = "gitplus"
DEFAULT_AUTHOR_EMAIL = "gitplus@localhost"

# Files inside .git whose changes mean the history needs re-reading
WATCHED_GIT_PATHS = ("HEAD", "refs/heads", "packed-refs")

# Delay before a burst of file system events triggers one refresh
REFRESH_DEBOUNCE_MS = 200
