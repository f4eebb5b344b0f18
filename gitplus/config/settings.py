"""
Settings management for gitplus
"""

import copy
import json
from pathlib import Path
from typing import Any

from gitplus.constants import DEFAULT_AUTHOR_EMAIL, DEFAULT_AUTHOR_NAME, SETTINGS_PATH
from gitplus.graph.types import RowGeometry


class Settings:
    """Manages application settings"""

    DEFAULT_SETTINGS = {
        "graph": {
            "lane_width": 18,
            "row_height": 28,
            "commit_radius": 5,
            "line_width": 2,
            "max_commits": 0,  # 0 = load the whole history
        },
        "ui": {
            "confirm_destructive": True,  # Ask before revert, reset and squash
            "window_size": [1100, 700],
        },
        "git": {
            "author_name": DEFAULT_AUTHOR_NAME,
            "author_email": DEFAULT_AUTHOR_EMAIL,
        },
    }

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize settings"""
        if config_path is None:
            config_path = Path.home() / SETTINGS_PATH

        self.config_path = config_path
        self.settings = copy.deepcopy(self.DEFAULT_SETTINGS)
        self.load()

    def load(self) -> None:
        """Load settings from file"""
        if self.config_path.exists():
            with open(self.config_path) as f:
                loaded = json.load(f)
                # Merge with defaults to handle new settings
                self._merge_settings(self.settings, loaded)

    def save(self) -> None:
        """Save settings to file"""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w") as f:
            json.dump(self.settings, f, indent=2)

    def _merge_settings(self, base: dict[str, Any], updates: dict[str, Any]) -> None:
        """Recursively merge settings dictionaries"""
        for key, value in updates.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                # Both are dicts, safe to recurse
                base_dict: dict[str, Any] = base[key]
                value_dict: dict[str, Any] = value
                self._merge_settings(base_dict, value_dict)
            else:
                base[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get a setting by dot-separated path (e.g., 'graph.row_height')"""
        parts = path.split(".")
        value: Any = self.settings

        for part in parts:
            if isinstance(value, dict):
                value_dict: dict[str, Any] = value
                if part in value_dict:
                    value = value_dict[part]
                else:
                    return default
            else:
                return default

        return value

    def set(self, path: str, value: Any) -> None:
        """Set a setting by dot-separated path"""
        parts = path.split(".")
        target: Any = self.settings

        for part in parts[:-1]:
            if part not in target:
                target[part] = {}
            target = target[part]

        target[parts[-1]] = value

    def get_geometry(self) -> RowGeometry:
        """Row metrics for the graph column"""
        return RowGeometry(
            lane_width=int(self.get("graph.lane_width", 18)),
            row_height=int(self.get("graph.row_height", 28)),
            commit_radius=int(self.get("graph.commit_radius", 5)),
            line_width=int(self.get("graph.line_width", 2)),
        )

    def get_max_commits(self) -> int | None:
        """Commit limit for history loading, None for unlimited"""
        limit = int(self.get("graph.max_commits", 0))
        return limit if limit > 0 else None

    def confirm_destructive(self) -> bool:
        return bool(self.get("ui.confirm_destructive", True))

    def get_fallback_author(self) -> tuple[str, str]:
        """Signature used when the repository has no user.name / user.email"""
        name: str = str(self.get("git.author_name", DEFAULT_AUTHOR_NAME))
        email: str = str(self.get("git.author_email", DEFAULT_AUTHOR_EMAIL))
        return name, email
