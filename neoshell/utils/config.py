"""Configuration management for neoshell."""
from __future__ import annotations
from typing import Dict, Any, Optional
import os
import json
import logging

logger = logging.getLogger(__name__)

CONFIG_ENV = "NEOSHELL_CONFIG"
DEFAULT_CONFIG_FILE = "~/.neoshell_config.json"

# Default configuration
DEFAULT_CONFIG = {
    "database": ":memory:",
    "history_file": "~/.neoshell_history",
    "output_format": "table",
    "heading": True,
    "timing": False,
    "color": True,
    "expanded": False,
    "display_limit": 1000,
    "max_col_width": 50,
    "max_shell_depth": 8,
    "allow_external": True,
}

class Config:
    """Configuration manager for neoshell settings."""

    def __init__(self, config_file: Optional[str] = None):
        self.settings: Dict[str, Any] = DEFAULT_CONFIG.copy()
        path = config_file or os.environ.get(CONFIG_ENV) or DEFAULT_CONFIG_FILE
        self.config_file = os.path.expanduser(path)
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file if exists."""
        try:
            if os.path.exists(self.config_file):
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    loaded = json.load(f)
                if not isinstance(loaded, dict):
                    raise ValueError("top-level JSON value must be an object")
                self.settings.update(loaded)
        except (OSError, ValueError) as e:
            logger.warning("Failed to load config %s: %s", self.config_file, e)

    def save(self) -> None:
        """Save current configuration to file."""
        try:
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(self.settings, f, indent=2)
        except OSError as e:
            logger.warning("Failed to save config %s: %s", self.config_file, e)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self.settings.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set configuration value."""
        self.settings[key] = value

    def history_path(self) -> Optional[str]:
        path = self.settings.get("history_file")
        return os.path.expanduser(path) if path else None


def coerce_value(value: str) -> Any:
    """Convert a command-line string to bool/None/int where it looks like one."""
    low = value.lower()
    if low in ('true', 'on'):
        return True
    if low in ('false', 'off'):
        return False
    if low == 'none':
        return None
    if value.isdigit():
        return int(value)
    return value
