"""Configuration management for sentinel-review.

Handles:
- Firewall API address
- Refresh / notification timing
- Action display table (ordinal -> label, color, icon)

Config file location:
- Linux: ~/.config/sentinel-review/config.json
- Mac: ~/Library/Application Support/sentinel-review/config.json
- Windows: %LOCALAPPDATA%/sentinel-review/config.json

Environment variables (SENTINEL_*) override the file.
"""

import json
import os
import sys
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional
import logging

from .review.models import Action

logger = logging.getLogger(__name__)


def get_config_dir() -> Path:
    """Get platform-specific config directory."""
    if sys.platform == "win32":
        base = Path(os.environ.get("LOCALAPPDATA", "~"))
    elif sys.platform == "darwin":
        base = Path("~/Library/Application Support")
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", "~/.config"))

    return base.expanduser() / "sentinel-review"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.json"

DEFAULT_API_URL = "http://localhost:5002"


@dataclass(frozen=True)
class ActionStyle:
    """How an action is shown to the operator."""

    label: str
    color: str  # rich color name
    icon: str


DEFAULT_ACTIONS: Mapping[Action, ActionStyle] = MappingProxyType(
    {
        Action.ALLOW: ActionStyle(label="ALLOW", color="green", icon="✓"),
        Action.RATE_LIMIT: ActionStyle(label="RATE LIMIT", color="yellow", icon="⚠"),
        Action.BLOCK: ActionStyle(label="BLOCK", color="red", icon="✗"),
    }
)

# Keys settable from file, environment and `config set`
_FLOAT_KEYS = ("refresh_interval", "notification_duration", "request_timeout")
SETTABLE_KEYS = ("api_url",) + _FLOAT_KEYS


@dataclass(frozen=True)
class Config:
    """Immutable controller configuration, injected at construction."""

    api_url: str = DEFAULT_API_URL
    refresh_interval: float = 30.0  # seconds between queue/stats refreshes
    notification_duration: float = 3.0  # seconds a notification stays visible
    request_timeout: float = 10.0
    actions: Mapping[Action, ActionStyle] = field(default_factory=lambda: DEFAULT_ACTIONS)

    def __post_init__(self):
        missing = [a.name for a in Action if a not in self.actions]
        if missing:
            raise ValueError(f"Action table missing entries for: {', '.join(missing)}")
        if self.refresh_interval <= 0:
            raise ValueError("refresh_interval must be positive")
        if self.notification_duration <= 0:
            raise ValueError("notification_duration must be positive")

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Config":
        """Load config from file + environment."""
        config = cls.load_file(path)

        # Override with environment variables
        for key in SETTABLE_KEYS:
            value = os.environ.get(f"SENTINEL_{key.upper()}")
            if value:
                try:
                    config = config.with_value(key, value)
                except ValueError as e:
                    logger.warning(f"Ignoring SENTINEL_{key.upper()}: {e}")

        return config

    @classmethod
    def load_file(cls, path: Optional[Path] = None) -> "Config":
        """Load config from file only. Defaults if missing or unreadable."""
        path = path or CONFIG_FILE

        if path.exists():
            try:
                with open(path) as f:
                    data = json.load(f)
                return cls._from_dict(data)
            except (OSError, ValueError, TypeError, AttributeError) as e:
                logger.warning(f"Failed to load config: {e}")

        return cls()

    @classmethod
    def _from_dict(cls, data: dict) -> "Config":
        """Create Config from dictionary."""
        kwargs = {}
        if data.get("api_url"):
            kwargs["api_url"] = str(data["api_url"])
        for key in _FLOAT_KEYS:
            if data.get(key) is not None:
                kwargs[key] = float(data[key])

        if "actions" in data:
            actions = dict(DEFAULT_ACTIONS)
            for ordinal, style in data["actions"].items():
                action = Action(int(ordinal))
                default = DEFAULT_ACTIONS[action]
                actions[action] = ActionStyle(
                    label=style.get("label", default.label),
                    color=style.get("color", default.color),
                    icon=style.get("icon", default.icon),
                )
            kwargs["actions"] = MappingProxyType(actions)

        return cls(**kwargs)

    def to_dict(self) -> dict:
        return {
            "api_url": self.api_url,
            "refresh_interval": self.refresh_interval,
            "notification_duration": self.notification_duration,
            "request_timeout": self.request_timeout,
            "actions": {
                str(int(action)): {
                    "label": style.label,
                    "color": style.color,
                    "icon": style.icon,
                }
                for action, style in self.actions.items()
            },
        }

    def save(self, path: Optional[Path] = None):
        """Save config to file."""
        path = path or CONFIG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.debug(f"Config saved to {path}")

    def with_value(self, key: str, value: str) -> "Config":
        """Return a copy with one setting changed from its string form."""
        if key == "api_url":
            if not value.startswith(("http://", "https://")):
                raise ValueError("api_url must start with http:// or https://")
            return replace(self, api_url=value.rstrip("/"))

        if key in _FLOAT_KEYS:
            try:
                number = float(value)
            except ValueError:
                raise ValueError(f"{key} must be a number") from None
            return replace(self, **{key: number})

        raise ValueError(f"Unknown key: {key}")

    def style(self, action: Action) -> ActionStyle:
        return self.actions[Action(action)]
