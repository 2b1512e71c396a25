"""Settings storage and external tool environment."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional


SETTINGS_PATH = Path(
    os.environ.get(
        "PARTMOUNT_SETTINGS_PATH",
        Path.home() / ".config" / "partmount" / "settings.json",
    )
)

# Default values - use these constants instead of hardcoding values elsewhere
DEFAULT_COMMAND_TIMEOUT_SECONDS = 60
DEFAULT_PRIVILEGE_HELPERS = ("sudo", "doas")
DEFAULT_TOOL_LOCALE = "C"

DEFAULT_SETTINGS: dict[str, Any] = {
    "command_timeout_seconds": DEFAULT_COMMAND_TIMEOUT_SECONDS,
    "privilege_helpers": list(DEFAULT_PRIVILEGE_HELPERS),
    "mount_read_only": False,
    "tool_locale": DEFAULT_TOOL_LOCALE,
}


@dataclass
class SettingsStore:
    values: dict[str, Any] = field(default_factory=dict)


settings_store = SettingsStore()


@dataclass(frozen=True)
class ToolEnvironment:
    """Environment applied to every external tool invocation.

    fdisk and mount output is parsed as text, so the locale and color mode
    are pinned for each child process instead of the whole interpreter.
    """

    locale: str = DEFAULT_TOOL_LOCALE
    no_color: bool = True
    timeout_seconds: Optional[float] = DEFAULT_COMMAND_TIMEOUT_SECONDS

    def as_env(self, base: Optional[Mapping[str, str]] = None) -> dict[str, str]:
        env = dict(os.environ if base is None else base)
        env["LC_ALL"] = self.locale
        env["LANG"] = self.locale
        if self.no_color:
            env["NO_COLOR"] = "1"
            env["TERM"] = "dumb"
        return env


def load_settings() -> None:
    settings_store.values = dict(DEFAULT_SETTINGS)
    if not SETTINGS_PATH.exists():
        return
    try:
        data = json.loads(SETTINGS_PATH.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return
    if isinstance(data, dict):
        settings_store.values.update(data)


def get_setting(key: str, default: Any | None = None) -> Any:
    return settings_store.values.get(key, default)


def get_bool(key: str, default: bool = False) -> bool:
    return bool(get_setting(key, default))


def get_privilege_helpers() -> tuple[str, ...]:
    helpers = get_setting("privilege_helpers", DEFAULT_PRIVILEGE_HELPERS)
    if isinstance(helpers, str):
        helpers = [helpers]
    if not isinstance(helpers, (list, tuple)):
        return DEFAULT_PRIVILEGE_HELPERS
    return tuple(str(helper) for helper in helpers if helper)


def tool_environment() -> ToolEnvironment:
    """Build the tool environment from the current settings."""
    timeout = get_setting("command_timeout_seconds", DEFAULT_COMMAND_TIMEOUT_SECONDS)
    try:
        timeout = float(timeout) if timeout is not None else None
    except (TypeError, ValueError):
        timeout = DEFAULT_COMMAND_TIMEOUT_SECONDS
    if timeout is not None and timeout <= 0:
        timeout = None
    return ToolEnvironment(
        locale=str(get_setting("tool_locale", DEFAULT_TOOL_LOCALE) or DEFAULT_TOOL_LOCALE),
        timeout_seconds=timeout,
    )


load_settings()
