"""Settings storage for provisioning defaults."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


SETTINGS_PATH = Path(
    os.environ.get(
        "VDISK_MANAGER_SETTINGS_PATH",
        Path.home() / ".config" / "vdisk-manager" / "settings.json",
    )
)

# Default values - use these constants instead of hardcoding values elsewhere
DEFAULT_IMAGE_BASE_PATH = "/srv/moosefs"
DEFAULT_MOUNT_BASE_PATH = "/mnt/moosefs"
DEFAULT_FSTAB_PATH = "/etc/fstab"

DEFAULT_SETTINGS: dict[str, Any] = {
    "image_base_path": DEFAULT_IMAGE_BASE_PATH,
    "mount_base_path": DEFAULT_MOUNT_BASE_PATH,
    "fstab_path": DEFAULT_FSTAB_PATH,
    "command_timeout_seconds": None,
    "log_dir": None,
}


@dataclass
class SettingsStore:
    values: dict[str, Any] = field(default_factory=dict)


settings_store = SettingsStore()


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


def save_settings() -> None:
    SETTINGS_PATH.parent.mkdir(parents=True, exist_ok=True)
    SETTINGS_PATH.write_text(
        json.dumps(settings_store.values, indent=2, sort_keys=True),
        encoding="utf-8",
    )


def get_setting(key: str, default: Any | None = None) -> Any:
    return settings_store.values.get(key, default)


def set_setting(key: str, value: Any) -> None:
    settings_store.values[key] = value
    save_settings()


def get_path(key: str) -> Path:
    value = get_setting(key) or DEFAULT_SETTINGS[key]
    return Path(value)


load_settings()
