from __future__ import annotations

import json
import os
from typing import Any

from .logger import get_logger

_logger = get_logger("settings")

MIN_THUMBNAIL_SIZE = 100
MAX_THUMBNAIL_SIZE = 320


def clamp_ui_thumbnail_size(value: Any, default: int = 256) -> int:
    try:
        size = round(float(value))
    except (TypeError, ValueError):
        return default
    return max(MIN_THUMBNAIL_SIZE, min(MAX_THUMBNAIL_SIZE, size))


class SettingsManager:
    def __init__(self, settings_path: str):
        self.settings_path = settings_path
        self._settings: dict[str, Any] = {}
        self.load()

    DEFAULTS: dict[str, Any] = {
        "thumbnail_size": 256,
        "worker_count": 0,
        "data_dir": None,
        "last_folder": None,
    }

    def load(self) -> None:
        try:
            if os.path.exists(self.settings_path):
                with open(self.settings_path, encoding="utf-8") as f:
                    data = json.load(f)
                    if isinstance(data, dict):
                        self._settings = data
                        _logger.debug("settings loaded: %s", self.settings_path)
                        return
        except (OSError, ValueError) as e:
            _logger.warning("settings load failed: %s", e)
        self._settings = {}

    def save(self) -> None:
        try:
            parent = os.path.dirname(self.settings_path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(self.settings_path, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, ensure_ascii=False, indent=2)
            _logger.debug("settings saved: %s", self.settings_path)
        except OSError as e:
            _logger.error("settings save failed: %s", e)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._settings:
            return self._settings[key]
        if default is not None:
            return default
        return self.DEFAULTS.get(key)

    def has(self, key: str) -> bool:
        return key in self._settings

    def set(self, key: str, value: Any) -> None:
        self._settings[key] = value
        self.save()

    @property
    def data(self) -> dict[str, Any]:
        return self._settings

    @property
    def thumbnail_size(self) -> int:
        return clamp_ui_thumbnail_size(self.get("thumbnail_size"), self.DEFAULTS["thumbnail_size"])

    @thumbnail_size.setter
    def thumbnail_size(self, value: int) -> None:
        self.set("thumbnail_size", clamp_ui_thumbnail_size(value, self.thumbnail_size))

    @property
    def worker_count(self) -> int | None:
        try:
            n = int(self.get("worker_count") or 0)
        except (TypeError, ValueError):
            return None
        return n if n > 0 else None

    @property
    def last_folder(self) -> str | None:
        val = self.get("last_folder")
        return val if isinstance(val, str) and os.path.isdir(val) else None
