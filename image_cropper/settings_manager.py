from __future__ import annotations

import json
import os
from typing import Any

from .logger import get_logger
from .ops.viewport_transform import ViewportConfig

_logger = get_logger("settings")


class SettingsManager:
    def __init__(self, settings_path: str):
        self.settings_path = settings_path
        self._settings: dict[str, Any] = {}
        self.load()

    DEFAULTS: dict[str, Any] = {
        "viewport_size": 400,
        "max_zoom": 3.0,
        "zoom_speed": 0.1,
        "export_filename": "cropped_image.png",
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

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._settings:
            return self._settings[key]
        if default is not None:
            return default
        return self.DEFAULTS.get(key)

    def has(self, key: str) -> bool:
        return key in self._settings

    @property
    def data(self) -> dict[str, Any]:
        return self._settings

    @property
    def export_filename(self) -> str:
        val = self.get("export_filename")
        if isinstance(val, str) and val.strip():
            return val.strip()
        return self.DEFAULTS["export_filename"]

    def viewport_config(self) -> ViewportConfig:
        try:
            side = int(self.get("viewport_size"))
            return ViewportConfig(
                width=side,
                height=side,
                max_zoom=float(self.get("max_zoom")),
                zoom_speed=float(self.get("zoom_speed")),
            )
        except (TypeError, ValueError) as e:
            _logger.warning("invalid viewport settings, using defaults: %s", e)
        side = int(self.DEFAULTS["viewport_size"])
        return ViewportConfig(
            width=side,
            height=side,
            max_zoom=float(self.DEFAULTS["max_zoom"]),
            zoom_speed=float(self.DEFAULTS["zoom_speed"]),
        )
