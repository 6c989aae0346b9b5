"""Local configuration manager for paths and application settings.

Values live in a local `config.json` file which is the single source of
truth for the ambient configuration. Per-site values edited by the admin
area (title, logo, theme colors) live in the `website_settings` table and
override the `site.*` defaults here, see `services.storage.settings_store`.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

from .logger import get_logger

logger = get_logger(__name__)

CONFIG_ENV_VAR = "EPAPER_CONFIG"
DATABASE_FILENAME = "epaper.db"

PATH_DEFAULTS: dict[str, str] = {
    "public_dir": "data/public",
    "data_dir": "data/local",
    "logs_dir": "data/local/logs",
}


DEFAULT_CONFIG_JSON: dict[str, Any] = {
    "paths": dict(PATH_DEFAULTS),
    "security": {
        "allowed_origins": ["*"],
    },
    "settings": {
        "site": {
            "title": "E-Paper",
            "site_url": "",
            "timezone": "Asia/Kolkata",
            "logo_path": "uploads/assets/logo.jpg",
            "editor_name": "E-Paper Publications",
            "twitter_url": "",
            "og_image_path": "",
        },
        "ui": {
            "toast_duration": 3000,
        },
        "viewer": {
            "max_zoom": 4.0,
            "zoom_step": 1.2,
            "double_tap_zoom": 0.4,
            "double_tap_delay_ms": 300,
            "swipe_min_distance": 50,
            "swipe_max_vertical_deviation": 75,
            "zoom_epsilon": 0.01,
            "crop_auto_area": 0.8,
            "page_turn_sound": "/uploads/sounds/pageturn.wav",
            "image_extensions": ["jpg"],
        },
        "editions": {
            "disambiguation_path": "/editions/date-editions.php",
            "date_page_size": 12,
        },
        "compose": {
            "header_height": 200,
            "footer_height": 150,
            "logo_max_width": 400,
            "logo_padding": 20,
            "band_color": "#F3F4F6",
            "text_color": "#000000",
            "font_size": 20,
            "line_height": 30,
            "text_x": 10,
            "first_line_offset": 30,
        },
        "render": {
            "dpi": 180,
            "jpeg_quality": 85,
        },
        "logging": {
            "level": "INFO",
        },
        "server": {
            "port": 8000,
        },
    },
}


def _merge_into(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively overlay `override` on `base`; nested groups merge, leaves replace."""
    for key, value in (override or {}).items():
        current = base.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            _merge_into(current, value)
        else:
            base[key] = value
    return base


def _dir_is_writable(directory: Path) -> bool:
    probe = directory / ".epaper_write_probe"
    try:
        directory.mkdir(parents=True, exist_ok=True)
        probe.write_text("", encoding="utf-8")
        probe.unlink()
    except OSError:
        return False
    return True


def default_config_path() -> Path:
    """Where `config.json` lives.

    `$EPAPER_CONFIG` wins; then `./config.json` when the working directory is
    writable; otherwise `~/.epaper/config.json`.
    """
    explicit = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if explicit:
        return Path(explicit).expanduser()
    if _dir_is_writable(Path.cwd()):
        return Path.cwd() / "config.json"
    return Path.home() / ".epaper" / "config.json"


def _read_json_object(path: Path) -> dict[str, Any] | None:
    try:
        loaded = json.loads(path.read_text(encoding="utf-8") or "{}")
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return None
    if not isinstance(loaded, dict):
        logger.warning("Ignoring config %s: top level is not an object", path)
        return None
    return loaded


def _dump(data: dict[str, Any]) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


@dataclass
class ConfigManager:
    """The merged `config.json` plus typed accessors for paths and settings."""

    path: Path
    _data: dict[str, Any]

    @classmethod
    def load(cls, path: Path | None = None) -> ConfigManager:
        """Read `path` (or the default location) over the built-in defaults.

        A missing file is written with the defaults so operators have
        something to edit.
        """
        cfg_path = path or default_config_path()
        data = json.loads(_dump(DEFAULT_CONFIG_JSON))
        if cfg_path.is_file():
            loaded = _read_json_object(cfg_path)
            if loaded:
                _merge_into(data, loaded)
            return cls(path=cfg_path, _data=data)

        manager = cls(path=cfg_path, _data=data)
        try:
            manager.save()
        except OSError as exc:
            logger.warning("Running on built-in defaults, %s is not writable: %s", cfg_path, exc)
        return manager

    @property
    def data(self) -> dict[str, Any]:
        return self._data

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(_dump(self._data), encoding="utf-8")

    # --- paths -----------------------------------------------------------

    def set_path(self, key: str, value: str | None) -> None:
        """Override one of the `paths.*` entries; blank restores the default."""
        self._data.setdefault("paths", {})[key] = (value or PATH_DEFAULTS[key]).strip()

    def set_public_dir(self, value: str) -> None:
        self.set_path("public_dir", value)

    def set_data_dir(self, value: str) -> None:
        self.set_path("data_dir", value)

    def set_logs_dir(self, value: str) -> None:
        self.set_path("logs_dir", value)

    def resolve_path(self, key: str) -> Path:
        """Absolute path for `paths.<key>`; relative values hang off the working directory."""
        raw = (self._data.get("paths") or {}).get(key) or PATH_DEFAULTS[key]
        candidate = Path(str(raw)).expanduser()
        return candidate if candidate.is_absolute() else (Path.cwd() / candidate).resolve()

    def _existing_dir(self, key: str) -> Path:
        directory = self.resolve_path(key)
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def get_public_dir(self) -> Path:
        """Web root; `uploads/` with PDFs, page images, logos and sounds lives below it."""
        return self._existing_dir("public_dir")

    def get_data_dir(self) -> Path:
        return self._existing_dir("data_dir")

    def get_logs_dir(self) -> Path:
        return self._existing_dir("logs_dir")

    def get_database_path(self) -> Path:
        """SQLite file shared by the edition and settings stores."""
        return self.get_data_dir() / DATABASE_FILENAME

    # --- settings --------------------------------------------------------

    def get_setting(self, dotted_path: str, default: Any = None) -> Any:
        """Value at `settings.<dotted_path>`, e.g. `get_setting("viewer.max_zoom", 4.0)`.

        Missing keys, `None` values and paths that run into a non-object all
        return `default`.
        """
        node: Any = self._data.get("settings") or {}
        for part in filter(None, (dotted_path or "").split(".")):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return default if node is None else node

    def set_setting(self, dotted_path: str, value: Any) -> None:
        """Store `value` at `settings.<dotted_path>`, creating groups as needed."""
        parts = [p for p in (dotted_path or "").split(".") if p]
        if not parts:
            return
        if not isinstance(self._data.get("settings"), dict):
            self._data["settings"] = {}
        node = self._data["settings"]
        for part in parts[:-1]:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]
        node[parts[-1]] = value


@lru_cache(maxsize=1)
def get_config_manager() -> ConfigManager:
    """Process-wide configuration, loaded on first use."""
    return ConfigManager.load()
