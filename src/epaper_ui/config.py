"""UI-side accessors over the shared configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from epaper_core.config_manager import get_config_manager
from epaper_core.services.storage.settings_store import SiteSettings, load_site_settings


def get_setting(dotted_path: str, default: Any = None) -> Any:
    """Read a `settings.*` value from config.json."""
    return get_config_manager().get_setting(dotted_path, default)


def get_public_dir() -> Path:
    """Web root holding `uploads/` (page images, PDFs, logos, sounds)."""
    return get_config_manager().get_public_dir()


def get_site_settings() -> SiteSettings:
    """Per-request site settings: database values over config defaults."""
    return load_site_settings(config=get_config_manager())
