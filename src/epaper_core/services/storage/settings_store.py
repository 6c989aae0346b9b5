"""Key/value website settings read through a per-request snapshot.

The admin area writes rows into `website_settings`; readers go through
`SettingsStore.get` and never re-parse generated files. `load_site_settings`
turns the rows into the typed `SiteSettings` used while rendering a request.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ...logger import get_logger

logger = get_logger(__name__)

THEME_KEYS = (
    "main_color",
    "main_text_color",
    "hover_color",
    "hover_text_color",
    "light_gray_border",
    "bg_gray_100",
    "gray_text",
    "text_color",
)


class SettingsStore:
    """Configuration provider backed by the `website_settings` table.

    The first `get` reads the whole table into a snapshot owned by this
    instance. Build one store per request: writes from other processes (the
    admin area, `epaper-cli --set`) show up on the next request.
    """

    def __init__(self, db_path: str = "data/epaper.db"):
        """Open (and create if needed) the settings table."""
        self.db_path = Path(db_path)
        if db_path == "data/epaper.db":
            from ...config_manager import get_config_manager

            self.db_path = get_config_manager().get_database_path()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._snapshot: dict[str, str | None] | None = None
        self._init_db()

    def _get_conn(self):
        return sqlite3.connect(self.db_path)

    def _init_db(self):
        conn = self._get_conn()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS website_settings (
                    setting_key TEXT PRIMARY KEY,
                    setting_value TEXT,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.commit()
        finally:
            conn.close()

    def _rows(self) -> list[tuple[str, str | None]]:
        conn = self._get_conn()
        try:
            return conn.execute("SELECT setting_key, setting_value FROM website_settings").fetchall()
        finally:
            conn.close()

    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value for `key`, or `default` when unset or empty."""
        if self._snapshot is None:
            self._snapshot = {str(k): v for k, v in self._rows()}
        value = self._snapshot.get(key)
        return default if value in (None, "") else value

    def refresh(self) -> None:
        """Drop the snapshot; the next `get` reads the table again."""
        self._snapshot = None

    def set(self, key: str, value: Any) -> bool:
        """Upsert a setting and keep this instance's snapshot in step."""
        text = "" if value is None else str(value)
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO website_settings (setting_key, setting_value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(setting_key) DO UPDATE SET
                    setting_value = excluded.setting_value,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (key, text),
            )
            conn.commit()
        except sqlite3.Error as exc:
            logger.error("Failed to save setting %s: %s", key, exc)
            return False
        finally:
            conn.close()
        if self._snapshot is not None:
            self._snapshot[key] = text
        return True

    def all(self) -> dict[str, str]:
        """Return every stored setting straight from the table."""
        return {str(k): str(v or "") for k, v in self._rows()}


@dataclass(frozen=True)
class SiteSettings:
    """Typed per-request view of the site configuration."""

    title: str
    site_url: str
    timezone: str
    logo_path: str
    editor_name: str
    twitter_url: str
    og_image_path: str
    theme: dict[str, str] = field(default_factory=dict)

    @property
    def tzinfo(self) -> ZoneInfo:
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone %r, using UTC", self.timezone)
            return ZoneInfo("UTC")


def load_site_settings(store: SettingsStore | None = None, config=None) -> SiteSettings:
    """Merge database settings over the `site.*` config defaults."""
    if config is None:
        from ...config_manager import get_config_manager

        config = get_config_manager()

    try:
        provider = store or SettingsStore()
    except sqlite3.Error:
        logger.exception("Settings store unavailable, using config defaults")
        provider = None

    def _value(key: str, default: str) -> str:
        fallback = config.get_setting(f"site.{key}", default)
        if provider is None:
            return str(fallback or "")
        try:
            return str(provider.get(f"app_{key}", fallback) or "")
        except sqlite3.Error:
            logger.exception("Failed to read setting app_%s", key)
            return str(fallback or "")

    theme: dict[str, str] = {}
    if provider is not None:
        for key in THEME_KEYS:
            try:
                value = provider.get(f"theme.{key}")
            except sqlite3.Error:
                value = None
            if value:
                theme[key] = str(value)

    return SiteSettings(
        title=_value("title", "E-Paper"),
        site_url=_value("site_url", "").rstrip("/"),
        timezone=_value("timezone", "Asia/Kolkata"),
        logo_path=_value("logo_path", "uploads/assets/logo.jpg"),
        editor_name=_value("editor_name", "E-Paper Publications"),
        twitter_url=_value("twitter_url", ""),
        og_image_path=_value("og_image_path", ""),
        theme=theme,
    )
