"""SQLite-backed stores for editions and website settings."""

from .edition_store import EditionStore, EditionStoreError
from .settings_store import SettingsStore, load_site_settings

__all__ = ["EditionStore", "EditionStoreError", "SettingsStore", "load_site_settings"]
