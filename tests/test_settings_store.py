from epaper_core.config_manager import get_config_manager
from epaper_core.services.storage.settings_store import SettingsStore, load_site_settings
from epaper_ui.config import get_site_settings
from epaper_ui.theme import css_variables, resolve_palette


def test_database_value_overrides_config_default():
    store = SettingsStore()
    assert load_site_settings(store).title == "E-Paper"

    assert store.set("app_title", "The Daily Bugle")
    assert load_site_settings(store).title == "The Daily Bugle"


def test_config_value_used_when_database_is_empty():
    cm = get_config_manager()
    cm.set_setting("site.site_url", "https://news.example.com/")

    site = load_site_settings(SettingsStore(), config=cm)

    assert site.site_url == "https://news.example.com"


def test_write_invalidates_cached_value():
    store = SettingsStore()
    store.set("app_editor_name", "First")
    assert store.get("app_editor_name") == "First"

    store.set("app_editor_name", "Second")
    assert store.get("app_editor_name") == "Second"


def _write_behind_the_store(store, key, value):
    """Update a row the way another process (the CLI) would."""
    conn = store._get_conn()
    conn.execute("UPDATE website_settings SET setting_value = ? WHERE setting_key = ?", (value, key))
    conn.commit()
    conn.close()


def test_snapshot_is_per_store():
    store = SettingsStore()
    store.set("app_twitter_url", "@before")
    assert store.get("app_twitter_url") == "@before"

    _write_behind_the_store(store, "app_twitter_url", "@after")

    assert store.get("app_twitter_url") == "@before"
    assert SettingsStore().get("app_twitter_url") == "@after"
    store.refresh()
    assert store.get("app_twitter_url") == "@after"


def test_site_settings_pick_up_writes_from_another_process():
    web = SettingsStore()
    web.set("app_title", "Old Title")
    assert get_site_settings().title == "Old Title"

    _write_behind_the_store(web, "app_title", "New Title")

    assert get_site_settings().title == "New Title"


def test_empty_value_falls_back_to_default():
    store = SettingsStore()
    store.set("app_logo_path", "")
    assert store.get("app_logo_path", "uploads/assets/logo.jpg") == "uploads/assets/logo.jpg"


def test_unknown_timezone_falls_back_to_utc():
    store = SettingsStore()
    store.set("app_timezone", "Mars/Olympus")
    assert load_site_settings(store).tzinfo.key == "UTC"


def test_theme_colors_resolve_with_safe_fallbacks():
    store = SettingsStore()
    store.set("theme.main_color", "#123")
    store.set("theme.hover_color", "not-a-color")

    site = load_site_settings(store)
    palette = resolve_palette(site.theme)

    assert palette["main_color"] == "#112233"
    assert palette["hover_color"] == "#2563EB"
    assert palette["main_text_color"] == "#F8FAFC"
    assert palette["hover_text_color"] == "#F8FAFC"
    css = css_variables(palette)
    assert "--color-main-color: #112233;" in css
    assert "--color-main-rgb: 17, 34, 51;" in css
