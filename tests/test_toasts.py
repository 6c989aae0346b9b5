from epaper_core.viewer.notices import Notice, Tone
from epaper_ui.common import toasts


def test_build_toast_renders_oob_fragment(monkeypatch):
    """Toast markup must target the global OOB holder."""
    monkeypatch.setattr(toasts, "get_setting", lambda _path, default=None: 4200)
    html = str(toasts.build_toast("Edition saved", tone="success"))

    assert 'hx-swap-oob="beforeend:#epaper-toast-holder"' in html
    assert 'data-toast-timeout="4200"' in html
    assert "epaper-toast-entry" in html


def test_build_toast_clamps_invalid_timeout(monkeypatch):
    monkeypatch.setattr(toasts, "get_setting", lambda _path, default=None: -1)
    assert 'data-toast-timeout="1000"' in str(toasts.build_toast("Bad timeout", tone="info"))

    monkeypatch.setattr(toasts, "get_setting", lambda _path, default=None: "soon")
    assert 'data-toast-timeout="3000"' in str(toasts.build_toast("Bad timeout", tone="info"))


def test_unknown_tone_and_blank_message_fall_back():
    html = str(toasts.toast_card("   ", tone="shouting"))

    assert "toast-info" in html
    assert "Done." in html


def test_notice_toast_keeps_notice_duration():
    html = str(toasts.notice_toast(Notice("Page 2 / 3", Tone.ERROR, 1000)))

    assert "toast-error" in html
    assert 'data-toast-timeout="1000"' in html
