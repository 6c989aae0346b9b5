"""Toast notifications: cards for the viewer and OOB fragments for HTMX swaps."""

from __future__ import annotations

from fasthtml.common import Button, Div, Span

from epaper_core.viewer.notices import Notice
from epaper_ui.config import get_setting
from epaper_ui.theme import mix_hex, parse_hex_rgb

TOAST_HOLDER_ID = "epaper-toast-holder"
DEFAULT_TOAST_MS = 3000
TOAST_MS_RANGE = (1000, 15000)

# tone -> (icon, anchor color)
_TONES = {
    "success": ("✅", "#10B981"),
    "info": ("ℹ️", "#0EA5E9"),
    "error": ("⚠️", "#EF4444"),
}


def _timeout_ms(duration_ms: int | None) -> int:
    raw = get_setting("ui.toast_duration", DEFAULT_TOAST_MS) if duration_ms is None else duration_ms
    try:
        value = int(raw)
    except (TypeError, ValueError):
        value = DEFAULT_TOAST_MS
    low, high = TOAST_MS_RANGE
    return min(high, max(low, value))


def _rgba(hex_color: str, alpha: float) -> str:
    return "rgba({}, {}, {}, {:.3f})".format(*parse_hex_rgb(hex_color), alpha)


def toast_style(tone: str) -> str:
    """Inline style of a toast card for the given tone."""
    anchor = _TONES.get(tone, _TONES["info"])[1]
    declarations = [
        f"background: linear-gradient(135deg, {_rgba(mix_hex(anchor, '#FFFFFF', 0.05), 0.96)} 0%, "
        f"{_rgba(mix_hex(anchor, '#0F172A', 0.35), 0.94)} 100%)",
        f"border: 1px solid {_rgba(mix_hex(anchor, '#FFFFFF', 0.22), 0.55)}",
        "border-radius: 0.6rem",
        f"box-shadow: 0 10px 28px {_rgba(mix_hex(anchor, '#000000', 0.35), 0.30)}",
        "color: #F8FAFC",
    ]
    return "; ".join(declarations) + ";"


def toast_card(message: str, tone: str = "info", duration_ms: int | None = None) -> Div:
    """Toast card; unknown tones render as info and blank messages as "Done."."""
    if tone not in _TONES:
        tone = "info"
    icon = _TONES[tone][0]
    text = (message or "").strip() or "Done."
    dismiss = Button(
        "✕",
        type="button",
        aria_label="Dismiss notification",
        cls="ml-3 inline-flex h-6 w-6 items-center justify-center rounded-full hover:bg-white/20",
        data_toast_close="true",
    )
    return Div(
        Span(icon, cls="text-lg leading-none mt-0.5"),
        Div(text, cls="text-sm font-semibold leading-snug text-left"),
        dismiss,
        role="status",
        aria_live="polite",
        style=toast_style(tone),
        cls=f"pointer-events-auto epaper-toast-entry toast-{tone} w-full flex items-start gap-3 px-4 py-3",
        data_toast_timeout=str(_timeout_ms(duration_ms)),
    )


def build_toast(message: str, tone: str = "info", duration_ms: int | None = None) -> Div:
    """Wrap a toast card so HTMX appends it to the page's toast holder."""
    return Div(toast_card(message, tone, duration_ms), hx_swap_oob=f"beforeend:#{TOAST_HOLDER_ID}")


def notice_toast(notice: Notice) -> Div:
    return toast_card(notice.message, notice.tone.value, notice.duration_ms)
