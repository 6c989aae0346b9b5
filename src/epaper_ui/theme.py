"""Site palette and color utilities shared across the UI."""

from __future__ import annotations

import re
from collections.abc import Mapping

DEFAULT_PALETTE: dict[str, str] = {
    "main_color": "#1E3A8A",
    "main_text_color": "#FFFFFF",
    "hover_color": "#2563EB",
    "hover_text_color": "#FFFFFF",
    "light_gray_border": "#E5E7EB",
    "bg_gray_100": "#F3F4F6",
    "gray_text": "#374151",
    "text_color": "#111827",
}

_HEX_RE = re.compile(r"#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})")
_DARK_INK = "#0F172A"
_LIGHT_INK = "#F8FAFC"


def normalize_hex(color: str | None, fallback: str) -> str:
    """`#abc`, `abc` and `#aabbcc` all become `#AABBCC`. Anything else gives `fallback`."""
    match = _HEX_RE.fullmatch(str(color or "").strip())
    if not match:
        return fallback
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(ch + ch for ch in digits)
    return "#" + digits.upper()


def parse_hex_rgb(color: str) -> tuple[int, int, int]:
    digits = normalize_hex(color, DEFAULT_PALETTE["main_color"])[1:]
    return tuple(int(digits[pos : pos + 2], 16) for pos in (0, 2, 4))


def mix_hex(color_a: str, color_b: str, ratio: float) -> str:
    """Blend `color_b` into `color_a`; `ratio` 0 keeps a, 1 gives b."""
    weight = min(1.0, max(0.0, ratio))
    channels = (int(x * (1.0 - weight) + y * weight) for x, y in zip(parse_hex_rgb(color_a), parse_hex_rgb(color_b)))
    return "#" + "".join(f"{value:02X}" for value in channels)


def readable_ink(color: str) -> str:
    """Dark ink on bright backgrounds, light ink otherwise (perceived brightness >= 170)."""
    red, green, blue = parse_hex_rgb(color)
    brightness = 0.299 * red + 0.587 * green + 0.114 * blue
    return _DARK_INK if brightness >= 170 else _LIGHT_INK


def resolve_palette(theme: Mapping[str, str] | None) -> dict[str, str]:
    """Merge stored `theme.*` colors over the defaults, dropping invalid values."""
    stored = theme if isinstance(theme, Mapping) else {}
    palette = {key: normalize_hex(stored.get(key), default) for key, default in DEFAULT_PALETTE.items()}
    # A custom background without its own ink gets a readable one.
    for background, ink in (("main_color", "main_text_color"), ("hover_color", "hover_text_color")):
        if stored.get(background) and not stored.get(ink):
            palette[ink] = readable_ink(palette[background])
    return palette


def css_variables(palette: Mapping[str, str]) -> str:
    """Inline `style` declaring the palette as `--color-*` custom properties."""
    declarations = [f"--color-{key.replace('_', '-')}: {value};" for key, value in palette.items()]
    declarations.append(f"--color-main-rgb: {', '.join(str(c) for c in parse_hex_rgb(palette['main_color']))};")
    declarations.append(f"--color-main-soft: {mix_hex(palette['main_color'], '#FFFFFF', 0.85)};")
    return "".join(declarations)
