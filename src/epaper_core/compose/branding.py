"""Branded composition of a cropped page region.

`compose_branded_image` is a pure function of the cropped pixels, the logo and
the metadata lines: a header band with the centered logo, the crop below it,
and a footer band with the website, date and page lines.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from io import BytesIO
from pathlib import Path

from PIL import Image, ImageColor, ImageDraw, ImageFont

from ..logger import get_logger
from ..models import format_display_date
from ..viewer.state import CropRegion

logger = get_logger(__name__)


@dataclass(frozen=True)
class BrandingLayout:
    """Band sizes, colors and text placement of the composed image."""

    header_height: int = 200
    footer_height: int = 150
    logo_max_width: int = 400
    logo_padding: int = 20
    band_color: str = "#F3F4F6"
    text_color: str = "#000000"
    font_size: int = 20
    line_height: int = 30
    text_x: int = 10
    first_line_offset: int = 30

    @classmethod
    def from_config(cls, config=None) -> BrandingLayout:
        if config is None:
            from ..config_manager import get_config_manager

            config = get_config_manager()
        defaults = cls()
        values = {}
        for name in cls.__dataclass_fields__:
            raw = config.get_setting(f"compose.{name}", getattr(defaults, name))
            values[name] = str(raw) if name.endswith("_color") else int(raw)
        return cls(**values)


def metadata_lines(site_url: str, publication_date: date, page_number: int) -> list[str]:
    """The three footer lines: website, `DD-MM-YYYY` date, page number."""
    return [
        f"Website: {site_url}",
        f"Date: {format_display_date(publication_date)}",
        f"Page: {page_number}",
    ]


def _load_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    for font_name in ("Inter-Regular.ttf", "DejaVuSans.ttf", "arial.ttf", "Arial.ttf"):
        try:
            return ImageFont.truetype(font_name, size)
        except OSError:
            continue
    logger.debug("No TrueType font available, using the default bitmap font")
    try:
        return ImageFont.load_default(size=size)
    except TypeError:
        return ImageFont.load_default()


def logo_box(logo_size: tuple[int, int], canvas_width: int, layout: BrandingLayout) -> tuple[int, int, int, int]:
    """Position `(x, y, width, height)` of the logo inside the header band.

    Aspect-preserved: starts at `logo_max_width`, shrinks to fit the header
    height minus padding, then the canvas width minus padding; centered.
    """
    natural_w, natural_h = logo_size
    aspect = natural_w / natural_h
    draw_w = float(layout.logo_max_width)
    draw_h = draw_w / aspect
    if draw_h > layout.header_height - layout.logo_padding:
        draw_h = float(layout.header_height - layout.logo_padding)
        draw_w = draw_h * aspect
    if draw_w > canvas_width - layout.logo_padding:
        draw_w = float(canvas_width - layout.logo_padding)
        draw_h = draw_w / aspect
    width, height = max(1, round(draw_w)), max(1, round(draw_h))
    x = round((canvas_width - draw_w) / 2)
    y = round((layout.header_height - draw_h) / 2)
    return x, y, width, height


def compose_branded_image(
    cropped: Image.Image,
    logo: Image.Image | None,
    lines: list[str],
    layout: BrandingLayout | None = None,
) -> Image.Image:
    """Stack header (logo), cropped region and footer (text lines) into one RGB image."""
    layout = layout or BrandingLayout()
    crop_w, crop_h = cropped.size
    canvas = Image.new("RGB", (crop_w, crop_h + layout.header_height + layout.footer_height), "white")
    draw = ImageDraw.Draw(canvas)
    band = ImageColor.getrgb(layout.band_color)

    draw.rectangle((0, 0, crop_w, layout.header_height - 1), fill=band)
    if logo is not None and logo.width > 0 and logo.height > 0:
        x, y, width, height = logo_box(logo.size, crop_w, layout)
        if crop_w > layout.logo_padding:
            scaled = logo.convert("RGBA").resize((width, height), Image.Resampling.LANCZOS)
            canvas.paste(scaled, (x, y), scaled)
    else:
        logger.warning("Logo unavailable, composing without it")

    canvas.paste(cropped.convert("RGB"), (0, layout.header_height))

    footer_top = layout.header_height + crop_h
    draw.rectangle((0, footer_top, crop_w, canvas.height - 1), fill=band)
    font = _load_font(layout.font_size)
    ink = ImageColor.getrgb(layout.text_color)
    text_y = footer_top + layout.first_line_offset
    for line in lines:
        # text_y is the baseline of the line, Pillow positions by the top edge.
        draw.text((layout.text_x, text_y - layout.font_size), line, fill=ink, font=font)
        text_y += layout.line_height
    return canvas


def crop_page(page: Image.Image, region: CropRegion) -> Image.Image:
    """Cut `region` out of a page image, clamped to its bounds."""
    clamped = region.clamped(*page.size)
    return page.crop(clamped.as_box())


def load_logo(path: Path | None) -> Image.Image | None:
    """Open the site logo, None when missing or unreadable."""
    if path is None or not path.is_file():
        return None
    try:
        with Image.open(path) as img:
            img.load()
            return img.copy()
    except OSError as exc:
        logger.warning("Failed to load logo %s: %s", path, exc)
        return None


def to_png_bytes(image: Image.Image) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()
