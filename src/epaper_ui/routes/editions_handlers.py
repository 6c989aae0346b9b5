"""Editions-by-date handlers.

Target of the viewer's redirect when several editions share a date: a
paginated grid of cards, each opening the viewer on one edition id.
"""

from __future__ import annotations

import math
import sqlite3
from datetime import datetime

from fasthtml.common import Request

from epaper_core.editions.page_images import resolve_page_images, sanitize_storage_path
from epaper_core.logger import get_logger
from epaper_core.models import Edition, parse_iso_date
from epaper_core.services.storage.edition_store import EditionStore, EditionStoreError
from epaper_ui.common.toasts import build_toast
from epaper_ui.components.date_editions import edition_card, render_date_editions
from epaper_ui.components.layout import base_layout
from epaper_ui.config import get_public_dir, get_setting, get_site_settings
from epaper_ui.routes.viewer_handlers import html_response, request_identity

logger = get_logger(__name__)

LISTING_ERROR_NOTICE = "Editions could not be loaded right now. Please try again later."


def _page_number(raw) -> int:
    try:
        return max(1, int(str(raw).strip()))
    except (TypeError, ValueError):
        return 1


def card_thumbnail(edition: Edition) -> str:
    """List thumbnail, else the OG image, else the first page image."""
    for candidate in (edition.list_thumb_path, edition.og_image_path):
        relative = sanitize_storage_path(candidate)
        if relative:
            return f"/{relative}"
    extensions = get_setting("viewer.image_extensions", ["jpg"]) or ["jpg"]
    images = resolve_page_images(edition.pdf_path, get_public_dir(), extensions).images
    return images[0] if images else ""


def date_editions_page(request: Request, date: str | None = None, page: str | None = None):
    """List the published editions of one date, 12 per page by default."""
    site = get_site_settings()
    today = datetime.now(site.tzinfo).date()
    selected = parse_iso_date(date) or today

    page_size = max(1, int(get_setting("editions.date_page_size", 12) or 12))
    current_page = _page_number(page)
    toasts = []
    editions: list[Edition] = []
    total = 0

    try:
        store = EditionStore()
        total = store.count_published_editions_by_date(selected)
        total_pages = math.ceil(total / page_size)
        if total_pages == 0:
            current_page = 1
        elif current_page > total_pages:
            current_page = total_pages
        editions = store.list_published_editions_by_date(selected, page_size, (current_page - 1) * page_size)
    except (EditionStoreError, sqlite3.Error):
        logger.exception("❌ Database error listing editions for %s", selected)
        total, current_page, editions = 0, 1, []
        toasts.append(build_toast(LISTING_ERROR_NOTICE, tone="error"))

    total_pages = math.ceil(total / page_size) if total else 0
    logger.debug("Date listing %s: %d edition(s), page %d/%d", selected, total, current_page, total_pages)

    cards = [edition_card(e, card_thumbnail(e)) for e in editions]
    content = render_date_editions(
        selected,
        cards,
        current_page=current_page,
        total_pages=total_pages,
        base_path=request.url.path,
        total=total,
    )
    layout = base_layout(
        f"Editions by Date | {site.title}",
        content,
        site=site,
        identity=request_identity(request),
        heading="Editions by Date",
        selected_date=selected,
        toasts=toasts,
        date_action=request.url.path,
    )
    return html_response(layout)
