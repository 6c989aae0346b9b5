"""Viewer route handlers.

Resolve the requested edition, collect its page images and render the
viewer page, or redirect to the editions-by-date listing when a date is
ambiguous.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime

from fasthtml.common import RedirectResponse, Request, to_xml
from starlette.responses import HTMLResponse

from epaper_core.editions.page_images import resolve_page_images
from epaper_core.editions.resolution import DEFAULT_DISAMBIGUATION_PATH, error_resolution, resolve_edition
from epaper_core.editions.seo import build_page_meta, pdf_url
from epaper_core.logger import get_logger
from epaper_core.models import Identity
from epaper_core.services.storage.edition_store import EditionStore, EditionStoreError
from epaper_core.viewer.state import ViewerSession, ViewerSettings
from epaper_ui.components.viewer import viewer_boundary
from epaper_ui.config import get_public_dir, get_setting, get_site_settings
from epaper_ui.pages.viewer import viewer_layout

logger = get_logger(__name__)

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
}


def request_base_url(request: Request, site_url: str = "") -> str:
    """Absolute base URL: the configured site URL, else the request's own origin."""
    if site_url:
        return site_url.rstrip("/")
    return f"{request.url.scheme}://{request.url.netloc}"


def request_identity(request: Request) -> Identity:
    """Identity from the session cookie; anonymous when sessions are not installed."""
    return Identity.from_session(request.scope.get("session"))


def html_response(page, status_code: int = 200) -> HTMLResponse:
    """Render an FT page with the viewer security headers."""
    return HTMLResponse(to_xml(page), status_code=status_code, headers=dict(SECURITY_HEADERS))


def viewer_page(request: Request, date: str | None = None, edition_id: str | None = None):
    """Main viewer (`/` and `/index.php`)."""
    site = get_site_settings()
    today = datetime.now(site.tzinfo).date()
    disambiguation_path = get_setting("editions.disambiguation_path", DEFAULT_DISAMBIGUATION_PATH)

    try:
        store = EditionStore()
    except (EditionStoreError, sqlite3.Error):
        logger.exception("❌ Edition store unavailable")
        resolution = error_resolution(today)
    else:
        resolution = resolve_edition(store, today, date, edition_id, disambiguation_path)

    if resolution.is_redirect:
        logger.info("Several editions on %s, redirecting to %s", resolution.selected_date, resolution.redirect_to)
        return RedirectResponse(resolution.redirect_to, status_code=302)

    edition = resolution.edition
    images: list[str] = []
    if edition is not None:
        extensions = get_setting("viewer.image_extensions", ["jpg"]) or ["jpg"]
        image_set = resolve_page_images(edition.pdf_path, get_public_dir(), extensions)
        images = list(image_set.images)
        resolution = resolution.with_notice(image_set.notice)

    base_url = request_base_url(request, site.site_url)
    meta = build_page_meta(
        resolution,
        images,
        base_url=base_url,
        site_title=site.title,
        author=site.editor_name,
        site_og_image=site.og_image_path,
        twitter_site=site.twitter_url,
    )

    session = ViewerSession(
        images,
        settings=ViewerSettings.from_config(),
        selected_date=resolution.selected_date.strftime("%d-%m-%Y"),
    )
    boundary = viewer_boundary(
        session=session,
        selected_date=resolution.selected_date.isoformat(),
        raw_title=resolution.raw_title,
        page_turn_sound=str(get_setting("viewer.page_turn_sound", "") or ""),
        edition_id=edition.id if edition is not None else None,
        site_url=base_url,
    )
    page = viewer_layout(
        resolution,
        session,
        boundary,
        site=site,
        identity=request_identity(request),
        meta=meta,
        pdf_url=pdf_url(edition.pdf_path) if edition is not None else "",
    )
    logger.debug("Rendered viewer for %s with %d page(s)", resolution.display_title, len(images))
    return html_response(page)
