"""Sitemap routes."""

from __future__ import annotations

import sqlite3

from fasthtml.common import Request, Response

from epaper_core.editions.sitemap import render_editions_sitemap
from epaper_core.logger import get_logger
from epaper_core.services.storage.edition_store import EditionStore, EditionStoreError
from epaper_ui.config import get_site_settings
from epaper_ui.routes.viewer_handlers import request_base_url

logger = get_logger(__name__)


def editions_sitemap(request: Request) -> Response:
    """XML sitemap listing every published edition."""
    site = get_site_settings()
    try:
        editions = EditionStore().list_published_editions()
    except (EditionStoreError, sqlite3.Error):
        logger.exception("❌ Could not build the editions sitemap")
        return Response("500 Internal Server Error", status_code=500)

    body = render_editions_sitemap(request_base_url(request, site.site_url), editions)
    logger.debug("Sitemap built with %d edition(s)", len(editions))
    return Response(body, media_type="application/xml")


def setup_sitemap_routes(app) -> None:
    app.get("/sitemaps/editions.xml")(editions_sitemap)
