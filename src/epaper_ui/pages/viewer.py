"""Viewer page layout: the resolved edition inside the site shell."""

from __future__ import annotations

from epaper_core.editions.resolution import EditionResolution
from epaper_core.editions.seo import PageMeta
from epaper_core.models import Identity
from epaper_core.services.storage.settings_store import SiteSettings
from epaper_core.viewer.state import ViewerSession
from epaper_ui.components.layout import base_layout
from epaper_ui.components.viewer import render_viewer


def viewer_layout(
    resolution: EditionResolution,
    session: ViewerSession,
    boundary: dict,
    *,
    site: SiteSettings,
    identity: Identity,
    meta: PageMeta,
    pdf_url: str,
):
    """Full HTML document for `/`."""
    title = resolution.display_title or site.title
    return base_layout(
        f"{title} | {site.title}" if resolution.edition is not None else site.title,
        render_viewer(session, boundary, pdf_url),
        site=site,
        identity=identity,
        meta=meta,
        heading=title,
        selected_date=resolution.selected_date,
        notification=resolution.notification,
    )
