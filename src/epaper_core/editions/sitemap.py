"""XML sitemap of published editions."""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import urlencode

from lxml import etree

from ..models import Edition, timestamp_date

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"


def edition_url(base_url: str, edition: Edition) -> str:
    """Absolute viewer URL pinned to one edition."""
    query = urlencode({"date": edition.publication_date.isoformat(), "edition_id": edition.id})
    return f"{base_url.rstrip('/')}/?{query}"


def _lastmod(edition: Edition) -> str:
    updated = timestamp_date(edition.updated_at) or timestamp_date(edition.created_at)
    return (updated or edition.publication_date).isoformat()


def build_editions_sitemap(base_url: str, editions: Iterable[Edition]) -> etree._Element:
    """Build the `urlset` element, one `url` per published edition."""
    urlset = etree.Element(f"{{{SITEMAP_NS}}}urlset", nsmap={None: SITEMAP_NS})
    for edition in editions:
        if not edition.is_visible:
            continue
        url = etree.SubElement(urlset, f"{{{SITEMAP_NS}}}url")
        etree.SubElement(url, f"{{{SITEMAP_NS}}}loc").text = edition_url(base_url, edition)
        etree.SubElement(url, f"{{{SITEMAP_NS}}}lastmod").text = _lastmod(edition)
    return urlset


def render_editions_sitemap(base_url: str, editions: Iterable[Edition]) -> bytes:
    """Serialize the editions sitemap as UTF-8 XML bytes."""
    return etree.tostring(
        build_editions_sitemap(base_url, editions),
        xml_declaration=True,
        encoding="UTF-8",
        pretty_print=True,
    )
