"""Open Graph and SEO metadata for the viewer page."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlencode

from .page_images import sanitize_storage_path
from .resolution import EditionResolution


@dataclass(frozen=True)
class PageMeta:
    """Values rendered into the `<head>` of the viewer page."""

    title: str
    description: str
    keywords: str
    author: str
    url: str
    image: str = ""
    twitter_site: str = ""

    def as_tags(self) -> list[tuple[str, str, str]]:
        """Return `(attribute, key, content)` triples for the meta tags."""
        tags = [
            ("name", "description", self.description),
            ("name", "keywords", self.keywords),
            ("name", "author", self.author),
            ("property", "og:title", self.title),
            ("property", "og:description", self.description),
            ("property", "og:url", self.url),
            ("property", "og:type", "article"),
            ("name", "twitter:card", "summary_large_image"),
            ("name", "twitter:title", self.title),
            ("name", "twitter:description", self.description),
        ]
        if self.twitter_site:
            tags.append(("name", "twitter:site", self.twitter_site))
        if self.image:
            tags.append(("property", "og:image", self.image))
            tags.append(("name", "twitter:image", self.image))
        return tags


def absolute_url(base_url: str, path: str) -> str:
    """Join a site base URL and a stored or root-relative path."""
    if not path:
        return ""
    if path.startswith(("http://", "https://")):
        return path
    return f"{base_url.rstrip('/')}/{sanitize_storage_path(path)}"


def canonical_url(base_url: str, resolution: EditionResolution) -> str:
    """`og:url` for the page: pinned to the date, and to the id when one was requested."""
    base = base_url.rstrip("/")
    edition = resolution.edition
    if edition is None:
        return f"{base}/"
    params = {"date": edition.publication_date.isoformat()}
    if resolution.requested_edition_id:
        params["edition_id"] = str(edition.id)
    return f"{base}/?{urlencode(params)}"


def build_page_meta(
    resolution: EditionResolution,
    images: list[str],
    *,
    base_url: str,
    site_title: str,
    author: str,
    site_og_image: str = "",
    twitter_site: str = "",
) -> PageMeta:
    """Derive the page metadata from the resolved edition and its page images.

    The preview image is the edition's own OG image, else its first page,
    else the site-wide default.
    """
    edition = resolution.edition
    description = (
        f"Read the latest edition of {site_title} online. Stay updated with daily news and articles."
    )
    image = absolute_url(base_url, site_og_image)

    if edition is not None:
        if edition.description:
            description = edition.description
        else:
            description = f"Read the {edition.title} edition of {site_title}, published on {edition.display_date}."
        if edition.og_image_path:
            image = absolute_url(base_url, edition.og_image_path)
        elif images:
            image = absolute_url(base_url, images[0])

    return PageMeta(
        title=resolution.display_title or site_title,
        description=description,
        keywords=f"{site_title}, E-Paper, Newspaper, Online News, Daily Edition",
        author=author,
        url=canonical_url(base_url, resolution),
        image=image,
        twitter_site=twitter_site,
    )


def pdf_url(edition_pdf_path: str) -> str:
    """Root-relative download link for the edition PDF, empty when none is stored."""
    relative = sanitize_storage_path(edition_pdf_path)
    return f"/{relative}" if relative else ""
