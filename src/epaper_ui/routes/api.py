"""API Routes - uploaded files and crop composition.

`/uploads/...` serves page images, PDFs, logos and sounds from the public
root. `/api/crop/compose` turns a Cropper.js rectangle on one page into the
branded PNG the reader downloads or shares.
"""

from __future__ import annotations

import json
import sqlite3
from urllib.parse import quote

from fasthtml.common import Request, Response
from PIL import Image, UnidentifiedImageError
from starlette.responses import FileResponse

from epaper_core.compose.branding import (
    BrandingLayout,
    compose_branded_image,
    crop_page,
    load_logo,
    metadata_lines,
    to_png_bytes,
)
from epaper_core.compose.filenames import download_filename, share_filename
from epaper_core.editions.page_images import page_image_file, resolve_page_images, sanitize_storage_path
from epaper_core.logger import get_logger
from epaper_core.services.storage.edition_store import EditionStore, EditionStoreError
from epaper_core.viewer.state import CropRegion
from epaper_ui.config import get_public_dir, get_setting, get_site_settings
from epaper_ui.routes.viewer_handlers import request_base_url

logger = get_logger(__name__)

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".pdf": "application/pdf",
    ".wav": "audio/wav",
    ".mp3": "audio/mpeg",
}


def serve_upload_file(path: str) -> Response:
    """Serve files from the `uploads/` folder of the public root."""
    uploads_dir = (get_public_dir() / "uploads").resolve()

    try:
        requested_path = (uploads_dir / path).resolve()
        requested_path.relative_to(uploads_dir)
    except (ValueError, RuntimeError):
        logger.warning("Path traversal attempt blocked: %s", path)
        return Response("403 Forbidden", status_code=403)

    if not requested_path.is_file():
        logger.warning("Upload not found: %s", requested_path)
        return Response("404 Not Found", status_code=404)

    media_type = CONTENT_TYPES.get(requested_path.suffix.lower(), "application/octet-stream")
    logger.debug("Serving file: %s as %s", requested_path, media_type)
    return FileResponse(str(requested_path), media_type=media_type)


def content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback name plus the RFC 5987 UTF-8 name."""
    fallback = filename.encode("ascii", "ignore").decode("ascii").replace('"', "") or "cropped.png"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


def _json_error(message: str, status_code: int) -> Response:
    return Response(json.dumps({"error": message}), status_code=status_code, media_type="application/json")


def _parse_region(crop_data: str) -> CropRegion | None:
    try:
        data = json.loads(crop_data)
        region = CropRegion(
            x=int(round(float(data["x"]))),
            y=int(round(float(data["y"]))),
            width=int(round(float(data["width"]))),
            height=int(round(float(data["height"]))),
        )
    except (TypeError, ValueError, KeyError):
        return None
    if region.width <= 0 or region.height <= 0:
        return None
    return region


def compose_crop(
    request: Request, edition_id: str = "", page: str = "", crop_data: str = "", purpose: str = "download"
) -> Response:
    """Crop one page of an edition and return the branded PNG."""
    region = _parse_region(crop_data)
    if region is None:
        return _json_error("Invalid crop rectangle.", 400)
    try:
        page_number = int(str(page).strip())
    except (TypeError, ValueError):
        return _json_error("Invalid page number.", 400)
    if purpose not in {"download", "share"}:
        return _json_error("Unknown purpose.", 400)

    try:
        edition = EditionStore().find_published_edition_by_id(edition_id)
    except (EditionStoreError, sqlite3.Error):
        logger.exception("❌ Database error while composing crop for edition %s", edition_id)
        return _json_error("Edition could not be loaded.", 503)
    if edition is None:
        return _json_error("Edition not found.", 404)

    public_root = get_public_dir()
    extensions = get_setting("viewer.image_extensions", ["jpg"]) or ["jpg"]
    images = resolve_page_images(edition.pdf_path, public_root, extensions).images
    if not 1 <= page_number <= len(images):
        return _json_error("Page not found.", 404)
    page_file = page_image_file(public_root, images[page_number - 1])
    if page_file is None:
        return _json_error("Page not found.", 404)

    site = get_site_settings()
    logo_relative = sanitize_storage_path(site.logo_path)
    logo = load_logo(public_root / logo_relative if logo_relative else None)

    try:
        with Image.open(page_file) as source:
            cropped = crop_page(source, region)
    except (OSError, UnidentifiedImageError):
        logger.exception("❌ Could not read page image %s", page_file)
        return _json_error("Page image could not be read.", 422)

    composed = compose_branded_image(
        cropped,
        logo,
        metadata_lines(request_base_url(request, site.site_url), edition.publication_date, page_number),
        BrandingLayout.from_config(),
    )
    filename = (
        download_filename(edition.title, edition.publication_date, page_number)
        if purpose == "download"
        else share_filename(page_number)
    )
    logger.info("✅ Composed crop %s (%dx%d) for edition %s", filename, *composed.size, edition.id)
    return Response(
        to_png_bytes(composed),
        media_type="image/png",
        headers={"Content-Disposition": content_disposition(filename), "Cache-Control": "no-store"},
    )


def setup_api_routes(app) -> None:
    """Register file serving and crop composition routes."""
    app.get("/uploads/{path:path}")(serve_upload_file)
    app.post("/api/crop/compose")(compose_crop)
