"""Rasterize an edition PDF into the `images/page-<N>.jpg` files the viewer reads."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pymupdf as fitz  # PyMuPDF
from PIL import Image

from ..logger import get_logger

logger = get_logger(__name__)


class PdfRenderError(RuntimeError):
    """Raised when a PDF cannot be opened or has no pages."""


def _open_pdf(pdf_file: Path) -> fitz.Document:
    try:
        doc = fitz.open(str(pdf_file))
    except (RuntimeError, ValueError) as exc:
        raise PdfRenderError(f"Cannot open PDF {pdf_file}: {exc}") from exc
    if getattr(doc, "needs_pass", False):
        doc.close()
        raise PdfRenderError(f"PDF {pdf_file} is password protected")
    return doc


def render_page(page: fitz.Page, dpi: int = 180) -> Image.Image:
    dpi = max(50, min(int(dpi or 180), 600))
    zoom = dpi / 72.0
    pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), colorspace=fitz.csRGB, alpha=False)
    return Image.frombytes("RGB", (pix.width, pix.height), pix.samples)


def render_pdf_pages(
    pdf_file: Path,
    images_dir: Path,
    dpi: int = 180,
    jpeg_quality: int = 85,
    progress_callback: Callable[[int, int], None] | None = None,
) -> list[Path]:
    """Write one JPEG per PDF page as `page-1.jpg`, `page-2.jpg`, ... and return them."""
    images_dir.mkdir(parents=True, exist_ok=True)
    quality = max(30, min(int(jpeg_quality or 85), 95))
    written: list[Path] = []

    doc = _open_pdf(pdf_file)
    try:
        total = int(doc.page_count)
        if total <= 0:
            raise PdfRenderError(f"PDF {pdf_file} has no pages")
        for index in range(total):
            target = images_dir / f"page-{index + 1}.jpg"
            render_page(doc.load_page(index), dpi=dpi).save(target, "JPEG", quality=quality)
            written.append(target)
            if progress_callback:
                progress_callback(index + 1, total)
    finally:
        doc.close()

    logger.info("Rendered %d page(s) of %s into %s", len(written), pdf_file.name, images_dir)
    return written
