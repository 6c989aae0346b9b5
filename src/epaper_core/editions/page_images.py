"""Resolve the ordered page images of an edition from its stored PDF path.

The upload workflow writes one JPEG per page into an `images/` folder next to
the PDF (`page-1.jpg`, `page-2.jpg`, ...). This module finds that folder,
orders the files by page number and turns them into URLs served from the
public root.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from urllib.parse import quote, unquote

from ..logger import get_logger

logger = get_logger(__name__)

IMAGES_SUBDIR = "images"
DEFAULT_EXTENSIONS: tuple[str, ...] = ("jpg",)
_TRAVERSAL_PREFIX_RE = re.compile(r"^(?:/?\.\./)+")

MISSING_DIRECTORY_NOTICE = "Image directory for this edition not found."
MISSING_PDF_NOTICE = "PDF path for this edition is missing."


@dataclass(frozen=True)
class PageImageSet:
    """Ordered page image URLs of one edition, possibly empty."""

    images: list[str] = field(default_factory=list)
    directory: Path | None = None
    notice: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.images

    @property
    def directory_missing(self) -> bool:
        return self.notice == MISSING_DIRECTORY_NOTICE

    def __len__(self) -> int:
        return len(self.images)


def sanitize_storage_path(raw_path: str) -> str:
    """Strip legacy `../` / `/../` prefixes and leading slashes from a stored path."""
    text = str(raw_path or "").strip().replace("\\", "/")
    text = _TRAVERSAL_PREFIX_RE.sub("", text)
    return text.lstrip("/")


def images_dir_for_pdf(public_root: Path, raw_pdf_path: str) -> Path | None:
    """Return the absolute `images/` folder for a stored PDF path.

    Returns None when the stored path would escape the public root once
    resolved (for example `uploads/../../etc/x.pdf`).
    """
    relative = sanitize_storage_path(raw_pdf_path)
    if not relative:
        return None
    root = public_root.resolve()
    candidate = (root / PurePosixPath(relative).parent / IMAGES_SUBDIR).resolve()
    try:
        candidate.relative_to(root)
    except ValueError:
        logger.warning("Rejected PDF path outside the public root: %s", raw_pdf_path)
        return None
    return candidate


def _page_pattern(extensions: Sequence[str]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(ext.lower().lstrip(".")) for ext in extensions)
    return re.compile(rf"page-(\d+)\.(?:{alternatives})$", re.IGNORECASE)


def page_number_from_name(name: str, extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> int:
    """Extract the page number from `page-<N>.<ext>`; 0 when it does not parse."""
    match = _page_pattern(extensions).search(name)
    return int(match.group(1)) if match else 0


def order_page_files(files: Iterable[Path], extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> list[Path]:
    """Sort page files by numeric page number (stable, name order breaks ties)."""
    by_name = sorted(files, key=lambda p: p.name)
    numbered: list[tuple[int, Path]] = []
    for path in by_name:
        number = page_number_from_name(path.name, extensions)
        if number == 0 and not _page_pattern(extensions).search(path.name):
            logger.warning("Page image without a page number, ordered as page 0: %s", path.name)
        numbered.append((number, path))
    numbered.sort(key=lambda item: item[0])
    return [path for _, path in numbered]


def to_web_path(public_root: Path, file_path: Path) -> str:
    """Turn an absolute file path under the public root into a root-relative URL."""
    rel = file_path.resolve().relative_to(public_root.resolve())
    return "/" + "/".join(quote(part) for part in rel.parts)


def list_page_files(images_dir: Path, extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> list[Path]:
    """List the `page-*` files with an accepted extension inside a folder."""
    accepted = {f".{ext.lower().lstrip('.')}" for ext in extensions}
    return [p for p in images_dir.glob("page-*") if p.is_file() and p.suffix.lower() in accepted]


def resolve_page_images(
    raw_pdf_path: str,
    public_root: Path,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
) -> PageImageSet:
    """Produce the ordered page image URLs present on disk for a stored PDF path.

    A missing PDF path or image folder never raises: the result is empty and
    carries a notice for the reader.
    """
    if not str(raw_pdf_path or "").strip():
        logger.debug("No PDF path stored, no page images to resolve")
        return PageImageSet(notice=MISSING_PDF_NOTICE)

    images_dir = images_dir_for_pdf(public_root, raw_pdf_path)
    logger.debug("PDF path %s -> images dir %s", raw_pdf_path, images_dir)
    if images_dir is None or not images_dir.is_dir():
        logger.warning("Image directory does not exist: %s (pdf_path=%s)", images_dir, raw_pdf_path)
        return PageImageSet(directory=images_dir, notice=MISSING_DIRECTORY_NOTICE)

    files = order_page_files(list_page_files(images_dir, extensions), extensions)
    if not files:
        logger.debug("No page images found in %s", images_dir)

    images = [to_web_path(public_root, f) for f in files]
    logger.debug("Resolved %d page images in %s", len(images), images_dir)
    return PageImageSet(images=images, directory=images_dir)


def page_image_file(public_root: Path, web_path: str) -> Path | None:
    """Map a page image URL back to its file, None if it leaves the public root."""
    relative = sanitize_storage_path(unquote(web_path.split("?", 1)[0]))
    root = public_root.resolve()
    candidate = (root / relative).resolve()
    try:
        candidate.relative_to(root)
    except ValueError:
        return None
    return candidate if candidate.is_file() else None
