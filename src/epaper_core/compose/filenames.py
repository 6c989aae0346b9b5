"""File names for downloaded and shared crops."""

from __future__ import annotations

import random
import re
from datetime import date

_WHITESPACE_RE = re.compile(r"\s+")
_UNSAFE_RE = re.compile(r'[\\/:*?"<>|]+')


def download_filename(title: str, publication_date: date, page_number: int, rng: random.Random | None = None) -> str:
    """`<Title-With-Dashes>-<YYYYMMDD>-<page>-<4 random digits>.png`."""
    slug = _UNSAFE_RE.sub("", _WHITESPACE_RE.sub("-", (title or "").strip())) or "edition"
    suffix = (rng or random).randint(1000, 9999)
    return f"{slug}-{publication_date.strftime('%Y%m%d')}-{page_number}-{suffix}.png"


def share_filename(page_number: int) -> str:
    return f"cropped-epaper-page-{page_number}.png"
