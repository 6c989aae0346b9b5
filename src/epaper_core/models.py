"""Data model shared by the store, the resolution engine and the UI."""

from __future__ import annotations

import contextlib
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

DISPLAY_DATE_FORMAT = "%d-%m-%Y"
_ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")


class EditionStatus(str, Enum):
    """Lifecycle states of an edition. Only `published` is visible to readers."""

    DRAFT = "draft"
    PUBLISHED = "published"
    SCHEDULED = "scheduled"
    ARCHIVED = "archived"


def parse_iso_date(value: Any) -> date | None:
    """Parse exactly `YYYY-MM-DD` (or a date/datetime) into a `date`, None when invalid."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    if not _ISO_DATE_RE.fullmatch(text):
        return None
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError:
        return None


def timestamp_date(value: Any) -> date | None:
    """Calendar day of a stored `YYYY-MM-DD HH:MM:SS` timestamp (or a plain date)."""
    if isinstance(value, str):
        with contextlib.suppress(ValueError):
            return datetime.fromisoformat(value.strip()).date()
    return parse_iso_date(value)


def format_display_date(value: date) -> str:
    """Format a date the way readers see it (`DD-MM-YYYY`)."""
    return value.strftime(DISPLAY_DATE_FORMAT)


@dataclass(frozen=True)
class Edition:
    """One published issue of the newspaper."""

    id: int
    title: str
    publication_date: date
    pdf_path: str = ""
    og_image_path: str = ""
    list_thumb_path: str = ""
    description: str = ""
    status: EditionStatus = EditionStatus.PUBLISHED
    created_at: str = ""
    updated_at: str = ""

    @property
    def is_visible(self) -> bool:
        return self.status == EditionStatus.PUBLISHED

    @property
    def display_date(self) -> str:
        return format_display_date(self.publication_date)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Edition:
        """Build an edition from a database row mapping."""
        raw_status = str(row.get("status") or EditionStatus.DRAFT.value).strip().lower()
        try:
            status = EditionStatus(raw_status)
        except ValueError:
            status = EditionStatus.DRAFT
        pub_date = parse_iso_date(row.get("publication_date"))
        if pub_date is None:
            raise ValueError(f"Edition {row.get('edition_id')} has an invalid publication_date")
        return cls(
            id=int(row["edition_id"]),
            title=str(row.get("title") or "").strip(),
            publication_date=pub_date,
            pdf_path=str(row.get("pdf_path") or ""),
            og_image_path=str(row.get("og_image_path") or ""),
            list_thumb_path=str(row.get("list_thumb_path") or ""),
            description=str(row.get("description") or ""),
            status=status,
            created_at=str(row.get("created_at") or ""),
            updated_at=str(row.get("updated_at") or ""),
        )


@dataclass(frozen=True)
class Identity:
    """Display-only login state handed to the header chrome."""

    logged_in: bool = False
    username: str | None = None
    role: str | None = None
    user_id: int | None = None

    @classmethod
    def from_session(cls, session: Mapping[str, Any] | None) -> Identity:
        """Read the identity recorded by the login flow, anonymous when absent."""
        data = session or {}
        user_id = data.get("user_id")
        if user_id in (None, ""):
            return cls()
        try:
            uid = int(user_id)
        except (TypeError, ValueError):
            uid = None
        return cls(
            logged_in=True,
            username=str(data.get("username") or "") or None,
            role=str(data.get("user_role") or "Viewer"),
            user_id=uid,
        )
