"""Request-time edition resolution.

Turns the `date` / `edition_id` query parameters of a viewer request into a
single edition to display, a redirect to the disambiguation listing, or an
empty state. Every branch also produces the notification line shown above the
viewer when a fallback happened.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, replace
from datetime import date
from typing import Any
from urllib.parse import urlencode

from ..logger import get_logger
from ..models import Edition, format_display_date, parse_iso_date
from ..services.storage.edition_store import EditionStore, EditionStoreError

logger = get_logger(__name__)

DEFAULT_DISAMBIGUATION_PATH = "/editions/date-editions.php"

NO_EDITIONS_TITLE = "No Editions Available"
NO_EDITIONS_RAW_TITLE = "No Edition"
NO_EDITIONS_NOTICE = "No editions available in the database."
ERROR_TITLE = "Error loading editions. Please try again later."
ERROR_RAW_TITLE = "Error"
ERROR_NOTICE = "A database error occurred while loading editions. Please try again later."


@dataclass(frozen=True)
class EditionResolution:
    """Outcome of one resolution run.

    Callers must check `redirect_to` first: when it is set nothing else is
    meaningful and the response is a redirect.
    """

    edition: Edition | None
    selected_date: date
    display_title: str
    raw_title: str = ""
    notification: str = ""
    redirect_to: str | None = None
    error: bool = False
    requested_edition_id: str | None = None

    @property
    def is_redirect(self) -> bool:
        return self.redirect_to is not None

    def with_notice(self, text: str) -> EditionResolution:
        """Return a copy with `text` appended to the notification line."""
        if not text:
            return self
        return replace(self, notification=f"{self.notification}{text}")


def error_resolution(today: date) -> EditionResolution:
    """Generic state shown when the datastore cannot be read."""
    return EditionResolution(
        edition=None,
        selected_date=today,
        display_title=ERROR_TITLE,
        raw_title=ERROR_RAW_TITLE,
        notification=ERROR_NOTICE,
        error=True,
    )


def disambiguation_url(requested: date, base_path: str = DEFAULT_DISAMBIGUATION_PATH) -> str:
    """URL of the date listing used when several editions share a date."""
    return f"{base_path}?{urlencode({'date': requested.isoformat()})}"


def _displayed(edition: Edition, notification: str = "", *, for_date: bool = False, requested_id=None):
    label = f"for {edition.display_date}" if for_date else edition.display_date
    return EditionResolution(
        edition=edition,
        selected_date=edition.publication_date,
        display_title=f"{edition.title} ({label})",
        raw_title=edition.title,
        notification=notification,
        requested_edition_id=requested_id,
    )


def _latest_or_empty(store: EditionStore, today: date, notification: str, fallback_notice) -> EditionResolution:
    """Show the globally latest edition, or the empty state when there is none."""
    latest = store.find_latest_published_edition()
    if latest is None:
        logger.debug("No published editions at all")
        return EditionResolution(
            edition=None,
            selected_date=today,
            display_title=NO_EDITIONS_TITLE,
            raw_title=NO_EDITIONS_RAW_TITLE,
            notification=notification + NO_EDITIONS_NOTICE,
        )
    logger.debug("Falling back to latest edition %s (%s)", latest.id, latest.publication_date)
    return _displayed(latest, notification + fallback_notice(latest))


def _resolve_initial_load(store: EditionStore, today: date, notification: str) -> EditionResolution:
    todays = store.find_published_edition_for_today(today)
    if todays is not None:
        logger.debug("Found edition for today: %s", todays.id)
        return _displayed(todays, notification)
    return _latest_or_empty(
        store,
        today,
        notification,
        lambda latest: (
            f"No edition found for today ({format_display_date(today)}). "
            f"Displaying the latest available edition ({latest.display_date})."
        ),
    )


def _resolve_requested_date(
    store: EditionStore, requested: date, today: date, notification: str, disambiguation_path: str
) -> EditionResolution:
    count = store.count_published_editions_by_date(requested)
    logger.debug("Edition count for %s: %d", requested, count)

    def fallback_notice(latest: Edition) -> str:
        return f"No edition found for {requested.isoformat()}. Displaying the latest edition ({latest.display_date})."

    if count > 1:
        target = disambiguation_url(requested, disambiguation_path)
        logger.debug("Multiple editions for %s, redirecting to %s", requested, target)
        return EditionResolution(
            edition=None,
            selected_date=requested,
            display_title="",
            notification=notification,
            redirect_to=target,
        )

    if count == 1:
        # The row may vanish between the count and the fetch; treat it like count == 0.
        single = store.find_published_edition_by_date(requested)
        if single is not None:
            logger.debug("Single edition for %s: %s", requested, single.id)
            return _displayed(single, notification, for_date=True)

    return _latest_or_empty(store, today, notification, fallback_notice)


def resolve_edition(
    store: EditionStore,
    today: date,
    date_param: Any = None,
    edition_id_param: Any = None,
    disambiguation_path: str = DEFAULT_DISAMBIGUATION_PATH,
) -> EditionResolution:
    """Map `(date?, edition_id?)` to the edition to display.

    Priority: explicit published edition id, then the initial-load chain when
    no date was given (today, then latest), then the requested date (one
    match, redirect on several, latest on none). Datastore failures never
    escape: they produce the generic error state and are logged.
    """
    raw_id = str(edition_id_param).strip() if edition_id_param not in (None, "") else None
    raw_date = str(date_param).strip() if date_param not in (None, "") else None
    notification = ""

    try:
        if raw_id is not None:
            found = store.find_published_edition_by_id(raw_id)
            if found is not None:
                logger.debug("Found edition by id %s: %s", raw_id, found.title)
                return _displayed(found, requested_id=raw_id)
            logger.debug("Edition %s not found or not published, falling back", raw_id)
            notification = f"Edition with ID {raw_id} not found or not published. "

        requested = parse_iso_date(raw_date) if raw_date is not None else None
        if raw_date is not None and requested is None:
            logger.debug("Ignoring malformed date parameter %r", raw_date)
            notification += f"Invalid date {raw_date}. "

        if requested is None:
            return _resolve_initial_load(store, today, notification)
        return _resolve_requested_date(store, requested, today, notification, disambiguation_path)

    except (EditionStoreError, sqlite3.Error):
        logger.exception("Database error while resolving edition (date=%r, edition_id=%r)", raw_date, raw_id)
        return error_resolution(today)
