import sqlite3
from datetime import date

import pytest

from epaper_core.editions.resolution import (
    ERROR_NOTICE,
    ERROR_TITLE,
    NO_EDITIONS_NOTICE,
    NO_EDITIONS_TITLE,
    disambiguation_url,
    resolve_edition,
)
from epaper_core.models import EditionStatus
from epaper_core.services.storage.edition_store import EditionStoreError

TODAY = date(2024, 5, 10)


def test_edition_id_wins_over_date(edition_store):
    eid = edition_store.create_edition("Morning Edition", date(2024, 5, 1))
    edition_store.create_edition("Other", date(2024, 5, 3))

    result = resolve_edition(edition_store, TODAY, date_param="2024-05-03", edition_id_param=str(eid))

    assert result.edition.id == eid
    assert result.display_title == "Morning Edition (01-05-2024)"
    assert result.raw_title == "Morning Edition"
    assert result.selected_date == date(2024, 5, 1)
    assert result.notification == ""
    assert result.requested_edition_id == str(eid)


def test_unpublished_id_falls_through_with_notice(edition_store):
    draft = edition_store.create_edition("Draft", date(2024, 5, 9), status=EditionStatus.DRAFT)
    todays = edition_store.create_edition("Today", TODAY)

    result = resolve_edition(edition_store, TODAY, edition_id_param=draft)

    assert result.edition.id == todays
    assert result.notification.startswith(f"Edition with ID {draft} not found or not published.")


def test_initial_load_prefers_today(edition_store):
    edition_store.create_edition("Yesterday", date(2024, 5, 9))
    todays = edition_store.create_edition("Today", TODAY)

    result = resolve_edition(edition_store, TODAY)

    assert result.edition.id == todays
    assert result.display_title == "Today (10-05-2024)"
    assert result.notification == ""


def test_initial_load_falls_back_to_latest(edition_store):
    edition_store.create_edition("Older", date(2024, 5, 1))
    latest = edition_store.create_edition("Latest", date(2024, 5, 8))

    result = resolve_edition(edition_store, TODAY)

    assert result.edition.id == latest
    assert result.notification == (
        "No edition found for today (10-05-2024). Displaying the latest available edition (08-05-2024)."
    )


def test_empty_database_yields_empty_state(edition_store):
    result = resolve_edition(edition_store, TODAY)

    assert result.edition is None
    assert result.display_title == NO_EDITIONS_TITLE
    assert result.notification == NO_EDITIONS_NOTICE
    assert result.selected_date == TODAY
    assert not result.is_redirect


def test_single_edition_for_requested_date(edition_store):
    eid = edition_store.create_edition("Weekend", date(2024, 5, 4))

    result = resolve_edition(edition_store, TODAY, date_param="2024-05-04")

    assert result.edition.id == eid
    assert result.display_title == "Weekend (for 04-05-2024)"


def test_several_editions_on_a_date_redirect(edition_store):
    edition_store.create_edition("City", date(2024, 5, 4))
    edition_store.create_edition("Regional", date(2024, 5, 4))

    result = resolve_edition(edition_store, TODAY, date_param="2024-05-04")

    assert result.is_redirect
    assert result.redirect_to == "/editions/date-editions.php?date=2024-05-04"
    assert result.edition is None


def test_redirect_honours_custom_listing_path(edition_store):
    edition_store.create_edition("A", date(2024, 5, 4))
    edition_store.create_edition("B", date(2024, 5, 4))

    result = resolve_edition(edition_store, TODAY, "2024-05-04", disambiguation_path="/editions/by-date")

    assert result.redirect_to == "/editions/by-date?date=2024-05-04"


def test_missing_date_falls_back_to_latest_naming_both_dates(edition_store):
    latest = edition_store.create_edition("Latest", date(2024, 5, 8))

    result = resolve_edition(edition_store, TODAY, date_param="2024-04-01")

    assert result.edition.id == latest
    assert "2024-04-01" in result.notification
    assert "08-05-2024" in result.notification


def test_invalid_date_uses_initial_load_with_notice(edition_store):
    todays = edition_store.create_edition("Today", TODAY)

    result = resolve_edition(edition_store, TODAY, date_param="2024-13-45")

    assert result.edition.id == todays
    assert result.notification == "Invalid date 2024-13-45. "


@pytest.mark.parametrize("raw", ["2024-05-01junk", "2024-5-1", "2024-05-01T00:00"])
def test_date_must_be_exactly_iso(edition_store, raw):
    todays = edition_store.create_edition("Today", TODAY)
    edition_store.create_edition("First of May", date(2024, 5, 1))

    result = resolve_edition(edition_store, TODAY, date_param=raw)

    assert result.edition.id == todays
    assert result.notification == f"Invalid date {raw}. "


def test_unknown_id_and_empty_database_concatenate_notices(edition_store):
    result = resolve_edition(edition_store, TODAY, edition_id_param="999")

    assert result.notification == "Edition with ID 999 not found or not published. " + NO_EDITIONS_NOTICE


class _BrokenStore:
    def __getattr__(self, name):
        def _raise(*_args, **_kwargs):
            raise EditionStoreError("database is locked")

        return _raise


class _SqliteBrokenStore:
    def find_published_edition_for_today(self, today):
        raise sqlite3.OperationalError("no such table: editions")


def test_datastore_failure_becomes_generic_error_state():
    for store in (_BrokenStore(), _SqliteBrokenStore()):
        result = resolve_edition(store, TODAY)
        assert result.error
        assert result.edition is None
        assert result.display_title == ERROR_TITLE
        assert result.notification == ERROR_NOTICE
        assert "locked" not in result.notification
        assert result.selected_date == TODAY


def test_disambiguation_url_encodes_the_date():
    assert disambiguation_url(date(2024, 1, 2)) == "/editions/date-editions.php?date=2024-01-02"
