import sqlite3
from datetime import date

import pytest

from epaper_core.models import EditionStatus
from epaper_core.services.storage.edition_store import EditionStore, EditionStoreError


def test_store_uses_configured_data_dir(edition_store, tmp_path):
    assert edition_store.db_path == (tmp_path / "data" / "epaper.db")
    assert edition_store.db_path.exists()


def test_only_published_editions_are_visible(edition_store):
    draft = edition_store.create_edition("Draft", date(2024, 5, 1), status="draft")
    published = edition_store.create_edition("Live", date(2024, 5, 1), pdf_path="/../uploads/a.pdf")

    assert edition_store.find_published_edition_by_id(draft) is None
    found = edition_store.find_published_edition_by_id(published)
    assert found.title == "Live"
    assert found.pdf_path == "/../uploads/a.pdf"
    assert found.status == EditionStatus.PUBLISHED
    assert edition_store.count_published_editions_by_date(date(2024, 5, 1)) == 1


def test_status_comparison_is_case_insensitive(edition_store):
    eid = edition_store.create_edition("Shouty", date(2024, 5, 2), status="PUBLISHED")
    assert edition_store.find_published_edition_by_id(eid) is not None


def test_non_numeric_id_is_not_found(edition_store):
    edition_store.create_edition("Any", date(2024, 5, 2))
    assert edition_store.find_published_edition_by_id("abc") is None
    assert edition_store.find_published_edition_by_id("1 OR 1=1") is None


def test_latest_is_by_publication_date(edition_store):
    edition_store.create_edition("Newer", date(2024, 5, 9))
    edition_store.create_edition("Older but created later", date(2024, 5, 1))

    assert edition_store.find_latest_published_edition().title == "Newer"


def test_list_by_date_pages_and_orders_by_title(edition_store):
    for title in ("Charlie", "alpha", "Bravo"):
        edition_store.create_edition(title, date(2024, 5, 4))
    edition_store.create_edition("Elsewhere", date(2024, 5, 5))

    first = edition_store.list_published_editions_by_date(date(2024, 5, 4), limit=2, offset=0)
    second = edition_store.list_published_editions_by_date(date(2024, 5, 4), limit=2, offset=2)

    assert [e.title for e in first] == ["alpha", "Bravo"]
    assert [e.title for e in second] == ["Charlie"]


def test_update_and_delete(edition_store):
    eid = edition_store.create_edition("Before", date(2024, 5, 4))

    assert edition_store.update_edition(eid, title="After", status=EditionStatus.DRAFT)
    assert edition_store.find_published_edition_by_id(eid) is None
    assert edition_store.update_edition(eid, status="published")
    assert edition_store.find_published_edition_by_id(eid).title == "After"
    assert not edition_store.update_edition(eid, unknown="x")

    assert edition_store.delete_edition(eid)
    assert not edition_store.delete_edition(eid)


def test_malformed_rows_are_skipped(edition_store):
    edition_store.create_edition("Good", date(2024, 5, 4))
    conn = sqlite3.connect(edition_store.db_path)
    conn.execute(
        "INSERT INTO editions (title, publication_date, status) VALUES (?, ?, ?)", ("Bad", "not-a-date", "published")
    )
    conn.commit()
    conn.close()

    assert [e.title for e in edition_store.list_published_editions()] == ["Good"]


def test_connection_errors_are_wrapped(tmp_path):
    store = EditionStore(str(tmp_path / "store.db"))
    store.db_path = tmp_path / "missing-dir" / "nested" / "store.db"

    with pytest.raises(EditionStoreError):
        store.find_latest_published_edition()
