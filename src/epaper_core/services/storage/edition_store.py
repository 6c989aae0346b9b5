import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any

from ...logger import get_logger
from ...models import Edition, EditionStatus

logger = get_logger(__name__)

_EDITION_COLUMNS = (
    "edition_id, title, publication_date, pdf_path, og_image_path, list_thumb_path, "
    "description, status, created_at, updated_at"
)
_PUBLISHED = "LOWER(status) = 'published'"
_LATEST_ORDER = "ORDER BY publication_date DESC, created_at DESC, edition_id DESC"


class EditionStoreError(RuntimeError):
    """Raised when the edition database cannot be queried."""


class EditionStore:
    """Reads published editions from SQLite and offers the writes the CLI and tests need."""

    def __init__(self, db_path: str = "data/epaper.db"):
        """Initialize the store on the given database path.

        The default path is replaced by the configured data directory so the
        database sits next to the other runtime data.
        """
        self.db_path = Path(db_path)
        if db_path == "data/epaper.db":
            from ...config_manager import get_config_manager

            self.db_path = get_config_manager().get_database_path()

        self._ensure_db_dir()
        self._init_db()

    def _ensure_db_dir(self):
        if not self.db_path.parent.exists():
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_conn(self):
        return sqlite3.connect(self.db_path)

    @contextmanager
    def _cursor(self) -> Iterator[sqlite3.Cursor]:
        try:
            conn = self._get_conn()
        except sqlite3.Error as exc:
            raise EditionStoreError(f"Cannot open edition database {self.db_path}") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn.cursor()
            conn.commit()
        except sqlite3.Error as exc:
            raise EditionStoreError(str(exc)) from exc
        finally:
            conn.close()

    def _init_db(self):
        with self._cursor() as cursor:
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS editions (
                    edition_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    publication_date TEXT NOT NULL,
                    description TEXT,
                    pdf_path TEXT,
                    og_image_path TEXT,
                    list_thumb_path TEXT,
                    page_count INTEGER DEFAULT 0,
                    status TEXT DEFAULT 'draft',
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_editions_date_status ON editions (publication_date, status)"
            )

    @staticmethod
    def _to_edition(row: sqlite3.Row | None) -> Edition | None:
        if row is None:
            return None
        try:
            return Edition.from_row(dict(row))
        except (KeyError, ValueError) as exc:
            logger.warning("Skipping malformed edition row: %s", exc)
            return None

    def _fetch_one(self, sql: str, params: tuple[Any, ...] = ()) -> Edition | None:
        with self._cursor() as cursor:
            cursor.execute(sql, params)
            return self._to_edition(cursor.fetchone())

    def _fetch_all(self, sql: str, params: tuple[Any, ...] = ()) -> list[Edition]:
        with self._cursor() as cursor:
            cursor.execute(sql, params)
            rows = cursor.fetchall()
        return [e for e in (self._to_edition(r) for r in rows) if e is not None]

    # --- Read contract used by the resolution engine ---

    def find_published_edition_by_id(self, edition_id: Any) -> Edition | None:
        """Return the published edition with this id, None when absent or not published."""
        try:
            key = int(str(edition_id).strip())
        except (TypeError, ValueError):
            return None
        return self._fetch_one(
            f"SELECT {_EDITION_COLUMNS} FROM editions WHERE edition_id = ? AND {_PUBLISHED} LIMIT 1",
            (key,),
        )

    def find_published_edition_by_date(self, publication_date: date) -> Edition | None:
        """Return one published edition for the date (most recently created first)."""
        return self._fetch_one(
            f"SELECT {_EDITION_COLUMNS} FROM editions WHERE publication_date = ? AND {_PUBLISHED} "
            "ORDER BY created_at DESC, edition_id DESC LIMIT 1",
            (publication_date.isoformat(),),
        )

    def find_published_edition_for_today(self, today: date) -> Edition | None:
        """Return the edition published for `today` in the site timezone."""
        return self.find_published_edition_by_date(today)

    def count_published_editions_by_date(self, publication_date: date) -> int:
        """Count published editions sharing a publication date."""
        with self._cursor() as cursor:
            cursor.execute(
                f"SELECT COUNT(*) FROM editions WHERE publication_date = ? AND {_PUBLISHED}",
                (publication_date.isoformat(),),
            )
            row = cursor.fetchone()
        return int(row[0] or 0) if row else 0

    def find_latest_published_edition(self) -> Edition | None:
        """Return the globally latest published edition."""
        return self._fetch_one(f"SELECT {_EDITION_COLUMNS} FROM editions WHERE {_PUBLISHED} {_LATEST_ORDER} LIMIT 1")

    # --- Listings ---

    def list_published_editions_by_date(
        self, publication_date: date, limit: int = 12, offset: int = 0
    ) -> list[Edition]:
        """Return a page of published editions for one date, ordered by title."""
        return self._fetch_all(
            f"SELECT {_EDITION_COLUMNS} FROM editions WHERE publication_date = ? AND {_PUBLISHED} "
            "ORDER BY title COLLATE NOCASE ASC, edition_id ASC LIMIT ? OFFSET ?",
            (publication_date.isoformat(), max(1, int(limit)), max(0, int(offset))),
        )

    def list_published_editions(self) -> list[Edition]:
        """Return every published edition, newest first."""
        return self._fetch_all(
            f"SELECT {_EDITION_COLUMNS} FROM editions WHERE {_PUBLISHED} ORDER BY publication_date DESC, edition_id DESC"
        )

    # --- Writes (CLI and fixtures; the admin workflow lives elsewhere) ---

    def create_edition(
        self,
        title: str,
        publication_date: date | str,
        pdf_path: str = "",
        status: EditionStatus | str = EditionStatus.PUBLISHED,
        **kwargs: Any,
    ) -> int:
        """Insert an edition row and return its id."""
        valid_keys = ("og_image_path", "list_thumb_path", "description", "page_count", "created_at", "updated_at")
        extra = {k: v for k, v in kwargs.items() if k in valid_keys and v is not None}
        pub = publication_date.isoformat() if isinstance(publication_date, date) else str(publication_date)
        status_value = status.value if isinstance(status, EditionStatus) else str(status)

        columns = ["title", "publication_date", "pdf_path", "status", *extra.keys()]
        values = [title, pub, pdf_path, status_value, *extra.values()]
        placeholders = ", ".join("?" for _ in columns)
        with self._cursor() as cursor:
            cursor.execute(f"INSERT INTO editions ({', '.join(columns)}) VALUES ({placeholders})", values)
            edition_id = int(cursor.lastrowid or 0)
        logger.info("Edition %s stored: %s (%s, %s)", edition_id, title, pub, status_value)
        return edition_id

    def update_edition(self, edition_id: int, **kwargs: Any) -> bool:
        """Update selected columns of an edition row."""
        valid_keys = (
            "title",
            "publication_date",
            "pdf_path",
            "og_image_path",
            "list_thumb_path",
            "description",
            "page_count",
            "status",
        )
        updates = {k: v for k, v in kwargs.items() if k in valid_keys}
        if not updates:
            return False
        if isinstance(updates.get("status"), EditionStatus):
            updates["status"] = updates["status"].value
        if isinstance(updates.get("publication_date"), date):
            updates["publication_date"] = updates["publication_date"].isoformat()

        assignments = ", ".join(f"{k} = ?" for k in updates)
        with self._cursor() as cursor:
            cursor.execute(
                f"UPDATE editions SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE edition_id = ?",
                [*updates.values(), int(edition_id)],
            )
            return cursor.rowcount > 0

    def delete_edition(self, edition_id: int) -> bool:
        """Delete an edition row. Files on disk are left to the admin workflow."""
        with self._cursor() as cursor:
            cursor.execute("DELETE FROM editions WHERE edition_id = ?", (int(edition_id),))
            return cursor.rowcount > 0
