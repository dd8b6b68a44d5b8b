"""Log Store - persistence of activity logs and transcriptions.

Responsible for:
- The backing store contract shared by every backend
- A local SQLite backend with the same tables as the hosted database
- Probing whether the activity tables have been provisioned
- Choosing a backend from settings
"""

import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

from fieldlog.config import Settings, StoreBackend, get_settings
from fieldlog.errors import StoreError
from fieldlog.models import ActivityLog, Transcription, TranscriptionSummary, utc_now
from fieldlog.services.schema_check import SchemaStatus

logger = logging.getLogger(__name__)


ACTIVITY_LOG_COLUMNS = (
    "id",
    "timestamp",
    "location",
    "activity_category",
    "activity_type",
    "equipment",
    "personnel",
    "material",
    "measurement",
    "status",
    "notes",
    "media",
    "reference_id",
    "coordinates",
    "transcription_id",
    "created_at",
    "updated_at",
)

REQUIRED_TABLES = ("activity_logs", "transcriptions")

SQLITE_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS transcriptions (
    id TEXT PRIMARY KEY,
    text TEXT NOT NULL,
    title TEXT NOT NULL DEFAULT '',
    logs_generated INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS activity_logs (
    id TEXT PRIMARY KEY,
    timestamp TEXT NOT NULL,
    location TEXT NOT NULL,
    activity_category TEXT NOT NULL DEFAULT '',
    activity_type TEXT NOT NULL DEFAULT '',
    equipment TEXT NOT NULL DEFAULT '',
    personnel TEXT NOT NULL DEFAULT '',
    material TEXT NOT NULL DEFAULT '',
    measurement TEXT,
    status TEXT NOT NULL DEFAULT 'completed'
        CHECK (status IN ('completed', 'in-progress', 'planned', 'delayed', 'cancelled')),
    notes TEXT,
    media TEXT,
    reference_id TEXT NOT NULL,
    coordinates TEXT,
    transcription_id TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_activity_logs_transcription
ON activity_logs(transcription_id);

CREATE INDEX IF NOT EXISTS idx_activity_logs_timestamp
ON activity_logs(timestamp);

CREATE VIEW IF NOT EXISTS transcription_log_counts AS
SELECT
    t.id,
    t.text,
    t.title,
    t.logs_generated,
    t.created_at,
    COUNT(a.id) AS log_count
FROM transcriptions t
LEFT JOIN activity_logs a ON a.transcription_id = t.id
GROUP BY t.id;
"""


class LogStore(ABC):
    """Backing store contract for activity logs and transcriptions.

    Implementations raise StoreError for any backend failure.
    """

    @abstractmethod
    def probe_schema(self) -> SchemaStatus:
        """Report whether the activity tables exist."""

    @abstractmethod
    def create_schema(self) -> None:
        """Provision the activity tables."""

    @abstractmethod
    def fetch_logs(self) -> list[ActivityLog]:
        """All logs, most recent timestamp first."""

    @abstractmethod
    def get_log(self, log_id: str) -> Optional[ActivityLog]:
        """A single log, or None if it does not exist."""

    @abstractmethod
    def insert_logs(self, logs: list[ActivityLog]) -> None:
        """Insert logs as one all-or-nothing batch."""

    @abstractmethod
    def update_log(self, log: ActivityLog) -> bool:
        """Update a log in place. Returns False if it does not exist."""

    @abstractmethod
    def delete_log(self, log_id: str) -> bool:
        """Delete a log. Returns False if it did not exist."""

    @abstractmethod
    def delete_logs_for_transcription(self, transcription_id: str) -> int:
        """Delete every log referencing a transcription. Returns the count."""

    @abstractmethod
    def insert_transcription(self, transcription: Transcription) -> None:
        """Insert a transcription record."""

    @abstractmethod
    def get_transcription(self, transcription_id: str) -> Optional[Transcription]:
        """A single transcription, or None if it does not exist."""

    @abstractmethod
    def fetch_transcriptions(self) -> list[TranscriptionSummary]:
        """History listing with live log counts, newest first."""

    @abstractmethod
    def delete_transcription(self, transcription_id: str) -> bool:
        """Delete a transcription record only. Returns False if it did not exist."""

    def fetch_logs_for_transcription(self, transcription_id: str) -> list[ActivityLog]:
        """Logs derived from one transcription, most recent first."""
        return [
            log for log in self.fetch_logs()
            if log.transcription_id == transcription_id
        ]


class SQLiteLogStore(LogStore):
    """Local SQLite backend mirroring the hosted tables."""

    def __init__(self, db_path: str | Path):
        """Initialize the store.

        The schema is not created here; call ``create_schema`` (or
        ``fieldlog setup``) to provision it.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = Path(db_path)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection and run one transaction on it."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise StoreError(f"Could not open database {self.db_path}: {e}") from e

        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("SQLite operation failed: %s", e)
            raise StoreError(f"Database error: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def probe_schema(self) -> SchemaStatus:
        if not self.db_path.exists():
            return SchemaStatus.NEEDS_SETUP

        placeholders = ", ".join("?" for _ in REQUIRED_TABLES)
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    f"SELECT name FROM sqlite_master WHERE type = 'table' AND name IN ({placeholders})",
                    REQUIRED_TABLES,
                ).fetchall()
        except StoreError as e:
            logger.warning("Schema probe failed: %s", e)
            return SchemaStatus.UNKNOWN

        found = {row["name"] for row in rows}
        if found == set(REQUIRED_TABLES):
            return SchemaStatus.READY
        return SchemaStatus.NEEDS_SETUP

    def create_schema(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(SQLITE_SCHEMA_SQL)
        logger.info("Created activity tables in %s", self.db_path)

    def _log_to_params(self, log: ActivityLog, now: str) -> dict[str, Any]:
        row = log.to_row()
        row["coordinates"] = json.dumps(row["coordinates"]) if row["coordinates"] else None
        row["created_at"] = log.created_at.isoformat() if log.created_at else now
        row["updated_at"] = now
        return row

    def fetch_logs(self) -> list[ActivityLog]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM activity_logs ORDER BY timestamp DESC"
            ).fetchall()
        return [ActivityLog.from_row(dict(row)) for row in rows]

    def get_log(self, log_id: str) -> Optional[ActivityLog]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM activity_logs WHERE id = ?", (log_id,)
            ).fetchone()
        return ActivityLog.from_row(dict(row)) if row else None

    def fetch_logs_for_transcription(self, transcription_id: str) -> list[ActivityLog]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM activity_logs WHERE transcription_id = ? ORDER BY timestamp DESC",
                (transcription_id,),
            ).fetchall()
        return [ActivityLog.from_row(dict(row)) for row in rows]

    def insert_logs(self, logs: list[ActivityLog]) -> None:
        if not logs:
            return
        now = utc_now().isoformat()
        columns = ", ".join(ACTIVITY_LOG_COLUMNS)
        values = ", ".join(f":{c}" for c in ACTIVITY_LOG_COLUMNS)
        with self._connect() as conn:
            conn.executemany(
                f"INSERT INTO activity_logs ({columns}) VALUES ({values})",
                [self._log_to_params(log, now) for log in logs],
            )
        logger.info("Inserted %d activity log(s)", len(logs))

    def update_log(self, log: ActivityLog) -> bool:
        params = self._log_to_params(log, utc_now().isoformat())
        assignments = ", ".join(
            f"{c} = :{c}" for c in ACTIVITY_LOG_COLUMNS if c not in ("id", "created_at")
        )
        with self._connect() as conn:
            cursor = conn.execute(
                f"UPDATE activity_logs SET {assignments} WHERE id = :id", params
            )
            updated = cursor.rowcount
        return updated > 0

    def delete_log(self, log_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM activity_logs WHERE id = ?", (log_id,))
            deleted = cursor.rowcount
        return deleted > 0

    def delete_logs_for_transcription(self, transcription_id: str) -> int:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM activity_logs WHERE transcription_id = ?",
                (transcription_id,),
            )
            deleted = cursor.rowcount
        return deleted

    def insert_transcription(self, transcription: Transcription) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO transcriptions (id, text, title, logs_generated, created_at)
                VALUES (:id, :text, :title, :logs_generated, :created_at)
                """,
                transcription.to_row(),
            )

    def get_transcription(self, transcription_id: str) -> Optional[Transcription]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM transcriptions WHERE id = ?", (transcription_id,)
            ).fetchone()
        return Transcription.model_validate(dict(row)) if row else None

    def fetch_transcriptions(self) -> list[TranscriptionSummary]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM transcription_log_counts ORDER BY created_at DESC"
            ).fetchall()
        return [TranscriptionSummary.model_validate(dict(row)) for row in rows]

    def delete_transcription(self, transcription_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM transcriptions WHERE id = ?", (transcription_id,)
            )
            updated = cursor.rowcount
        return updated > 0


def create_log_store(settings: Optional[Settings] = None) -> LogStore:
    """Create the backing store selected in settings."""
    settings = settings or get_settings()

    match settings.store_backend:
        case StoreBackend.SUPABASE:
            from fieldlog.services.supabase_store import SupabaseLogStore

            return SupabaseLogStore.from_settings(settings)
        case _:
            return SQLiteLogStore(settings.get_sqlite_path())
