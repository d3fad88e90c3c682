"""Durable snapshot of the trip progress mapping."""

import json
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import structlog

from ..errors import PersistenceError
from ..state.models import TripProgress

DEFAULT_STORAGE_KEY = "anvago-trip-progress"


class ProgressSnapshotStore:
    """
    SQLite-backed snapshot of every tracked trip.

    The whole ``trip_id -> TripProgress`` mapping is written as one JSON
    document under a fixed storage key, in the same layout the browser client
    persists: ``{"state": {"trips": {...}}, "version": 0}``.
    """

    def __init__(
        self,
        db_path: str = "trip_progress.db",
        storage_key: str = DEFAULT_STORAGE_KEY,
        version: int = 0
    ):
        self.db_path = Path(db_path)
        self.storage_key = storage_key
        self.version = version
        self.logger = structlog.get_logger("trip.persistence")
        self._lock = threading.Lock()
        # Raw records the last load could not parse, written back untouched
        self.unreadable: dict[str, Any] = {}

        self._init_database()

    def _init_database(self) -> None:
        """Initialize database schema."""
        try:
            if self.db_path.parent and not self.db_path.parent.exists():
                self.db_path.parent.mkdir(parents=True, exist_ok=True)

            with self._get_connection() as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS snapshots (
                        storage_key TEXT PRIMARY KEY,
                        version INTEGER NOT NULL DEFAULT 0,
                        payload TEXT NOT NULL,
                        saved_at TEXT NOT NULL
                    )
                """)
                conn.commit()
        except (OSError, sqlite3.Error) as e:
            raise PersistenceError(
                f"Cannot initialize snapshot database: {e}",
                operation="init",
                target=str(self.db_path)
            ) from e

    @contextmanager
    def _get_connection(self):
        """Get database connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path, timeout=30.0)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            self.logger.error("Database error", db_path=str(self.db_path), error=str(e))
            raise
        finally:
            if conn:
                conn.close()

    def save(self, trips: dict[str, TripProgress]) -> bool:
        """
        Replace the stored snapshot with the given mapping.

        Records kept back as unreadable by ``load`` are written again unless
        the mapping now holds a record under the same trip id.

        Returns:
            True if written, False if the write failed (the failure is logged)
        """
        raw_trips = {
            trip_id: raw for trip_id, raw in self.unreadable.items() if trip_id not in trips
        }
        raw_trips.update((trip_id, p.to_dict()) for trip_id, p in trips.items())
        document = {
            "state": {"trips": raw_trips},
            "version": self.version,
        }

        with self._lock:
            try:
                with self._get_connection() as conn:
                    conn.execute("""
                        INSERT OR REPLACE INTO snapshots (storage_key, version, payload, saved_at)
                        VALUES (?, ?, ?, ?)
                    """, (
                        self.storage_key,
                        self.version,
                        json.dumps(document, ensure_ascii=False),
                        datetime.now(timezone.utc).isoformat()
                    ))
                    conn.commit()

                self.logger.debug(
                    "Snapshot saved",
                    storage_key=self.storage_key,
                    trip_count=len(trips)
                )
                return True

            except Exception as e:
                self.logger.error(
                    "Failed to save snapshot",
                    storage_key=self.storage_key,
                    trip_count=len(trips),
                    error=str(e)
                )
                return False

    def load(self) -> dict[str, TripProgress]:
        """
        Rehydrate the stored mapping.

        A missing snapshot yields an empty mapping. Individual records that no
        longer parse are left out of the result and logged; their raw form is
        kept in ``unreadable`` so the next ``save`` does not destroy them.
        """
        self.unreadable = {}
        document = self._load_document()
        if not document:
            return {}

        raw_trips = document.get("state", {}).get("trips", {})
        trips: dict[str, TripProgress] = {}
        for trip_id, raw in raw_trips.items():
            try:
                trips[trip_id] = TripProgress.from_dict(raw)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                self.unreadable[trip_id] = raw
                self.logger.error(
                    "Skipping unreadable trip record",
                    storage_key=self.storage_key,
                    trip_id=trip_id,
                    error=str(e)
                )

        self.logger.info(
            "Snapshot loaded",
            storage_key=self.storage_key,
            trip_count=len(trips),
            unreadable_count=len(self.unreadable),
            version=document.get("version")
        )
        return trips

    def _load_document(self) -> Optional[dict[str, Any]]:
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT payload FROM snapshots WHERE storage_key = ?",
                    (self.storage_key,)
                ).fetchone()
        except Exception as e:
            self.logger.error("Failed to read snapshot", storage_key=self.storage_key, error=str(e))
            return None

        if row is None:
            return None

        try:
            document = json.loads(row["payload"])
        except json.JSONDecodeError as e:
            self.logger.error("Corrupt snapshot payload", storage_key=self.storage_key, error=str(e))
            return None

        if not isinstance(document, dict):
            self.logger.error("Unexpected snapshot layout", storage_key=self.storage_key)
            return None
        return document

    def clear(self) -> bool:
        """Delete the stored snapshot, unreadable records included."""
        with self._lock:
            self.unreadable = {}
            try:
                with self._get_connection() as conn:
                    conn.execute("DELETE FROM snapshots WHERE storage_key = ?", (self.storage_key,))
                    conn.commit()
                return True
            except Exception as e:
                self.logger.error("Failed to clear snapshot", storage_key=self.storage_key, error=str(e))
                return False
