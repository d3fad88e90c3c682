"""Durable outbox of remote sync intents."""

import json
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import structlog

from ..errors import PersistenceError
from ..sync.intents import SyncIntent, SyncKind

PENDING = "pending"
DELIVERED = "delivered"
DEAD_LETTER = "dead_letter"


@dataclass
class QueuedIntent:
    """Sync intent with its outbox bookkeeping."""
    id: int
    intent: SyncIntent
    status: str
    attempts: int
    created_at: str
    last_error: Optional[str] = None
    last_attempt_at: Optional[str] = None


class SyncOutbox:
    """SQLite-based queue of sync intents, delivered in insertion order."""

    def __init__(self, db_path: str = "trip_sync.db"):
        self.db_path = Path(db_path)
        self.logger = structlog.get_logger("trip.outbox")
        self._lock = threading.Lock()

        self._init_database()

    def _init_database(self) -> None:
        """Initialize database schema."""
        try:
            if self.db_path.parent and not self.db_path.parent.exists():
                self.db_path.parent.mkdir(parents=True, exist_ok=True)

            with self._get_connection() as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS sync_intents (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        intent_key TEXT NOT NULL UNIQUE,
                        trip_id TEXT NOT NULL,
                        kind TEXT NOT NULL,
                        payload TEXT NOT NULL,
                        status TEXT NOT NULL DEFAULT 'pending',
                        attempts INTEGER NOT NULL DEFAULT 0,
                        last_error TEXT,
                        created_at TEXT NOT NULL,
                        last_attempt_at TEXT
                    )
                """)

                conn.execute("""
                    CREATE INDEX IF NOT EXISTS idx_sync_intents_status ON sync_intents(status)
                """)

                conn.execute("""
                    CREATE INDEX IF NOT EXISTS idx_sync_intents_trip_id ON sync_intents(trip_id)
                """)

                conn.commit()
        except (OSError, sqlite3.Error) as e:
            raise PersistenceError(
                f"Cannot initialize sync outbox: {e}",
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

    def enqueue(self, intent: SyncIntent) -> Optional[int]:
        """
        Queue an intent for delivery.

        Returns:
            Row ID if queued, None if the intent key was already queued or the
            write failed
        """
        with self._lock:
            try:
                with self._get_connection() as conn:
                    cursor = conn.execute("""
                        INSERT OR IGNORE INTO sync_intents (
                            intent_key, trip_id, kind, payload, created_at
                        ) VALUES (?, ?, ?, ?, ?)
                    """, (
                        intent.intent_key,
                        intent.trip_id,
                        intent.kind.value,
                        json.dumps(intent.payload, ensure_ascii=False),
                        datetime.now(timezone.utc).isoformat()
                    ))
                    conn.commit()

                    if cursor.rowcount == 0:
                        self.logger.debug(
                            "Duplicate sync intent ignored",
                            intent_key=intent.intent_key
                        )
                        return None

                    self.logger.info(
                        "Sync intent queued",
                        trip_id=intent.trip_id,
                        sync_kind=intent.kind.value,
                        intent_id=cursor.lastrowid
                    )
                    return cursor.lastrowid

            except Exception as e:
                self.logger.error(
                    "Failed to queue sync intent",
                    trip_id=intent.trip_id,
                    sync_kind=intent.kind.value,
                    error=str(e)
                )
                return None

    def pending(self, limit: int = 100) -> list[QueuedIntent]:
        """Pending intents, oldest first."""
        try:
            with self._get_connection() as conn:
                rows = conn.execute("""
                    SELECT * FROM sync_intents WHERE status = ?
                    ORDER BY id LIMIT ?
                """, (PENDING, limit)).fetchall()

                return [self._row_to_queued_intent(row) for row in rows]

        except Exception as e:
            self.logger.error("Failed to read pending sync intents", error=str(e))
            return []

    def get(self, intent_id: int) -> Optional[QueuedIntent]:
        """Get a queued intent by ID."""
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT * FROM sync_intents WHERE id = ?", (intent_id,)
                ).fetchone()
                return self._row_to_queued_intent(row) if row else None

        except Exception as e:
            self.logger.error("Failed to get sync intent", intent_id=intent_id, error=str(e))
            return None

    def intents_for_trip(self, trip_id: str) -> list[QueuedIntent]:
        """Every intent recorded for a trip, in queue order."""
        try:
            with self._get_connection() as conn:
                rows = conn.execute("""
                    SELECT * FROM sync_intents WHERE trip_id = ? ORDER BY id
                """, (trip_id,)).fetchall()

                return [self._row_to_queued_intent(row) for row in rows]

        except Exception as e:
            self.logger.error("Failed to get sync intents for trip", trip_id=trip_id, error=str(e))
            return []

    def mark_delivered(self, intent_id: int) -> bool:
        """Record a successful delivery."""
        return self._record_attempt(intent_id, DELIVERED, None)

    def mark_failed(self, intent_id: int, error: str, dead_letter: bool = False) -> bool:
        """Record a failed attempt; dead-lettered intents are never retried."""
        return self._record_attempt(intent_id, DEAD_LETTER if dead_letter else PENDING, error)

    def _record_attempt(self, intent_id: int, status: str, error: Optional[str]) -> bool:
        with self._lock:
            try:
                with self._get_connection() as conn:
                    conn.execute("""
                        UPDATE sync_intents SET
                            attempts = attempts + 1,
                            status = ?,
                            last_error = ?,
                            last_attempt_at = ?
                        WHERE id = ?
                    """, (status, error, datetime.now(timezone.utc).isoformat(), intent_id))
                    conn.commit()
                    return True

            except Exception as e:
                self.logger.error(
                    "Failed to update sync intent",
                    intent_id=intent_id,
                    status=status,
                    error=str(e)
                )
                return False

    def purge_delivered(self) -> int:
        """Remove delivered intents."""
        with self._lock:
            try:
                with self._get_connection() as conn:
                    cursor = conn.execute(
                        "DELETE FROM sync_intents WHERE status = ?", (DELIVERED,)
                    )
                    conn.commit()
                    deleted_count = cursor.rowcount

                self.logger.info("Purged delivered sync intents", deleted_count=deleted_count)
                return deleted_count

            except Exception as e:
                self.logger.error("Failed to purge delivered sync intents", error=str(e))
                return 0

    def get_stats(self) -> dict[str, Any]:
        """Intent counts by status."""
        try:
            with self._get_connection() as conn:
                total_count = conn.execute("SELECT COUNT(*) FROM sync_intents").fetchone()[0]

                status_counts = {}
                for row in conn.execute("""
                    SELECT status, COUNT(*) as count FROM sync_intents GROUP BY status
                """):
                    status_counts[row[0]] = row[1]

                return {
                    "total_intents": total_count,
                    "intents_by_status": status_counts,
                }

        except Exception as e:
            self.logger.error("Failed to get outbox stats", error=str(e))
            return {}

    def _row_to_queued_intent(self, row: sqlite3.Row) -> QueuedIntent:
        """Convert database row to QueuedIntent object."""
        return QueuedIntent(
            id=row["id"],
            intent=SyncIntent(
                trip_id=row["trip_id"],
                kind=SyncKind(row["kind"]),
                intent_key=row["intent_key"],
                payload=json.loads(row["payload"]),
            ),
            status=row["status"],
            attempts=row["attempts"],
            created_at=row["created_at"],
            last_error=row["last_error"],
            last_attempt_at=row["last_attempt_at"],
        )
