"""Data access layer for persisted decision records."""

import sqlite3
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from crossvote.database.db import get_db
from crossvote.exceptions import LedgerStoreError
from crossvote.trading.ledger import DecisionStore
from crossvote.trading.models import DecisionRecord


class DecisionRepository(DecisionStore):
    """SQLite-backed store mirroring the decision ledger."""

    def __init__(self, db=None):
        """Initialize repository with database connection."""
        self.db = db or get_db()

    def append(self, record: DecisionRecord) -> None:
        """Insert a new decision record."""
        try:
            cursor = self.db.conn.cursor()
            cursor.execute(
                """
                INSERT INTO decision_records (
                    id, action, confidence, consensus, overall_risk,
                    decision_timestamp, inserted_at, payload
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    record.action,
                    record.confidence,
                    record.consensus,
                    record.overall_risk,
                    record.timestamp.isoformat(),
                    record.inserted_at.isoformat(),
                    record.model_dump_json(),
                ),
            )
            self.db.conn.commit()
        except sqlite3.Error as e:
            raise LedgerStoreError(f"Failed to insert decision {record.id}: {e}")

    def update(self, record: DecisionRecord) -> None:
        """Replace the stored payload of an existing record."""
        try:
            cursor = self.db.conn.cursor()
            cursor.execute(
                "UPDATE decision_records SET payload = ? WHERE id = ?",
                (record.model_dump_json(), record.id),
            )
            self.db.conn.commit()
        except sqlite3.Error as e:
            raise LedgerStoreError(f"Failed to update decision {record.id}: {e}")

        if cursor.rowcount == 0:
            raise LedgerStoreError(f"Decision {record.id} is not stored")

    def get(self, record_id: str) -> Optional[DecisionRecord]:
        """Get a decision record by ID."""
        try:
            cursor = self.db.conn.cursor()
            cursor.execute("SELECT payload FROM decision_records WHERE id = ?", (record_id,))
            row = cursor.fetchone()
        except sqlite3.Error as e:
            raise LedgerStoreError(f"Failed to read decision {record_id}: {e}")

        if row is None:
            return None

        return self._to_record(row)

    def load_recent(self, limit: int) -> List[DecisionRecord]:
        """Newest `limit` records, oldest first."""
        try:
            cursor = self.db.conn.cursor()
            cursor.execute(
                """
                SELECT payload FROM decision_records
                ORDER BY seq DESC
                LIMIT ?
                """,
                (limit,),
            )
            rows = cursor.fetchall()
        except sqlite3.Error as e:
            raise LedgerStoreError(f"Failed to load decisions: {e}")

        return [self._to_record(row) for row in reversed(rows)]

    def prune(self, keep: int) -> None:
        """Delete everything but the newest `keep` records."""
        try:
            cursor = self.db.conn.cursor()
            cursor.execute(
                """
                DELETE FROM decision_records
                WHERE seq NOT IN (
                    SELECT seq FROM decision_records
                    ORDER BY seq DESC
                    LIMIT ?
                )
                """,
                (keep,),
            )
            self.db.conn.commit()
        except sqlite3.Error as e:
            raise LedgerStoreError(f"Failed to prune decisions: {e}")

    def count_by_action(self) -> Dict[str, int]:
        """Number of stored records per action."""
        try:
            cursor = self.db.conn.cursor()
            cursor.execute(
                "SELECT action, COUNT(*) AS total FROM decision_records GROUP BY action"
            )
            rows = cursor.fetchall()
        except sqlite3.Error as e:
            raise LedgerStoreError(f"Failed to count decisions: {e}")
        return {row["action"]: row["total"] for row in rows}

    @staticmethod
    def _to_record(row: Any) -> DecisionRecord:
        try:
            return DecisionRecord.model_validate_json(row["payload"])
        except ValidationError as e:
            raise LedgerStoreError(f"Corrupt decision payload: {e}")
