"""SQLite ledger store for SplitLedger.

Events and transfers are append-only. The only in-place update is an
event's soft-delete flag. Every mutation bumps the ledger version so
pollers can detect changes cheaply.
"""

import sqlite3
from datetime import datetime
from pathlib import Path

from .models import CostSharingEvent, ParticipantShare, SettlementTransfer

LEDGER_VERSION_KEY = "ledger_version"


class Database:
    """SQLite database manager."""

    def __init__(self, db_path: Path | str):
        """Initialize database connection."""
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()

        # Cost-sharing events table
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS cost_sharing_events (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                payer_id TEXT NOT NULL,
                total_amount INTEGER NOT NULL CHECK (total_amount > 0),
                method TEXT NOT NULL,
                created_at TIMESTAMP NOT NULL,
                is_deleted INTEGER NOT NULL DEFAULT 0,
                deleted_reason TEXT
            )
        """
        )

        # Participant shares table
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS event_participants (
                event_id TEXT NOT NULL REFERENCES cost_sharing_events(id),
                position INTEGER NOT NULL,
                user_id TEXT NOT NULL,
                share INTEGER NOT NULL CHECK (share >= 0),
                PRIMARY KEY (event_id, user_id)
            )
        """
        )

        # Settlement transfers table
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS settlement_transfers (
                id TEXT PRIMARY KEY,
                from_user_id TEXT NOT NULL,
                to_user_id TEXT NOT NULL,
                amount INTEGER NOT NULL CHECK (amount > 0),
                note TEXT NOT NULL DEFAULT '',
                created_at TIMESTAMP NOT NULL,
                CHECK (from_user_id != to_user_id)
            )
        """
        )

        # Relationships table (one row per direction)
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS relationships (
                user_id TEXT NOT NULL,
                counterparty_id TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (user_id, counterparty_id)
            )
        """
        )

        # Config table
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS config (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    # ========================================================================
    # Ledger version
    # ========================================================================

    def get_ledger_version(self) -> int:
        """Get the number of ledger mutations so far."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT value FROM config WHERE key = ?", (LEDGER_VERSION_KEY,))
        row = cursor.fetchone()
        return int(row["value"]) if row else 0

    def _bump_ledger_version(self, cursor: sqlite3.Cursor):
        cursor.execute(
            """
            INSERT INTO config (key, value, updated_at)
            VALUES (?, '1', ?)
            ON CONFLICT(key) DO UPDATE SET
                value = CAST(value AS INTEGER) + 1,
                updated_at = excluded.updated_at
            """,
            (LEDGER_VERSION_KEY, datetime.now().isoformat()),
        )

    # ========================================================================
    # Cost-sharing event operations
    # ========================================================================

    def save_event(self, event: CostSharingEvent):
        """Append a new cost-sharing event."""
        with self.conn:
            cursor = self.conn.cursor()
            cursor.execute(
                """
                INSERT INTO cost_sharing_events (
                    id, title, payer_id, total_amount, method,
                    created_at, is_deleted, deleted_reason
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    event.id,
                    event.title,
                    event.payer_id,
                    event.total_amount,
                    event.method,
                    event.created_at.isoformat(),
                    int(event.is_deleted),
                    event.deleted_reason,
                ),
            )
            cursor.executemany(
                """
                INSERT INTO event_participants (event_id, position, user_id, share)
                VALUES (?, ?, ?, ?)
                """,
                [
                    (event.id, position, p.user_id, p.share)
                    for position, p in enumerate(event.participants)
                ],
            )
            self._bump_ledger_version(cursor)

    def set_event_deleted(self, event: CostSharingEvent) -> bool:
        """Persist an event's soft-delete flag and reason."""
        with self.conn:
            cursor = self.conn.cursor()
            cursor.execute(
                """
                UPDATE cost_sharing_events
                SET is_deleted = ?, deleted_reason = ?
                WHERE id = ?
                """,
                (int(event.is_deleted), event.deleted_reason, event.id),
            )
            updated = cursor.rowcount > 0
            if updated:
                self._bump_ledger_version(cursor)
        return updated

    def get_event(self, event_id: str) -> CostSharingEvent | None:
        """Get a cost-sharing event by id, deleted or not."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT * FROM cost_sharing_events WHERE id = ?", (event_id,))
        row = cursor.fetchone()
        if not row:
            return None
        return self._event_from_row(row)

    def list_events(
        self, user_id: str | None = None, include_deleted: bool = True
    ) -> list[CostSharingEvent]:
        """
        List cost-sharing events, oldest first.

        Args:
            user_id: Only events the user paid for or shares in
            include_deleted: Whether to include soft-deleted events
        """
        query = "SELECT * FROM cost_sharing_events e WHERE 1 = 1"
        params: list[str] = []
        if user_id is not None:
            query += """
                AND (e.payer_id = ? OR EXISTS (
                    SELECT 1 FROM event_participants p
                    WHERE p.event_id = e.id AND p.user_id = ?
                ))
            """
            params.extend([user_id, user_id])
        if not include_deleted:
            query += " AND e.is_deleted = 0"
        query += " ORDER BY e.created_at, e.id"

        cursor = self.conn.cursor()
        cursor.execute(query, params)
        return [self._event_from_row(row) for row in cursor.fetchall()]

    def _event_from_row(self, row: sqlite3.Row) -> CostSharingEvent:
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT user_id, share FROM event_participants
            WHERE event_id = ?
            ORDER BY position
            """,
            (row["id"],),
        )
        participants = [
            ParticipantShare(user_id=p["user_id"], share=p["share"])
            for p in cursor.fetchall()
        ]
        return CostSharingEvent(
            id=row["id"],
            title=row["title"],
            payer_id=row["payer_id"],
            total_amount=row["total_amount"],
            participants=participants,
            method=row["method"],
            created_at=datetime.fromisoformat(row["created_at"]),
            is_deleted=bool(row["is_deleted"]),
            deleted_reason=row["deleted_reason"],
        )

    # ========================================================================
    # Settlement transfer operations
    # ========================================================================

    def save_transfer(self, transfer: SettlementTransfer):
        """Append a new settlement transfer."""
        with self.conn:
            cursor = self.conn.cursor()
            cursor.execute(
                """
                INSERT INTO settlement_transfers (
                    id, from_user_id, to_user_id, amount, note, created_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    transfer.id,
                    transfer.from_user_id,
                    transfer.to_user_id,
                    transfer.amount,
                    transfer.note,
                    transfer.created_at.isoformat(),
                ),
            )
            self._bump_ledger_version(cursor)

    def get_transfer(self, transfer_id: str) -> SettlementTransfer | None:
        """Get a settlement transfer by id."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT * FROM settlement_transfers WHERE id = ?", (transfer_id,))
        row = cursor.fetchone()
        if not row:
            return None
        return self._transfer_from_row(row)

    def list_transfers(
        self, user_id: str | None = None, counterparty_id: str | None = None
    ) -> list[SettlementTransfer]:
        """
        List settlement transfers, oldest first.

        Args:
            user_id: Only transfers the user sent or received
            counterparty_id: With user_id, only transfers between the two users
        """
        query = "SELECT * FROM settlement_transfers"
        params: tuple[str, ...] = ()
        if user_id is not None and counterparty_id is not None:
            query += """
                WHERE (from_user_id = ? AND to_user_id = ?)
                   OR (from_user_id = ? AND to_user_id = ?)
            """
            params = (user_id, counterparty_id, counterparty_id, user_id)
        elif user_id is not None:
            query += " WHERE from_user_id = ? OR to_user_id = ?"
            params = (user_id, user_id)
        query += " ORDER BY created_at, id"

        cursor = self.conn.cursor()
        cursor.execute(query, params)
        return [self._transfer_from_row(row) for row in cursor.fetchall()]

    def _transfer_from_row(self, row: sqlite3.Row) -> SettlementTransfer:
        return SettlementTransfer(
            id=row["id"],
            from_user_id=row["from_user_id"],
            to_user_id=row["to_user_id"],
            amount=row["amount"],
            note=row["note"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    # ========================================================================
    # Relationship operations
    # ========================================================================

    def add_relationship(self, user_id: str, counterparty_id: str) -> bool:
        """Relate two users in both directions. Returns False if already related."""
        with self.conn:
            cursor = self.conn.cursor()
            cursor.executemany(
                """
                INSERT OR IGNORE INTO relationships (user_id, counterparty_id)
                VALUES (?, ?)
                """,
                [(user_id, counterparty_id), (counterparty_id, user_id)],
            )
            added = cursor.rowcount > 0
            if added:
                self._bump_ledger_version(cursor)
        return added

    def remove_relationship(self, user_id: str, counterparty_id: str) -> bool:
        """Remove a relationship in both directions. Returns False if absent."""
        with self.conn:
            cursor = self.conn.cursor()
            cursor.execute(
                """
                DELETE FROM relationships
                WHERE (user_id = ? AND counterparty_id = ?)
                   OR (user_id = ? AND counterparty_id = ?)
                """,
                (user_id, counterparty_id, counterparty_id, user_id),
            )
            removed = cursor.rowcount > 0
            if removed:
                self._bump_ledger_version(cursor)
        return removed

    def has_relationship(self, user_id: str, counterparty_id: str) -> bool:
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT 1 FROM relationships WHERE user_id = ? AND counterparty_id = ?",
            (user_id, counterparty_id),
        )
        return cursor.fetchone() is not None

    def list_relationships(self, user_id: str) -> list[str]:
        """Get the user's counterparties, in the order they were added."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT counterparty_id FROM relationships
            WHERE user_id = ?
            ORDER BY created_at, counterparty_id
            """,
            (user_id,),
        )
        return [row["counterparty_id"] for row in cursor.fetchall()]
