"""SQLite-backed store for items, triage results and contacts.

Triage write-back is idempotent: results are keyed by item ID and a later run
replaces the earlier row.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import structlog

from inbox_rank.exceptions import StoreError
from inbox_rank.models import (
    CategorizationResult,
    Category,
    Item,
    ItemSource,
    Priority,
    ReadStatus,
    TriageSummary,
)
from inbox_rank.utils import truncate

logger = structlog.get_logger()


_SCHEMA_VERSION = 1

REASONING_MAX_CHARS = 500
SUGGESTED_ACTION_MAX_CHARS = 200


@dataclass(frozen=True)
class StoredTriage:
    """A triage row as persisted."""

    item_id: str
    priority: str
    category: str
    confidence: int
    quick_win: bool
    quick_win_reason: str | None
    estimated_time: str | None
    reasoning: str
    suggested_action: str | None
    triaged_at: datetime
    triaged_by: str


@dataclass(frozen=True)
class Contact:
    """A known sender, optionally flagged as VIP."""

    id: str
    name: str | None = None
    email: str | None = None
    slack_user_id: str | None = None
    telegram_chat_id: str | None = None
    is_vip: bool = False
    vip_reason: str | None = None


class TriageRepository:
    """Repository for items, triage results and VIP contacts."""

    def __init__(self, db_path: Path) -> None:
        """Create a repository.

        Args:
            db_path: Path to the SQLite database file.
        """

        self._db_path = db_path

    def initialize(self) -> None:
        """Create or upgrade the schema."""

        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL;")

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS _schema_meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );
                """
            )

            current_version = self._get_schema_version(conn)
            if current_version is None:
                self._create_schema_v1(conn)
                self._set_schema_version(conn, _SCHEMA_VERSION)
                conn.commit()
                logger.info("triage_store_schema_created", version=_SCHEMA_VERSION)
                return

            if current_version != _SCHEMA_VERSION:
                raise StoreError(
                    f"Unsupported schema version {current_version}; expected {_SCHEMA_VERSION}"
                )

    def upsert_items(self, items: list[Item]) -> None:
        """Insert or refresh a batch of normalized items."""

        if not items:
            return

        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO items (id, source, timestamp_iso, payload_json, updated_at_iso)
                VALUES (:id, :source, :timestamp_iso, :payload_json, :updated_at_iso)
                ON CONFLICT(id) DO UPDATE SET
                    source=excluded.source,
                    timestamp_iso=excluded.timestamp_iso,
                    payload_json=excluded.payload_json,
                    updated_at_iso=excluded.updated_at_iso
                """,
                [
                    {
                        "id": item.id,
                        "source": item.source.value,
                        "timestamp_iso": item.timestamp.astimezone(timezone.utc).isoformat(),
                        "payload_json": item.model_dump_json(),
                        "updated_at_iso": _now_iso(),
                    }
                    for item in items
                ],
            )
            conn.commit()

        logger.info("items_upserted", count=len(items))

    def query_items(
        self,
        source: ItemSource | str | None = None,
        triaged: bool | None = None,
        limit: int | None = None,
    ) -> list[Item]:
        """Return stored items, newest first.

        Args:
            source: Only items from this source.
            triaged: True for triaged items, False for untriaged, None for both.
            limit: Max results.
        """

        conditions: list[str] = []
        params: list[object] = []

        if source is not None:
            conditions.append("i.source = ?")
            params.append(ItemSource(source).value)
        if triaged is True:
            conditions.append("i.id IN (SELECT item_id FROM triage)")
        elif triaged is False:
            conditions.append("i.id NOT IN (SELECT item_id FROM triage)")

        sql = "SELECT i.payload_json FROM items i"
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        sql += " ORDER BY i.timestamp_iso DESC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()

        return [Item.model_validate_json(row["payload_json"]) for row in rows]

    def write_triage(self, result: CategorizationResult, triaged_by: str = "ai") -> None:
        """Persist a triage result, replacing any earlier result for the item."""

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO triage (
                    item_id,
                    priority,
                    category,
                    confidence,
                    quick_win,
                    quick_win_reason,
                    estimated_time,
                    reasoning,
                    suggested_action,
                    triaged_at_iso,
                    triaged_by
                )
                VALUES (
                    :item_id,
                    :priority,
                    :category,
                    :confidence,
                    :quick_win,
                    :quick_win_reason,
                    :estimated_time,
                    :reasoning,
                    :suggested_action,
                    :triaged_at_iso,
                    :triaged_by
                )
                ON CONFLICT(item_id) DO UPDATE SET
                    priority=excluded.priority,
                    category=excluded.category,
                    confidence=excluded.confidence,
                    quick_win=excluded.quick_win,
                    quick_win_reason=excluded.quick_win_reason,
                    estimated_time=excluded.estimated_time,
                    reasoning=excluded.reasoning,
                    suggested_action=excluded.suggested_action,
                    triaged_at_iso=excluded.triaged_at_iso,
                    triaged_by=excluded.triaged_by
                """,
                {
                    "item_id": result.item_id,
                    "priority": result.priority.value,
                    "category": result.category.value,
                    "confidence": result.confidence,
                    "quick_win": 1 if result.quick_win else 0,
                    "quick_win_reason": result.quick_win_reason,
                    "estimated_time": result.estimated_time.value,
                    "reasoning": truncate(result.reasoning, REASONING_MAX_CHARS),
                    "suggested_action": truncate(result.suggested_action, SUGGESTED_ACTION_MAX_CHARS),
                    "triaged_at_iso": _now_iso(),
                    "triaged_by": triaged_by,
                },
            )
            conn.commit()

    def get_triage(self, item_id: str) -> StoredTriage | None:
        """Return the stored triage for an item, if any."""

        with self._connect() as conn:
            row = conn.execute("SELECT * FROM triage WHERE item_id = ?", (item_id,)).fetchone()

        if row is None:
            return None
        return _row_to_triage(row)

    def query_pending(
        self,
        priority: Priority | str | None = None,
        source: ItemSource | str | None = None,
        limit: int | None = None,
    ) -> list[tuple[Item, StoredTriage]]:
        """Return triaged, unread items with their triage, P0 first.

        Args:
            priority: Only items stored with this priority.
            source: Only items from this source.
            limit: Max results.

        Returns:
            (item, triage) pairs; newest first within a priority.
        """

        conditions: list[str] = []
        params: list[object] = []

        if priority is not None:
            conditions.append("t.priority = ?")
            params.append(Priority(priority).value)
        if source is not None:
            conditions.append("i.source = ?")
            params.append(ItemSource(source).value)

        sql = (
            "SELECT i.payload_json, t.* FROM items i "
            "JOIN triage t ON t.item_id = i.id"
        )
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        sql += " ORDER BY t.priority ASC, i.timestamp_iso DESC"

        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()

        # Read status lives in the item payload.
        pending: list[tuple[Item, StoredTriage]] = []
        for row in rows:
            item = Item.model_validate_json(row["payload_json"])
            if item.read_status is not ReadStatus.UNREAD:
                continue
            pending.append((item, _row_to_triage(row)))
            if limit is not None and len(pending) >= limit:
                break
        return pending

    def triage_summary(self) -> TriageSummary:
        """Count stored triage results by priority and category."""

        summary = TriageSummary()
        with self._connect() as conn:
            for row in conn.execute(
                "SELECT priority, category, quick_win, COUNT(*) AS cnt "
                "FROM triage GROUP BY priority, category, quick_win"
            ):
                count = int(row["cnt"])
                summary.total += count
                summary.by_priority[Priority(row["priority"])] += count
                summary.by_category[Category(row["category"])] += count
                if row["quick_win"]:
                    summary.quick_wins += count
        return summary

    def upsert_contact(self, contact: Contact) -> None:
        """Add or update a contact; missing fields keep their stored values."""

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO contacts (
                    id, name, email, slack_user_id, telegram_chat_id,
                    is_vip, vip_reason, created_at_iso
                ) VALUES (
                    :id, :name, :email, :slack_user_id, :telegram_chat_id,
                    :is_vip, :vip_reason, :created_at_iso
                )
                ON CONFLICT(id) DO UPDATE SET
                    name = COALESCE(excluded.name, contacts.name),
                    email = COALESCE(excluded.email, contacts.email),
                    slack_user_id = COALESCE(excluded.slack_user_id, contacts.slack_user_id),
                    telegram_chat_id = COALESCE(excluded.telegram_chat_id, contacts.telegram_chat_id),
                    is_vip = excluded.is_vip,
                    vip_reason = COALESCE(excluded.vip_reason, contacts.vip_reason)
                """,
                {
                    "id": contact.id,
                    "name": contact.name,
                    "email": contact.email.lower() if contact.email else None,
                    "slack_user_id": contact.slack_user_id,
                    "telegram_chat_id": contact.telegram_chat_id,
                    "is_vip": 1 if contact.is_vip else 0,
                    "vip_reason": contact.vip_reason,
                    "created_at_iso": _now_iso(),
                },
            )
            conn.commit()

    def is_vip_sender(self, item: Item) -> bool:
        """Whether the item's sender matches a VIP contact.

        Email senders match on address, Slack on user ID, Telegram on chat ID.
        """

        sender = item.sender
        lookups: list[tuple[str, str]] = []
        if sender.address:
            lookups.append(("email", sender.address.lower()))
        if item.source is ItemSource.SLACK and sender.user_id:
            lookups.append(("slack_user_id", sender.user_id))
        if item.source is ItemSource.TELEGRAM and sender.user_id:
            lookups.append(("telegram_chat_id", sender.user_id))

        if not lookups:
            return False

        with self._connect() as conn:
            for column, value in lookups:
                row = conn.execute(
                    f"SELECT 1 FROM contacts WHERE {column} = ? AND is_vip = 1 LIMIT 1",  # noqa: S608
                    (value,),
                ).fetchone()
                if row is not None:
                    return True
        return False

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as exc:
            raise StoreError(f"Unable to open triage store {self._db_path}: {exc}") from exc
        try:
            conn.row_factory = sqlite3.Row
            yield conn
        finally:
            conn.close()

    def _get_schema_version(self, conn: sqlite3.Connection) -> int | None:
        row = conn.execute(
            "SELECT value FROM _schema_meta WHERE key = 'schema_version'"
        ).fetchone()
        if row is None:
            return None
        return int(row[0])

    def _set_schema_version(self, conn: sqlite3.Connection, version: int) -> None:
        conn.execute(
            "INSERT OR REPLACE INTO _schema_meta(key, value) VALUES('schema_version', ?) ",
            (str(version),),
        )

    def _create_schema_v1(self, conn: sqlite3.Connection) -> None:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS items (
                id TEXT PRIMARY KEY,
                source TEXT NOT NULL,
                timestamp_iso TEXT NOT NULL,
                payload_json TEXT NOT NULL,
                updated_at_iso TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_items_source
                ON items(source);

            CREATE INDEX IF NOT EXISTS idx_items_timestamp
                ON items(timestamp_iso);

            CREATE TABLE IF NOT EXISTS triage (
                item_id TEXT PRIMARY KEY,
                priority TEXT NOT NULL,
                category TEXT NOT NULL,
                confidence INTEGER NOT NULL,
                quick_win INTEGER NOT NULL,
                quick_win_reason TEXT,
                estimated_time TEXT,
                reasoning TEXT NOT NULL,
                suggested_action TEXT,
                triaged_at_iso TEXT NOT NULL,
                triaged_by TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS contacts (
                id TEXT PRIMARY KEY,
                name TEXT,
                email TEXT,
                slack_user_id TEXT,
                telegram_chat_id TEXT,
                is_vip INTEGER NOT NULL DEFAULT 0,
                vip_reason TEXT,
                created_at_iso TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_contacts_email
                ON contacts(email);
            """
        )


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_triage(row: sqlite3.Row) -> StoredTriage:
    return StoredTriage(
        item_id=row["item_id"],
        priority=row["priority"],
        category=row["category"],
        confidence=int(row["confidence"]),
        quick_win=bool(row["quick_win"]),
        quick_win_reason=row["quick_win_reason"],
        estimated_time=row["estimated_time"],
        reasoning=row["reasoning"],
        suggested_action=row["suggested_action"],
        triaged_at=datetime.fromisoformat(row["triaged_at_iso"]),
        triaged_by=row["triaged_by"],
    )
