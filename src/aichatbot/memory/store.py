"""SQLite-based store for messages, usage records and settings."""

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import aiosqlite

from ..config import settings
from .models import Message, MessageRole, RequestType, UsageAggregate, UsageRecord


def _to_db_time(value: datetime) -> str:
    """Serialize a datetime as a sortable UTC ISO string.

    Naive datetimes are taken to be local time.
    """
    if value.tzinfo is None:
        value = value.astimezone()
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_db_time(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    return datetime.fromisoformat(value)


class MemoryStore:
    """Persistent storage for conversation messages, usage and settings."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path or settings.database_path)
        self._connection: Optional[aiosqlite.Connection] = None

    async def initialize(self):
        """Initialize the database and create tables."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(str(self.db_path))

        await self._connection.executescript(
            """
            CREATE TABLE IF NOT EXISTS messages (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                role TEXT NOT NULL,
                content TEXT NOT NULL,
                tokens INTEGER,
                cost REAL,
                file_url TEXT,
                file_name TEXT,
                file_type TEXT,
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS usage (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                tokens INTEGER NOT NULL,
                cost REAL NOT NULL,
                model TEXT NOT NULL,
                request_type TEXT NOT NULL,
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                description TEXT,
                updated_at TEXT
            );

            CREATE INDEX IF NOT EXISTS idx_messages_user_created ON messages(user_id, created_at);
            CREATE INDEX IF NOT EXISTS idx_usage_created ON usage(created_at);
            CREATE INDEX IF NOT EXISTS idx_usage_user ON usage(user_id);
            """
        )
        await self._connection.commit()

    async def close(self):
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    # Settings operations
    async def get_setting(self, key: str) -> Optional[str]:
        """Get a setting value by key."""
        async with self._connection.execute(
            "SELECT value FROM settings WHERE key = ?", (key,)
        ) as cursor:
            row = await cursor.fetchone()
            return row[0] if row else None

    async def set_setting(self, key: str, value: str, description: Optional[str] = None):
        """Create or replace a setting."""
        await self._connection.execute(
            """
            INSERT OR REPLACE INTO settings (key, value, description, updated_at)
            VALUES (?, ?, ?, ?)
            """,
            (key, value, description, _to_db_time(datetime.now(timezone.utc))),
        )
        await self._connection.commit()

    # Message operations
    async def create_message(self, message: Message) -> Message:
        """Insert a conversation message."""
        if not message.id:
            message.id = str(uuid.uuid4())

        await self._connection.execute(
            """
            INSERT INTO messages
            (id, user_id, role, content, tokens, cost, file_url, file_name, file_type, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                message.id,
                message.user_id,
                message.role.value,
                message.content,
                message.tokens,
                message.cost,
                message.file_url,
                message.file_name,
                message.file_type,
                _to_db_time(message.created_at),
            ),
        )
        await self._connection.commit()
        return message

    async def list_recent_messages(self, user_id: str, limit: int = 50) -> list[Message]:
        """Get a user's most recent messages, newest first."""
        async with self._connection.execute(
            """
            SELECT * FROM messages WHERE user_id = ?
            ORDER BY created_at DESC, rowid DESC LIMIT ?
            """,
            (user_id, limit),
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_message(row) for row in rows]

    async def delete_messages(self, user_id: str) -> int:
        """Delete all of a user's messages."""
        cursor = await self._connection.execute(
            "DELETE FROM messages WHERE user_id = ?", (user_id,)
        )
        await self._connection.commit()
        return cursor.rowcount

    def _row_to_message(self, row) -> Message:
        return Message(
            id=row[0],
            user_id=row[1],
            role=MessageRole(row[2]),
            content=row[3],
            tokens=row[4],
            cost=row[5],
            file_url=row[6],
            file_name=row[7],
            file_type=row[8],
            created_at=_from_db_time(row[9]),
        )

    # Usage operations
    async def create_usage(self, record: UsageRecord) -> UsageRecord:
        """Insert a usage record."""
        if not record.id:
            record.id = str(uuid.uuid4())

        await self._connection.execute(
            """
            INSERT INTO usage (id, user_id, tokens, cost, model, request_type, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                record.user_id,
                record.tokens,
                record.cost,
                record.model,
                record.request_type.value,
                _to_db_time(record.created_at),
            ),
        )
        await self._connection.commit()
        return record

    async def aggregate_usage(
        self,
        user_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> UsageAggregate:
        """Count and sum usage records; bounds are inclusive and optional."""
        query = "SELECT COUNT(*), COALESCE(SUM(tokens), 0), COALESCE(SUM(cost), 0) FROM usage"
        conditions, params = self._usage_filters(user_id, start, end)
        if conditions:
            query += " WHERE " + " AND ".join(conditions)

        async with self._connection.execute(query, params) as cursor:
            row = await cursor.fetchone()
            return UsageAggregate(count=row[0] or 0, tokens=row[1] or 0, cost=row[2] or 0.0)

    async def list_usage(
        self,
        user_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 100,
    ) -> list[UsageRecord]:
        """Get usage records, newest first."""
        query = "SELECT * FROM usage"
        conditions, params = self._usage_filters(user_id, start, end)
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        query += " ORDER BY created_at DESC, rowid DESC LIMIT ?"
        params.append(limit)

        async with self._connection.execute(query, params) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_usage(row) for row in rows]

    def _usage_filters(
        self,
        user_id: Optional[str],
        start: Optional[datetime],
        end: Optional[datetime],
    ) -> tuple[list[str], list]:
        conditions = []
        params = []

        if user_id:
            conditions.append("user_id = ?")
            params.append(user_id)
        if start:
            conditions.append("created_at >= ?")
            params.append(_to_db_time(start))
        if end:
            conditions.append("created_at <= ?")
            params.append(_to_db_time(end))

        return conditions, params

    def _row_to_usage(self, row) -> UsageRecord:
        return UsageRecord(
            id=row[0],
            user_id=row[1],
            tokens=row[2],
            cost=row[3],
            model=row[4],
            request_type=RequestType(row[5]),
            created_at=_from_db_time(row[6]),
        )
