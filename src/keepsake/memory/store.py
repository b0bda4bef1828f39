"""SQLite persistence for user memories and session summaries."""

import json
import re
import sqlite3
from datetime import datetime
from pathlib import Path

import aiosqlite

from keepsake.core.errors import ConfigurationError, ValidationError
from keepsake.core.logging import get_logger
from keepsake.memory.base import Memory, MemoryDatabase, SessionSummary, new_id

logger = get_logger("memory.store")

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


# Python 3.12+ fix: Register datetime adapters explicitly
def _adapt_datetime(dt: datetime) -> str:
    """Convert datetime to ISO format string for SQLite storage."""
    return dt.isoformat()


def _convert_datetime(val: bytes) -> datetime:
    """Convert ISO format string from SQLite to datetime."""
    return datetime.fromisoformat(val.decode())


sqlite3.register_adapter(datetime, _adapt_datetime)
sqlite3.register_converter("DATETIME", _convert_datetime)

SCHEMA = """
CREATE TABLE IF NOT EXISTS {table} (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    agent_id TEXT,
    team_id TEXT,
    memory TEXT NOT NULL,
    input TEXT,
    topics TEXT,  -- JSON array
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_{table}_user_id ON {table}(user_id);

CREATE TABLE IF NOT EXISTS {table}_summaries (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    session_id TEXT NOT NULL,
    summary TEXT NOT NULL,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL,
    UNIQUE(user_id, session_id)
);

CREATE INDEX IF NOT EXISTS idx_{table}_summaries_user_id ON {table}_summaries(user_id);
"""

# Columns added after the first schema version: name -> type
_MEMORY_COLUMNS = {
    "agent_id": "TEXT",
    "team_id": "TEXT",
    "input": "TEXT",
    "topics": "TEXT",
}

_MEMORY_FIELDS = "id, user_id, agent_id, team_id, memory, input, topics, created_at, updated_at"
_SUMMARY_FIELDS = "id, user_id, session_id, summary, created_at, updated_at"


class SQLiteMemoryStore(MemoryDatabase):
    """aiosqlite-backed MemoryDatabase."""

    def __init__(self, db_path: Path | str, table_name: str = "user_memories"):
        if not _IDENTIFIER_RE.match(table_name):
            raise ConfigurationError(f"invalid table name: {table_name!r}")
        self.db_path = Path(db_path)
        self.table_name = table_name
        self._conn: aiosqlite.Connection | None = None

    @property
    def summaries_table(self) -> str:
        return f"{self.table_name}_summaries"

    async def connect(self) -> None:
        """Initialize database connection and schema."""
        if str(self.db_path) != ":memory:":
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        # Use detect_types to enable our custom datetime converters
        self._conn = await aiosqlite.connect(
            self.db_path,
            detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
        )
        await self.create_tables()
        logger.info(f"Connected to memory store: {self.db_path} ({self.table_name})")

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    async def __aenter__(self) -> "SQLiteMemoryStore":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Memory store not connected. Call connect() first.")
        return self._conn

    # Schema

    async def create_tables(self) -> None:
        await self.conn.executescript(SCHEMA.format(table=self.table_name))
        await self.conn.commit()

    async def upgrade_schema(self) -> None:
        """Create missing tables and add columns introduced after v1."""
        await self.create_tables()
        async with self.conn.execute(f"PRAGMA table_info({self.table_name})") as cursor:
            existing = {row[1] async for row in cursor}

        for column, column_type in _MEMORY_COLUMNS.items():
            if column not in existing:
                await self.conn.execute(
                    f"ALTER TABLE {self.table_name} ADD COLUMN {column} {column_type}"
                )
                logger.info(f"Added column {self.table_name}.{column}")
        await self.conn.commit()

    async def drop_tables(self) -> None:
        await self.conn.execute(f"DROP TABLE IF EXISTS {self.table_name}")
        await self.conn.execute(f"DROP TABLE IF EXISTS {self.summaries_table}")
        await self.conn.commit()

    # Memories

    async def create_memory(self, memory: Memory) -> Memory:
        await self._insert_memory(memory)
        await self.conn.commit()
        return memory

    async def _insert_memory(self, memory: Memory) -> None:
        """INSERT without committing."""
        if not memory.text.strip():
            raise ValidationError("memory text must not be empty")
        if not memory.id:
            memory.id = new_id()

        await self.conn.execute(
            f"INSERT INTO {self.table_name} ({_MEMORY_FIELDS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                memory.id,
                memory.user_id,
                memory.agent_id,
                memory.team_id,
                memory.text,
                memory.source_input,
                json.dumps(memory.topics) if memory.topics else None,
                memory.created_at,
                memory.updated_at,
            ),
        )

    async def get_memory(self, memory_id: str) -> Memory | None:
        async with self.conn.execute(
            f"SELECT {_MEMORY_FIELDS} FROM {self.table_name} WHERE id = ?",
            (memory_id,),
        ) as cursor:
            row = await cursor.fetchone()
            return self._row_to_memory(row) if row else None

    async def list_memories(self, user_id: str) -> list[Memory]:
        results = []
        async with self.conn.execute(
            f"SELECT {_MEMORY_FIELDS} FROM {self.table_name} "
            "WHERE user_id = ? ORDER BY created_at, rowid",
            (user_id,),
        ) as cursor:
            async for row in cursor:
                results.append(self._row_to_memory(row))
        return results

    async def update_memory(self, memory: Memory) -> bool:
        if not memory.text.strip():
            raise ValidationError("memory text must not be empty")

        cursor = await self.conn.execute(
            f"""UPDATE {self.table_name}
                SET memory = ?, input = ?, topics = ?, agent_id = ?, team_id = ?,
                    updated_at = ?
                WHERE id = ?""",
            (
                memory.text,
                memory.source_input,
                json.dumps(memory.topics) if memory.topics else None,
                memory.agent_id,
                memory.team_id,
                memory.updated_at,
                memory.id,
            ),
        )
        await self.conn.commit()
        return cursor.rowcount > 0

    async def delete_memory(self, memory_id: str) -> bool:
        deleted = await self._delete_row(memory_id)
        await self.conn.commit()
        return deleted

    async def clear_memories(self, user_id: str) -> int:
        cursor = await self.conn.execute(
            f"DELETE FROM {self.table_name} WHERE user_id = ?", (user_id,)
        )
        await self.conn.commit()
        return cursor.rowcount

    async def replace_memories(
        self, new_memories: list[Memory], delete_ids: list[str]
    ) -> list[str]:
        for memory in new_memories:
            if not memory.text.strip():
                raise ValidationError("memory text must not be empty")

        deleted = []
        try:
            for memory in new_memories:
                await self._insert_memory(memory)
            for memory_id in delete_ids:
                if await self._delete_row(memory_id):
                    deleted.append(memory_id)
            await self.conn.commit()
        except BaseException:
            await self.conn.rollback()
            raise
        return deleted

    async def _delete_row(self, memory_id: str) -> bool:
        """DELETE without committing."""
        cursor = await self.conn.execute(
            f"DELETE FROM {self.table_name} WHERE id = ?", (memory_id,)
        )
        return cursor.rowcount > 0

    # Session summaries

    async def create_session_summary(self, summary: SessionSummary) -> SessionSummary:
        if not summary.id:
            summary.id = new_id()

        await self.conn.execute(
            f"""INSERT INTO {self.summaries_table} ({_SUMMARY_FIELDS})
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id, session_id) DO UPDATE SET
                    summary = excluded.summary,
                    updated_at = excluded.updated_at""",
            (
                summary.id,
                summary.user_id,
                summary.session_id,
                summary.summary_text,
                summary.created_at,
                summary.updated_at,
            ),
        )
        await self.conn.commit()

        stored = await self.get_session_summary(summary.user_id, summary.session_id)
        return stored if stored is not None else summary

    async def get_session_summary(
        self, user_id: str, session_id: str
    ) -> SessionSummary | None:
        async with self.conn.execute(
            f"SELECT {_SUMMARY_FIELDS} FROM {self.summaries_table} "
            "WHERE user_id = ? AND session_id = ?",
            (user_id, session_id),
        ) as cursor:
            row = await cursor.fetchone()
            if row is None:
                return None
            return SessionSummary(
                id=row[0],
                user_id=row[1],
                session_id=row[2],
                summary_text=row[3],
                created_at=row[4],
                updated_at=row[5],
            )

    async def update_session_summary(self, summary: SessionSummary) -> bool:
        cursor = await self.conn.execute(
            f"""UPDATE {self.summaries_table}
                SET summary = ?, updated_at = ?
                WHERE user_id = ? AND session_id = ?""",
            (summary.summary_text, summary.updated_at, summary.user_id, summary.session_id),
        )
        await self.conn.commit()
        return cursor.rowcount > 0

    async def delete_session_summary(self, user_id: str, session_id: str) -> bool:
        cursor = await self.conn.execute(
            f"DELETE FROM {self.summaries_table} WHERE user_id = ? AND session_id = ?",
            (user_id, session_id),
        )
        await self.conn.commit()
        return cursor.rowcount > 0

    def _row_to_memory(self, row: tuple) -> Memory:
        """Convert a database row to a Memory."""
        return Memory(
            id=row[0],
            user_id=row[1],
            agent_id=row[2],
            team_id=row[3],
            text=row[4],
            source_input=row[5],
            topics=json.loads(row[6]) if row[6] else [],
            created_at=row[7],
            updated_at=row[8],
        )
