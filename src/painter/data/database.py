"""Async SQLite database manager for the painting index.

Uses aiosqlite for non-blocking database operations with WAL mode so the
API can read while a pipeline execution writes.
"""

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Self

import aiosqlite

from painter.exceptions import StorageError
from painter.logging import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 1

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS market_snapshots (
    hour_bucket TEXT PRIMARY KEY,
    total_market_cap_usd REAL NOT NULL,
    total_volume_usd REAL NOT NULL,
    market_cap_change_percentage_24h_usd REAL NOT NULL,
    btc_dominance REAL NOT NULL,
    eth_dominance REAL NOT NULL,
    active_cryptocurrencies INTEGER NOT NULL,
    markets INTEGER NOT NULL,
    fear_greed_index INTEGER,
    updated_at INTEGER NOT NULL,
    created_at INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS tokens (
    id TEXT PRIMARY KEY,
    symbol TEXT NOT NULL,
    name TEXT NOT NULL,
    coingecko_id TEXT NOT NULL,
    logo_url TEXT,
    short_context TEXT,
    categories TEXT NOT NULL DEFAULT '[]',
    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS paintings (
    id TEXT PRIMARY KEY,
    ts INTEGER NOT NULL,
    timestamp TEXT NOT NULL,
    minute_bucket TEXT NOT NULL,
    params_hash TEXT NOT NULL,
    seed TEXT NOT NULL,
    r2_key TEXT NOT NULL UNIQUE,
    image_url TEXT NOT NULL,
    file_size INTEGER NOT NULL,
    visual_params_json TEXT NOT NULL,
    prompt TEXT NOT NULL,
    negative TEXT NOT NULL,
    created_at INTEGER NOT NULL
);
"""

_CREATE_INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_tokens_updated_at
    ON tokens(updated_at);

CREATE INDEX IF NOT EXISTS idx_paintings_ts_id
    ON paintings(ts, id);

CREATE INDEX IF NOT EXISTS idx_paintings_params_hash
    ON paintings(params_hash);

CREATE INDEX IF NOT EXISTS idx_paintings_seed
    ON paintings(seed);
"""


class PainterDatabase:
    """Async SQLite connection manager for the relational index.

    Manages database lifecycle including schema creation, WAL mode
    configuration, and clean resource cleanup.

    Usage:
        async with PainterDatabase("data/painter.db") as database:
            repository = PaintingRepository(database)
    """

    def __init__(self, db_path: str = "data/painter.db") -> None:
        self._db_path = db_path
        self._connection: aiosqlite.Connection | None = None

    @property
    def db(self) -> aiosqlite.Connection:
        """Access the raw aiosqlite connection.

        Raises RuntimeError if not connected.
        """
        if self._connection is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    @asynccontextmanager
    async def guard(
        self, action: str, op: str, key: str | None = None
    ) -> AsyncIterator[aiosqlite.Connection]:
        """Yield the live connection; driver failures surface as StorageError.

        Covers query errors (aiosqlite.Error), a connection closed underneath
        us (ValueError) and a manager that was never connected (RuntimeError).
        Keep only database calls inside the block.

        Usage:
            async with database.guard("painting lookup", op="get", key=id) as db:
                cursor = await db.execute(...)
        """
        try:
            yield self.db
        except (aiosqlite.Error, ValueError, RuntimeError) as e:
            raise StorageError(f"{action} failed: {e}", op=op, key=key) from e

    async def connect(self) -> None:
        """Open database connection, configure pragmas, and create schema.

        Creates the parent directory if it does not exist.
        """
        db_dir = os.path.dirname(self._db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self._connection = await aiosqlite.connect(self._db_path)

        if self._db_path != ":memory:":
            await self._connection.execute("PRAGMA journal_mode=WAL")
        await self._connection.execute("PRAGMA synchronous=NORMAL")

        await self._create_tables()
        await self._ensure_schema_version()

        logger.info("painter_db_connected", db_path=self._db_path)

    async def close(self) -> None:
        """Close the database connection if open."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("painter_db_closed", db_path=self._db_path)

    async def _create_tables(self) -> None:
        assert self._connection is not None
        await self._connection.executescript(_CREATE_TABLES_SQL)
        await self._connection.executescript(_CREATE_INDEXES_SQL)
        await self._connection.commit()

    async def _ensure_schema_version(self) -> None:
        assert self._connection is not None
        cursor = await self._connection.execute(
            "SELECT version FROM schema_version LIMIT 1"
        )
        row = await cursor.fetchone()
        if row is None:
            await self._connection.execute(
                "INSERT INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,),
            )
            await self._connection.commit()
            logger.info("schema_version_set", version=SCHEMA_VERSION)

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        await self.close()
