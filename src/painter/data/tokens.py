"""Selected-token persistence.

Every winning token is upserted here; updated_at doubles as "last selected
at" for recency exclusion on later runs.
"""

import json
import time
from dataclasses import dataclass

from painter.data.database import PainterDatabase
from painter.logging import get_logger
from painter.models import TokenCandidate

logger = get_logger(__name__)

SECONDS_PER_HOUR = 3600


@dataclass
class TokenRecord:
    """Stored token row. categories_json is kept raw; callers decide how to parse."""

    id: str
    symbol: str
    name: str
    coingecko_id: str
    logo_url: str | None
    short_context: str | None
    categories_json: str
    created_at: int
    updated_at: int


class TokenRepository:
    """Typed access to the tokens table."""

    def __init__(self, database: PainterDatabase) -> None:
        self._database = database

    # ──────────────────────────────────────────────
    # Write methods
    # ──────────────────────────────────────────────

    async def upsert_selected(self, candidate: TokenCandidate, now: int | None = None) -> None:
        """Record a selection of candidate.

        Keeps created_at and short_context of an existing row, and keeps its
        categories when the candidate carries none (market feeds omit them).
        """
        now = now if now is not None else int(time.time())
        async with self._database.guard("token upsert", op="put", key=candidate.id) as db:
            await db.execute(
                "INSERT INTO tokens "
                "(id, symbol, name, coingecko_id, logo_url, categories, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET "
                "symbol = excluded.symbol, "
                "name = excluded.name, "
                "logo_url = excluded.logo_url, "
                "categories = CASE WHEN excluded.categories = '[]' "
                "THEN tokens.categories ELSE excluded.categories END, "
                "updated_at = excluded.updated_at",
                (
                    candidate.id,
                    candidate.symbol,
                    candidate.name,
                    candidate.id,
                    candidate.logo_url,
                    json.dumps(candidate.categories),
                    now,
                    now,
                ),
            )
            await db.commit()
        logger.debug("token_upserted", token_id=candidate.id, updated_at=now)

    async def update_context(
        self, token_id: str, short_context: str, categories: list[str]
    ) -> None:
        """Store enrichment output without touching the selection timestamp."""
        async with self._database.guard("token context update", op="put", key=token_id) as db:
            await db.execute(
                "UPDATE tokens SET short_context = ?, categories = ? WHERE id = ?",
                (short_context, json.dumps(categories), token_id),
            )
            await db.commit()

    # ──────────────────────────────────────────────
    # Read methods
    # ──────────────────────────────────────────────

    async def find_by_id(self, token_id: str) -> TokenRecord | None:
        async with self._database.guard("token lookup", op="get", key=token_id) as db:
            cursor = await db.execute(
                "SELECT id, symbol, name, coingecko_id, logo_url, short_context, "
                "categories, created_at, updated_at FROM tokens WHERE id = ?",
                (token_id,),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return TokenRecord(*row)

    async def find_recently_selected(
        self, window_hours: int, now: int | None = None
    ) -> list[str]:
        """Ids of tokens selected within the last window_hours."""
        now = now if now is not None else int(time.time())
        threshold = now - window_hours * SECONDS_PER_HOUR
        async with self._database.guard("recent token lookup", op="list", key="tokens") as db:
            cursor = await db.execute(
                "SELECT id FROM tokens WHERE updated_at >= ? ORDER BY updated_at DESC",
                (threshold,),
            )
            rows = await cursor.fetchall()
        return [row[0] for row in rows]
