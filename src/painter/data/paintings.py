"""Painting index persistence with keyset pagination.

Pages are ordered by (ts, id) and resumed with an opaque cursor that
encodes the last row's (ts, id), so rows inserted while a client is paging
never shift or duplicate items already served.
"""

import base64
import binascii
import json
from dataclasses import dataclass
from datetime import date
from typing import Literal

from painter.data.database import PainterDatabase
from painter.exceptions import ValidationError
from painter.logging import get_logger
from painter.models import PaintingMetadata
from painter.timebuckets import day_start_epoch, next_day, parse_minute_bucket

logger = get_logger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 100

_SELECT_COLUMNS = (
    "id, ts, timestamp, minute_bucket, params_hash, seed, r2_key, image_url, "
    "file_size, visual_params_json, prompt, negative"
)


@dataclass(frozen=True)
class PageCursor:
    """Resume point: the (ts, id) of the last row served."""

    ts: int
    id: str


def encode_cursor(cursor: PageCursor) -> str:
    raw = json.dumps({"ts": cursor.ts, "id": cursor.id}, separators=(",", ":"))
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")


def decode_cursor(value: str) -> PageCursor:
    """Decode an opaque cursor.

    Raises:
        ValidationError: not a cursor produced by encode_cursor.
    """
    try:
        padded = value + "=" * (-len(value) % 4)
        data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise ValidationError("Invalid cursor", details={"cursor": value}) from e
    ts = data.get("ts") if isinstance(data, dict) else None
    row_id = data.get("id") if isinstance(data, dict) else None
    if isinstance(ts, bool) or not isinstance(ts, int) or not isinstance(row_id, str):
        raise ValidationError("Invalid cursor", details={"cursor": value})
    return PageCursor(ts=ts, id=row_id)


def clamp_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    return max(1, min(limit, MAX_LIMIT))


@dataclass(frozen=True)
class PaintingRow:
    """A paintings table row; visual params stay serialized."""

    id: str
    ts: int
    timestamp: str
    minute_bucket: str
    params_hash: str
    seed: str
    r2_key: str
    image_url: str
    file_size: int
    visual_params_json: str
    prompt: str
    negative: str


@dataclass(frozen=True)
class PaintingPage:
    """One page of rows. cursor is set only when has_more is True."""

    rows: list[PaintingRow]
    has_more: bool
    cursor: str | None = None


class PaintingRepository:
    """Typed access to the paintings index."""

    def __init__(self, database: PainterDatabase) -> None:
        self._database = database

    async def insert(self, metadata: PaintingMetadata, r2_key: str) -> bool:
        """Index a stored painting. Duplicate ids/keys are ignored.

        Returns True when a new row was written.
        """
        ts = int(parse_minute_bucket(metadata.minute_bucket).timestamp())
        async with self._database.guard("painting insert", op="put", key=r2_key) as db:
            cursor = await db.execute(
                f"INSERT INTO paintings ({_SELECT_COLUMNS}, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, strftime('%s','now')) "
                "ON CONFLICT DO NOTHING",
                (
                    metadata.id,
                    ts,
                    metadata.timestamp,
                    metadata.minute_bucket,
                    metadata.params_hash,
                    metadata.seed,
                    r2_key,
                    metadata.image_url,
                    metadata.file_size,
                    json.dumps(metadata.visual_params.to_dict(), sort_keys=True),
                    metadata.prompt,
                    metadata.negative,
                ),
            )
            await db.commit()
        inserted = cursor.rowcount > 0
        logger.debug("painting_indexed", painting_id=metadata.id, inserted=inserted)
        return inserted

    async def find_by_id(self, painting_id: str) -> PaintingRow | None:
        async with self._database.guard("painting lookup", op="get", key=painting_id) as db:
            cursor = await db.execute(
                f"SELECT {_SELECT_COLUMNS} FROM paintings WHERE id = ?",
                (painting_id,),
            )
            row = await cursor.fetchone()
        return PaintingRow(*row) if row is not None else None

    async def list_page(
        self,
        limit: int | None = None,
        cursor: PageCursor | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        direction: Literal["asc", "desc"] = "desc",
        offset: int = 0,
        params_hash: str | None = None,
        seed: str | None = None,
    ) -> PaintingPage:
        """Fetch one page ordered by (ts, id).

        date_from is inclusive from its 00:00Z; date_to is inclusive of its
        whole day (exclusive bound at the next day's 00:00Z). offset only
        applies when no cursor is given.
        """
        limit = clamp_limit(limit)
        conditions: list[str] = []
        params: list[object] = []

        if cursor is not None:
            if direction == "desc":
                conditions.append("(ts < ? OR (ts = ? AND id < ?))")
            else:
                conditions.append("(ts > ? OR (ts = ? AND id > ?))")
            params.extend([cursor.ts, cursor.ts, cursor.id])
        if date_from is not None:
            conditions.append("ts >= ?")
            params.append(day_start_epoch(date_from))
        if date_to is not None:
            conditions.append("ts < ?")
            params.append(day_start_epoch(next_day(date_to)))
        if params_hash is not None:
            conditions.append("params_hash = ?")
            params.append(params_hash)
        if seed is not None:
            conditions.append("seed = ?")
            params.append(seed)

        order = "DESC" if direction == "desc" else "ASC"
        sql = f"SELECT {_SELECT_COLUMNS} FROM paintings"
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        sql += f" ORDER BY ts {order}, id {order} LIMIT ?"
        params.append(limit + 1)
        if cursor is None and offset > 0:
            sql += " OFFSET ?"
            params.append(offset)

        async with self._database.guard("painting list", op="list", key="paintings") as db:
            db_cursor = await db.execute(sql, params)
            fetched = await db_cursor.fetchall()

        rows = [PaintingRow(*row) for row in fetched[:limit]]
        has_more = len(fetched) > limit
        next_cursor = None
        if has_more and rows:
            last = rows[-1]
            next_cursor = encode_cursor(PageCursor(ts=last.ts, id=last.id))
        return PaintingPage(rows=rows, has_more=has_more, cursor=next_cursor)
