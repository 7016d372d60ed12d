"""Archive listing with keyset pagination and object-store fallback.

Primary path: the relational index, newest first, resumable through an
opaque (ts, id) cursor.

Fallback path (index query failed): list object keys under the
images/YYYY/MM/DD/ prefix scheme and load each sibling metadata blob.
  - from and to given: one prefix per day, listed in parallel, merged,
    sorted newest first and cut to limit. Not resumable.
  - otherwise: one prefix (the from day, or all images), listed page by
    page until limit items are collected or the store runs out. Items come
    back in key order, oldest first, unlike the newest-first primary path.
The fallback never returns a cursor; callers narrow the date range instead.
"""

import asyncio
import json
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Any

from painter.archive.keys import (
    IMAGES_PREFIX,
    date_prefix,
    is_painting_key,
    metadata_key,
    public_url,
)
from painter.data.object_store import MAX_LIST_LIMIT, ObjectInfo, ObjectStore
from painter.data.paintings import (
    PaintingRepository,
    PaintingRow,
    clamp_limit,
    decode_cursor,
)
from painter.exceptions import StorageError, ValidationError
from painter.logging import get_logger
from painter.models import PaintingMetadata, VisualParams
from painter.timebuckets import next_day, parse_day

logger = get_logger(__name__)

FETCH_MULTIPLIER = 2
MAX_RANGE_DAYS = 366


@dataclass
class ListImagesResult:
    """One page of paintings. cursor is set only when has_more is True."""

    items: list[PaintingMetadata] = field(default_factory=list)
    has_more: bool = False
    cursor: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "items": [item.to_dict() for item in self.items],
            "has_more": self.has_more,
        }
        if self.cursor is not None:
            data["cursor"] = self.cursor
        return data


def row_to_metadata(row: PaintingRow) -> PaintingMetadata:
    """Raises ValidationError when the stored visual params are unusable."""
    try:
        params = json.loads(row.visual_params_json)
    except ValueError as e:
        raise ValidationError(
            "stored visual_params is not valid JSON", details={"id": row.id}
        ) from e
    return PaintingMetadata(
        id=row.id,
        timestamp=row.timestamp,
        minute_bucket=row.minute_bucket,
        params_hash=row.params_hash,
        seed=row.seed,
        visual_params=VisualParams.from_dict(params),
        image_url=row.image_url,
        file_size=row.file_size,
        prompt=row.prompt,
        negative=row.negative,
    )


def day_prefixes(date_from: date, date_to: date) -> list[str]:
    prefixes = []
    current = date_from
    while current <= date_to:
        prefixes.append(date_prefix(current))
        current += timedelta(days=1)
    return prefixes


class ArchiveQueryEngine:
    """Read side of the painting archive.

    Args:
        paintings: Relational painting index.
        store: Object store holding images and metadata blobs.
        public_base_url: Optional CDN base for public URLs.
    """

    def __init__(
        self,
        paintings: PaintingRepository,
        store: ObjectStore,
        public_base_url: str = "",
    ) -> None:
        self._paintings = paintings
        self._store = store
        self._public_base_url = public_base_url

    async def get_painting(self, painting_id: str) -> PaintingMetadata | None:
        row = await self._paintings.find_by_id(painting_id)
        return row_to_metadata(row) if row is not None else None

    async def list_images(
        self,
        limit: int | None = None,
        cursor: str | None = None,
        date_from: str | None = None,
        date_to: str | None = None,
    ) -> ListImagesResult:
        """List paintings newest first.

        Raises:
            ValidationError: malformed date, inverted range or bad cursor.
            StorageError: the index and the object store both failed.
        """
        limit = clamp_limit(limit)
        start = parse_day(date_from, "from") if date_from else None
        end = parse_day(date_to, "to") if date_to else None
        if start and end:
            if start > end:
                raise ValidationError(
                    "from must not be after to", details={"from": date_from, "to": date_to}
                )
            if (end - start).days + 1 > MAX_RANGE_DAYS:
                raise ValidationError(
                    f"date range exceeds {MAX_RANGE_DAYS} days",
                    details={"from": date_from, "to": date_to},
                )
        page_cursor = decode_cursor(cursor) if cursor else None

        try:
            page = await self._paintings.list_page(
                limit=limit, cursor=page_cursor, date_from=start, date_to=end
            )
        except StorageError as e:
            logger.warning("archive_index_unavailable_falling_back", error=e.message)
        else:
            items = []
            for row in page.rows:
                try:
                    items.append(row_to_metadata(row))
                except ValidationError as e:
                    logger.error("archive_row_invalid", painting_id=row.id, error=e.message)
            logger.debug(
                "archive_index_page",
                limit=limit,
                returned=len(items),
                has_more=page.has_more,
            )
            return ListImagesResult(items=items, has_more=page.has_more, cursor=page.cursor)

        if cursor:
            logger.warning("archive_cursor_ignored_in_fallback", cursor=cursor)
        if start and end:
            return await self._list_range(start, end, limit)
        return await self._list_prefix(start, end, limit)

    # ──────────────────────────────────────────────
    # Object-store fallback
    # ──────────────────────────────────────────────

    async def _load_metadata(self, info: ObjectInfo) -> PaintingMetadata | None:
        meta_key = metadata_key(info.key)
        stored = await self._store.get(meta_key)
        if stored is None:
            logger.warning("archive_metadata_missing", key=info.key, metadata_key=meta_key)
            return None
        try:
            metadata = PaintingMetadata.from_dict(json.loads(stored.data))
        except (ValueError, ValidationError) as e:
            logger.warning("archive_metadata_invalid", metadata_key=meta_key, error=str(e))
            return None
        return replace(
            metadata,
            image_url=public_url(info.key, self._public_base_url),
            file_size=info.size if info.size is not None else metadata.file_size,
        )

    async def _build_items(self, objects: list[ObjectInfo]) -> list[PaintingMetadata]:
        candidates = [o for o in objects if is_painting_key(o.key)]
        results = await asyncio.gather(
            *(self._load_metadata(o) for o in candidates), return_exceptions=True
        )
        items = []
        for info, result in zip(candidates, results):
            if isinstance(result, BaseException):
                logger.warning("archive_metadata_load_failed", key=info.key, error=str(result))
                continue
            if result is not None:
                items.append(result)
        return items

    async def _list_range(self, start: date, end: date, limit: int) -> ListImagesResult:
        prefixes = day_prefixes(start, end)
        listings = await asyncio.gather(
            *(self._store.list_objects(prefix=p, limit=MAX_LIST_LIMIT) for p in prefixes)
        )
        upper = date_prefix(next_day(end))
        objects = [o for listing in listings for o in listing.objects if o.key < upper]
        items = await self._build_items(objects)
        items.sort(key=lambda item: item.timestamp, reverse=True)
        logger.debug("archive_fallback_range", days=len(prefixes), found=len(items))
        return ListImagesResult(items=items[:limit], has_more=False)

    async def _list_prefix(self, start: date | None, end: date | None, limit: int) -> ListImagesResult:
        prefix = date_prefix(start) if start else IMAGES_PREFIX
        upper = date_prefix(next_day(end)) if end else None
        collected: list[PaintingMetadata] = []
        store_cursor: str | None = None
        more_pages = False

        while len(collected) < limit:
            remaining = limit - len(collected)
            request_limit = min(max(remaining * FETCH_MULTIPLIER, remaining), MAX_LIST_LIMIT)
            listing = await self._store.list_objects(
                prefix=prefix, limit=request_limit, cursor=store_cursor
            )
            objects = listing.objects
            if upper is not None:
                objects = [o for o in objects if o.key < upper]
            collected.extend(await self._build_items(objects))

            past_upper = upper is not None and len(objects) < len(listing.objects)
            if listing.truncated and listing.cursor and not past_upper:
                store_cursor = listing.cursor
                more_pages = True
            else:
                more_pages = False
                break

        items = collected[:limit]
        has_more = bool(items) and (len(collected) > limit or more_pages)
        logger.debug(
            "archive_fallback_prefix", prefix=prefix, returned=len(items), has_more=has_more
        )
        return ListImagesResult(items=items, has_more=has_more)
