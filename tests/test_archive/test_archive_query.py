"""Tests for ArchiveQueryEngine.

Tests verify:
- Primary path pages through the index with an opaque cursor
- Invalid input (dates, ranges, cursors) is rejected before any query
- Unusable index rows are dropped from the page
- Index failure falls back to object-store listing:
  - date range: per-day prefixes, newest first, no cursor
  - single prefix: paged listing in key order, has_more from the store
  - images without readable metadata are skipped
  - a real index that was never connected or was closed also falls back
"""

from unittest.mock import AsyncMock

import pytest

from conftest import InMemoryObjectStore, make_metadata

from painter.archive.query import MAX_RANGE_DAYS, ArchiveQueryEngine, ListImagesResult
from painter.archive.writer import ArchiveWriter
from painter.data.database import PainterDatabase
from painter.data.paintings import PageCursor, PaintingRepository, encode_cursor
from painter.exceptions import StorageError, ValidationError


async def _archive(
    writer: ArchiveWriter, minute_bucket: str, suffix: str, index: bool = True
) -> str:
    metadata = make_metadata(minute_bucket, suffix)
    stored = await writer.store_image_with_metadata(
        minute_bucket, f"{metadata.id}.webp", b"img", metadata
    )
    if index:
        await writer.index_painting(stored)
    return metadata.id


def _broken_index() -> AsyncMock:
    paintings = AsyncMock(spec=PaintingRepository)
    paintings.list_page.side_effect = StorageError("index down", op="list", key="paintings")
    return paintings


class TestListImagesResult:
    """Tests for the response shape."""

    def test_cursor_omitted_when_absent(self) -> None:
        assert ListImagesResult().to_dict() == {"items": [], "has_more": False}
        assert ListImagesResult(has_more=True, cursor="abc").to_dict()["cursor"] == "abc"


class TestPrimaryPath:
    """Tests for index-backed listing."""

    @pytest.mark.asyncio
    async def test_pages_with_cursor(
        self, object_store: InMemoryObjectStore, database: PainterDatabase
    ) -> None:
        paintings = PaintingRepository(database)
        writer = ArchiveWriter(object_store, paintings)
        ids = [await _archive(writer, f"2025-01-02T0{h}:00", str(h)) for h in range(3)]
        engine = ArchiveQueryEngine(paintings, object_store)

        first = await engine.list_images(limit=2)
        second = await engine.list_images(limit=2, cursor=first.cursor)

        assert [i.id for i in first.items] == [ids[2], ids[1]]
        assert first.has_more is True
        assert [i.id for i in second.items] == [ids[0]]
        assert second.has_more is False
        assert second.cursor is None
        assert first.items[0].image_url.startswith("/api/r2/images/2025/01/02/")

    @pytest.mark.asyncio
    async def test_get_painting(
        self, object_store: InMemoryObjectStore, database: PainterDatabase
    ) -> None:
        paintings = PaintingRepository(database)
        painting_id = await _archive(ArchiveWriter(object_store, paintings), "2025-01-02T03:04", "")
        engine = ArchiveQueryEngine(paintings, object_store)

        painting = await engine.get_painting(painting_id)

        assert painting is not None
        assert painting.minute_bucket == "2025-01-02T03:04"
        assert await engine.get_painting("DOOM_missing") is None

    @pytest.mark.asyncio
    async def test_bad_row_is_dropped(
        self, object_store: InMemoryObjectStore, database: PainterDatabase
    ) -> None:
        paintings = PaintingRepository(database)
        writer = ArchiveWriter(object_store, paintings)
        good = await _archive(writer, "2025-01-02T01:00", "1")
        bad = await _archive(writer, "2025-01-02T02:00", "2")
        await database.db.execute(
            "UPDATE paintings SET visual_params_json = 'nope' WHERE id = ?", (bad,)
        )
        await database.db.commit()

        result = await ArchiveQueryEngine(paintings, object_store).list_images()

        assert [i.id for i in result.items] == [good]

    @pytest.mark.asyncio
    async def test_date_filter(
        self, object_store: InMemoryObjectStore, database: PainterDatabase
    ) -> None:
        paintings = PaintingRepository(database)
        writer = ArchiveWriter(object_store, paintings)
        await _archive(writer, "2025-01-01T12:00", "1")
        wanted = await _archive(writer, "2025-01-02T12:00", "2")

        result = await ArchiveQueryEngine(paintings, object_store).list_images(
            date_from="2025-01-02", date_to="2025-01-02"
        )

        assert [i.id for i in result.items] == [wanted]


class TestValidation:
    """Tests for input rejected up front."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"date_from": "2025-1-2"},
            {"date_to": "2025-02-30"},
            {"date_from": "2025-01-03", "date_to": "2025-01-02"},
            {"date_from": "2024-01-01", "date_to": "2025-12-31"},
            {"cursor": "not-a-cursor"},
        ],
    )
    async def test_invalid_input(self, object_store: InMemoryObjectStore, kwargs: dict) -> None:
        paintings = _broken_index()
        engine = ArchiveQueryEngine(paintings, object_store)

        with pytest.raises(ValidationError):
            await engine.list_images(**kwargs)

        paintings.list_page.assert_not_awaited()

    def test_range_limit(self) -> None:
        assert MAX_RANGE_DAYS == 366


class TestFallback:
    """Tests for object-store listing when the index fails."""

    @pytest.mark.asyncio
    async def test_range_newest_first(self, object_store: InMemoryObjectStore) -> None:
        writer = ArchiveWriter(object_store, _broken_index())
        await _archive(writer, "2025-01-01T10:00", "1", index=False)
        second = await _archive(writer, "2025-01-02T10:00", "2", index=False)
        third = await _archive(writer, "2025-01-02T11:00", "3", index=False)
        await _archive(writer, "2025-01-03T10:00", "4", index=False)
        engine = ArchiveQueryEngine(_broken_index(), object_store)

        result = await engine.list_images(date_from="2025-01-02", date_to="2025-01-02")

        assert [i.id for i in result.items] == [third, second]
        assert result.has_more is False
        assert result.cursor is None
        assert result.items[0].file_size == 3

    @pytest.mark.asyncio
    async def test_range_cut_to_limit(self, object_store: InMemoryObjectStore) -> None:
        writer = ArchiveWriter(object_store, _broken_index())
        ids = [await _archive(writer, f"2025-01-0{d}T10:00", str(d), index=False) for d in (1, 2, 3)]
        engine = ArchiveQueryEngine(_broken_index(), object_store)

        result = await engine.list_images(limit=2, date_from="2025-01-01", date_to="2025-01-03")

        assert [i.id for i in result.items] == [ids[2], ids[1]]
        prefixes = sorted(call["prefix"] for call in object_store.list_calls)
        assert prefixes == ["images/2025/01/01/", "images/2025/01/02/", "images/2025/01/03/"]

    @pytest.mark.asyncio
    async def test_prefix_pages_in_key_order(self, object_store: InMemoryObjectStore) -> None:
        writer = ArchiveWriter(object_store, _broken_index())
        ids = [await _archive(writer, f"2025-01-02T0{h}:00", str(h), index=False) for h in range(5)]
        engine = ArchiveQueryEngine(_broken_index(), object_store)

        result = await engine.list_images(limit=2)

        assert [i.id for i in result.items] == ids[:2]
        assert result.has_more is True
        assert result.cursor is None

    @pytest.mark.asyncio
    async def test_prefix_exhausted(self, object_store: InMemoryObjectStore) -> None:
        writer = ArchiveWriter(object_store, _broken_index())
        ids = [await _archive(writer, f"2025-01-02T0{h}:00", str(h), index=False) for h in range(3)]
        engine = ArchiveQueryEngine(_broken_index(), object_store)

        result = await engine.list_images(limit=10, date_from="2025-01-02")

        assert [i.id for i in result.items] == ids
        assert result.has_more is False
        assert object_store.list_calls[0]["prefix"] == "images/2025/01/02/"

    @pytest.mark.asyncio
    async def test_prefix_honours_to(self, object_store: InMemoryObjectStore) -> None:
        writer = ArchiveWriter(object_store, _broken_index())
        await _archive(writer, "2025-01-02T10:00", "1", index=False)
        engine = ArchiveQueryEngine(_broken_index(), object_store)

        result = await engine.list_images(date_to="2025-01-01")

        assert result.items == []
        assert result.has_more is False

    @pytest.mark.asyncio
    async def test_unreadable_metadata_is_skipped(self, object_store: InMemoryObjectStore) -> None:
        writer = ArchiveWriter(object_store, _broken_index())
        good = await _archive(writer, "2025-01-02T01:00", "1", index=False)
        missing = await _archive(writer, "2025-01-02T02:00", "2", index=False)
        corrupt = await _archive(writer, "2025-01-02T03:00", "3", index=False)
        failing = await _archive(writer, "2025-01-02T04:00", "4", index=False)
        await object_store.delete(f"images/2025/01/02/{missing}.json")
        await object_store.put(f"images/2025/01/02/{corrupt}.json", b"{not json", "application/json")
        object_store.fail_get_keys.add(f"images/2025/01/02/{failing}.json")
        engine = ArchiveQueryEngine(_broken_index(), object_store)

        result = await engine.list_images(limit=10)

        assert [i.id for i in result.items] == [good]

    @pytest.mark.asyncio
    async def test_cursor_is_ignored(self, object_store: InMemoryObjectStore) -> None:
        writer = ArchiveWriter(object_store, _broken_index())
        painting_id = await _archive(writer, "2025-01-02T01:00", "1", index=False)
        engine = ArchiveQueryEngine(_broken_index(), object_store)

        result = await engine.list_images(cursor=encode_cursor(PageCursor(ts=1, id="x")))

        assert [i.id for i in result.items] == [painting_id]
        assert result.cursor is None

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self, object_store: InMemoryObjectStore) -> None:
        object_store.fail_list = True
        engine = ArchiveQueryEngine(_broken_index(), object_store)
        with pytest.raises(StorageError):
            await engine.list_images()


class TestFallbackFromRealIndex:
    """Tests for fallback driven by an actual PaintingRepository that cannot serve."""

    @pytest.mark.asyncio
    async def test_closed_connection(
        self, object_store: InMemoryObjectStore, database: PainterDatabase
    ) -> None:
        paintings = PaintingRepository(database)
        writer = ArchiveWriter(object_store, paintings)
        painting_id = await _archive(writer, "2025-01-02T03:04", "1")
        await database.close()
        engine = ArchiveQueryEngine(paintings, object_store)

        result = await engine.list_images(limit=10)

        assert [i.id for i in result.items] == [painting_id]
        assert result.cursor is None

    @pytest.mark.asyncio
    async def test_connection_closed_underneath(
        self, object_store: InMemoryObjectStore
    ) -> None:
        database = PainterDatabase(":memory:")
        await database.connect()
        paintings = PaintingRepository(database)
        writer = ArchiveWriter(object_store, paintings)
        painting_id = await _archive(writer, "2025-01-02T03:04", "1")
        await database.db.close()
        engine = ArchiveQueryEngine(paintings, object_store)

        result = await engine.list_images(date_from="2025-01-02", date_to="2025-01-02")

        assert [i.id for i in result.items] == [painting_id]
        assert result.has_more is False

    @pytest.mark.asyncio
    async def test_never_connected(self, object_store: InMemoryObjectStore) -> None:
        paintings = PaintingRepository(PainterDatabase(":memory:"))
        writer = ArchiveWriter(object_store, paintings)
        painting_id = await _archive(writer, "2025-01-02T03:04", "1", index=False)
        engine = ArchiveQueryEngine(paintings, object_store)

        result = await engine.list_images()

        assert [i.id for i in result.items] == [painting_id]
