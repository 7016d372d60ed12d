"""Tests for ArchiveWriter.

Tests verify:
- Image and metadata land under the day prefix, metadata with its final URL
- A failed metadata write rolls the image back and raises StorageError
- A listing after such a failure shows no orphan
- Index failures are soft
"""

import json
from unittest.mock import AsyncMock

import pytest

from conftest import InMemoryObjectStore, make_metadata

from painter.archive.query import ArchiveQueryEngine
from painter.archive.writer import ArchiveWriter
from painter.data.database import PainterDatabase
from painter.data.paintings import PaintingRepository
from painter.exceptions import StorageError

MINUTE = "2025-01-02T03:04"
FILENAME = "DOOM_202501020304_abcd1234_0123456789ab.webp"
IMAGE_KEY = f"images/2025/01/02/{FILENAME}"
META_KEY = "images/2025/01/02/DOOM_202501020304_abcd1234_0123456789ab.json"


class TestStoreImageWithMetadata:
    """Tests for the ordered image -> metadata write."""

    @pytest.mark.asyncio
    async def test_writes_image_and_metadata(
        self, object_store: InMemoryObjectStore, database: PainterDatabase
    ) -> None:
        writer = ArchiveWriter(object_store, PaintingRepository(database))

        stored = await writer.store_image_with_metadata(MINUTE, FILENAME, b"RIFF", make_metadata(MINUTE))

        assert stored.image_key == IMAGE_KEY
        assert stored.metadata_key == META_KEY
        assert stored.image_url == f"/api/r2/{IMAGE_KEY}"
        assert object_store.objects[IMAGE_KEY].content_type == "image/webp"
        body = json.loads(object_store.objects[META_KEY].data)
        assert body["image_url"] == stored.image_url
        assert body["id"] == "DOOM_202501020304_abcd1234_0123456789ab"

    @pytest.mark.asyncio
    async def test_cdn_base_url(
        self, object_store: InMemoryObjectStore, database: PainterDatabase
    ) -> None:
        writer = ArchiveWriter(object_store, PaintingRepository(database), "https://cdn.example")
        stored = await writer.store_image_with_metadata(MINUTE, FILENAME, b"x", make_metadata(MINUTE))
        assert stored.image_url == f"https://cdn.example/{IMAGE_KEY}"

    @pytest.mark.asyncio
    async def test_metadata_failure_rolls_back_image(
        self, object_store: InMemoryObjectStore, database: PainterDatabase
    ) -> None:
        object_store.fail_put_suffix = ".json"
        writer = ArchiveWriter(object_store, PaintingRepository(database))

        with pytest.raises(StorageError) as exc_info:
            await writer.store_image_with_metadata(MINUTE, FILENAME, b"x", make_metadata(MINUTE))

        assert exc_info.value.key == META_KEY
        assert IMAGE_KEY not in object_store.objects

    @pytest.mark.asyncio
    async def test_no_orphan_visible_after_failure(
        self, object_store: InMemoryObjectStore, database: PainterDatabase
    ) -> None:
        paintings = PaintingRepository(database)
        object_store.fail_put_suffix = ".json"
        writer = ArchiveWriter(object_store, paintings)
        with pytest.raises(StorageError):
            await writer.store_image_with_metadata(MINUTE, FILENAME, b"x", make_metadata(MINUTE))

        broken_index = AsyncMock(spec=PaintingRepository)
        broken_index.list_page.side_effect = StorageError("down", op="list")
        result = await ArchiveQueryEngine(broken_index, object_store).list_images()

        assert result.items == []
        assert result.has_more is False

    @pytest.mark.asyncio
    async def test_image_failure_writes_nothing(self, database: PainterDatabase) -> None:
        store = InMemoryObjectStore()
        store.fail_put_suffix = ".webp"
        writer = ArchiveWriter(store, PaintingRepository(database))

        with pytest.raises(StorageError):
            await writer.store_image_with_metadata(MINUTE, FILENAME, b"x", make_metadata(MINUTE))

        assert store.objects == {}


class TestIndexPainting:
    """Tests for the soft-failing index step."""

    @pytest.mark.asyncio
    async def test_indexes_row(
        self, object_store: InMemoryObjectStore, database: PainterDatabase
    ) -> None:
        paintings = PaintingRepository(database)
        writer = ArchiveWriter(object_store, paintings)
        stored = await writer.store_image_with_metadata(MINUTE, FILENAME, b"x", make_metadata(MINUTE))

        assert await writer.index_painting(stored) is True

        row = await paintings.find_by_id(stored.metadata.id)
        assert row is not None
        assert row.r2_key == IMAGE_KEY
        assert row.image_url == stored.image_url

    @pytest.mark.asyncio
    async def test_index_failure_is_soft(self, object_store: InMemoryObjectStore) -> None:
        paintings = AsyncMock(spec=PaintingRepository)
        paintings.insert.side_effect = StorageError("locked", op="put")
        writer = ArchiveWriter(object_store, paintings)
        stored = await writer.store_image_with_metadata(MINUTE, FILENAME, b"x", make_metadata(MINUTE))

        assert await writer.index_painting(stored) is False
        assert META_KEY in object_store.objects
