"""Dual-backend archive writes.

The object store is authoritative; the relational index is a rebuildable
cache of it. Writes are ordered image -> metadata -> index. A failed
metadata write deletes the image again, so no image key is ever visible
without its metadata. Indexing failures are reported but not fatal.
"""

import json
from dataclasses import dataclass, replace

from painter.archive.keys import build_painting_key, metadata_key, public_url
from painter.data.object_store import ObjectStore
from painter.data.paintings import PaintingRepository
from painter.exceptions import PainterError, StorageError
from painter.logging import get_logger
from painter.models import PaintingMetadata

logger = get_logger(__name__)

IMAGE_CONTENT_TYPE = "image/webp"
METADATA_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class StoredPainting:
    """Where an archived painting landed."""

    image_key: str
    metadata_key: str
    image_url: str
    metadata_url: str
    metadata: PaintingMetadata


class ArchiveWriter:
    """Writes paintings to the object store and indexes them.

    Args:
        store: Object store holding images and metadata blobs.
        paintings: Relational painting index.
        public_base_url: Optional CDN base for public URLs.
    """

    def __init__(
        self,
        store: ObjectStore,
        paintings: PaintingRepository,
        public_base_url: str = "",
    ) -> None:
        self._store = store
        self._paintings = paintings
        self._public_base_url = public_base_url

    async def store_image_with_metadata(
        self,
        minute_bucket: str,
        filename: str,
        image_bytes: bytes,
        metadata: PaintingMetadata,
    ) -> StoredPainting:
        """Write image then metadata; roll the image back if metadata fails.

        The metadata blob is written with its final image_url.

        Raises:
            StorageError: either write failed. After a metadata failure the
                image has been deleted again (best-effort).
        """
        image_key = build_painting_key(minute_bucket, filename)
        meta_key = metadata_key(image_key)
        image_url = public_url(image_key, self._public_base_url)
        stored_metadata = replace(metadata, image_url=image_url)

        await self._store.put(image_key, image_bytes, IMAGE_CONTENT_TYPE)
        logger.info("painting_image_stored", key=image_key, size=len(image_bytes))

        body = json.dumps(stored_metadata.to_dict()).encode("utf-8")
        try:
            await self._store.put(meta_key, body, METADATA_CONTENT_TYPE)
        except StorageError as e:
            logger.error("painting_metadata_store_failed", key=meta_key, error=e.message)
            await self._rollback_image(image_key)
            raise StorageError(
                f"metadata write failed, image rolled back: {e.message}",
                op="put",
                key=meta_key,
            ) from e

        logger.info("painting_metadata_stored", key=meta_key)
        return StoredPainting(
            image_key=image_key,
            metadata_key=meta_key,
            image_url=image_url,
            metadata_url=public_url(meta_key, self._public_base_url),
            metadata=stored_metadata,
        )

    async def _rollback_image(self, image_key: str) -> None:
        try:
            await self._store.delete(image_key)
        except StorageError as e:
            # Orphaned image; listing skips images whose metadata is missing
            logger.error("painting_image_rollback_failed", key=image_key, error=e.message)
            return
        logger.warning("painting_image_rolled_back", key=image_key)

    async def index_painting(self, stored: StoredPainting) -> bool:
        """Insert the index row. Soft failure: logs and returns False."""
        try:
            await self._paintings.insert(stored.metadata, stored.image_key)
        except PainterError as e:
            logger.warning(
                "painting_index_failed",
                key=stored.image_key,
                painting_id=stored.metadata.id,
                kind=e.kind,
                error=e.message,
            )
            return False
        logger.info("painting_indexed", painting_id=stored.metadata.id)
        return True
