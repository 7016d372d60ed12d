"""Object store abstraction for painting images and metadata blobs.

Keys are slash-separated strings listed in lexicographic order, the same
model as S3-compatible buckets. LocalObjectStore keeps objects as files
under a root directory and moves blocking I/O off the event loop with
asyncio.to_thread.
"""

import asyncio
import mimetypes
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from painter.exceptions import StorageError
from painter.logging import get_logger

logger = get_logger(__name__)

MAX_LIST_LIMIT = 1000


@dataclass(frozen=True)
class ObjectInfo:
    """Listing entry."""

    key: str
    size: int | None
    uploaded: float | None = None


@dataclass(frozen=True)
class StoredObject:
    """Object body with its content type."""

    key: str
    data: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ObjectListing:
    """One page of keys. cursor resumes listing when truncated is True."""

    objects: list[ObjectInfo]
    truncated: bool
    cursor: str | None = None


class ObjectStore(ABC):
    """Minimal bucket interface used by the archive."""

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str) -> None:
        """Write data at key, replacing any existing object."""
        ...

    @abstractmethod
    async def get(self, key: str) -> StoredObject | None:
        """Read key, or None when it does not exist."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key; deleting a missing key is not an error."""
        ...

    @abstractmethod
    async def list_objects(
        self,
        prefix: str = "",
        limit: int = MAX_LIST_LIMIT,
        start_after: str | None = None,
        cursor: str | None = None,
    ) -> ObjectListing:
        """List keys under prefix in ascending order, at most limit per call."""
        ...


def _guess_content_type(key: str) -> str:
    if key.endswith(".webp"):
        return "image/webp"
    content_type, _ = mimetypes.guess_type(key)
    return content_type or "application/octet-stream"


class LocalObjectStore(ObjectStore):
    """Filesystem-backed object store rooted at a directory.

    Args:
        root: Directory holding the objects; created on first write.
    """

    def __init__(self, root: str) -> None:
        self._root = Path(root).resolve()

    def _path_for(self, key: str) -> Path:
        path = (self._root / key).resolve()
        if path != self._root and self._root not in path.parents:
            raise StorageError(f"key escapes store root: {key}", op="get", key=key)
        return path

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        path = self._path_for(key)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_name(path.name + ".tmp")
            tmp.write_bytes(data)
            os.replace(tmp, path)

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            raise StorageError(f"put failed: {e}", op="put", key=key) from e
        logger.debug("object_put", key=key, size=len(data), content_type=content_type)

    async def get(self, key: str) -> StoredObject | None:
        path = self._path_for(key)
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"get failed: {e}", op="get", key=key) from e
        return StoredObject(key=key, data=data, content_type=_guess_content_type(key))

    async def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(path.unlink, True)
        except OSError as e:
            raise StorageError(f"delete failed: {e}", op="delete", key=key) from e
        logger.debug("object_deleted", key=key)

    def _scan(self, prefix: str) -> list[ObjectInfo]:
        if not self._root.exists():
            return []
        found: list[ObjectInfo] = []
        for dirpath, _, filenames in os.walk(self._root):
            for filename in filenames:
                if filename.endswith(".tmp"):
                    continue
                full = Path(dirpath) / filename
                key = full.relative_to(self._root).as_posix()
                if key.startswith(prefix):
                    stat = full.stat()
                    found.append(ObjectInfo(key=key, size=stat.st_size, uploaded=stat.st_mtime))
        found.sort(key=lambda info: info.key)
        return found

    async def list_objects(
        self,
        prefix: str = "",
        limit: int = MAX_LIST_LIMIT,
        start_after: str | None = None,
        cursor: str | None = None,
    ) -> ObjectListing:
        limit = max(1, min(limit, MAX_LIST_LIMIT))
        after = start_after or cursor
        try:
            objects = await asyncio.to_thread(self._scan, prefix)
        except OSError as e:
            raise StorageError(f"list failed: {e}", op="list", key=prefix) from e
        if after:
            objects = [o for o in objects if o.key > after]
        page = objects[:limit]
        truncated = len(objects) > limit
        return ObjectListing(
            objects=page,
            truncated=truncated,
            cursor=page[-1].key if truncated and page else None,
        )
