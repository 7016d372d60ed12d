"""Persistence layer.

Relational index (aiosqlite) for market snapshots, selected tokens and the
painting archive, plus the object store holding image and metadata blobs.
"""

from painter.data.database import PainterDatabase
from painter.data.object_store import LocalObjectStore, ObjectInfo, ObjectListing, ObjectStore, StoredObject
from painter.data.paintings import PageCursor, PaintingPage, PaintingRepository, PaintingRow, decode_cursor, encode_cursor
from painter.data.snapshots import MarketSnapshotRepository
from painter.data.tokens import TokenRecord, TokenRepository

__all__ = [
    "LocalObjectStore",
    "MarketSnapshotRepository",
    "ObjectInfo",
    "ObjectListing",
    "ObjectStore",
    "PageCursor",
    "PainterDatabase",
    "PaintingPage",
    "PaintingRepository",
    "PaintingRow",
    "StoredObject",
    "TokenRecord",
    "TokenRepository",
    "decode_cursor",
    "encode_cursor",
]
