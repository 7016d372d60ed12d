"""Painting archive -- dual-backend writes and paginated reads."""

from painter.archive.keys import build_painting_key, metadata_key, public_url
from painter.archive.query import ArchiveQueryEngine, ListImagesResult
from painter.archive.writer import ArchiveWriter, StoredPainting

__all__ = [
    "ArchiveQueryEngine",
    "ArchiveWriter",
    "ListImagesResult",
    "StoredPainting",
    "build_painting_key",
    "metadata_key",
    "public_url",
]
