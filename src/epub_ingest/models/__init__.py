"""Data models."""

from epub_ingest.models.book import (
    Book,
    BookMetadata,
    Chapter,
    NavPoint,
    Resource,
)
from epub_ingest.models.config import IngestConfig
from epub_ingest.models.output import BookOutput, ChapterEntry, ResourceEntry
from epub_ingest.models.package import (
    ContainerDescriptor,
    ManifestItem,
    NcxNavPoint,
    PackageDocument,
    PackageMetadata,
    TocDocument,
)

__all__ = [
    # Book models
    "Book",
    "BookMetadata",
    "Chapter",
    "NavPoint",
    "Resource",
    # Package document models
    "ContainerDescriptor",
    "ManifestItem",
    "NcxNavPoint",
    "PackageDocument",
    "PackageMetadata",
    "TocDocument",
    # Configuration
    "IngestConfig",
    # Output models
    "BookOutput",
    "ChapterEntry",
    "ResourceEntry",
]
