"""Cache data models."""

from datetime import datetime

from pydantic import BaseModel, Field

from epub_ingest.models.book import BookMetadata


class CacheMetadata(BaseModel):
    """Size, mtime and digest of the archive, and the config it was ingested with."""

    file_path: str
    file_hash: str
    file_size: int
    file_mtime: float
    config_fingerprint: str = ""
    cached_at: datetime = Field(default_factory=datetime.now)
    cache_version: str = "1.1"


class CachedResource(BaseModel):
    """Resource listing; content lives in a sibling file."""

    id: str
    zip_path: str
    resource_name: str
    media_type: str
    binary: bool = False


class CachedChapter(BaseModel):
    """Chapter with sections referenced by resource name."""

    id: str
    play_order: int
    title: str | None = None
    sections: list[str]


class CachedBook(BaseModel):
    """Complete cached structure of an ingested book."""

    cache_metadata: CacheMetadata
    book_name: str
    metadata: BookMetadata
    resources: list[CachedResource]
    chapters: list[CachedChapter]
    cover: str | None = None


class CacheIndex(BaseModel):
    """Maps each cached archive path to its content digest."""

    entries: dict[str, str] = Field(default_factory=dict)
