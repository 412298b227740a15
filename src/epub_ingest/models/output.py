"""Data models for the written book manifest."""

from datetime import datetime

from pydantic import BaseModel, Field

from epub_ingest.models.book import BookMetadata


class ResourceEntry(BaseModel):
    """Resource listing without content."""

    id: str
    resource_name: str
    media_type: str


class ChapterEntry(BaseModel):
    """Chapter listing with sections referenced by resource name."""

    id: str
    play_order: int
    title: str | None = None
    sections: list[str]


class BookOutput(BaseModel):
    """Complete book manifest (book.json)."""

    book_name: str
    metadata: BookMetadata
    cover: str | None = None
    resources: list[ResourceEntry]
    chapters: list[ChapterEntry]
    source_path: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)
