"""Data models for an ingested book."""

from pydantic import BaseModel, ConfigDict, Field

from epub_ingest.errors import ResourceNotFound

XHTML_MEDIA_TYPE = "application/xhtml+xml"


class NavPoint(BaseModel):
    """Resolved table of contents entry."""

    id: str
    play_order: int
    target: str  # archive path, fragment stripped
    title: str | None = None
    level: int = 0
    children: list["NavPoint"] = Field(default_factory=list)


class Resource(BaseModel):
    """One manifest-backed unit of content."""

    model_config = ConfigDict(frozen=True)

    id: str
    zip_path: str = Field(exclude=True)
    resource_name: str
    content: str | bytes
    media_type: str

    @property
    def is_binary(self) -> bool:
        return isinstance(self.content, bytes)

    @property
    def is_xhtml(self) -> bool:
        return self.media_type == XHTML_MEDIA_TYPE


class Chapter(BaseModel):
    """Contiguous run of spine documents anchored at one NavPoint."""

    id: str
    play_order: int
    title: str | None = None
    sections: list[Resource] = Field(min_length=1)


class BookMetadata(BaseModel):
    """Book-level metadata."""

    title: str
    creator: str | None = None
    language: str | None = None
    identifier: str | None = None
    publisher: str | None = None
    date: str | None = None


class Book(BaseModel):
    """Complete ingested book."""

    book_name: str
    metadata: BookMetadata
    resources: list[Resource]
    chapters: list[Chapter]
    cover: Resource | None = None

    def get_resource(self, resource_name: str) -> Resource | None:
        """Look up a resource by canonical name."""
        for resource in self.resources:
            if resource.resource_name == resource_name:
                return resource
        return None

    def remove_resource(self, resource_name: str) -> "Book":
        """Return a copy of the book without the named resource.

        The resource also leaves every chapter it belongs to, and chapters
        left without sections are dropped.
        """
        if self.get_resource(resource_name) is None:
            raise ResourceNotFound(resource_name, f"resource not in book: {resource_name}")

        chapters = []
        for chapter in self.chapters:
            sections = [s for s in chapter.sections if s.resource_name != resource_name]
            if sections:
                chapters.append(chapter.model_copy(update={"sections": sections}))

        cover = self.cover
        if cover is not None and cover.resource_name == resource_name:
            cover = None

        return self.model_copy(
            update={
                "resources": [r for r in self.resources if r.resource_name != resource_name],
                "chapters": chapters,
                "cover": cover,
            }
        )
