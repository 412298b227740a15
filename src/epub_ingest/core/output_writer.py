"""Write an ingested book to an output directory."""

from datetime import datetime
from pathlib import Path

from epub_ingest.core.renderer import AssetUrlResolver, ResourceUrlResolver, render_chapter
from epub_ingest.models.book import Book, Chapter, Resource
from epub_ingest.models.output import BookOutput, ChapterEntry, ResourceEntry


def build_book_output(book: Book, source_path: Path | None = None) -> BookOutput:
    """Book manifest with resources listed by name and without content."""
    return BookOutput(
        book_name=book.book_name,
        metadata=book.metadata,
        cover=book.cover.resource_name if book.cover else None,
        resources=[
            ResourceEntry(id=r.id, resource_name=r.resource_name, media_type=r.media_type)
            for r in book.resources
        ],
        chapters=[
            ChapterEntry(
                id=chapter.id,
                play_order=chapter.play_order,
                title=chapter.title,
                sections=[section.resource_name for section in chapter.sections],
            )
            for chapter in book.chapters
        ],
        source_path=str(source_path) if source_path else None,
        created_at=datetime.now(),
    )


class OutputWriter:
    """Write a book's resources and manifest under ``{output_dir}/{book_name}``."""

    MANIFEST_FILE = "book.json"

    def __init__(
        self,
        output_dir: Path,
        source_path: Path | None = None,
        resolver: ResourceUrlResolver | None = None,
    ):
        """Set up the writer.

        Args:
            output_dir: Directory that will hold one folder per book
            source_path: Path to the source EPUB, recorded in the manifest
            resolver: Turns resource markers into URLs in rendered chapters
        """
        self.output_dir = output_dir
        self.source_path = source_path
        self.resolver = resolver or AssetUrlResolver()
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def book_dir(self, book: Book) -> Path:
        return self.output_dir / book.book_name

    def write_resource(self, book: Book, resource: Resource) -> Path:
        """Write a single resource to the book's assets folder."""
        assets_dir = self.book_dir(book) / "assets"
        assets_dir.mkdir(parents=True, exist_ok=True)
        filepath = assets_dir / resource.resource_name
        content = resource.content
        filepath.write_bytes(content if isinstance(content, bytes) else content.encode("utf-8"))
        return filepath

    def write_chapter(self, book: Book, number: int, chapter: Chapter) -> Path:
        """Write chapter *number* (1-based) as servable HTML."""
        chapters_dir = self.book_dir(book) / "chapters"
        chapters_dir.mkdir(parents=True, exist_ok=True)
        filepath = chapters_dir / f"{number:03d}.html"
        filepath.write_text(render_chapter(book, chapter, self.resolver), encoding="utf-8")
        return filepath

    def write_manifest(self, book: Book) -> Path:
        """Write book.json for *book*."""
        manifest = build_book_output(book, self.source_path)
        filepath = self.book_dir(book) / self.MANIFEST_FILE
        filepath.parent.mkdir(parents=True, exist_ok=True)
        filepath.write_text(manifest.model_dump_json(indent=2))
        return filepath

    def write_book(self, book: Book) -> Path:
        """Write every resource and chapter, then the manifest. Returns the manifest path."""
        for resource in book.resources:
            self.write_resource(book, resource)
        for number, chapter in enumerate(book.chapters, start=1):
            self.write_chapter(book, number, chapter)
        return self.write_manifest(book)
