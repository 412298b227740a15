"""EPUB ingestion: archive in, paginated and normalized book out."""

import logging
import posixpath
from pathlib import Path

from epub_ingest.cache.manager import BookCache
from epub_ingest.core.archive import Archive
from epub_ingest.core.container_reader import (
    read_container_descriptor,
    read_package_document,
    read_toc_document,
)
from epub_ingest.core.identity import build_metadata, sanitize_book_name
from epub_ingest.core.manifest import (
    flatten_nav_points,
    join_path,
    manifest_index,
    nav_points,
    spine_order,
    toc_target_path,
)
from epub_ingest.core.markup_normalizer import normalize
from epub_ingest.core.paginator import paginate
from epub_ingest.core.resource_extractor import extract_resources
from epub_ingest.errors import EpubIngestError, TocTargetUnresolved
from epub_ingest.models.book import Book, Resource
from epub_ingest.models.config import IngestConfig
from epub_ingest.models.package import PackageDocument

log = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".epub",)


def is_supported(path: Path) -> bool:
    return path.suffix.lower() in SUPPORTED_SUFFIXES


class EpubParser:
    """Parse an EPUB archive into a Book."""

    def __init__(self, source: Path | bytes, config: IngestConfig | None = None, name: str | None = None):
        self.source = source
        self.config = config or IngestConfig()
        self.name = name or (str(source) if isinstance(source, Path) else "<memory>")

    def parse(self) -> Book:
        """Run the full pipeline; any failure aborts the whole book."""
        try:
            with Archive(self.source, name=self.name) as archive:
                return self._parse(archive)
        except EpubIngestError as e:
            e.with_archive(self.name)
            raise

    def _parse(self, archive: Archive) -> Book:
        descriptor = read_container_descriptor(archive)
        package_path = descriptor.package_path
        root_path = posixpath.dirname(package_path)

        package = read_package_document(archive, package_path)
        toc = read_toc_document(archive, join_path(root_path, toc_target_path(package)))

        points = nav_points(toc)
        if self.config.include_nested_nav_points:
            points = flatten_nav_points(points)

        resources = extract_resources(
            archive,
            manifest_index(package),
            root_path,
            max_resources=self.config.max_resources,
        )
        resources = normalize(resources, self.config)

        by_path = {resource.zip_path: resource for resource in resources}
        for point in points:
            if point.target not in by_path:
                raise TocTargetUnresolved(point.target)

        by_id = {resource.id: resource for resource in resources}
        spine_resources = [by_id[idref] for idref in spine_order(package) if idref in by_id]
        chapters = paginate(spine_resources, points, strict=self.config.strict_toc_order)

        book = Book(
            book_name=sanitize_book_name(package.metadata.title),
            metadata=build_metadata(package.metadata),
            resources=resources,
            chapters=chapters,
            cover=self._find_cover(package, by_id),
        )
        log.info(
            "Ingested %s: %d resources, %d chapters",
            book.book_name,
            len(book.resources),
            len(book.chapters),
        )
        return book

    def _find_cover(self, package: PackageDocument, by_id: dict[str, Resource]) -> Resource | None:
        """Cover resource, or None when the book declares none that exists."""
        for meta in package.metadata.meta:
            if meta.name == "cover" and meta.content in by_id:
                return by_id[meta.content]
        for item in package.manifest:
            if item.properties and "cover-image" in item.properties.split() and item.id in by_id:
                return by_id[item.id]
        return None


def parse_epub(source: Path | bytes, config: IngestConfig | None = None) -> Book:
    return EpubParser(source, config).parse()


def load_book(path: Path, cache: BookCache | None = None, config: IngestConfig | None = None) -> Book:
    """Ingest *path*, going through *cache* when one is given.

    A cached book is only reused if it was ingested under the same *config*.
    """
    key = str(path.resolve())
    if cache is not None:
        cached = cache.get(key, config)
        if cached is not None:
            log.debug("Cache hit for %s", key)
            return cached

    book = EpubParser(path, config).parse()
    if cache is not None:
        cache.put(key, book, config)
    return book
