"""Book caches: an injectable interface, an in-memory and an on-disk store."""

import hashlib
import logging
import shutil
from datetime import datetime
from functools import partial
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from epub_ingest.cache.models import (
    CachedBook,
    CachedChapter,
    CachedResource,
    CacheIndex,
    CacheMetadata,
)
from epub_ingest.models.book import Book, Chapter, Resource
from epub_ingest.models.config import IngestConfig

log = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def _fingerprint(config: IngestConfig | None) -> str:
    return (config or IngestConfig()).fingerprint()


def file_digest(path: Path) -> str:
    """SHA-256 of the file at *path*, as hex."""
    digest = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(partial(f.read, CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


class BookCache(Protocol):
    """Key to Book store with explicit invalidation.

    A book is only served back for the config it was ingested with.
    """

    def get(self, key: str, config: IngestConfig | None = None) -> Book | None: ...

    def put(self, key: str, book: Book, config: IngestConfig | None = None) -> None: ...

    def invalidate(self, key: str) -> None: ...

    def clear(self) -> int: ...


class MemoryBookCache:
    """Process-local cache; lives as long as the instance."""

    def __init__(self):
        self._books: dict[str, tuple[str, Book]] = {}

    def get(self, key: str, config: IngestConfig | None = None) -> Book | None:
        entry = self._books.get(key)
        if entry is None or entry[0] != _fingerprint(config):
            return None
        return entry[1]

    def put(self, key: str, book: Book, config: IngestConfig | None = None) -> None:
        self._books[key] = (_fingerprint(config), book)

    def invalidate(self, key: str) -> None:
        self._books.pop(key, None)

    def clear(self) -> int:
        count = len(self._books)
        self._books.clear()
        return count


class CacheManager:
    """On-disk cache of ingested books, keyed by archive path.

    Layout under ``{project_dir}/.epub_ingest_cache``::

        index.json                      archive path -> digest
        books/<digest>/structure.json   book shape, resources by name
        books/<digest>/resources/<name> resource content

    An entry is served only while the archive still matches the size and
    mtime it was cached with, or failing that its digest, and only for the
    config it was ingested with.
    """

    CACHE_DIR = ".epub_ingest_cache"
    INDEX_FILE = "index.json"
    STRUCTURE_FILE = "structure.json"
    CACHE_VERSION = "1.1"

    def __init__(self, project_dir: Path):
        self.cache_root = project_dir / self.CACHE_DIR
        self.index_path = self.cache_root / self.INDEX_FILE
        self._index: CacheIndex | None = None

    @property
    def index(self) -> CacheIndex:
        if self._index is None:
            self._index = self._read_index()
        return self._index

    def _read_index(self) -> CacheIndex:
        if not self.index_path.exists():
            return CacheIndex()
        try:
            return CacheIndex.model_validate_json(self.index_path.read_text())
        except ValidationError:
            log.warning("Cache index %s is corrupt, starting afresh", self.index_path)
            return CacheIndex()

    def _write_index(self) -> None:
        self.cache_root.mkdir(parents=True, exist_ok=True)
        self.index_path.write_text(self.index.model_dump_json(indent=2))

    def _entry_dir(self, digest: str) -> Path:
        return self.cache_root / "books" / digest

    def _read_structure(self, file_path: Path) -> tuple[CachedBook, Path] | None:
        digest = self.index.entries.get(str(file_path.resolve()))
        if digest is None:
            return None

        structure_path = self._entry_dir(digest) / self.STRUCTURE_FILE
        if not structure_path.exists():
            return None
        try:
            return CachedBook.model_validate_json(structure_path.read_text()), structure_path
        except ValidationError:
            log.warning("Cached structure %s is unreadable", structure_path)
            return None

    def is_fresh(self, file_path: Path, config: IngestConfig | None = None) -> bool:
        """Whether a cached entry for *config* exists and still matches the archive on disk."""
        if not file_path.exists():
            return False
        loaded = self._read_structure(file_path)
        if loaded is None:
            return False

        cached, structure_path = loaded
        recorded = cached.cache_metadata
        if recorded.config_fingerprint != _fingerprint(config):
            log.debug("Cached %s was ingested with a different config", file_path)
            return False

        stat = file_path.stat()
        if recorded.file_size == stat.st_size and recorded.file_mtime == stat.st_mtime:
            return True

        if recorded.file_hash != file_digest(file_path):
            log.debug("Archive %s changed since it was cached", file_path)
            return False

        # touched but unchanged; remember the new mtime
        recorded.file_mtime = stat.st_mtime
        structure_path.write_text(cached.model_dump_json(indent=2))
        return True

    def get(self, key: str, config: IngestConfig | None = None) -> Book | None:
        """Cached book for the archive at *key*, if still fresh for *config*."""
        file_path = Path(key)
        if not self.is_fresh(file_path, config):
            return None

        cached, structure_path = self._read_structure(file_path)
        resource_dir = structure_path.parent / "resources"

        resources: dict[str, Resource] = {}
        for entry in cached.resources:
            content_path = resource_dir / entry.resource_name
            if not content_path.exists():
                log.warning("Cached resource %s is missing", content_path)
                return None
            data = content_path.read_bytes()
            resources[entry.resource_name] = Resource(
                id=entry.id,
                zip_path=entry.zip_path,
                resource_name=entry.resource_name,
                content=data if entry.binary else data.decode("utf-8"),
                media_type=entry.media_type,
            )

        return Book(
            book_name=cached.book_name,
            metadata=cached.metadata,
            resources=list(resources.values()),
            chapters=[
                Chapter(
                    id=chapter.id,
                    play_order=chapter.play_order,
                    title=chapter.title,
                    sections=[resources[name] for name in chapter.sections],
                )
                for chapter in cached.chapters
            ],
            cover=resources.get(cached.cover) if cached.cover else None,
        )

    def put(self, key: str, book: Book, config: IngestConfig | None = None) -> None:
        """Store *book* as the form of the archive at *key* ingested under *config*."""
        file_path = Path(key).resolve()
        stat = file_path.stat()
        digest = file_digest(file_path)

        structure = CachedBook(
            cache_metadata=CacheMetadata(
                file_path=str(file_path),
                file_hash=digest,
                file_size=stat.st_size,
                file_mtime=stat.st_mtime,
                config_fingerprint=_fingerprint(config),
                cached_at=datetime.now(),
                cache_version=self.CACHE_VERSION,
            ),
            book_name=book.book_name,
            metadata=book.metadata,
            resources=[
                CachedResource(
                    id=r.id,
                    zip_path=r.zip_path,
                    resource_name=r.resource_name,
                    media_type=r.media_type,
                    binary=r.is_binary,
                )
                for r in book.resources
            ],
            chapters=[
                CachedChapter(
                    id=ch.id,
                    play_order=ch.play_order,
                    title=ch.title,
                    sections=[s.resource_name for s in ch.sections],
                )
                for ch in book.chapters
            ],
            cover=book.cover.resource_name if book.cover else None,
        )

        entry_dir = self._entry_dir(digest)
        resource_dir = entry_dir / "resources"
        resource_dir.mkdir(parents=True, exist_ok=True)
        for resource in book.resources:
            content = resource.content
            if isinstance(content, str):
                content = content.encode("utf-8")
            (resource_dir / resource.resource_name).write_bytes(content)
        (entry_dir / self.STRUCTURE_FILE).write_text(structure.model_dump_json(indent=2))

        self.index.entries[str(file_path)] = digest
        self._write_index()
        log.debug("Cached %s as %s", file_path, digest[:12])

    def invalidate(self, key: str) -> None:
        """Forget the cached book for *key*."""
        digest = self.index.entries.pop(str(Path(key).resolve()), None)
        if digest is None:
            return
        if digest not in self.index.entries.values():
            shutil.rmtree(self._entry_dir(digest), ignore_errors=True)
        self._write_index()

    def clear(self) -> int:
        """Delete the whole cache directory. Returns how many books it held."""
        if not self.cache_root.exists():
            return 0

        books_dir = self.cache_root / "books"
        count = sum(1 for _ in books_dir.iterdir()) if books_dir.exists() else 0
        shutil.rmtree(self.cache_root)
        self._index = None
        return count

    def entries(self) -> list[tuple[str, str]]:
        """Cached archives as (path, digest) pairs."""
        return list(self.index.entries.items())
