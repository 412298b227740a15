"""Exceptions raised while ingesting an EPUB archive.

Every failure is fatal to the ingestion of the current archive. Nothing is
retried and no partial book is ever returned.
"""


class EpubIngestError(Exception):
    """Base class for all ingestion failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.archive: str | None = None

    def with_archive(self, archive: str) -> "EpubIngestError":
        """Attach the archive path so the error can be diagnosed on its own."""
        if self.archive is None:
            self.archive = archive
        return self

    def __str__(self) -> str:
        if self.archive:
            return f"{self.archive}: {self.message}"
        return self.message


class InvalidArchive(EpubIngestError):
    """The input is not a readable ZIP archive."""


class MalformedContainer(EpubIngestError):
    """META-INF/container.xml is unparseable or lacks a rootfile."""


class SchemaViolation(EpubIngestError):
    """A package or TOC document is missing a required field."""

    def __init__(self, document: str, field: str, reason: str = "required field missing"):
        super().__init__(f"{document}: {field}: {reason}")
        self.document = document
        self.field = field


class TocNotFound(EpubIngestError):
    """The spine points at a TOC id that is not in the manifest."""


class ResourceNotFound(EpubIngestError):
    """An archive entry does not exist at the computed path."""

    def __init__(self, path: str, message: str | None = None):
        super().__init__(message or f"archive entry not found: {path}")
        self.path = path


class ArchiveEntryMissing(ResourceNotFound):
    """A manifest item references an entry that is not in the archive."""

    def __init__(self, path: str):
        super().__init__(path, f"manifest entry missing from archive: {path}")


class MarkupParseError(EpubIngestError):
    """A markup resource cannot be parsed into a DOM."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"cannot parse markup in {path}: {reason}")
        self.path = path


class TocTargetUnresolved(EpubIngestError):
    """A NavPoint target does not map onto the linear reading sequence."""

    def __init__(self, target: str):
        super().__init__(f"table of contents target not found: {target}")
        self.target = target


class TocOrderViolation(EpubIngestError):
    """A NavPoint target precedes the previous one in reading order."""


class EmptyBook(EpubIngestError):
    """The spine contains no XHTML content documents."""


class ResourceLimitExceeded(EpubIngestError):
    """The manifest declares more resources than the configured cap."""
