"""Book identifiers and metadata assembly."""

import re

from epub_ingest.models.book import BookMetadata
from epub_ingest.models.package import PackageMetadata

ILLEGAL_CHARS_RE = re.compile(r'[/?<>\\:*|. "]')
RESOURCE_ILLEGAL_CHARS_RE = re.compile(r'[/?<>\\:*| "]')
CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x80-\x9f]")
RESERVED_NAME_RE = re.compile(r"^(con|prn|aux|nul|com[0-9]|lpt[0-9])(\..*)?$", re.IGNORECASE)


def sanitize_book_name(title: str, replacement: str = "_") -> str:
    """Turn a title into a filesystem and URL safe identifier.

    Safe, but not unique: two titles can sanitize to the same name.
    """
    name = ILLEGAL_CHARS_RE.sub(replacement, title)
    name = CONTROL_CHARS_RE.sub(replacement, name)
    return RESERVED_NAME_RE.sub(replacement, name)


def sanitize_resource_name(name: str, replacement: str = "_") -> str:
    """Like sanitize_book_name, but keeps dots so extensions survive."""
    name = RESOURCE_ILLEGAL_CHARS_RE.sub(replacement, name)
    name = CONTROL_CHARS_RE.sub(replacement, name)
    name = RESERVED_NAME_RE.sub(replacement, name)
    return name or replacement


def build_metadata(metadata: PackageMetadata) -> BookMetadata:
    return BookMetadata(
        title=metadata.title,
        creator=metadata.creator,
        language=metadata.language,
        identifier=metadata.identifier,
        publisher=metadata.publisher,
        date=metadata.date,
    )
