"""Extract manifest items from the archive as named resources."""

import hashlib
import logging
import posixpath

from epub_ingest.core.archive import Archive
from epub_ingest.core.identity import sanitize_resource_name
from epub_ingest.core.manifest import join_path
from epub_ingest.errors import ArchiveEntryMissing, ResourceLimitExceeded
from epub_ingest.models.book import Resource
from epub_ingest.models.package import ManifestItem

log = logging.getLogger(__name__)

FONT_MEDIA_PREFIXES = ("font/", "application/x-font-", "application/font-")


def is_font(media_type: str) -> bool:
    return media_type.lower().startswith(FONT_MEDIA_PREFIXES)


def is_binary(media_type: str) -> bool:
    return media_type.lower().startswith("image/")


def _disambiguate(name: str, key: str) -> str:
    stem, suffix = posixpath.splitext(name)
    digest = hashlib.sha1(key.encode("utf-8")).hexdigest()[:8]
    return f"{stem}-{digest}{suffix}"


def assign_resource_names(zip_paths: list[str]) -> list[str]:
    """Give each archive path a unique, safe resource name, in input order.

    The first path to claim a final segment keeps it; later paths with the
    same segment get a suffix derived from their full path.
    """
    names: list[str] = []
    taken: set[str] = set()
    for zip_path in zip_paths:
        name = sanitize_resource_name(posixpath.basename(zip_path))
        candidate = name
        attempt = 0
        while candidate in taken:
            key = zip_path if attempt == 0 else f"{zip_path}#{attempt}"
            candidate = _disambiguate(name, key)
            attempt += 1
        if candidate != name:
            log.warning("Resource name %s collides, using %s for %s", name, candidate, zip_path)
        taken.add(candidate)
        names.append(candidate)
    return names


def extract_resources(
    archive: Archive,
    manifest: dict[str, ManifestItem],
    root_path: str,
    max_resources: int | None = None,
) -> list[Resource]:
    """Read every non-font manifest item out of the archive.

    Images are read as bytes, everything else as UTF-8 text. Hrefs are
    expected to be percent-decoded already.
    """
    if max_resources is not None and len(manifest) > max_resources:
        raise ResourceLimitExceeded(
            f"manifest declares {len(manifest)} items, limit is {max_resources}"
        )

    items = []
    for item in manifest.values():
        if is_font(item.media_type):
            log.debug("Skipping font %s (%s)", item.href, item.media_type)
            continue
        items.append((item, join_path(root_path, item.href)))

    missing = [zip_path for _, zip_path in items if not archive.has_entry(zip_path)]
    if missing:
        raise ArchiveEntryMissing(", ".join(missing))

    names = assign_resource_names([zip_path for _, zip_path in items])

    resources = []
    for (item, zip_path), name in zip(items, names):
        if is_binary(item.media_type):
            content: str | bytes = archive.read_bytes(zip_path)
        else:
            content = archive.read_text(zip_path)
        resources.append(
            Resource(
                id=item.id,
                zip_path=zip_path,
                resource_name=name,
                content=content,
                media_type=item.media_type,
            )
        )

    log.debug("Extracted %d resources", len(resources))
    return resources
