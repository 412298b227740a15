"""Pure lookups over a parsed package document and NCX."""

import logging
import posixpath
from urllib.parse import unquote

from epub_ingest.errors import SchemaViolation, TocNotFound
from epub_ingest.models.book import NavPoint
from epub_ingest.models.package import ManifestItem, NcxNavPoint, PackageDocument, TocDocument

log = logging.getLogger(__name__)

NCX_MEDIA_TYPE = "application/x-dtbncx+xml"


def join_path(directory: str, href: str) -> str:
    """Join an archive directory and a relative href into a normalized path."""
    joined = posixpath.normpath(posixpath.join(directory, href))
    return "" if joined == "." else joined


def resolve_relative(file_path: str, href: str) -> str:
    """Resolve *href* against the directory of the archive file *file_path*."""
    return join_path(posixpath.dirname(file_path), href)


def split_fragment(href: str) -> tuple[str, str | None]:
    path, sep, fragment = href.partition("#")
    return path, (fragment if sep else None)


def spine_order(package: PackageDocument) -> list[str]:
    """Manifest ids in declared spine order, duplicates preserved."""
    return [itemref.idref for itemref in package.spine.itemrefs]


def manifest_index(package: PackageDocument) -> dict[str, ManifestItem]:
    """Map manifest id to its item, with hrefs percent-decoded."""
    return {
        item.id: item.model_copy(update={"href": unquote(item.href)})
        for item in package.manifest
    }


def toc_target_path(package: PackageDocument) -> str:
    """Href of the NCX document, relative to the package document."""
    toc_id = package.spine.toc
    if toc_id is not None:
        for item in package.manifest:
            if item.id == toc_id:
                return unquote(item.href)
        raise TocNotFound(f"spine toc id {toc_id!r} is not in the manifest")

    for item in package.manifest:
        if item.media_type == NCX_MEDIA_TYPE:
            log.debug("Spine has no toc attribute, using NCX item %s", item.id)
            return unquote(item.href)
    raise TocNotFound("spine declares no toc and the manifest has no NCX item")


def _resolve_nav_point(entry: NcxNavPoint, toc_path: str, field: str, level: int) -> NavPoint:
    try:
        play_order = int(entry.play_order.strip())
    except ValueError:
        raise SchemaViolation(toc_path, f"{field}.playOrder", f"not a number: {entry.play_order!r}")

    target, _ = split_fragment(entry.src)
    children = [
        _resolve_nav_point(child, toc_path, f"{field}.children.{i}", level + 1)
        for i, child in enumerate(entry.children)
    ]
    return NavPoint(
        id=entry.id,
        play_order=play_order,
        target=resolve_relative(toc_path, target),
        title=entry.label,
        level=level,
        children=sorted(children, key=lambda np: np.play_order),
    )


def nav_points(toc: TocDocument) -> list[NavPoint]:
    """Top-level NavPoints in ascending play order.

    Targets are archive paths resolved against the NCX location, with the
    fragment removed.
    """
    resolved = [
        _resolve_nav_point(entry, toc.path, f"navMap.{i}", 0)
        for i, entry in enumerate(toc.nav_points)
    ]
    return sorted(resolved, key=lambda np: np.play_order)


def flatten_nav_points(points: list[NavPoint]) -> list[NavPoint]:
    """All NavPoints at every depth, ordered by play order."""
    flat: list[NavPoint] = []

    def _walk(items: list[NavPoint]) -> None:
        for item in items:
            flat.append(item)
            _walk(item.children)

    _walk(points)
    return sorted(flat, key=lambda np: np.play_order)
