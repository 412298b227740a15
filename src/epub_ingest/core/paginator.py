"""Segment the linear reading sequence into chapters at TOC entries."""

import logging

from epub_ingest.errors import EmptyBook, TocOrderViolation, TocTargetUnresolved
from epub_ingest.models.book import Chapter, NavPoint, Resource

log = logging.getLogger(__name__)

PSEUDO_NAV_POINT_ID = "pseudo"


def linear_sequence(spine_resources: list[Resource]) -> list[Resource]:
    """XHTML documents of the spine, in spine order."""
    return [resource for resource in spine_resources if resource.is_xhtml]


def _index_of(sequence: list[Resource], target: str) -> int:
    for index, resource in enumerate(sequence):
        if resource.zip_path == target:
            return index
    raise TocTargetUnresolved(target)


def paginate(
    spine_resources: list[Resource],
    nav_points: list[NavPoint],
    strict: bool = False,
) -> list[Chapter]:
    """Partition the spine's XHTML documents into chapters.

    A synthetic "pseudo" entry with play order -1 covers any content before
    the first real TOC entry. Each entry owns the documents from its target
    up to the next entry's target. An entry whose target comes before the
    previous entry's target is dropped (with *strict*, it raises instead),
    and entries that end up owning nothing are dropped too.
    """
    sequence = linear_sequence(spine_resources)
    if not sequence:
        raise EmptyBook("spine contains no XHTML documents")

    pseudo = NavPoint(id=PSEUDO_NAV_POINT_ID, play_order=-1, target=sequence[0].zip_path)

    anchors: list[tuple[NavPoint, int]] = []
    for point in [pseudo, *sorted(nav_points, key=lambda np: np.play_order)]:
        start = _index_of(sequence, point.target)
        if anchors and start < anchors[-1][1]:
            previous = anchors[-1][0]
            if strict:
                raise TocOrderViolation(
                    f"TOC entry {point.id!r} targets {point.target}, "
                    f"which precedes {previous.target}"
                )
            log.warning("Dropping out-of-order TOC entry %s (%s)", point.id, point.target)
            continue
        anchors.append((point, start))

    chapters = []
    for i, (point, start) in enumerate(anchors):
        end = anchors[i + 1][1] if i + 1 < len(anchors) else len(sequence)
        sections = sequence[start:end]
        if not sections:
            if point is not pseudo:
                log.warning("Dropping empty chapter %s (%s)", point.id, point.title)
            continue

        chapters.append(
            Chapter(id=point.id, play_order=point.play_order, title=point.title, sections=sections)
        )

    return chapters
