"""Turn resource markers back into servable URLs."""

from typing import Protocol
from urllib.parse import quote

from bs4 import BeautifulSoup

from epub_ingest.core.markup_normalizer import RESOURCE_ATTRIBUTE, decode_marker
from epub_ingest.models.book import Book, Chapter


class ResourceUrlResolver(Protocol):
    def __call__(self, book_name: str, resource_name: str) -> str: ...


class AssetUrlResolver:
    """Resolve resources to ``{prefix}/{book}/assets/{resource}``."""

    def __init__(self, prefix: str = "/novels"):
        self.prefix = prefix.rstrip("/")

    def __call__(self, book_name: str, resource_name: str) -> str:
        return f"{self.prefix}/{quote(book_name)}/assets/{quote(resource_name)}"


def referenced_resources(content: str) -> list[str]:
    """Resource names referenced by markers in normalized markup, in document order."""
    soup = BeautifulSoup(content, "html.parser")
    return [
        decode_marker(element[RESOURCE_ATTRIBUTE])["resourceName"]
        for element in soup.find_all(attrs={RESOURCE_ATTRIBUTE: True})
    ]


def render_markup(content: str, book_name: str, resolver: ResourceUrlResolver | None = None) -> str:
    """Replace every resource marker with the attribute it stands for."""
    resolver = resolver or AssetUrlResolver()
    soup = BeautifulSoup(content, "html.parser")
    for element in soup.find_all(attrs={RESOURCE_ATTRIBUTE: True}):
        marker = decode_marker(element[RESOURCE_ATTRIBUTE])
        url = resolver(book_name, marker["resourceName"])
        if marker.get("fragment"):
            url = f"{url}#{marker['fragment']}"
        del element[RESOURCE_ATTRIBUTE]
        element[marker["attribute"]] = url
    return str(soup)


def render_chapter(book: Book, chapter: Chapter, resolver: ResourceUrlResolver | None = None) -> str:
    """Rendered markup of every section of *chapter*, in order."""
    return "\n".join(
        render_markup(section.content, book.book_name, resolver) for section in chapter.sections
    )
