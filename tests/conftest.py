"""Shared fixtures: in-memory EPUB archives built with zipfile."""

import io
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from xml.sax.saxutils import escape, quoteattr

import pytest

from epub_ingest.core.archive import Archive

CONTAINER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="{path}" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""

XHTML_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<!DOCTYPE html>
<html xmlns="http://www.w3.org/1999/xhtml" xmlns:xlink="http://www.w3.org/1999/xlink">
<head>
<title>{title}</title>
{head}
</head>
<body>{body}</body>
</html>
"""


def xhtml(body: str, head: str = "", title: str = "Section") -> str:
    return XHTML_TEMPLATE.format(title=title, head=head, body=body)


@dataclass
class NavEntry:
    id: str
    play_order: str
    src: str
    label: str | None = None
    children: list["NavEntry"] = field(default_factory=list)


@dataclass
class Item:
    id: str
    href: str
    media_type: str
    content: str | bytes | None
    properties: str | None = None


class EpubBuilder:
    """Assemble a minimal EPUB 2 archive."""

    def __init__(self, title: str | None = "Test Book", root: str = "OEBPS"):
        self.title = title
        self.root = root
        self.creator: str | None = "Jane Author"
        self.language: str | None = "en"
        self.identifier: str | None = "urn:uuid:1234"
        self.items: list[Item] = []
        self.spine: list[str] = []
        self.nav_points: list[NavEntry] = []
        self.meta: list[tuple[str, str]] = []
        self.toc_id: str | None = "ncx"
        self.ncx_href = "toc.ncx"
        self.include_ncx_item = True
        self.extra_files: dict[str, str | bytes] = {}
        self.omit_files: set[str] = set()
        self.container_xml: str | None = None
        self.opf_xml: str | None = None
        self.ncx_xml: str | None = None

    @property
    def opf_path(self) -> str:
        return f"{self.root}/content.opf" if self.root else "content.opf"

    def path_of(self, href: str) -> str:
        return f"{self.root}/{href}" if self.root else href

    def add_item(
        self,
        id: str,
        href: str,
        media_type: str,
        content: str | bytes | None,
        in_spine: bool = False,
        properties: str | None = None,
    ) -> "EpubBuilder":
        self.items.append(Item(id, href, media_type, content, properties))
        if in_spine:
            self.spine.append(id)
        return self

    def add_xhtml(self, id: str, href: str, body: str, head: str = "", in_spine: bool = True) -> "EpubBuilder":
        return self.add_item(id, href, "application/xhtml+xml", xhtml(body, head), in_spine)

    def add_nav_point(
        self,
        id: str,
        play_order: int | str,
        src: str,
        label: str | None = None,
        children: list[NavEntry] | None = None,
    ) -> "EpubBuilder":
        self.nav_points.append(NavEntry(id, str(play_order), src, label, children or []))
        return self

    def _render_opf(self) -> str:
        metadata = []
        if self.title is not None:
            metadata.append(f"<dc:title>{escape(self.title)}</dc:title>")
        if self.creator is not None:
            metadata.append(f"<dc:creator>{escape(self.creator)}</dc:creator>")
        if self.language is not None:
            metadata.append(f"<dc:language>{escape(self.language)}</dc:language>")
        if self.identifier is not None:
            metadata.append(f'<dc:identifier id="bookid">{escape(self.identifier)}</dc:identifier>')
        for name, content in self.meta:
            metadata.append(f"<meta name={quoteattr(name)} content={quoteattr(content)}/>")

        items = []
        if self.include_ncx_item:
            items.append(f'<item id="ncx" href="{self.ncx_href}" media-type="application/x-dtbncx+xml"/>')
        for item in self.items:
            props = f" properties={quoteattr(item.properties)}" if item.properties else ""
            items.append(
                f"<item id={quoteattr(item.id)} href={quoteattr(item.href)} "
                f"media-type={quoteattr(item.media_type)}{props}/>"
            )

        toc = f" toc={quoteattr(self.toc_id)}" if self.toc_id is not None else ""
        itemrefs = "".join(f"<itemref idref={quoteattr(idref)}/>" for idref in self.spine)

        return (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<package xmlns="http://www.idpf.org/2007/opf" version="2.0" unique-identifier="bookid">\n'
            '<metadata xmlns:dc="http://purl.org/dc/elements/1.1/" '
            'xmlns:opf="http://www.idpf.org/2007/opf">\n'
            + "\n".join(metadata)
            + "\n</metadata>\n<manifest>\n"
            + "\n".join(items)
            + f"\n</manifest>\n<spine{toc}>{itemrefs}</spine>\n</package>\n"
        )

    def _render_nav_point(self, entry: NavEntry) -> str:
        label = f"<navLabel><text>{escape(entry.label)}</text></navLabel>" if entry.label else ""
        children = "".join(self._render_nav_point(child) for child in entry.children)
        return (
            f"<navPoint id={quoteattr(entry.id)} playOrder={quoteattr(entry.play_order)}>"
            f"{label}<content src={quoteattr(entry.src)}/>{children}</navPoint>"
        )

    def _render_ncx(self) -> str:
        nav_points = "".join(self._render_nav_point(entry) for entry in self.nav_points)
        return (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<ncx xmlns="http://www.daisy.org/z3986/2005/ncx/" version="2005-1">\n'
            '<head><meta name="dtb:uid" content="urn:uuid:1234"/></head>\n'
            f"<docTitle><text>{escape(self.title or '')}</text></docTitle>\n"
            f"<navMap>{nav_points}</navMap>\n</ncx>\n"
        )

    def files(self) -> dict[str, str | bytes]:
        files: dict[str, str | bytes] = {
            "META-INF/container.xml": self.container_xml
            if self.container_xml is not None
            else CONTAINER_XML.format(path=self.opf_path),
            self.opf_path: self.opf_xml if self.opf_xml is not None else self._render_opf(),
            self.path_of(self.ncx_href): self.ncx_xml if self.ncx_xml is not None else self._render_ncx(),
        }
        for item in self.items:
            if item.content is not None:
                files[self.path_of(item.href)] = item.content
        files.update(self.extra_files)
        return {path: data for path, data in files.items() if path not in self.omit_files}

    def build(self) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            zf.writestr("mimetype", "application/epub+zip", compress_type=zipfile.ZIP_STORED)
            for path, data in self.files().items():
                zf.writestr(path, data, compress_type=zipfile.ZIP_DEFLATED)
        return buffer.getvalue()

    def write(self, path: Path) -> Path:
        path.write_bytes(self.build())
        return path

    def archive(self) -> Archive:
        return Archive(self.build(), name="test.epub")


@pytest.fixture
def builder() -> EpubBuilder:
    return EpubBuilder()


@pytest.fixture
def three_chapter_builder() -> EpubBuilder:
    """Spine a, b, c with TOC entries at a ("One") and c ("Two")."""
    b = EpubBuilder()
    b.add_xhtml("a", "Text/a.xhtml", "<h1>One</h1><p>first</p>")
    b.add_xhtml("b", "Text/b.xhtml", "<p>second</p>")
    b.add_xhtml("c", "Text/c.xhtml", "<h1>Two</h1><p>third</p>")
    b.add_nav_point("np1", 1, "Text/a.xhtml", "One")
    b.add_nav_point("np2", 2, "Text/c.xhtml#start", "Two")
    return b
