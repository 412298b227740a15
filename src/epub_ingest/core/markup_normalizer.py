"""Rewrite XHTML resources into a portable, self-contained HTML subset.

Each XHTML document goes through the same passes, in order:

1. linked stylesheets (and <style> blocks) are inlined into style attributes
2. references to other resources are replaced with resource markers
3. layout-related style declarations are removed
4. class attributes are removed
5. h1 headings become h2
6. redundant single <div> wrappers around the body content are collapsed
7. the body content is wrapped in one <div> and pretty-printed

Only the original resource set is ever read, so every document can be
normalized independently of the others.
"""

import json
import logging
import warnings
from urllib.parse import unquote, urlparse

from bs4 import BeautifulSoup, Comment, NavigableString, ParserRejectedMarkup, Tag, XMLParsedAsHTMLWarning

from epub_ingest.core.manifest import resolve_relative, split_fragment
from epub_ingest.core.stylesheet import inline_stylesheet, parse_declarations, serialize_declarations
from epub_ingest.errors import MarkupParseError
from epub_ingest.models.book import Resource
from epub_ingest.models.config import IngestConfig

# EPUB content documents are XHTML; the HTML tree builder is intentional
warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)

log = logging.getLogger(__name__)

RESOURCE_ATTRIBUTE = "data-resource"

REFERENCE_ATTRIBUTES = (
    ("img", "src"),
    ("image", "xlink:href"),
    ("a", "href"),
    ("link", "href"),
)

STYLE_DENYLIST = frozenset(
    {
        "width",
        "height",
        "margin",
        "padding",
        "line-height",
        "font-size",
        "font-family",
        "font-style",
        "text-indent",
        "display",
        "duokan-text-indent",
        "border",
    }
)
STYLE_DENY_PREFIXES = ("margin-", "padding-")

HEADINGS = ("h1", "h2", "h3", "h4", "h5", "h6")


def encode_marker(attribute: str, resource_name: str, fragment: str | None = None) -> str:
    marker = {"attribute": attribute, "resourceName": resource_name}
    if fragment:
        marker["fragment"] = fragment
    return json.dumps(marker, sort_keys=True, ensure_ascii=False)


def decode_marker(value: str) -> dict:
    return json.loads(value)


class MarkupNormalizer:
    """Normalize the XHTML resources of one book."""

    def __init__(self, resources: list[Resource], config: IngestConfig | None = None):
        self.resources = list(resources)
        self.config = config or IngestConfig()
        self._by_path = {resource.zip_path: resource for resource in self.resources}

    def normalize(self) -> list[Resource]:
        """Return the resource list with every XHTML document rewritten."""
        return [self.normalize_resource(resource) for resource in self.resources]

    def normalize_resource(self, resource: Resource) -> Resource:
        if not resource.is_xhtml:
            return resource
        content = resource.content
        if isinstance(content, bytes):
            content = content.decode("utf-8", errors="replace")
        return resource.model_copy(update={"content": self.normalize_markup(content, resource.zip_path)})

    def normalize_markup(self, content: str, zip_path: str) -> str:
        soup = self._parse(content, zip_path)
        body = soup.body

        self._inline_stylesheets(soup, zip_path)
        self._retarget_references(soup, zip_path)

        for element in body.find_all(True):
            self._filter_style(element)
            if element.has_attr("class"):
                del element["class"]
            self._renumber_heading(element)

        self._collapse_wrappers(body)
        return self._serialize(soup, body)

    def _parse(self, content: str, zip_path: str) -> BeautifulSoup:
        try:
            soup = BeautifulSoup(content, "lxml")
        except ParserRejectedMarkup as e:
            raise MarkupParseError(zip_path, str(e)) from e
        if soup.body is None:
            raise MarkupParseError(zip_path, "document has no body")
        return soup

    def _inline_stylesheets(self, soup: BeautifulSoup, zip_path: str) -> None:
        sheets = []
        for link in soup.find_all("link"):
            rel = link.get("rel") or []
            rels = rel if isinstance(rel, list) else rel.split()
            href = link.get("href")
            if not href or "stylesheet" not in (r.lower() for r in rels):
                continue
            path = resolve_relative(zip_path, unquote(split_fragment(href)[0]))
            stylesheet = self._by_path.get(path)
            if stylesheet is None or stylesheet.is_binary:
                log.warning("Stylesheet %s linked from %s not found", path, zip_path)
                continue
            sheets.append(stylesheet.content)

        for style in soup.find_all("style"):
            sheets.append(style.get_text())
            style.decompose()

        inline_stylesheet(soup, "\n".join(sheets))

    def _retarget_references(self, soup: BeautifulSoup, zip_path: str) -> None:
        for tag, attribute in REFERENCE_ATTRIBUTES:
            for element in soup.find_all(tag):
                value = element.get(attribute)
                if not value or value.startswith("#") or urlparse(value).scheme:
                    continue
                path, fragment = split_fragment(unquote(value))
                target = self._by_path.get(resolve_relative(zip_path, path))
                if target is None:
                    continue
                del element[attribute]
                element[RESOURCE_ATTRIBUTE] = encode_marker(attribute, target.resource_name, fragment)

    def _is_denied(self, name: str) -> bool:
        if name in STYLE_DENYLIST or name.startswith(STYLE_DENY_PREFIXES):
            return True
        return self.config.strip_text_align and name == "text-align"

    def _filter_style(self, element: Tag) -> None:
        if not element.has_attr("style"):
            return
        kept = [(n, v) for n, v in parse_declarations(element["style"]) if not self._is_denied(n)]
        if kept:
            element["style"] = serialize_declarations(kept)
        else:
            del element["style"]

    def _renumber_heading(self, element: Tag) -> None:
        if element.name not in HEADINGS:
            return
        level = int(element.name[1])
        if level == 1 or (self.config.downgrade_all_headings and level < 6):
            element.name = f"h{level + 1}"

    def _collapse_wrappers(self, body: Tag) -> None:
        while True:
            elements = [child for child in body.contents if isinstance(child, Tag)]
            text = [
                child
                for child in body.contents
                if isinstance(child, NavigableString)
                and not isinstance(child, Comment)
                and child.strip()
            ]
            if len(elements) != 1 or text or elements[0].name != "div":
                return
            inner = list(elements[0].contents)
            body.clear()
            for child in inner:
                body.append(child.extract())

    def _serialize(self, soup: BeautifulSoup, body: Tag) -> str:
        root = soup.new_tag("div")
        for child in list(body.contents):
            root.append(child.extract())
        for element in [root, *root.find_all(True)]:
            element.attrs = dict(sorted(element.attrs.items()))
        return root.prettify()


def normalize(resources: list[Resource], config: IngestConfig | None = None) -> list[Resource]:
    """Normalize every XHTML resource; other resources pass through."""
    return MarkupNormalizer(resources, config).normalize()
