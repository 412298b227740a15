"""Readers for container.xml, the OPF package document and the NCX."""

import logging
from urllib.parse import unquote

from lxml import etree
from pydantic import BaseModel, ValidationError

from epub_ingest.core.archive import Archive
from epub_ingest.errors import MalformedContainer, SchemaViolation
from epub_ingest.models.package import ContainerDescriptor, PackageDocument, TocDocument

log = logging.getLogger(__name__)

CONTAINER_PATH = "META-INF/container.xml"

# Dublin Core fields copied from <metadata>; the first occurrence wins
DC_FIELDS = ("title", "creator", "language", "identifier", "publisher", "date")


def _local(element: etree._Element) -> str:
    return etree.QName(element).localname


def _children(element: etree._Element, name: str) -> list[etree._Element]:
    """Direct children with the given local name, in any namespace."""
    return [c for c in element if isinstance(c.tag, str) and _local(c) == name]


def _child(element: etree._Element, name: str) -> etree._Element | None:
    found = _children(element, name)
    return found[0] if found else None


def _text(element: etree._Element) -> str:
    return "".join(element.itertext()).strip()


def _parse_xml(archive: Archive, path: str) -> etree._Element:
    data = archive.read_bytes(path)
    parser = etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)
    return etree.fromstring(data, parser)


def _validate(model: type[BaseModel], data: dict, document: str):
    try:
        return model.model_validate(data)
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or "<root>"
        raise SchemaViolation(document, field, error["msg"]) from e


def read_container_descriptor(archive: Archive) -> ContainerDescriptor:
    """Parse META-INF/container.xml and return the rootfile list."""
    if not archive.has_entry(CONTAINER_PATH):
        raise MalformedContainer(f"{CONTAINER_PATH} is missing")
    try:
        root = _parse_xml(archive, CONTAINER_PATH)
    except etree.XMLSyntaxError as e:
        raise MalformedContainer(f"{CONTAINER_PATH} is not well-formed: {e}") from e

    rootfiles = []
    for rootfiles_el in _children(root, "rootfiles"):
        for rootfile in _children(rootfiles_el, "rootfile"):
            rootfiles.append(dict(rootfile.attrib))

    try:
        descriptor = ContainerDescriptor.model_validate({"rootfiles": rootfiles})
    except ValidationError as e:
        raise MalformedContainer(f"{CONTAINER_PATH} has no usable rootfile") from e

    log.debug("Package document at %s", descriptor.package_path)
    return descriptor


def _metadata_dict(metadata: etree._Element) -> dict:
    data: dict = {"meta": []}
    for element in metadata:
        if not isinstance(element.tag, str):
            continue
        name = _local(element)
        if name in DC_FIELDS:
            key = f"dc:{name}"
            if key not in data:
                data[key] = _text(element)
        elif name == "meta":
            data["meta"].append(dict(element.attrib))
    return data


def read_package_document(archive: Archive, path: str) -> PackageDocument:
    """Parse and validate the OPF package document at *path*."""
    try:
        root = _parse_xml(archive, path)
    except etree.XMLSyntaxError as e:
        raise SchemaViolation(path, "<document>", f"not well-formed XML: {e}") from e

    data: dict = {}

    metadata = _child(root, "metadata")
    if metadata is not None:
        data["metadata"] = _metadata_dict(metadata)

    manifest = _child(root, "manifest")
    if manifest is not None:
        data["manifest"] = [dict(item.attrib) for item in _children(manifest, "item")]

    spine = _child(root, "spine")
    if spine is not None:
        data["spine"] = {
            **dict(spine.attrib),
            "itemref": [dict(ref.attrib) for ref in _children(spine, "itemref")],
        }

    package = _validate(PackageDocument, data, path)
    log.debug(
        "Package %s: %d manifest items, %d spine entries",
        path,
        len(package.manifest),
        len(package.spine.itemrefs),
    )
    return package


def _nav_point_dict(nav_point: etree._Element) -> dict:
    data = dict(nav_point.attrib)

    content = _child(nav_point, "content")
    if content is not None and "src" in content.attrib:
        data["src"] = unquote(content.get("src"))

    label = _child(nav_point, "navLabel")
    if label is not None:
        text = _child(label, "text")
        if text is not None:
            data["label"] = _text(text) or None

    data["children"] = [_nav_point_dict(child) for child in _children(nav_point, "navPoint")]
    return data


def read_toc_document(archive: Archive, path: str) -> TocDocument:
    """Parse and validate the NCX table of contents at *path*."""
    try:
        root = _parse_xml(archive, path)
    except etree.XMLSyntaxError as e:
        raise SchemaViolation(path, "<document>", f"not well-formed XML: {e}") from e

    data: dict = {"path": path}

    doc_title = _child(root, "docTitle")
    if doc_title is not None:
        text = _child(doc_title, "text")
        if text is not None:
            data["title"] = _text(text) or None

    nav_map = _child(root, "navMap")
    if nav_map is not None:
        data["navMap"] = [_nav_point_dict(np) for np in _children(nav_map, "navPoint")]

    return _validate(TocDocument, data, path)
