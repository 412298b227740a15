"""Shapes of the XML documents inside an EPUB container.

These models are the validation contract for container.xml, the OPF package
document and the NCX table of contents. Readers build plain dictionaries
from the XML and validate them here, so the required/optional split lives in
one place and does not depend on the XML library.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Rootfile(BaseModel):
    """One <rootfile> entry of container.xml."""

    full_path: str = Field(alias="full-path", min_length=1)
    media_type: str | None = Field(default=None, alias="media-type")


class ContainerDescriptor(BaseModel):
    """Parsed META-INF/container.xml."""

    rootfiles: list[Rootfile] = Field(min_length=1)

    @property
    def package_path(self) -> str:
        """Archive path of the first package document."""
        return self.rootfiles[0].full_path


class ManifestItem(BaseModel):
    """Single <item> of the OPF manifest."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    href: str = Field(min_length=1)
    media_type: str = Field(alias="media-type")
    properties: str | None = None


class SpineItemRef(BaseModel):
    """Single <itemref> of the OPF spine."""

    idref: str = Field(min_length=1)


class Spine(BaseModel):
    """Declared linear reading order."""

    toc: str | None = None
    itemrefs: list[SpineItemRef] = Field(default_factory=list, alias="itemref")


class MetaTag(BaseModel):
    """An OPF <meta> element (only name/content pairs are used)."""

    name: str | None = None
    content: str | None = None


class PackageMetadata(BaseModel):
    """Dublin Core metadata block of the package document."""

    title: str = Field(alias="dc:title", min_length=1)
    creator: str | None = Field(default=None, alias="dc:creator")
    language: str | None = Field(default=None, alias="dc:language")
    identifier: str | None = Field(default=None, alias="dc:identifier")
    publisher: str | None = Field(default=None, alias="dc:publisher")
    date: str | None = Field(default=None, alias="dc:date")
    meta: list[MetaTag] = Field(default_factory=list)


class PackageDocument(BaseModel):
    """Parsed OPF package document."""

    metadata: PackageMetadata
    manifest: list[ManifestItem] = Field(min_length=1)
    spine: Spine

    @model_validator(mode="after")
    def _check_references(self) -> "PackageDocument":
        seen: set[str] = set()
        for item in self.manifest:
            if item.id in seen:
                raise ValueError(f"duplicate manifest id {item.id!r}")
            seen.add(item.id)
        for itemref in self.spine.itemrefs:
            if itemref.idref not in seen:
                raise ValueError(f"spine references unknown manifest id {itemref.idref!r}")
        return self


class NcxNavPoint(BaseModel):
    """A <navPoint> as declared in the NCX, before resolution."""

    id: str = Field(min_length=1)
    play_order: str = Field(alias="playOrder")
    src: str = Field(min_length=1)
    label: str | None = None
    children: list["NcxNavPoint"] = Field(default_factory=list)


class TocDocument(BaseModel):
    """Parsed NCX document."""

    path: str
    title: str | None = None
    nav_points: list[NcxNavPoint] = Field(alias="navMap")
