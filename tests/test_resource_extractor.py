"""Tests for resource extraction and naming."""

import pytest

from epub_ingest.core.container_reader import read_package_document
from epub_ingest.core.manifest import manifest_index
from epub_ingest.core.resource_extractor import assign_resource_names, extract_resources, is_font
from epub_ingest.errors import ArchiveEntryMissing, ResourceLimitExceeded
from tests.conftest import EpubBuilder

PNG = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"


def extract(builder: EpubBuilder, max_resources: int | None = None):
    with builder.archive() as archive:
        package = read_package_document(archive, builder.opf_path)
        return extract_resources(archive, manifest_index(package), builder.root, max_resources)


class TestAssignResourceNames:
    def test_unique_basenames_kept(self) -> None:
        assert assign_resource_names(["OEBPS/Text/a.xhtml", "OEBPS/Images/b.png"]) == ["a.xhtml", "b.png"]

    def test_collision_keeps_first_and_suffixes_later(self) -> None:
        names = assign_resource_names(["OEBPS/Text/a.xhtml", "OEBPS/Other/a.xhtml"])
        assert names[0] == "a.xhtml"
        assert names[1] != "a.xhtml"
        assert names[1].startswith("a-")
        assert names[1].endswith(".xhtml")

    def test_collision_naming_is_deterministic(self) -> None:
        paths = ["x/cover.jpg", "y/cover.jpg", "z/cover.jpg"]
        first = assign_resource_names(paths)
        assert first == assign_resource_names(paths)
        assert len(set(first)) == 3

    def test_same_path_twice_still_unique(self) -> None:
        names = assign_resource_names(["a/b.css", "a/b.css"])
        assert len(set(names)) == 2

    def test_unsafe_characters_replaced(self) -> None:
        assert assign_resource_names(["Text/my file?.xhtml"]) == ["my_file_.xhtml"]


class TestIsFont:
    @pytest.mark.parametrize(
        "media_type",
        ["font/woff2", "application/x-font-ttf", "application/font-woff", "FONT/otf"],
    )
    def test_fonts(self, media_type: str) -> None:
        assert is_font(media_type)

    @pytest.mark.parametrize("media_type", ["image/png", "text/css", "application/xhtml+xml"])
    def test_not_fonts(self, media_type: str) -> None:
        assert not is_font(media_type)


class TestExtractResources:
    def test_text_and_binary_content(self, builder: EpubBuilder) -> None:
        builder.add_xhtml("ch1", "Text/ch1.xhtml", "<p>hi</p>")
        builder.add_item("img", "Images/pic.png", "image/png", PNG)
        builder.add_item("css", "Styles/main.css", "text/css", "p { color: red; }")

        resources = {r.id: r for r in extract(builder)}

        assert resources["img"].content == PNG
        assert resources["img"].is_binary
        assert resources["css"].content == "p { color: red; }"
        assert resources["ch1"].zip_path == "OEBPS/Text/ch1.xhtml"
        assert resources["ch1"].resource_name == "ch1.xhtml"
        assert resources["ch1"].is_xhtml

    def test_fonts_skipped(self, builder: EpubBuilder) -> None:
        builder.add_xhtml("ch1", "Text/ch1.xhtml", "<p>hi</p>")
        builder.add_item("font", "Fonts/f.ttf", "application/x-font-ttf", b"\x00\x01")

        ids = {r.id for r in extract(builder)}
        assert "font" not in ids
        assert "ch1" in ids

    def test_font_missing_from_archive_is_not_an_error(self, builder: EpubBuilder) -> None:
        builder.add_xhtml("ch1", "Text/ch1.xhtml", "<p>hi</p>")
        builder.add_item("font", "Fonts/f.woff", "font/woff", None)

        assert {r.id for r in extract(builder)} >= {"ch1"}

    def test_percent_encoded_href(self, builder: EpubBuilder) -> None:
        builder.add_item("ch1", "Text/chapter%201.xhtml", "application/xhtml+xml", None, in_spine=True)
        builder.extra_files["OEBPS/Text/chapter 1.xhtml"] = "<html><body/></html>"

        resource = next(r for r in extract(builder) if r.id == "ch1")
        assert resource.zip_path == "OEBPS/Text/chapter 1.xhtml"
        assert resource.resource_name == "chapter_1.xhtml"

    def test_missing_entries_reported_together(self, builder: EpubBuilder) -> None:
        builder.add_item("a", "Text/a.xhtml", "application/xhtml+xml", None)
        builder.add_item("b", "Images/b.png", "image/png", None)

        with pytest.raises(ArchiveEntryMissing) as exc_info:
            extract(builder)
        assert "OEBPS/Text/a.xhtml" in str(exc_info.value)
        assert "OEBPS/Images/b.png" in str(exc_info.value)

    def test_resource_limit(self, builder: EpubBuilder) -> None:
        for i in range(3):
            builder.add_xhtml(f"ch{i}", f"Text/ch{i}.xhtml", "<p>x</p>")

        with pytest.raises(ResourceLimitExceeded):
            extract(builder, max_resources=2)

    def test_invalid_utf8_is_replaced(self, builder: EpubBuilder) -> None:
        builder.add_item("css", "s.css", "text/css", b"p { content: '\xff'; }")

        resource = next(r for r in extract(builder) if r.id == "css")
        assert "�" in resource.content

    def test_colliding_names_within_a_book(self, builder: EpubBuilder) -> None:
        builder.add_item("img1", "Images/cover.jpg", "image/jpeg", b"one")
        builder.add_item("img2", "Other/cover.jpg", "image/jpeg", b"two")

        resources = {r.id: r for r in extract(builder)}
        assert resources["img1"].resource_name == "cover.jpg"
        assert resources["img2"].resource_name != "cover.jpg"
