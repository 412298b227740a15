"""Tests for the command line interface."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from epub_ingest.cli import app
from tests.conftest import EpubBuilder

runner = CliRunner()


@pytest.fixture
def book_path(three_chapter_builder: EpubBuilder, tmp_path: Path) -> Path:
    return three_chapter_builder.write(tmp_path / "book.epub")


class TestIngest:
    def test_writes_book(self, book_path: Path, tmp_path: Path) -> None:
        out = tmp_path / "out"
        result = runner.invoke(app, ["ingest", str(book_path), "-o", str(out), "-q"])

        assert result.exit_code == 0, result.output
        manifest = json.loads((out / "Test_Book" / "book.json").read_text())
        assert [c["sections"] for c in manifest["chapters"]] == [["a.xhtml", "b.xhtml"], ["c.xhtml"]]
        assert (out / "Test_Book" / "assets" / "c.xhtml").exists()
        assert (out / "Test_Book" / "chapters" / "002.html").exists()

    def test_default_output_dir_and_cache(self, book_path: Path) -> None:
        result = runner.invoke(app, ["ingest", str(book_path)])

        assert result.exit_code == 0, result.output
        assert (book_path.parent / "novels" / "Test_Book" / "book.json").exists()
        assert (book_path.parent / ".epub_ingest_cache").is_dir()

        again = runner.invoke(app, ["ingest", str(book_path)])
        assert again.exit_code == 0
        assert "Using cached book" in again.output

    def test_cache_tracks_flags(self, book_path: Path) -> None:
        runner.invoke(app, ["ingest", str(book_path)])

        changed = runner.invoke(app, ["ingest", str(book_path), "--strip-text-align"])
        assert changed.exit_code == 0, changed.output
        assert "Using cached book" not in changed.output

        repeated = runner.invoke(app, ["ingest", str(book_path), "--strip-text-align"])
        assert "Using cached book" in repeated.output

    def test_options_reach_the_pipeline(self, three_chapter_builder: EpubBuilder, tmp_path: Path) -> None:
        three_chapter_builder.nav_points.clear()
        three_chapter_builder.add_nav_point("np1", 1, "Text/c.xhtml", "C")
        three_chapter_builder.add_nav_point("np2", 2, "Text/a.xhtml", "A")
        path = three_chapter_builder.write(tmp_path / "book.epub")

        result = runner.invoke(app, ["ingest", str(path), "-q", "--strict-toc"])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_broken_archive(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.epub"
        path.write_bytes(b"not a zip")

        result = runner.invoke(app, ["ingest", str(path), "-q"])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_unsupported_suffix(self, tmp_path: Path) -> None:
        path = tmp_path / "book.pdf"
        path.write_bytes(b"%PDF")

        result = runner.invoke(app, ["ingest", str(path)])

        assert result.exit_code == 1
        assert "Unsupported file format" in result.output

    def test_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["ingest", str(tmp_path / "nope.epub")])
        assert result.exit_code != 0


class TestInfo:
    def test_shows_metadata_and_chapters(self, book_path: Path) -> None:
        result = runner.invoke(app, ["info", str(book_path)])

        assert result.exit_code == 0, result.output
        assert "Test Book" in result.output
        assert "Jane Author" in result.output
        assert "Chapters" in result.output

    def test_broken_archive(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.epub"
        path.write_bytes(b"not a zip")

        result = runner.invoke(app, ["info", str(path)])
        assert result.exit_code == 1


class TestCacheCommands:
    def test_list_and_clear(self, book_path: Path) -> None:
        runner.invoke(app, ["ingest", str(book_path), "-q"])
        cache_dir = str(book_path.parent)

        listed = runner.invoke(app, ["cache", "list", "--dir", cache_dir])
        assert listed.exit_code == 0
        assert "Cached books" in listed.output

        cleared = runner.invoke(app, ["cache", "clear", "-d", cache_dir])
        assert cleared.exit_code == 0
        assert "Removed 1" in cleared.output

        empty = runner.invoke(app, ["cache", "list", "-d", cache_dir])
        assert "Cache is empty" in empty.output
