"""Ingest command implementation."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from epub_ingest.cache.manager import CacheManager
from epub_ingest.core.epub_parser import EpubParser
from epub_ingest.core.output_writer import OutputWriter
from epub_ingest.core.renderer import AssetUrlResolver
from epub_ingest.models.book import Book
from epub_ingest.models.config import IngestConfig


def get_default_output_dir(book_path: Path) -> Path:
    """Books are written next to the source archive by default."""
    return book_path.parent / "novels"


def book_info_lines(book: Book) -> list[str]:
    metadata = book.metadata
    return [
        f"[bold]{metadata.title}[/]",
        "",
        f"[dim]Book name:[/] {book.book_name}",
        f"[dim]Creator:[/] {metadata.creator or 'Unknown'}",
        f"[dim]Language:[/] {metadata.language or 'Unknown'}",
        f"[dim]Identifier:[/] {metadata.identifier or 'Unknown'}",
        f"[dim]Resources:[/] {len(book.resources)}",
        f"[dim]Chapters:[/] {len(book.chapters)}",
        f"[dim]Cover:[/] {book.cover.resource_name if book.cover else 'None'}",
    ]


def display_chapters(book: Book, console: Console) -> None:
    """Display chapter table."""
    table = Table(title="Chapters", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Title", style="white")
    table.add_column("Play order", justify="right", style="dim")
    table.add_column("Sections", justify="right", style="green")

    for i, chapter in enumerate(book.chapters):
        title = chapter.title or "[dim](front matter)[/]"
        table.add_row(str(i + 1), title, str(chapter.play_order), str(len(chapter.sections)))

    console.print(table)


def parse_book(
    book_path: Path,
    config: IngestConfig,
    force: bool,
    quiet: bool,
    console: Console,
) -> Book:
    """Ingest *book_path*, reusing the on-disk cache unless *force* is set."""
    cache_manager = CacheManager(book_path.parent)
    key = str(book_path)

    if not force:
        cached = cache_manager.get(key, config)
        if cached is not None:
            if not quiet:
                console.print("[dim]Using cached book[/]")
            return cached

    if not quiet:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            progress.add_task("Parsing EPUB...", total=None)
            book = EpubParser(book_path, config).parse()
    else:
        book = EpubParser(book_path, config).parse()

    cache_manager.put(key, book, config)
    if not quiet:
        console.print("[dim]Cached book[/]")
    return book


def execute_ingest(
    book_path: Path,
    output_dir: Path | None,
    config: IngestConfig,
    force: bool,
    quiet: bool,
    console: Console,
) -> Path:
    """Execute the ingest command. Returns the written manifest path."""
    book = parse_book(book_path, config, force, quiet, console)

    if not quiet:
        console.print()
        console.print(Panel("\n".join(book_info_lines(book)), title="Book Info", border_style="green"))
        console.print()

    final_output_dir = output_dir or get_default_output_dir(book_path)
    writer = OutputWriter(final_output_dir, book_path, AssetUrlResolver(config.asset_url_prefix))

    if not quiet:
        with Progress(console=console) as progress:
            task = progress.add_task("Writing resources...", total=len(book.resources))
            for resource in book.resources:
                writer.write_resource(book, resource)
                progress.update(task, advance=1, description=f"Writing: {resource.resource_name[:40]}")
    else:
        for resource in book.resources:
            writer.write_resource(book, resource)

    for number, chapter in enumerate(book.chapters, start=1):
        writer.write_chapter(book, number, chapter)
    manifest_path = writer.write_manifest(book)

    if not quiet:
        console.print()
        summary_lines = [
            f"[green]Ingested {len(book.chapters)} chapter(s) from {len(book.resources)} resource(s)[/]",
            "",
            f"[dim]Output directory:[/] {writer.book_dir(book)}",
            f"[dim]Manifest:[/] {manifest_path.name}",
        ]
        console.print(Panel("\n".join(summary_lines), title="Complete", border_style="green"))

    return manifest_path
