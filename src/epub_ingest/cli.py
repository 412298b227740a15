"""Main CLI application."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from epub_ingest.cache.manager import CacheManager
from epub_ingest.commands.ingest import book_info_lines, display_chapters, execute_ingest
from epub_ingest.core.epub_parser import EpubParser, is_supported
from epub_ingest.errors import EpubIngestError
from epub_ingest.models.config import IngestConfig

app = typer.Typer(
    name="epub-ingest",
    help="Ingest EPUB archives into paginated, normalized chapters.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

cache_app = typer.Typer(help="Inspect or clear the on-disk book cache")
app.add_typer(cache_app, name="cache")


def _check_supported(book_path: Path) -> None:
    if not is_supported(book_path):
        console.print(f"[red]Unsupported file format: {book_path.suffix}[/]")
        console.print("[dim]Supported formats: .epub[/]")
        raise typer.Exit(1)


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """Ingest EPUB archives into paginated, normalized chapters."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()
def ingest(
    book_path: Annotated[
        Path,
        typer.Argument(
            help="Path to the EPUB file",
            exists=True,
            file_okay=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ],
    output_dir: Annotated[
        Optional[Path],
        typer.Option(
            "--output-dir",
            "-o",
            help="Output directory (default: novels/ next to the EPUB)",
        ),
    ] = None,
    strip_text_align: Annotated[
        bool,
        typer.Option("--strip-text-align", help="Also remove text-align declarations"),
    ] = False,
    downgrade_all_headings: Annotated[
        bool,
        typer.Option("--downgrade-all-headings", help="Shift h1-h5 down one level, not just h1"),
    ] = False,
    nested_toc: Annotated[
        bool,
        typer.Option("--nested-toc", help="Start chapters at nested TOC entries too"),
    ] = False,
    strict_toc: Annotated[
        bool,
        typer.Option("--strict-toc", help="Fail on TOC entries that go backwards in reading order"),
    ] = False,
    asset_url_prefix: Annotated[
        str,
        typer.Option("--asset-url-prefix", help="URL prefix for resource links in rendered chapters"),
    ] = "/novels",
    force: Annotated[
        bool,
        typer.Option("--force", help="Force re-parsing, ignore cache"),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress progress output"),
    ] = False,
) -> None:
    """Ingest an EPUB file and write its resources and chapter manifest."""
    _check_supported(book_path)

    config = IngestConfig(
        strip_text_align=strip_text_align,
        downgrade_all_headings=downgrade_all_headings,
        include_nested_nav_points=nested_toc,
        strict_toc_order=strict_toc,
        asset_url_prefix=asset_url_prefix,
    )

    try:
        execute_ingest(
            book_path=book_path,
            output_dir=output_dir,
            config=config,
            force=force,
            quiet=quiet,
            console=console,
        )
    except EpubIngestError as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


@app.command()
def info(
    book_path: Annotated[
        Path,
        typer.Argument(
            help="Path to the EPUB file",
            exists=True,
            file_okay=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ],
) -> None:
    """Display book metadata and chapters."""
    _check_supported(book_path)

    try:
        book = EpubParser(book_path).parse()
    except EpubIngestError as e:
        console.print(f"[red]Error reading file: {e}[/]")
        raise typer.Exit(1)

    console.print()
    console.print(Panel("\n".join(book_info_lines(book)), title="Book Information", border_style="green"))
    console.print()
    display_chapters(book, console)
    console.print()


CacheDirOption = Annotated[
    Path,
    typer.Option(
        "--dir",
        "-d",
        help="Directory holding .epub_ingest_cache (default: current directory)",
    ),
]


@cache_app.command("clear")
def cache_clear(project_dir: CacheDirOption = Path(".")) -> None:
    """Delete every cached book."""
    removed = CacheManager(project_dir.resolve()).clear()

    if removed:
        console.print(f"[green]Removed {removed} cached book(s)[/]")
    else:
        console.print("[dim]Cache is already empty[/]")


@cache_app.command("list")
def cache_list(project_dir: CacheDirOption = Path(".")) -> None:
    """List cached archives and their digests."""
    entries = CacheManager(project_dir.resolve()).entries()

    if not entries:
        console.print("[dim]Cache is empty[/]")
        return

    table = Table(title="Cached books", show_header=True, header_style="bold cyan")
    table.add_column("Archive", style="white", overflow="fold")
    table.add_column("Digest", style="dim", width=12)
    for archive_path, digest in entries:
        table.add_row(archive_path, digest[:12])

    console.print(table)


if __name__ == "__main__":
    app()
