"""Typer CLI for gitignore-downloader."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from gitignore_downloader import __version__, snippets
from gitignore_downloader.cache import JsonCacheStore
from gitignore_downloader.config import DEFAULT_CONFIG_TEMPLATE, LOG_FILE, Config
from gitignore_downloader.errors import GitignoreDownloaderError, SelectionCancelled
from gitignore_downloader.models import WriteMode
from gitignore_downloader.picker import FuzzyPicker, Picker
from gitignore_downloader.pipeline import Request, load_index, run
from gitignore_downloader.remote import GitHubTemplateSource, open_client

load_dotenv()

app = typer.Typer(
    name="gitignore-downloader",
    help="Fetch .gitignore templates from github/gitignore.",
    add_completion=False,
)
console = Console(stderr=True)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"gitignore-downloader {__version__}")
        raise typer.Exit()


def _setup_logging(log_dir: Path, debug: bool) -> None:
    logger = logging.getLogger("gitignore_downloader")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / LOG_FILE, mode="w", encoding="utf-8")
    except OSError:
        file_handler = None
    if file_handler is not None:
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s"))
        logger.addHandler(file_handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    stream_handler.setLevel(logging.DEBUG if debug else logging.WARNING)
    logger.addHandler(stream_handler)


def _make_picker() -> Picker:
    return FuzzyPicker(console=console)


def _snippet_order(ctx: typer.Context) -> list[str]:
    """Snippet flags that were set, in the order they appeared on the command line."""
    # click fills ctx.params in command-line order for the options it saw
    known = set(snippets.keys())
    return [name for name, value in ctx.params.items() if name in known and value]


@app.command()
def main(
    ctx: typer.Context,
    types: Annotated[
        list[str] | None,
        typer.Argument(
            metavar="TYPE...",
            help="Template type(s) to fetch (e.g. rust, node). If omitted, a fuzzy picker opens.",
            show_default=False,
        ),
    ] = None,
    list_types: Annotated[
        bool, typer.Option("--list", "-l", help="List all available template types")
    ] = False,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output path (defaults to .gitignore)"),
    ] = None,
    overwrite: Annotated[
        bool, typer.Option("--overwrite", help="Overwrite the output instead of appending")
    ] = False,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="Print the result instead of writing to disk")
    ] = False,
    no_cache: Annotated[
        bool, typer.Option("--no-cache", help="Ignore the cached type list and hit the API")
    ] = False,
    cache_ttl: Annotated[
        int | None,
        typer.Option(
            "--cache-ttl",
            "--cache-ttl-minutes",
            min=0,
            metavar="MINUTES",
            help="Cache time-to-live for the type list, in minutes (default: 1440)",
        ),
    ] = None,
    macos: Annotated[
        bool, typer.Option("--macos", help="Include the built-in macOS snippet")
    ] = False,
    locks: Annotated[
        bool, typer.Option("--locks", help="Include the built-in lock-file snippet")
    ] = False,
    config_path: Annotated[
        Path | None, typer.Option("--config", "-c", help="Path to config.toml")
    ] = None,
    init_config: Annotated[
        bool, typer.Option("--init-config", help="Write a default config file and exit")
    ] = False,
    debug: Annotated[
        bool, typer.Option("--debug", help="Log debug output to stderr")
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version and exit"),
    ] = None,
) -> None:
    """Fetch .gitignore templates and append them to a local file."""
    if init_config:
        target = config_path or Config.default_path()
        if target.exists():
            console.print(f"[yellow]{escape(str(target))} already exists.[/yellow]")
            raise typer.Exit(1)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(DEFAULT_CONFIG_TEMPLATE)
        console.print(f"[green]Created {escape(str(target))}[/green]")
        return

    try:
        config = Config.load(config_path)
    except GitignoreDownloaderError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(1)

    cache_dir = config.cache.resolve_dir()
    _setup_logging(cache_dir, debug)

    store = JsonCacheStore(config.cache.file)
    ttl = cache_ttl if cache_ttl is not None else config.cache.ttl_minutes
    use_cache = config.cache.enabled and not no_cache

    if dry_run:
        mode = WriteMode.DRY_RUN
    elif overwrite:
        mode = WriteMode.OVERWRITE
    else:
        mode = WriteMode.APPEND

    request = Request(
        tokens=list(types or []),
        snippets=_snippet_order(ctx),
        output=output or Path(config.output.path),
        mode=mode,
        ttl_minutes=ttl,
        use_cache=use_cache,
    )

    try:
        with open_client(config.remote) as client:
            source = GitHubTemplateSource(client, config.remote)
            if list_types:
                index = load_index(store, source, ttl_minutes=ttl, use_cache=use_cache)
                for name in index.names:
                    typer.echo(name)
                return
            doc = run(request, store=store, source=source, picker=_make_picker())
    except SelectionCancelled:
        console.print("[yellow]Selection cancelled[/yellow]")
        raise typer.Exit(0)
    except GitignoreDownloaderError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(1)

    for name in doc.skipped:
        console.print(f"[dim]Skipping {escape(name)} (already present)[/dim]")
    if mode is WriteMode.DRY_RUN:
        return
    target = escape(str(request.output))
    if mode is WriteMode.OVERWRITE:
        console.print(f"[green]Wrote templates to {target}[/green]")
    elif doc.added:
        console.print(f"[green]Appended {escape(', '.join(doc.added))} to {target}[/green]")
    else:
        console.print(f"[dim]Nothing new to add to {target}[/dim]")
