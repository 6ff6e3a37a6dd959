"""CLI principal (Typer).

Comandos:
- `popular` / `search`: una página del catálogo, opcionalmente exportada a JSON.
- `trailer`: el tráiler elegido para una película.
- `posters`: resuelve los pósters de una página en paralelo con una única
  `ImageFetchCache` (útil para comprobar CDN + decodificación).
- `doctor`: diagnósticos de entorno.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console

from adapters.http_client import build_async_client
from adapters.image_cache import ImageFetchCache
from adapters.json_exporter import export_page_json
from adapters.tmdb_catalog import TMDBCatalogClient
from cli import doctor
from cli.ui_components import (
    build_page_table,
    build_posters_table,
    build_trailer_panel,
    print_banner,
)
from core.config import AppSettings
from core.domain.errors import CatalogError, ErrorKind, ImageFetchError
from core.domain.language import Language
from core.domain.models import CatalogItem, CatalogPage, PosterImage, TrailerReference
from core.logging_setup import configure_logging

app = typer.Typer(no_args_is_help=True, help="Browse a remote movie catalogue from the terminal.")
app.add_typer(doctor.app, name="doctor")

_console = Console()


def _load_settings(language: str | None) -> AppSettings:
    settings = AppSettings()
    if language:
        try:
            settings = settings.model_copy(update={"language": Language.from_code(language)})
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--language") from exc
    return settings


def _fail(exc: CatalogError) -> typer.Exit:
    _console.print(f"[red]Error:[/red] {exc}")
    if exc.kind is ErrorKind.UNAUTHORIZED:
        _console.print("[yellow]Hint:[/yellow] run `movie-catalog doctor setup-token`.")
    return typer.Exit(code=1)


async def _fetch_page(settings: AppSettings, query: str | None, page: int) -> CatalogPage:
    async with build_async_client(settings) as http:
        client = TMDBCatalogClient(http, settings)
        if query is None:
            return await client.list_popular(page)
        return await client.search(query, page)


async def _fetch_trailer(settings: AppSettings, item_id: int) -> TrailerReference:
    async with build_async_client(settings) as http:
        return await TMDBCatalogClient(http, settings).fetch_trailer(item_id)


async def _fetch_posters(
    settings: AppSettings,
    query: str | None,
    page: int,
) -> tuple[CatalogPage, list[tuple[CatalogItem, PosterImage | None, str | None]]]:
    async with build_async_client(settings) as http:
        client = TMDBCatalogClient(http, settings)
        result_page = await (client.search(query, page) if query else client.list_popular(page))
        cache = ImageFetchCache(http)

        async def load_one(item: CatalogItem) -> tuple[CatalogItem, PosterImage | None, str | None]:
            url = item.poster_url(settings.poster_base_url)
            if url is None:
                return item, None, "no poster"
            try:
                return item, await cache.load(url), None
            except ImageFetchError as exc:
                return item, None, str(exc)

        rows = await asyncio.gather(*(load_one(item) for item in result_page.items))
        return result_page, list(rows)


def _show_page(page: CatalogPage, *, title: str, settings: AppSettings, export_json: Path | None) -> None:
    _console.print(build_page_table(page, title=title))
    if export_json:
        path = export_page_json(page=page, output_path=export_json, poster_base_url=settings.poster_base_url)
        _console.print(f"[green]Saved JSON to:[/green] {path}")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    banner: bool = typer.Option(False, "--banner", help="Print the welcome banner."),
) -> None:
    settings = AppSettings()
    configure_logging("DEBUG" if verbose else settings.log_level)
    if banner:
        print_banner(_console)


@app.command()
def popular(
    page: int = typer.Option(1, "--page", "-p", min=1, help="Page number (1-based)."),
    language: str | None = typer.Option(None, "--language", "-l", help="Locale, e.g. en-US or ko."),
    export_json: Path | None = typer.Option(None, "--export-json", help="Write the page to this JSON file."),
) -> None:
    """Show a page of the popular movies ranking."""

    settings = _load_settings(language)
    try:
        result = asyncio.run(_fetch_page(settings, None, page))
    except CatalogError as exc:
        raise _fail(exc) from exc
    _show_page(result, title="Popular movies", settings=settings, export_json=export_json)


@app.command()
def search(
    query: str = typer.Argument(..., help="Free-text title search."),
    page: int = typer.Option(1, "--page", "-p", min=1, help="Page number (1-based)."),
    language: str | None = typer.Option(None, "--language", "-l", help="Locale, e.g. en-US or ko."),
    export_json: Path | None = typer.Option(None, "--export-json", help="Write the page to this JSON file."),
) -> None:
    """Search movies by title."""

    settings = _load_settings(language)
    try:
        result = asyncio.run(_fetch_page(settings, query, page))
    except CatalogError as exc:
        raise _fail(exc) from exc
    _show_page(result, title=f"Search: {query.strip()}", settings=settings, export_json=export_json)


@app.command()
def trailer(
    item_id: int = typer.Argument(..., min=1, help="Movie id as shown by `popular`/`search`."),
    language: str | None = typer.Option(None, "--language", "-l", help="Locale, e.g. en-US or ko."),
) -> None:
    """Show the trailer reference chosen for a movie."""

    settings = _load_settings(language)
    try:
        reference = asyncio.run(_fetch_trailer(settings, item_id))
    except CatalogError as exc:
        raise _fail(exc) from exc
    _console.print(build_trailer_panel(item_id, reference))


@app.command()
def posters(
    query: str | None = typer.Option(None, "--query", "-q", help="Search instead of the popular listing."),
    page: int = typer.Option(1, "--page", "-p", min=1, help="Page number (1-based)."),
) -> None:
    """Download and decode every poster of a page through the image cache."""

    settings = _load_settings(None)
    try:
        result_page, rows = asyncio.run(_fetch_posters(settings, query, page))
    except CatalogError as exc:
        raise _fail(exc) from exc

    table = build_posters_table()
    for item, image, error in rows:
        if image is not None:
            table.add_row(str(item.id), item.title, image.format or "?", f"{image.width}x{image.height}", "")
        else:
            table.add_row(str(item.id), item.title, "", "", error or "")
    _console.print(table)
    loaded = sum(1 for _, image, _ in rows if image is not None)
    _console.print(f"{loaded}/{len(rows)} posters decoded (page {result_page.page_number}/{result_page.total_pages})")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
