"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import PIL
import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client
from adapters.tmdb_catalog import TMDBCatalogClient
from core.config import AppSettings, write_user_env_vars
from core.domain.errors import CatalogError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_catalog(settings: AppSettings) -> tuple[bool, str]:
    """Fetch page 1 of the popular listing as an end-to-end auth check."""

    try:
        async with build_async_client(settings) as http:
            page = await TMDBCatalogClient(http, settings).list_popular(1)
        return True, f"{len(page.items)} items on page 1/{page.total_pages}"
    except CatalogError as exc:
        return False, str(exc)


async def _check_http(url: str, settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get(url)
        return True, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="movie-catalog Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    if settings.api_token:
        table.add_row("API token", "OK", "Bearer token configured")
    else:
        table.add_row("API token", "MISSING", "Run `movie-catalog doctor setup-token`")
    table.add_row("API base_url", "OK", settings.api_base_url)
    table.add_row("Language", "OK", f"{settings.language.value} ({settings.language.label()})")
    table.add_row("Timeout", "OK", f"{settings.http_timeout_seconds:g}s")
    table.add_row("Pillow", "OK", PIL.__version__)

    # Connectivity (best-effort)
    ok_cdn, detail_cdn = asyncio.run(_check_http(settings.image_base_url, settings))
    table.add_row("Image CDN", "OK" if ok_cdn else "FAIL", detail_cdn)

    ok_api = False
    if settings.api_token:
        ok_api, detail_api = asyncio.run(_check_catalog(settings))
        table.add_row("Catalog API", "OK" if ok_api else "FAIL", detail_api)

    _console.print(table)

    if settings.api_token and not ok_api:
        _console.print(
            "\n[yellow]Note:[/yellow] The catalogue check failed; verify the token with `doctor setup-token`."
        )


@app.command(name="setup-token")
def setup_token() -> None:
    """Interactive API token setup (stores config in the user config .env)."""

    base_url = typer.prompt(
        "API base URL",
        default="https://api.themoviedb.org/3",
        show_default=True,
    ).strip()
    token = typer.prompt("API read access token", hide_input=True, confirmation_prompt=False).strip()

    if not base_url or not token:
        raise typer.BadParameter("base_url and token are required")

    env_path = write_user_env_vars(
        {
            "MOVIE_CATALOG_API_BASE_URL": base_url,
            "MOVIE_CATALOG_API_TOKEN": token,
        }
    )

    _console.print(f"[green]Saved API config to:[/green] {env_path}")
