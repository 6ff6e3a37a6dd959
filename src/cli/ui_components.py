"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import CatalogPage, TrailerReference

_SYNOPSIS_MAX_CHARS = 80


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida."""

    title = Text("movie-catalog", style="bold cyan")
    subtitle = Text("Popular • Search • Trailers", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def _shorten(text: str, limit: int = _SYNOPSIS_MAX_CHARS) -> str:
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[: limit - 1].rstrip() + "…"


def build_page_table(page: CatalogPage, *, title: str) -> Table:
    """Tabla Rich para una página del catálogo."""

    table = Table(title=f"{title} (page {page.page_number}/{page.total_pages})")
    table.add_column("ID", style="cyan", no_wrap=True, justify="right")
    table.add_column("Title", style="white")
    table.add_column("Rating", style="green", justify="right")
    table.add_column("Synopsis", style="dim")
    for item in page.items:
        table.add_row(str(item.id), item.title, f"{item.rating:.1f}", _shorten(item.synopsis))
    return table


def build_posters_table() -> Table:
    table = Table(title="Posters")
    table.add_column("ID", style="cyan", no_wrap=True, justify="right")
    table.add_column("Title", style="white")
    table.add_column("Format", style="magenta")
    table.add_column("Size", style="green")
    table.add_column("Error", style="red")
    return table


def build_trailer_panel(item_id: int, trailer: TrailerReference) -> Panel:
    """Panel para presentar el tráiler elegido."""

    body = Text()
    if trailer.name:
        body.append(trailer.name + "\n", style="bold")
    body.append(f"{trailer.type} on {trailer.site}\n")
    body.append(f"key: {trailer.key}", style="dim")
    if trailer.watch_url:
        body.append(f"\n{trailer.watch_url}", style="underline blue")
    return Panel(body, title=Text(f"Trailer for #{item_id}", style="bold yellow"), border_style="yellow")
