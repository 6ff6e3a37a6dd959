"""Contratos del catálogo remoto.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- Los servicios (feed paginado, búsqueda con debounce) pueden probarse con un
  stub en memoria sin levantar HTTP.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import CatalogPage, TrailerReference


@runtime_checkable
class CatalogSource(Protocol):
    """Contrato mínimo de una fuente paginada de películas.

    Reglas de diseño:
    - Todo es asíncrono porque típicamente hará I/O (HTTP).
    - Los fallos se lanzan como `CatalogError`; la cancelación se propaga como
      `asyncio.CancelledError` y nunca se traduce a error.
    """

    async def list_popular(self, page: int = 1) -> CatalogPage:
        ...

    async def search(self, query: str, page: int = 1) -> CatalogPage:
        ...

    async def fetch_trailer(self, item_id: int) -> TrailerReference:
        ...
