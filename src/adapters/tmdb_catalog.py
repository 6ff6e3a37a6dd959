"""Cliente del catálogo remoto (TMDB v3).

Responsabilidad:
- Traducir (consulta, página) a un `CatalogPage` decodificado, o a un
  `CatalogError` tipado.
- Elegir el tráiler de una película entre sus vídeos relacionados.

No guarda estado mutable: cada llamada es independiente y puede lanzarse en
paralelo sobre el mismo `httpx.AsyncClient`.
"""

from __future__ import annotations

import json
import logging
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from adapters.http_client import describe_transport_error
from core.config import AppSettings
from core.domain.errors import CatalogError, ErrorKind
from core.domain.models import CatalogPage, TrailerReference, VideoList
from core.interfaces.catalog import CatalogSource

logger = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)


class TMDBCatalogClient(CatalogSource):
    """Listado popular, búsqueda y tráileres contra la API de TMDB."""

    def __init__(self, client: httpx.AsyncClient, settings: AppSettings | None = None) -> None:
        self._client = client
        self._settings = settings or AppSettings()

    @property
    def settings(self) -> AppSettings:
        return self._settings

    async def list_popular(self, page: int = 1) -> CatalogPage:
        _check_page(page)
        return await self._get_model("/movie/popular", CatalogPage, params={"page": page})

    async def search(self, query: str, page: int = 1) -> CatalogPage:
        encoded = encode_query(query)
        _check_page(page)
        # La query ya va codificada en la ruta; httpx fusiona `params` con ella.
        return await self._get_model(f"/search/movie?query={encoded}", CatalogPage, params={"page": page})

    async def fetch_trailer(self, item_id: int) -> TrailerReference:
        if isinstance(item_id, bool) or not isinstance(item_id, int) or item_id < 1:
            raise CatalogError(ErrorKind.INVALID_INPUT, f"Invalid item id: {item_id!r}")

        videos = await self._get_model(f"/movie/{item_id}/videos", VideoList)
        trailer = select_trailer(
            videos.results,
            site=self._settings.trailer_site,
            types=self._settings.trailer_types,
        )
        if trailer is None:
            raise CatalogError(
                ErrorKind.MISSING_DATA,
                f"No {self._settings.trailer_site} trailer found for item {item_id}",
            )
        return trailer

    async def _get_model(
        self,
        path: str,
        model: type[_ModelT],
        *,
        params: dict[str, Any] | None = None,
    ) -> _ModelT:
        url = f"{self._settings.api_base_url.rstrip('/')}{path}"
        query = {"language": self._settings.language.value, **(params or {})}
        headers = {"Accept": "application/json"}
        if self._settings.api_token:
            headers["Authorization"] = f"Bearer {self._settings.api_token}"

        logger.debug("GET %s params=%s", path, query)
        try:
            response = await self._client.get(url, params=query, headers=headers)
        except httpx.HTTPError as exc:
            # asyncio.CancelledError no es HTTPError: la cancelación sigue su curso.
            logger.warning("Catalog request %s failed: %s", path, describe_transport_error(exc))
            raise CatalogError(ErrorKind.TRANSPORT, cause=exc) from exc

        return decode_response(response, model)


def encode_query(query: str) -> str:
    """Percent-encoding de la búsqueda; vacía o no codificable -> `invalid_input`."""

    if not isinstance(query, str) or not query.strip():
        raise CatalogError(ErrorKind.INVALID_INPUT, "Search query must not be empty")
    try:
        return quote(query.strip(), safe="")
    except UnicodeEncodeError as exc:
        raise CatalogError(ErrorKind.INVALID_INPUT, "Search query cannot be encoded", cause=exc) from exc


def decode_response(response: httpx.Response, model: type[_ModelT]) -> _ModelT:
    """Clasifica una respuesta HTTP y la valida contra `model`.

    Orden: status no-2xx -> cuerpo vacío -> JSON inválido / esquema inválido.
    """

    if not response.is_success:
        logger.warning("Catalog request %s returned HTTP %s", response.request.url.path, response.status_code)
        raise CatalogError.from_status(response.status_code)

    body = response.content
    if not body or not body.strip():
        raise CatalogError(ErrorKind.MISSING_DATA)

    try:
        payload = json.loads(body)
    except ValueError as exc:
        raise CatalogError(ErrorKind.DECODE, cause=exc) from exc

    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise CatalogError(ErrorKind.DECODE, cause=exc) from exc


def select_trailer(
    videos: list[TrailerReference],
    *,
    site: str = "YouTube",
    types: list[str] | tuple[str, ...] = ("Trailer", "Teaser"),
) -> TrailerReference | None:
    """Primer vídeo cuyo tipo es aceptado y cuyo sitio es `site` (orden de la API)."""

    accepted = set(types)
    wanted_site = site.strip().lower()
    for video in videos:
        if video.type in accepted and video.site.strip().lower() == wanted_site:
            return video
    return None


def _check_page(page: int) -> None:
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise CatalogError(ErrorKind.INVALID_INPUT, f"Invalid page number: {page!r}")
