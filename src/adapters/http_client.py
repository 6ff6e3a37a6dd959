"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts y headers para el cliente del catálogo y la caché de
  imágenes (que comparten un único pool de conexiones).
- Facilita testeo: ambos reciben el `httpx.AsyncClient` por inyección y en
  tests se sustituye el transporte por `httpx.MockTransport`.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults seguros.

    Por qué un builder:
    - Centraliza timeouts/headers para que catálogo e imágenes se comporten igual.
    - No lleva `Authorization`: el bearer lo añade el cliente del catálogo por
      request, así el token no viaja al CDN de imágenes.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "*/*",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


def describe_transport_error(exc: httpx.HTTPError) -> str:
    """Mensaje corto para logs: httpx deja `str(exc)` vacío en algunos timeouts."""

    text = str(exc).strip()
    name = exc.__class__.__name__
    return f"{name}: {text}" if text else name
