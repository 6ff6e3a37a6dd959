"""
Pytest configuration and shared fixtures for movie-catalog tests.

HTTP is always faked with `httpx.MockTransport`; nothing here touches the
network or the user's `.env` files.
"""

from __future__ import annotations

from collections.abc import Callable
from io import BytesIO
from typing import Any

import httpx
import pytest
from PIL import Image

from core.config import AppSettings

API_BASE = "https://api.test/3"
IMAGE_BASE = "https://img.test/t/p"


def make_settings(**overrides: Any) -> AppSettings:
    values: dict[str, Any] = {
        "api_base_url": API_BASE,
        "api_token": "test-token",  # pragma: allowlist secret
        "image_base_url": IMAGE_BASE,
        "http_timeout_seconds": 10.0,
    }
    values.update(overrides)
    return AppSettings(_env_file=None, **values)


def make_png(width: int = 4, height: int = 6, color: str = "red") -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


def movie_payload(movie_id: int, **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": movie_id,
        "title": f"Movie {movie_id}",
        "overview": f"Synopsis of movie {movie_id}",
        "poster_path": f"/poster{movie_id}.jpg",
        "vote_average": 7.5,
    }
    payload.update(overrides)
    return payload


def page_payload(page: int, ids: list[int], total_pages: int = 3) -> dict[str, Any]:
    return {
        "page": page,
        "total_pages": total_pages,
        "total_results": total_pages * len(ids),
        "results": [movie_payload(i) for i in ids],
    }


@pytest.fixture
def settings() -> AppSettings:
    return make_settings()


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def recorded_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
def mock_client_factory(
    recorded_requests: list[httpx.Request],
) -> Callable[[Callable[[httpx.Request], Any]], httpx.AsyncClient]:
    """Build an `httpx.AsyncClient` whose transport records and delegates to `handler`."""

    clients: list[httpx.AsyncClient] = []

    def factory(handler: Callable[[httpx.Request], Any]) -> httpx.AsyncClient:
        async def recording(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(request)
            response = handler(request)
            if not isinstance(response, httpx.Response):
                response = await response
            return response

        client = httpx.AsyncClient(transport=httpx.MockTransport(recording))
        clients.append(client)
        return client

    return factory
