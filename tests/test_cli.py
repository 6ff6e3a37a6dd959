"""CLI tests: Typer commands driven against a faked HTTP transport."""

from __future__ import annotations

import json

import httpx
import pytest
from typer.testing import CliRunner

import cli.doctor as cli_doctor
import cli.main as cli_main
from adapters.http_client import build_async_client
from tests.conftest import API_BASE, IMAGE_BASE, make_png, page_payload

runner = CliRunner()


def _catalog_handler(status_code: int = 200):
    png = make_png(2, 3)

    def handler(request: httpx.Request) -> httpx.Response:
        if status_code != 200:
            return httpx.Response(status_code, json={"status_message": "nope"})
        if request.url.host == "img.test":
            return httpx.Response(200, content=png, headers={"Content-Type": "image/png"})
        if request.url.path == "/3/movie/42/videos":
            return httpx.Response(
                200,
                json={"id": 42, "results": [{"site": "YouTube", "type": "Trailer", "key": "abc", "name": "Trailer"}]},
            )
        page = int(request.url.params.get("page", "1"))
        return httpx.Response(200, json=page_payload(page, [page * 10 + 1, page * 10 + 2], total_pages=2))

    return handler


@pytest.fixture
def cli_env(monkeypatch, tmp_path):
    """Point settings at the fake hosts and record every request the CLI makes."""

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("MOVIE_CATALOG_API_BASE_URL", API_BASE)
    monkeypatch.setenv("MOVIE_CATALOG_IMAGE_BASE_URL", IMAGE_BASE)
    monkeypatch.setenv("MOVIE_CATALOG_API_TOKEN", "cli-token")  # pragma: allowlist secret

    requests: list[httpx.Request] = []
    state = {"handler": _catalog_handler()}

    def fake_builder(settings=None, **kwargs):
        def recording(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return state["handler"](request)

        return build_async_client(settings, transport=httpx.MockTransport(recording))

    monkeypatch.setattr(cli_main, "build_async_client", fake_builder)
    monkeypatch.setattr(cli_doctor, "build_async_client", fake_builder)
    return requests, state


class TestCatalogCommands:
    def test_popular(self, cli_env):
        requests, _ = cli_env

        result = runner.invoke(cli_main.app, ["popular", "--page", "2", "--language", "en"])

        assert result.exit_code == 0, result.output
        assert "Popular movies" in result.output
        assert requests[0].url.path == "/3/movie/popular"
        assert requests[0].url.params["page"] == "2"
        assert requests[0].url.params["language"] == "en-US"
        assert requests[0].headers["Authorization"] == "Bearer cli-token"

    def test_search_exports_json(self, cli_env, tmp_path):
        requests, _ = cli_env
        output = tmp_path / "search.json"

        result = runner.invoke(cli_main.app, ["search", "alien", "--export-json", str(output)])

        assert result.exit_code == 0, result.output
        assert requests[0].url.params["query"] == "alien"
        data = json.loads(output.read_text(encoding="utf-8"))
        assert [item["id"] for item in data["items"]] == [11, 12]
        assert data["items"][0]["poster_url"] == "https://img.test/t/p/w500/poster11.jpg"

    def test_unknown_language_is_usage_error(self, cli_env):
        requests, _ = cli_env

        result = runner.invoke(cli_main.app, ["popular", "--language", "xx"])

        assert result.exit_code == 2
        assert requests == []

    def test_trailer(self, cli_env):
        result = runner.invoke(cli_main.app, ["trailer", "42"])

        assert result.exit_code == 0, result.output
        assert "youtube.com/watch?v=abc" in result.output.replace("\n", "")

    def test_unauthorized_exits_with_hint(self, cli_env):
        _, state = cli_env
        state["handler"] = _catalog_handler(status_code=401)

        result = runner.invoke(cli_main.app, ["popular"])

        assert result.exit_code == 1
        assert "setup-token" in result.output

    def test_posters_go_through_the_image_cache(self, cli_env):
        requests, _ = cli_env

        result = runner.invoke(cli_main.app, ["posters"])

        assert result.exit_code == 0, result.output
        assert "2/2 posters decoded" in result.output
        image_requests = [r for r in requests if r.url.host == "img.test"]
        assert sorted(r.url.path for r in image_requests) == ["/t/p/w500/poster11.jpg", "/t/p/w500/poster12.jpg"]
        assert all("Authorization" not in r.headers for r in image_requests)


class TestDoctor:
    def test_run_reports_catalog(self, cli_env):
        result = runner.invoke(cli_main.app, ["doctor", "run"])

        assert result.exit_code == 0, result.output
        assert "Catalog API" in result.output

    def test_setup_token_writes_user_env(self, cli_env, tmp_path):
        result = runner.invoke(cli_main.app, ["doctor", "setup-token"], input="https://api.example/3\nsecret-token\n")

        assert result.exit_code == 0, result.output
        env_text = (tmp_path / "config" / "movie-catalog" / ".env").read_text(encoding="utf-8")
        assert "MOVIE_CATALOG_API_TOKEN=secret-token" in env_text
        assert "MOVIE_CATALOG_API_BASE_URL=https://api.example/3" in env_text
