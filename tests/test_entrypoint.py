"""Tests for the project entrypoints and packaging metadata."""

from __future__ import annotations

import importlib.util
from pathlib import Path

import pytest

import cli.main as cli_main

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _load_root_main():
    spec = importlib.util.spec_from_file_location("movie_catalog_root_main", PROJECT_ROOT / "main.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestEntrypoints:
    def test_root_main_runs_cli(self, monkeypatch):
        calls: list[str] = []
        monkeypatch.setattr(cli_main, "run", lambda: calls.append("run"))

        module = _load_root_main()
        module.main()

        assert calls == ["run"]
        assert module.SRC_DIR == PROJECT_ROOT / "src"

    def test_readme_is_packaged(self):
        tomllib = pytest.importorskip("tomllib")
        data = tomllib.loads((PROJECT_ROOT / "pyproject.toml").read_text(encoding="utf-8"))

        readme = PROJECT_ROOT / data["project"]["readme"]

        assert readme.name == "README.md"
        assert "movie-catalog" in readme.read_text(encoding="utf-8")
