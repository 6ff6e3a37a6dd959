"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (HTTP/caché de imágenes) lean config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.language import Language


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "movie-catalog"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "movie-catalog"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "movie-catalog"
    return Path.home() / ".config" / "movie-catalog"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], *, env_path: Path | None = None) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# movie-catalog user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="MOVIE_CATALOG_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    api_base_url: str = Field(
        default="https://api.themoviedb.org/3",
        min_length=8,
        description="Base URL de la API de metadatos (TMDB v3).",
    )
    api_token: str | None = Field(
        default=None,
        description="Bearer token (TMDB 'API Read Access Token').",
    )
    image_base_url: str = Field(
        default="https://image.tmdb.org/t/p",
        min_length=8,
        description="Base URL del CDN de imágenes.",
    )
    poster_size: str = Field(
        default="w500",
        min_length=1,
        description="Tamaño de póster solicitado al CDN (w92, w185, w500, original...).",
    )

    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default="movie-catalog/0.1 (+https://local)",
        min_length=1,
        description="User-Agent para peticiones HTTP.",
    )
    language: Language = Field(
        default_factory=Language.default,
        description="Locale enviado a la API (parámetro `language`).",
    )

    trailer_site: str = Field(
        default="YouTube",
        min_length=1,
        description="Sitio de vídeo aceptado al elegir un tráiler.",
    )
    trailer_types: list[str] = Field(
        default_factory=lambda: ["Trailer", "Teaser"],
        min_length=1,
        description="Tipos de vídeo aceptados como tráiler.",
    )

    search_debounce_seconds: float = Field(
        default=0.5,
        ge=0,
        description="Espera tras la última pulsación antes de lanzar una búsqueda.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Nivel de logging por defecto (DEBUG, INFO, WARNING...).",
    )

    @property
    def poster_base_url(self) -> str:
        return f"{self.image_base_url.rstrip('/')}/{self.poster_size.strip('/')}"
