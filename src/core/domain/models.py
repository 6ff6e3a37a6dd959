"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- Decodificar la respuesta JSON de la API es validar contra estos modelos: un
  `ValidationError` aquí es un fallo de decodificación, no un bug.

Nota:
- Todos los modelos son inmutables (`frozen`) para poder entregarlos a la capa
  de presentación desde cualquier hilo sin copias defensivas.
"""

from __future__ import annotations

from io import BytesIO
from typing import Any

from PIL import Image
from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

_WATCH_URL_TEMPLATES: dict[str, str] = {
    "youtube": "https://www.youtube.com/watch?v={key}",
    "vimeo": "https://vimeo.com/{key}",
}


class VideoReference(BaseModel):
    """Referencia a un vídeo relacionado (tráiler, teaser, clip...).

    No contiene el stream: solo el sitio que lo aloja y la clave específica
    de ese sitio. Resolverlo a un medio reproducible es cosa del consumidor.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    site: str = Field(..., min_length=1, description="Sitio que aloja el vídeo (p.ej. 'YouTube').")
    type: str = Field(..., min_length=1, description="Etiqueta de tipo ('Trailer', 'Teaser', 'Clip'...).")
    key: str = Field(..., min_length=1, description="Identificador del vídeo en el sitio.")
    name: str | None = Field(default=None, description="Título legible del vídeo, si viene.")

    @property
    def watch_url(self) -> str | None:
        template = _WATCH_URL_TEMPLATES.get(self.site.strip().lower())
        if template is None:
            return None
        return template.format(key=self.key)


# El tráiler elegido es simplemente una referencia de vídeo.
TrailerReference = VideoReference


class CatalogItem(BaseModel):
    """Una película del catálogo remoto."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    id: int = Field(..., description="Identificador de la película en la API.")
    title: str = Field(..., description="Título localizado.")
    synopsis: str = Field(
        default="",
        alias="overview",
        description="Sinopsis localizada (puede venir vacía).",
    )
    poster_path: str | None = Field(
        default=None,
        description="Ruta relativa del póster en el CDN de imágenes.",
    )
    rating: float = Field(
        default=0.0,
        alias="vote_average",
        ge=0.0,
        le=10.0,
        description="Puntuación media de usuarios (0..10).",
    )
    videos: list[VideoReference] | None = Field(
        default=None,
        description="Vídeos relacionados, si la respuesta los incluye.",
    )

    @field_validator("synopsis", mode="before")
    @classmethod
    def _none_synopsis(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("poster_path", mode="before")
    @classmethod
    def _blank_poster(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("videos", mode="before")
    @classmethod
    def _unwrap_videos(cls, value: Any) -> Any:
        # `append_to_response=videos` anida la lista en {"results": [...]}.
        if isinstance(value, dict):
            return value.get("results", [])
        return value

    def poster_url(self, base_url: str) -> str | None:
        """URL absoluta del póster (`base_url` ya incluye el tamaño, p.ej. `.../t/p/w500`)."""

        if not self.poster_path:
            return None
        return f"{base_url.rstrip('/')}/{self.poster_path.lstrip('/')}"


class CatalogPage(BaseModel):
    """Una página de resultados (listado popular o búsqueda)."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    page_number: int = Field(..., alias="page", ge=1)
    total_pages: int = Field(default=1, ge=1)
    items: list[CatalogItem] = Field(default_factory=list, alias="results")

    @field_validator("total_pages", mode="before")
    @classmethod
    def _at_least_one_page(cls, value: Any) -> Any:
        # Búsquedas sin resultados devuelven total_pages=0.
        if isinstance(value, int) and value < 1:
            return 1
        return value

    @property
    def has_next(self) -> bool:
        return self.page_number < self.total_pages


class VideoList(BaseModel):
    """Respuesta de `/movie/{id}/videos`."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: int | None = None
    results: list[VideoReference] = Field(default_factory=list)


class PosterImage(BaseModel):
    """Imagen decodificada e inmutable, tal como la guarda la caché.

    Guarda los bytes originales más los atributos ya validados por el
    decodificador; `to_pil()` entrega una imagen PIL nueva en cada llamada, así
    que ningún consumidor puede mutar lo que está en la caché.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    data: bytes = Field(..., repr=False)
    format: str | None = None
    mode: str
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)

    def to_pil(self) -> Image.Image:
        image = Image.open(BytesIO(self.data))
        image.load()
        return image
