"""Taxonomía de errores del Core.

Por qué una enumeración + excepción:
- `ErrorKind` hace la clasificación exhaustiva (se puede hacer `match` sobre
  `error.kind`) y lleva datos asociados (status, causa, URL).
- La cancelación NO es un error: nunca se convierte en `MovieCatalogError`;
  `asyncio.CancelledError` se propaga tal cual.
"""

from __future__ import annotations

from enum import Enum

UNAUTHORIZED_STATUS = 401


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    TRANSPORT = "transport"
    HTTP = "http"
    UNAUTHORIZED = "unauthorized"
    MISSING_DATA = "missing_data"
    DECODE = "decode"


class MovieCatalogError(Exception):
    """Base de los fallos tipados del catálogo y de la caché de imágenes."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str = "",
        *,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.kind = kind
        self.status_code = status_code
        self.cause = cause
        super().__init__(message or self._default_message())

    def _default_message(self) -> str:
        if self.kind is ErrorKind.UNAUTHORIZED:
            return "Authentication failed (401). Check the API bearer token."
        if self.kind is ErrorKind.HTTP:
            return f"HTTP error status {self.status_code}"
        if self.kind is ErrorKind.DECODE and self.cause is not None:
            return f"Decoding failed: {self.cause}"
        if self.kind is ErrorKind.TRANSPORT and self.cause is not None:
            return f"Transport failure: {self.cause}"
        return {
            ErrorKind.INVALID_INPUT: "Invalid input",
            ErrorKind.TRANSPORT: "Transport failure",
            ErrorKind.MISSING_DATA: "No data received",
            ErrorKind.DECODE: "Decoding failed",
        }[self.kind]

    @property
    def is_http_failure(self) -> bool:
        return self.kind in (ErrorKind.HTTP, ErrorKind.UNAUTHORIZED)

    @classmethod
    def from_status(cls, status_code: int, message: str = "", **kwargs: object):
        kind = ErrorKind.UNAUTHORIZED if status_code == UNAUTHORIZED_STATUS else ErrorKind.HTTP
        return cls(kind, message, status_code=status_code, **kwargs)  # type: ignore[arg-type]

    def __repr__(self) -> str:
        parts = [f"kind={self.kind.value}"]
        if self.status_code is not None:
            parts.append(f"status_code={self.status_code}")
        return f"{self.__class__.__name__}({', '.join(parts)})"


class CatalogError(MovieCatalogError):
    """Fallo de una consulta al catálogo remoto (listado, búsqueda, tráiler)."""


class ImageFetchError(MovieCatalogError):
    """Fallo al resolver una URL de imagen a una imagen decodificada."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str = "",
        *,
        url: str | None = None,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.url = url
        super().__init__(kind, message, status_code=status_code, cause=cause)
