"""Decodificación de imágenes (Pillow).

Se ejecuta fuera del event loop (`asyncio.to_thread`) porque decodificar un
póster grande es CPU puro.
"""

from __future__ import annotations

from io import BytesIO

from PIL import Image, UnidentifiedImageError

from core.domain.errors import ErrorKind, ImageFetchError
from core.domain.models import PosterImage


def decode_image(url: str, data: bytes) -> PosterImage:
    """Decodifica `data` por completo y devuelve un `PosterImage` inmutable.

    `Image.open` es perezoso: `load()` fuerza la decodificación para detectar
    ficheros truncados aquí y no en la capa de presentación.
    """

    if not data:
        raise ImageFetchError(ErrorKind.MISSING_DATA, url=url)

    try:
        with Image.open(BytesIO(data)) as image:
            image.load()
            width, height = image.size
            return PosterImage(
                url=url,
                data=bytes(data),
                format=image.format,
                mode=image.mode,
                width=width,
                height=height,
            )
    # Pillow reporta PNG corruptos con SyntaxError.
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as exc:
        raise ImageFetchError(ErrorKind.DECODE, url=url, cause=exc) from exc
