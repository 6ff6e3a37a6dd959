"""Exportación JSON de una página del catálogo.

Por qué JSON:
- Interoperabilidad con otras herramientas y pipelines.
- Permite guardar un resultado de búsqueda sin depender de la presentación.
"""

from __future__ import annotations

import json
from pathlib import Path

from core.domain.models import CatalogPage


def export_page_json(*, page: CatalogPage, output_path: Path, poster_base_url: str | None = None) -> Path:
    """Exporta `CatalogPage` a JSON UTF-8 con formato estable.

    Con `poster_base_url` cada item lleva además su `poster_url` absoluta.
    """

    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = page.model_dump(mode="json")
    if poster_base_url:
        for raw, item in zip(payload["items"], page.items):
            raw["poster_url"] = item.poster_url(poster_base_url)
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path
