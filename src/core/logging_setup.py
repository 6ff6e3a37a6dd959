"""Configuración de logging.

Los módulos usan `logging.getLogger(__name__)`; aquí solo se decide dónde y
con qué nivel se muestran. La salida va por `rich` para que conviva con las
tablas de la CLI.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_PACKAGES = ("adapters", "core", "cli")


def configure_logging(level: str | int = logging.WARNING, *, console: Console | None = None) -> None:
    """Instala un único `RichHandler` en la raíz. Llamadas repetidas solo ajustan el nivel."""

    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level!r}")
        level = resolved

    root = logging.getLogger()
    handler = next((h for h in root.handlers if isinstance(h, RichHandler)), None)
    if handler is None:
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        root.addHandler(handler)

    handler.setLevel(level)
    root.setLevel(level)
    for name in _PACKAGES:
        logging.getLogger(name).setLevel(level)

    # httpx/httpcore son muy verbosos en DEBUG.
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))
