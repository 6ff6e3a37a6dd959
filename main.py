"""Ejecuta la CLI de movie-catalog sin instalar el paquete.

Uso desde la raíz del repo: `python -m main popular --page 2`.

`cli`, `core` y `adapters` viven bajo `src/`; sin un editable install hay que
añadir ese directorio a `sys.path` antes de importar la app Typer.
"""

from __future__ import annotations

import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parent / "src"


def main() -> None:
    if str(SRC_DIR) not in sys.path:
        sys.path.insert(0, str(SRC_DIR))

    from cli.main import run  # noqa: PLC0415

    run()


if __name__ == "__main__":
    main()
