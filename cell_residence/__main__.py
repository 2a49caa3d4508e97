"""Module entry point: python -m cell_residence ..."""

from __future__ import annotations

from cell_residence.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
