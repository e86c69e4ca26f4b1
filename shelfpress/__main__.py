"""Module entrypoint for running shelfpress as ``python -m shelfpress``."""

from __future__ import annotations

from shelfpress.cli import main


if __name__ == "__main__":
    main()
