"""Embedded metadata stripping and injection via `exiftool`."""

from __future__ import annotations

from pathlib import Path

from ..models.datatypes import BibliographicContext
from ..runtime_tools import ToolRunner


class MetadataTool:
    """Rewrite embedded tags of a persisted file in place."""

    def __init__(self, runner: ToolRunner, executable: str = "exiftool") -> None:
        self._runner = runner
        self._executable = executable

    def strip(self, path: Path, *, stage: str) -> None:
        """Remove every embedded tag from `path`."""

        self._runner.run(
            self._executable,
            ["-overwrite_original", "-all:all=", str(path)],
            stage=stage,
        )

    def inject(self, path: Path, context: BibliographicContext, *, stage: str) -> None:
        """Set exactly title, primary "first last" author, and publisher on `path`."""

        self._runner.run(
            self._executable,
            [
                "-overwrite_original",
                "-charset",
                "exif=UTF8",
                f"-Title={context.short_title}",
                f"-Author={context.author.display_name}",
                f"-Publisher={context.publisher.name}",
                str(path),
            ],
            stage=stage,
        )
