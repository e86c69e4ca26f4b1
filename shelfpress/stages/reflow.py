"""Reflowable edition conversion via calibre's `ebook-convert`.

The conversion profile is fixed: embedded raster images are dropped from body
text, heuristic structure detection is enabled, the base font size is pinned,
and text is transliterated to ASCII.
"""

from __future__ import annotations

from pathlib import Path

from ..models.datatypes import BibliographicContext
from ..runtime_tools import ToolRunner

REFLOW_PROFILE = (
    "--no-images",
    "--enable-heuristics",
    "--remove-paragraph-spacing",
    "--base-font-size=12",
    "--asciiize",
)


class ReflowConverter:
    """Derive a reflowable edition from a sanitized document."""

    stage_name = "reflow"

    def __init__(self, runner: ToolRunner, executable: str = "ebook-convert") -> None:
        self._runner = runner
        self._executable = executable

    def build_arguments(
        self,
        source: Path,
        output: Path,
        context: BibliographicContext,
        cover: Path | None = None,
    ) -> list[str]:
        """Return the converter argument vector for one edition."""

        arguments = [
            str(source),
            str(output),
            *REFLOW_PROFILE,
            f"--title={context.short_title}",
            f"--authors={context.authors_display}",
            f"--publisher={context.publisher.name}",
        ]
        if cover is not None:
            arguments.append(f"--cover={cover}")
        return arguments

    def convert(
        self,
        source: Path,
        output: Path,
        context: BibliographicContext,
        cover: Path | None = None,
    ) -> Path:
        """Write the edition to `output`, replacing any previous conversion."""

        self._runner.run(
            self._executable,
            self.build_arguments(source, output, context, cover),
            stage=self.stage_name,
        )
        return output
