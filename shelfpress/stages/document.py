"""Primary document persistence and sanitization stage."""

from __future__ import annotations

from pathlib import Path

from ..io.storage import persist_stream
from ..models.datatypes import BibliographicContext, UploadedFile
from .metadata import MetadataTool


class DocumentStage:
    """Persist an uploaded document, strip its tags, and write canonical metadata."""

    stage_name = "document"

    def __init__(self, metadata: MetadataTool) -> None:
        self._metadata = metadata

    def run(self, upload: UploadedFile, target: Path, context: BibliographicContext) -> Path:
        """Write `upload` to `target` and return the sanitized document path."""

        persist_stream(upload.stream, target, stage=self.stage_name)
        self._metadata.strip(target, stage=self.stage_name)
        self._metadata.inject(target, context, stage=self.stage_name)
        return target
