"""Cover image persistence and sanitization stage."""

from __future__ import annotations

from pathlib import Path

from ..io.storage import persist_stream
from ..models.datatypes import UploadedFile
from ..telemetry.logger import RunLogger
from .metadata import MetadataTool

_JPEG_SIGNATURE = b"\xff\xd8\xff"


class CoverImageStage:
    """Persist cover bytes verbatim under the fixed `.jpg` name and strip tags.

    The payload is not transcoded. A payload without a JPEG signature is kept
    as uploaded and only reported as a warning.
    """

    stage_name = "image"

    def __init__(self, metadata: MetadataTool, run_logger: RunLogger | None = None) -> None:
        self._metadata = metadata
        self._run_logger = run_logger

    def run(self, upload: UploadedFile, target: Path) -> Path:
        """Write `upload` to `target` and return the sanitized cover path."""

        persist_stream(upload.stream, target, stage=self.stage_name)
        if not self.looks_like_jpeg(target) and self._run_logger is not None:
            self._run_logger.log_warning(self.stage_name, "non_jpeg_cover", file=target.name)
        self._metadata.strip(target, stage=self.stage_name)
        return target

    @staticmethod
    def looks_like_jpeg(path: Path) -> bool:
        """Return whether `path` starts with the JPEG start-of-image marker."""

        with path.open("rb") as handle:
            return handle.read(len(_JPEG_SIGNATURE)) == _JPEG_SIGNATURE
