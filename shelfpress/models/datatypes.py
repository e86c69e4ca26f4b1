"""Core datatypes shared across shelfpress modules.

Responsibilities:
- Represent the transient upload request and its resolved bibliographic context.
- Represent produced artifacts and typed stage outcomes exchanged with callers.

Key types:
- `UploadRequest`, `UploadedFile`, `AuthorRecord`, `PublisherRecord`,
  `BibliographicContext`, `ArtifactKind`, `ArtifactSet`, `StageOutcome`,
  `PipelineState`, and `PipelineResult`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import BinaryIO


@dataclass(frozen=True, slots=True)
class UploadedFile:
    """One uploaded byte stream.

    Attributes:
        stream: Readable binary stream positioned at the start of the payload.
        filename: Optional client-side filename, used only for its extension.
    """

    stream: BinaryIO
    filename: str | None = None


@dataclass(frozen=True, slots=True)
class UploadRequest:
    """Inputs of one create/update call.

    Attributes:
        author_id: Primary author identifier, resolved by the catalog layer.
        publisher_id: Publisher identifier, resolved by the catalog layer.
        short_title: Short title used for naming and embedded metadata.
        document: Optional primary document upload.
        cover: Optional cover image upload.
        author2_id: Optional second author identifier.
    """

    author_id: int
    publisher_id: int
    short_title: str
    document: UploadedFile | None = None
    cover: UploadedFile | None = None
    author2_id: int | None = None


@dataclass(frozen=True, slots=True)
class AuthorRecord:
    """Author display fields supplied by the catalog layer."""

    first_name: str
    last_name: str

    @property
    def display_name(self) -> str:
        """Return the `first last` display form used in embedded metadata."""

        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True, slots=True)
class PublisherRecord:
    """Publisher display fields supplied by the catalog layer."""

    name: str


@dataclass(frozen=True, slots=True)
class BibliographicContext:
    """Read-only bibliographic values embedded into generated artifacts."""

    short_title: str
    author: AuthorRecord
    publisher: PublisherRecord
    second_author: AuthorRecord | None = None

    @property
    def authors_display(self) -> str:
        """Return author display names joined with ` & `."""

        names = [self.author.display_name]
        if self.second_author is not None:
            names.append(self.second_author.display_name)
        return " & ".join(names)

    @property
    def descriptor_label(self) -> str:
        """Return the human label embedded in distribution descriptors."""

        return f"{self.short_title} by {self.authors_display}"


class ArtifactKind(str, Enum):
    """Derived artifact categories; values are the catalog mapping keys."""

    DOCUMENT = "pdf"
    COVER = "image"
    REFLOW = "epub"
    DOCUMENT_DESCRIPTOR = "pdf_torrent"
    REFLOW_DESCRIPTOR = "epub_torrent"


@dataclass(slots=True)
class ArtifactSet:
    """Produced artifact paths for one identifier.

    A kind absent from `paths` was not produced by the run.
    """

    identifier: str
    paths: dict[ArtifactKind, Path] = field(default_factory=dict)

    def as_catalog_mapping(self) -> dict[str, str]:
        """Return the string mapping persisted by the catalog layer."""

        mapping = {"filename": self.identifier}
        for kind in ArtifactKind:
            if kind in self.paths:
                mapping[kind.value] = str(self.paths[kind])
        return mapping


@dataclass(frozen=True, slots=True)
class StageOutcome:
    """Typed result of one stage invocation.

    Attributes:
        stage: Stage name (`document`, `reflow`, `descriptor`, `image`, ...).
        kind: Artifact kind the stage produces.
        path: Produced path on success.
        diagnostic: Failure detail on failure.
    """

    stage: str
    kind: ArtifactKind
    path: Path | None = None
    diagnostic: str | None = None

    @property
    def ok(self) -> bool:
        """Return whether the stage succeeded."""

        return self.diagnostic is None


class PipelineState(str, Enum):
    """Orchestrator states for one request."""

    INIT = "init"
    DOCUMENT_DONE = "document_done"
    SKIP_DOCUMENT = "skip_document"
    IMAGE_DONE = "image_done"
    SKIP_IMAGE = "skip_image"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class PipelineResult:
    """Successful pipeline run summary handed back to the catalog layer.

    Attributes:
        artifacts: Final artifact paths by kind.
        states: Ordered state trail, starting at `INIT` and ending at `COMPLETE`.
        outcomes: Ordered stage outcomes.
        stale_paths: Existing files still stored under a previous identifier.
    """

    artifacts: ArtifactSet
    states: tuple[PipelineState, ...]
    outcomes: tuple[StageOutcome, ...]
    stale_paths: tuple[Path, ...] = field(default_factory=tuple)

    @property
    def identifier(self) -> str:
        """Return the base identifier of this run."""

        return self.artifacts.identifier

    def as_catalog_mapping(self) -> dict[str, str]:
        """Return the artifact mapping persisted by the catalog layer."""

        return self.artifacts.as_catalog_mapping()
