"""Shared datatypes for the shelfpress artifact pipeline."""

from .datatypes import (
    ArtifactKind,
    ArtifactSet,
    AuthorRecord,
    BibliographicContext,
    PipelineResult,
    PipelineState,
    PublisherRecord,
    StageOutcome,
    UploadedFile,
    UploadRequest,
)

__all__ = [
    "ArtifactKind",
    "ArtifactSet",
    "AuthorRecord",
    "BibliographicContext",
    "PipelineResult",
    "PipelineState",
    "PublisherRecord",
    "StageOutcome",
    "UploadedFile",
    "UploadRequest",
]
