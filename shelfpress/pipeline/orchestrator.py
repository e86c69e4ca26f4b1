"""Pipeline orchestration for shelfpress.

Responsibilities:
- Validate the request and resolve bibliographic context before any I/O.
- Branch on the optional document and cover inputs and sequence the stages.
- Stage every write and publish the artifact set only after all stages succeed.

Key types:
- `ArtifactPipeline`: orchestration facade.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from ..catalog.lookups import AuthorResolver, PublisherResolver, resolve_context
from ..config import ShelfpressConfig
from ..errors import PipelineStageError, ToolInvocationError
from ..io.storage import StagingArea, StorageLayout, document_extension_for
from ..models.datatypes import (
    ArtifactKind,
    BibliographicContext,
    PipelineResult,
    PipelineState,
    StageOutcome,
    UploadedFile,
    UploadRequest,
)
from ..runtime_tools import ToolRunner
from ..stages.descriptor import DEFAULT_TRACKERS, DescriptorBuilder
from ..stages.document import DocumentStage
from ..stages.image import CoverImageStage
from ..stages.metadata import MetadataTool
from ..stages.reflow import ReflowConverter
from ..telemetry.logger import RunLogger
from ..text.identifier import synthesize_identifier
from .locks import IdentifierLockRegistry

_DistributableJob = tuple[ArtifactKind, ArtifactKind]


@dataclass(slots=True)
class _RunState:
    """Mutable bookkeeping for one in-flight request."""

    identifier: str
    states: list[PipelineState] = field(default_factory=lambda: [PipelineState.INIT])
    outcomes: list[StageOutcome] = field(default_factory=list)


class ArtifactPipeline:
    """Coordinate document, reflow, descriptor, and cover stages for one catalog entry."""

    def __init__(
        self,
        layout: StorageLayout,
        authors: AuthorResolver,
        publishers: PublisherResolver,
        *,
        tool_runner: ToolRunner | None = None,
        trackers: Sequence[str] = DEFAULT_TRACKERS,
        exiftool: str = "exiftool",
        ebook_convert: str = "ebook-convert",
        transmission_create: str = "transmission-create",
        locks: IdentifierLockRegistry | None = None,
        run_logger: RunLogger | None = None,
    ) -> None:
        runner = tool_runner if tool_runner is not None else ToolRunner()
        metadata = MetadataTool(runner, exiftool)
        self._layout = layout
        self._authors = authors
        self._publishers = publishers
        self._document_stage = DocumentStage(metadata)
        self._reflow = ReflowConverter(runner, ebook_convert)
        self._descriptors = DescriptorBuilder(runner, transmission_create, trackers)
        self._image_stage = CoverImageStage(metadata, run_logger)
        self._locks = locks if locks is not None else IdentifierLockRegistry()
        self._run_logger = run_logger

    @classmethod
    def from_config(
        cls,
        config: ShelfpressConfig,
        authors: AuthorResolver,
        publishers: PublisherResolver,
        *,
        tool_runner: ToolRunner | None = None,
        locks: IdentifierLockRegistry | None = None,
        run_logger: RunLogger | None = None,
    ) -> ArtifactPipeline:
        """Build a pipeline from validated configuration."""

        config.validate()
        runner = (
            tool_runner
            if tool_runner is not None
            else ToolRunner(timeout_seconds=config.tool_timeout_seconds)
        )
        return cls(
            config.layout(),
            authors,
            publishers,
            tool_runner=runner,
            trackers=config.trackers,
            exiftool=config.exiftool,
            ebook_convert=config.ebook_convert,
            transmission_create=config.transmission_create,
            locks=locks,
            run_logger=run_logger,
        )

    @property
    def layout(self) -> StorageLayout:
        """Return the storage layout artifacts are published into."""

        return self._layout

    def process(
        self,
        request: UploadRequest,
        previous_identifier: str | None = None,
    ) -> PipelineResult:
        """Run every stage the request's inputs call for and publish the results.

        Args:
            request: Upload inputs of one create/update call.
            previous_identifier: Identifier stored for the catalog record before an
                update, used only to report artifacts left under the old name.

        Raises:
            ValidationError: If identifiers are malformed; no I/O has happened.
            NotFoundError: If an author or publisher is unknown; no I/O has happened.
            StorageError: If directories or files cannot be written.
            ToolInvocationError: If an external tool fails.
        """

        context = resolve_context(request, self._authors, self._publishers)
        identifier = synthesize_identifier(
            context.author.last_name,
            context.author.first_name,
            context.short_title,
        )
        document_extension = document_extension_for(
            request.document.filename if request.document is not None else None
        )
        run = _RunState(identifier=identifier)

        with self._locks.hold(identifier):
            try:
                self._layout.ensure_roots()
                with self._layout.open_staging(identifier, document_extension) as staging:
                    self._run_document_phase(run, staging, request.document, context)
                    self._run_image_phase(run, staging, request.cover, context)
                    artifacts = staging.commit()
            except PipelineStageError as exc:
                self._transition(run, PipelineState.FAILED, failed_stage=exc.stage)
                raise
            self._transition(run, PipelineState.COMPLETE)

        return PipelineResult(
            artifacts=artifacts,
            states=tuple(run.states),
            outcomes=tuple(run.outcomes),
            stale_paths=self._stale_paths(previous_identifier, identifier, document_extension),
        )

    def _run_document_phase(
        self,
        run: _RunState,
        staging: StagingArea,
        upload: UploadedFile | None,
        context: BibliographicContext,
    ) -> None:
        """Sanitize the document, derive the reflow edition, and describe both."""

        if upload is None:
            self._transition(run, PipelineState.SKIP_DOCUMENT)
            return

        document = self._run_stage(
            run,
            staging,
            DocumentStage.stage_name,
            ArtifactKind.DOCUMENT,
            lambda: self._document_stage.run(
                upload, staging.path_for(ArtifactKind.DOCUMENT), context
            ),
        )
        self._run_stage(
            run,
            staging,
            ReflowConverter.stage_name,
            ArtifactKind.REFLOW,
            lambda: self._reflow.convert(
                document, staging.path_for(ArtifactKind.REFLOW), context
            ),
        )
        self._describe(
            run,
            staging,
            context,
            [
                (ArtifactKind.DOCUMENT, ArtifactKind.DOCUMENT_DESCRIPTOR),
                (ArtifactKind.REFLOW, ArtifactKind.REFLOW_DESCRIPTOR),
            ],
        )
        self._transition(run, PipelineState.DOCUMENT_DONE)

    def _run_image_phase(
        self,
        run: _RunState,
        staging: StagingArea,
        upload: UploadedFile | None,
        context: BibliographicContext,
    ) -> None:
        """Sanitize the cover and regenerate a reflow edition produced earlier in the run."""

        if upload is None:
            self._transition(run, PipelineState.SKIP_IMAGE)
            return

        cover = self._run_stage(
            run,
            staging,
            CoverImageStage.stage_name,
            ArtifactKind.COVER,
            lambda: self._image_stage.run(upload, staging.path_for(ArtifactKind.COVER)),
        )

        if ArtifactKind.REFLOW in staging.produced():
            self._run_stage(
                run,
                staging,
                ReflowConverter.stage_name,
                ArtifactKind.REFLOW,
                lambda: self._reflow.convert(
                    staging.path_for(ArtifactKind.DOCUMENT),
                    staging.path_for(ArtifactKind.REFLOW),
                    context,
                    cover=cover,
                ),
            )
            # The earlier descriptor hashes the cover-less edition.
            self._describe(
                run,
                staging,
                context,
                [(ArtifactKind.REFLOW, ArtifactKind.REFLOW_DESCRIPTOR)],
            )
        self._transition(run, PipelineState.IMAGE_DONE)

    def _describe(
        self,
        run: _RunState,
        staging: StagingArea,
        context: BibliographicContext,
        jobs: Sequence[_DistributableJob],
    ) -> None:
        """Attempt every descriptor independently, then fail if any attempt failed."""

        failures: list[PipelineStageError] = []
        for source_kind, descriptor_kind in jobs:
            try:
                self._run_stage(
                    run,
                    staging,
                    DescriptorBuilder.stage_name,
                    descriptor_kind,
                    lambda source_kind=source_kind, descriptor_kind=descriptor_kind: (
                        self._descriptors.create(
                            staging.path_for(source_kind),
                            staging.path_for(descriptor_kind),
                            context.descriptor_label,
                        )
                    ),
                )
            except PipelineStageError as exc:
                failures.append(exc)

        if len(failures) == 1:
            raise failures[0]
        if failures:
            raise _combine_failures(failures) from failures[0]

    def _run_stage(
        self,
        run: _RunState,
        staging: StagingArea,
        stage: str,
        kind: ArtifactKind,
        action: Callable[[], Path],
    ) -> Path:
        """Run one stage action and record its typed outcome."""

        if self._run_logger is not None:
            self._run_logger.log_stage_start(stage, identifier=run.identifier, artifact=kind.value)
        try:
            path = action()
        except PipelineStageError as exc:
            run.outcomes.append(StageOutcome(stage=stage, kind=kind, diagnostic=exc.detail))
            if self._run_logger is not None:
                self._run_logger.log_stage_failure(
                    stage, type(exc).__name__, identifier=run.identifier, artifact=kind.value
                )
            raise

        staging.record(kind)
        run.outcomes.append(StageOutcome(stage=stage, kind=kind, path=path))
        if self._run_logger is not None:
            self._run_logger.log_stage_complete(stage, identifier=run.identifier, artifact=kind.value)
        return path

    def _transition(self, run: _RunState, state: PipelineState, **context: object) -> None:
        run.states.append(state)
        if self._run_logger is not None:
            self._run_logger.log_transition(state.value, identifier=run.identifier, **context)

    def _stale_paths(
        self,
        previous_identifier: str | None,
        identifier: str,
        document_extension: str,
    ) -> tuple[Path, ...]:
        """Return files still stored under a replaced identifier; they are never deleted here."""

        if previous_identifier is None or previous_identifier == identifier:
            return tuple()
        stale = self._layout.existing_artifacts(previous_identifier, document_extension)
        if stale and self._run_logger is not None:
            self._run_logger.log_warning(
                "pipeline",
                "stale_artifacts",
                identifier=identifier,
                previous_identifier=previous_identifier,
                count=len(stale),
            )
        return stale


def _combine_failures(failures: Sequence[PipelineStageError]) -> PipelineStageError:
    """Merge several independent descriptor failures into one error, keeping every detail."""

    first = failures[0]
    detail = "; ".join(failure.detail for failure in failures)
    tool_failures = [failure for failure in failures if isinstance(failure, ToolInvocationError)]
    if len(tool_failures) == len(failures):
        return ToolInvocationError(
            stage=first.stage,
            tool=tool_failures[0].tool,
            output="\n".join(failure.output for failure in tool_failures),
            detail=detail,
        )
    return PipelineStageError(stage=first.stage, detail=detail, hint=first.hint)
