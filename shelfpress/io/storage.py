"""Artifact storage layout and per-request staging.

Responsibilities:
- Map artifact kinds to deterministic `<root>/<identifier><extension>` paths.
- Create per-kind root directories idempotently.
- Stage multi-file writes and relocate them atomically into the final layout.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
import re
import shutil
from types import TracebackType
from typing import BinaryIO
from uuid import uuid4

from ..errors import StorageError
from ..models.datatypes import ArtifactKind, ArtifactSet

DEFAULT_DOCUMENT_EXTENSION = ".pdf"
COVER_EXTENSION = ".jpg"
REFLOW_EXTENSION = ".epub"
DESCRIPTOR_EXTENSION = ".torrent"

_SAFE_EXTENSION = re.compile(r"\.[a-z0-9]+")


@dataclass(frozen=True, slots=True)
class StorageLayout:
    """Per-kind root directories for catalog artifacts.

    Attributes:
        documents_root: Sanitized primary documents.
        covers_root: Sanitized cover images.
        reflow_root: Reflowable editions.
        descriptors_root: Distribution descriptors for documents and editions.
        staging_root: Parent of per-request staging directories. Must live on the
            same filesystem as the other roots so relocation stays atomic.
    """

    documents_root: Path
    covers_root: Path
    reflow_root: Path
    descriptors_root: Path
    staging_root: Path

    @classmethod
    def under(cls, uploads_dir: Path) -> StorageLayout:
        """Build the default layout beneath one uploads directory."""

        return cls(
            documents_root=uploads_dir / "pdfs",
            covers_root=uploads_dir / "covers",
            reflow_root=uploads_dir / "epubs",
            descriptors_root=uploads_dir / "torrents",
            staging_root=uploads_dir / ".staging",
        )

    def roots(self) -> tuple[Path, ...]:
        """Return every directory the pipeline writes into."""

        return (
            self.documents_root,
            self.covers_root,
            self.reflow_root,
            self.descriptors_root,
            self.staging_root,
        )

    def ensure_roots(self) -> None:
        """Create all root directories with parents, leaving existing ones intact."""

        for root in self.roots():
            try:
                root.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise StorageError(
                    stage="storage",
                    detail=f"Failed to create directory `{root}`: {exc}",
                    hint="Check that no path component is a regular file and permissions allow writes.",
                ) from exc

    def root_for(self, kind: ArtifactKind) -> Path:
        """Return the root directory storing artifacts of `kind`."""

        if kind is ArtifactKind.DOCUMENT:
            return self.documents_root
        if kind is ArtifactKind.COVER:
            return self.covers_root
        if kind is ArtifactKind.REFLOW:
            return self.reflow_root
        return self.descriptors_root

    def path_for(
        self,
        kind: ArtifactKind,
        identifier: str,
        document_extension: str = DEFAULT_DOCUMENT_EXTENSION,
    ) -> Path:
        """Return the final storage path of one artifact."""

        return self.root_for(kind) / artifact_filename(kind, identifier, document_extension)

    def artifact_paths(
        self,
        identifier: str,
        document_extension: str = DEFAULT_DOCUMENT_EXTENSION,
    ) -> dict[ArtifactKind, Path]:
        """Reconstruct every expected artifact path for a stored identifier."""

        return {
            kind: self.path_for(kind, identifier, document_extension)
            for kind in ArtifactKind
        }

    def existing_artifacts(
        self,
        identifier: str,
        document_extension: str = DEFAULT_DOCUMENT_EXTENSION,
    ) -> tuple[Path, ...]:
        """Return expected artifact paths that currently exist on disk."""

        return tuple(
            path
            for path in self.artifact_paths(identifier, document_extension).values()
            if path.exists()
        )

    def open_staging(
        self,
        identifier: str,
        document_extension: str = DEFAULT_DOCUMENT_EXTENSION,
    ) -> StagingArea:
        """Create a staging area for one request writing under `identifier`."""

        return StagingArea(self, identifier, document_extension)


def artifact_filename(
    kind: ArtifactKind,
    identifier: str,
    document_extension: str = DEFAULT_DOCUMENT_EXTENSION,
) -> str:
    """Return the filename of one artifact; extensions never collide across kinds."""

    if kind is ArtifactKind.DOCUMENT:
        return f"{identifier}{document_extension}"
    if kind is ArtifactKind.COVER:
        return f"{identifier}{COVER_EXTENSION}"
    if kind is ArtifactKind.REFLOW:
        return f"{identifier}{REFLOW_EXTENSION}"
    if kind is ArtifactKind.DOCUMENT_DESCRIPTOR:
        return f"{identifier}{document_extension}{DESCRIPTOR_EXTENSION}"
    return f"{identifier}{REFLOW_EXTENSION}{DESCRIPTOR_EXTENSION}"


def document_extension_for(filename: str | None) -> str:
    """Return the lowercased source extension of an uploaded document.

    Only plain alphanumeric suffixes are kept; anything else falls back to `.pdf`.
    """

    if not filename:
        return DEFAULT_DOCUMENT_EXTENSION
    suffix = Path(filename).suffix.lower()
    if suffix in {COVER_EXTENSION, REFLOW_EXTENSION, DESCRIPTOR_EXTENSION}:
        return DEFAULT_DOCUMENT_EXTENSION
    if not _SAFE_EXTENSION.fullmatch(suffix):
        return DEFAULT_DOCUMENT_EXTENSION
    return suffix


def persist_stream(stream: BinaryIO, path: Path, *, stage: str) -> Path:
    """Copy an uploaded stream to `path`, overwriting any existing file."""

    try:
        with path.open("wb") as destination:
            shutil.copyfileobj(stream, destination)
    except (OSError, ValueError) as exc:
        raise StorageError(
            stage=stage,
            detail=f"Failed to save `{path.name}`: {exc}",
        ) from exc
    return path


class StagingArea:
    """Per-request holding directory that makes multi-file writes appear atomic.

    Artifacts are written under a private directory and only moved into the
    final layout by `commit()`. Leaving the context without committing deletes
    everything staged.
    """

    def __init__(
        self,
        layout: StorageLayout,
        identifier: str,
        document_extension: str = DEFAULT_DOCUMENT_EXTENSION,
    ) -> None:
        self._layout = layout
        self._identifier = identifier
        self._document_extension = document_extension
        self.directory = layout.staging_root / f"{identifier}-{uuid4().hex}"
        self._produced: dict[ArtifactKind, Path] = {}
        self._committed = False

    def __enter__(self) -> StagingArea:
        try:
            self.directory.mkdir(parents=True)
        except OSError as exc:
            raise StorageError(
                stage="storage",
                detail=f"Failed to create staging directory `{self.directory}`: {exc}",
            ) from exc
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        if not self._committed:
            self.discard()

    def path_for(self, kind: ArtifactKind) -> Path:
        """Return the staged path an artifact of `kind` must be written to."""

        return self.directory / artifact_filename(
            kind, self._identifier, self._document_extension
        )

    def record(self, kind: ArtifactKind) -> Path:
        """Mark `kind` as produced and return its staged path."""

        path = self.path_for(kind)
        self._produced[kind] = path
        return path

    def produced(self) -> tuple[ArtifactKind, ...]:
        """Return produced artifact kinds in recording order."""

        return tuple(self._produced)

    def commit(self) -> ArtifactSet:
        """Move every produced artifact into its final path and drop the staging directory.

        Files already at the final paths are first set aside inside the staging
        directory. If any relocation fails, newly placed files are removed and the
        set-aside files are restored, so the final layout is either fully updated
        or left exactly as it was.

        Raises:
            StorageError: If relocation fails; the previous layout has been restored.
        """

        moves = [
            (
                kind,
                staged_path,
                self._layout.path_for(kind, self._identifier, self._document_extension),
            )
            for kind, staged_path in self._produced.items()
        ]
        backup_dir = self.directory / ".previous"
        backups: list[tuple[Path, Path]] = []
        placed: list[Path] = []
        current: Path | None = None
        try:
            backup_dir.mkdir(exist_ok=True)
            for _, _, final_path in moves:
                if final_path.is_file():
                    current = final_path
                    backup_path = backup_dir / final_path.name
                    os.replace(final_path, backup_path)
                    backups.append((backup_path, final_path))
            for _, staged_path, final_path in moves:
                current = final_path
                os.replace(staged_path, final_path)
                placed.append(final_path)
        except OSError as exc:
            leftovers = _restore_previous(placed, backups)
            name = current.name if current is not None else backup_dir.name
            detail = f"Failed to move `{name}` into place: {exc}"
            if leftovers:
                detail += f"; could not restore: {', '.join(leftovers)}"
            raise StorageError(stage="commit", detail=detail) from exc

        artifacts = ArtifactSet(identifier=self._identifier)
        for kind, _, final_path in moves:
            artifacts.paths[kind] = final_path
        self._committed = True
        shutil.rmtree(self.directory, ignore_errors=True)
        return artifacts

    def discard(self) -> None:
        """Delete the staging directory and everything written to it."""

        shutil.rmtree(self.directory, ignore_errors=True)


def _restore_previous(
    placed: list[Path],
    backups: list[tuple[Path, Path]],
) -> list[str]:
    """Undo a partial commit and return the names that could not be restored."""

    leftovers: list[str] = []
    for final_path in reversed(placed):
        try:
            final_path.unlink(missing_ok=True)
        except OSError:
            leftovers.append(final_path.name)
    for backup_path, final_path in reversed(backups):
        try:
            os.replace(backup_path, final_path)
        except OSError:
            leftovers.append(final_path.name)
    return leftovers
