"""Unit tests for storage layout, persistence, and staging behavior."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from shelfpress.errors import StorageError
from shelfpress.io.storage import (
    StorageLayout,
    artifact_filename,
    document_extension_for,
    persist_stream,
)
from shelfpress.models.datatypes import ArtifactKind


def test_ensure_roots_creates_every_root_idempotently(tmp_path: Path) -> None:
    """Roots and their parents should be created, and a second call should be a no-op."""

    layout = StorageLayout.under(tmp_path / "nested" / "uploads")

    layout.ensure_roots()
    layout.ensure_roots()

    assert all(root.is_dir() for root in layout.roots())


def test_ensure_roots_fails_when_component_is_a_file(tmp_path: Path) -> None:
    """A regular file in place of a directory should surface as `StorageError`."""

    blocker = tmp_path / "uploads"
    blocker.write_text("not a directory", encoding="utf-8")
    layout = StorageLayout.under(blocker)

    with pytest.raises(StorageError) as exc_info:
        layout.ensure_roots()

    assert exc_info.value.stage == "storage"
    assert "Failed to create directory" in exc_info.value.detail


def test_artifact_paths_follow_fixed_layout(tmp_path: Path) -> None:
    """Expected paths should be bit-exact `<root>/<identifier><extension>` values."""

    layout = StorageLayout.under(tmp_path)

    paths = layout.artifact_paths("Gomez_Maria-Title")

    assert paths == {
        ArtifactKind.DOCUMENT: tmp_path / "pdfs" / "Gomez_Maria-Title.pdf",
        ArtifactKind.COVER: tmp_path / "covers" / "Gomez_Maria-Title.jpg",
        ArtifactKind.REFLOW: tmp_path / "epubs" / "Gomez_Maria-Title.epub",
        ArtifactKind.DOCUMENT_DESCRIPTOR: tmp_path / "torrents" / "Gomez_Maria-Title.pdf.torrent",
        ArtifactKind.REFLOW_DESCRIPTOR: tmp_path / "torrents" / "Gomez_Maria-Title.epub.torrent",
    }


def test_artifact_filenames_never_collide_across_kinds() -> None:
    """Every kind should own a distinct filename for one identifier."""

    names = {artifact_filename(kind, "same") for kind in ArtifactKind}

    assert len(names) == len(ArtifactKind)


def test_document_extension_for_uses_lowercased_suffix_with_pdf_default() -> None:
    """The client filename suffix decides the document extension."""

    assert document_extension_for("Book.PDF") == ".pdf"
    assert document_extension_for("notes.djvu") == ".djvu"
    assert document_extension_for("no-extension") == ".pdf"
    assert document_extension_for(None) == ".pdf"
    assert document_extension_for("cover.jpg") == ".pdf"


def test_document_extension_for_rejects_unsafe_suffixes() -> None:
    """Suffixes with control or punctuation characters fall back to `.pdf`."""

    assert document_extension_for("scan.pd\x00f") == ".pdf"
    assert document_extension_for("scan.p df") == ".pdf"
    assert document_extension_for("scan.pdf~") == ".pdf"


def test_persist_stream_wraps_invalid_path_errors(tmp_path: Path) -> None:
    """Paths the OS layer rejects outright should still surface as `StorageError`."""

    with pytest.raises(StorageError) as exc_info:
        persist_stream(io.BytesIO(b"x"), tmp_path / "doc\x00.pdf", stage="document")

    assert exc_info.value.stage == "document"


def test_persist_stream_overwrites_existing_file(tmp_path: Path) -> None:
    """Persisting should replace previous content rather than append."""

    target = tmp_path / "doc.pdf"
    target.write_bytes(b"old content that is longer")

    persist_stream(io.BytesIO(b"new"), target, stage="document")

    assert target.read_bytes() == b"new"


def test_persist_stream_wraps_os_errors(tmp_path: Path) -> None:
    """Copy failures should become stage-scoped `StorageError` values."""

    with pytest.raises(StorageError) as exc_info:
        persist_stream(io.BytesIO(b"x"), tmp_path / "missing" / "doc.pdf", stage="document")

    assert exc_info.value.stage == "document"


def test_staging_commit_moves_recorded_artifacts_and_removes_directory(tmp_path: Path) -> None:
    """Only recorded artifacts should be relocated into the final layout."""

    layout = StorageLayout.under(tmp_path)
    layout.ensure_roots()

    with layout.open_staging("Id-Title") as staging:
        staging.path_for(ArtifactKind.DOCUMENT).write_bytes(b"pdf")
        staging.record(ArtifactKind.DOCUMENT)
        staging.path_for(ArtifactKind.COVER).write_bytes(b"unrecorded")
        artifacts = staging.commit()

    assert artifacts.paths == {ArtifactKind.DOCUMENT: tmp_path / "pdfs" / "Id-Title.pdf"}
    assert (tmp_path / "pdfs" / "Id-Title.pdf").read_bytes() == b"pdf"
    assert not (tmp_path / "covers" / "Id-Title.jpg").exists()
    assert not staging.directory.exists()


def test_staging_discards_everything_when_block_fails(tmp_path: Path) -> None:
    """Leaving the block with an error should delete staged files and publish nothing."""

    layout = StorageLayout.under(tmp_path)
    layout.ensure_roots()

    with pytest.raises(RuntimeError):
        with layout.open_staging("Id-Title") as staging:
            staging.path_for(ArtifactKind.DOCUMENT).write_bytes(b"pdf")
            staging.record(ArtifactKind.DOCUMENT)
            raise RuntimeError("stage failed")

    assert not staging.directory.exists()
    assert list((tmp_path / "pdfs").iterdir()) == []


def test_existing_artifacts_lists_only_files_on_disk(tmp_path: Path) -> None:
    """Reconstructed paths should be filtered down to files that exist."""

    layout = StorageLayout.under(tmp_path)
    layout.ensure_roots()
    cover = layout.path_for(ArtifactKind.COVER, "Old-Name")
    cover.write_bytes(b"jpg")

    assert layout.existing_artifacts("Old-Name") == (cover,)


def test_staging_commit_failure_restores_previous_layout(tmp_path: Path) -> None:
    """A relocation failure midway should leave earlier final files untouched."""

    layout = StorageLayout.under(tmp_path / "uploads")
    layout.ensure_roots()
    previous_pdf = layout.path_for(ArtifactKind.DOCUMENT, "Id-Title")
    previous_pdf.write_bytes(b"OLD")
    layout.path_for(ArtifactKind.COVER, "Id-Title").mkdir()

    with pytest.raises(StorageError) as exc_info:
        with layout.open_staging("Id-Title") as staging:
            staging.path_for(ArtifactKind.DOCUMENT).write_bytes(b"%PDF new")
            staging.record(ArtifactKind.DOCUMENT)
            staging.path_for(ArtifactKind.REFLOW).write_bytes(b"epub")
            staging.record(ArtifactKind.REFLOW)
            staging.path_for(ArtifactKind.COVER).write_bytes(b"\xff\xd8\xff")
            staging.record(ArtifactKind.COVER)
            staging.commit()

    assert exc_info.value.stage == "commit"
    assert previous_pdf.read_bytes() == b"OLD"
    assert not layout.path_for(ArtifactKind.REFLOW, "Id-Title").exists()
    assert layout.path_for(ArtifactKind.COVER, "Id-Title").is_dir()
    assert list(layout.staging_root.iterdir()) == []


def test_staging_commit_replaces_previous_files(tmp_path: Path) -> None:
    """A successful commit should overwrite files from an earlier run."""

    layout = StorageLayout.under(tmp_path / "uploads")
    layout.ensure_roots()
    previous_pdf = layout.path_for(ArtifactKind.DOCUMENT, "Id-Title")
    previous_pdf.write_bytes(b"OLD")

    with layout.open_staging("Id-Title") as staging:
        staging.path_for(ArtifactKind.DOCUMENT).write_bytes(b"NEW")
        staging.record(ArtifactKind.DOCUMENT)
        artifacts = staging.commit()

    assert artifacts.paths == {ArtifactKind.DOCUMENT: previous_pdf}
    assert previous_pdf.read_bytes() == b"NEW"
    assert list(layout.staging_root.iterdir()) == []
