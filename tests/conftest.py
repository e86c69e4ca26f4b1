"""Shared pytest fixtures for the shelfpress test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from shelfpress.catalog.lookups import YamlCatalog
from shelfpress.io.storage import StorageLayout
from shelfpress.models.datatypes import AuthorRecord, PublisherRecord
from shelfpress.pipeline import ArtifactPipeline
from tests.fakes import FakeProcessRunner, build_tool_runner


@pytest.fixture
def catalog() -> YamlCatalog:
    """Provide a small in-memory author/publisher catalog."""

    return YamlCatalog(
        authors={
            1: AuthorRecord(first_name="María José", last_name="Gómez"),
            2: AuthorRecord(first_name="Seán", last_name="O'Brien-Smith, Jr."),
        },
        publishers={1: PublisherRecord(name="Editorial Sudamericana")},
    )


@pytest.fixture
def layout(tmp_path: Path) -> StorageLayout:
    """Provide the default storage layout beneath a temporary uploads directory."""

    return StorageLayout.under(tmp_path / "uploads")


@pytest.fixture
def fake_runner() -> FakeProcessRunner:
    """Provide a recording fake for external tool processes."""

    return FakeProcessRunner()


@pytest.fixture
def pipeline(
    layout: StorageLayout,
    catalog: YamlCatalog,
    fake_runner: FakeProcessRunner,
) -> ArtifactPipeline:
    """Provide a pipeline wired to the fake tool runner."""

    return ArtifactPipeline(
        layout,
        catalog,
        catalog,
        tool_runner=build_tool_runner(fake_runner),
    )
