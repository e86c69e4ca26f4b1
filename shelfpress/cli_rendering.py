"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
artifact mappings, and expected storage paths.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import NoReturn

import typer

from .errors import PipelineStageError
from .models.datatypes import ArtifactKind, PipelineResult


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, PipelineStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_pipeline_result(result: PipelineResult) -> None:
    """Print the catalog mapping as JSON, then any stale artifact warnings."""

    typer.echo(json.dumps(result.as_catalog_mapping(), indent=2, sort_keys=True))
    for path in result.stale_paths:
        typer.secho(
            f"Stale artifact left under previous identifier: {path}",
            fg=typer.colors.YELLOW,
            err=True,
        )


def echo_artifact_paths(paths: dict[ArtifactKind, Path]) -> None:
    """Print `kind<TAB>path` rows in deterministic kind order."""

    for kind in ArtifactKind:
        if kind in paths:
            typer.echo(f"{kind.value}\t{paths[kind]}")
