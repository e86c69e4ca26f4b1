"""Command-line interface for shelfpress.

Responsibilities:
- Expose the artifact pipeline and naming helpers as commands.
- Convert CLI arguments into `ShelfpressConfig`, catalog lookups, and upload requests.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from contextlib import ExitStack
from pathlib import Path
from typing import Annotated

import typer

from .catalog.lookups import YamlCatalog
from .cli_rendering import echo_artifact_paths, echo_pipeline_result, exit_with_command_error
from .config import ConfigLoader, ShelfpressConfig
from .errors import PipelineStageError
from .io.storage import document_extension_for
from .models.datatypes import UploadedFile, UploadRequest
from .pipeline import ArtifactPipeline
from .telemetry.logger import RunLogger
from .text.identifier import synthesize_identifier

app = typer.Typer(
    name="shelfpress",
    no_args_is_help=True,
    help="Shelfpress catalog artifact CLI.",
)


def _load_config(config_path: Path | None, uploads_dir: Path | None) -> ShelfpressConfig:
    """Load YAML or environment config and map failures to stage errors."""

    try:
        config = (
            ConfigLoader.from_yaml(config_path)
            if config_path is not None
            else ConfigLoader.from_env()
        )
    except FileNotFoundError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Invalid configuration: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc

    if uploads_dir is not None:
        config.uploads_dir = uploads_dir
    return config


def _load_catalog(catalog_path: Path) -> YamlCatalog:
    """Load the author/publisher catalog and map failures to stage errors."""

    try:
        return YamlCatalog.from_yaml(catalog_path)
    except FileNotFoundError as exc:
        raise PipelineStageError(
            stage="catalog",
            detail=f"Catalog file not found: `{catalog_path}`.",
            hint="Provide an existing path via `--catalog <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise PipelineStageError(
            stage="catalog",
            detail=f"Invalid catalog file `{catalog_path}`: {exc}",
        ) from exc


@app.command("process")
def process_command(
    author_id: Annotated[int, typer.Option("--author-id", help="Primary author ID.")],
    publisher_id: Annotated[int, typer.Option("--publisher-id", help="Publisher ID.")],
    short_title: Annotated[str, typer.Option("--short-title", help="Short title.")],
    catalog: Annotated[
        Path,
        typer.Option("--catalog", help="YAML file with `authors` and `publishers` entries."),
    ],
    document: Annotated[
        Path | None,
        typer.Option("--document", help="Primary document to sanitize and convert."),
    ] = None,
    cover: Annotated[
        Path | None,
        typer.Option("--cover", help="Cover image stored as `.jpg` without transcoding."),
    ] = None,
    author2_id: Annotated[
        int | None,
        typer.Option("--author2-id", help="Optional second author ID."),
    ] = None,
    previous_identifier: Annotated[
        str | None,
        typer.Option(
            "--previous-identifier",
            help="Identifier stored before this update; leftover files are reported.",
        ),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to YAML config file."),
    ] = None,
    uploads_dir: Annotated[
        Path | None,
        typer.Option("--uploads-dir", help="Uploads directory (overrides config value)."),
    ] = None,
) -> None:
    """Generate catalog artifacts and print the resulting path mapping."""

    try:
        config = _load_config(config_file, uploads_dir)
        lookups = _load_catalog(catalog)
        pipeline = ArtifactPipeline.from_config(
            config,
            lookups,
            lookups,
            run_logger=RunLogger(),
        )
        with ExitStack() as stack:
            request = UploadRequest(
                author_id=author_id,
                author2_id=author2_id,
                publisher_id=publisher_id,
                short_title=short_title,
                document=(
                    UploadedFile(stack.enter_context(document.open("rb")), document.name)
                    if document is not None
                    else None
                ),
                cover=(
                    UploadedFile(stack.enter_context(cover.open("rb")), cover.name)
                    if cover is not None
                    else None
                ),
            )
            result = pipeline.process(request, previous_identifier=previous_identifier)
    except Exception as exc:
        exit_with_command_error("process", exc)

    echo_pipeline_result(result)


@app.command("identifier")
def identifier_command(
    last_name: Annotated[str, typer.Argument(help="Author last name.")],
    first_name: Annotated[str, typer.Argument(help="Author first name.")],
    short_title: Annotated[str, typer.Argument(help="Short title.")],
) -> None:
    """Print the base identifier derived from author and title text."""

    typer.echo(synthesize_identifier(last_name, first_name, short_title))


@app.command("paths")
def paths_command(
    identifier: Annotated[str, typer.Argument(help="Stored base identifier.")],
    document_name: Annotated[
        str | None,
        typer.Option(
            "--document-name",
            help="Original document filename, when it was not a `.pdf`.",
        ),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to YAML config file."),
    ] = None,
    uploads_dir: Annotated[
        Path | None,
        typer.Option("--uploads-dir", help="Uploads directory (overrides config value)."),
    ] = None,
) -> None:
    """Print every artifact path expected for a stored identifier."""

    try:
        config = _load_config(config_file, uploads_dir)
    except Exception as exc:
        exit_with_command_error("paths", exc)

    layout = config.layout()
    echo_artifact_paths(
        layout.artifact_paths(identifier, document_extension_for(document_name))
    )


def main() -> None:
    """Run the shelfpress CLI."""

    app()
