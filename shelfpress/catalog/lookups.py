"""Author and publisher lookups consumed by the pipeline.

Responsibilities:
- Define the resolver protocols implemented by the surrounding catalog layer.
- Validate and resolve request identifiers before any filesystem work starts.
- Provide a YAML-backed catalog for command-line use.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

import yaml

from ..errors import NotFoundError, ValidationError
from ..models.datatypes import (
    AuthorRecord,
    BibliographicContext,
    PublisherRecord,
    UploadRequest,
)
from ..parsing import normalize_optional_string, parse_catalog_id

MIN_CATALOG_ID = 1


class AuthorResolver(Protocol):
    """Lookup of author display fields by identifier."""

    def get_author(self, author_id: int) -> AuthorRecord | None:
        """Return the author record, or `None` when it does not exist."""


class PublisherResolver(Protocol):
    """Lookup of publisher display fields by identifier."""

    def get_publisher(self, publisher_id: int) -> PublisherRecord | None:
        """Return the publisher record, or `None` when it does not exist."""


def _require_valid_id(value: int, label: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < MIN_CATALOG_ID:
        raise ValidationError(
            f"invalid {label} ID `{value}`",
            hint=f"{label.capitalize()} IDs are integers starting at {MIN_CATALOG_ID}.",
        )


def _lookup_author(authors: AuthorResolver, author_id: int, label: str) -> AuthorRecord:
    _require_valid_id(author_id, label)
    author = authors.get_author(author_id)
    if author is None:
        raise NotFoundError(f"{label} `{author_id}` does not exist")
    return author


def resolve_context(
    request: UploadRequest,
    authors: AuthorResolver,
    publishers: PublisherResolver,
) -> BibliographicContext:
    """Validate request identifiers and resolve the bibliographic context.

    Raises:
        ValidationError: If an identifier is malformed or the short title is blank.
        NotFoundError: If an author or publisher does not exist upstream.
    """

    short_title = normalize_optional_string(request.short_title)
    if short_title is None:
        raise ValidationError("short title must not be empty")

    author = _lookup_author(authors, request.author_id, "author")
    second_author = None
    if request.author2_id is not None:
        second_author = _lookup_author(authors, request.author2_id, "second author")

    _require_valid_id(request.publisher_id, "publisher")
    publisher = publishers.get_publisher(request.publisher_id)
    if publisher is None:
        raise NotFoundError(f"publisher `{request.publisher_id}` does not exist")

    return BibliographicContext(
        short_title=short_title,
        author=author,
        publisher=publisher,
        second_author=second_author,
    )


class YamlCatalog:
    """In-memory author/publisher catalog loaded from a YAML document.

    Expected shape::

        authors:
          1: {name: Gabriel, last_name: García Márquez}
        publishers:
          1: {name: Sudamericana}
    """

    def __init__(
        self,
        authors: Mapping[int, AuthorRecord],
        publishers: Mapping[int, PublisherRecord],
    ) -> None:
        self._authors = dict(authors)
        self._publishers = dict(publishers)

    def get_author(self, author_id: int) -> AuthorRecord | None:
        return self._authors.get(author_id)

    def get_publisher(self, publisher_id: int) -> PublisherRecord | None:
        return self._publishers.get(publisher_id)

    @classmethod
    def from_yaml(cls, path: Path) -> YamlCatalog:
        """Load a catalog file, raising `ValueError` on malformed entries."""

        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"Catalog `{path}` must contain a top-level mapping/object.")

        authors = {
            entry_id: AuthorRecord(
                first_name=cls._required_field(fields, "name", f"authors.{entry_id}"),
                last_name=cls._required_field(fields, "last_name", f"authors.{entry_id}"),
            )
            for entry_id, fields in cls._entries(payload, "authors", path)
        }
        publishers = {
            entry_id: PublisherRecord(
                name=cls._required_field(fields, "name", f"publishers.{entry_id}"),
            )
            for entry_id, fields in cls._entries(payload, "publishers", path)
        }
        return cls(authors, publishers)

    @staticmethod
    def _entries(
        payload: Mapping[str, Any], key: str, path: Path
    ) -> list[tuple[int, Mapping[str, Any]]]:
        raw = payload.get(key) or {}
        if not isinstance(raw, Mapping):
            raise ValueError(f"Catalog `{path}` field `{key}` must be a mapping/object.")

        entries: list[tuple[int, Mapping[str, Any]]] = []
        for raw_id, fields in raw.items():
            entry_id = parse_catalog_id(raw_id)
            if entry_id is None:
                raise ValueError(f"Catalog `{path}` field `{key}` has non-integer ID `{raw_id}`.")
            if not isinstance(fields, Mapping):
                raise ValueError(f"Catalog `{path}` entry `{key}.{raw_id}` must be a mapping/object.")
            entries.append((entry_id, fields))
        return entries

    @staticmethod
    def _required_field(fields: Mapping[str, Any], key: str, label: str) -> str:
        value = normalize_optional_string(fields.get(key))
        if value is None:
            raise ValueError(f"Catalog entry `{label}` requires non-empty `{key}`.")
        return value
