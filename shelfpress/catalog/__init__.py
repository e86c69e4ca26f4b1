"""Collaborator lookups supplying author and publisher records."""

from .lookups import (
    MIN_CATALOG_ID,
    AuthorResolver,
    PublisherResolver,
    YamlCatalog,
    resolve_context,
)

__all__ = [
    "MIN_CATALOG_ID",
    "AuthorResolver",
    "PublisherResolver",
    "YamlCatalog",
    "resolve_context",
]
