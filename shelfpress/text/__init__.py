"""Text normalization helpers for deterministic artifact naming."""

from .identifier import clean_segment, synthesize_identifier

__all__ = ["clean_segment", "synthesize_identifier"]
