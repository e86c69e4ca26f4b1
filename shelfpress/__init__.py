"""Top-level package for shelfpress.

This package turns an uploaded catalog document and optional cover into a
deterministic family of derived artifacts: a sanitized document, a reflowable
edition, and distribution descriptors for both. The main orchestration entry
point is `ArtifactPipeline`.
"""

from .pipeline import ArtifactPipeline

__all__ = ["ArtifactPipeline", "__version__"]

__version__ = "0.1.0"
