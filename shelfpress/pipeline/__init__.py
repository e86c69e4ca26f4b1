"""Pipeline orchestration for catalog artifact synthesis."""

from .locks import IdentifierLockRegistry
from .orchestrator import ArtifactPipeline

__all__ = ["ArtifactPipeline", "IdentifierLockRegistry"]
