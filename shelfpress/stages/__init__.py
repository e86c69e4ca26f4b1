"""Pipeline stages wrapping external document tools."""

from .descriptor import DEFAULT_TRACKERS, DescriptorBuilder
from .document import DocumentStage
from .image import CoverImageStage
from .metadata import MetadataTool
from .reflow import REFLOW_PROFILE, ReflowConverter

__all__ = [
    "DEFAULT_TRACKERS",
    "REFLOW_PROFILE",
    "CoverImageStage",
    "DescriptorBuilder",
    "DocumentStage",
    "MetadataTool",
    "ReflowConverter",
]
