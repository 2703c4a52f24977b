"""Domain models for the vidshelf application."""

from vidshelf.models.core import (
    Action,
    EnrichedMetadata,
    FileRole,
    MediaFile,
    MediaMetadata,
    MediaType,
)
from vidshelf.models.plan import PlannedFile, ProcessedFile

__all__ = [
    "Action",
    "EnrichedMetadata",
    "FileRole",
    "MediaFile",
    "MediaMetadata",
    "MediaType",
    "PlannedFile",
    "ProcessedFile",
]
