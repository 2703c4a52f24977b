"""Models for organizer plans and results.

- PlannedFile is the planner's pure, I/O-free decision for one input file.
- ProcessedFile is the executor's terminal result for that file.

Both are frozen: a planned or processed entry is never mutated after it has
been handed to the next stage.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from vidshelf.models.core import Action, EnrichedMetadata, MediaFile, MediaMetadata

__all__: list[str] = ["PlannedFile", "ProcessedFile"]


class PlannedFile(BaseModel):
    """A destination decision for one file, computed without touching disk."""

    model_config = ConfigDict(frozen=True)

    media_file: MediaFile
    """The scanned file this decision belongs to."""

    planned_path: Path
    """Destination path, or the original path when the file stays put."""

    metadata: MediaMetadata
    """Metadata used for naming (borrowed from the primary for companions)."""

    movable: bool = True
    """False when the file must be skipped without any filesystem check."""

    errors: List[str] = Field(default_factory=list)
    """Validation messages explaining why the file is not movable."""

    matched_primary: Optional[Path] = None
    """For companions, the primary file whose destination was borrowed."""


class ProcessedFile(BaseModel):
    """Terminal result for one input file of an organizer run."""

    model_config = ConfigDict(frozen=True)

    original_path: Path
    """Where the file was before the run."""

    planned_path: Path
    """Where the file goes (or would go in preview mode)."""

    metadata: MediaMetadata | EnrichedMetadata
    """Metadata the destination was computed from."""

    action: Action
    """move, skip, overwrite or preview."""

    errors: List[str] = Field(default_factory=list)
    """Validation or move failures for this file; empty on success."""
