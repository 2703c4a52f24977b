"""Core domain models for vidshelf.

This module defines the foundational data structures shared by the parser, the
metadata resolver and the organizer.
- MediaMetadata is the parser's best guess about a file.
- EnrichedMetadata adds provider-sourced details on top of it.
- MediaFile is the scanned, immutable view of one file on disk.

Design:
- MediaType, FileRole and Action enums provide type-safe classification for
  all workflows; they subclass ``str`` so they serialize as plain strings.
- Metadata models are plain pydantic models; callers that want to change one
  use ``model_copy(update=...)`` so the original is never mutated.
"""

from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class MediaType(str, Enum):
    """Type of media a file holds."""

    MOVIE = "movie"
    TV = "tv"


class FileRole(str, Enum):
    """Role of a scanned file within the batch.

    Primary files (videos) drive metadata resolution and destination
    computation. Companion files (subtitles) follow a matched primary.
    """

    PRIMARY = "primary"
    COMPANION = "companion"


class Action(str, Enum):
    """Final action recorded for a processed file."""

    MOVE = "move"
    SKIP = "skip"
    OVERWRITE = "overwrite"
    PREVIEW = "preview"


class MediaMetadata(BaseModel):
    """Best-guess metadata parsed from a filename and its folders.

    ``season`` and ``episode`` are either both set or both unset when produced
    by the parser, and ``type`` is TV only when both are set.
    """

    title: Optional[str] = None
    """Show or movie title, ``None`` when nothing usable was found."""

    year: Optional[int] = None
    """Release year (movies) or first-air year (shows)."""

    season: Optional[int] = None
    """Season number for TV episodes."""

    episode: Optional[int] = None
    """Episode number for TV episodes."""

    type: MediaType = MediaType.MOVIE
    """Movie or TV."""

    @property
    def is_episode(self: "MediaMetadata") -> bool:
        """Whether both season and episode numbers are known."""
        return self.season is not None and self.episode is not None


class EnrichedMetadata(MediaMetadata):
    """MediaMetadata plus details resolved from the store or a provider.

    Every enrichment field is optional; an unresolved file simply carries
    ``None`` values.
    """

    plot: Optional[str] = None
    genre: Optional[str] = None
    director: Optional[str] = None
    actors: Optional[str] = None
    rating: Optional[str] = None
    episode_title: Optional[str] = None

    canonical_id: Optional[str] = None
    """Identifier the enrichment was keyed by (primary id or prefixed id)."""

    provider: Optional[str] = None
    """Name of the source that supplied the enrichment, if any."""

    @classmethod
    def from_metadata(
        cls: type["EnrichedMetadata"], metadata: MediaMetadata, **updates: Any
    ) -> "EnrichedMetadata":
        """Build an EnrichedMetadata copy of *metadata* with optional updates."""
        data = metadata.model_dump()
        data.update(updates)
        return cls(**data)


class MediaFile(BaseModel):
    """A file discovered during scanning.

    Identity is its path; instances are frozen once created.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    """Location of the file."""

    stem: str
    """File name without its extension."""

    extension: str
    """Extension including the leading dot (e.g. ``.mkv``)."""

    role: FileRole
    """Primary (video) or companion (subtitle)."""

    @classmethod
    def from_path(
        cls: type["MediaFile"], path: Path | str, role: FileRole
    ) -> "MediaFile":
        """Build a MediaFile from a path, splitting stem and extension."""
        path = Path(path)
        return cls(path=path, stem=path.stem, extension=path.suffix, role=role)

    @property
    def name(self: "MediaFile") -> str:
        """File name including the extension."""
        return self.path.name
