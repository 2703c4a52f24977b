"""Destination planner for scanned media files.

This module computes, without any I/O, where every file of a batch should go:
- primary (video) files are validated and routed to the movie or TV library,
- companion (subtitle) files follow the first valid primary whose name they
  resemble.

The result is one :class:`PlannedFile` per input file, primaries first and
companions after them, each group in input order.
"""

import re
from pathlib import Path
from typing import List, Optional, Sequence

from vidshelf.core.parser import generate_new_name, sanitize_filename
from vidshelf.models.core import (
    EnrichedMetadata,
    FileRole,
    MediaFile,
    MediaMetadata,
    MediaType,
)
from vidshelf.models.plan import PlannedFile

# Reason: subtitle releases append an ISO language code (2- or 3-letter or the
# English name) and optional format flags to the video's stem.
LANGUAGE_CODES = (
    "en|eng|english|es|spa|spanish|fr|fre|fra|french|de|ger|deu|german|"
    "it|ita|italian|pt|por|portuguese|ru|rus|russian|ja|jpn|japanese|"
    "ko|kor|korean|zh|chi|zho|chinese|ar|ara|arabic|hi|hin|hindi|"
    "nl|dut|nld|dutch|sv|swe|swedish|pl|pol|polish"
)
LANGUAGE_SUFFIX = re.compile(rf"\.(?:{LANGUAGE_CODES})(?:\..*)?$", re.IGNORECASE)
FORMAT_SUFFIX = re.compile(r"\.(?:sdh|forced|cc)(?:\..*)?$", re.IGNORECASE)
PUNCTUATION = re.compile(r"[\W_]+")

REQUIRED_FIELDS = {
    MediaType.MOVIE: ("title",),
    MediaType.TV: ("title", "season", "episode", "episode_title"),
}


def split_companion_stem(stem: str) -> tuple[str, str]:
    """Split a companion stem into its base and its locale/format suffix.

    Examples:
        >>> split_companion_stem("Movie.eng.forced")
        ('Movie', '.eng.forced')
        >>> split_companion_stem("Movie.forced.eng")
        ('Movie', '.forced.eng')
        >>> split_companion_stem("Movie")
        ('Movie', '')
    """
    base = stem
    for pattern in (LANGUAGE_SUFFIX, FORMAT_SUFFIX):
        match = pattern.search(base)
        if match:
            base = base[: match.start()]
    return base, stem[len(base) :]


def normalize_stem(stem: str) -> str:
    """Lower-case *stem* without locale/format suffixes or punctuation."""
    base, _ = split_companion_stem(stem)
    return PUNCTUATION.sub("", base.lower())


def is_similar_name(companion_stem: str, primary_stem: str) -> bool:
    """Whether a companion and a primary stem refer to the same title.

    Normalized stems are compared by substring containment in either
    direction; an empty normalized stem never matches.
    """
    companion = normalize_stem(companion_stem)
    primary = normalize_stem(primary_stem)
    if not companion or not primary:
        return False
    return companion in primary or primary in companion


def validate_metadata(metadata: MediaMetadata) -> List[str]:
    """Return one message per required field missing for the metadata's type."""
    errors = []
    for name in REQUIRED_FIELDS[metadata.type]:
        value = getattr(metadata, name, None)
        if value is None or value == "":
            errors.append(f"Missing required field: {name}")
    return errors


def destination_dir(
    metadata: MediaMetadata, movie_root: Path, tv_root: Path
) -> Path:
    """Return the library folder *metadata* belongs in."""
    if metadata.type == MediaType.TV:
        return (
            tv_root
            / sanitize_filename(metadata.title or "")
            / f"Season {metadata.season}"
        )
    return movie_root / generate_new_name(metadata)


def library_root(metadata: MediaMetadata, movie_root: Path, tv_root: Path) -> Path:
    """Return the library root *metadata* is filed under."""
    return tv_root if metadata.type == MediaType.TV else movie_root


def _plan_primary(
    media_file: MediaFile, metadata: MediaMetadata, movie_root: Path, tv_root: Path
) -> PlannedFile:
    errors = validate_metadata(metadata)
    if errors:
        return PlannedFile(
            media_file=media_file,
            planned_path=media_file.path,
            metadata=metadata,
            movable=False,
            errors=errors,
        )
    target = destination_dir(metadata, movie_root, tv_root) / (
        generate_new_name(metadata) + media_file.extension
    )
    return PlannedFile(media_file=media_file, planned_path=target, metadata=metadata)


def _plan_companion(
    media_file: MediaFile, metadata: MediaMetadata, primaries: Sequence[PlannedFile]
) -> PlannedFile:
    matches = [
        p for p in primaries if is_similar_name(media_file.stem, p.media_file.stem)
    ]
    match: Optional[PlannedFile] = next((p for p in matches if p.movable), None)
    if match is None:
        errors = []
        if matches:
            errors.append(
                f"Matched video {matches[0].media_file.name} could not be organized"
            )
        return PlannedFile(
            media_file=media_file,
            planned_path=media_file.path,
            metadata=metadata,
            movable=False,
            errors=errors,
            matched_primary=matches[0].media_file.path if matches else None,
        )

    _, suffix = split_companion_stem(media_file.stem)
    target = match.planned_path.parent / (
        generate_new_name(match.metadata) + suffix + media_file.extension
    )
    return PlannedFile(
        media_file=media_file,
        planned_path=target,
        metadata=match.metadata,
        matched_primary=match.media_file.path,
    )


def plan_files(
    files: Sequence[MediaFile],
    metadatas: Sequence[MediaMetadata | EnrichedMetadata],
    movie_root: Path,
    tv_root: Path,
) -> List[PlannedFile]:
    """Compute a destination decision for every file; performs no I/O.

    Args:
        files: Scanned files, primaries and companions in any order.
        metadatas: Metadata for each file, parallel to *files*.
        movie_root: Root of the movie library.
        tv_root: Root of the TV library.

    Returns:
        One PlannedFile per input file: primaries first, then companions.

    Raises:
        ValueError: If *files* and *metadatas* differ in length.
    """
    if len(files) != len(metadatas):
        raise ValueError(
            f"Got {len(files)} files but {len(metadatas)} metadata entries"
        )
    pairs = list(zip(files, metadatas))

    primaries = [
        _plan_primary(f, m, movie_root, tv_root)
        for f, m in pairs
        if f.role == FileRole.PRIMARY
    ]
    companions = [
        _plan_companion(f, m, primaries)
        for f, m in pairs
        if f.role == FileRole.COMPANION
    ]
    return primaries + companions
