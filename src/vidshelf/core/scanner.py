"""Directory scanner for media files.

This module walks a directory tree and classifies every file it finds as a
primary (video) or companion (subtitle) :class:`MediaFile`.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from vidshelf.core.parser import SUBTITLE_EXTENSIONS, VIDEO_EXTENSIONS
from vidshelf.models.core import FileRole, MediaFile

# Logger for this module
logger = logging.getLogger(__name__)

# Reason: release packs ship short preview clips that would otherwise be
# organized as if they were the feature.
SAMPLE_MARKER = "sample"


def is_hidden(path: Path) -> bool:
    """Check if a path is hidden (starts with a dot)."""
    return path.name.startswith(".")


@dataclass
class ScanOptions:
    """Options for the scan process."""

    recursive: bool = True
    include_hidden: bool = False
    include_subtitles: bool = True


@dataclass
class ScanResult:
    """Files found by a scan, in deterministic (sorted) order."""

    root_dir: Path
    files: List[MediaFile] = field(default_factory=list)
    skipped_files: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def primaries(self) -> List[MediaFile]:
        return [f for f in self.files if f.role == FileRole.PRIMARY]

    @property
    def companions(self) -> List[MediaFile]:
        return [f for f in self.files if f.role == FileRole.COMPANION]


def classify(path: Path, include_subtitles: bool = True) -> FileRole | None:
    """Return the role of *path*, or None when it should not be organized.

    Examples:
        >>> classify(Path("Movie.2020.mkv"))
        <FileRole.PRIMARY: 'primary'>
        >>> classify(Path("movie-sample.mkv")) is None
        True
    """
    ext = path.suffix.lower()
    if ext in VIDEO_EXTENSIONS:
        if SAMPLE_MARKER in path.name.lower():
            return None
        return FileRole.PRIMARY
    if ext in SUBTITLE_EXTENSIONS and include_subtitles:
        return FileRole.COMPANION
    return None


def _process_directory(directory: Path, options: ScanOptions, result: ScanResult) -> None:
    try:
        items = sorted(directory.iterdir())
    except OSError as e:
        # Log access errors but continue processing
        logger.warning("Failed to scan directory %s: %s", directory, e)
        result.errors.append(f"Error accessing {directory}: {e}")
        return

    for item in items:
        if is_hidden(item) and not options.include_hidden:
            continue
        try:
            if item.is_dir():
                if options.recursive:
                    _process_directory(item, options, result)
                continue
            if not item.is_file():
                continue
        except OSError as e:
            result.errors.append(f"Error accessing {item}: {e}")
            continue

        role = classify(item, options.include_subtitles)
        if role is None:
            result.skipped_files += 1
            continue
        result.files.append(MediaFile.from_path(item, role))


def scan_directory(root_dir: Path, options: ScanOptions | None = None) -> ScanResult:
    """Scan a directory for video and subtitle files.

    Args:
        root_dir: The directory to scan.
        options: Scan options; defaults scan recursively and include subtitles.

    Returns:
        ScanResult with every organizable file found.

    Raises:
        FileNotFoundError: If the directory doesn't exist
        ValueError: If the path is not a directory
    """
    if not root_dir.exists():
        raise FileNotFoundError(f"Directory does not exist: {root_dir}")
    if not root_dir.is_dir():
        raise ValueError(f"Path is not a directory: {root_dir}")

    # Use absolute path to avoid relative path issues
    root_dir = root_dir.absolute()
    options = options or ScanOptions()

    result = ScanResult(root_dir=root_dir)
    _process_directory(root_dir, options, result)
    logger.info(
        "Scanned %s: %d files (%d skipped)",
        root_dir,
        len(result.files),
        result.skipped_files,
    )
    return result
