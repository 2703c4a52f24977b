"""End-to-end pipeline: scan, parse, enrich, organize.

Files are handled strictly one after another; there is no fan-out across
files, so move-log order and provider call order are deterministic.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from vidshelf.core.apply import ConflictResolver
from vidshelf.core.organizer import organize
from vidshelf.core.parser import parse_filename
from vidshelf.core.scanner import ScanOptions, scan_directory
from vidshelf.fs.move_log import MoveLog
from vidshelf.fs.operations import FileSystem
from vidshelf.metadata.resolver import MetadataResolver
from vidshelf.models.core import EnrichedMetadata, FileRole, MediaFile, MediaMetadata
from vidshelf.models.plan import ProcessedFile
from vidshelf.utils.debug import debug, info


@dataclass
class PipelineResult:
    """Everything a run produced, for reporting."""

    files: List[MediaFile] = field(default_factory=list)
    metadatas: List[MediaMetadata | EnrichedMetadata] = field(default_factory=list)
    processed: List[ProcessedFile] = field(default_factory=list)
    scan_errors: List[str] = field(default_factory=list)
    resolution_errors: List[str] = field(default_factory=list)


async def resolve_files(
    files: List[MediaFile],
    resolver: MetadataResolver,
    scan_root: Optional[Path] = None,
    progress_callback: Optional[Callable[[MediaFile], None]] = None,
) -> List[MediaMetadata | EnrichedMetadata]:
    """Parse every file and enrich the primaries, in order.

    Companions are only parsed; the organizer borrows their metadata from the
    primary they match.
    """
    metadatas: List[MediaMetadata | EnrichedMetadata] = []
    for media_file in files:
        if progress_callback:
            progress_callback(media_file)
        metadata: MediaMetadata | EnrichedMetadata = parse_filename(
            media_file.name, full_path=media_file.path, scan_root=scan_root
        )
        debug(f"Parsed {media_file.name}: {metadata.model_dump()}")
        if media_file.role == FileRole.PRIMARY:
            metadata = await resolver.enrich(metadata)
        metadatas.append(metadata)
    return metadatas


async def prepare_files(
    scan_root: Path,
    resolver: MetadataResolver,
    *,
    scan_options: Optional[ScanOptions] = None,
    progress_callback: Optional[Callable[[MediaFile], None]] = None,
) -> PipelineResult:
    """Scan *scan_root*, then parse and enrich everything found.

    The result carries files and metadata but no processed entries; pass it
    to :func:`organize_prepared` once or several times (preview, then apply).

    Raises:
        FileNotFoundError: If *scan_root* does not exist.
    """
    scan = scan_directory(scan_root, scan_options)
    result = PipelineResult(files=scan.files, scan_errors=scan.errors)
    if not scan.files:
        info(f"No media files found under {scan_root}")
        return result

    result.metadatas = await resolve_files(
        scan.files, resolver, scan.root_dir, progress_callback
    )
    result.resolution_errors = list(resolver.session.errors)
    return result


async def organize_prepared(
    result: PipelineResult,
    movie_root: Path,
    tv_root: Path,
    conflict_resolver: ConflictResolver,
    preview: bool,
    *,
    filesystem: Optional[FileSystem] = None,
    move_log: Optional[MoveLog] = None,
) -> List[ProcessedFile]:
    """Organize an already prepared batch and store the outcome on *result*."""
    if not result.files:
        result.processed = []
        return result.processed
    result.processed = await organize(
        result.files,
        result.metadatas,
        movie_root,
        tv_root,
        conflict_resolver,
        preview,
        filesystem=filesystem,
        move_log=move_log,
    )
    return result.processed


async def run_pipeline(
    scan_root: Path,
    resolver: MetadataResolver,
    movie_root: Path,
    tv_root: Path,
    conflict_resolver: ConflictResolver,
    preview: bool,
    *,
    scan_options: Optional[ScanOptions] = None,
    filesystem: Optional[FileSystem] = None,
    move_log: Optional[MoveLog] = None,
    progress_callback: Optional[Callable[[MediaFile], None]] = None,
) -> PipelineResult:
    """Scan *scan_root* and organize everything found.

    Raises:
        FileNotFoundError: If *scan_root* does not exist.
        DestinationRootError: If a library root is unusable (apply mode).
    """
    result = await prepare_files(
        scan_root,
        resolver,
        scan_options=scan_options,
        progress_callback=progress_callback,
    )
    await organize_prepared(
        result,
        movie_root,
        tv_root,
        conflict_resolver,
        preview,
        filesystem=filesystem,
        move_log=move_log,
    )
    return result
