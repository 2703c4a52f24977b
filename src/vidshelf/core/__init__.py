"""Core functionality for vidshelf.

This package exposes the parsing, scanning and organizing API:
- parse_filename: best-guess metadata from a filename and its folders.
- scan_directory: recursive discovery of video and subtitle files.
- organize: plan and execute (or preview) the moves for a batch.
"""

from vidshelf.core.organizer import organize
from vidshelf.core.parser import generate_new_name, parse_filename, sanitize_filename
from vidshelf.core.scanner import scan_directory

# Reason: Only expose the main pipeline stages to consumers of the core package.
__all__ = [
    "generate_new_name",
    "organize",
    "parse_filename",
    "sanitize_filename",
    "scan_directory",
]
