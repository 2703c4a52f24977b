"""Filename and folder parser for movie and TV files.

This module turns release-style file names (``Movie.Name.2022.1080p.BluRay``,
``The.Show.S01E02.720p.HDTV``) into a best-guess :class:`MediaMetadata`.

Design:
- Tokenizing is an ordered tuple of small, independent :class:`TokenRule`
  objects. Each rule is a pure regex classifier for one kind of token
  (season/episode, year, lone season or episode marker, release info).
  Rules earlier in ``TOKEN_RULES`` win when two matches overlap, so a new
  naming convention is a new rule rather than an edit to one large pattern.
- The title is whatever precedes the earliest classified token.
- Folder names are parsed with the same tokenizer and only fill fields the
  filename left empty. Parsing never looks above the scan root.

Parsing never raises for odd input: ambiguous names just produce partial
metadata (``title=None`` is a valid outcome).
"""

import logging
import re
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path, PurePath
from typing import List, Optional, Tuple

from vidshelf.models.core import EnrichedMetadata, MediaMetadata, MediaType

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = {".mp4", ".mkv", ".avi", ".mov", ".wmv", ".flv", ".webm", ".m4v"}
SUBTITLE_EXTENSIONS = {
    ".srt",
    ".sub",
    ".ssa",
    ".ass",
    ".vtt",
    ".idx",
    ".sup",
    ".mks",
    ".ttml",
}
KNOWN_EXTENSIONS = VIDEO_EXTENSIONS | SUBTITLE_EXTENSIONS

MAX_FOLDER_LEVELS = 2
UNTITLED = "Untitled"

# Characters rejected by Windows or Unix filesystems.
ILLEGAL_CHARACTERS = re.compile(r'[<>:"|?*\\/]')
CONTROL_CHARACTERS = re.compile(r"[\x00-\x1f\x7f-\x9f]")
TRAILING_DOTS_SPACES = re.compile(r"[.\s]+$")

# Boundaries that treat dots, dashes, underscores and spaces as separators.
_B = r"(?<![A-Za-z0-9])"
_E = r"(?![A-Za-z0-9])"

# S03EP01, s03.e01, S3 E1 -> S03E01
ALT_EPISODE_MARKER = re.compile(
    _B + r"[Ss](\d{1,3})[\s._-]*[Ee][Pp]?[\s._-]*(\d{1,3})(?![0-9])"
)
LEADING_GROUP_TAG = re.compile(r"^\s*\[[^\]]*\]\s*")
BARE_SEASON_TOKEN = re.compile(
    r"^(?:s\d{1,3}(?:e\d{1,3})?|e\d{1,3}|season\s*\d+|episode\s*\d+|\d{1,2}x\d{2,3})$",
    re.IGNORECASE,
)
TRAILING_YEAR = re.compile(r"^(.*\S)\s+(\d{4})$")

RELEASE_INFO_WORDS = (
    # resolution
    r"\d{3,4}[pi]|4k|uhd|"
    # source
    r"blu-?ray|bdrip|brrip|bdremux|remux|web-?dl|web-?rip|hdtv|pdtv|"
    r"dvdrip|dvdscr|dvd|hdrip|hdcam|camrip|telesync|"
    # video codec
    r"[xh]\.?26[45]|hevc|avc|xvid|divx|av1|10-?bit|8-?bit|hdr10\+?|hdr|"
    # audio
    r"e?ac3|aac(?:2\.0|5\.1)?|dts(?:-?hd)?(?:-?ma)?|ddp?(?:[257]\.[01])?|"
    r"truehd|atmos|flac|mp3|[257]\.1|"
    # edition and misc
    r"proper|repack|extended|unrated|remastered|internal|limited|imax|"
    r"multi|dual-?audio|subbed|dubbed"
)
RESIDUAL_RELEASE_SUFFIX = re.compile(
    r"[\s._-]*(?:"
    + RELEASE_INFO_WORDS
    + r"|complete|s\d{1,3}|season[\s._-]*\d{1,3}|\(\s*\)|\[\s*\])[\s._-]*$",
    re.IGNORECASE,
)


class TokenKind(str, Enum):
    """Classification assigned to a token by a rule."""

    SEASON_EPISODE = "season_episode"
    YEAR = "year"
    SEASON_MARKER = "season_marker"
    EPISODE_MARKER = "episode_marker"
    RELEASE_INFO = "release_info"
    RELEASE_GROUP = "release_group"


@dataclass(frozen=True)
class Token:
    """A classified span of the name being parsed."""

    kind: TokenKind
    start: int
    end: int
    values: Tuple[int, ...] = ()


@dataclass(frozen=True)
class TokenRule:
    """Pure classifier: every match of ``pattern`` becomes a token of ``kind``.

    Numeric capture groups are converted to ``int`` and stored on the token;
    groups that did not participate are dropped.
    """

    kind: TokenKind
    pattern: re.Pattern[str]

    def find(self: "TokenRule", text: str) -> List[Token]:
        """Return all tokens of this rule's kind found in *text*."""
        tokens = []
        for match in self.pattern.finditer(text):
            values = tuple(int(g) for g in match.groups() if g is not None)
            tokens.append(Token(self.kind, match.start(), match.end(), values))
        return tokens


# Reason: order is priority. When two rules match overlapping text the rule
# listed first keeps it (e.g. "S01E02" is an episode, not a season marker).
TOKEN_RULES: Tuple[TokenRule, ...] = (
    TokenRule(
        TokenKind.SEASON_EPISODE,
        re.compile(_B + r"S(\d{1,3})E(\d{1,3})(?:[-E]+\d{1,3})*(?![0-9])", re.I),
    ),
    TokenRule(
        TokenKind.SEASON_EPISODE,
        re.compile(
            _B + r"season[\s._-]*(\d{1,3})[\s._-]*episode[\s._-]*(\d{1,3})(?![0-9])",
            re.I,
        ),
    ),
    TokenRule(
        TokenKind.SEASON_EPISODE,
        re.compile(_B + r"(\d{1,2})x(\d{2,3})" + _E, re.I),
    ),
    TokenRule(
        TokenKind.YEAR,
        re.compile(_B + r"[\[(]?((?:19|20)\d{2})[\])]?" + _E),
    ),
    TokenRule(
        TokenKind.SEASON_MARKER,
        re.compile(_B + r"(?:S(\d{1,3})|season[\s._-]*(\d{1,3}))" + _E, re.I),
    ),
    TokenRule(
        TokenKind.EPISODE_MARKER,
        re.compile(_B + r"(?:E(\d{1,3})|episode[\s._-]*(\d{1,3}))" + _E, re.I),
    ),
    TokenRule(
        TokenKind.RELEASE_INFO,
        re.compile(_B + r"(?:" + RELEASE_INFO_WORDS + r")" + _E, re.I),
    ),
    TokenRule(
        TokenKind.RELEASE_GROUP,
        re.compile(r"(?:-[A-Za-z0-9]+|\[[^\]]*\])\s*$"),
    ),
)


@dataclass
class _NameTokens:
    """Tokens accepted for one name, grouped for field extraction."""

    text: str
    tokens: List[Token]

    def first(self: "_NameTokens", kind: TokenKind) -> Optional[Token]:
        for token in self.tokens:
            if token.kind == kind:
                return token
        return None

    def of_kind(self: "_NameTokens", kind: TokenKind) -> List[Token]:
        return [t for t in self.tokens if t.kind == kind]


@dataclass(frozen=True)
class _ParsedName:
    """Fields read from one name; season and episode may each stand alone."""

    title: Optional[str] = None
    year: Optional[int] = None
    season: Optional[int] = None
    episode: Optional[int] = None

    def to_metadata(self: "_ParsedName") -> MediaMetadata:
        """Build metadata, keeping season and episode only as a pair."""
        paired = self.season is not None and self.episode is not None
        return _with_type(
            MediaMetadata(
                title=self.title,
                year=self.year,
                season=self.season if paired else None,
                episode=self.episode if paired else None,
            )
        )


def normalize_episode_markers(name: str) -> str:
    """Rewrite alternate episode spellings (``S03EP01``, ``s3.e1``) as ``S03E01``."""
    return ALT_EPISODE_MARKER.sub(
        lambda m: f"S{int(m.group(1)):02d}E{int(m.group(2)):02d}", name
    )


def strip_extension(filename: str) -> str:
    """Remove a known media or subtitle extension, leaving other suffixes alone.

    ``Movie.Name.2022`` keeps its ``.2022``; ``Movie.Name.2022.mkv`` loses
    ``.mkv``.
    """
    suffix = PurePath(filename).suffix
    if suffix.lower() in KNOWN_EXTENSIONS:
        return filename[: -len(suffix)]
    return filename


def tokenize(text: str) -> List[Token]:
    """Apply ``TOKEN_RULES`` in priority order and return non-overlapping tokens.

    Tokens are returned sorted by position. Year, release-info and group tokens
    starting at position 0 are discarded so titles such as ``1917`` or
    ``Extended Family`` are not eaten by their own first word.
    """
    accepted: List[Token] = []
    for rule in TOKEN_RULES:
        for token in rule.find(text):
            if token.start == 0 and token.kind in (
                TokenKind.RELEASE_INFO,
                TokenKind.RELEASE_GROUP,
                TokenKind.YEAR,
            ):
                continue
            if any(token.start < t.end and t.start < token.end for t in accepted):
                continue
            accepted.append(token)
    return sorted(accepted, key=lambda t: t.start)


def _choose_year(name_tokens: _NameTokens) -> Optional[Token]:
    """Pick the release year among year-shaped tokens.

    The last year before any other classified token wins, so
    ``Blade.Runner.2049.2017.1080p`` yields 2017 and keeps 2049 in the title.
    """
    years = name_tokens.of_kind(TokenKind.YEAR)
    if not years:
        return None
    others = [t.start for t in name_tokens.tokens if t.kind != TokenKind.YEAR]
    boundary = min(others) if others else len(name_tokens.text)
    before = [t for t in years if t.start < boundary]
    return before[-1] if before else years[0]


def _release_groups(name_tokens: _NameTokens) -> List[Token]:
    # A trailing "-GROUP" only counts once real release info precedes it,
    # otherwise "Spider-Man" would lose "Man".
    info = name_tokens.first(TokenKind.RELEASE_INFO)
    return [
        t
        for t in name_tokens.of_kind(TokenKind.RELEASE_GROUP)
        if info is not None and t.start > info.start
    ]


def clean_title(raw: str) -> Optional[str]:
    """Turn the raw title slice of a release name into a display title.

    Returns ``None`` when nothing usable remains or when the remainder is only
    a season/episode placeholder such as ``S02``.
    """
    title = raw.replace("_", " ")
    if " " not in title.strip():
        title = title.replace(".", " ")
    title = re.sub(r"[\(\[\{]\s*[\)\]\}]", " ", title)
    title = title.strip(" -._").rstrip(" -._([{")
    title = re.sub(r"\s+", " ", title).strip()
    if not title or is_bare_season_token(title):
        return None
    return title


def is_bare_season_token(value: Optional[str]) -> bool:
    """Whether *value* is only a season/episode placeholder (``S02``, ``Season 2``)."""
    return bool(value) and bool(BARE_SEASON_TOKEN.match(value.strip()))


def strip_release_info(title: str) -> str:
    """Strip residual release-info suffixes (resolution, codec, season markers).

    Used on folder-derived titles, e.g. ``Breaking Bad S01 1080p`` ->
    ``Breaking Bad``.
    """
    previous = None
    while previous != title:
        previous = title
        title = RESIDUAL_RELEASE_SUFFIX.sub("", title).strip()
    return title


def _marker_value(name_tokens: _NameTokens, kind: TokenKind) -> Optional[int]:
    token = name_tokens.first(kind)
    return token.values[0] if token is not None and token.values else None


def _parse_name(name: str) -> _ParsedName:
    """Parse a single file or folder name without any folder context."""
    text = normalize_episode_markers(strip_extension(name))
    text = LEADING_GROUP_TAG.sub("", text)
    name_tokens = _NameTokens(text=text, tokens=tokenize(text))

    se_token = name_tokens.first(TokenKind.SEASON_EPISODE)
    if se_token is not None:
        season, episode = se_token.values[0], se_token.values[1]
    else:
        # Lone "S05" / "Season 5" and "E10" / "Episode 10" markers.
        season = _marker_value(name_tokens, TokenKind.SEASON_MARKER)
        episode = _marker_value(name_tokens, TokenKind.EPISODE_MARKER)

    year_token = _choose_year(name_tokens)
    year = year_token.values[0] if year_token is not None else None

    cut_points = [
        t.start
        for t in name_tokens.tokens
        if t.kind not in (TokenKind.YEAR, TokenKind.RELEASE_GROUP)
    ]
    cut_points += [t.start for t in _release_groups(name_tokens)]
    if year_token is not None:
        cut_points.append(year_token.start)
    cut = min(cut_points) if cut_points else len(text)
    title = clean_title(text[:cut])

    # Year fallback: "Some Movie 1999" when no year token was classified.
    if year is None and title:
        match = TRAILING_YEAR.match(title)
        if match:
            title, year = match.group(1).strip(" -"), int(match.group(2))

    return _ParsedName(title=title, year=year, season=season, episode=episode)


def _with_type(metadata: MediaMetadata) -> MediaMetadata:
    media_type = MediaType.TV if metadata.is_episode else MediaType.MOVIE
    if metadata.type == media_type:
        return metadata
    return metadata.model_copy(update={"type": media_type})


def _ancestor_names(full_path: Path, scan_root: Path) -> List[str]:
    """Return up to ``MAX_FOLDER_LEVELS`` folder names between file and root.

    The nearest folder comes first. The scan root itself and anything above it
    are never returned; a file outside the root yields no folders.
    """
    names: List[str] = []
    current = full_path.parent
    while len(names) < MAX_FOLDER_LEVELS:
        if current == scan_root or scan_root not in current.parents:
            break
        names.append(current.name)
        current = current.parent
    return names


def _merge_folder_metadata(
    parsed: _ParsedName, folders: List[_ParsedName]
) -> MediaMetadata:
    """Fill fields the filename left empty from parsed ancestor folders.

    ``folders`` is ordered nearest-first. Title and year prefer the folder
    closest to the scan root (the most show-like one). Season and episode are
    filled one at a time from the nearest folder that has them, so
    ``Show/Season 5/Show.E10.mkv`` becomes S5E10; the result still keeps them
    only when both are known.
    """
    updates: dict[str, object] = {}
    root_first = list(reversed(folders))

    if parsed.title is None:
        for folder in root_first:
            if folder.title is None:
                continue
            candidate = strip_release_info(folder.title)
            if candidate and not is_bare_season_token(candidate):
                updates["title"] = candidate
                break

    if parsed.year is None:
        for folder in root_first:
            if folder.year is not None:
                updates["year"] = folder.year
                break

    for field in ("season", "episode"):
        if getattr(parsed, field) is not None:
            continue
        for folder in folders:
            value = getattr(folder, field)
            if value is not None:
                updates[field] = value
                break

    if updates:
        logger.debug("Folder fallback filled %s", sorted(updates))
        parsed = replace(parsed, **updates)
    return parsed.to_metadata()


def parse_filename(
    filename: str,
    full_path: Optional[Path | str] = None,
    scan_root: Optional[Path | str] = None,
) -> MediaMetadata:
    """Parse a media filename into title, year, season and episode.

    Args:
        filename: File name, with or without a known extension.
        full_path: Optional full path of the file; enables folder fallback
            together with ``scan_root``.
        scan_root: Directory the scan started from. Folder fallback never
            looks at this directory or above it.

    Returns:
        Best-guess MediaMetadata. ``type`` is TV iff both season and episode
        were found.

    Example:
        >>> parse_filename("Movie.Name.2022.1080p.BluRay.x264.mp4").title
        'Movie Name'
    """
    parsed = _parse_name(filename)
    if full_path is None or scan_root is None:
        return parsed.to_metadata()

    folders = [
        _parse_name(name)
        for name in _ancestor_names(Path(full_path), Path(scan_root))
    ]
    return _merge_folder_metadata(parsed, folders)


def sanitize_filename(name: str) -> str:
    """Make *name* safe as a single path component on Windows and Unix.

    Removes ``< > : " | ? * \\ /`` and control characters, strips trailing
    dots and spaces, and falls back to ``"Untitled"`` when nothing is left.
    The function is idempotent.
    """
    sanitized = ILLEGAL_CHARACTERS.sub("", name)
    sanitized = CONTROL_CHARACTERS.sub("", sanitized)
    sanitized = TRAILING_DOTS_SPACES.sub("", sanitized)
    if not sanitized.strip():
        return UNTITLED
    return sanitized


def generate_new_name(metadata: MediaMetadata) -> str:
    """Build the library file name (without extension) for *metadata*.

    Movies: ``Title (Year)``. TV: ``Title (Year) - Season S Episode E -
    Episode Title``, where the year and episode title parts are optional.
    """
    name = metadata.title or ""
    if metadata.year:
        name += f" ({metadata.year})"
    if metadata.type == MediaType.TV and metadata.is_episode:
        name += f" - Season {metadata.season} Episode {metadata.episode}"
        episode_title = (
            metadata.episode_title if isinstance(metadata, EnrichedMetadata) else None
        )
        if episode_title:
            name += f" - {episode_title}"
    return sanitize_filename(name)
