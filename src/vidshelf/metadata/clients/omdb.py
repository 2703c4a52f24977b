"""OMDb client, the primary metadata provider for vidshelf.

OMDb serves three lookups, all against the same endpoint:
- ``?t=<title>&y=<year>`` resolves an IMDb id by exact title.
- ``?i=<id>&plot=short`` returns the full movie or series record.
- ``?i=<id>&Season=<n>`` returns every episode of one season.

OMDb answers HTTP 200 with ``"Response": "False"`` for misses, which this client
maps to ``None``. Transport failures, rate limiting and malformed payloads are
raised as :class:`vidshelf.errors.ProviderError`.
"""

import logging
import re
from http import HTTPStatus
from typing import Any, Optional

import httpx

from vidshelf.errors import ProviderError
from vidshelf.metadata.base import PrimaryProvider
from vidshelf.metadata.models import (
    CanonicalRecord,
    EpisodeRecord,
    MovieRecord,
    SeriesRecord,
)

logger = logging.getLogger(__name__)

OMDB_BASE_URL = "http://www.omdbapi.com/"
NOT_AVAILABLE = "N/A"


def _field(data: dict[str, Any], key: str) -> str | None:
    """Return a string field, treating OMDb's ``N/A`` marker as missing."""
    value = data.get(key)
    if value is None or value == NOT_AVAILABLE or value == "":
        return None
    return str(value)


def _parse_year(value: str | None) -> int | None:
    """Parse the first year out of values like ``2008–2013`` or ``20 Jan 2008``."""
    if not value:
        return None
    match = re.search(r"\b\d{4}\b", value)
    return int(match.group(0)) if match else None


def _parse_int(value: str | None) -> int | None:
    try:
        return int(value) if value else None
    except ValueError:
        return None


def clean_movie_title(title: str, year: str | None) -> str:
    """Strip a trailing ``(Year)`` or `` Year`` OMDb sometimes appends.

    Examples:
        >>> clean_movie_title("Dune (2021)", "2021")
        'Dune'
        >>> clean_movie_title("Blade Runner 2049", "2017")
        'Blade Runner 2049'
    """
    if not year:
        return title.strip()
    cleaned = re.sub(rf"\s*\({re.escape(year)}\)\s*$", "", title).strip()
    if cleaned == title.strip():
        cleaned = re.sub(rf"\s+{re.escape(year)}\s*$", "", title).strip()
    return cleaned or title.strip()


class OMDbClient(PrimaryProvider):
    """OMDb client for movie, series and season metadata.

    Note: OMDb only offers episode details season by season, which is exactly
    the granularity the resolver's season batch fetch needs.
    """

    name = "omdb"

    def __init__(self, api_key: str, base_url: str = OMDB_BASE_URL) -> None:
        """Initialize OMDb client with API key.

        Args:
            api_key: OMDb API key from environment or settings.
            base_url: Endpoint override, mainly for tests.
        """
        self.api_key = api_key
        self.base_url = base_url

    async def _get(self, params: dict[str, str]) -> dict[str, Any] | None:
        """Issue one GET request and return the payload, or None on a miss."""
        query = {"apikey": self.api_key, "r": "json", **params}
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.get(self.base_url, params=query)
                if resp.status_code == HTTPStatus.TOO_MANY_REQUESTS:
                    raise ProviderError("OMDb rate limit exceeded")
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as exc:
            raise ProviderError(f"OMDb request failed: {exc}") from exc
        except ValueError as exc:
            raise ProviderError("OMDb returned a non-JSON response") from exc

        if not isinstance(data, dict):
            raise ProviderError("OMDb returned an unexpected payload")
        if data.get("Response") == "False":
            logger.debug("OMDb miss for %s: %s", params, data.get("Error"))
            return None
        return data

    async def resolve_id(self, title: str, year: int | None = None) -> str | None:
        """Resolve an IMDb id by exact title lookup."""
        params = {"t": title}
        if year:
            params["y"] = str(year)
        data = await self._get(params)
        if data is None:
            return None
        return _field(data, "imdbID")

    async def fetch_by_id(self, canonical_id: str) -> Optional[CanonicalRecord]:
        """Fetch a movie or series record by IMDb id.

        Movie titles are cleaned of a trailing year. Other record types
        (``episode``, ``game``) are treated as a miss.
        """
        data = await self._get({"i": canonical_id, "plot": "short"})
        if data is None:
            return None

        record_type = data.get("Type")
        title = _field(data, "Title")
        if not title:
            raise ProviderError(f"OMDb record {canonical_id} has no title")

        common = {
            "id": _field(data, "imdbID") or canonical_id,
            "plot": _field(data, "Plot"),
            "genre": _field(data, "Genre"),
            "director": _field(data, "Director"),
            "actors": _field(data, "Actors"),
            "rating": _field(data, "imdbRating"),
            "year": _parse_year(_field(data, "Year")),
        }
        if record_type == "movie":
            return MovieRecord(
                title=clean_movie_title(title, _field(data, "Year")),
                runtime=_field(data, "Runtime"),
                **common,
            )
        if record_type == "series":
            return SeriesRecord(
                title=title,
                total_seasons=_parse_int(_field(data, "totalSeasons")),
                **common,
            )
        logger.debug("Ignoring OMDb record %s of type %s", canonical_id, record_type)
        return None

    async def fetch_season(
        self, series_id: str, season: int
    ) -> list[EpisodeRecord] | None:
        """Fetch all episodes of one season.

        Season payloads carry only per-episode fields; genre and actors are
        inherited from the series record by the resolver.
        """
        data = await self._get({"i": series_id, "Season": str(season)})
        if data is None:
            return None
        episodes = data.get("Episodes")
        if not isinstance(episodes, list):
            raise ProviderError(f"OMDb season {season} of {series_id} has no episodes")

        records: list[EpisodeRecord] = []
        for item in episodes:
            number = _parse_int(_field(item, "Episode"))
            title = _field(item, "Title")
            if number is None or number <= 0 or not title:
                continue
            records.append(
                EpisodeRecord(
                    series_id=series_id,
                    season=season,
                    episode=number,
                    id=_field(item, "imdbID"),
                    title=title,
                    plot=_field(item, "Plot"),
                    genre=_field(item, "Genre"),
                    director=_field(item, "Director"),
                    actors=_field(item, "Actors"),
                    rating=_field(item, "imdbRating"),
                    released=_field(item, "Released"),
                    year=_parse_year(_field(item, "Released")),
                )
            )
        return records
