# WARNING: API key loading from .env is for LOCAL DEVELOPMENT ONLY.
# Never commit your .env file or distribute your API keys.

"""TMDB metadata provider client.

Implements the SecondaryProvider interface for The Movie Database (TMDB) API.
Only TV lookups are needed: TMDB is consulted when OMDb cannot produce
episode-level data.
"""

import logging
from http import HTTPStatus
from typing import Any

import httpx

from vidshelf.errors import ProviderError
from vidshelf.metadata.base import SecondaryProvider
from vidshelf.metadata.models import EpisodeRecord

logger = logging.getLogger(__name__)

TMDB_BASE_URL = "https://api.themoviedb.org/3"
YEAR_LENGTH = 4  # Minimum length for a valid year string


class TMDBClient(SecondaryProvider):
    """Client for The Movie Database (TMDB) API.

    Implements show search and single-episode lookups.
    """

    name = "tmdb"

    def __init__(self, api_key: str, base_url: str = TMDB_BASE_URL) -> None:
        """Initialize TMDBClient with an API key."""
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any] | None:
        """GET ``path`` and return the JSON body, or None for a 404."""
        query = {"api_key": self.api_key, **(params or {})}
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.get(f"{self.base_url}{path}", params=query)
                if resp.status_code == HTTPStatus.NOT_FOUND:
                    return None
                if resp.status_code == HTTPStatus.TOO_MANY_REQUESTS:
                    raise ProviderError("TMDB rate limit exceeded")
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as exc:
            raise ProviderError(f"TMDB request failed: {exc}") from exc
        except ValueError as exc:
            raise ProviderError("TMDB returned a non-JSON response") from exc
        if not isinstance(data, dict):
            raise ProviderError("TMDB returned an unexpected payload")
        return data

    async def resolve_show_id(
        self, title: str, year: int | None = None
    ) -> str | None:
        """Search TV shows by title and return the first result's id.

        Args:
            title: The show title to search for.
            year: Optional first-air year to filter results.

        Returns:
            The TMDB show id as a string, or None when nothing matched.
        """
        params: dict[str, Any] = {"query": title}
        if year:
            params["first_air_date_year"] = year
        data = await self._get("/search/tv", params)
        results = (data or {}).get("results") or []
        if not results:
            return None
        return str(results[0]["id"])

    async def fetch_episode(
        self, show_id: str, season: int, episode: int
    ) -> EpisodeRecord | None:
        """Fetch one episode and convert it into an EpisodeRecord."""
        data = await self._get(f"/tv/{show_id}/season/{season}/episode/{episode}")
        if data is None:
            return None
        name = data.get("name")
        if not name:
            raise ProviderError(
                f"TMDB episode {show_id} S{season}E{episode} has no name"
            )

        directors = [
            member["name"]
            for member in data.get("crew") or []
            if member.get("job") == "Director" and member.get("name")
        ]
        actors = [
            member["name"]
            for member in data.get("guest_stars") or []
            if member.get("name")
        ]
        rating = data.get("vote_average")
        return EpisodeRecord(
            series_id=show_id,
            season=season,
            episode=episode,
            id=str(data["id"]) if data.get("id") is not None else None,
            title=name,
            plot=data.get("overview") or None,
            director=", ".join(directors) or None,
            actors=", ".join(actors) or None,
            rating=str(rating) if rating else None,
            released=data.get("air_date") or None,
            year=_extract_year(data.get("air_date")),
        )


def _extract_year(date_str: str | None) -> int | None:
    """Extracts the year as int from a YYYY-MM-DD string, or returns None."""
    if date_str and len(date_str) >= YEAR_LENGTH and date_str[:YEAR_LENGTH].isdigit():
        return int(date_str[:YEAR_LENGTH])
    return None
