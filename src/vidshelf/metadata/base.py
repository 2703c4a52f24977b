"""Base abstractions for metadata provider clients.

Defines the two provider roles used by the resolver:
- PrimaryProvider resolves canonical ids and serves movie, series and whole
  season records (OMDb).
- SecondaryProvider is an episode-level fallback with its own id space (TMDB).

Implementations return ``None`` when the provider has no answer and raise
:class:`vidshelf.errors.ProviderError` on network failures or malformed
responses.
"""

from abc import ABC, abstractmethod
from typing import Optional

from vidshelf.metadata.models import CanonicalRecord, EpisodeRecord


class PrimaryProvider(ABC):
    """Abstract base class for the primary metadata provider."""

    name: str = "primary"

    @abstractmethod
    async def resolve_id(self, title: str, year: int | None = None) -> str | None:
        """Resolve a canonical id by title and optional year.

        Args:
            title: The title to look up.
            year: Optional release year to narrow the lookup.

        Returns:
            The provider-issued canonical id, or None when nothing matched.

        Raises:
            NotImplementedError: If not implemented by subclass.
        """
        raise NotImplementedError

    @abstractmethod
    async def fetch_by_id(self, canonical_id: str) -> Optional[CanonicalRecord]:
        """Fetch the full movie or series record for a canonical id.

        Raises:
            NotImplementedError: If not implemented by subclass.
        """
        raise NotImplementedError

    @abstractmethod
    async def fetch_season(
        self, series_id: str, season: int
    ) -> list[EpisodeRecord] | None:
        """Fetch every episode of one season in a single request.

        Raises:
            NotImplementedError: If not implemented by subclass.
        """
        raise NotImplementedError


class SecondaryProvider(ABC):
    """Abstract base class for the episode-level fallback provider."""

    name: str = "secondary"

    @abstractmethod
    async def resolve_show_id(
        self, title: str, year: int | None = None
    ) -> str | None:
        """Resolve the provider's own show id by title and optional year.

        Raises:
            NotImplementedError: If not implemented by subclass.
        """
        raise NotImplementedError

    @abstractmethod
    async def fetch_episode(
        self, show_id: str, season: int, episode: int
    ) -> EpisodeRecord | None:
        """Fetch a single episode by season and episode number.

        The returned record's ``series_id`` is the provider's own show id; the
        caller is responsible for prefixing it before persisting.

        Raises:
            NotImplementedError: If not implemented by subclass.
        """
        raise NotImplementedError
