"""Canonical record models for the local metadata store.

These are the provider-agnostic shapes that providers return and the store
persists.
- MovieRecord and SeriesRecord are keyed by a provider-issued canonical id.
- EpisodeRecord is keyed by ``(series_id, season, episode)``.

Ids coming from a fallback provider are stored with a ``<provider>:`` prefix so
they never collide with primary-provider ids.

Design:
- Records carry only the fields the resolver copies into EnrichedMetadata, plus
  a few descriptive fields (year, released, runtime) that are cheap to keep.
- ``kind`` is a literal discriminator so ``CanonicalRecord`` can be validated
  from a plain dict.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field


class _EnrichmentFields(BaseModel):
    """Fields shared by every record that feed EnrichedMetadata."""

    title: str
    """Canonical title as cased by the provider."""
    plot: Optional[str] = None
    genre: Optional[str] = None
    director: Optional[str] = None
    actors: Optional[str] = None
    rating: Optional[str] = None
    year: Optional[int] = None


class MovieRecord(_EnrichmentFields):
    """A movie, keyed by canonical id."""

    kind: Literal["movie"] = "movie"
    id: str
    runtime: Optional[str] = None


class SeriesRecord(_EnrichmentFields):
    """A TV series, keyed by canonical id."""

    kind: Literal["series"] = "series"
    id: str
    total_seasons: Optional[int] = None


class EpisodeRecord(_EnrichmentFields):
    """A single TV episode, keyed by series id, season and episode."""

    kind: Literal["episode"] = "episode"
    series_id: str
    season: int
    episode: int
    id: Optional[str] = None
    """Provider id of the episode itself, when the provider has one."""
    released: Optional[str] = None


CanonicalRecord = Annotated[
    Union[MovieRecord, SeriesRecord], Field(discriminator="kind")
]
"""What ``fetch_by_id`` returns: a movie or a series."""


def prefixed_id(provider: str, provider_id: str) -> str:
    """Return the store key for an id issued by a fallback *provider*."""
    return f"{provider}:{provider_id}"
