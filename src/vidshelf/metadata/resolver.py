"""Metadata enrichment: store-first lookup with an ordered provider fallback chain.

``MetadataResolver.enrich`` turns parsed :class:`MediaMetadata` into
:class:`EnrichedMetadata`:

1. Resolve a canonical id with the primary provider (session-cached, misses
   included).
2. Read the local store; on a series hit with an episode miss, fetch the whole
   season once and re-read.
3. On a full miss, fetch the record by id, persist it, and batch-fetch the
   season for episodes.
4. When the primary cannot produce episode data, try the secondary provider,
   persisting its episodes under a provider-prefixed id.

Each step is a strategy returning a :class:`Resolution`. Strategies are tried in
order until one succeeds; every resolution carries the best metadata known so
far, so a later failure never loses an earlier title correction.

Title policy: when a provider (or the store) knows the title, its casing wins
over the filename-derived one.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Optional, Sequence, TypeVar

from vidshelf.errors import ProviderError, StoreError
from vidshelf.metadata.base import PrimaryProvider, SecondaryProvider
from vidshelf.metadata.models import (
    EpisodeRecord,
    MovieRecord,
    SeriesRecord,
    prefixed_id,
)
from vidshelf.metadata.store import MetadataStore
from vidshelf.models.core import EnrichedMetadata, MediaMetadata, MediaType

logger = logging.getLogger(__name__)

T = TypeVar("T")


def session_key(title: str, year: int | None = None) -> str:
    """Return the ``title[_year]`` key used by the session caches."""
    return f"{title}_{year}" if year else title


@dataclass
class SessionCache:
    """Per-run caches shared by the resolver's strategies.

    Attributes:
        ids: Primary-provider id lookups by ``title[_year]``; ``None`` records a
            miss so it is not retried.
        show_ids: Secondary-provider show ids, keyed the same way.
        selections: Ids chosen explicitly by a caller; consulted before ``ids``.
        fetched_seasons: ``(series_id, season)`` pairs already batch-fetched.
        errors: Human-readable failures collected during the run.
    """

    ids: dict[str, Optional[str]] = field(default_factory=dict)
    show_ids: dict[str, Optional[str]] = field(default_factory=dict)
    selections: dict[str, str] = field(default_factory=dict)
    fetched_seasons: set[tuple[str, int]] = field(default_factory=set)
    errors: list[str] = field(default_factory=list)

    def select(self, title: str, year: int | None, canonical_id: str) -> None:
        """Pin *canonical_id* as the answer for ``title``/``year``."""
        self.selections[session_key(title, year)] = canonical_id

    def record_error(self, message: str) -> None:
        logger.warning(message)
        self.errors.append(message)


class ResolutionStatus(str, Enum):
    """Outcome of one strategy."""

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class Resolution:
    """Uniform strategy result carrying the best metadata known so far."""

    status: ResolutionStatus
    metadata: EnrichedMetadata
    error: Optional[str] = None

    @classmethod
    def success(cls, metadata: EnrichedMetadata) -> "Resolution":
        return cls(ResolutionStatus.SUCCESS, metadata)

    @classmethod
    def not_found(cls, metadata: EnrichedMetadata) -> "Resolution":
        return cls(ResolutionStatus.NOT_FOUND, metadata)

    @classmethod
    def failed(cls, metadata: EnrichedMetadata, error: str) -> "Resolution":
        return cls(ResolutionStatus.ERROR, metadata, error)


def _apply_movie(
    best: EnrichedMetadata, record: MovieRecord, provider: str
) -> EnrichedMetadata:
    return best.model_copy(
        update={
            "title": record.title,
            "plot": record.plot,
            "genre": record.genre,
            "director": record.director,
            "actors": record.actors,
            "rating": record.rating,
            "canonical_id": record.id,
            "provider": provider,
        }
    )


def _apply_series(
    best: EnrichedMetadata, record: SeriesRecord, provider: str, details: bool
) -> EnrichedMetadata:
    """Correct the title; copy series details only when no episode is wanted."""
    update: dict[str, object] = {
        "title": record.title,
        "canonical_id": record.id,
        "provider": provider,
    }
    if details:
        update.update(
            plot=record.plot,
            genre=record.genre,
            actors=record.actors,
            rating=record.rating,
        )
    return best.model_copy(update=update)


def _apply_episode(
    best: EnrichedMetadata, record: EpisodeRecord, provider: str
) -> EnrichedMetadata:
    return best.model_copy(
        update={
            "episode_title": record.title,
            "plot": record.plot,
            "genre": record.genre,
            "director": record.director,
            "actors": record.actors,
            "rating": record.rating,
            "canonical_id": record.series_id,
            "provider": provider,
        }
    )


class ResolutionStrategy:
    """One link of the fallback chain."""

    name: str = "strategy"

    def __init__(self, store: MetadataStore, session: SessionCache) -> None:
        self.store = store
        self.session = session

    def applies(self, metadata: MediaMetadata, best: EnrichedMetadata) -> bool:
        """Whether this strategy can do anything for *metadata*."""
        return bool(best.title)

    async def resolve(
        self, metadata: MediaMetadata, best: EnrichedMetadata
    ) -> Resolution:
        raise NotImplementedError

    async def _read(self, what: str, coro: Awaitable[T]) -> Optional[T]:
        """Await a store read, treating StoreError as a miss."""
        try:
            return await coro
        except StoreError as exc:
            self.session.record_error(f"{self.name}: store read of {what} failed: {exc}")
            return None

    async def _write(self, what: str, coro: Awaitable[None]) -> bool:
        """Await a store write; failures are logged and reported as False."""
        try:
            await coro
        except StoreError as exc:
            self.session.record_error(f"{self.name}: could not persist {what}: {exc}")
            return False
        return True


class PrimaryProviderStrategy(ResolutionStrategy):
    """Canonical id resolution, store lookup and season batch fetch."""

    def __init__(
        self, provider: PrimaryProvider, store: MetadataStore, session: SessionCache
    ) -> None:
        super().__init__(store, session)
        self.provider = provider
        self.name = provider.name

    async def resolve_id(self, title: str, year: int | None) -> Optional[str]:
        """Return the canonical id for ``title``/``year``, consulting the session.

        Raises:
            ProviderError: On the first, uncached failing lookup.
        """
        key = session_key(title, year)
        if key in self.session.selections:
            return self.session.selections[key]
        if key in self.session.ids:
            return self.session.ids[key]
        try:
            canonical_id = await self.provider.resolve_id(title, year)
        except ProviderError:
            self.session.ids[key] = None
            raise
        self.session.ids[key] = canonical_id
        if canonical_id is None:
            logger.info("No %s id for %r", self.name, key)
        return canonical_id

    async def resolve(
        self, metadata: MediaMetadata, best: EnrichedMetadata
    ) -> Resolution:
        if best.title is None:
            return Resolution.not_found(best)
        try:
            canonical_id = await self.resolve_id(best.title, metadata.year)
        except ProviderError as exc:
            return Resolution.failed(best, f"id lookup for {best.title!r}: {exc}")
        if canonical_id is None:
            return Resolution.not_found(best)

        if metadata.type == MediaType.MOVIE:
            movie = await self._read(canonical_id, self.store.get_movie(canonical_id))
            if movie is not None:
                return Resolution.success(_apply_movie(best, movie, self.name))
            # A title parsed as a movie may still be a series; the fetch decides.
        else:
            series = await self._read(
                canonical_id, self.store.get_series(canonical_id)
            )
            if series is not None:
                return await self._resolve_series(metadata, best, series)

        try:
            record = await self.provider.fetch_by_id(canonical_id)
        except ProviderError as exc:
            return Resolution.failed(best, f"fetch of {canonical_id}: {exc}")
        if record is None:
            return Resolution.not_found(best)

        if isinstance(record, MovieRecord):
            await self._write(record.id, self.store.put_movie(record))
            if metadata.is_episode:
                # Episode numbers cannot be honoured by a movie record.
                return Resolution.not_found(best)
            return Resolution.success(_apply_movie(best, record, self.name))

        await self._write(record.id, self.store.put_series(record))
        return await self._resolve_series(metadata, best, record)

    async def _resolve_series(
        self, metadata: MediaMetadata, best: EnrichedMetadata, series: SeriesRecord
    ) -> Resolution:
        best = _apply_series(best, series, self.name, details=not metadata.is_episode)
        if not metadata.is_episode:
            return Resolution.success(best)
        if metadata.season is None or metadata.episode is None:
            return Resolution.not_found(best)

        episode = await self._read(
            f"{series.id} S{metadata.season}E{metadata.episode}",
            self.store.get_episode(series.id, metadata.season, metadata.episode),
        )
        if episode is None:
            try:
                episode = await self._fetch_season(
                    series, metadata.season, metadata.episode
                )
            except ProviderError as exc:
                return Resolution.failed(
                    best, f"season {metadata.season} of {series.id}: {exc}"
                )
        if episode is None:
            return Resolution.not_found(best)
        return Resolution.success(_apply_episode(best, episode, self.name))

    async def _fetch_season(
        self, series: SeriesRecord, season: int, episode: int
    ) -> Optional[EpisodeRecord]:
        """Batch-fetch one season (once per session) and return *episode* from it."""
        pair = (series.id, season)
        if pair in self.session.fetched_seasons:
            return None
        self.session.fetched_seasons.add(pair)

        logger.info("Fetching season %d of %s", season, series.id)
        episodes = await self.provider.fetch_season(series.id, season)
        if not episodes:
            return None
        episodes = [
            record.model_copy(
                update={
                    "genre": record.genre or series.genre,
                    "actors": record.actors or series.actors,
                }
            )
            for record in episodes
        ]
        if await self._write(
            f"season {season} of {series.id}", self.store.put_episode_batch(episodes)
        ):
            stored = await self._read(
                f"{series.id} S{season}E{episode}",
                self.store.get_episode(series.id, season, episode),
            )
            if stored is not None:
                return stored
        return next((r for r in episodes if r.episode == episode), None)


class SecondaryProviderStrategy(ResolutionStrategy):
    """Episode-level fallback through a provider with its own id space."""

    def __init__(
        self, provider: SecondaryProvider, store: MetadataStore, session: SessionCache
    ) -> None:
        super().__init__(store, session)
        self.provider = provider
        self.name = provider.name

    def applies(self, metadata: MediaMetadata, best: EnrichedMetadata) -> bool:
        return (
            bool(best.title)
            and metadata.type == MediaType.TV
            and metadata.is_episode
        )

    async def resolve_show_id(self, title: str, year: int | None) -> Optional[str]:
        key = session_key(title, year)
        if key in self.session.show_ids:
            return self.session.show_ids[key]
        try:
            show_id = await self.provider.resolve_show_id(title, year)
        except ProviderError:
            self.session.show_ids[key] = None
            raise
        self.session.show_ids[key] = show_id
        return show_id

    async def resolve(
        self, metadata: MediaMetadata, best: EnrichedMetadata
    ) -> Resolution:
        season, number = metadata.season, metadata.episode
        if best.title is None or season is None or number is None:
            return Resolution.not_found(best)

        try:
            show_id = await self.resolve_show_id(best.title, metadata.year)
        except ProviderError as exc:
            return Resolution.failed(best, f"show lookup for {best.title!r}: {exc}")
        if show_id is None:
            return Resolution.not_found(best)

        store_id = prefixed_id(self.name, show_id)
        episode = await self._read(
            f"{store_id} S{season}E{number}",
            self.store.get_episode(store_id, season, number),
        )
        if episode is None:
            try:
                fetched = await self.provider.fetch_episode(show_id, season, number)
            except ProviderError as exc:
                return Resolution.failed(
                    best, f"episode S{season}E{number} of {store_id}: {exc}"
                )
            if fetched is None:
                return Resolution.not_found(best)
            episode = fetched.model_copy(update={"series_id": store_id})
            await self._write(
                f"{store_id} S{season}E{number}",
                self.store.put_episode_batch([episode]),
            )
        return Resolution.success(_apply_episode(best, episode, self.name))


class MetadataResolver:
    """Resolve parsed metadata into enriched metadata.

    Args:
        store: Local metadata store consulted before any provider.
        primary: Provider used for id resolution and full records.
        secondary: Optional episode-level fallback provider.
        session: Session caches; a fresh one is created when omitted.

    ``enrich`` never raises. Failures are logged and collected in
    ``session.errors``.
    """

    def __init__(
        self,
        store: MetadataStore,
        primary: PrimaryProvider,
        secondary: SecondaryProvider | None = None,
        session: SessionCache | None = None,
    ) -> None:
        self.store = store
        self.session = session if session is not None else SessionCache()
        strategies: list[ResolutionStrategy] = [
            PrimaryProviderStrategy(primary, store, self.session)
        ]
        if secondary is not None:
            strategies.append(SecondaryProviderStrategy(secondary, store, self.session))
        self.strategies: Sequence[ResolutionStrategy] = strategies

    async def enrich(self, metadata: MediaMetadata) -> EnrichedMetadata:
        """Return an enriched copy of *metadata*; the input is never mutated."""
        best = EnrichedMetadata.from_metadata(metadata)
        for strategy in self.strategies:
            if not strategy.applies(metadata, best):
                continue
            try:
                result = await strategy.resolve(metadata, best)
            except Exception as exc:  # noqa: BLE001
                self.session.record_error(f"{strategy.name}: unexpected error: {exc}")
                logger.debug("Strategy %s crashed", strategy.name, exc_info=True)
                continue
            best = result.metadata
            if result.status == ResolutionStatus.SUCCESS:
                logger.debug("Resolved %r via %s", best.title, strategy.name)
                return best
            if result.status == ResolutionStatus.ERROR and result.error:
                self.session.record_error(f"{strategy.name}: {result.error}")
        return best
