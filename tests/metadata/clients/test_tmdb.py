"""Tests for the TMDB episode fallback client."""

import httpx
import pytest
import respx

from vidshelf.errors import ProviderError
from vidshelf.metadata.clients.tmdb import TMDB_BASE_URL, TMDBClient, _extract_year

EPISODE_URL = f"{TMDB_BASE_URL}/tv/1396/season/5/episode/10"

EPISODE_PAYLOAD = {
    "id": 62160,
    "name": "Buried",
    "overview": "Skyler races to protect her family.",
    "air_date": "2013-08-18",
    "vote_average": 8.9,
    "crew": [
        {"job": "Director", "name": "Michelle MacLaren"},
        {"job": "Writer", "name": "Thomas Schnauz"},
    ],
    "guest_stars": [{"name": "Laura Fraser"}, {"name": "Lavell Crawford"}],
}


@pytest.fixture
def client() -> TMDBClient:
    return TMDBClient(api_key="dummy")


@pytest.mark.asyncio
async def test_resolve_show_id(client: TMDBClient, respx_mock: respx.MockRouter) -> None:
    route = respx_mock.get(
        f"{TMDB_BASE_URL}/search/tv",
        params__contains={"query": "Breaking Bad", "first_air_date_year": "2008"},
    ).mock(
        return_value=httpx.Response(
            200, json={"results": [{"id": 1396, "name": "Breaking Bad"}, {"id": 2}]}
        )
    )
    assert await client.resolve_show_id("Breaking Bad", 2008) == "1396"
    assert route.calls.last.request.url.params["api_key"] == "dummy"


@pytest.mark.asyncio
async def test_resolve_show_id_no_results(
    client: TMDBClient, respx_mock: respx.MockRouter
) -> None:
    respx_mock.get(f"{TMDB_BASE_URL}/search/tv").mock(
        return_value=httpx.Response(200, json={"results": []})
    )
    assert await client.resolve_show_id("Nothing Here") is None


@pytest.mark.asyncio
async def test_fetch_episode(client: TMDBClient, respx_mock: respx.MockRouter) -> None:
    respx_mock.get(EPISODE_URL).mock(
        return_value=httpx.Response(200, json=EPISODE_PAYLOAD)
    )

    record = await client.fetch_episode("1396", 5, 10)

    assert record is not None
    assert record.series_id == "1396"
    assert (record.season, record.episode) == (5, 10)
    assert record.title == "Buried"
    assert record.director == "Michelle MacLaren"
    assert record.actors == "Laura Fraser, Lavell Crawford"
    assert record.rating == "8.9"
    assert record.year == 2013


@pytest.mark.asyncio
async def test_fetch_episode_404(client: TMDBClient, respx_mock: respx.MockRouter) -> None:
    respx_mock.get(EPISODE_URL).mock(return_value=httpx.Response(404))
    assert await client.fetch_episode("1396", 5, 10) is None


@pytest.mark.asyncio
async def test_fetch_episode_429(client: TMDBClient, respx_mock: respx.MockRouter) -> None:
    respx_mock.get(EPISODE_URL).mock(return_value=httpx.Response(429))
    with pytest.raises(ProviderError):
        await client.fetch_episode("1396", 5, 10)


@pytest.mark.asyncio
async def test_fetch_episode_without_name(
    client: TMDBClient, respx_mock: respx.MockRouter
) -> None:
    respx_mock.get(EPISODE_URL).mock(return_value=httpx.Response(200, json={"id": 1}))
    with pytest.raises(ProviderError):
        await client.fetch_episode("1396", 5, 10)


@pytest.mark.parametrize(
    ("value", "expected"),
    [("2013-08-18", 2013), ("", None), (None, None), ("TBA", None)],
)
def test_extract_year(value: str | None, expected: int | None) -> None:
    assert _extract_year(value) == expected
