"""Client implementations for the supported metadata providers."""

from vidshelf.metadata.clients.omdb import OMDbClient
from vidshelf.metadata.clients.tmdb import TMDBClient

__all__ = ["OMDbClient", "TMDBClient"]
