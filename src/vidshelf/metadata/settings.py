# WARNING: This settings loader is for LOCAL DEVELOPMENT ONLY.
# Never commit your .env file or share your API keys.
# Ensure .env is listed in .gitignore!

"""Settings loader for metadata provider API keys.

Loads OMDb and TMDB credentials from environment variables or .env file.

Required .env keys:
- OMDB_API_KEY (primary provider)
- TMDB_API_KEY (optional, enables the TMDB episode fallback)
"""

from pydantic import ConfigDict
from pydantic_settings import BaseSettings

from vidshelf.errors import VidshelfError


class MissingAPIKeyError(VidshelfError):
    """Raised when a required API key is missing from the environment or .env file."""

    def __init__(self, key: str) -> None:
        """Initialize the error with the missing key name."""
        super().__init__(
            f"Missing required API key: {key}\n"
            "Set it in the environment or in a .env file next to your library."
        )
        self.key = key


class Settings(BaseSettings):
    """Settings for metadata provider API keys.

    Loads OMDb and TMDB credentials from environment variables or .env file.
    """

    OMDB_API_KEY: str | None = None
    TMDB_API_KEY: str | None = None

    model_config = ConfigDict(extra="allow", env_file=".env")

    def require_keys(self) -> None:
        """Raise MissingAPIKeyError if any required key is missing."""
        required = ["OMDB_API_KEY"]
        for key in required:
            if not getattr(self, key, None):
                raise MissingAPIKeyError(key)
