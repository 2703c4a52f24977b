"""Config utility for persistent vidshelf settings (library roots, store path).

Reads and writes ``$XDG_CONFIG_HOME/vidshelf/config.toml`` (``~/.config`` when
unset). Uses tomli/tomli-w for TOML parsing and writing.

Known keys:
- ``library.movie_path`` and ``library.tv_path``: destination roots
- ``store.database_path``: SQLite file shared by the metadata store and move log
- ``scan.include_subtitles``: whether companions are organized
"""

import contextlib
import os
from pathlib import Path
from typing import Any, Optional, TypeVar, cast

import tomli
import tomli_w

# Determine config directory respecting XDG_CONFIG_HOME if set.
_xdg_config_home = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
CONFIG_DIR = _xdg_config_home / "vidshelf"
CONFIG_FILE = CONFIG_DIR / "config.toml"

ENV_PREFIX = "VIDSHELF_"
TRUTHY = {"1", "true", "yes", "on"}

T = TypeVar("T")


def _read_config_file() -> dict[str, Any]:
    """Read the TOML config file if it exists, returning a (nested) dict."""
    if not CONFIG_FILE.exists():
        return {}
    with CONFIG_FILE.open("rb") as f:
        return tomli.load(f)


def _lookup_nested(data: dict[str, Any], dotted_key: str) -> Any | None:
    """Retrieve a nested value from *data* given a dotted key path.

    Example: dotted_key="library.movie_path" will attempt
    ``data["library"]["movie_path"]`` returning None if any level is missing.
    """
    current: Any = data
    for part in dotted_key.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
        if current is None:
            return None
    return current


def _make_env_var_name(dotted_key: str, prefix: str = ENV_PREFIX) -> str:
    """Convert a dotted key path to an uppercase ENV var name.

    Example: "library.movie_path" -> "VIDSHELF_LIBRARY_MOVIE_PATH".
    """
    return prefix + dotted_key.replace(".", "_").upper()


def _coerce(value: Any, default: T) -> T:
    """Best-effort conversion of an env/file *value* to the type of *default*."""
    if isinstance(default, bool):
        if isinstance(value, bool):
            return cast(T, value)
        if isinstance(value, str):
            return cast(T, value.lower() in TRUTHY)
        return default
    if isinstance(default, int):
        with contextlib.suppress(TypeError, ValueError):
            return cast(T, int(value))
        return default
    if isinstance(default, Path):
        return cast(T, Path(str(value)).expanduser())
    if isinstance(default, str):
        return cast(T, str(value))
    return cast(T, value)


def resolve_setting(
    key: str,
    *,
    default: T,
    cli_value: T | None = None,
) -> T:
    """Resolve a configuration *key* using precedence CLI > env > config > default.

    Args:
        key: Dotted key path, e.g. ``"library.movie_path"``.
        default: Value to fall back to when no overrides found.
        cli_value: Value passed from CLI option (may be ``None`` when not provided).

    Returns:
        The resolved value with type matching *default* (or *cli_value*).
    """
    # 1. CLI value wins if provided (and not ``None`` to mimic Typer semantics).
    if cli_value is not None:
        return cli_value

    # 2. Environment variable
    env_var = _make_env_var_name(key)
    if env_var in os.environ:
        return _coerce(os.environ[env_var], default)

    # 3. Config file lookup
    file_val = _lookup_nested(_read_config_file(), key)
    if file_val is not None:
        return _coerce(file_val, default)

    # 4. Default
    return default


def set_setting(key: str, value: Any) -> None:
    """Persist *value* under dotted *key* in config.toml.

    Args:
        key: Dotted key path, e.g. ``"library.tv_path"``.
        value: A TOML-serializable scalar; paths are stored as strings.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    data = _read_config_file()
    *parents, leaf = key.split(".")
    section = data
    for part in parents:
        section = section.setdefault(part, {})
    section[leaf] = str(value) if isinstance(value, Path) else value
    with CONFIG_FILE.open("wb") as f:
        tomli_w.dump(data, f)


def default_database_path() -> Path:
    """Return the default SQLite path for the store and the move log."""
    return resolve_setting(
        "store.database_path", default=CONFIG_DIR / "vidshelf.db"
    )


def library_paths(
    movie_path: Optional[Path] = None, tv_path: Optional[Path] = None
) -> tuple[Path, Path]:
    """Resolve the movie and TV library roots.

    Defaults are ``~/Videos/Movies`` and ``~/Videos/TV Shows``.
    """
    videos = Path.home() / "Videos"
    return (
        resolve_setting(
            "library.movie_path", default=videos / "Movies", cli_value=movie_path
        ),
        resolve_setting(
            "library.tv_path", default=videos / "TV Shows", cli_value=tv_path
        ),
    )
