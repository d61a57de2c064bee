"""
Runtime configuration for line-of-sight.

Settings come from environment variables, optionally seeded from a .env file
at the project root. Nothing here is read at import time except the .env load.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .constants import (
    DEFAULT_SOURCE,
    REQUEST_TIMEOUT_S,
    RESOURCE_TIMEOUT_S,
    TILE_CACHE_MAX_ENTRIES,
    TILE_SOURCES,
    EnvVar,
    ErrorMessages,
)

# Load environment variables from .env file
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

logger = logging.getLogger(__name__)

DEFAULT_CACHE_ROOT = Path.home() / ".cache" / "line-of-sight" / "dem"


@dataclass(frozen=True)
class Settings:
    """Resolved configuration values."""

    tile_source: str
    cache_dir: Path
    memory_cache_tiles: int
    request_timeout_s: float
    resource_timeout_s: float
    log_level: str


def _env_number(name: str, default, cast):
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}; using {default}")
        return default
    if value <= 0:
        logger.warning(f"Ignoring non-positive {name}={raw!r}; using {default}")
        return default
    return value


def load_settings() -> Settings:
    """
    Build Settings from the current environment.

    Returns:
        Settings with defaults applied for anything unset

    Raises:
        ValueError: if LOS_TILE_SOURCE names an unknown source
    """
    source = os.environ.get(EnvVar.TILE_SOURCE, DEFAULT_SOURCE)
    if source not in TILE_SOURCES:
        raise ValueError(
            ErrorMessages.UNKNOWN_SOURCE.format(source, ", ".join(TILE_SOURCES.keys()))
        )

    cache_dir_env = os.environ.get(EnvVar.CACHE_DIR)
    cache_dir = Path(cache_dir_env).expanduser() if cache_dir_env else DEFAULT_CACHE_ROOT
    cache_dir = cache_dir / source

    return Settings(
        tile_source=source,
        cache_dir=cache_dir,
        memory_cache_tiles=_env_number(EnvVar.MEMORY_CACHE_TILES, TILE_CACHE_MAX_ENTRIES, int),
        request_timeout_s=_env_number(EnvVar.REQUEST_TIMEOUT, REQUEST_TIMEOUT_S, float),
        resource_timeout_s=_env_number(EnvVar.RESOURCE_TIMEOUT, RESOURCE_TIMEOUT_S, float),
        log_level=os.environ.get(EnvVar.LOG_LEVEL, "INFO").upper(),
    )


def configure_logging(settings: Settings | None = None) -> None:
    """Apply basicConfig at the configured level (for scripts and demos)."""
    settings = settings or load_settings()
    level = getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(level=level)
