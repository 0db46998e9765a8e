"""
Application configuration.

Loads the `.env` file next to this module (if present) and exposes the settings
the services and API read at runtime.

Environment variables:
- SUPABASE_URL: Supabase project URL (required once the database is used)
- SUPABASE_KEY: Supabase API key (server-side key only)
- LOG_LEVEL: Logging level for the API process (default: INFO)
- SALE_NUMBER_MAX_ATTEMPTS: Bounded retries for sale number collisions (default: 5)
- CORS_ALLOW_ORIGINS: Comma-separated origins allowed by the API (default: *)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path)


@dataclass(frozen=True, slots=True)
class Settings:
    supabase_url: Optional[str]
    supabase_key: Optional[str]
    log_level: str = "INFO"
    sale_number_max_attempts: int = 5
    cors_allow_origins: Tuple[str, ...] = ("*",)


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {name} must be an integer, got {raw!r}")
    if value < 1:
        raise RuntimeError(f"Environment variable {name} must be >= 1, got {value}")
    return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings from the environment once per process."""

    origins = os.getenv("CORS_ALLOW_ORIGINS", "*")

    return Settings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_KEY"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        sale_number_max_attempts=_int_from_env("SALE_NUMBER_MAX_ATTEMPTS", 5),
        cors_allow_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
    )


__all__ = ["Settings", "get_settings"]
