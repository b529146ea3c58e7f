"""Runtime settings, read from environment variables.

A `.env` file in the current directory, or else `~/.url-intel.env`, is
loaded if present.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Response field name -> collection name in the record store.
DEFAULT_COLLECTIONS = "phishtank,openphish,urlhaus,malwareDiscoverer=malwarediscoverer"

_ENV_LOADED = False


def env_paths() -> list[Path]:
    """Candidate .env files, in load order."""
    return [Path(".env"), Path.home() / ".url-intel.env"]


def load_env() -> Optional[Path]:
    """Load the first .env file found. Returns its path, or None."""
    global _ENV_LOADED
    if _ENV_LOADED:
        return None
    _ENV_LOADED = True

    for env_path in env_paths():
        if env_path.exists():
            load_dotenv(env_path)
            return env_path
    return None


def parse_collections(value: str) -> dict[str, str]:
    """Parse "field[=collection],..." into an ordered field -> collection map.

    >>> parse_collections("phishtank,malwareDiscoverer=malwarediscoverer")
    {'phishtank': 'phishtank', 'malwareDiscoverer': 'malwarediscoverer'}
    """
    out: dict[str, str] = {}
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        name, _, collection = item.partition("=")
        name = name.strip()
        collection = collection.strip() or name
        if not name:
            raise ValueError(f"Invalid collection entry: {item!r}")
        out[name] = collection
    return out


def _split_names(value: str) -> list[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


@dataclass(frozen=True)
class Settings:
    mongo_uri: str = "mongodb://localhost:27017"
    db_name: str = "test_db"
    store_timeout_ms: int = 5000

    collections: dict[str, str] = field(
        default_factory=lambda: parse_collections(DEFAULT_COLLECTIONS)
    )

    sonar_base_url: str = "https://sonar.omnisint.io"
    enrich_timeout: float = 10.0
    enrich_retries: int = 1
    extra_enrichers: list[str] = field(default_factory=list)
    stackshare_key: Optional[str] = None

    max_workers: int = 8
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_env()
        return cls(
            mongo_uri=os.getenv("URL_INTEL_MONGO_URI", cls.mongo_uri),
            db_name=os.getenv("URL_INTEL_DB_NAME", cls.db_name),
            store_timeout_ms=_int_env("URL_INTEL_STORE_TIMEOUT_MS", cls.store_timeout_ms),
            collections=parse_collections(os.getenv("URL_INTEL_COLLECTIONS", DEFAULT_COLLECTIONS)),
            sonar_base_url=os.getenv("URL_INTEL_SONAR_BASE_URL", cls.sonar_base_url).rstrip("/"),
            enrich_timeout=_float_env("URL_INTEL_ENRICH_TIMEOUT", cls.enrich_timeout),
            enrich_retries=_int_env("URL_INTEL_ENRICH_RETRIES", cls.enrich_retries),
            extra_enrichers=_split_names(os.getenv("URL_INTEL_EXTRA_ENRICHERS", "")),
            stackshare_key=os.getenv("STACKSHARE_KEY") or None,
            max_workers=max(1, _int_env("URL_INTEL_MAX_WORKERS", cls.max_workers)),
            log_level=os.getenv("URL_INTEL_LOG_LEVEL", cls.log_level).upper(),
        )
