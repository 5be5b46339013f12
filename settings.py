from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple


_COLLECTION_NAME_ENV = "NOISE_COLLECTION_NAME"
_STORE_PATH_ENV = "NOISE_STORE_PERSISTENCE_PATH"
_API_PREFIX_ENV = "API_PREFIX"
_ALLOWED_ORIGIN_ENV = "ALLOWED_ORIGIN"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    collection_name: str
    store_persistence_path: Optional[str]
    api_prefix: str
    allowed_origins: Tuple[str, ...]
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_api_prefix(default: str) -> str:
    value = os.getenv(_API_PREFIX_ENV)
    if value is None:
        return default
    candidate = value.strip().rstrip("/")
    if not candidate:
        return ""
    if not candidate.startswith("/"):
        candidate = f"/{candidate}"
    return candidate


def _read_allowed_origins(default: str) -> Tuple[str, ...]:
    raw = _read_str_env(_ALLOWED_ORIGIN_ENV, default)
    origins = tuple(part.strip() for part in raw.split(",") if part.strip())
    return origins or (default,)


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        collection_name=_read_str_env(_COLLECTION_NAME_ENV, "ruido"),
        store_persistence_path=_read_optional_env(_STORE_PATH_ENV, "./tmp/noise_store.json"),
        api_prefix=_read_api_prefix("/api"),
        allowed_origins=_read_allowed_origins("*"),
        log_level=_read_log_level("INFO"),
    )
