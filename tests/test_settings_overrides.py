from __future__ import annotations

from typing import Iterable

from datastore.measurement_store import build_default_measurement_store
from datastore.mock_firestore import build_default_store
from services.queries import build_default_query_service
from settings import get_settings


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


CACHES = (
    get_settings,
    build_default_store,
    build_default_measurement_store,
    build_default_query_service,
)


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    store_path = tmp_path / "store.json"

    monkeypatch.setenv("NOISE_COLLECTION_NAME", "noise")
    monkeypatch.setenv("NOISE_STORE_PERSISTENCE_PATH", str(store_path))
    monkeypatch.setenv("API_PREFIX", "v1/")
    monkeypatch.setenv("ALLOWED_ORIGIN", "http://a.test, http://b.test")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    _clear_caches(CACHES)

    try:
        settings = get_settings()
        queries = build_default_query_service()

        assert settings.api_prefix == "/v1"
        assert settings.allowed_origins == ("http://a.test", "http://b.test")
        assert settings.log_level == "DEBUG"
        assert queries.store.collection == "noise"
        assert queries.store.client.persistence_path == store_path
        assert queries.store is build_default_measurement_store()
    finally:
        _clear_caches(CACHES)


def test_blank_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("NOISE_COLLECTION_NAME", "  ")
    monkeypatch.setenv("NOISE_STORE_PERSISTENCE_PATH", "")
    monkeypatch.delenv("API_PREFIX", raising=False)
    monkeypatch.delenv("ALLOWED_ORIGIN", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    _clear_caches(CACHES)

    try:
        settings = get_settings()
        assert settings.collection_name == "ruido"
        assert settings.store_persistence_path is None
        assert settings.api_prefix == "/api"
        assert settings.allowed_origins == ("*",)
        assert settings.log_level == "INFO"
        assert build_default_store().persistence_path is None
    finally:
        _clear_caches(CACHES)
