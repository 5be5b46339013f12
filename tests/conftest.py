from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from app.api import get_measurement_store, get_query_service
from app.main import create_app
from datastore.measurement_store import MeasurementStore, build_default_measurement_store
from datastore.mock_firestore import MockFirestore, StoreError, build_default_store
from services.aggregator import Aggregator
from services.queries import NoiseQueryService, build_default_query_service
from settings import get_settings


class UnavailableFirestore(MockFirestore):
    """Store whose backend is down: every read and commit fails."""

    def get_document(self, path):
        raise StoreError("backend unavailable")

    def list_documents(self, collection_path):
        raise StoreError("backend unavailable")

    def _apply(self, writes):
        raise StoreError("backend unavailable")


def clear_factory_caches() -> None:
    for factory in (
        build_default_query_service,
        build_default_measurement_store,
        build_default_store,
        get_settings,
    ):
        factory.cache_clear()


@pytest.fixture
def firestore() -> MockFirestore:
    return MockFirestore()


@pytest.fixture
def unavailable_firestore() -> MockFirestore:
    return UnavailableFirestore()


@pytest.fixture
def measurement_store(firestore: MockFirestore) -> MeasurementStore:
    return MeasurementStore(client=firestore, collection="ruido")


@pytest.fixture
def queries(measurement_store: MeasurementStore) -> NoiseQueryService:
    return NoiseQueryService(store=measurement_store, aggregator=Aggregator())


def _build_client(
    monkeypatch, tmp_path, measurement_store: MeasurementStore
) -> Iterator[TestClient]:
    monkeypatch.setenv("NOISE_STORE_PERSISTENCE_PATH", str(tmp_path / "default_store.json"))
    monkeypatch.setenv("API_PREFIX", "/api")
    clear_factory_caches()

    query_service = NoiseQueryService(store=measurement_store, aggregator=Aggregator())
    app = create_app()
    app.dependency_overrides[get_measurement_store] = lambda: measurement_store
    app.dependency_overrides[get_query_service] = lambda: query_service
    with TestClient(app) as client:
        yield client

    clear_factory_caches()


@pytest.fixture
def api_client(monkeypatch, tmp_path, measurement_store: MeasurementStore) -> Iterator[TestClient]:
    yield from _build_client(monkeypatch, tmp_path, measurement_store)


@pytest.fixture
def broken_api_client(
    monkeypatch, tmp_path, unavailable_firestore: MockFirestore
) -> Iterator[TestClient]:
    store = MeasurementStore(client=unavailable_firestore, collection="ruido")
    yield from _build_client(monkeypatch, tmp_path, store)
