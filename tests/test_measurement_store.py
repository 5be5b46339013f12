from __future__ import annotations

import pytest

from datastore.measurement_store import MeasurementStore
from datastore.mock_firestore import MockFirestore, StoreError
from models.records import Coordinates, PartitionKey

HERE = Coordinates(lat=-23.5505, lng=-46.6333)


def test_record_creates_sector_and_date(measurement_store: MeasurementStore) -> None:
    measurement_store.record_measurement("centro", PartitionKey("2025-01-01", "12", "34"), HERE, 50)

    sector = measurement_store.get_sector("centro")
    assert sector is not None
    assert "criadoEm" in sector

    date = measurement_store.get_date("centro", "2025-01-01")
    assert date is not None
    assert date["coordenadas"] == {"lat": -23.5505, "lng": -46.6333}
    assert date["horas"] == {"12": {"34": 50}}
    assert "createdAt" in date


def test_sector_created_at_is_never_overwritten(measurement_store: MeasurementStore) -> None:
    measurement_store.ensure_sector("centro")
    first = measurement_store.get_sector("centro")["criadoEm"]

    measurement_store.record_measurement("centro", PartitionKey("2025-01-02", "00", "00"), HERE, 40)

    assert measurement_store.get_sector("centro")["criadoEm"] == first


def test_writes_merge_minutes_and_keep_latest_coordinates(measurement_store: MeasurementStore) -> None:
    elsewhere = Coordinates(lat=-23.56, lng=-46.64)
    measurement_store.record_measurement("centro", PartitionKey("2025-01-01", "12", "34"), HERE, 50)
    measurement_store.record_measurement("centro", PartitionKey("2025-01-01", "12", "35"), HERE, 0)
    measurement_store.record_measurement("centro", PartitionKey("2025-01-01", "13", "00"), elsewhere, 70)

    date = measurement_store.get_date("centro", "2025-01-01")
    assert date["horas"] == {"12": {"34": 50, "35": 0}, "13": {"00": 70}}
    assert date["coordenadas"] == {"lat": -23.56, "lng": -46.64}


def test_same_minute_last_write_wins(measurement_store: MeasurementStore) -> None:
    key = PartitionKey("2025-01-01", "12", "34")
    measurement_store.record_measurement("centro", key, HERE, 50)
    measurement_store.record_measurement("centro", key, HERE, 65.5)

    assert measurement_store.get_date("centro", "2025-01-01")["horas"]["12"] == {"34": 65.5}


def test_listing_and_missing_lookups(measurement_store: MeasurementStore) -> None:
    measurement_store.record_measurement("b", PartitionKey("2025-01-02", "01", "00"), HERE, 1)
    measurement_store.record_measurement("a", PartitionKey("2025-01-01", "01", "00"), HERE, 1)

    assert [sector for sector, _ in measurement_store.list_sectors()] == ["a", "b"]
    assert [date for date, _ in measurement_store.list_dates("b")] == ["2025-01-02"]
    assert measurement_store.list_dates("missing") == []
    assert measurement_store.get_sector("missing") is None
    assert measurement_store.get_date("a", "2030-01-01") is None


@pytest.mark.parametrize("sector_id", ["a/b", "", "/"])
def test_unaddressable_ids_read_as_missing(measurement_store: MeasurementStore, sector_id: str) -> None:
    measurement_store.record_measurement("a", PartitionKey("2025-01-01", "01", "00"), HERE, 1)

    assert measurement_store.get_sector(sector_id) is None
    assert measurement_store.list_dates(sector_id) == []
    assert measurement_store.get_date(sector_id, "2025-01-01") is None
    assert measurement_store.get_date("a", "2025/01/01") is None


def test_uses_configured_collection() -> None:
    client = MockFirestore()
    store = MeasurementStore(client=client, collection="noise")
    store.record_measurement("x", PartitionKey("2025-01-01", "00", "01"), HERE, 10)

    assert client.get_document("noise/x") is not None
    assert client.get_document("noise/x/datas/2025-01-01")["horas"] == {"00": {"01": 10}}


def test_failed_commit_writes_nothing(unavailable_firestore: MockFirestore) -> None:
    client = unavailable_firestore
    store = MeasurementStore(client=client)

    with pytest.raises(StoreError):
        store.record_measurement("x", PartitionKey("2025-01-01", "00", "01"), HERE, 10)

    assert MockFirestore.get_document(client, "ruido/x") is None


def test_read_failures_surface_as_store_errors(unavailable_firestore: MockFirestore) -> None:
    store = MeasurementStore(client=unavailable_firestore)

    with pytest.raises(StoreError):
        store.list_sectors()
    with pytest.raises(StoreError):
        store.get_date("x", "2025-01-01")
