"""Read queries over the sector → date → hour → minute document tree."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict, Iterator, List, Optional, Tuple

from datastore.measurement_store import MeasurementStore, build_default_measurement_store
from datastore.mock_firestore import Document
from models.records import Coordinates, Measurement, NearbyRecord
from services.aggregator import Aggregator, DecibelSummary
from services.errors import NotFound
from services.geo import haversine_km

logger = logging.getLogger(__name__)


def _in_range(key: str, start: Optional[str], end: Optional[str]) -> bool:
    if start and key < start:
        return False
    if end and key > end:
        return False
    return True


def _numeric_key(key: str) -> float:
    try:
        return float(key)
    except ValueError:
        return float("-inf")


def _latest_key(keys: List[str]) -> str:
    # sorted() is stable, so numeric ties keep the first inserted key
    return sorted(keys, key=_numeric_key, reverse=True)[0]


def _hours_of(document: Document) -> Dict[str, Dict[str, Any]]:
    hours = document.get("horas")
    return hours if isinstance(hours, dict) else {}


class NoiseQueryService:
    """Answers read queries by walking fetched DateRecords in memory."""

    def __init__(self, store: MeasurementStore, aggregator: Aggregator) -> None:
        self.store = store
        self.aggregator = aggregator

    def list_sectors(self) -> List[Tuple[str, Document]]:
        return self.store.list_sectors()

    def get_sector(self, sector_id: str) -> Document:
        document = self.store.get_sector(sector_id)
        if document is None:
            raise NotFound(f"Sector {sector_id!r} not found.")
        return document

    def list_dates(self, sector_id: str) -> List[Tuple[str, Document]]:
        return self.store.list_dates(sector_id)

    def get_date(self, sector_id: str, date: str) -> Document:
        document = self.store.get_date(sector_id, date)
        if document is None:
            raise NotFound(f"Date {date!r} not found for sector {sector_id!r}.")
        return document

    def list_hours(self, sector_id: str, date: str) -> List[str]:
        return list(_hours_of(self.get_date(sector_id, date)))

    def get_hour(self, sector_id: str, date: str, hour: str) -> Dict[str, Any]:
        minutes = _hours_of(self.get_date(sector_id, date)).get(hour)
        if not isinstance(minutes, dict):
            raise NotFound(f"Hour {hour!r} not found for date {date!r}.")
        return minutes

    def get_minute(self, sector_id: str, date: str, hour: str, minute: str) -> Any:
        minutes = _hours_of(self.get_date(sector_id, date)).get(hour)
        if not isinstance(minutes, dict) or minute not in minutes:
            raise NotFound(f"No measurement found for minute {hour}:{minute} on {date!r}.")
        return minutes[minute]

    def latest(self, sector_id: str) -> Measurement:
        dates = self.store.list_dates(sector_id)
        if not dates:
            raise NotFound(f"No measurements found for sector {sector_id!r}.")

        # YYYY-MM-DD keys sort chronologically
        date_key, document = max(dates, key=lambda item: item[0])
        hours = _hours_of(document)
        if not hours:
            raise NotFound(f"No measurements found for sector {sector_id!r}.")

        hour = _latest_key(list(hours))
        minutes = hours[hour]
        if not isinstance(minutes, dict) or not minutes:
            raise NotFound(f"No measurements found for sector {sector_id!r}.")

        minute = _latest_key(list(minutes))
        return Measurement(
            sector=sector_id,
            date=date_key,
            hour=hour,
            minute=minute,
            decibel=minutes[minute],
            coordinates=document.get("coordenadas"),
        )

    def statistics(
        self,
        sector_id: str,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> DecibelSummary:
        dates = self.store.list_dates(sector_id)
        if not dates:
            raise NotFound(f"No measurements found for sector {sector_id!r}.")

        def leaves() -> Iterator[Any]:
            for date_key, document in dates:
                if not _in_range(date_key, date_from, date_to):
                    continue
                for minutes in _hours_of(document).values():
                    if isinstance(minutes, dict):
                        yield from minutes.values()

        summary = self.aggregator.aggregate(leaves())
        if summary.count == 0:
            raise NotFound("No measurements found in the requested period.")
        logger.debug("Statistics computed", extra={"sector": sector_id, "count": summary.count})
        return summary

    def filter_measurements(
        self,
        sector_id: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        hour_from: Optional[str] = None,
        hour_to: Optional[str] = None,
    ) -> List[Measurement]:
        """Flatten matching minute leaves.

        Rows follow store and insertion order, which callers must not rely on.
        """
        if sector_id:
            sectors = [sector_id]
        else:
            sectors = [key for key, _ in self.store.list_sectors()]

        results: List[Measurement] = []
        for sector in sectors:
            for date_key, document in self.store.list_dates(sector):
                if not _in_range(date_key, date_from, date_to):
                    continue
                coordinates = document.get("coordenadas")
                for hour, minutes in _hours_of(document).items():
                    if not _in_range(hour, hour_from, hour_to) or not isinstance(minutes, dict):
                        continue
                    for minute, decibel in minutes.items():
                        results.append(
                            Measurement(
                                sector=sector,
                                date=date_key,
                                hour=hour,
                                minute=minute,
                                decibel=decibel,
                                coordinates=coordinates,
                            )
                        )
        return results

    def within_radius(self, lat: float, lng: float, radius_km: float) -> List[NearbyRecord]:
        """Exhaustive scan of every DateRecord; there is no spatial index."""
        results: List[NearbyRecord] = []
        for sector, _ in self.store.list_sectors():
            for date_key, document in self.store.list_dates(sector):
                point = Coordinates.from_document(document.get("coordenadas"))
                if point is None:
                    continue
                distance = haversine_km(lat, lng, float(point.lat), float(point.lng))
                if distance <= radius_km:
                    results.append(
                        NearbyRecord(
                            sector=sector,
                            date=date_key,
                            coordinates=document["coordenadas"],
                            distance_km=distance,
                            hours=_hours_of(document),
                        )
                    )
        logger.debug("Radius search finished", extra={"result_count": len(results)})
        return results


@lru_cache
def build_default_query_service() -> NoiseQueryService:
    return NoiseQueryService(store=build_default_measurement_store(), aggregator=Aggregator())
