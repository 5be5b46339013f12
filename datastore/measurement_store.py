"""Sector/date document access for noise measurements."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import List, Optional, Tuple

from datastore.mock_firestore import (
    Document,
    MockFirestore,
    StoreError,
    WriteBatch,
    build_default_store,
    document_path,
)
from models.records import Coordinates, PartitionKey
from settings import get_settings

logger = logging.getLogger(__name__)

DATES_COLLECTION = "datas"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class MeasurementStore:
    """Reads and merge-writes sector and DateRecord documents."""

    def __init__(self, client: MockFirestore, collection: str = "ruido") -> None:
        self.client = client
        self.collection = collection

    def sector_path(self, sector_id: str) -> str:
        return document_path(self.collection, sector_id)

    def dates_path(self, sector_id: str) -> str:
        return document_path(self.collection, sector_id, DATES_COLLECTION)

    def date_path(self, sector_id: str, date: str) -> str:
        return document_path(self.collection, sector_id, DATES_COLLECTION, date)

    def ensure_sector(self, sector_id: str, batch: Optional[WriteBatch] = None) -> None:
        """Create the sector document, keeping any existing ``criadoEm``."""
        own_batch = batch is None
        target = self.client.batch() if batch is None else batch
        target.set_missing(self.sector_path(sector_id), {"criadoEm": _utc_now_iso()})
        if own_batch:
            self._commit(target, sector_id)

    def write_measurement(
        self,
        sector_id: str,
        date: str,
        coordinates: Coordinates,
        hour: str,
        minute: str,
        decibel: float,
        batch: Optional[WriteBatch] = None,
    ) -> None:
        own_batch = batch is None
        target = self.client.batch() if batch is None else batch
        payload = {
            "coordenadas": coordinates.to_document(),
            "createdAt": _utc_now_iso(),
            "horas": {hour: {minute: decibel}},
        }
        target.set(self.date_path(sector_id, date), payload, merge=True)
        if own_batch:
            self._commit(target, sector_id)

    def record_measurement(
        self,
        sector_id: str,
        partition: PartitionKey,
        coordinates: Coordinates,
        decibel: float,
    ) -> None:
        """Write the sector and its DateRecord leaf in one atomic commit."""
        batch = self.client.batch()
        self.ensure_sector(sector_id, batch=batch)
        self.write_measurement(
            sector_id,
            partition.date,
            coordinates,
            partition.hour,
            partition.minute,
            decibel,
            batch=batch,
        )
        self._commit(batch, sector_id)
        logger.info(
            "Measurement recorded",
            extra={
                "sector": sector_id,
                "date": partition.date,
                "hour": partition.hour,
                "minute": partition.minute,
                "decibel": decibel,
            },
        )

    def list_sectors(self) -> List[Tuple[str, Document]]:
        return self.client.list_documents(self.collection)

    # Reads treat an id that cannot form a document path as absent.

    def get_sector(self, sector_id: str) -> Optional[Document]:
        try:
            path = self.sector_path(sector_id)
        except ValueError:
            return None
        return self.client.get_document(path)

    def list_dates(self, sector_id: str) -> List[Tuple[str, Document]]:
        try:
            path = self.dates_path(sector_id)
        except ValueError:
            return []
        return self.client.list_documents(path)

    def get_date(self, sector_id: str, date: str) -> Optional[Document]:
        try:
            path = self.date_path(sector_id, date)
        except ValueError:
            return None
        return self.client.get_document(path)

    def _commit(self, batch: WriteBatch, sector_id: str) -> None:
        try:
            batch.commit()
        except StoreError:
            logger.warning("Measurement write was not committed", extra={"sector": sector_id})
            raise


@lru_cache
def build_default_measurement_store() -> MeasurementStore:
    settings = get_settings()
    return MeasurementStore(client=build_default_store(), collection=settings.collection_name)
