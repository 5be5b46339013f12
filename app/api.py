"""HTTP route definitions for the service."""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.schemas import (
    CoordinatesPayload,
    HourDetail,
    HoursResponse,
    LocatedMeasurement,
    MeasurementCreate,
    MeasurementCreated,
    MinuteMeasurement,
    NearbyDateRecord,
    Statistics,
)
from datastore.measurement_store import MeasurementStore, build_default_measurement_store
from models.records import Coordinates, Measurement
from services.errors import NotFound
from services.partitioner import partition_timestamp
from services.queries import NoiseQueryService, build_default_query_service

router = APIRouter(prefix="/ruido", tags=["ruido"])
system_router = APIRouter(tags=["system"])


def get_measurement_store() -> MeasurementStore:
    return build_default_measurement_store()


def get_query_service() -> NoiseQueryService:
    return build_default_query_service()


def _not_found(exc: NotFound) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


def _located(measurement: Measurement) -> LocatedMeasurement:
    return LocatedMeasurement(
        sector=measurement.sector,
        date=measurement.date,
        hour=measurement.hour,
        minute=measurement.minute,
        decibel=measurement.decibel,
        coordinates=measurement.coordinates,
    )


@router.post(
    "",
    response_model=MeasurementCreated,
    summary="Record a noise measurement.",
)
def create_measurement(
    payload: MeasurementCreate,
    store: MeasurementStore = Depends(get_measurement_store),
) -> MeasurementCreated:
    partition = partition_timestamp(payload.timestamp)
    coordinates = Coordinates(lat=payload.lat, lng=payload.lng)
    store.record_measurement(payload.sector, partition, coordinates, payload.decibel)
    return MeasurementCreated(
        msg=(
            f"Noise measurement saved for sector {payload.sector} on {partition.date} "
            f"at {partition.hour}:{partition.minute}."
        ),
        coordenadas=CoordinatesPayload(lat=payload.lat, lng=payload.lng),
    )


@router.get(
    "/setores",
    response_model=List[Dict[str, Any]],
    summary="List every sector with its stored fields.",
)
def list_sectors(
    queries: NoiseQueryService = Depends(get_query_service),
) -> List[Dict[str, Any]]:
    return [{"setor": sector_id, **fields} for sector_id, fields in queries.list_sectors()]


@router.get(
    "/localizacao",
    response_model=List[NearbyDateRecord],
    summary="Find DateRecords within a radius (km) of a point.",
)
def search_by_location(
    lat: Optional[float] = Query(None),
    lng: Optional[float] = Query(None),
    raio: Optional[float] = Query(None, description="Radius in km."),
    queries: NoiseQueryService = Depends(get_query_service),
) -> List[NearbyDateRecord]:
    if lat is None or lng is None or raio is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Query parameters lat, lng and raio are required.",
        )
    if not all(math.isfinite(value) for value in (lat, lng, raio)):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Query parameters lat, lng and raio must be finite numbers.",
        )
    return [
        NearbyDateRecord(
            sector=record.sector,
            date=record.date,
            coordinates=record.coordinates,
            distance=record.distance_km,
            measurements=record.hours,
        )
        for record in queries.within_radius(lat, lng, raio)
    ]


@router.get(
    "",
    response_model=List[LocatedMeasurement],
    summary="List measurements filtered by sector, date range and hour range.",
)
def list_measurements(
    sector: Optional[str] = Query(None, alias="setor"),
    date_from: Optional[str] = Query(None, alias="dataInicio"),
    date_to: Optional[str] = Query(None, alias="dataFim"),
    hour_from: Optional[str] = Query(None, alias="horaInicio"),
    hour_to: Optional[str] = Query(None, alias="horaFim"),
    queries: NoiseQueryService = Depends(get_query_service),
) -> List[LocatedMeasurement]:
    rows = queries.filter_measurements(
        sector_id=sector,
        date_from=date_from,
        date_to=date_to,
        hour_from=hour_from,
        hour_to=hour_to,
    )
    return [_located(row) for row in rows]


@router.get(
    "/{setor}",
    response_model=Dict[str, Any],
    summary="Fetch a sector document.",
)
def get_sector(
    setor: str,
    queries: NoiseQueryService = Depends(get_query_service),
) -> Dict[str, Any]:
    try:
        fields = queries.get_sector(setor)
    except NotFound as exc:
        raise _not_found(exc) from exc
    return {"setor": setor, **fields}


@router.get(
    "/{setor}/datas",
    response_model=List[Dict[str, Any]],
    summary="List the DateRecords of a sector.",
)
def list_dates(
    setor: str,
    queries: NoiseQueryService = Depends(get_query_service),
) -> List[Dict[str, Any]]:
    return [{"data": date, **fields} for date, fields in queries.list_dates(setor)]


@router.get(
    "/{setor}/datas/{data}",
    response_model=Dict[str, Any],
    summary="Fetch one DateRecord.",
)
def get_date(
    setor: str,
    data: str,
    queries: NoiseQueryService = Depends(get_query_service),
) -> Dict[str, Any]:
    try:
        fields = queries.get_date(setor, data)
    except NotFound as exc:
        raise _not_found(exc) from exc
    return {"data": data, **fields}


@router.get(
    "/{setor}/datas/{data}/horas",
    response_model=HoursResponse,
    summary="List the hours recorded for a date.",
)
def list_hours(
    setor: str,
    data: str,
    queries: NoiseQueryService = Depends(get_query_service),
) -> HoursResponse:
    try:
        hours = queries.list_hours(setor, data)
    except NotFound as exc:
        raise _not_found(exc) from exc
    return HoursResponse(horas=hours)


@router.get(
    "/{setor}/datas/{data}/horas/{hora}",
    response_model=HourDetail,
    summary="Fetch the minute readings of one hour.",
)
def get_hour(
    setor: str,
    data: str,
    hora: str,
    queries: NoiseQueryService = Depends(get_query_service),
) -> HourDetail:
    try:
        minutes = queries.get_hour(setor, data, hora)
    except NotFound as exc:
        raise _not_found(exc) from exc
    return HourDetail(hour=hora, measurements=minutes)


@router.get(
    "/{setor}/datas/{data}/horas/{hora}/minutos/{minuto}",
    response_model=MinuteMeasurement,
    summary="Fetch a single minute reading.",
)
def get_minute(
    setor: str,
    data: str,
    hora: str,
    minuto: str,
    queries: NoiseQueryService = Depends(get_query_service),
) -> MinuteMeasurement:
    try:
        decibel = queries.get_minute(setor, data, hora, minuto)
    except NotFound as exc:
        raise _not_found(exc) from exc
    return MinuteMeasurement(sector=setor, date=data, hour=hora, minute=minuto, decibel=decibel)


@router.get(
    "/{setor}/latest",
    response_model=LocatedMeasurement,
    summary="Fetch the most recent measurement of a sector.",
)
def get_latest(
    setor: str,
    queries: NoiseQueryService = Depends(get_query_service),
) -> LocatedMeasurement:
    try:
        measurement = queries.latest(setor)
    except NotFound as exc:
        raise _not_found(exc) from exc
    return _located(measurement)


@router.get(
    "/{setor}/estatisticas",
    response_model=Statistics,
    summary="Aggregate statistics for a sector over an optional date range.",
)
def get_statistics(
    setor: str,
    date_from: Optional[str] = Query(None, alias="dataInicio"),
    date_to: Optional[str] = Query(None, alias="dataFim"),
    queries: NoiseQueryService = Depends(get_query_service),
) -> Statistics:
    try:
        summary = queries.statistics(setor, date_from=date_from, date_to=date_to)
    except NotFound as exc:
        raise _not_found(exc) from exc
    return Statistics(
        sector=setor,
        count=summary.count,
        min_db=summary.min_db,
        max_db=summary.max_db,
        average_db=summary.average_db,
    )


@system_router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
