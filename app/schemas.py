"""Pydantic schemas for the HTTP API layer.

Python attributes are snake_case; the wire names keep the established
Portuguese keys (``setor``, ``Data``, ``coordenadas`` ...) through aliases.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from services.partitioner import parse_timestamp

Decibel = Union[int, float]


class AliasedModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CoordinatesPayload(BaseModel):
    lat: float
    lng: float


class MeasurementCreate(AliasedModel):
    """Body of ``POST /ruido``."""

    sector: str = Field(..., alias="setor", min_length=1, description="Sector identifier.")
    timestamp: str = Field(..., alias="Data", description="ISO-8601 measurement instant.")
    decibel: float = Field(..., alias="DB", allow_inf_nan=False)
    lat: float = Field(..., allow_inf_nan=False)
    lng: float = Field(..., allow_inf_nan=False)

    @field_validator("sector")
    @classmethod
    def _check_sector(cls, value: str) -> str:
        candidate = value.strip()
        if not candidate:
            raise ValueError("setor is required")
        if "/" in candidate:
            raise ValueError("setor must not contain '/'")
        return candidate

    @field_validator("decibel", "lat", "lng", mode="before")
    @classmethod
    def _reject_booleans(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("must be a number, not a boolean")
        return value

    @field_validator("timestamp")
    @classmethod
    def _check_timestamp(cls, value: str) -> str:
        parse_timestamp(value)
        return value


class MeasurementCreated(BaseModel):
    msg: str
    coordenadas: CoordinatesPayload


class HoursResponse(BaseModel):
    horas: List[str] = Field(default_factory=list)


class HourDetail(AliasedModel):
    hour: str = Field(..., alias="hora")
    measurements: Dict[str, Any] = Field(default_factory=dict, alias="mediacoes")


class MinuteMeasurement(AliasedModel):
    sector: str = Field(..., alias="setor")
    date: str = Field(..., alias="data")
    hour: str = Field(..., alias="hora")
    minute: str = Field(..., alias="minuto")
    decibel: Decibel = Field(..., alias="DB")


class LocatedMeasurement(MinuteMeasurement):
    """Minute reading together with the DateRecord coordinates."""

    coordinates: Optional[Dict[str, Any]] = Field(default=None, alias="coordenadas")


class Statistics(AliasedModel):
    sector: str = Field(..., alias="setor")
    count: int = Field(..., ge=1)
    min_db: float = Field(..., alias="minDB")
    max_db: float = Field(..., alias="maxDB")
    average_db: float = Field(..., alias="averageDB")


class NearbyDateRecord(AliasedModel):
    sector: str = Field(..., alias="setor")
    date: str = Field(..., alias="data")
    coordinates: Dict[str, Any] = Field(..., alias="coordenadas")
    distance: float = Field(..., ge=0, description="Distance from the query point in km.")
    measurements: Dict[str, Dict[str, Any]] = Field(default_factory=dict, alias="mediacoes")
