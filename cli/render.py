from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _format_coordinates(coordinates: Any) -> str:
    if not isinstance(coordinates, dict):
        return "n/a"
    return f"{coordinates.get('lat')}, {coordinates.get('lng')}"


def render_sectors(sectors: List[Dict[str, Any]]) -> None:
    echo_heading("Sectors")
    if not sectors:
        typer.echo("No sectors recorded.")
        return
    for sector in sectors:
        created = sector.get("criadoEm") or "unknown"
        typer.echo(f"  - {sector.get('setor')} (created {created})")


def render_measurement(payload: Dict[str, Any]) -> None:
    echo_heading("Latest Measurement")
    echo_key_values(
        [
            ("sector", payload.get("setor")),
            ("date", payload.get("data")),
            ("time", f"{payload.get('hora')}:{payload.get('minuto')}"),
            ("DB", payload.get("DB")),
            ("coordinates", _format_coordinates(payload.get("coordenadas"))),
        ]
    )


def render_statistics(payload: Dict[str, Any]) -> None:
    echo_heading(f"Statistics for {payload.get('setor')}")
    echo_key_values(
        [
            ("count", payload.get("count")),
            ("minDB", payload.get("minDB")),
            ("maxDB", payload.get("maxDB")),
            ("averageDB", payload.get("averageDB")),
        ]
    )


def render_nearby(records: List[Dict[str, Any]]) -> None:
    echo_heading("Nearby Measurements")
    if not records:
        typer.echo("No measurements within the given radius.")
        return
    for record in records:
        readings = sum(len(minutes) for minutes in (record.get("mediacoes") or {}).values())
        distance = record.get("distance")
        distance_text = f"{distance:.3f} km" if isinstance(distance, (int, float)) else "n/a"
        typer.echo(
            f"  - {record.get('setor')} {record.get('data')} "
            f"at {_format_coordinates(record.get('coordenadas'))}: "
            f"{distance_text}, {readings} readings"
        )
