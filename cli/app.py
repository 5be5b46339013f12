from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_measurement, render_nearby, render_sectors, render_statistics


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the noise monitor API.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="API base URL including prefix (defaults to API_BASE_URL env or http://localhost:8000/api).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Request timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("record")
def record_command(
    ctx: typer.Context,
    sector: str = typer.Argument(..., help="Sector identifier."),
    decibel: float = typer.Option(..., "--db", help="Measured noise level in dB."),
    lat: float = typer.Option(..., "--lat", help="Latitude in degrees."),
    lng: float = typer.Option(..., "--lng", help="Longitude in degrees."),
    at: Optional[str] = typer.Option(
        None,
        "--at",
        help="ISO-8601 measurement time (defaults to now, UTC).",
    ),
) -> None:
    """Record a single noise measurement."""
    state = _get_state(ctx)
    timestamp = at or datetime.now(timezone.utc).isoformat()
    payload = state.client.record_measurement(sector, timestamp, decibel, lat, lng)
    typer.secho(payload.get("msg", "Measurement recorded."), fg=typer.colors.GREEN)


@app.command("sectors")
def sectors_command(ctx: typer.Context) -> None:
    """List known sectors."""
    state = _get_state(ctx)
    render_sectors(state.client.list_sectors())


@app.command("latest")
def latest_command(
    ctx: typer.Context,
    sector: str = typer.Argument(..., help="Sector identifier."),
) -> None:
    """Show the most recent measurement of a sector."""
    state = _get_state(ctx)
    render_measurement(state.client.latest(sector))


@app.command("stats")
def stats_command(
    ctx: typer.Context,
    sector: str = typer.Argument(..., help="Sector identifier."),
    date_from: Optional[str] = typer.Option(None, "--from", help="First date (YYYY-MM-DD), inclusive."),
    date_to: Optional[str] = typer.Option(None, "--to", help="Last date (YYYY-MM-DD), inclusive."),
) -> None:
    """Show count/min/max/average dB for a sector."""
    state = _get_state(ctx)
    render_statistics(state.client.statistics(sector, date_from=date_from, date_to=date_to))


@app.command("nearby")
def nearby_command(
    ctx: typer.Context,
    lat: float = typer.Option(..., "--lat", help="Latitude in degrees."),
    lng: float = typer.Option(..., "--lng", help="Longitude in degrees."),
    radius: float = typer.Option(..., "--radius", "-r", help="Search radius in km."),
) -> None:
    """List measurements recorded within a radius of a point."""
    state = _get_state(ctx)
    render_nearby(state.client.nearby(lat, lng, radius))
