from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the noise monitor service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def record_measurement(
        self,
        sector: str,
        timestamp: str,
        decibel: float,
        lat: float,
        lng: float,
    ) -> Dict[str, Any]:
        body = {"setor": sector, "Data": timestamp, "DB": decibel, "lat": lat, "lng": lng}
        return self._request("POST", "/ruido", json=body)

    def list_sectors(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/ruido/setores")

    def latest(self, sector: str) -> Dict[str, Any]:
        return self._request("GET", f"/ruido/{sector}/latest", missing=f"Sector {sector}")

    def statistics(
        self,
        sector: str,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> Dict[str, Any]:
        params = {
            key: value
            for key, value in (("dataInicio", date_from), ("dataFim", date_to))
            if value
        }
        return self._request(
            "GET",
            f"/ruido/{sector}/estatisticas",
            params=params,
            missing=f"Measurements for sector {sector}",
        )

    def nearby(self, lat: float, lng: float, radius_km: float) -> List[Dict[str, Any]]:
        params = {"lat": lat, "lng": lng, "raio": radius_km}
        return self._request("GET", "/ruido/localizacao", params=params)

    def _request(
        self,
        method: str,
        path: str,
        missing: Optional[str] = None,
        **kwargs: Any,
    ) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
            if response.status_code == 404 and missing:
                raise typer.BadParameter(f"{missing} was not found.")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(f"Could not reach {self._config.base_url}: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1) from exc
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: Any = None
        try:
            data = exc.response.json()
            detail = data.get("errors") or data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
