from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the monitor service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.request_timeout)

    def close(self) -> None:
        self._client.close()

    def send_reading(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = self._request("POST", "/api/data", json=payload)
        reading = response.json().get("reading")
        if not isinstance(reading, dict):
            raise typer.BadParameter("Unexpected response payload when sending a reading.")
        return reading

    def get_status(self) -> Dict[str, Any]:
        return self._request("GET", "/api/status").json()

    def get_recent(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        params = {"limit": limit} if limit else None
        return self._request("GET", "/api/recent", params=params).json()

    def get_config(self) -> Dict[str, Any]:
        return self._request("GET", "/api/config").json()

    def update_config(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/config", json=changes).json()

    def export_csv(self, count: int) -> str:
        return self._request("GET", "/api/export.csv", params={"count": count}).text

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1) from exc
        return response

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except (ValueError, AttributeError):
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
