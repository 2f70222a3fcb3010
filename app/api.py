"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status

from app.schemas import DeviceConfig, DeviceStatus, EnrichedReading, IngestResponse
from services.export import DEFAULT_EXPORT_COUNT
from services.monitor import MonitorService, build_default_monitor

router = APIRouter()


def get_monitor() -> MonitorService:
    return build_default_monitor()


@router.post(
    "/api/data",
    response_model=IngestResponse,
    summary="Ingest one sensor reading and return its classification.",
)
async def ingest_reading(
    payload: Any = Body(..., description="Raw reading as sent by the device firmware."),
    monitor: MonitorService = Depends(get_monitor),
) -> IngestResponse:
    try:
        reading = monitor.ingest(payload)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return IngestResponse(reading=reading)


@router.get(
    "/api/recent",
    response_model=list[EnrichedReading],
    summary="Recent enriched readings, oldest first.",
)
async def recent_readings(
    limit: Optional[int] = Query(default=None, ge=1),
    monitor: MonitorService = Depends(get_monitor),
) -> list[EnrichedReading]:
    return monitor.recent(limit)


@router.get(
    "/api/status",
    response_model=DeviceStatus,
    summary="Last time the device reported and whether it is online.",
)
async def device_status(monitor: MonitorService = Depends(get_monitor)) -> DeviceStatus:
    return monitor.device_status()


@router.get("/api/config", response_model=DeviceConfig, summary="Current device configuration.")
async def read_config(monitor: MonitorService = Depends(get_monitor)) -> DeviceConfig:
    return monitor.get_config()


@router.post("/api/config", response_model=DeviceConfig, summary="Update device configuration.")
async def update_config(
    changes: Any = Body(...),
    monitor: MonitorService = Depends(get_monitor),
) -> DeviceConfig:
    if not isinstance(changes, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Config payload must be a JSON object.",
        )
    return monitor.update_config(changes)


@router.get(
    "/api/export.csv",
    summary="Download the most recent readings as CSV.",
    response_class=Response,
)
async def export_csv(
    count: int = Query(default=DEFAULT_EXPORT_COUNT, ge=1),
    monitor: MonitorService = Depends(get_monitor),
) -> Response:
    body = monitor.export_csv(count)
    rows = max(body.count("\n") - 1, 0)
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="readings_{rows}.csv"'},
    )


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
