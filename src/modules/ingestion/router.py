"""
Ingestion Module - API Router

Endpoints:
- POST /v1/ingestion/meter - Grid meter telemetry
- POST /v1/ingestion/vehicle - Vehicle/charger telemetry
"""
from fastapi import APIRouter, status

from src.modules.ingestion.dependencies import IngestionServiceDep
from src.modules.telemetry.schemas import (
    IngestResponse,
    MeterTelemetryCreate,
    VehicleTelemetryCreate,
)

router = APIRouter(prefix="/ingestion", tags=["Ingestion"])

_INGEST_ERRORS = {
    422: {"description": "Missing device id, unparsable timestamp or non-finite reading"},
    503: {"description": "HISTORY_APPEND_FAILED or PROJECTION_UPDATE_FAILED; safe to retry"},
}


@router.post(
    "/meter",
    response_model=IngestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Ingest meter telemetry",
    description="""
Grid-side AC meter reading, expected every 60 seconds per meter.

The reading is appended to meter history and the meter's live status is
overwritten with the same values.

```json
{"meterId": "MTR-001", "kwhConsumedAc": 1.25, "voltage": 231.4, "timestamp": "2026-01-04T12:00:00Z"}
```
    """,
    responses=_INGEST_ERRORS,
)
async def ingest_meter(
    payload: MeterTelemetryCreate,
    service: IngestionServiceDep,
) -> IngestResponse:
    """Ingest one meter reading."""
    return await service.ingest_meter(payload)


@router.post(
    "/vehicle",
    response_model=IngestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Ingest vehicle telemetry",
    description="""
Vehicle/charger DC reading, expected every 60 seconds per vehicle.

```json
{"vehicleId": "VEH-001", "soc": 64, "kwhDeliveredDc": 1.1, "batteryTemp": 31.5, "timestamp": "2026-01-04T12:00:00Z"}
```
    """,
    responses=_INGEST_ERRORS,
)
async def ingest_vehicle(
    payload: VehicleTelemetryCreate,
    service: IngestionServiceDep,
) -> IngestResponse:
    """Ingest one vehicle reading."""
    return await service.ingest_vehicle(payload)
