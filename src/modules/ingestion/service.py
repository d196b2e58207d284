"""
Ingestion Module - Business Logic Service

Each ingest is two dependent writes:
1. INSERT into the history store (append-only, source of truth)
2. UPSERT into the live status projection (latest values)

If (1) succeeds and (2) fails the row stays in history and the caller gets
ProjectionUpdateFailedError so it can retry. A retry rewrites the projection
harmlessly but appends a second history row; duplicates are not detected here.
"""
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import (
    HistoryAppendFailedError,
    ProjectionUpdateFailedError,
    StoreError,
    ValidationError,
)
from src.core.logging import get_logger
from src.core.metrics import record_ingest_failure, record_telemetry
from src.modules.telemetry.live_status import (
    LiveStatusProjection,
    MeterLiveStatusProjection,
    VehicleLiveStatusProjection,
)
from src.modules.telemetry.schemas import (
    IngestResponse,
    MeterTelemetryCreate,
    TelemetryEventBase,
    VehicleTelemetryCreate,
)
from src.modules.telemetry.store import MeterHistoryStore, TimeSeriesStore, VehicleHistoryStore

logger = get_logger(__name__)

EventT = TypeVar("EventT", bound=TelemetryEventBase)


def parse_event(schema: type[EventT], data: EventT | Mapping[str, Any]) -> EventT:
    """
    Validate raw input against an event schema.

    Accepts an already validated event or a mapping (camelCase or snake_case
    keys); pydantic errors are re-raised as ValidationError.
    """
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Invalid {schema.device_class.value} telemetry",
            details={
                "validation_errors": [
                    {
                        "field": ".".join(str(loc) for loc in err.get("loc", [])),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in e.errors()
                ]
            },
        ) from e


class IngestionService:
    """Routes one telemetry event to its history store and live status projection."""

    def __init__(
        self,
        db: AsyncSession,
        *,
        meter_history: TimeSeriesStore | None = None,
        vehicle_history: TimeSeriesStore | None = None,
        meter_live: LiveStatusProjection | None = None,
        vehicle_live: LiveStatusProjection | None = None,
    ):
        self.db = db
        self.meter_history = meter_history or MeterHistoryStore(db)
        self.vehicle_history = vehicle_history or VehicleHistoryStore(db)
        self.meter_live = meter_live or MeterLiveStatusProjection(db)
        self.vehicle_live = vehicle_live or VehicleLiveStatusProjection(db)

    async def ingest_meter(
        self, data: MeterTelemetryCreate | Mapping[str, Any]
    ) -> IngestResponse:
        """Ingest one grid meter reading."""
        event = parse_event(MeterTelemetryCreate, data)
        await self._ingest(event, self.meter_history, self.meter_live)
        return IngestResponse(
            success=True,
            message=f"Meter {event.meter_id} data ingested successfully",
        )

    async def ingest_vehicle(
        self, data: VehicleTelemetryCreate | Mapping[str, Any]
    ) -> IngestResponse:
        """Ingest one vehicle/charger reading."""
        event = parse_event(VehicleTelemetryCreate, data)
        await self._ingest(event, self.vehicle_history, self.vehicle_live)
        return IngestResponse(
            success=True,
            message=f"Vehicle {event.vehicle_id} data ingested successfully",
        )

    async def _ingest(
        self,
        event: TelemetryEventBase,
        history: TimeSeriesStore,
        live: LiveStatusProjection,
    ) -> None:
        device_class = event.device_class.value
        device_id = event.device_id

        try:
            ack = await history.append(event)
        except StoreError as e:
            record_ingest_failure(device_class, "history")
            raise HistoryAppendFailedError(device_class, device_id, e) from e

        try:
            await live.upsert(device_id, live.fields_from_event(event))
        except StoreError as e:
            record_ingest_failure(device_class, "projection")
            logger.warning(
                "Live status stale after history append",
                device_class=device_class,
                device_id=device_id,
                record_id=ack.record_id,
            )
            raise ProjectionUpdateFailedError(device_class, device_id, e) from e

        record_telemetry(device_class)
        logger.info(
            "Telemetry ingested",
            device_class=device_class,
            device_id=device_id,
            record_id=ack.record_id,
            timestamp=ack.timestamp.isoformat(),
        )
