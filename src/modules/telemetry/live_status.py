"""
Telemetry Module - Live-Status Projection

One row per device holding its latest reading. Writes are a single
INSERT ... ON CONFLICT DO UPDATE so concurrent ingests for the same device
are serialised by the database and the last one to commit wins.
"""
from collections.abc import Mapping
from typing import Any, ClassVar

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import StoreError, ValidationError
from src.core.logging import get_logger
from src.core.models import Base, utc_now
from src.modules.telemetry.models import DeviceClass, MeterLiveStatus, VehicleLiveStatus
from src.modules.telemetry.schemas import TelemetryEventBase

logger = get_logger(__name__)

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class LiveStatusProjection:
    """Latest-value table for one device class."""

    model: ClassVar[type[Base]]
    device_class: ClassVar[DeviceClass]
    key_column: ClassVar[str]
    # event reading name -> live status column
    field_map: ClassVar[dict[str, str]]

    def __init__(self, db: AsyncSession):
        self.db = db

    @property
    def tracked_fields(self) -> frozenset[str]:
        return frozenset(self.field_map.values()) | {"last_reading_at"}

    def fields_from_event(self, event: TelemetryEventBase) -> dict[str, Any]:
        """Map an event's readings onto live status columns."""
        readings = event.readings()
        fields = {column: readings[name] for name, column in self.field_map.items()}
        fields["last_reading_at"] = event.timestamp
        return fields

    async def upsert(self, device_id: str, fields: Mapping[str, Any]) -> None:
        """Insert or fully overwrite the row for device_id in one statement."""
        given = set(fields)
        missing = self.tracked_fields - given
        unknown = given - self.tracked_fields
        if missing or unknown:
            raise ValidationError(
                "Live status upsert must set exactly the tracked fields",
                details={
                    "device_id": device_id,
                    "missing": sorted(missing),
                    "unknown": sorted(unknown),
                },
            )

        dialect = self.db.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect)
        if insert is None:
            raise StoreError("upsert", device_id, f"no atomic upsert for dialect '{dialect}'")

        values = {self.key_column: device_id, **fields, "updated_at": utc_now()}
        stmt = insert(self.model).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[self.key_column],
            set_={name: stmt.excluded[name] for name in values if name != self.key_column},
        )

        try:
            await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                "Live status upsert failed",
                device_class=self.device_class.value,
                device_id=device_id,
                error=str(e),
            )
            raise StoreError("upsert", device_id, str(e)) from e

        logger.debug("Live status updated", device_class=self.device_class.value, device_id=device_id)

    async def exists(self, device_id: str) -> bool:
        """True once at least one ingest for device_id has reached the projection."""
        key = getattr(self.model, self.key_column)
        stmt = select(key).where(key == device_id).limit(1)
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreError("exists", device_id, str(e)) from e
        return result.scalar_one_or_none() is not None


class MeterLiveStatusProjection(LiveStatusProjection):
    model = MeterLiveStatus
    device_class = DeviceClass.METER
    key_column = "meter_id"
    field_map = {
        "kwh_consumed_ac": "last_kwh_consumed_ac",
        "voltage": "last_voltage",
    }


class VehicleLiveStatusProjection(LiveStatusProjection):
    model = VehicleLiveStatus
    device_class = DeviceClass.VEHICLE
    key_column = "vehicle_id"
    field_map = {
        "soc": "soc",
        "kwh_delivered_dc": "last_kwh_delivered_dc",
        "battery_temp": "last_battery_temp",
    }
