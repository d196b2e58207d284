"""
Telemetry Module - Time-series Store

Append-only history per device class. Aggregation over a time window runs in
the database so that only one row travels back, whatever the window size.
"""
from datetime import datetime
from typing import ClassVar

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import StoreError, ValidationError
from src.core.logging import get_logger
from src.core.models import Base, as_utc
from src.modules.telemetry.models import (
    DeviceClass,
    MeterTelemetryHistory,
    VehicleTelemetryHistory,
)
from src.modules.telemetry.schemas import TelemetryAck, TelemetryEventBase, WindowAggregate

logger = get_logger(__name__)


class TimeSeriesStore:
    """
    Append-only store for one device class.

    Subclasses declare the history model, the device id column and which
    reading columns are summed or averaged by query_window().
    """

    model: ClassVar[type[Base]]
    device_class: ClassVar[DeviceClass]
    device_column: ClassVar[str]
    sum_fields: ClassVar[tuple[str, ...]] = ()
    mean_fields: ClassVar[tuple[str, ...]] = ()

    def __init__(self, db: AsyncSession):
        self.db = db

    @property
    def _device_col(self):
        return getattr(self.model, self.device_column)

    def _validate(self, event: TelemetryEventBase) -> str:
        device_id = event.device_id
        if not isinstance(device_id, str) or not device_id.strip():
            raise ValidationError(
                "Device identifier is required",
                details={"device_class": self.device_class.value, "field": self.device_column},
            )
        if not isinstance(event.timestamp, datetime):
            raise ValidationError(
                "Event timestamp is missing or not a valid instant",
                details={"device_class": self.device_class.value, "device_id": device_id},
            )
        return device_id

    async def append(self, event: TelemetryEventBase) -> TelemetryAck:
        """
        Insert one history row and commit it.

        Values are never range-checked here; only the device id and the
        timestamp are required.
        """
        device_id = self._validate(event)
        row = self.model(
            **{self.device_column: device_id},
            timestamp=as_utc(event.timestamp),
            **event.readings(),
        )

        try:
            self.db.add(row)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                "History append failed",
                device_class=self.device_class.value,
                device_id=device_id,
                error=str(e),
            )
            raise StoreError("append", device_id, str(e)) from e

        logger.debug(
            "History row appended",
            device_class=self.device_class.value,
            device_id=device_id,
            record_id=row.id,
        )
        return TelemetryAck(
            device_class=self.device_class,
            device_id=device_id,
            record_id=row.id,
            timestamp=row.timestamp,
        )

    async def query_window(
        self,
        device_id: str,
        start_time: datetime,
        end_time: datetime,
    ) -> WindowAggregate:
        """
        Aggregate rows with start_time <= timestamp <= end_time.

        Empty windows give zero sums, zero means and a count of 0.
        """
        start_time, end_time = as_utc(start_time), as_utc(end_time)
        columns = [func.count(self.model.id).label("row_count")]
        columns += [
            func.coalesce(func.sum(getattr(self.model, name)), 0.0).label(f"sum_{name}")
            for name in self.sum_fields
        ]
        columns += [
            func.avg(getattr(self.model, name)).label(f"avg_{name}")
            for name in self.mean_fields
        ]

        stmt = select(*columns).where(
            self._device_col == device_id,
            self.model.timestamp >= start_time,
            self.model.timestamp <= end_time,
        )

        try:
            result = await self.db.execute(stmt)
            row = result.one()._mapping
        except SQLAlchemyError as e:
            logger.error(
                "Window query failed",
                device_class=self.device_class.value,
                device_id=device_id,
                error=str(e),
            )
            raise StoreError("query_window", device_id, str(e)) from e

        return WindowAggregate(
            device_id=device_id,
            start_time=start_time,
            end_time=end_time,
            count=row["row_count"] or 0,
            sums={name: float(row[f"sum_{name}"] or 0.0) for name in self.sum_fields},
            means={name: float(row[f"avg_{name}"] or 0.0) for name in self.mean_fields},
        )

    async def count(self, device_id: str) -> int:
        """Number of history rows recorded for a device."""
        stmt = select(func.count(self.model.id)).where(self._device_col == device_id)
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreError("count", device_id, str(e)) from e
        return result.scalar_one()


class MeterHistoryStore(TimeSeriesStore):
    model = MeterTelemetryHistory
    device_class = DeviceClass.METER
    device_column = "meter_id"
    sum_fields = ("kwh_consumed_ac",)
    mean_fields = ("voltage",)


class VehicleHistoryStore(TimeSeriesStore):
    model = VehicleTelemetryHistory
    device_class = DeviceClass.VEHICLE
    device_column = "vehicle_id"
    sum_fields = ("kwh_delivered_dc",)
    mean_fields = ("battery_temp",)
