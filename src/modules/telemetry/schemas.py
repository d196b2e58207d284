"""
Telemetry Module - Pydantic Schemas (DTOs)

Wire format is camelCase (meterId, kwhConsumedAc, ...); Python attributes are
snake_case. Both names are accepted on input.
"""
from datetime import datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.core.models import as_utc
from src.modules.telemetry.models import DeviceClass


class CamelModel(BaseModel):
    """Base schema with camelCase aliases."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============== Telemetry Events ==============

class TelemetryEventBase(CamelModel):
    """Fields shared by every telemetry event."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        allow_inf_nan=False,
        frozen=True,
    )

    device_class: ClassVar[DeviceClass]
    device_id_field: ClassVar[str]

    timestamp: datetime = Field(..., description="Device-reported event time, ISO-8601")

    @field_validator("timestamp")
    @classmethod
    def _normalise_timestamp(cls, value: datetime) -> datetime:
        try:
            return as_utc(value)
        except OverflowError as e:
            # Offset pushes the instant outside datetime's range once shifted to UTC
            raise ValueError("timestamp out of range") from e

    @property
    def device_id(self) -> str:
        return getattr(self, self.device_id_field)

    def readings(self) -> dict[str, Any]:
        """Numeric readings keyed by history column name."""
        return self.model_dump(exclude={self.device_id_field, "timestamp"})


class MeterTelemetryCreate(TelemetryEventBase):
    """Grid-side meter reading. Expected every 60 seconds per meter."""
    device_class: ClassVar[DeviceClass] = DeviceClass.METER
    device_id_field: ClassVar[str] = "meter_id"

    meter_id: str = Field(..., min_length=1, max_length=100)
    kwh_consumed_ac: float = Field(..., description="AC energy consumed since the previous reading")
    voltage: float = Field(..., description="Line voltage")


class VehicleTelemetryCreate(TelemetryEventBase):
    """Vehicle/charger reading. Expected every 60 seconds per vehicle."""
    device_class: ClassVar[DeviceClass] = DeviceClass.VEHICLE
    device_id_field: ClassVar[str] = "vehicle_id"

    vehicle_id: str = Field(..., min_length=1, max_length=100)
    soc: int = Field(..., ge=0, le=100, description="State of charge, percent")
    kwh_delivered_dc: float = Field(..., description="DC energy delivered since the previous reading")
    battery_temp: float = Field(..., description="Battery temperature, °C")


class IngestResponse(BaseModel):
    """Result of one ingest call."""
    success: bool
    message: str


# ============== Store Results ==============

class TelemetryAck(BaseModel):
    """Returned once a history row is committed."""
    device_class: DeviceClass
    device_id: str
    record_id: int
    timestamp: datetime


class WindowAggregate(BaseModel):
    """Single aggregate row over [start_time, end_time] for one device."""
    device_id: str
    start_time: datetime
    end_time: datetime
    count: int = 0
    sums: dict[str, float] = Field(default_factory=dict)
    means: dict[str, float] = Field(default_factory=dict)
