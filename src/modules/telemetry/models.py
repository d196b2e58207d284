"""
Telemetry Module - Database Models
Append-only history tables and live-status projections per device class.

The (device id, timestamp) indexes keep window scans to an index range.
"""
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Float, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.core.models import Base, HistoryMixin, LiveStatusMixin


class DeviceClass(str, Enum):
    """Independently reporting device classes."""
    METER = "meter"       # Grid-side AC meter
    VEHICLE = "vehicle"   # Vehicle / charger DC side


class MeterTelemetryHistory(Base, HistoryMixin):
    """One row per meter reading. Never updated or deleted."""
    __tablename__ = "meter_telemetry_history"

    __table_args__ = (
        Index("ix_meter_history_meter_ts", "meter_id", "timestamp"),
    )

    meter_id: Mapped[str] = mapped_column(String(100), nullable=False)
    kwh_consumed_ac: Mapped[float] = mapped_column(Float, nullable=False)
    voltage: Mapped[float] = mapped_column(Float, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="Device-reported event time (UTC)",
    )


class VehicleTelemetryHistory(Base, HistoryMixin):
    """One row per vehicle reading. Never updated or deleted."""
    __tablename__ = "vehicle_telemetry_history"

    __table_args__ = (
        Index("ix_vehicle_history_vehicle_ts", "vehicle_id", "timestamp"),
    )

    vehicle_id: Mapped[str] = mapped_column(String(100), nullable=False)
    soc: Mapped[int] = mapped_column(Integer, nullable=False, comment="State of charge, percent")
    kwh_delivered_dc: Mapped[float] = mapped_column(Float, nullable=False)
    battery_temp: Mapped[float] = mapped_column(Float, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="Device-reported event time (UTC)",
    )


class MeterLiveStatus(Base, LiveStatusMixin):
    """Latest reading per meter."""
    __tablename__ = "meter_live_status"

    meter_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    last_kwh_consumed_ac: Mapped[float] = mapped_column(Float, nullable=False)
    last_voltage: Mapped[float] = mapped_column(Float, nullable=False)


class VehicleLiveStatus(Base, LiveStatusMixin):
    """Latest reading per vehicle."""
    __tablename__ = "vehicle_live_status"

    vehicle_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    soc: Mapped[int] = mapped_column(Integer, nullable=False)
    last_kwh_delivered_dc: Mapped[float] = mapped_column(Float, nullable=False)
    last_battery_temp: Mapped[float] = mapped_column(Float, nullable=False)
