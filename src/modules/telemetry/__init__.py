"""
Telemetry Module - History stores and live-status projections.

Models: MeterTelemetryHistory, VehicleTelemetryHistory, MeterLiveStatus, VehicleLiveStatus
"""
from src.modules.telemetry.live_status import (
    LiveStatusProjection,
    MeterLiveStatusProjection,
    VehicleLiveStatusProjection,
)
from src.modules.telemetry.models import (
    DeviceClass,
    MeterLiveStatus,
    MeterTelemetryHistory,
    VehicleLiveStatus,
    VehicleTelemetryHistory,
)
from src.modules.telemetry.store import MeterHistoryStore, TimeSeriesStore, VehicleHistoryStore

__all__ = [
    "DeviceClass",
    "MeterTelemetryHistory",
    "VehicleTelemetryHistory",
    "MeterLiveStatus",
    "VehicleLiveStatus",
    "TimeSeriesStore",
    "MeterHistoryStore",
    "VehicleHistoryStore",
    "LiveStatusProjection",
    "MeterLiveStatusProjection",
    "VehicleLiveStatusProjection",
]
