"""
Analytics Module - Pydantic Schemas
"""
from datetime import datetime

from pydantic import Field

from src.modules.telemetry.schemas import CamelModel


class PerformanceAnalytics(CamelModel):
    """Trailing-window charging performance for one vehicle. Not persisted."""
    vehicle_id: str
    total_energy_consumed_ac: float = Field(..., description="Sum of meter AC kWh in window")
    total_energy_delivered_dc: float = Field(..., description="Sum of vehicle DC kWh in window")
    efficiency_ratio: float = Field(
        ...,
        description="DC / AC x 100; 0 when no AC was consumed. Below 85 suggests a hardware fault",
    )
    average_battery_temp: float = Field(..., description="Mean battery temperature in window")
    time_window_start: datetime
    time_window_end: datetime
    data_points: int = Field(..., ge=0, description="Vehicle readings in window")
