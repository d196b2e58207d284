"""
Analytics Module - API Router

Endpoints:
- GET /v1/analytics/performance/{vehicle_id} - Trailing window performance
"""
from fastapi import APIRouter, Path

from src.modules.analytics.dependencies import AnalyticsServiceDep
from src.modules.analytics.schemas import PerformanceAnalytics

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get(
    "/performance/{vehicle_id}",
    response_model=PerformanceAnalytics,
    summary="Vehicle performance analytics",
    description="""
Charging performance of one vehicle over the trailing window (24 hours by default):

| Field | Meaning |
|-------|---------|
| `totalEnergyConsumedAc` | AC kWh drawn by the paired meter |
| `totalEnergyDeliveredDc` | DC kWh delivered to the battery |
| `efficiencyRatio` | DC / AC x 100, 0 when no AC was drawn |
| `averageBatteryTemp` | Mean battery temperature |
| `dataPoints` | Vehicle readings in the window |

Values below 85 % usually point at conversion losses or a hardware fault.
    """,
    responses={
        404: {"description": "Vehicle has never reported telemetry"},
        503: {"description": "QUERY_FAILED; a store query errored"},
    },
)
async def get_performance(
    service: AnalyticsServiceDep,
    vehicle_id: str = Path(..., min_length=1, max_length=100, description="Vehicle identifier"),
) -> PerformanceAnalytics:
    """Return performance analytics for one vehicle."""
    return await service.get_performance(vehicle_id)
