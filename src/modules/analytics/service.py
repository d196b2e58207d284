"""
Analytics Module - Windowed Analytics Engine

Correlates the vehicle DC stream with the meter AC stream over a trailing
window and derives the charging efficiency ratio.
"""
from collections.abc import Callable
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import NotFoundError, QueryFailedError, StoreError
from src.core.logging import get_logger
from src.core.metrics import record_analytics
from src.core.models import as_utc, utc_now
from src.modules.analytics.resolver import CorrelationResolver, IdentityCorrelationResolver
from src.modules.analytics.schemas import PerformanceAnalytics
from src.modules.telemetry.live_status import LiveStatusProjection, VehicleLiveStatusProjection
from src.modules.telemetry.store import MeterHistoryStore, TimeSeriesStore, VehicleHistoryStore

logger = get_logger(__name__)

Clock = Callable[[], datetime]

DEFAULT_WINDOW = timedelta(hours=24)

_CENTS = Decimal("0.01")


def round2(value: float) -> float:
    """Round to two decimals with halves rounded away from zero (0.125 -> 0.13)."""
    return float(Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP))


def efficiency_ratio(total_ac: float, total_dc: float) -> float:
    """
    DC delivered as a percentage of AC consumed.

    Saturates to 0 when no AC was consumed, so the metric is always finite.
    """
    if total_ac > 0:
        return (total_dc / total_ac) * 100
    return 0.0


class AnalyticsService:
    """Performance analytics over the trailing window."""

    def __init__(
        self,
        db: AsyncSession,
        *,
        resolver: CorrelationResolver | None = None,
        clock: Clock = utc_now,
        window: timedelta = DEFAULT_WINDOW,
        vehicle_history: TimeSeriesStore | None = None,
        meter_history: TimeSeriesStore | None = None,
        vehicle_live: LiveStatusProjection | None = None,
    ):
        self.db = db
        self.resolver = resolver or IdentityCorrelationResolver()
        self.clock = clock
        self.window = window
        self.vehicle_history = vehicle_history or VehicleHistoryStore(db)
        self.meter_history = meter_history or MeterHistoryStore(db)
        self.vehicle_live = vehicle_live or VehicleLiveStatusProjection(db)

    async def get_performance(
        self,
        vehicle_id: str,
        now: datetime | None = None,
    ) -> PerformanceAnalytics:
        """
        Compute performance for vehicle_id over [now - window, now].

        Raises NotFoundError for vehicles never ingested and QueryFailedError
        when any store query fails. Never returns a partial result.
        """
        try:
            known = await self.vehicle_live.exists(vehicle_id)
        except StoreError as e:
            record_analytics("query_failed")
            raise QueryFailedError(vehicle_id, e) from e

        if not known:
            record_analytics("not_found")
            raise NotFoundError("Vehicle", vehicle_id)

        end_time = as_utc(now or self.clock())
        start_time = end_time - self.window

        meter_id = None
        try:
            meter_id = await self.resolver.resolve_meter_for(vehicle_id)
            vehicle_agg = await self.vehicle_history.query_window(vehicle_id, start_time, end_time)
            meter_agg = await self.meter_history.query_window(meter_id, start_time, end_time)
        except StoreError as e:
            record_analytics("query_failed")
            logger.error(
                "Analytics query failed",
                vehicle_id=vehicle_id,
                meter_id=meter_id,
                operation=e.operation,
            )
            raise QueryFailedError(vehicle_id, e) from e

        total_dc = vehicle_agg.sums["kwh_delivered_dc"]
        total_ac = meter_agg.sums["kwh_consumed_ac"]
        avg_battery_temp = vehicle_agg.means["battery_temp"]
        ratio = efficiency_ratio(total_ac, total_dc)

        record_analytics("ok")
        logger.info(
            "Performance analytics computed",
            vehicle_id=vehicle_id,
            meter_id=meter_id,
            data_points=vehicle_agg.count,
            meter_points=meter_agg.count,
            efficiency_ratio=ratio,
        )

        return PerformanceAnalytics(
            vehicle_id=vehicle_id,
            total_energy_consumed_ac=round2(total_ac),
            total_energy_delivered_dc=round2(total_dc),
            efficiency_ratio=round2(ratio),
            average_battery_temp=round2(avg_battery_temp),
            time_window_start=start_time,
            time_window_end=end_time,
            data_points=vehicle_agg.count,
        )
