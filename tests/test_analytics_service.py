"""
Windowed Analytics Engine Tests.
"""
import math
from datetime import timedelta

import pytest

from src.core.config import Settings
from src.core.exceptions import NotFoundError, QueryFailedError, StoreError
from src.modules.analytics.resolver import (
    IdentityCorrelationResolver,
    MappingCorrelationResolver,
    build_resolver,
)
from src.modules.analytics.service import AnalyticsService, efficiency_ratio, round2
from tests.factories import T0, meter_payload, vehicle_payload
from tests.stubs import FailingLookupResolver, FailingMeterHistory


def fixed_clock(now):
    return lambda: now


class TestEfficiencyRatio:
    """efficiency_ratio() tests."""

    def test_ratio_is_percentage(self):
        assert efficiency_ratio(100.0, 90.0) == pytest.approx(90.0)

    def test_zero_ac_saturates_to_zero(self):
        assert efficiency_ratio(0.0, 12.0) == 0.0
        assert efficiency_ratio(0.0, 0.0) == 0.0

    def test_never_infinite(self):
        assert math.isfinite(efficiency_ratio(1e-12, 5.0))

    def test_round2_rounds_halves_up(self):
        assert round2(0.125) == 0.13
        assert round2(30.125) == 30.13
        assert round2(66.666) == 66.67


class TestGetPerformance:
    """get_performance() tests."""

    @pytest.mark.asyncio
    async def test_two_stream_scenario(self, session, ingestion):
        for offset in (timedelta(0), timedelta(hours=1)):
            await ingestion.ingest_meter(meter_payload("M-1", kwh=10.0, at=T0 + offset))
            await ingestion.ingest_vehicle(vehicle_payload("M-1", kwh=9.0, at=T0 + offset))

        service = AnalyticsService(session, clock=fixed_clock(T0 + timedelta(hours=2)))
        result = await service.get_performance("M-1")

        assert result.total_energy_consumed_ac == 20.00
        assert result.total_energy_delivered_dc == 18.00
        assert result.efficiency_ratio == 90.00
        assert result.data_points == 2
        assert result.average_battery_temp == 30.00
        assert result.time_window_end == T0 + timedelta(hours=2)
        assert result.time_window_start == T0 - timedelta(hours=22)

    @pytest.mark.asyncio
    async def test_explicit_now_overrides_clock(self, session, ingestion):
        await ingestion.ingest_vehicle(vehicle_payload("V-1", at=T0))

        service = AnalyticsService(session, clock=fixed_clock(T0 + timedelta(days=30)))
        result = await service.get_performance("V-1", now=T0 + timedelta(minutes=1))

        assert result.data_points == 1

    @pytest.mark.asyncio
    async def test_unknown_vehicle_is_not_found(self, session):
        service = AnalyticsService(session, clock=fixed_clock(T0))

        with pytest.raises(NotFoundError) as exc_info:
            await service.get_performance("ghost")

        assert exc_info.value.status_code == 404
        assert exc_info.value.details == {"resource": "Vehicle", "identifier": "ghost"}

    @pytest.mark.asyncio
    async def test_no_events_in_window_gives_zeros(self, session, ingestion):
        await ingestion.ingest_vehicle(vehicle_payload("V-1", kwh=5.0, at=T0))

        service = AnalyticsService(session, clock=fixed_clock(T0 + timedelta(hours=48)))
        result = await service.get_performance("V-1")

        assert result.data_points == 0
        assert result.total_energy_delivered_dc == 0
        assert result.efficiency_ratio == 0
        assert result.average_battery_temp == 0

    @pytest.mark.asyncio
    async def test_events_older_than_window_excluded(self, session, ingestion):
        now = T0 + timedelta(hours=30)
        await ingestion.ingest_meter(meter_payload("M-1", kwh=50.0, at=T0))
        await ingestion.ingest_vehicle(vehicle_payload("M-1", kwh=45.0, at=T0))
        await ingestion.ingest_meter(meter_payload("M-1", kwh=10.0, at=now - timedelta(hours=1)))
        await ingestion.ingest_vehicle(vehicle_payload("M-1", kwh=8.0, at=now - timedelta(hours=1)))

        result = await AnalyticsService(session, clock=fixed_clock(now)).get_performance("M-1")

        assert result.total_energy_consumed_ac == 10.0
        assert result.total_energy_delivered_dc == 8.0
        assert result.efficiency_ratio == 80.0
        assert result.data_points == 1

    @pytest.mark.asyncio
    async def test_window_start_is_inclusive(self, session, ingestion):
        now = T0 + timedelta(hours=24)
        await ingestion.ingest_vehicle(vehicle_payload("V-1", kwh=2.0, at=T0))

        result = await AnalyticsService(session, clock=fixed_clock(now)).get_performance("V-1")

        assert result.data_points == 1

    @pytest.mark.asyncio
    async def test_dc_without_ac_reports_zero_ratio(self, session, ingestion):
        await ingestion.ingest_vehicle(vehicle_payload("V-1", kwh=7.0, at=T0))

        result = await AnalyticsService(session, clock=fixed_clock(T0)).get_performance("V-1")

        assert result.total_energy_consumed_ac == 0
        assert result.total_energy_delivered_dc == 7.0
        assert result.efficiency_ratio == 0

    @pytest.mark.asyncio
    async def test_results_rounded_to_two_decimals(self, session, ingestion):
        await ingestion.ingest_meter(meter_payload("M-1", kwh=3.0, at=T0))
        await ingestion.ingest_vehicle(vehicle_payload("M-1", kwh=2.0, battery_temp=30.333, at=T0))

        result = await AnalyticsService(session, clock=fixed_clock(T0)).get_performance("M-1")

        assert result.efficiency_ratio == 66.67
        assert result.average_battery_temp == 30.33

    @pytest.mark.asyncio
    async def test_half_way_values_round_up(self, session, ingestion):
        await ingestion.ingest_vehicle(vehicle_payload("V-1", kwh=0.125, battery_temp=30.125, at=T0))

        result = await AnalyticsService(session, clock=fixed_clock(T0)).get_performance("V-1")

        assert result.total_energy_delivered_dc == 0.13
        assert result.average_battery_temp == 30.13

    @pytest.mark.asyncio
    async def test_mapping_resolver_pairs_streams(self, session, ingestion):
        await ingestion.ingest_meter(meter_payload("MTR-7", kwh=100.0, at=T0))
        await ingestion.ingest_vehicle(vehicle_payload("VEH-7", kwh=90.0, at=T0))

        service = AnalyticsService(
            session,
            resolver=MappingCorrelationResolver({"VEH-7": "MTR-7"}),
            clock=fixed_clock(T0),
        )
        result = await service.get_performance("VEH-7")

        assert result.efficiency_ratio == 90.00

    @pytest.mark.asyncio
    async def test_query_failure_surfaces_cause(self, session, ingestion):
        await ingestion.ingest_vehicle(vehicle_payload("V-1", at=T0))
        service = AnalyticsService(
            session,
            clock=fixed_clock(T0),
            meter_history=FailingMeterHistory(session),
        )

        with pytest.raises(QueryFailedError) as exc_info:
            await service.get_performance("V-1")

        error = exc_info.value
        assert error.code == "QUERY_FAILED"
        assert isinstance(error.__cause__, StoreError)
        assert "server closed the connection" in error.details["cause"]

    @pytest.mark.asyncio
    async def test_resolver_failure_is_query_failure(self, session, ingestion):
        await ingestion.ingest_vehicle(vehicle_payload("V-1", at=T0))
        service = AnalyticsService(
            session,
            resolver=FailingLookupResolver(),
            clock=fixed_clock(T0),
        )

        with pytest.raises(QueryFailedError) as exc_info:
            await service.get_performance("V-1")

        assert exc_info.value.details["vehicle_id"] == "V-1"
        assert "topology table unavailable" in exc_info.value.details["cause"]


class TestResolver:
    """Correlation resolver tests."""

    @pytest.mark.asyncio
    async def test_identity(self):
        assert await IdentityCorrelationResolver().resolve_meter_for("V-1") == "V-1"

    @pytest.mark.asyncio
    async def test_mapping_falls_back_to_identity(self):
        resolver = MappingCorrelationResolver({"V-1": "M-9"})

        assert await resolver.resolve_meter_for("V-1") == "M-9"
        assert await resolver.resolve_meter_for("V-2") == "V-2"

    def test_build_resolver_from_settings(self):
        assert isinstance(build_resolver(Settings(_env_file=None)), IdentityCorrelationResolver)
        resolver = build_resolver(Settings(_env_file=None, vehicle_meter_map={"V-1": "M-1"}))
        assert isinstance(resolver, MappingCorrelationResolver)
