"""
API Endpoint Tests - Ingestion and analytics over HTTP
"""
from datetime import timedelta

import pytest
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.modules.analytics.dependencies import get_analytics_service, get_clock
from src.modules.analytics.service import AnalyticsService
from src.modules.ingestion.dependencies import get_ingestion_service
from src.modules.ingestion.service import IngestionService
from tests.factories import T0, meter_payload, vehicle_payload
from tests.stubs import BrokenMeterHistory, BrokenVehicleProjection, FailingMeterHistory


@pytest.fixture
def freeze_now(app):
    """Pin the analytics clock to a given instant."""

    def _freeze(now):
        app.dependency_overrides[get_clock] = lambda: (lambda: now)

    yield _freeze
    app.dependency_overrides.clear()


@pytest.fixture
def store_outage(app):
    """Swap one store for a failing double behind the request dependencies."""

    def _ingestion(**stores):
        async def override(db: AsyncSession = Depends(get_db)) -> IngestionService:
            return IngestionService(db, **{name: cls(db) for name, cls in stores.items()})

        app.dependency_overrides[get_ingestion_service] = override

    def _analytics(**stores):
        async def override(db: AsyncSession = Depends(get_db)) -> AnalyticsService:
            return AnalyticsService(db, **{name: cls(db) for name, cls in stores.items()})

        app.dependency_overrides[get_analytics_service] = override

    yield _ingestion, _analytics
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_root_endpoint(client):
    """Test root endpoint."""
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["version"]


@pytest.mark.asyncio
async def test_openapi_schema(client):
    """OpenAPI schema lists the telemetry routes."""
    response = await client.get("/openapi.json")
    assert response.status_code == 200
    paths = response.json()["paths"]
    assert "/v1/ingestion/meter" in paths
    assert "/v1/ingestion/vehicle" in paths
    assert "/v1/analytics/performance/{vehicle_id}" in paths


# === Ingestion ===

@pytest.mark.asyncio
async def test_ingest_meter(client):
    response = await client.post("/v1/ingestion/meter", json=meter_payload("MTR-001"))

    assert response.status_code == 201
    assert response.json() == {
        "success": True,
        "message": "Meter MTR-001 data ingested successfully",
    }


@pytest.mark.asyncio
async def test_ingest_vehicle(client):
    response = await client.post("/v1/ingestion/vehicle", json=vehicle_payload("VEH-001"))

    assert response.status_code == 201
    assert response.json()["success"] is True


@pytest.mark.asyncio
async def test_ingest_invalid_body_returns_error_envelope(client):
    payload = {**vehicle_payload("VEH-001"), "soc": 150, "timestamp": "soon"}

    response = await client.post("/v1/ingestion/vehicle", json=payload)

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    fields = {e["field"] for e in error["details"]["validation_errors"]}
    assert fields == {"body.soc", "body.timestamp"}


@pytest.mark.asyncio
async def test_ingest_empty_device_id_rejected(client):
    response = await client.post("/v1/ingestion/meter", json=meter_payload(""))

    assert response.status_code == 422


@pytest.mark.parametrize(
    "timestamp",
    ["0001-01-01T00:10:00+01:00", "9999-12-31T23:30:00-05:00"],
)
@pytest.mark.asyncio
async def test_ingest_timestamp_outside_utc_range_rejected(client, timestamp):
    payload = {**meter_payload("MTR-001"), "timestamp": timestamp}

    response = await client.post("/v1/ingestion/meter", json=payload)

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert [e["field"] for e in error["details"]["validation_errors"]] == ["body.timestamp"]


@pytest.mark.asyncio
async def test_ingest_history_outage_returns_503(client, store_outage):
    use_ingestion, _ = store_outage
    use_ingestion(meter_history=BrokenMeterHistory)

    response = await client.post("/v1/ingestion/meter", json=meter_payload("MTR-001"))

    assert response.status_code == 503
    error = response.json()["error"]
    assert error["code"] == "HISTORY_APPEND_FAILED"
    assert error["details"]["device_id"] == "MTR-001"
    assert error["details"]["retryable"] is True
    assert "disk full" in error["details"]["cause"]


@pytest.mark.asyncio
async def test_ingest_projection_outage_returns_503(client, store_outage):
    use_ingestion, _ = store_outage
    use_ingestion(vehicle_live=BrokenVehicleProjection)

    response = await client.post("/v1/ingestion/vehicle", json=vehicle_payload("VEH-001"))

    assert response.status_code == 503
    error = response.json()["error"]
    assert error["code"] == "PROJECTION_UPDATE_FAILED"
    assert error["details"]["device_id"] == "VEH-001"
    assert error["details"]["retryable"] is True
    assert error["details"]["history_recorded"] is True


# === Analytics ===

@pytest.mark.asyncio
async def test_performance_unknown_vehicle(client):
    response = await client.get("/v1/analytics/performance/VEH-404")

    assert response.status_code == 404
    error = response.json()["error"]
    assert error["code"] == "NOT_FOUND"
    assert error["details"]["identifier"] == "VEH-404"


@pytest.mark.asyncio
async def test_performance_scenario(client, freeze_now):
    for offset in (timedelta(0), timedelta(hours=1)):
        await client.post("/v1/ingestion/meter", json=meter_payload("M-1", kwh=10, at=T0 + offset))
        await client.post("/v1/ingestion/vehicle", json=vehicle_payload("M-1", kwh=9, at=T0 + offset))
    freeze_now(T0 + timedelta(hours=2))

    response = await client.get("/v1/analytics/performance/M-1")

    assert response.status_code == 200
    data = response.json()
    assert data["vehicleId"] == "M-1"
    assert data["totalEnergyConsumedAc"] == 20.0
    assert data["totalEnergyDeliveredDc"] == 18.0
    assert data["efficiencyRatio"] == 90.0
    assert data["averageBatteryTemp"] == 30.0
    assert data["dataPoints"] == 2
    assert data["timeWindowStart"].startswith("2026-01-03T14:00:00")
    assert data["timeWindowEnd"].startswith("2026-01-04T14:00:00")


@pytest.mark.asyncio
async def test_performance_query_outage_returns_503(client, store_outage):
    await client.post("/v1/ingestion/vehicle", json=vehicle_payload("VEH-001"))
    _, use_analytics = store_outage
    use_analytics(meter_history=FailingMeterHistory)

    response = await client.get("/v1/analytics/performance/VEH-001")

    assert response.status_code == 503
    error = response.json()["error"]
    assert error["code"] == "QUERY_FAILED"
    assert error["details"]["vehicle_id"] == "VEH-001"
    assert "server closed the connection" in error["details"]["cause"]
