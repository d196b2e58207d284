"""Telemetry simulator for a vehicle on a DC charger."""
from __future__ import annotations

import os

try:  # pragma: no cover - runtime import convenience
    from .telemetry_simulator import (
        MeasurementSpec,
        SimulatorConfig,
        TelemetrySimulator,
        build_payload_from_specs,
    )
except ImportError:  # pragma: no cover
    from telemetry_simulator import (  # type: ignore
        MeasurementSpec,
        SimulatorConfig,
        TelemetrySimulator,
        build_payload_from_specs,
    )


VEHICLE_MEASUREMENTS: tuple[MeasurementSpec, ...] = (
    MeasurementSpec(
        name="soc",
        min_value=10,
        max_value=100,
        precision=0,
        unit="%",
        description="Battery state of charge",
    ),
    MeasurementSpec(
        name="kwhDeliveredDc",
        min_value=0.7,
        max_value=1.2,
        precision=3,
        unit="kWh",
        description="DC energy delivered since the previous reading",
    ),
    MeasurementSpec(
        name="batteryTemp",
        min_value=22,
        max_value=45,
        precision=1,
        unit="°C",
        description="Pack temperature",
    ),
)


def build_vehicle_payload() -> dict[str, float]:
    return build_payload_from_specs(VEHICLE_MEASUREMENTS)


def create_simulator() -> TelemetrySimulator:
    # Default id matches the meter simulator; analytics pairs them by identity
    config = SimulatorConfig(
        device_id=os.getenv("VEHICLE_ID", "VEH-001"),
        id_field="vehicleId",
        endpoint="vehicle",
        interval_seconds=int(os.getenv("TELEMETRY_INTERVAL_SECONDS", "60")),
    )
    return TelemetrySimulator(config, build_vehicle_payload)


def main() -> None:
    create_simulator().run_forever()


if __name__ == "__main__":
    main()
