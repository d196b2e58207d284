"""Telemetry simulator for a grid-side AC meter."""
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


GRID_METER_MEASUREMENTS: tuple[MeasurementSpec, ...] = (
    MeasurementSpec(
        name="kwhConsumedAc",
        min_value=0.8,
        max_value=1.3,
        precision=3,
        unit="kWh",
        description="AC energy drawn since the previous reading (~60 kW charger)",
    ),
    MeasurementSpec(
        name="voltage",
        min_value=225,
        max_value=240,
        precision=1,
        unit="V",
        description="Line voltage",
    ),
)


def build_grid_meter_payload() -> dict[str, float]:
    return build_payload_from_specs(GRID_METER_MEASUREMENTS)


def create_simulator() -> TelemetrySimulator:
    config = SimulatorConfig(
        device_id=os.getenv("METER_ID", "VEH-001"),
        id_field="meterId",
        endpoint="meter",
        interval_seconds=int(os.getenv("TELEMETRY_INTERVAL_SECONDS", "60")),
    )
    return TelemetrySimulator(config, build_grid_meter_payload)


def main() -> None:
    create_simulator().run_forever()


if __name__ == "__main__":
    main()
