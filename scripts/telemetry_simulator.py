"""Reusable telemetry simulator primitives for the ingestion API."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import os
import random
import threading
import time
from typing import Any, Callable, Dict, Optional, Sequence

import requests


PayloadBuilder = Callable[[], Dict[str, Any]]


@dataclass(frozen=True, slots=True)
class MeasurementSpec:
    """Definition of a single reading in a telemetry payload."""

    name: str
    min_value: float
    max_value: float
    precision: int = 2
    unit: str | None = None
    description: str | None = None

    def sample(self) -> float:
        value = random.uniform(self.min_value, self.max_value)
        if self.precision == 0:
            return int(round(value))
        return round(value, self.precision)


def build_payload_from_specs(specs: Sequence[MeasurementSpec]) -> Dict[str, float]:
    """Generate readings using the provided measurement specs."""

    return {spec.name: spec.sample() for spec in specs}


def _default_base_url() -> str:
    return os.getenv("TELEMETRY_API_URL", "http://localhost:8000/v1/ingestion")


@dataclass(slots=True)
class SimulatorConfig:
    """Configuration for a single simulated device."""

    device_id: str
    id_field: str
    endpoint: str
    interval_seconds: int = 60
    base_url: str = field(default_factory=_default_base_url)

    @property
    def api_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.endpoint}"


class TelemetrySimulator:
    """Continuously sends randomized telemetry for one device."""

    def __init__(self, config: SimulatorConfig, payload_builder: PayloadBuilder) -> None:
        self.config = config
        self._payload_builder = payload_builder

    def build_payload(self) -> Dict[str, Any]:
        return {
            self.config.id_field: self.config.device_id,
            **self._payload_builder(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def send_payload(self, payload: Dict[str, Any]) -> None:
        response = requests.post(self.config.api_url, json=payload, timeout=10)
        if response.status_code >= 400:
            raise RuntimeError(
                f"Backend responded {response.status_code}: {response.text}"
            )

        print(
            f"[{time.strftime('%Y-%m-%d %H:%M:%S')}] {self.config.device_id} -> "
            + " ".join(f"{k}={v}" for k, v in payload.items() if k != self.config.id_field)
        )

    def run_forever(self, stop_event: Optional[threading.Event] = None) -> None:
        """Send payloads until interrupted or stop_event is set."""

        print(
            "Telemetry simulator started. Press CTRL+C to stop.\n"
            f"API_URL={self.config.api_url}\n"
            f"DEVICE_ID={self.config.device_id}\n"
            f"INTERVAL={self.config.interval_seconds}s"
        )

        while True:
            if stop_event and stop_event.is_set():
                break

            payload = self.build_payload()
            try:
                self.send_payload(payload)
            except (requests.RequestException, RuntimeError) as exc:
                print(f"Error sending telemetry for {self.config.device_id}: {exc}")

            if stop_event:
                if stop_event.wait(self.config.interval_seconds):
                    break
            else:
                time.sleep(self.config.interval_seconds)
