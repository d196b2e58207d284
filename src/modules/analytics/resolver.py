"""
Analytics Module - Vehicle to meter correlation.

Meter and vehicle streams are keyed by different identifiers and share no
foreign key. The analytics engine only talks to CorrelationResolver, so a
charger topology lookup can replace the identity mapping without touching it.
"""
from abc import ABC, abstractmethod
from collections.abc import Mapping

from src.core.config import Settings


class CorrelationResolver(ABC):
    """Maps a vehicle identifier to the meter feeding it."""

    @abstractmethod
    async def resolve_meter_for(self, vehicle_id: str) -> str:
        """Return the meter id whose AC consumption pairs with vehicle_id."""


class IdentityCorrelationResolver(CorrelationResolver):
    """meter id == vehicle id."""

    async def resolve_meter_for(self, vehicle_id: str) -> str:
        return vehicle_id


class MappingCorrelationResolver(CorrelationResolver):
    """Static vehicle -> meter table; unmapped vehicles fall back to identity."""

    def __init__(self, mapping: Mapping[str, str]):
        self._mapping = dict(mapping)

    async def resolve_meter_for(self, vehicle_id: str) -> str:
        return self._mapping.get(vehicle_id, vehicle_id)


def build_resolver(settings: Settings) -> CorrelationResolver:
    """Pick the resolver implied by configuration."""
    if settings.vehicle_meter_map:
        return MappingCorrelationResolver(settings.vehicle_meter_map)
    return IdentityCorrelationResolver()
