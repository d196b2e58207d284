"""Fleet telemetry ingest and analytics service."""
