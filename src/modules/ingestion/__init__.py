"""
Ingestion Module - Dual-path telemetry ingest (history + live status).
"""
from src.modules.ingestion.router import router
from src.modules.ingestion.service import IngestionService, parse_event

__all__ = ["IngestionService", "parse_event", "router"]
