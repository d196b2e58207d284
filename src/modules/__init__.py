"""
Fleet Telemetry Backend Modules

- telemetry: history stores and live-status projections (meter, vehicle)
- ingestion: dual-path ingest coordinator
- analytics: windowed efficiency analytics and vehicle/meter correlation
"""
