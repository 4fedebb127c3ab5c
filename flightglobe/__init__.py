"""
FlightGlobe Backend Package.

Live aircraft tracking engine for a 3D globe, served over Flask.

Modules:
    api/         REST endpoints for instance slots, selection, filters and status
    models/      In-memory flight entity model and display formatting
    ingestion/   Multi-source telemetry fetcher and background refresh scheduler
    tracking/    Filters, projection, entity store, instance table, selection
    errors.py    Telemetry and filter exception types
    config.py    Centralized configuration from environment variables
"""

__version__ = '1.0.0'
