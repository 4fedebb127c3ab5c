"""
Data ingestion module for FlightGlobe.

Handles fetching telemetry snapshots with source fallback and scheduling
the periodic refresh of the tracking engine.
"""

from flightglobe.ingestion.telemetry_client import TelemetryFetcher, RawRecord
from flightglobe.ingestion.pipeline import RefreshScheduler

__all__ = ['TelemetryFetcher', 'RawRecord', 'RefreshScheduler']
