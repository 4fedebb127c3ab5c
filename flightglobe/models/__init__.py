"""
Domain models for FlightGlobe.

In-memory only: tracked state lives for the lifetime of the process.
"""

from flightglobe.models.flight_entity import (
    FlightEntity,
    HistoryPoint,
    format_altitude,
    format_heading,
    format_speed,
    format_time,
)

__all__ = [
    'FlightEntity',
    'HistoryPoint',
    'format_altitude',
    'format_heading',
    'format_speed',
    'format_time',
]
