"""
FlightEntity model - persistent state of a tracked aircraft.

One entity per ICAO24 address, created on first sighting and updated on
every later sighting. Each entity carries a bounded position history that
backs the selection trail.

Design notes:
- History is a FIFO ring (deque with maxlen), oldest points drop first
- Positions are scene coordinates, not lat/lon, since the trail is drawn
  directly in scene space
- Display helpers convert SI units for the detail panel
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Deque, List

import numpy as np

from flightglobe.config import config

METERS_TO_FEET = 3.28084
MPS_TO_KNOTS = 1.94384

PLACEHOLDER = '–'


@dataclass(frozen=True)
class HistoryPoint:
    """One observed scene position and the wall-clock time it was recorded."""
    position: np.ndarray
    timestamp: float


@dataclass
class FlightEntity:
    """
    Tracked aircraft.

    Telemetry fields keep the units of the feed: altitude in meters,
    velocity in m/s, heading in degrees, last_contact as a Unix timestamp.
    """
    icao24: str
    callsign: Optional[str] = None
    origin_country: Optional[str] = None
    altitude: Optional[float] = None
    velocity: Optional[float] = None
    heading: Optional[float] = None
    last_contact: Optional[int] = None

    history: Deque[HistoryPoint] = field(
        default_factory=lambda: deque(maxlen=config.engine.history_capacity)
    )

    # Fetch generation of the most recent filter-passing sighting
    last_seen_generation: int = 0

    def __repr__(self) -> str:
        return f'<FlightEntity {self.icao24} {self.callsign or "?"} ({len(self.history)} pts)>'

    @property
    def positions(self) -> List[np.ndarray]:
        return [point.position for point in self.history]

    @property
    def latest_position(self) -> Optional[np.ndarray]:
        if not self.history:
            return None
        return self.history[-1].position

    # -------------------------------------------------------------------------
    # Display helpers - convert to human-friendly units
    # -------------------------------------------------------------------------

    @property
    def display_callsign(self) -> str:
        return self.callsign or 'Unknown'

    @property
    def display_country(self) -> str:
        return self.origin_country or 'Unknown'

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict for API responses."""
        return {
            'icao24': self.icao24,
            'callsign': self.callsign,
            'origin_country': self.origin_country,
            'telemetry': {
                'altitude_m': self.altitude,
                'velocity_mps': self.velocity,
                'heading': self.heading,
            },
            'last_contact': self.last_contact,
            'history_points': len(self.history),
        }


# -------------------------------------------------------------------------
# Formatting helpers for the detail record
# -------------------------------------------------------------------------

def _is_missing(value: Optional[float]) -> bool:
    return value is None or value != value


def format_altitude(meters: Optional[float]) -> str:
    """Altitude in feet, e.g. '32808 ft'."""
    if _is_missing(meters):
        return PLACEHOLDER
    return f'{meters * METERS_TO_FEET:.0f} ft'


def format_speed(mps: Optional[float]) -> str:
    """Ground speed in knots, e.g. '486 kts'."""
    if _is_missing(mps):
        return PLACEHOLDER
    return f'{mps * MPS_TO_KNOTS:.0f} kts'


def format_heading(degrees: Optional[float]) -> str:
    """Heading in whole degrees, e.g. '90°'."""
    if _is_missing(degrees):
        return PLACEHOLDER
    return f'{degrees:.0f}°'


def format_time(epoch: Optional[int]) -> str:
    """Unix timestamp as a UTC time of day, e.g. '14:03:27'."""
    if not epoch:
        return PLACEHOLDER
    return datetime.fromtimestamp(epoch, tz=timezone.utc).strftime('%H:%M:%S')
