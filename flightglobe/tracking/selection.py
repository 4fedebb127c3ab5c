"""
Selection controller - focus tracking for a single aircraft.

Holds at most one selected identifier and derives from the entity store:
- a trail polyline from the retained history (needs 2+ points)
- a detail record with display-formatted telemetry

The selection never outlives its entity: after each rebuild, a selection
whose entity has left the store is cleared.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from flightglobe.models.flight_entity import (
    format_altitude,
    format_heading,
    format_speed,
    format_time,
)
from flightglobe.tracking.entity_store import EntityStore

logger = logging.getLogger(__name__)

ROUTE_UNAVAILABLE = 'Route unavailable in OpenSky public feed'


@dataclass(frozen=True)
class Trail:
    """Ordered history polyline plus a marker at the latest position."""
    points: Tuple[np.ndarray, ...]
    timestamps: Tuple[float, ...]

    @property
    def marker(self) -> np.ndarray:
        return self.points[-1]

    def to_dict(self) -> dict:
        return {
            'points': [[round(float(v), 6) for v in p] for p in self.points],
            'timestamps': list(self.timestamps),
            'marker': [round(float(v), 6) for v in self.marker],
        }


@dataclass(frozen=True)
class DetailRecord:
    """Display-ready fields for the focused aircraft."""
    icao24: str
    callsign: str
    route: str
    origin_country: str
    aircraft: str
    altitude: str
    speed: str
    heading: str
    last_contact: str

    def to_dict(self) -> dict:
        return {
            'icao24': self.icao24,
            'callsign': self.callsign,
            'route': self.route,
            'origin_country': self.origin_country,
            'aircraft': self.aircraft,
            'altitude': self.altitude,
            'speed': self.speed,
            'heading': self.heading,
            'last_contact': self.last_contact,
        }


def derive_trail(store: EntityStore, icao24: str) -> Optional[Trail]:
    """Trail for an entity, or None with fewer than two history points."""
    entity = store.get(icao24)
    if entity is None or len(entity.history) < 2:
        return None
    return Trail(
        points=tuple(point.position for point in entity.history),
        timestamps=tuple(point.timestamp for point in entity.history),
    )


def derive_detail(store: EntityStore, icao24: str) -> Optional[DetailRecord]:
    entity = store.get(icao24)
    if entity is None:
        return None
    return DetailRecord(
        icao24=entity.icao24,
        callsign=entity.display_callsign,
        route=ROUTE_UNAVAILABLE,
        origin_country=entity.display_country,
        aircraft='N/A',
        altitude=format_altitude(entity.altitude),
        speed=format_speed(entity.velocity),
        heading=format_heading(entity.heading),
        last_contact=format_time(entity.last_contact),
    )


class SelectionController:
    """Tracks the focused aircraft against an entity store."""

    def __init__(self, store: EntityStore):
        self.store = store
        self.selected: Optional[str] = None
        self.trail: Optional[Trail] = None
        self.detail: Optional[DetailRecord] = None

    def focus(self, icao24: str) -> bool:
        """
        Focus an aircraft if the store knows it.

        Returns True if the selection was set, False (no-op) otherwise.
        """
        entity = self.store.get(icao24) if icao24 else None
        if entity is None:
            logger.debug(f'Ignoring focus on unknown aircraft {icao24!r}')
            return False

        self.selected = entity.icao24
        self._derive()
        logger.info(f'Focused {entity.icao24} ({entity.display_callsign})')
        return True

    def clear(self) -> None:
        self.selected = None
        self.trail = None
        self.detail = None

    def on_rebuild_complete(self) -> None:
        """Revalidate the selection after an instance table rebuild."""
        if self.selected is None:
            return

        if not self.store.contains(self.selected):
            logger.info(f'Selected aircraft {self.selected} no longer tracked, clearing selection')
            self.clear()
            return

        self._derive()

    def _derive(self) -> None:
        self.trail = derive_trail(self.store, self.selected)
        self.detail = derive_detail(self.store, self.selected)
