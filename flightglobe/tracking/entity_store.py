"""
Entity store - keyed aircraft state with bounded history.

Upserts treat each refresh like an append to a time series:
- Latest attributes overwrite the previous ones
- Every sighting appends one history point, oldest evicted past capacity
- Re-evaluating the same snapshot (a filter change) never appends twice
"""

import logging
from collections import deque
from typing import Optional, Dict, Iterator, List

import numpy as np

from flightglobe.config import config
from flightglobe.models.flight_entity import FlightEntity, HistoryPoint

logger = logging.getLogger(__name__)


class EntityStore:
    """In-memory store of tracked aircraft keyed by ICAO24."""

    def __init__(self, history_capacity: int = None):
        self.history_capacity = history_capacity or config.engine.history_capacity
        self._entities: Dict[str, FlightEntity] = {}

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[FlightEntity]:
        return iter(list(self._entities.values()))

    def __contains__(self, icao24: str) -> bool:
        return self.contains(icao24)

    def get(self, icao24: str) -> Optional[FlightEntity]:
        if not icao24:
            return None
        return self._entities.get(icao24.strip().lower())

    def contains(self, icao24: str) -> bool:
        return self.get(icao24) is not None

    def upsert(
        self,
        icao24: str,
        attributes: dict,
        position: np.ndarray,
        timestamp: float,
        generation: Optional[int] = None,
    ) -> FlightEntity:
        """
        Create or update an entity and record its position.

        Args:
            icao24: Entity identifier (normalized to lowercase)
            attributes: callsign, origin_country, altitude, velocity,
                heading, last_contact
            position: Scene position for this sighting
            timestamp: Wall-clock time of the sighting
            generation: Snapshot generation; a repeat of the entity's last
                generation updates attributes without a new history point
        """
        key = icao24.strip().lower()
        entity = self._entities.get(key)
        if entity is None:
            entity = FlightEntity(
                icao24=key,
                history=deque(maxlen=self.history_capacity),
            )
            self._entities[key] = entity

        entity.callsign = attributes.get('callsign')
        entity.origin_country = attributes.get('origin_country')
        entity.altitude = attributes.get('altitude')
        entity.velocity = attributes.get('velocity')
        entity.heading = attributes.get('heading')
        entity.last_contact = attributes.get('last_contact')

        if generation is not None and entity.history and entity.last_seen_generation == generation:
            return entity

        entity.history.append(HistoryPoint(position=np.array(position, dtype=float), timestamp=timestamp))
        if generation is not None:
            entity.last_seen_generation = generation

        return entity

    def remove(self, icao24: str) -> bool:
        return self._entities.pop(icao24.strip().lower(), None) is not None

    def evict_stale(self, generation: int, max_missed: int) -> List[str]:
        """
        Drop entities not sighted for `max_missed` generations.

        max_missed <= 0 disables eviction. Returns the evicted identifiers.
        """
        if max_missed <= 0:
            return []

        stale = [
            key for key, entity in self._entities.items()
            if generation - entity.last_seen_generation >= max_missed
        ]
        for key in stale:
            del self._entities[key]

        if stale:
            logger.info(f'Evicted {len(stale)} entities unseen for {max_missed}+ cycles')

        return stale

    def clear(self) -> None:
        self._entities.clear()
