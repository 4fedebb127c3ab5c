"""
Instance table - capacity-bounded slot assignment for the renderer.

Every rebuild discards the previous table and scans the batch in order:
records without coordinates or failing the filters are skipped, each
survivor is projected, upserted into the entity store and given the next
free slot. Scanning stops once the table is full.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional, List, Sequence, Tuple

import numpy as np

from flightglobe.config import config
from flightglobe.ingestion.telemetry_client import RawRecord
from flightglobe.tracking.entity_store import EntityStore
from flightglobe.tracking.filters import FilterCriteria, has_coordinates, passes
from flightglobe.tracking.projection import project, orient, compose

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstanceSlot:
    """One rendering slot for the current cycle."""
    index: int
    icao24: str
    position: np.ndarray
    orientation: np.ndarray

    def to_dict(self) -> dict:
        return {
            'slot': self.index,
            'icao24': self.icao24,
            'position': [round(float(v), 6) for v in self.position],
            'orientation': [round(float(v), 6) for v in self.orientation],
        }


@dataclass(frozen=True)
class RebuildResult:
    """Outcome counts for one rebuild."""
    occupied: int
    surviving: int
    dropped_malformed: int = 0
    filtered_out: int = 0
    truncated: bool = False


class InstanceTable:
    """Slot index -> entity mapping, rebuilt wholesale each cycle."""

    def __init__(self, capacity: int = None):
        self.capacity = capacity or config.engine.max_slots
        self._slots: List[InstanceSlot] = []

    @property
    def size(self) -> int:
        return len(self._slots)

    def __len__(self) -> int:
        return len(self._slots)

    @property
    def slots(self) -> Tuple[InstanceSlot, ...]:
        return tuple(self._slots)

    def identifier_at(self, slot_index: int) -> Optional[str]:
        """Identifier occupying a slot, or None if the slot is empty."""
        if not isinstance(slot_index, int) or isinstance(slot_index, bool):
            return None
        if 0 <= slot_index < len(self._slots):
            return self._slots[slot_index].icao24
        return None

    def transforms(self) -> List[Tuple[int, np.ndarray, np.ndarray]]:
        """Ordered (slot, position, orientation) triples."""
        return [(slot.index, slot.position, slot.orientation) for slot in self._slots]

    def matrices(self) -> np.ndarray:
        """Instance matrices, shape (size, 4, 4)."""
        if not self._slots:
            return np.zeros((0, 4, 4))
        return np.stack([compose(slot.position, slot.orientation) for slot in self._slots])

    def rebuild(
        self,
        batch: Sequence[RawRecord],
        criteria: FilterCriteria,
        store: EntityStore,
        timestamp: Optional[float] = None,
        generation: Optional[int] = None,
    ) -> RebuildResult:
        """
        Replace the table from a raw batch.

        Entity store mutations happen in batch order, one per surviving
        record. Returns counts for the rebuild.
        """
        timestamp = timestamp if timestamp is not None else time.time()
        slots: List[InstanceSlot] = []
        malformed = 0
        filtered = 0
        truncated = False

        for record in batch:
            if len(slots) >= self.capacity:
                truncated = True
                break

            if record is None or not has_coordinates(record):
                malformed += 1
                continue
            if not passes(record, criteria):
                filtered += 1
                continue

            position = project(record.latitude, record.longitude, record.altitude_m)
            orientation = orient(position, record.heading)

            store.upsert(
                record.icao24,
                {
                    'callsign': record.callsign,
                    'origin_country': record.origin_country,
                    'altitude': record.altitude_m,
                    'velocity': record.velocity,
                    'heading': record.heading,
                    'last_contact': record.contact_time,
                },
                position,
                timestamp,
                generation=generation,
            )

            slots.append(InstanceSlot(
                index=len(slots),
                icao24=record.icao24,
                position=position,
                orientation=orientation,
            ))

        self._slots = slots

        if truncated:
            logger.warning(f'Instance table full at {self.capacity} slots, dropping remaining records')

        logger.debug(
            f'Rebuilt instance table: {len(slots)} slots, '
            f'{filtered} filtered, {malformed} without coordinates'
        )

        return RebuildResult(
            occupied=len(slots),
            surviving=len(slots),
            dropped_malformed=malformed,
            filtered_out=filtered,
            truncated=truncated,
        )
