"""
Tracking engine - orchestrates one refresh cycle end to end.

This object owns all tracking state. Consumers only ever see immutable
snapshots; every mutation goes through one of the entry points below.

Cycle stages:
1. Fetch: pull one snapshot batch (multi-source fallback)
2. Rebuild: filter, project and upsert each record, assign slots
3. Evict: drop entities unseen for too many cycles
4. Revalidate: keep the selection consistent with the store
5. Status: publish feed health for the UI

User inputs (filter edits, picks) are applied synchronously. A filter edit
rebuilds immediately over the last batch without advancing the cycle.
"""

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional, List, Sequence, Tuple, Any

from flightglobe.config import config
from flightglobe.errors import AllSourcesFailed, MalformedRecord
from flightglobe.ingestion.telemetry_client import RawRecord, TelemetryFetcher
from flightglobe.tracking.entity_store import EntityStore
from flightglobe.tracking.filters import FilterCriteria
from flightglobe.tracking.instance_table import InstanceTable, InstanceSlot, RebuildResult
from flightglobe.tracking.selection import (
    SelectionController,
    DetailRecord,
    Trail,
    derive_detail,
    derive_trail,
)

logger = logging.getLogger(__name__)


class StatusTone(str, Enum):
    """Feed health tone shown next to the status message."""
    OK = 'ok'
    WARN = 'warn'
    ERROR = 'error'


@dataclass(frozen=True)
class FeedStatus:
    """Feed health signal consumed by the UI."""
    tone: StatusTone
    message: str
    source: Optional[str] = None
    error: Optional[str] = None
    updated_at: float = 0.0

    def to_dict(self) -> dict:
        return {
            'tone': self.tone.value,
            'message': self.message,
            'source': self.source,
            'error': self.error,
            'updated_at': self.updated_at,
        }


@dataclass(frozen=True)
class RefreshOutcome:
    """What one call to refresh() did."""
    ok: bool
    skipped: bool = False
    source: Optional[str] = None
    rebuild: Optional[RebuildResult] = None
    error: Optional[AllSourcesFailed] = None


@dataclass(frozen=True)
class EngineSnapshot:
    """
    Read-only view of the engine for renderers and API handlers.

    Valid until the next rebuild; holding on to it never blocks the engine.
    """
    slots: Tuple[InstanceSlot, ...]
    active_count: int
    total_records: int
    status: FeedStatus
    criteria: FilterCriteria
    selected: Optional[str]
    detail: Optional[DetailRecord]
    trail: Optional[Trail]
    generation: int
    entity_count: int


class TrackingEngine:
    """
    Live tracking engine.

    Wires the fetcher, filter pipeline, projector, entity store, instance
    table and selection controller into one explicit state object.
    """

    def __init__(
        self,
        fetcher: Optional[TelemetryFetcher] = None,
        criteria: Optional[FilterCriteria] = None,
        max_slots: Optional[int] = None,
        history_capacity: Optional[int] = None,
        max_missed_cycles: Optional[int] = None,
    ):
        self.fetcher = fetcher or TelemetryFetcher.from_config()
        self.criteria = criteria or FilterCriteria()
        self.max_missed_cycles = (
            max_missed_cycles if max_missed_cycles is not None
            else config.engine.max_missed_cycles
        )

        self.store = EntityStore(history_capacity=history_capacity)
        self.table = InstanceTable(capacity=max_slots)
        self.selection = SelectionController(self.store)

        self._batch: List[RawRecord] = []
        self._total_records = 0
        self._generation = 0
        self._status = FeedStatus(StatusTone.WARN, 'Connecting to OpenSky…', updated_at=time.time())

        # _lock guards state; _refresh_lock keeps refresh cycles from overlapping
        self._lock = threading.RLock()
        self._refresh_lock = threading.Lock()

        # Statistics
        self._refresh_count = 0
        self._failure_count = 0
        self._skipped_count = 0
        self._last_refresh_time: float = 0

    # -------------------------------------------------------------------------
    # Refresh cycle
    # -------------------------------------------------------------------------

    def refresh(self) -> RefreshOutcome:
        """
        Execute one fetch + rebuild cycle.

        Skipped if another cycle is still running. On total fetch failure
        the previous table, store and selection are left untouched.
        """
        if not self._refresh_lock.acquire(blocking=False):
            with self._lock:
                self._skipped_count += 1
            logger.warning('Refresh already in progress, skipping this tick')
            return RefreshOutcome(ok=False, skipped=True)

        try:
            self._set_status(StatusTone.WARN, 'Refreshing live flights…')

            try:
                result = self.fetcher.fetch()
            except AllSourcesFailed as e:
                self._failure_count += 1
                self._set_status(
                    StatusTone.ERROR,
                    'Live feed unavailable (auto-retrying)…',
                    error=e.kind,
                )
                return RefreshOutcome(ok=False, error=e)

            rebuild = self.apply_batch(
                result.records,
                source_label=result.source.label,
                total=result.total,
            )
            return RefreshOutcome(ok=True, source=result.source.label, rebuild=rebuild)

        finally:
            self._refresh_lock.release()

    def apply_batch(
        self,
        records: Sequence[Any],
        source_label: str = 'replay',
        total: Optional[int] = None,
    ) -> RebuildResult:
        """
        Make a batch the working snapshot and rebuild from it.

        Rows may be RawRecords, positional arrays or mappings; rows that
        cannot be parsed are dropped.
        """
        records = list(records)
        batch = []
        for row in records:
            try:
                batch.append(RawRecord.parse(row))
            except MalformedRecord as e:
                logger.debug(f'Dropping row: {e}')

        total = total if total is not None else len(records)

        with self._lock:
            self._batch = batch
            self._total_records = total
            self._generation += 1

            rebuild = self._rebuild()
            self.store.evict_stale(self._generation, self.max_missed_cycles)
            self.selection.on_rebuild_complete()

            self._refresh_count += 1
            self._last_refresh_time = time.time()

            visible = min(rebuild.occupied, total)
            if visible == 0:
                self._set_status(
                    StatusTone.WARN,
                    f'Live feed OK ({source_label}), but no flights pass current filters',
                    source=source_label,
                )
            else:
                self._set_status(
                    StatusTone.OK,
                    f'Live from {source_label}: {visible:,} active of {total:,}',
                    source=source_label,
                )

        logger.info(
            f'Cycle {self._generation}: {rebuild.occupied} active of {total} '
            f'from {source_label} ({len(self.store)} tracked)'
        )
        return rebuild

    def _rebuild(self) -> RebuildResult:
        return self.table.rebuild(
            self._batch,
            self.criteria,
            self.store,
            timestamp=time.time(),
            generation=self._generation,
        )

    def _set_status(
        self,
        tone: StatusTone,
        message: str,
        source: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        with self._lock:
            self._status = FeedStatus(tone, message, source=source, error=error, updated_at=time.time())

    # -------------------------------------------------------------------------
    # User inputs
    # -------------------------------------------------------------------------

    def set_filters(self, criteria: FilterCriteria) -> Optional[RebuildResult]:
        """Replace the filter criteria and rebuild over the last batch."""
        with self._lock:
            self.criteria = criteria
            logger.info(f'Filters updated: {criteria.to_dict()}')

            if self._generation == 0:
                return None

            rebuild = self._rebuild()
            self.selection.on_rebuild_complete()
            return rebuild

    def update_filters(self, **options) -> Optional[RebuildResult]:
        """Change individual filter options, e.g. update_filters(search='ual')."""
        with self._lock:
            criteria = FilterCriteria.from_mapping(options, base=self.criteria)
            return self.set_filters(criteria)

    def pick(self, slot_index: int) -> bool:
        """
        Focus whatever occupies a slot.

        No-op for unoccupied slots or slots whose entity is gone.
        """
        with self._lock:
            icao24 = self.table.identifier_at(slot_index)
            if icao24 is None:
                logger.debug(f'Pick on empty slot {slot_index}')
                return False
            return self.selection.focus(icao24)

    def focus(self, icao24: str) -> bool:
        with self._lock:
            return self.selection.focus(icao24)

    def clear_selection(self) -> None:
        with self._lock:
            self.selection.clear()

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    def snapshot(self) -> EngineSnapshot:
        with self._lock:
            return EngineSnapshot(
                slots=self.table.slots,
                active_count=self.table.size,
                total_records=self._total_records,
                status=self._status,
                criteria=self.criteria,
                selected=self.selection.selected,
                detail=self.selection.detail,
                trail=self.selection.trail,
                generation=self._generation,
                entity_count=len(self.store),
            )

    def describe(self, icao24: str) -> Optional[dict]:
        """Tracked state plus formatted detail for one aircraft, or None."""
        with self._lock:
            entity = self.store.get(icao24)
            if entity is None:
                return None
            result = entity.to_dict()
            result['detail'] = derive_detail(self.store, entity.icao24).to_dict()
            return result

    def history(self, icao24: str) -> Optional[dict]:
        """Retained history for one aircraft, oldest first, or None."""
        with self._lock:
            entity = self.store.get(icao24)
            if entity is None:
                return None
            trail = derive_trail(self.store, entity.icao24)
            return {
                'icao24': entity.icao24,
                'timestamps': [point.timestamp for point in entity.history],
                'positions': [[float(v) for v in point.position] for point in entity.history],
                'trail': trail.to_dict() if trail else None,
            }

    @property
    def status(self) -> FeedStatus:
        with self._lock:
            return self._status

    @property
    def stats(self) -> dict:
        """Get engine statistics."""
        with self._lock:
            return {
                'generation': self._generation,
                'refresh_count': self._refresh_count,
                'failure_count': self._failure_count,
                'skipped_count': self._skipped_count,
                'last_refresh_time': self._last_refresh_time,
                'active_count': self.table.size,
                'tracked_entities': len(self.store),
                'capacity': self.table.capacity,
            }
