"""
Filter pipeline - pure predicates over a single telemetry record.

A record must pass every active rule:
- airline: callsign starts with the airline prefix
- search: "<callsign> <origin country>" contains the search text
- altitude: altitude in feet is at or below the ceiling

All comparisons are case-insensitive on trimmed text. Records without
coordinates are rejected before any rule is evaluated (see has_coordinates).
"""

from dataclasses import dataclass, replace
from typing import Any, Mapping

from flightglobe.config import config
from flightglobe.errors import InvalidFilterError
from flightglobe.ingestion.telemetry_client import RawRecord

METERS_TO_FEET = 3.28084

# Accepted option names, mapped to FilterCriteria fields
_OPTION_NAMES = {
    'altitudeCeilingFeet': 'altitude_ceiling_ft',
    'altitude_ceiling_ft': 'altitude_ceiling_ft',
    'altitude': 'altitude_ceiling_ft',
    'search': 'search',
    'airlinePrefix': 'airline_prefix',
    'airline_prefix': 'airline_prefix',
    'airline': 'airline_prefix',
}


def _normalize_text(value: Any) -> str:
    if value is None:
        return ''
    if not isinstance(value, str):
        raise InvalidFilterError(f'Expected text, got {type(value).__name__}')
    return value.strip().lower()


def _parse_ceiling(value: Any) -> float:
    if isinstance(value, bool):
        raise InvalidFilterError('Altitude ceiling must be a number')
    try:
        ceiling = float(value)
    except (TypeError, ValueError):
        raise InvalidFilterError(f'Altitude ceiling must be a number, got {value!r}')
    if ceiling != ceiling or ceiling < 0:
        raise InvalidFilterError('Altitude ceiling must be a non-negative number')
    return ceiling


@dataclass(frozen=True)
class FilterCriteria:
    """
    Current user constraints.

    Text fields are stored trimmed and lowercased so the predicates never
    re-normalize them per record.
    """
    altitude_ceiling_ft: float = config.filters.altitude_ceiling_ft
    search: str = config.filters.search
    airline_prefix: str = config.filters.airline_prefix

    def __post_init__(self):
        object.__setattr__(self, 'altitude_ceiling_ft', _parse_ceiling(self.altitude_ceiling_ft))
        object.__setattr__(self, 'search', _normalize_text(self.search))
        object.__setattr__(self, 'airline_prefix', _normalize_text(self.airline_prefix))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], base: 'FilterCriteria' = None) -> 'FilterCriteria':
        """
        Build criteria from user-facing option names.

        Options absent from `data` keep the value from `base` (or the
        defaults). Unknown option names are rejected.
        """
        changes = {}
        for key, value in data.items():
            field_name = _OPTION_NAMES.get(key)
            if field_name is None:
                raise InvalidFilterError(f'Unknown filter option: {key}')
            changes[field_name] = value

        return replace(base or cls(), **changes)

    def to_dict(self) -> dict:
        return {
            'altitudeCeilingFeet': self.altitude_ceiling_ft,
            'search': self.search,
            'airlinePrefix': self.airline_prefix,
        }


def altitude_feet(record: RawRecord) -> float:
    """Geometric altitude if present, else barometric, else 0, in feet."""
    return record.altitude_m * METERS_TO_FEET


def has_coordinates(record: RawRecord) -> bool:
    """Records without latitude or longitude cannot be projected."""
    return record.has_position()


def passes(record: RawRecord, criteria: FilterCriteria) -> bool:
    """Evaluate every filter rule against one record."""
    callsign = (record.callsign or '').strip().lower()

    if criteria.airline_prefix and not callsign.startswith(criteria.airline_prefix):
        return False

    if criteria.search:
        search_target = f'{callsign} {record.origin_country or ""}'.lower()
        if criteria.search not in search_target:
            return False

    return altitude_feet(record) <= criteria.altitude_ceiling_ft
