"""
Telemetry feed client.

Retrieves one snapshot batch per cycle from an ordered list of sources:
- The OpenSky /states/all endpoint first (optionally authenticated)
- Relay mirrors of the same endpoint as fallbacks
- A hard per-attempt deadline, after which the next source is tried

Snapshot row format (array indices):
0: icao24          - ICAO24 hex address
1: callsign        - Callsign (8 chars max, space padded)
2: origin_country  - Country of registration
3: time_position   - Unix timestamp of last position update
4: last_contact    - Unix timestamp of last message
5: longitude       - WGS84 longitude
6: latitude        - WGS84 latitude
7: (unused)
8: (unused)
9: velocity        - Ground speed (m/s)
10: heading        - Track angle (degrees, 0=north)
11: (unused)
12: (unused)
13: baro_altitude  - Barometric altitude (meters)
14: geo_altitude   - Geometric altitude (meters)
15+: (unused)
"""

import json
import logging
import math
import threading
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from typing import Optional, List, Any, Mapping, Sequence

import requests
from requests.auth import HTTPBasicAuth

from flightglobe.config import config, OPENSKY_STATES_URL
from flightglobe.errors import (
    AllSourcesFailed,
    MalformedRecord,
    SourceBadResponse,
    SourceError,
    SourceTimeout,
    SourceUnreachable,
)

logger = logging.getLogger(__name__)

RECORD_FIELDS = 15

CHUNK_SIZE = 1024


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    # NaN and +/-Infinity are valid JSON numbers for json.loads
    if not math.isfinite(number):
        return None
    return number


def _as_int(value: Any) -> Optional[int]:
    number = _as_float(value)
    return int(number) if number is not None else None


@dataclass(frozen=True)
class RawRecord:
    """
    One telemetry row for one aircraft in one snapshot.

    Normalizes the positional array format into a named record. All values
    except the identifier may be None if not reported by the aircraft.
    """
    icao24: str
    callsign: Optional[str] = None
    origin_country: Optional[str] = None
    time_position: Optional[int] = None
    last_contact: Optional[int] = None
    longitude: Optional[float] = None
    latitude: Optional[float] = None
    velocity: Optional[float] = None
    heading: Optional[float] = None
    baro_altitude: Optional[float] = None
    geo_altitude: Optional[float] = None

    @classmethod
    def from_array(cls, arr: Sequence[Any]) -> 'RawRecord':
        """
        Parse a positional snapshot row.

        Short rows are padded with None so that any missing trailing field
        reads as "not reported". Raises MalformedRecord if the row has no
        usable identifier.
        """
        if isinstance(arr, (str, bytes)) or not isinstance(arr, Sequence):
            raise MalformedRecord(f'Unexpected row type: {type(arr).__name__}')

        row = list(arr[:RECORD_FIELDS])
        row.extend([None] * (RECORD_FIELDS - len(row)))

        icao24 = _clean_text(row[0])
        if not icao24:
            raise MalformedRecord('Row has no identifier')

        return cls(
            icao24=icao24.lower(),
            callsign=_clean_text(row[1]),
            origin_country=_clean_text(row[2]),
            time_position=_as_int(row[3]),
            last_contact=_as_int(row[4]),
            longitude=_as_float(row[5]),
            latitude=_as_float(row[6]),
            velocity=_as_float(row[9]),
            heading=_as_float(row[10]),
            baro_altitude=_as_float(row[13]),
            geo_altitude=_as_float(row[14]),
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> 'RawRecord':
        """Parse a row that already carries named fields."""
        icao24 = _clean_text(data.get('icao24', data.get('identifier')))
        if not icao24:
            raise MalformedRecord('Row has no identifier')

        return cls(
            icao24=icao24.lower(),
            callsign=_clean_text(data.get('callsign')),
            origin_country=_clean_text(data.get('origin_country')),
            time_position=_as_int(data.get('time_position')),
            last_contact=_as_int(data.get('last_contact')),
            longitude=_as_float(data.get('longitude')),
            latitude=_as_float(data.get('latitude')),
            velocity=_as_float(data.get('velocity')),
            heading=_as_float(data.get('heading', data.get('true_track'))),
            baro_altitude=_as_float(data.get('baro_altitude')),
            geo_altitude=_as_float(data.get('geo_altitude')),
        )

    @classmethod
    def parse(cls, row: Any) -> 'RawRecord':
        if isinstance(row, RawRecord):
            return row
        if isinstance(row, Mapping):
            return cls.from_mapping(row)
        return cls.from_array(row)

    def has_position(self) -> bool:
        """Check if this record can be projected (coordinates present and in range)."""
        if self.latitude is None or self.longitude is None:
            return False
        return -90.0 <= self.latitude <= 90.0 and -180.0 <= self.longitude <= 180.0

    @property
    def altitude_m(self) -> float:
        """Geometric altitude if reported, else barometric, else 0."""
        if self.geo_altitude is not None:
            return self.geo_altitude
        if self.baro_altitude is not None:
            return self.baro_altitude
        return 0.0

    @property
    def contact_time(self) -> Optional[int]:
        """Last contact, falling back to the last position timestamp."""
        return self.last_contact or self.time_position


def parse_states(data: Any) -> tuple:
    """
    Normalize a snapshot body into RawRecords.

    Returns (records, total_rows, skipped_rows). An absent or non-list
    `states` member is an empty batch.
    """
    states_raw = data.get('states') if isinstance(data, Mapping) else None
    if not isinstance(states_raw, list):
        return [], 0, 0

    records = []
    skipped = 0
    for row in states_raw:
        try:
            records.append(RawRecord.parse(row))
        except MalformedRecord as e:
            skipped += 1
            logger.debug(f'Dropping row: {e}')

    return records, len(states_raw), skipped


@dataclass(frozen=True)
class TelemetrySource:
    """One endpoint in the fallback order."""
    url: str
    label: str
    auth: Optional[HTTPBasicAuth] = field(default=None, compare=False, repr=False)


@dataclass
class FetchResult:
    """A successful fetch: the batch plus where it came from."""
    source: TelemetrySource
    records: List[RawRecord]
    total: int
    skipped: int = 0
    api_time: Optional[int] = None
    elapsed: float = 0.0


class TelemetryFetcher:
    """
    Multi-source snapshot fetcher.

    Handles:
    - Ordered fallback across sources, each tried at most once per cycle
    - Per-attempt wall-clock deadline (streamed body, abandoned when late)
    - Classification of failures into timeout / bad response / unreachable
    """

    def __init__(
        self,
        sources: Sequence[TelemetrySource],
        timeout: float = 9.0,
        session: Optional[requests.Session] = None,
    ):
        self.sources = list(sources)
        self.timeout = timeout
        self.session = session or requests.Session()

        # Attempts run on worker threads so the caller can give up on a
        # socket that keeps trickling bytes
        self._executor = ThreadPoolExecutor(
            max_workers=max(4, 2 * len(self.sources)),
            thread_name_prefix='flightglobe-fetch',
        )

        self.last_error: Optional[AllSourcesFailed] = None
        self._attempts = 0
        self._failures = 0

    @classmethod
    def from_config(cls) -> 'TelemetryFetcher':
        """Create fetcher from application configuration."""
        telemetry = config.telemetry
        auth = None
        if telemetry.is_authenticated:
            auth = HTTPBasicAuth(telemetry.username, telemetry.password)
            logger.info('OpenSky source configured with authentication')

        sources = [
            build_source(url, auth=auth if url == OPENSKY_STATES_URL else None)
            for url in telemetry.sources
        ]
        return cls(sources, timeout=telemetry.fetch_timeout)

    def _download(self, source: TelemetrySource, deadline: float, attempt: dict) -> bytes:
        """
        Read one response body on a worker thread.

        Stops early once the attempt is cancelled or the deadline passes.
        """
        cancelled = attempt['cancelled']

        try:
            response = self.session.get(
                source.url,
                auth=source.auth,
                timeout=self.timeout,
                stream=True,
            )
        except requests.exceptions.Timeout:
            raise SourceTimeout(source.url, f'no response within {self.timeout:.0f}s')
        except requests.exceptions.RequestException as e:
            raise SourceUnreachable(source.url, str(e))

        attempt['response'] = response
        try:
            if not 200 <= response.status_code < 300:
                raise SourceBadResponse(
                    source.url,
                    f'HTTP {response.status_code}',
                    status_code=response.status_code,
                )

            chunks = []
            try:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if cancelled.is_set() or time.monotonic() > deadline:
                        raise SourceTimeout(source.url, f'body not complete within {self.timeout:.0f}s')
                    chunks.append(chunk)
            except requests.exceptions.RequestException as e:
                if cancelled.is_set() or time.monotonic() > deadline:
                    raise SourceTimeout(source.url, f'body not complete within {self.timeout:.0f}s')
                raise SourceUnreachable(source.url, f'connection dropped: {e}')
        finally:
            response.close()

        return b''.join(chunks)

    def _get_json(self, source: TelemetrySource) -> Any:
        """
        Perform a single attempt against one source.

        The whole attempt (connect, headers, body) is bounded by
        self.timeout of wall-clock time. Raises a SourceError subclass on
        any failure.
        """
        deadline = time.monotonic() + self.timeout
        attempt = {'cancelled': threading.Event(), 'response': None}

        future = self._executor.submit(self._download, source, deadline, attempt)
        try:
            body = future.result(timeout=self.timeout)
        except FutureTimeout:
            attempt['cancelled'].set()
            response = attempt['response']
            if response is not None:
                response.close()
            raise SourceTimeout(source.url, f'no complete response within {self.timeout:.0f}s')

        try:
            data = json.loads(body)
        except ValueError:
            raise SourceBadResponse(source.url, 'body is not valid JSON')

        if not isinstance(data, dict):
            raise SourceBadResponse(source.url, 'body is not a JSON object')

        return data

    def fetch(self) -> FetchResult:
        """
        Fetch one snapshot batch.

        Tries each source in order and returns the first success.

        Raises:
            AllSourcesFailed if every source failed this cycle
        """
        errors: List[SourceError] = []

        for source in self.sources:
            self._attempts += 1
            started = time.monotonic()
            logger.debug(f'Fetching states from {source.label}: {source.url}')

            try:
                data = self._get_json(source)
            except SourceError as e:
                self._failures += 1
                errors.append(e)
                logger.warning(f'Flight fetch failed ({source.label}, {e.kind}): {e}')
                continue

            records, total, skipped = parse_states(data)
            elapsed = time.monotonic() - started
            logger.info(
                f'Received {total} state vectors from {source.label} '
                f'in {elapsed:.2f}s ({skipped} unusable rows)'
            )

            self.last_error = None
            return FetchResult(
                source=source,
                records=records,
                total=total,
                skipped=skipped,
                api_time=_as_int(data.get('time')),
                elapsed=elapsed,
            )

        failure = AllSourcesFailed(errors)
        self.last_error = failure
        logger.error(str(failure))
        raise failure

    @property
    def stats(self) -> dict:
        """Get fetcher statistics."""
        return {
            'sources': [source.label for source in self.sources],
            'attempts': self._attempts,
            'failures': self._failures,
            'timeout_seconds': self.timeout,
            'last_error': str(self.last_error) if self.last_error else None,
        }


def build_source(url: str, auth: Optional[HTTPBasicAuth] = None) -> TelemetrySource:
    """Label a URL: the OpenSky endpoint itself, or a relay in front of it."""
    label = 'OpenSky' if url == OPENSKY_STATES_URL else 'CORS relay'
    return TelemetrySource(url=url, label=label, auth=auth)
