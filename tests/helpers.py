"""Telemetry row builders and a scripted fetcher for tests."""

from typing import Optional

from flightglobe.errors import AllSourcesFailed, SourceTimeout
from flightglobe.ingestion.telemetry_client import FetchResult, RawRecord, TelemetrySource


def make_row(
    icao24: str = 'abc123',
    callsign: Optional[str] = 'UAL100 ',
    origin_country: Optional[str] = 'United States',
    lat: Optional[float] = 40.0,
    lon: Optional[float] = -74.0,
    velocity: Optional[float] = 250.0,
    heading: Optional[float] = 90.0,
    baro_altitude: Optional[float] = None,
    geo_altitude: Optional[float] = 10000.0,
    last_contact: Optional[int] = 1700000000,
    time_position: Optional[int] = 1699999995,
) -> list:
    """Positional snapshot row, indices as served by the feed."""
    return [
        icao24, callsign, origin_country, time_position, last_contact,
        lon, lat, None, False, velocity, heading, None, None,
        baro_altitude, geo_altitude, None, False,
    ]


def make_record(**kwargs) -> RawRecord:
    return RawRecord.from_array(make_row(**kwargs))


class FakeFetcher:
    """Fetcher stand-in that replays queued outcomes."""

    def __init__(self):
        self.sources = [TelemetrySource(url='https://feed.test/states/all', label='OpenSky')]
        self.outcomes = []
        self.calls = 0

    def queue_batch(self, rows, label: str = 'OpenSky') -> None:
        records = [RawRecord.parse(row) for row in rows]
        source = TelemetrySource(url='https://feed.test/states/all', label=label)
        self.outcomes.append(FetchResult(source=source, records=records, total=len(rows)))

    def queue_failure(self) -> None:
        self.outcomes.append(AllSourcesFailed([
            SourceTimeout('https://feed.test/states/all', 'no response within 9s'),
        ]))

    def fetch(self) -> FetchResult:
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def stats(self) -> dict:
        return {'sources': ['OpenSky'], 'attempts': self.calls}
