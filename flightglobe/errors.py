"""
Exception types for FlightGlobe.

Per-source failures are recovered by the fetcher, which falls through to
the next source. Only AllSourcesFailed reaches the engine, and even that is
reflected in the feed status rather than propagated to consumers.
"""

from typing import List, Optional


class TelemetryError(Exception):
    """Base class for telemetry feed failures."""


class SourceError(TelemetryError):
    """A single source failed during one fetch attempt."""

    kind = 'source_error'

    def __init__(self, source: str, message: str, status_code: Optional[int] = None):
        super().__init__(f'{source}: {message}')
        self.source = source
        self.status_code = status_code


class SourceTimeout(SourceError):
    """No complete response arrived within the attempt window."""

    kind = 'timeout'


class SourceBadResponse(SourceError):
    """Non-success status or a body that is not a JSON snapshot."""

    kind = 'bad_response'


class SourceUnreachable(SourceError):
    """Connection-level failure (DNS, refused connection, TLS)."""

    kind = 'unreachable'


class AllSourcesFailed(TelemetryError):
    """Every configured source failed in one cycle."""

    kind = 'all_sources_failed'

    def __init__(self, errors: List[SourceError]):
        summary = '; '.join(str(e) for e in errors) or 'no sources configured'
        super().__init__(f'All telemetry sources failed: {summary}')
        self.errors = errors


class MalformedRecord(ValueError):
    """
    A telemetry row that cannot be tracked.

    Raised only while normalizing a single row; callers drop the row and
    count it instead of surfacing the error.
    """


class InvalidFilterError(ValueError):
    """Filter criteria input could not be interpreted."""
