"""
Configuration management for FlightGlobe.

Loads settings from environment variables with sensible defaults.
All configuration is centralized here to avoid magic strings scattered
throughout the codebase.
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

load_dotenv()


OPENSKY_STATES_URL = 'https://opensky-network.org/api/states/all'

DEFAULT_SOURCES = (
    OPENSKY_STATES_URL,
    'https://corsproxy.io/?https://opensky-network.org/api/states/all',
    'https://api.allorigins.win/raw?url=https://opensky-network.org/api/states/all',
)


def _parse_sources(value: str) -> Tuple[str, ...]:
    """Parse comma-separated source URLs, or fall back to the defaults."""
    if not value:
        return DEFAULT_SOURCES
    sources = tuple(url.strip() for url in value.split(',') if url.strip())
    return sources or DEFAULT_SOURCES


@dataclass(frozen=True)
class TelemetryConfig:
    """Telemetry feed configuration."""
    sources: Tuple[str, ...] = _parse_sources(os.getenv('TELEMETRY_SOURCES', ''))
    fetch_timeout: float = float(os.getenv('FETCH_TIMEOUT_SECONDS', '9'))
    refresh_interval: float = float(os.getenv('REFRESH_INTERVAL_SECONDS', '20'))
    username: Optional[str] = os.getenv('OPENSKY_USERNAME') or None
    password: Optional[str] = os.getenv('OPENSKY_PASSWORD') or None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.username and self.password)


@dataclass(frozen=True)
class EngineConfig:
    """Tracking engine limits and scene geometry."""
    max_slots: int = int(os.getenv('MAX_SLOTS', '12000'))
    history_capacity: int = int(os.getenv('HISTORY_CAPACITY', '60'))

    # Entities unseen for this many successful fetches are dropped (0 = never)
    max_missed_cycles: int = int(os.getenv('ENTITY_MAX_MISSED_CYCLES', '2'))

    earth_radius: float = 1.0
    altitude_scale: float = 1 / 400000  # meters -> scene units


@dataclass(frozen=True)
class FilterDefaults:
    """Initial filter criteria."""
    altitude_ceiling_ft: float = float(os.getenv('DEFAULT_ALTITUDE_CEILING_FT', '45000'))
    search: str = ''
    airline_prefix: str = ''


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""
    telemetry: TelemetryConfig
    engine: EngineConfig
    filters: FilterDefaults

    # Flask settings
    secret_key: str
    debug: bool
    port: int


def load_config() -> AppConfig:
    """Load and validate all configuration."""
    return AppConfig(
        telemetry=TelemetryConfig(),
        engine=EngineConfig(),
        filters=FilterDefaults(),
        secret_key=os.getenv('SECRET_KEY', 'dev-key-change-in-prod'),
        debug=os.getenv('FLASK_DEBUG', '0') == '1',
        port=int(os.getenv('PORT', '5000')),
    )


# Singleton instance
config = load_config()
