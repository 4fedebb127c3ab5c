"""Shared fixtures."""

import pytest

from flightglobe.tracking.engine import TrackingEngine

from tests.helpers import FakeFetcher


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def engine(fetcher):
    return TrackingEngine(fetcher=fetcher, max_slots=12000, history_capacity=60, max_missed_cycles=2)
