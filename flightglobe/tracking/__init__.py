"""
Tracking module for FlightGlobe.

Turns raw telemetry batches into renderable state:
- Filter pipeline over raw records
- Geospatial projection onto the scene globe
- Entity store with bounded position history
- Capacity-bounded instance table
- Selection controller and the engine that owns them all
"""

from flightglobe.tracking.engine import TrackingEngine, EngineSnapshot, FeedStatus, StatusTone
from flightglobe.tracking.entity_store import EntityStore
from flightglobe.tracking.filters import FilterCriteria, passes
from flightglobe.tracking.instance_table import InstanceTable, InstanceSlot
from flightglobe.tracking.selection import SelectionController

__all__ = [
    'TrackingEngine',
    'EngineSnapshot',
    'FeedStatus',
    'StatusTone',
    'EntityStore',
    'FilterCriteria',
    'passes',
    'InstanceTable',
    'InstanceSlot',
    'SelectionController',
]
