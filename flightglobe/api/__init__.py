"""
API module for FlightGlobe.

Provides REST endpoints for:
- Instance slots and tracked aircraft
- User inputs (filters, picks, selection)
- Feed status and engine metrics
"""

from flightglobe.api.flights import flights_bp
from flightglobe.api.controls import controls_bp
from flightglobe.api.metrics import metrics_bp

__all__ = ['flights_bp', 'controls_bp', 'metrics_bp']
