"""
Flight data API endpoints.

Provides endpoints for:
- GET /api/flights - Occupied instance slots with transforms
- GET /api/flights/<icao24> - Single tracked aircraft with display detail
- GET /api/flights/history/<icao24> - Trail positions for a tracked aircraft
"""

import logging
import time
from datetime import datetime, timezone

from flask import Blueprint, jsonify, request, current_app

from flightglobe.tracking.projection import compose

logger = logging.getLogger(__name__)

flights_bp = Blueprint('flights', __name__, url_prefix='/api/flights')


def get_engine():
    return current_app.config['TRACKING_ENGINE']


@flights_bp.route('', methods=['GET'])
def list_slots():
    """
    List occupied instance slots in slot order.

    Query parameters:
    - include_matrices: boolean, add flattened 4x4 instance matrices
      (default false)
    - limit: int, max slots to return (default all)

    Response includes query timing for latency awareness.
    """
    start_time = time.perf_counter()
    engine = get_engine()

    include_matrices = request.args.get('include_matrices', 'false').lower() == 'true'
    limit = request.args.get('limit', type=int)

    snapshot = engine.snapshot()
    slots = snapshot.slots[:limit] if limit is not None and limit >= 0 else snapshot.slots

    slot_dicts = [slot.to_dict() for slot in slots]

    if include_matrices:
        for slot, slot_dict in zip(slots, slot_dicts):
            matrix = compose(slot.position, slot.orientation)
            slot_dict['matrix'] = [round(float(v), 6) for v in matrix.flatten()]

    query_time_ms = (time.perf_counter() - start_time) * 1000

    return jsonify({
        'slots': slot_dicts,
        'count': len(slot_dicts),
        'active_count': snapshot.active_count,
        'total_records': snapshot.total_records,
        'generation': snapshot.generation,
        'selected': snapshot.selected,
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'query_time_ms': round(query_time_ms, 2),
    })


@flights_bp.route('/<icao24>', methods=['GET'])
def get_flight(icao24: str):
    """Get tracked state and formatted detail for one aircraft."""
    start_time = time.perf_counter()

    result = get_engine().describe(icao24)
    if result is None:
        return jsonify({'error': 'Flight not found'}), 404

    query_time_ms = (time.perf_counter() - start_time) * 1000
    result['query_time_ms'] = round(query_time_ms, 2)

    return jsonify(result)


@flights_bp.route('/history/<icao24>', methods=['GET'])
def get_flight_history(icao24: str):
    """
    Get retained position history for an aircraft.

    Returns scene-space points oldest first. `trail` is null when fewer
    than two points are retained (nothing to draw).
    """
    start_time = time.perf_counter()

    history = get_engine().history(icao24)
    if history is None:
        return jsonify({'error': 'Flight not found'}), 404

    data = {
        'timestamps': history['timestamps'],
        'positions': [[round(v, 6) for v in p] for p in history['positions']],
    }

    query_time_ms = (time.perf_counter() - start_time) * 1000

    return jsonify({
        'icao24': history['icao24'],
        'history': data,
        'count': len(data['timestamps']),
        'trail': history['trail'],
        'query_time_ms': round(query_time_ms, 2),
    })
