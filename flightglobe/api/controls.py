"""
User input API endpoints.

Provides endpoints for:
- GET/POST /api/controls/filters - Read or change filter criteria
- POST /api/controls/pick - Pointer pick at an instance slot
- GET/POST/DELETE /api/controls/selection - Read, focus or clear selection

Filter changes rebuild the instance table immediately over the last batch.
"""

import logging

from flask import Blueprint, jsonify, request, current_app

from flightglobe.errors import InvalidFilterError
from flightglobe.tracking.filters import FilterCriteria

logger = logging.getLogger(__name__)

controls_bp = Blueprint('controls', __name__, url_prefix='/api/controls')


def _selection_payload(snapshot) -> dict:
    return {
        'selected': snapshot.selected,
        'detail': snapshot.detail.to_dict() if snapshot.detail else None,
        'trail': snapshot.trail.to_dict() if snapshot.trail else None,
    }


@controls_bp.route('/filters', methods=['GET', 'POST'])
def filters():
    """
    Get or change the filter criteria.

    GET: Returns current criteria
    POST: Change any of the recognised options
        Body: {"altitudeCeilingFeet": number, "search": str, "airlinePrefix": str}
        Options left out keep their current value.
    """
    engine = current_app.config['TRACKING_ENGINE']

    if request.method == 'GET':
        return jsonify({'filters': engine.snapshot().criteria.to_dict()})

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'JSON body required'}), 400

    try:
        criteria = FilterCriteria.from_mapping(data, base=engine.snapshot().criteria)
    except InvalidFilterError as e:
        return jsonify({'error': str(e)}), 400

    rebuild = engine.set_filters(criteria)
    snapshot = engine.snapshot()

    return jsonify({
        'success': True,
        'filters': snapshot.criteria.to_dict(),
        'active_count': snapshot.active_count,
        'rebuilt': rebuild is not None,
    })


@controls_bp.route('/pick', methods=['POST'])
def pick():
    """
    Resolve a pointer pick at an instance slot.

    Body: {"slot": int}
    Picking an empty or stale slot leaves the selection unchanged.
    """
    engine = current_app.config['TRACKING_ENGINE']

    data = request.get_json(silent=True) or {}
    slot = data.get('slot')
    if not isinstance(slot, int) or isinstance(slot, bool):
        return jsonify({'error': 'Integer slot required'}), 400

    focused = engine.pick(slot)
    payload = _selection_payload(engine.snapshot())
    payload['focused'] = focused

    return jsonify(payload)


@controls_bp.route('/selection', methods=['GET', 'POST', 'DELETE'])
def selection():
    """
    Get, set or clear the focused aircraft.

    POST body: {"icao24": str}
    """
    engine = current_app.config['TRACKING_ENGINE']

    if request.method == 'POST':
        data = request.get_json(silent=True) or {}
        icao24 = data.get('icao24')
        if not icao24 or not isinstance(icao24, str):
            return jsonify({'error': 'icao24 required'}), 400

        if not engine.focus(icao24):
            return jsonify({'error': 'Flight not found'}), 404

    elif request.method == 'DELETE':
        engine.clear_selection()

    return jsonify(_selection_payload(engine.snapshot()))
