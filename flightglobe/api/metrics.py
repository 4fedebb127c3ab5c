"""
Metrics and status API endpoints.

Provides endpoints for:
- GET /api/metrics/status - Feed status, engine and scheduler health
"""

import logging
import time
from datetime import datetime, timezone

from flask import Blueprint, jsonify, current_app

from flightglobe.config import config

logger = logging.getLogger(__name__)

metrics_bp = Blueprint('metrics', __name__, url_prefix='/api/metrics')


@metrics_bp.route('/status', methods=['GET'])
def get_system_status():
    """
    Get system health and status information.

    Returns:
    - Feed status (tone and message, as shown in the UI)
    - Engine statistics (cycle, active slots, tracked entities)
    - Fetcher and scheduler statistics
    - Configuration info
    """
    start_time = time.perf_counter()

    engine = current_app.config['TRACKING_ENGINE']
    scheduler = current_app.config.get('REFRESH_SCHEDULER')
    scheduler_stats = scheduler.stats if scheduler else {'running': False}

    status = engine.status

    query_time_ms = (time.perf_counter() - start_time) * 1000

    return jsonify({
        'status': status.to_dict(),
        'engine': engine.stats,
        'fetcher': engine.fetcher.stats,
        'scheduler': scheduler_stats,
        'config': {
            'refresh_interval': config.telemetry.refresh_interval,
            'fetch_timeout': config.telemetry.fetch_timeout,
            'history_capacity': config.engine.history_capacity,
            'max_missed_cycles': engine.max_missed_cycles,
            'opensky_authenticated': config.telemetry.is_authenticated,
        },
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'query_time_ms': round(query_time_ms, 2),
    })
