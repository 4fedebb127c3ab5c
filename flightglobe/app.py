"""
FlightGlobe Flask Application.

Main entry point for the web application. Initializes:
- Tracking engine
- Background refresh scheduler
- API routes

Usage:
    python -m flightglobe.app

Or with gunicorn:
    gunicorn 'flightglobe.app:create_app()'
"""

import logging
from typing import Optional

from flask import Flask
from flask_cors import CORS

from flightglobe.config import config
from flightglobe.api import flights_bp, controls_bp, metrics_bp
from flightglobe.ingestion import RefreshScheduler
from flightglobe.tracking import TrackingEngine

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)


def create_app(
    start_refresh: bool = True,
    engine: Optional[TrackingEngine] = None,
) -> Flask:
    """
    Application factory for Flask.

    Args:
        start_refresh: Whether to start the background refresh scheduler.
                       Set to False for testing.
        engine: Tracking engine to serve (created from config if None)

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = config.secret_key

    # Enable CORS for API endpoints
    CORS(app, resources={r'/api/*': {'origins': '*'}})

    # Register API blueprints
    app.register_blueprint(flights_bp)
    app.register_blueprint(controls_bp)
    app.register_blueprint(metrics_bp)

    engine = engine or TrackingEngine()
    app.config['TRACKING_ENGINE'] = engine

    if start_refresh:
        scheduler = RefreshScheduler(engine)
        scheduler.start_background()
        app.config['REFRESH_SCHEDULER'] = scheduler
        logger.info(
            f'Refresh started every {scheduler.interval:.0f}s across '
            f'{len(engine.fetcher.sources)} sources'
        )
    else:
        app.config['REFRESH_SCHEDULER'] = None

    @app.route('/health')
    def health():
        """Simple health check endpoint."""
        return {'status': 'ok'}

    # -------------------------------------------------------------------------
    # Error handlers
    # -------------------------------------------------------------------------

    @app.errorhandler(404)
    def not_found(e):
        return {'error': 'Not found'}, 404

    @app.errorhandler(500)
    def server_error(e):
        logger.error(f'Server error: {e}')
        return {'error': 'Internal server error'}, 500

    return app


def run_development_server():
    """Run the development server."""
    app = create_app()

    logger.info(f'Starting FlightGlobe on http://localhost:{config.port}')

    app.run(
        host='0.0.0.0',
        port=config.port,
        debug=config.debug,
        use_reloader=False,  # Disable reloader to prevent duplicate refresh threads
    )


if __name__ == '__main__':
    run_development_server()
