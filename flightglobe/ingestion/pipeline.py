"""
Refresh scheduler - drives the tracking engine on a fixed interval.

The refresh cadence is independent of any consumer's frame rate: renderers
and API handlers read engine snapshots whenever they like, while this
thread alone triggers fetch + rebuild cycles.

Each tick:
1. Calls engine.refresh() (which itself skips if a cycle is still running)
2. Notifies registered callbacks with the outcome
3. Waits for the next tick, or returns immediately once stopped
"""

import logging
import threading
import time
from typing import Optional, List, Callable

from flightglobe.config import config

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """
    Manages the refresh lifecycle for a TrackingEngine.

    Can run as a background thread for continuous polling.
    """

    def __init__(self, engine, interval: Optional[float] = None):
        """
        Initialize the scheduler.

        Args:
            engine: TrackingEngine to refresh
            interval: Seconds between refresh cycles (config default 20)
        """
        self.engine = engine
        self.interval = interval or config.telemetry.refresh_interval

        # State tracking
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._tick_count: int = 0
        self._error_count: int = 0
        self._last_tick_time: float = 0

        # Callbacks for external integration
        self._on_refresh_callbacks: List[Callable] = []

    def add_refresh_callback(self, callback: Callable) -> None:
        """
        Register callback to be invoked after each refresh attempt.

        Callback receives the RefreshOutcome.
        """
        self._on_refresh_callbacks.append(callback)

    def tick(self):
        """Run one refresh cycle and notify callbacks."""
        self._tick_count += 1
        self._last_tick_time = time.time()

        try:
            outcome = self.engine.refresh()
        except Exception as e:
            # Unexpected failure; the next tick tries again
            self._error_count += 1
            logger.exception(f'Refresh cycle crashed: {e}')
            return None

        for callback in self._on_refresh_callbacks:
            try:
                callback(outcome)
            except Exception as e:
                logger.error(f'Refresh callback error: {e}')

        return outcome

    def run_continuous(self) -> None:
        """
        Run the refresh loop until stop() is called.

        This method blocks - use start_background() for non-blocking.
        """
        logger.info(f'Starting continuous refresh (interval={self.interval}s)')

        while not self._stop_event.is_set():
            self.tick()
            self._stop_event.wait(self.interval)

        logger.info('Refresh loop stopped')

    def start_background(self) -> None:
        """Start refreshing in a background thread."""
        if self._thread and self._thread.is_alive():
            logger.warning('Refresh scheduler already running')
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.run_continuous,
            name='flightglobe-refresh',
            daemon=True,
        )
        self._thread.start()
        logger.info('Background refresh started')

    def stop(self, timeout: float = 5.0) -> None:
        """Stop background refreshing."""
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=timeout)
        logger.info('Refresh scheduler stopped')

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive() and not self._stop_event.is_set())

    @property
    def stats(self) -> dict:
        """Get scheduler statistics."""
        return {
            'tick_count': self._tick_count,
            'error_count': self._error_count,
            'last_tick_time': self._last_tick_time,
            'interval_seconds': self.interval,
            'running': self.running,
        }
