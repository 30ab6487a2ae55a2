import threading
import time

from lounge.extensions import logger


class TimerTicker(threading.Thread):
    """
    Drives the engine's recompute pass on a fixed interval and, less often,
    checks the database for timer rows written by another process.
    """

    def __init__(self, app, engine, interval: float = 0.25, sync_interval: float = 5.0):
        super().__init__(name="timer-ticker", daemon=True)
        self.app = app
        self.engine = engine
        self.interval = interval
        self.sync_interval = sync_interval
        self._stop_event = threading.Event()
        self._last_sync = time.monotonic()

    def run(self):
        logger.info(f"TimerTicker: started (interval {self.interval}s, sync every {self.sync_interval}s)")
        while not self._stop_event.wait(self.interval):
            try:
                self.engine.tick()
            except Exception as e:
                logger.error(f"TimerTicker: tick failed: {str(e)}", exc_info=True)

            if self.sync_interval and time.monotonic() - self._last_sync >= self.sync_interval:
                self._last_sync = time.monotonic()
                try:
                    with self.app.app_context():
                        self.engine.sync_if_changed()
                except Exception as e:
                    logger.error(f"TimerTicker: sync failed: {str(e)}", exc_info=True)
        logger.info("TimerTicker: stopped")

    def stop(self):
        self._stop_event.set()
