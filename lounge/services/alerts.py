import threading
import time
from typing import List

from lounge.extensions import logger
from lounge.sse_utils import format_sse


class AlertSink:
    """
    Alert capabilities the timer engine can request. How an alert is rendered
    (tones, vibration, system notifications) is up to the implementation.
    """

    def play_warning(self, timer_name: str):
        raise NotImplementedError

    def play_finished_alarm(self, timer_id: str, timer_name: str):
        """Starts a repeating alarm. Must be a no-op while one is already active for timer_id."""
        raise NotImplementedError

    def stop_alarm(self, timer_id: str):
        raise NotImplementedError

    def notify(self, title: str, body: str, urgent: bool = False):
        raise NotImplementedError


class BrowserAlertSink(AlertSink):
    """
    Publishes alerts as ``alert`` server-sent events; the dashboard plays the
    sounds and shows the notifications. Keeps the set of ringing alarms so a
    tab that connects late can pick them up from /api/alerts.
    """

    def __init__(self, announcer):
        self.announcer = announcer
        self._alarms = {}
        self._lock = threading.Lock()

    @property
    def active_alarms(self) -> List[dict]:
        with self._lock:
            return list(self._alarms.values())

    def play_warning(self, timer_name: str):
        logger.info(f"Alert: warning for {timer_name}")
        self._publish({"type": "warning", "timer_name": timer_name})

    def play_finished_alarm(self, timer_id: str, timer_name: str):
        with self._lock:
            if timer_id in self._alarms:
                return
            alarm = {"timer_id": timer_id, "timer_name": timer_name, "since": int(time.time() * 1000)}
            self._alarms[timer_id] = alarm
        logger.info(f"Alert: finished alarm started for {timer_name}")
        self._publish({"type": "alarm", **alarm})

    def stop_alarm(self, timer_id: str):
        with self._lock:
            alarm = self._alarms.pop(timer_id, None)
        if alarm is None:
            return
        logger.info(f"Alert: finished alarm stopped for {alarm['timer_name']}")
        self._publish({"type": "alarm_stopped", "timer_id": timer_id})

    def notify(self, title: str, body: str, urgent: bool = False):
        self._publish({"type": "notification", "title": title, "body": body, "urgent": urgent})

    def _publish(self, payload: dict):
        self.announcer.announce(format_sse(payload, event="alert"))
