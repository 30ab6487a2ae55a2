from typing import Dict, List, Optional

from lounge.extensions import logger
from lounge.repositories.activity_log_repository import ActivityLogRepository
from lounge.repositories.daily_stat_repository import DailyStatRepository
from lounge.repositories.timer_repository import TimerRepository


class PersistenceGateway:
    """What the timer engine needs from durable storage."""

    def load_timers(self) -> List[dict]:
        raise NotImplementedError

    def upsert_timer(self, record: dict) -> Optional[int]:
        """Writes one timer row and returns its new version"""
        raise NotImplementedError

    def append_activity(self, entry: dict) -> None:
        raise NotImplementedError

    def merge_daily_stat(
        self,
        period_key: str,
        timer_id: str,
        elapsed_ms: int,
        overtime_entry: Optional[dict],
        updated_at: int,
    ) -> None:
        raise NotImplementedError

    def timer_versions(self) -> Dict[str, int]:
        """Version of every timer row, for change detection"""
        raise NotImplementedError


class SqlAlchemyGateway(PersistenceGateway):
    """Gateway backed by the Flask-SQLAlchemy repositories. Needs an app context."""

    def __init__(self, activity_log_limit: int = 500):
        self.activity_log_limit = activity_log_limit

    def ensure_timers(self, stations: List[dict], duration: int):
        return TimerRepository.ensure_timers(stations, duration)

    def load_timers(self) -> List[dict]:
        return [timer.to_dict() for timer in TimerRepository.get_all_timers()]

    def upsert_timer(self, record: dict) -> int:
        return TimerRepository.upsert_timer(record).version

    def append_activity(self, entry: dict) -> None:
        ActivityLogRepository.add_entry(
            timestamp=entry["timestamp"],
            timer_id=entry["timer_id"],
            timer_name=entry["timer_name"],
            action=entry["action"],
        )
        removed = ActivityLogRepository.prune(self.activity_log_limit)
        if removed:
            logger.debug(f"Pruned {removed} activity log entries beyond {self.activity_log_limit}")

    def merge_daily_stat(self, period_key, timer_id, elapsed_ms, overtime_entry, updated_at) -> None:
        DailyStatRepository.merge_session(period_key, timer_id, elapsed_ms, overtime_entry, updated_at)

    def timer_versions(self) -> Dict[str, int]:
        return TimerRepository.get_versions()
