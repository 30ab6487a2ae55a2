from typing import Dict, Any, Optional
from flask import current_app
from lounge.repositories.activity_log_repository import ActivityLogRepository
from lounge.repositories.daily_stat_repository import DailyStatRepository


class StatsService:
    @staticmethod
    def current_period_key() -> str:
        engine = current_app.extensions["timer_engine"]
        return engine.period_key(engine.clock())

    @staticmethod
    def get_activity(limit: int = 100, timer_id: Optional[str] = None) -> Dict[str, Any]:
        """Most recent activity entries, newest first"""
        limit = max(1, min(limit, current_app.config["ACTIVITY_LOG_LIMIT"]))
        entries = ActivityLogRepository.get_recent(limit=limit, timer_id=timer_id)
        return {"activity": [entry.to_dict() for entry in entries]}

    @staticmethod
    def get_daily_stats(period_key: Optional[str] = None) -> Dict[str, Any]:
        period_key = period_key or StatsService.current_period_key()
        stat = DailyStatRepository.get_by_period(period_key)
        if stat is None:
            return {
                "period_key": period_key,
                "timer_stats": {},
                "overtime": [],
                "total_overtime_minutes": 0,
            }
        return stat.to_dict()

    @staticmethod
    def clear_overtime(period_key: Optional[str] = None) -> Dict[str, Any]:
        period_key = period_key or StatsService.current_period_key()
        engine = current_app.extensions["timer_engine"]
        cleared = DailyStatRepository.clear_overtime(period_key, engine.clock())
        if not cleared:
            return {"period_key": period_key, "message": f"No overtime recorded for {period_key}"}
        current_app.logger.info(f"StatsService: Cleared overtime for period {period_key}")
        return {"period_key": period_key, "message": f"Overtime cleared for {period_key}"}
