from lounge.extensions import db
from lounge.models.daily_stat import DailyStat
from typing import Optional


class DailyStatRepository:
    @staticmethod
    def get_by_period(period_key: str) -> Optional[DailyStat]:
        return DailyStat.query.filter_by(period_key=period_key).first()

    @staticmethod
    def merge_session(
        period_key: str,
        timer_id: str,
        elapsed_ms: int,
        overtime_entry: Optional[dict],
        updated_at: int,
    ) -> DailyStat:
        """Read-merge-write of one finished session into the period's aggregate"""
        try:
            stat = DailyStatRepository.get_by_period(period_key)
            if stat is None:
                stat = DailyStat(period_key=period_key, timer_stats={})
                db.session.add(stat)

            # Reassign a fresh dict so the JSON column is flagged dirty
            stats = dict(stat.timer_stats or {})
            stats[timer_id] = stats.get(timer_id, 0) + elapsed_ms
            if overtime_entry is not None:
                stats["overtime"] = list(stats.get("overtime", [])) + [overtime_entry]
            stat.timer_stats = stats
            stat.updated_at = updated_at
            db.session.commit()
            return stat
        except Exception:
            db.session.rollback()
            raise

    @staticmethod
    def clear_overtime(period_key: str, updated_at: int) -> bool:
        stat = DailyStatRepository.get_by_period(period_key)
        if stat is None or "overtime" not in (stat.timer_stats or {}):
            return False
        try:
            stats = dict(stat.timer_stats)
            del stats["overtime"]
            stat.timer_stats = stats
            stat.updated_at = updated_at
            db.session.commit()
            return True
        except Exception:
            db.session.rollback()
            raise
