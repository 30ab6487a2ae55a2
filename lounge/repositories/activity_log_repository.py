from lounge.extensions import db
from lounge.models.activity_log import ActivityLogEntry
from typing import List, Optional


class ActivityLogRepository:
    @staticmethod
    def add_entry(timestamp: int, timer_id: str, timer_name: str, action: str) -> ActivityLogEntry:
        """Append an activity entry"""
        try:
            entry = ActivityLogEntry(
                timestamp=timestamp,
                timer_id=timer_id,
                timer_name=timer_name,
                action=action,
            )
            db.session.add(entry)
            db.session.commit()
            return entry
        except Exception:
            db.session.rollback()
            raise

    @staticmethod
    def prune(keep: int) -> int:
        """Deletes everything but the ``keep`` most recent entries. Returns the number removed."""
        stale_ids = [
            row.id
            for row in db.session.query(ActivityLogEntry.id)
            .order_by(ActivityLogEntry.timestamp.desc(), ActivityLogEntry.id.desc())
            .offset(keep)
            .all()
        ]
        if not stale_ids:
            return 0
        try:
            removed = ActivityLogEntry.query.filter(ActivityLogEntry.id.in_(stale_ids)).delete(
                synchronize_session=False
            )
            db.session.commit()
            return removed
        except Exception:
            db.session.rollback()
            raise

    @staticmethod
    def get_recent(limit: int = 500, timer_id: Optional[str] = None) -> List[ActivityLogEntry]:
        """Newest entries first"""
        query = ActivityLogEntry.query
        if timer_id:
            query = query.filter_by(timer_id=timer_id)
        return (
            query.order_by(ActivityLogEntry.timestamp.desc(), ActivityLogEntry.id.desc())
            .limit(limit)
            .all()
        )
