from lounge.extensions import db
from lounge.models.timer import Timer
from flask import current_app
from typing import Dict, List, Optional


class TimerRepository:
    @staticmethod
    def get_all_timers() -> List[Timer]:
        """Get every station timer, ordered by id"""
        return Timer.query.order_by(Timer.id.asc()).all()

    @staticmethod
    def get_timer(timer_id: str) -> Optional[Timer]:
        return db.session.get(Timer, timer_id)

    @staticmethod
    def ensure_timers(stations: List[dict], duration: int) -> List[Timer]:
        """Create an idle row for every station that has none yet"""
        created = []
        for station in stations:
            if TimerRepository.get_timer(station["id"]) is None:
                timer = Timer(
                    id=station["id"],
                    name=station["name"],
                    category=station["category"],
                    status="idle",
                    duration=duration,
                    remaining_time=duration,
                    elapsed_time=0,
                    paid_amount=0,
                    unpaid_amount=0,
                    updated_at=0,
                    version=0,
                )
                db.session.add(timer)
                created.append(timer)
        if created:
            db.session.commit()
            current_app.logger.info(
                f"Repository: Seeded {len(created)} station timers: {[t.id for t in created]}"
            )
        return created

    @staticmethod
    def upsert_timer(record: dict) -> Timer:
        """Write the full timer record, keyed by station id. Every write bumps the row version."""
        try:
            timer = TimerRepository.get_timer(record["id"])
            if timer is None:
                timer = Timer(id=record["id"])
                db.session.add(timer)
            for key, value in record.items():
                if key not in ("id", "version") and hasattr(timer, key):
                    setattr(timer, key, value)
            # Incremented in SQL so concurrent writers never reuse a version
            timer.version = Timer.version + 1 if timer.version is not None else 1
            db.session.commit()
            return timer
        except Exception:
            db.session.rollback()
            raise

    @staticmethod
    def get_versions() -> Dict[str, int]:
        """Current version of every timer row, keyed by station id"""
        return {timer_id: version or 0 for timer_id, version in db.session.query(Timer.id, Timer.version).all()}
