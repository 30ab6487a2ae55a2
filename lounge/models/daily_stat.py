from lounge.extensions import db


class DailyStat(db.Model):
    __tablename__ = "daily_stats"

    id = db.Column(db.Integer, primary_key=True)
    period_key = db.Column(db.String(10), nullable=False, unique=True)  # YYYY-MM-DD business day
    # {timer_id: elapsed_ms, ..., "overtime": [{timer_id, timer_name, overtime_minutes, timestamp}]}
    timer_stats = db.Column(db.JSON, nullable=False, default=dict)
    updated_at = db.Column(db.BigInteger, nullable=False, default=0)

    @property
    def elapsed_by_timer(self):
        stats = self.timer_stats or {}
        return {key: value for key, value in stats.items() if key != "overtime"}

    @property
    def overtime(self):
        return list((self.timer_stats or {}).get("overtime", []))

    def to_dict(self):
        overtime = self.overtime
        return {
            "period_key": self.period_key,
            "timer_stats": self.elapsed_by_timer,
            "overtime": overtime,
            "total_overtime_minutes": sum(
                entry.get("overtime_minutes", 0) for entry in overtime
            ),
        }

    def __repr__(self):
        return f"<DailyStat period_key={self.period_key}>"
