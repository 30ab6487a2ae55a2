from lounge.extensions import db


class ActivityLogEntry(db.Model):
    __tablename__ = "activity_log"

    id = db.Column(db.Integer, primary_key=True)
    timestamp = db.Column(db.BigInteger, nullable=False, index=True)  # epoch ms
    timer_id = db.Column(db.String(64), nullable=False, index=True)
    timer_name = db.Column(db.String(120), nullable=False)
    action = db.Column(db.String(32), nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "timer_id": self.timer_id,
            "timer_name": self.timer_name,
            "action": self.action,
        }

    def __repr__(self):
        return f"<ActivityLogEntry timer_id={self.timer_id} action={self.action}>"
