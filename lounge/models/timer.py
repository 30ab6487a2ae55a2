from lounge.extensions import db


class Timer(db.Model):
    __tablename__ = "timers"

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    category = db.Column(db.String(32), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="idle")
    duration = db.Column(db.BigInteger, nullable=False, default=3600000)  # ms
    remaining_time = db.Column(db.BigInteger, nullable=False, default=3600000)  # ms, negative = overtime
    elapsed_time = db.Column(db.BigInteger, nullable=False, default=0)  # ms
    start_time = db.Column(db.BigInteger, nullable=True)  # epoch ms of the current running interval
    remaining_at_start = db.Column(db.BigInteger, nullable=True)
    elapsed_at_start = db.Column(db.BigInteger, nullable=True)
    paid_amount = db.Column(db.Integer, nullable=False, default=0)
    unpaid_amount = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(db.BigInteger, nullable=False, default=0)  # epoch ms, stamped by the writer
    version = db.Column(db.Integer, nullable=False, default=0)  # bumped by every upsert, any process

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "status": self.status,
            "duration": self.duration,
            "remaining_time": self.remaining_time,
            "elapsed_time": self.elapsed_time,
            "start_time": self.start_time,
            "remaining_at_start": self.remaining_at_start,
            "elapsed_at_start": self.elapsed_at_start,
            "paid_amount": self.paid_amount or 0,
            "unpaid_amount": self.unpaid_amount or 0,
            "updated_at": self.updated_at,
            "version": self.version or 0,
        }

    def __repr__(self):
        return f"<Timer id={self.id} status={self.status}>"
