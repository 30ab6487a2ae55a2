import pytest

from lounge import create_app
from lounge.services.persistence import PersistenceGateway
from lounge.services.timer_engine import TimerEngine
from lounge.utils.timer_utils import DEFAULT_STATIONS, DEFAULT_DURATION_MS, MINUTE_MS, TIMER_PRICING

# 2026-10-18 12:00 in Manila
START_MS = 1792296000 * 1000
PERIOD_KEY = "2026-10-18"


class FakeClock:
    def __init__(self, now_ms: int = START_MS):
        self.now = now_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, minutes: float = 0, ms: int = 0):
        self.now += int(minutes * MINUTE_MS) + ms
        return self.now


class RecordingAlerts:
    def __init__(self):
        self.calls = []
        self.active = set()
        self.fail = False

    def _record(self, *call):
        if self.fail:
            raise RuntimeError("audio unavailable")
        self.calls.append(call)

    def play_warning(self, timer_name):
        self._record("warning", timer_name)

    def play_finished_alarm(self, timer_id, timer_name):
        self._record("alarm", timer_id)
        self.active.add(timer_id)

    def stop_alarm(self, timer_id):
        self._record("stop_alarm", timer_id)
        self.active.discard(timer_id)

    def notify(self, title, body, urgent=False):
        self._record("notify", title, urgent)

    def count(self, kind):
        return sum(1 for call in self.calls if call[0] == kind)


class InMemoryGateway(PersistenceGateway):
    def __init__(self):
        self.rows = {
            station["id"]: {
                **station,
                "status": "idle",
                "duration": DEFAULT_DURATION_MS,
                "remaining_time": DEFAULT_DURATION_MS,
                "elapsed_time": 0,
                "start_time": None,
                "remaining_at_start": None,
                "elapsed_at_start": None,
                "paid_amount": 0,
                "unpaid_amount": 0,
                "updated_at": 0,
                "version": 0,
            }
            for station in DEFAULT_STATIONS
        }
        self.activity = []
        self.daily = {}
        self.upserts = 0
        self.fail = False
        # Called after load_timers has read the rows, before the caller applies them
        self.after_load = None

    def _check(self):
        if self.fail:
            raise ConnectionError("database unavailable")

    def load_timers(self):
        self._check()
        records = [dict(row) for row in self.rows.values()]
        if self.after_load is not None:
            self.after_load()
        return records

    def upsert_timer(self, record):
        self._check()
        self.upserts += 1
        version = self.rows.get(record["id"], {}).get("version", 0) + 1
        self.rows[record["id"]] = {**record, "version": version}
        return version

    def append_activity(self, entry):
        self._check()
        self.activity.append(dict(entry))

    def merge_daily_stat(self, period_key, timer_id, elapsed_ms, overtime_entry, updated_at):
        self._check()
        stats = self.daily.setdefault(period_key, {})
        stats[timer_id] = stats.get(timer_id, 0) + elapsed_ms
        if overtime_entry is not None:
            stats.setdefault("overtime", []).append(overtime_entry)

    def timer_versions(self):
        return {timer_id: row["version"] for timer_id, row in self.rows.items()}

    def write_elsewhere(self, timer_id, **fields):
        """A row change made by another process"""
        row = self.rows[timer_id]
        row.update(fields, version=row["version"] + 1)

    def actions(self, timer_id=None):
        return [e["action"] for e in self.activity if timer_id is None or e["timer_id"] == timer_id]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def alerts():
    return RecordingAlerts()


@pytest.fixture
def gateway():
    return InMemoryGateway()


@pytest.fixture
def engine(gateway, alerts, clock):
    engine = TimerEngine(
        gateway,
        alerts,
        clock=clock,
        prices=dict(TIMER_PRICING),
        period_key=lambda now_ms: PERIOD_KEY,
    )
    engine.load()
    return engine


@pytest.fixture
def app(clock):
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "PERSISTENCE_ASYNC": False,
            "TIMER_TICKER_ENABLED": False,
            "TIMER_CLOCK": clock,
            "ACTIVITY_LOG_LIMIT": 500,
        }
    )
    yield app


@pytest.fixture
def client(app):
    return app.test_client()
