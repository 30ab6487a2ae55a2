import threading

from lounge import create_app
from lounge.repositories.timer_repository import TimerRepository
from lounge.services import bootstrap


def test_shutdown_hook_flushes_queued_writes_and_stops_threads(clock, monkeypatch):
    hooks = []
    monkeypatch.setattr(bootstrap.atexit, "register", lambda fn, *args: hooks.append((fn, args)))
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "PERSISTENCE_ASYNC": True,
            "TIMER_TICKER_ENABLED": True,
            "TIMER_TICK_INTERVAL": 0.01,
            "TIMER_CLOCK": clock,
        }
    )
    writer = app.extensions["timer_writer"]
    ticker = app.extensions["timer_ticker"]
    assert ticker.is_alive()

    gate = threading.Event()
    writer.submit("hold the queue", gate.wait, 5)
    resp = app.test_client().post("/api/timers/table-1/start", json={"payment_type": "prepaid"})
    assert resp.status_code == 200
    assert writer.pending >= 2

    gate.set()
    assert len(hooks) == 1
    fn, args = hooks[0]
    fn(*args)

    assert writer.pending == 0
    assert not ticker.is_alive()
    assert app.extensions["timer_ticker"] is None
    with app.app_context():
        assert TimerRepository.get_timer("table-1").status == "running"


def test_shutdown_is_harmless_for_inline_writes(app):
    bootstrap.shutdown_timer_engine(app)
    bootstrap.shutdown_timer_engine(app)

    assert app.extensions["timer_writer"].pending == 0
