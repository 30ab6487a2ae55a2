import threading

from lounge.services.ticker import TimerTicker


class CountingEngine:
    def __init__(self, fail_tick=False):
        self.ticks = 0
        self.syncs = 0
        self.fail_tick = fail_tick
        self.enough = threading.Event()

    def tick(self):
        self.ticks += 1
        if self.ticks >= 5:
            self.enough.set()
        if self.fail_tick:
            raise RuntimeError("tick exploded")

    def sync_if_changed(self):
        self.syncs += 1
        return False


def test_ticker_ticks_and_syncs(app):
    engine = CountingEngine()
    ticker = TimerTicker(app, engine, interval=0.001, sync_interval=0.001)
    ticker.start()
    assert engine.enough.wait(5)
    ticker.stop()
    ticker.join(timeout=5)

    assert not ticker.is_alive()
    assert engine.syncs >= 1


def test_ticker_survives_failing_ticks(app):
    engine = CountingEngine(fail_tick=True)
    ticker = TimerTicker(app, engine, interval=0.001, sync_interval=0)
    ticker.start()
    assert engine.enough.wait(5)
    ticker.stop()
    ticker.join(timeout=5)

    assert engine.syncs == 0
