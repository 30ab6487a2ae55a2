import atexit
from functools import partial
from datetime import datetime

import pytz

from lounge.extensions import db
from lounge.services.alerts import BrowserAlertSink
from lounge.services.persistence import SqlAlchemyGateway
from lounge.services.ticker import TimerTicker
from lounge.services.timer_engine import TimerEngine
from lounge.services.write_queue import PersistenceQueue
from lounge.sse_utils import MessageAnnouncer, format_sse
from lounge.utils.timer_utils import DEFAULT_DURATION_MS, get_daily_period_key


def _period_key(now_ms: int, tz_name: str, boundary_hour: int) -> str:
    now = datetime.fromtimestamp(now_ms / 1000, pytz.UTC)
    return get_daily_period_key(now, tz_name=tz_name, boundary_hour=boundary_hour)


def init_timer_engine(app, gateway=None, alerts=None, clock=None):
    """
    Builds the timer engine and its collaborators, seeds missing stations,
    loads the persisted timers and starts the ticker. Everything is stored in
    ``app.extensions`` under ``announcer``, ``timer_writer``, ``timer_engine``
    and ``timer_ticker``.
    """
    announcer = MessageAnnouncer()
    writer = PersistenceQueue(app, asynchronous=app.config["PERSISTENCE_ASYNC"])
    gateway = gateway or SqlAlchemyGateway(activity_log_limit=app.config["ACTIVITY_LOG_LIMIT"])
    alerts = alerts or BrowserAlertSink(announcer)

    engine = TimerEngine(
        gateway,
        alerts,
        writer=writer,
        clock=clock,
        prices=app.config["TIMER_PRICING"],
        default_price=app.config["DEFAULT_PRICE_PER_HOUR"],
        period_key=partial(
            _period_key,
            tz_name=app.config["LOUNGE_TIMEZONE"],
            boundary_hour=app.config["DAY_BOUNDARY_HOUR"],
        ),
    )
    engine.subscribe(lambda event: announcer.announce(format_sse(event, event="timer")))

    with app.app_context():
        if app.config["AUTO_CREATE_TABLES"]:
            app.logger.info("Creating database tables if missing...")
            db.create_all()
        if hasattr(gateway, "ensure_timers"):
            gateway.ensure_timers(app.config["LOUNGE_STATIONS"], DEFAULT_DURATION_MS)
        engine.load()

    app.extensions["announcer"] = announcer
    app.extensions["timer_writer"] = writer
    app.extensions["timer_engine"] = engine
    app.extensions["timer_alerts"] = alerts

    ticker = None
    if app.config["TIMER_TICKER_ENABLED"]:
        ticker = TimerTicker(
            app,
            engine,
            interval=app.config["TIMER_TICK_INTERVAL"],
            sync_interval=app.config["TIMER_SYNC_INTERVAL"],
        )
        ticker.start()
    app.extensions["timer_ticker"] = ticker

    atexit.register(shutdown_timer_engine, app)
    return engine


def shutdown_timer_engine(app):
    """Stops the ticker, then lets queued writes land before the worker exits"""
    ticker = app.extensions.get("timer_ticker")
    if ticker is not None:
        ticker.stop()
        ticker.join(timeout=5)
        app.extensions["timer_ticker"] = None

    writer = app.extensions.get("timer_writer")
    if writer is not None:
        if writer.pending:
            app.logger.info(f"Flushing {writer.pending} queued timer writes before shutdown")
        writer.join()
        writer.stop()
