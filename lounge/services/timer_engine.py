import threading
import time
from datetime import datetime
from typing import Callable, Dict, List, Optional

import pytz

from lounge.exceptions import UnknownTimerError, InvalidPaymentTypeError
from lounge.extensions import logger
from lounge.models.enums import TimerStatus, TimerAction, PaymentType, ACTIVE_STATUSES
from lounge.services.write_queue import PersistenceQueue
from lounge.utils.timer_utils import (
    DEFAULT_DURATION_MS,
    DEFAULT_PRICE_PER_HOUR,
    MINUTE_MS,
    WARNING_THRESHOLD_MS,
    calculate_extension_price,
    calculate_price,
    get_daily_period_key,
    overtime_minutes,
)


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


def _default_period_key(now_ms: int) -> str:
    return get_daily_period_key(datetime.fromtimestamp(now_ms / 1000, pytz.UTC))


class TimerState:
    """Live state of one station. All durations and timestamps are milliseconds."""

    def __init__(
        self,
        id: str,
        name: str,
        category: str,
        status: TimerStatus = TimerStatus.IDLE,
        duration: int = DEFAULT_DURATION_MS,
        remaining_time: Optional[int] = None,
        elapsed_time: int = 0,
        start_time: Optional[int] = None,
        remaining_at_start: Optional[int] = None,
        elapsed_at_start: Optional[int] = None,
        paid_amount: int = 0,
        unpaid_amount: int = 0,
    ):
        self.id = id
        self.name = name
        self.category = category
        self.status = status
        self.duration = duration
        self.remaining_time = duration if remaining_time is None else remaining_time
        self.elapsed_time = elapsed_time
        self.start_time = start_time
        self.remaining_at_start = remaining_at_start
        self.elapsed_at_start = elapsed_at_start
        self.paid_amount = paid_amount
        self.unpaid_amount = unpaid_amount
        # Side-effect markers, owned by the engine and never persisted
        self.warned = False
        self.finished_alarm_active = False
        self.alarm_acknowledged = False
        self.revision = 0

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def overtime_ms(self) -> int:
        return max(0, -self.remaining_time)

    @classmethod
    def from_record(cls, record: dict) -> "TimerState":
        try:
            status = TimerStatus(record.get("status"))
        except ValueError:
            logger.warning(
                f"Timer {record.get('id')} has unknown status {record.get('status')!r}, treating as idle"
            )
            status = TimerStatus.IDLE
        duration = record.get("duration")
        if duration is None:
            duration = DEFAULT_DURATION_MS
        return cls(
            id=record["id"],
            name=record["name"],
            category=record["category"],
            status=status,
            duration=duration,
            remaining_time=record.get("remaining_time"),
            elapsed_time=record.get("elapsed_time") or 0,
            start_time=record.get("start_time"),
            remaining_at_start=record.get("remaining_at_start"),
            elapsed_at_start=record.get("elapsed_at_start"),
            paid_amount=record.get("paid_amount") or 0,
            unpaid_amount=record.get("unpaid_amount") or 0,
        )

    def to_record(self) -> dict:
        """Fields written to the timers table"""
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "status": self.status.value,
            "duration": self.duration,
            "remaining_time": self.remaining_time,
            "elapsed_time": self.elapsed_time,
            "start_time": self.start_time,
            "remaining_at_start": self.remaining_at_start,
            "elapsed_at_start": self.elapsed_at_start,
            "paid_amount": self.paid_amount,
            "unpaid_amount": self.unpaid_amount,
        }

    def to_dict(self) -> dict:
        data = self.to_record()
        data["overtime_ms"] = self.overtime_ms
        data["alarm_active"] = self.finished_alarm_active and not self.alarm_acknowledged
        data["alarm_acknowledged"] = self.alarm_acknowledged
        data["revision"] = self.revision
        return data

    def __repr__(self):
        return f"TimerState(id={self.id}, status={self.status.value}, remaining={self.remaining_time})"


class TimerEngine:
    """
    Owns the station timers: the recompute tick, the status transitions and the
    pricing of sessions.

    Every mutation happens under one re-entrant lock, so the ticker thread and
    request handlers never interleave inside a transition. Durable writes and
    activity entries are handed to the ``writer`` after the in-memory change
    has been applied; alert and listener failures are logged and ignored.
    """

    def __init__(
        self,
        gateway,
        alerts,
        writer: Optional[PersistenceQueue] = None,
        clock: Callable[[], int] = None,
        prices: Optional[Dict[str, int]] = None,
        default_price: int = DEFAULT_PRICE_PER_HOUR,
        period_key: Callable[[int], str] = None,
        warning_threshold: int = WARNING_THRESHOLD_MS,
    ):
        self.gateway = gateway
        self.alerts = alerts
        self.writer = writer or PersistenceQueue(None, asynchronous=False)
        self.clock = clock or _wall_clock_ms
        self.prices = prices
        self.default_price = default_price
        self.period_key = period_key or _default_period_key
        self.warning_threshold = warning_threshold
        self._timers: Dict[str, TimerState] = {}
        self._listeners: List[Callable[[dict], None]] = []
        self._lock = threading.RLock()
        # Row versions this process last loaded or wrote, for change detection
        self._versions: Dict[str, int] = {}

    @property
    def lock(self):
        return self._lock

    # --- Loading and cross-process sync ---

    def load(self) -> List[dict]:
        return self.reload()

    def reload(self) -> List[dict]:
        """
        Re-reads every persisted timer and re-derives its live values from the
        wall clock. Persisted remaining/elapsed values of active timers are
        never trusted as-is.
        """
        self._reload()
        return self.snapshot()

    def _reload(self) -> bool:
        """
        Applies a fresh read of all rows. The read happens outside the lock, so
        it is dropped when a local transition or write happened meanwhile;
        the row versions stay unmatched and the next sync tries again.
        """
        with self._lock:
            seen = self._revisions()
        records = self.gateway.load_timers()
        with self._lock:
            if self.writer.pending or self._revisions() != seen:
                logger.info("TimerEngine: Timers changed locally during reload, retrying on next sync")
                return False
            now = self.clock()
            for record in records:
                fresh = TimerState.from_record(record)
                previous = self._timers.get(fresh.id)
                if previous is not None:
                    fresh.warned = previous.warned
                    fresh.finished_alarm_active = previous.finished_alarm_active
                    fresh.alarm_acknowledged = previous.alarm_acknowledged
                    fresh.revision = previous.revision + 1
                self._rederive(fresh, now)
                self._timers[fresh.id] = fresh
                self._settle_markers(fresh)
                self._versions[fresh.id] = int(record.get("version") or 0)
            logger.info(f"TimerEngine: Loaded {len(records)} timers, {len(self.active_timers())} active")
            self._emit("reloaded", None)
            return True

    def sync_if_changed(self) -> bool:
        """Reloads when any timer row carries a version this process did not load or write"""
        if self.writer.pending:
            return False
        versions = self.gateway.timer_versions()
        with self._lock:
            changed = sorted(
                timer_id for timer_id, version in versions.items() if self._versions.get(timer_id) != version
            )
        if not changed:
            return False
        logger.info(f"TimerEngine: External timer change detected for {changed}, reloading")
        return self._reload()

    def _revisions(self) -> Dict[str, int]:
        return {timer_id: timer.revision for timer_id, timer in self._timers.items()}

    def _rederive(self, timer: TimerState, now: int):
        if not timer.is_active:
            timer.start_time = None
            return
        if timer.start_time is None or timer.remaining_at_start is None:
            # No running interval recorded; re-arm from the frozen values
            logger.warning(f"TimerEngine: Active timer {timer.id} has no start snapshot, re-arming at {now}")
            timer.start_time = now
            timer.remaining_at_start = timer.remaining_time
            timer.elapsed_at_start = timer.elapsed_time
            return
        if timer.elapsed_at_start is None:
            timer.elapsed_at_start = 0
        self._advance(timer, now)
        if timer.remaining_time <= 0:
            timer.status = TimerStatus.FINISHED
        elif timer.remaining_time <= self.warning_threshold:
            timer.status = TimerStatus.WARNING
        else:
            timer.status = TimerStatus.RUNNING

    def _settle_markers(self, timer: TimerState):
        """Aligns side-effect markers with a freshly loaded status"""
        if timer.status == TimerStatus.FINISHED:
            timer.warned = False
            self._enter_finished(timer, now=None)
        elif timer.status == TimerStatus.WARNING:
            if timer.finished_alarm_active:
                self._clear_alarm(timer)
            self._enter_warning(timer, now=None)
        else:
            if timer.finished_alarm_active:
                self._clear_alarm(timer)
            timer.warned = False

    # --- Recompute tick ---

    def tick(self, now: Optional[int] = None) -> List[str]:
        """
        Recomputes every active timer from its start snapshot. Returns the ids
        of timers whose status changed during this pass.
        """
        with self._lock:
            active = [t for t in self._timers.values() if t.is_active]
            if not active:
                return []
            now = self.clock() if now is None else now
            changed = []
            for timer in active:
                if timer.start_time is None or timer.remaining_at_start is None:
                    continue
                self._advance(timer, now)

                if timer.remaining_time <= 0 and timer.status != TimerStatus.FINISHED:
                    timer.status = TimerStatus.FINISHED
                    timer.warned = False
                    self._enter_finished(timer, now)
                    self._persist(timer, now)
                    changed.append(timer.id)
                elif timer.status == TimerStatus.FINISHED:
                    continue
                elif timer.remaining_time <= self.warning_threshold and timer.status == TimerStatus.RUNNING:
                    timer.status = TimerStatus.WARNING
                    self._enter_warning(timer, now)
                    self._persist(timer, now)
                    changed.append(timer.id)
            return changed

    def _advance(self, timer: TimerState, now: int):
        """Brings remaining/elapsed up to ``now`` without touching the status"""
        since = now - timer.start_time
        timer.remaining_time = timer.remaining_at_start - since
        timer.elapsed_time = (timer.elapsed_at_start or 0) + since

    # --- Operations ---

    def set_duration(self, timer_id: str, minutes) -> dict:
        with self._lock:
            timer = self._get(timer_id)
            if timer.status != TimerStatus.IDLE or minutes is None or minutes <= 0:
                return timer.to_dict()
            now = self.clock()
            duration = int(minutes * MINUTE_MS)
            timer.duration = duration
            timer.remaining_time = duration
            self._persist(timer, now)
            self._emit("duration_set", timer)
            return timer.to_dict()

    def start(self, timer_id: str, payment_type="postpaid") -> dict:
        payment = self._payment_type(payment_type)
        with self._lock:
            timer = self._get(timer_id)
            if timer.status != TimerStatus.IDLE:
                return timer.to_dict()
            now = self.clock()
            timer.status = TimerStatus.RUNNING
            timer.start_time = now
            timer.remaining_at_start = timer.remaining_time
            timer.elapsed_at_start = timer.elapsed_time

            price = calculate_price(timer.id, timer.duration, self.prices, self.default_price)
            if payment == PaymentType.PREPAID:
                timer.paid_amount, timer.unpaid_amount = price, 0
            else:
                timer.paid_amount, timer.unpaid_amount = 0, price

            self._log(timer, TimerAction.STARTED, now)
            self._persist(timer, now)
            self._emit(TimerAction.STARTED.value, timer)
            return timer.to_dict()

    def stop(self, timer_id: str) -> dict:
        with self._lock:
            timer = self._get(timer_id)
            if not timer.is_active:
                return timer.to_dict()
            now = self.clock()
            self._clear_alarm(timer)
            timer.warned = False
            self._advance(timer, now)
            timer.status = TimerStatus.STOPPED
            timer.start_time = None
            timer.remaining_at_start = None
            timer.elapsed_at_start = None

            overtime_entry = None
            minutes_over = overtime_minutes(timer.remaining_time)
            if minutes_over > 0:
                overtime_entry = {
                    "timer_id": timer.id,
                    "timer_name": timer.name,
                    "overtime_minutes": minutes_over,
                    "timestamp": now,
                }
            self.writer.submit(
                f"daily stats for {timer.id}",
                self.gateway.merge_daily_stat,
                self.period_key(now),
                timer.id,
                timer.elapsed_time,
                overtime_entry,
                now,
            )

            self._log(timer, TimerAction.STOPPED, now)
            self._persist(timer, now)
            self._emit(TimerAction.STOPPED.value, timer)
            return timer.to_dict()

    def extend(self, timer_id: str, extra_minutes=60, payment_type="postpaid") -> dict:
        payment = self._payment_type(payment_type)
        with self._lock:
            timer = self._get(timer_id)
            if not timer.is_active or extra_minutes is None or extra_minutes <= 0:
                return timer.to_dict()
            now = self.clock()
            self._clear_alarm(timer)
            timer.warned = False
            self._advance(timer, now)

            extra = int(extra_minutes * MINUTE_MS)
            timer.duration += extra
            timer.remaining_time += extra
            timer.start_time = now
            timer.remaining_at_start = timer.remaining_time
            timer.elapsed_at_start = timer.elapsed_time
            timer.status = TimerStatus.RUNNING

            price = calculate_extension_price(timer.id, extra_minutes, self.prices, self.default_price)
            if payment == PaymentType.PREPAID:
                timer.paid_amount += price
            else:
                timer.unpaid_amount += price

            self._log(timer, TimerAction.EXTENDED, now)
            self._persist(timer, now)
            self._emit(TimerAction.EXTENDED.value, timer)
            return timer.to_dict()

    def reset(self, timer_id: str) -> dict:
        with self._lock:
            timer = self._get(timer_id)
            now = self.clock()
            self._clear_alarm(timer)
            timer.warned = False
            timer.status = TimerStatus.IDLE
            timer.start_time = None
            timer.remaining_at_start = None
            timer.elapsed_at_start = None
            timer.duration = DEFAULT_DURATION_MS
            timer.remaining_time = DEFAULT_DURATION_MS
            timer.elapsed_time = 0
            timer.paid_amount = 0
            timer.unpaid_amount = 0

            self._log(timer, TimerAction.RESET, now)
            self._persist(timer, now)
            self._emit(TimerAction.RESET.value, timer)
            return timer.to_dict()

    def adjust_time(self, timer_id: str, delta_minutes) -> dict:
        with self._lock:
            timer = self._get(timer_id)
            if not timer.is_active or delta_minutes is None:
                return timer.to_dict()
            now = self.clock()
            self._advance(timer, now)

            delta = int(delta_minutes * MINUTE_MS)
            timer.remaining_time = max(0, timer.remaining_time + delta)
            timer.duration = max(0, timer.duration + delta)
            timer.start_time = now
            timer.remaining_at_start = timer.remaining_time
            timer.elapsed_at_start = timer.elapsed_time

            if timer.remaining_time <= 0:
                timer.status = TimerStatus.FINISHED
                timer.warned = False
                self._enter_finished(timer, now)
            else:
                if timer.status == TimerStatus.FINISHED:
                    self._clear_alarm(timer)
                if timer.remaining_time > self.warning_threshold:
                    timer.status = TimerStatus.RUNNING
                    timer.warned = False
                else:
                    timer.status = TimerStatus.WARNING
                    self._enter_warning(timer, now)

            self._log(timer, TimerAction.ADJUSTED, now)
            self._persist(timer, now)
            self._emit(TimerAction.ADJUSTED.value, timer)
            return timer.to_dict()

    def stop_alarm(self, timer_id: str) -> dict:
        """Silences a ringing alarm; the timer keeps its status and is not re-alarmed"""
        with self._lock:
            timer = self._get(timer_id)
            if timer.finished_alarm_active:
                timer.alarm_acknowledged = True
            self._alert("stop_alarm", timer.id)
            self._emit("alarm_stopped", timer)
            return timer.to_dict()

    def stop_all_alarms(self):
        with self._lock:
            for timer in self._timers.values():
                if timer.finished_alarm_active and not timer.alarm_acknowledged:
                    timer.alarm_acknowledged = True
                    self._alert("stop_alarm", timer.id)

    # --- Views ---

    def get(self, timer_id: str) -> dict:
        with self._lock:
            return self._get(timer_id).to_dict()

    def snapshot(self) -> List[dict]:
        with self._lock:
            return [timer.to_dict() for timer in self._timers.values()]

    def active_timers(self) -> List[dict]:
        with self._lock:
            return [timer.to_dict() for timer in self._timers.values() if timer.is_active]

    def subscribe(self, listener: Callable[[dict], None]):
        self._listeners.append(listener)
        return listener

    def unsubscribe(self, listener: Callable[[dict], None]):
        if listener in self._listeners:
            self._listeners.remove(listener)

    # --- Internals ---

    def _get(self, timer_id: str) -> TimerState:
        timer = self._timers.get(timer_id)
        if timer is None:
            raise UnknownTimerError(timer_id)
        return timer

    @staticmethod
    def _payment_type(payment_type) -> PaymentType:
        if isinstance(payment_type, PaymentType):
            return payment_type
        try:
            return PaymentType(payment_type)
        except ValueError:
            raise InvalidPaymentTypeError(payment_type)

    def _enter_warning(self, timer: TimerState, now: Optional[int]):
        if timer.warned:
            return
        timer.warned = True
        self._alert("play_warning", timer.name)
        self._alert("notify", f"{timer.name}: 5 minutes left", "Session is about to end", False)
        # now is None when the status was re-derived on load; the transition was logged by whoever caused it
        if now is not None:
            self._log(timer, TimerAction.WARNING, now)
            self._emit(TimerAction.WARNING.value, timer)

    def _enter_finished(self, timer: TimerState, now: Optional[int]):
        if timer.finished_alarm_active:
            return
        timer.finished_alarm_active = True
        timer.alarm_acknowledged = False
        self._alert("play_finished_alarm", timer.id, timer.name)
        self._alert("notify", f"{timer.name}: time is up", "Session time has ended", True)
        if now is not None:
            self._log(timer, TimerAction.FINISHED, now)
            self._emit(TimerAction.FINISHED.value, timer)

    def _clear_alarm(self, timer: TimerState):
        if timer.finished_alarm_active:
            self._alert("stop_alarm", timer.id)
        timer.finished_alarm_active = False
        timer.alarm_acknowledged = False

    def _alert(self, method: str, *args):
        try:
            getattr(self.alerts, method)(*args)
        except Exception as e:
            logger.error(f"TimerEngine: Alert '{method}' failed for {args}: {str(e)}", exc_info=True)

    def _log(self, timer: TimerState, action: TimerAction, now: int):
        entry = {
            "timestamp": now,
            "timer_id": timer.id,
            "timer_name": timer.name,
            "action": action.value,
        }
        self.writer.submit(f"activity {action.value} for {timer.id}", self.gateway.append_activity, entry)

    def _persist(self, timer: TimerState, now: int):
        timer.revision += 1
        record = timer.to_record()
        record["updated_at"] = now
        self.writer.submit(f"save timer {timer.id}", self._write_timer, record)

    def _write_timer(self, record: dict):
        """Upserts one row and records its new version when nobody else wrote it in between"""
        version = self.gateway.upsert_timer(record)
        if version is None:
            return
        with self._lock:
            known = self._versions.get(record["id"], 0)
            if version == known + 1:
                self._versions[record["id"]] = version
            else:
                # Another process wrote this row since we last saw it; leave the
                # version unmatched so the next sync reloads
                logger.warning(
                    f"TimerEngine: Timer {record['id']} was at version {version - 1}, expected {known}"
                )

    def _emit(self, action: str, timer: Optional[TimerState]):
        event = {"action": action, "timer": timer.to_dict() if timer is not None else None}
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"TimerEngine: Listener failed for '{action}': {str(e)}", exc_info=True)
