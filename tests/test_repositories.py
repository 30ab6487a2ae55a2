import pytest

from lounge.repositories.activity_log_repository import ActivityLogRepository
from lounge.repositories.daily_stat_repository import DailyStatRepository
from lounge.repositories.timer_repository import TimerRepository
from lounge.utils.timer_utils import DEFAULT_DURATION_MS, DEFAULT_STATIONS


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield


def test_ensure_timers_is_idempotent(ctx):
    assert TimerRepository.ensure_timers(DEFAULT_STATIONS, DEFAULT_DURATION_MS) == []
    assert len(TimerRepository.get_all_timers()) == len(DEFAULT_STATIONS)

    extra = [{"id": "darts-1", "name": "Darts 1", "category": "darts"}]
    created = TimerRepository.ensure_timers(extra, DEFAULT_DURATION_MS)
    assert [t.id for t in created] == ["darts-1"]
    assert TimerRepository.get_timer("darts-1").status == "idle"


def test_upsert_timer_updates_and_stamps(ctx):
    TimerRepository.upsert_timer({"id": "ps-1", "status": "stopped", "elapsed_time": 42, "updated_at": 99})
    row = TimerRepository.get_timer("ps-1")
    assert row.status == "stopped"
    assert row.elapsed_time == 42
    assert row.name == "PlayStation 1"
    assert row.updated_at == 99
    assert row.version == 1
    assert TimerRepository.get_versions()["ps-1"] == 1
    assert TimerRepository.get_versions()["ps-2"] == 0


def test_activity_prune_keeps_newest(ctx):
    for i in range(6):
        ActivityLogRepository.add_entry(timestamp=1000 + i, timer_id="ps-1", timer_name="PlayStation 1", action="started")

    assert ActivityLogRepository.prune(3) == 3
    assert ActivityLogRepository.prune(3) == 0

    recent = ActivityLogRepository.get_recent()
    assert [entry.timestamp for entry in recent] == [1005, 1004, 1003]


def test_activity_filtered_by_timer(ctx):
    ActivityLogRepository.add_entry(timestamp=1, timer_id="ps-1", timer_name="PlayStation 1", action="started")
    ActivityLogRepository.add_entry(timestamp=2, timer_id="ps-2", timer_name="PlayStation 2", action="started")

    entries = ActivityLogRepository.get_recent(timer_id="ps-2")
    assert [entry.to_dict()["timer_id"] for entry in entries] == ["ps-2"]


def test_merge_session_accumulates_elapsed_and_overtime(ctx):
    overtime = {"timer_id": "ps-1", "timer_name": "PlayStation 1", "overtime_minutes": 3, "timestamp": 5}
    DailyStatRepository.merge_session("2026-10-18", "ps-1", 60000, None, 1)
    DailyStatRepository.merge_session("2026-10-18", "ps-1", 30000, overtime, 2)
    DailyStatRepository.merge_session("2026-10-18", "ps-2", 10000, None, 3)

    stat = DailyStatRepository.get_by_period("2026-10-18")
    assert stat.elapsed_by_timer == {"ps-1": 90000, "ps-2": 10000}
    assert stat.overtime == [overtime]
    assert stat.to_dict()["total_overtime_minutes"] == 3
    assert stat.updated_at == 3


def test_clear_overtime_keeps_elapsed(ctx):
    overtime = {"timer_id": "ps-1", "timer_name": "PlayStation 1", "overtime_minutes": 1, "timestamp": 5}
    DailyStatRepository.merge_session("2026-10-18", "ps-1", 60000, overtime, 1)

    assert DailyStatRepository.clear_overtime("2026-10-18", 2) is True
    assert DailyStatRepository.clear_overtime("2026-10-18", 3) is False
    assert DailyStatRepository.clear_overtime("2020-01-01", 3) is False

    stat = DailyStatRepository.get_by_period("2026-10-18")
    assert stat.overtime == []
    assert stat.elapsed_by_timer == {"ps-1": 60000}
