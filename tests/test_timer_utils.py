from datetime import datetime

import pytz

from lounge.utils.timer_utils import (
    calculate_extension_price,
    calculate_price,
    format_elapsed,
    format_time,
    get_daily_period_key,
    overtime_minutes,
    price_per_hour,
)


def test_price_per_hour_falls_back_for_unknown_station():
    assert price_per_hour("vip-super") == 350
    assert price_per_hour("darts-1") == 100
    assert price_per_hour("darts-1", {"darts-1": 80}) == 80


def test_calculate_price_bills_started_hours():
    assert calculate_price("table-1", 90 * 60 * 1000) == 200
    assert calculate_price("table-1", 60 * 60 * 1000) == 100
    assert calculate_price("vip-medium", 61 * 60 * 1000) == 500


def test_extension_price_ignores_existing_duration():
    assert calculate_extension_price("table-1", 30) == 100
    assert calculate_extension_price("vip-super", 90) == 700


def test_overtime_minutes_rounds_up():
    assert overtime_minutes(5000) == 0
    assert overtime_minutes(0) == 0
    assert overtime_minutes(-1) == 1
    assert overtime_minutes(-120000) == 2


def test_period_key_before_boundary_belongs_to_previous_day():
    # 04:30 in Manila on the 19th
    late_night = datetime(2026, 10, 18, 20, 30, tzinfo=pytz.UTC)
    assert get_daily_period_key(late_night) == "2026-10-18"

    # 05:00 in Manila on the 19th
    morning = datetime(2026, 10, 18, 21, 0, tzinfo=pytz.UTC)
    assert get_daily_period_key(morning) == "2026-10-19"


def test_period_key_respects_timezone_and_boundary():
    moment = datetime(2026, 10, 18, 2, 0, tzinfo=pytz.UTC)
    assert get_daily_period_key(moment, tz_name="UTC", boundary_hour=5) == "2026-10-17"
    assert get_daily_period_key(moment, tz_name="UTC", boundary_hour=0) == "2026-10-18"


def test_format_time():
    assert format_time(None) == "00:00:00"
    assert format_time(-5000) == "00:00:00"
    assert format_time(3725000) == "01:02:05"


def test_format_elapsed():
    assert format_elapsed(5 * 60 * 1000) == "5m"
    assert format_elapsed(65 * 60 * 1000) == "1h 5m"
