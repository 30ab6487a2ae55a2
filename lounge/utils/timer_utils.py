import math
from datetime import datetime, timedelta

import pytz

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS

# Default session length for a fresh or reset timer
DEFAULT_DURATION_MS = HOUR_MS

# Remaining time at which a running timer switches to "warning"
WARNING_THRESHOLD_MS = 5 * MINUTE_MS

DEFAULT_PRICE_PER_HOUR = 100

# Pricing per hour in pesos
TIMER_PRICING = {
    "table-1": 100,
    "table-2": 100,
    "table-3": 100,
    "ps-1": 100,
    "ps-2": 100,
    "vip-super": 350,
    "vip-medium": 250,
    "vip-comfort": 250,
}

DEFAULT_STATIONS = [
    {"id": "table-1", "name": "Table 1", "category": "billiard"},
    {"id": "table-2", "name": "Table 2", "category": "billiard"},
    {"id": "table-3", "name": "Table 3", "category": "billiard"},
    {"id": "ps-1", "name": "PlayStation 1", "category": "playstation"},
    {"id": "ps-2", "name": "PlayStation 2", "category": "playstation"},
    {"id": "vip-super", "name": "VIP Super", "category": "vip"},
    {"id": "vip-medium", "name": "VIP Medium", "category": "vip"},
    {"id": "vip-comfort", "name": "VIP Comfort", "category": "vip"},
]


def price_per_hour(timer_id: str, prices: dict = None, default: int = DEFAULT_PRICE_PER_HOUR) -> int:
    prices = TIMER_PRICING if prices is None else prices
    return prices.get(timer_id, default)


def calculate_price(timer_id: str, duration_ms: int, prices: dict = None,
                    default: int = DEFAULT_PRICE_PER_HOUR) -> int:
    """Price of a session, billed per started hour."""
    billed_hours = math.ceil(duration_ms / HOUR_MS)
    return billed_hours * price_per_hour(timer_id, prices, default)


def calculate_extension_price(timer_id: str, extra_minutes: int, prices: dict = None,
                              default: int = DEFAULT_PRICE_PER_HOUR) -> int:
    """Price of an extension, billed on the extension alone, not the new total."""
    billed_hours = math.ceil(extra_minutes / 60)
    return billed_hours * price_per_hour(timer_id, prices, default)


def overtime_minutes(remaining_ms: int) -> int:
    if remaining_ms >= 0:
        return 0
    return math.ceil(abs(remaining_ms) / MINUTE_MS)


def get_daily_period_key(now: datetime = None, tz_name: str = "Asia/Manila", boundary_hour: int = 5) -> str:
    """
    Returns the business day key (YYYY-MM-DD) for the given moment.

    The lounge stays open past midnight, so anything before ``boundary_hour``
    local time is counted against the previous calendar day.

    Args:
        now: Aware datetime to bucket. Defaults to the current time.
        tz_name: pytz zone name of the lounge.
        boundary_hour: Local hour at which a new business day begins.
    """
    tz = pytz.timezone(tz_name)
    if now is None:
        now = datetime.now(pytz.UTC)
    local = now.astimezone(tz)
    if local.hour < boundary_hour:
        local = local - timedelta(days=1)
    return local.strftime("%Y-%m-%d")


def format_time(ms) -> str:
    if ms is None:
        return "00:00:00"
    total_seconds = max(0, int(ms) // 1000)
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_elapsed(ms: int) -> str:
    hours = ms // HOUR_MS
    minutes = (ms % HOUR_MS) // MINUTE_MS
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"
