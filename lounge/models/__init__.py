from lounge.models.timer import Timer
from lounge.models.activity_log import ActivityLogEntry
from lounge.models.daily_stat import DailyStat
from lounge.models.enums import TimerStatus, PaymentType, TimerAction
