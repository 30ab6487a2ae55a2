from enum import Enum


class TimerStatus(Enum):
    IDLE = "idle"
    RUNNING = "running"
    WARNING = "warning"
    FINISHED = "finished"
    STOPPED = "stopped"


ACTIVE_STATUSES = (TimerStatus.RUNNING, TimerStatus.WARNING, TimerStatus.FINISHED)


class PaymentType(Enum):
    PREPAID = "prepaid"
    POSTPAID = "postpaid"


class TimerAction(Enum):
    STARTED = "started"
    STOPPED = "stopped"
    WARNING = "warning"
    FINISHED = "finished"
    EXTENDED = "extended"
    RESET = "reset"
    ADJUSTED = "adjusted"
