from typing import Dict, Any
from flask import current_app
from lounge.services.timer_engine import TimerEngine
from lounge.utils.timer_utils import format_time


class TimerService:
    @staticmethod
    def _engine() -> TimerEngine:
        return current_app.extensions["timer_engine"]

    @staticmethod
    def _apply(timer_id: str, verb: str, operation, *args) -> Dict[str, Any]:
        """Runs one engine operation and reports whether it changed anything"""
        engine = TimerService._engine()
        with engine.lock:
            before = engine.get(timer_id)
            after = operation(timer_id, *args)
        if after["revision"] == before["revision"]:
            current_app.logger.info(
                f"TimerService: {verb} ignored for {timer_id} in status {after['status']}"
            )
            return {
                "timer": after,
                "changed": False,
                "message": f"{after['name']} is {after['status']}; nothing to {verb}",
            }
        return {"timer": after, "changed": True}

    @staticmethod
    def get_timers() -> Dict[str, Any]:
        return {"timers": TimerService._engine().snapshot()}

    @staticmethod
    def get_active_timers() -> Dict[str, Any]:
        return {"timers": TimerService._engine().active_timers()}

    @staticmethod
    def get_timer(timer_id: str) -> Dict[str, Any]:
        return {"timer": TimerService._engine().get(timer_id)}

    @staticmethod
    def set_duration(timer_id: str, minutes: int) -> Dict[str, Any]:
        """Set the session length of an idle timer"""
        if minutes <= 0:
            return {"error": "Duration must be a positive number of minutes"}
        result = TimerService._apply(timer_id, "set the duration of", TimerService._engine().set_duration, minutes)
        if result["changed"]:
            timer = result["timer"]
            result["message"] = f"{timer['name']} duration set to {format_time(timer['duration'])}"
        return result

    @staticmethod
    def start(timer_id: str, payment_type: str = "postpaid") -> Dict[str, Any]:
        result = TimerService._apply(timer_id, "start", TimerService._engine().start, payment_type)
        if result["changed"]:
            timer = result["timer"]
            amount = timer["paid_amount"] or timer["unpaid_amount"]
            result["message"] = f"{timer['name']} started ({payment_type}, {amount})"
        return result

    @staticmethod
    def stop(timer_id: str) -> Dict[str, Any]:
        result = TimerService._apply(timer_id, "stop", TimerService._engine().stop)
        if result["changed"]:
            timer = result["timer"]
            message = f"{timer['name']} stopped after {format_time(timer['elapsed_time'])}"
            if timer["overtime_ms"] > 0:
                message += f" ({format_time(timer['overtime_ms'])} overtime)"
            result["message"] = message
        return result

    @staticmethod
    def extend(timer_id: str, minutes: int = 60, payment_type: str = "postpaid") -> Dict[str, Any]:
        if minutes <= 0:
            return {"error": "Extension must be a positive number of minutes"}
        result = TimerService._apply(timer_id, "extend", TimerService._engine().extend, minutes, payment_type)
        if result["changed"]:
            timer = result["timer"]
            result["message"] = f"{timer['name']} extended by {minutes} minutes"
        return result

    @staticmethod
    def reset(timer_id: str) -> Dict[str, Any]:
        result = TimerService._apply(timer_id, "reset", TimerService._engine().reset)
        result["message"] = f"{result['timer']['name']} reset"
        return result

    @staticmethod
    def adjust_time(timer_id: str, minutes: int) -> Dict[str, Any]:
        if minutes == 0:
            return {"error": "Adjustment must not be zero"}
        result = TimerService._apply(timer_id, "adjust", TimerService._engine().adjust_time, minutes)
        if result["changed"]:
            timer = result["timer"]
            result["message"] = (
                f"{timer['name']} adjusted by {minutes:+d} minutes, "
                f"{format_time(timer['remaining_time'])} remaining"
            )
        return result

    @staticmethod
    def stop_alarm(timer_id: str) -> Dict[str, Any]:
        timer = TimerService._engine().stop_alarm(timer_id)
        return {"timer": timer, "message": f"Alarm stopped for {timer['name']}"}

    @staticmethod
    def sync() -> Dict[str, Any]:
        """Reload every timer from the database, once pending local writes have landed"""
        engine = TimerService._engine()
        engine.writer.join()
        return {"timers": engine.reload()}
