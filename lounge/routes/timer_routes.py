from flask import Blueprint, jsonify, request, current_app
from lounge.exceptions import UnknownTimerError, MissingFieldsError, InvalidPaymentTypeError
from lounge.services.timer_service import TimerService

timer_bp = Blueprint("timers", __name__)


def _respond(result: dict):
    if "error" in result:
        return jsonify(result), 400
    result.pop("changed", None)
    return jsonify(result), 200


@timer_bp.route("/timers", methods=["GET"])
def get_timers():
    try:
        return jsonify(TimerService.get_timers()), 200
    except Exception as e:
        current_app.logger.error(f"Error retrieving timers: {str(e)}", exc_info=True)
        return jsonify({"error": "Failed to retrieve timers"}), 500


@timer_bp.route("/timers/active", methods=["GET"])
def get_active_timers():
    try:
        return jsonify(TimerService.get_active_timers()), 200
    except Exception as e:
        current_app.logger.error(f"Error retrieving active timers: {str(e)}", exc_info=True)
        return jsonify({"error": "Failed to retrieve active timers"}), 500


@timer_bp.route("/timers/sync", methods=["POST"])
def sync_timers():
    try:
        current_app.logger.info("Reloading timers from the database on request")
        return jsonify(TimerService.sync()), 200
    except Exception as e:
        current_app.logger.error(f"Error syncing timers: {str(e)}", exc_info=True)
        return jsonify({"error": "Failed to sync timers"}), 500


@timer_bp.route("/timers/<timer_id>", methods=["GET"])
def get_timer(timer_id):
    try:
        return jsonify(TimerService.get_timer(timer_id)), 200
    except UnknownTimerError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        current_app.logger.error(f"Error retrieving timer {timer_id}: {str(e)}", exc_info=True)
        return jsonify({"error": "Failed to retrieve timer"}), 500


@timer_bp.route("/timers/<timer_id>/duration", methods=["PUT"])
def set_duration(timer_id):
    try:
        data = request.get_json(silent=True) or {}
        if data.get("minutes") is None:
            raise MissingFieldsError(["minutes"])

        minutes_raw = data.get("minutes")
        try:
            minutes = int(minutes_raw)
        except (ValueError, TypeError):
            current_app.logger.warning(f"Invalid minutes value received: {minutes_raw}")
            return jsonify({"error": "'minutes' must be an integer"}), 400

        return _respond(TimerService.set_duration(timer_id, minutes))
    except UnknownTimerError as e:
        return jsonify({"error": str(e)}), 404
    except MissingFieldsError as e:
        return jsonify({"error": f"Missing required fields: {', '.join(e.fields)}"}), 400
    except Exception as e:
        current_app.logger.error(
            f"UNEXPECTED ERROR in set_duration route (timer {timer_id}): {str(e)}", exc_info=True
        )
        return jsonify({"error": "Failed to set timer duration"}), 500


@timer_bp.route("/timers/<timer_id>/start", methods=["POST"])
def start_timer(timer_id):
    try:
        data = request.get_json(silent=True) or {}
        payment_type = data.get("payment_type") or "postpaid"
        current_app.logger.info(f"Starting timer {timer_id} ({payment_type})")
        return _respond(TimerService.start(timer_id, payment_type))
    except UnknownTimerError as e:
        return jsonify({"error": str(e)}), 404
    except InvalidPaymentTypeError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        current_app.logger.error(
            f"UNEXPECTED ERROR in start_timer route (timer {timer_id}): {str(e)}", exc_info=True
        )
        return jsonify({"error": "Failed to start timer"}), 500


@timer_bp.route("/timers/<timer_id>/stop", methods=["POST"])
def stop_timer(timer_id):
    try:
        return _respond(TimerService.stop(timer_id))
    except UnknownTimerError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        current_app.logger.error(
            f"UNEXPECTED ERROR in stop_timer route (timer {timer_id}): {str(e)}", exc_info=True
        )
        return jsonify({"error": "Failed to stop timer"}), 500


@timer_bp.route("/timers/<timer_id>/extend", methods=["POST"])
def extend_timer(timer_id):
    try:
        data = request.get_json(silent=True) or {}
        minutes_raw = data.get("minutes", 60)
        try:
            minutes = int(minutes_raw)
        except (ValueError, TypeError):
            current_app.logger.warning(f"Invalid minutes value received: {minutes_raw}")
            return jsonify({"error": "'minutes' must be an integer"}), 400

        payment_type = data.get("payment_type") or "postpaid"
        return _respond(TimerService.extend(timer_id, minutes, payment_type))
    except UnknownTimerError as e:
        return jsonify({"error": str(e)}), 404
    except InvalidPaymentTypeError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        current_app.logger.error(
            f"UNEXPECTED ERROR in extend_timer route (timer {timer_id}): {str(e)}", exc_info=True
        )
        return jsonify({"error": "Failed to extend timer"}), 500


@timer_bp.route("/timers/<timer_id>/reset", methods=["POST"])
def reset_timer(timer_id):
    try:
        return _respond(TimerService.reset(timer_id))
    except UnknownTimerError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        current_app.logger.error(
            f"UNEXPECTED ERROR in reset_timer route (timer {timer_id}): {str(e)}", exc_info=True
        )
        return jsonify({"error": "Failed to reset timer"}), 500


@timer_bp.route("/timers/<timer_id>/adjust", methods=["POST"])
def adjust_timer(timer_id):
    try:
        data = request.get_json(silent=True) or {}
        if data.get("minutes") is None:
            raise MissingFieldsError(["minutes"])

        minutes_raw = data.get("minutes")
        try:
            minutes = int(minutes_raw)
        except (ValueError, TypeError):
            current_app.logger.warning(f"Invalid minutes value received: {minutes_raw}")
            return jsonify({"error": "'minutes' must be an integer"}), 400

        return _respond(TimerService.adjust_time(timer_id, minutes))
    except UnknownTimerError as e:
        return jsonify({"error": str(e)}), 404
    except MissingFieldsError as e:
        return jsonify({"error": f"Missing required fields: {', '.join(e.fields)}"}), 400
    except Exception as e:
        current_app.logger.error(
            f"UNEXPECTED ERROR in adjust_timer route (timer {timer_id}): {str(e)}", exc_info=True
        )
        return jsonify({"error": "Failed to adjust timer"}), 500


@timer_bp.route("/timers/<timer_id>/alarm/stop", methods=["POST"])
def stop_alarm(timer_id):
    try:
        return _respond(TimerService.stop_alarm(timer_id))
    except UnknownTimerError as e:
        return jsonify({"error": str(e)}), 404
    except Exception as e:
        current_app.logger.error(
            f"UNEXPECTED ERROR in stop_alarm route (timer {timer_id}): {str(e)}", exc_info=True
        )
        return jsonify({"error": "Failed to stop the alarm"}), 500
