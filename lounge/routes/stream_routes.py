import queue
from flask import Blueprint, Response, jsonify, current_app
from lounge.sse_utils import format_sse

stream_bp = Blueprint("stream", __name__)

KEEP_ALIVE_SECONDS = 15


@stream_bp.route("/alerts", methods=["GET"])
def get_alerts():
    alerts = current_app.extensions["timer_alerts"]
    return jsonify({"active_alarms": getattr(alerts, "active_alarms", [])}), 200


@stream_bp.route("/alerts/stop", methods=["POST"])
def stop_all_alarms():
    try:
        current_app.extensions["timer_engine"].stop_all_alarms()
        return jsonify({"message": "All alarms stopped"}), 200
    except Exception as e:
        current_app.logger.error(f"Error stopping alarms: {str(e)}", exc_info=True)
        return jsonify({"error": "Failed to stop alarms"}), 500


@stream_bp.route("/stream", methods=["GET"])
def stream():
    """Server-sent events: a ``snapshot`` first, then ``timer`` and ``alert`` events"""
    announcer = current_app.extensions["announcer"]
    engine = current_app.extensions["timer_engine"]
    alerts = current_app.extensions["timer_alerts"]
    listener = announcer.listen()
    initial = format_sse(
        {"timers": engine.snapshot(), "active_alarms": getattr(alerts, "active_alarms", [])},
        event="snapshot",
    )

    def events():
        try:
            yield initial
            while True:
                try:
                    yield listener.get(timeout=KEEP_ALIVE_SECONDS)
                except queue.Empty:
                    yield ": keep-alive\n\n"
        finally:
            announcer.unlisten(listener)

    return Response(
        events(),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
