from flask import Blueprint, jsonify, request, current_app
from lounge.services.stats_service import StatsService

stats_bp = Blueprint("stats", __name__)


@stats_bp.route("/activity", methods=["GET"])
def get_activity():
    try:
        limit = request.args.get("limit", default=100, type=int)
        timer_id = request.args.get("timer_id")
        return jsonify(StatsService.get_activity(limit=limit, timer_id=timer_id)), 200
    except Exception as e:
        current_app.logger.error(f"Error retrieving activity log: {str(e)}", exc_info=True)
        return jsonify({"error": "Failed to retrieve activity log"}), 500


@stats_bp.route("/stats/daily", methods=["GET"])
def get_daily_stats():
    try:
        period_key = request.args.get("period_key")
        return jsonify(StatsService.get_daily_stats(period_key)), 200
    except Exception as e:
        current_app.logger.error(f"Error retrieving daily stats: {str(e)}", exc_info=True)
        return jsonify({"error": "Failed to retrieve daily stats"}), 500


@stats_bp.route("/stats/daily/overtime", methods=["DELETE"])
def clear_overtime():
    try:
        period_key = request.args.get("period_key")
        return jsonify(StatsService.clear_overtime(period_key)), 200
    except Exception as e:
        current_app.logger.error(f"Error clearing overtime: {str(e)}", exc_info=True)
        return jsonify({"error": "Failed to clear overtime"}), 500
