from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.validators import parse_optional_int, parse_positive_int
from ..common.web import page_args, staff_required
from ..container import Container


def _event_id() -> int:
    return parse_positive_int(request.args.get("eventId"), "eventId")


def register(app: Flask, container: Container) -> None:
    @app.route("/api/analytics/top-participants", methods=["GET"], endpoint="api_top_participants")
    @staff_required
    def api_top_participants():
        event_id = _event_id()
        offset, limit = page_args()
        page = container.analytics_service.top_participants(event_id, offset=offset, limit=limit)
        return jsonify({"success": True, "eventId": event_id, **page.to_dict()}), 200

    @app.route("/api/analytics/department-stats", methods=["GET"], endpoint="api_department_stats")
    @staff_required
    def api_department_stats():
        event_id = _event_id()
        offset, limit = page_args()
        report = container.analytics_service.department_stats(event_id, offset=offset, limit=limit)
        return jsonify({"success": True, "eventId": event_id, **report.to_dict()}), 200

    @app.route("/api/analytics/event-overview", methods=["GET"], endpoint="api_event_overview")
    @staff_required
    def api_event_overview():
        overview = container.analytics_service.event_overview(_event_id())
        return jsonify({"success": True, **overview.to_dict()}), 200

    @app.route("/api/analytics/operator-activity", methods=["GET"], endpoint="api_operator_activity")
    @staff_required
    def api_operator_activity():
        event_id = _event_id()
        offset, limit = page_args()
        page = container.analytics_service.operator_activity(event_id, offset=offset, limit=limit)
        return jsonify({"success": True, "eventId": event_id, **page.to_dict()}), 200

    @app.route(
        "/api/analytics/participants/<int:participant_id>/history",
        methods=["GET"],
        endpoint="api_participant_history",
    )
    @staff_required
    def api_participant_history(participant_id: int):
        event_id = parse_optional_int(request.args.get("eventId"), "eventId")
        history = container.analytics_service.participant_history(participant_id, event_id=event_id)
        return jsonify({"success": True, "eventId": event_id, **history.to_dict()}), 200

    @app.route("/api/analytics/department-details", methods=["GET"], endpoint="api_department_details")
    @staff_required
    def api_department_details():
        details = container.analytics_service.department_details(_event_id(), request.args.get("department") or "")
        return jsonify({"success": True, **details.to_dict()}), 200
