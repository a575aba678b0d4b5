from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import admin_required, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/events/<int:event_id>/start", methods=["PATCH"], endpoint="api_event_start")
    @admin_required
    def api_event_start(event_id: int):
        result = container.lifecycle_service.force_start(event_id)
        message = "Event is already active" if result.already_satisfied else "Event started"
        return jsonify({"success": True, "message": message, **result.to_dict()}), 200

    @app.route("/api/events/<int:event_id>/end", methods=["PATCH"], endpoint="api_event_end")
    @admin_required
    def api_event_end(event_id: int):
        result = container.lifecycle_service.force_end(event_id)
        if result.already_ended:
            message = "Event was already ended"
        else:
            message = (
                f"Event ended: {result.closed_sessions} open sessions closed, "
                f"{result.total_nullified_minutes} minutes nullified"
            )
        return jsonify({"success": True, "message": message, **result.to_dict()}), 200

    @app.route("/api/events/<int:event_id>/restart", methods=["PATCH"], endpoint="api_event_restart")
    @admin_required
    def api_event_restart(event_id: int):
        result = container.lifecycle_service.restart(event_id)
        return jsonify({"success": True, "message": "Event restarted", **result.to_dict()}), 200

    @app.route("/api/events/<int:event_id>/phase", methods=["GET"], endpoint="api_event_phase")
    @login_required
    def api_event_phase(event_id: int):
        event = container.lifecycle_service.get_phase(event_id)
        return jsonify(
            {
                "success": True,
                "eventId": event.event_id,
                "name": event.name,
                "phase": event.phase.value,
                "isActive": event.is_active,
                "manuallyStarted": event.manually_started,
                "manuallyEnded": event.manually_ended,
            }
        ), 200
