from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.validators import parse_optional_int
from ..common.web import admin_required, page_args
from ..container import Container
from ..core.constants import DEFAULT_SCAN_LOG_LIMIT


def register(app: Flask, container: Container) -> None:
    @app.route("/api/scan-logs", methods=["GET"], endpoint="api_scan_logs")
    @admin_required
    def api_scan_logs():
        offset, limit = page_args(default_limit=DEFAULT_SCAN_LOG_LIMIT)
        logs = container.scan_log_service.list_logs(
            event_id=parse_optional_int(request.args.get("eventId"), "eventId"),
            participant_id=parse_optional_int(request.args.get("participantId"), "participantId"),
            scan_type=request.args.get("scanType"),
            status=request.args.get("status"),
            operator_type=request.args.get("operatorType"),
            offset=offset,
            limit=limit,
        )
        return jsonify(
            {
                "success": True,
                "items": [log.to_dict() for log in logs],
                "pagination": {"offset": offset, "limit": limit},
            }
        ), 200

    @app.route("/api/scan-logs/<int:scan_log_id>/flag", methods=["PATCH"], endpoint="api_scan_log_flag")
    @admin_required
    def api_scan_log_flag(scan_log_id: int):
        data = request.get_json(silent=True) or {}
        entry = container.scan_log_service.flag(scan_log_id, reason=str(data.get("reason") or ""))
        return jsonify({"success": True, "scanLog": entry.to_dict()}), 200
