from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import current_operator
from ..container import Container
from ..operators.model import describe
from .service import ScanRequest


def register(app: Flask, container: Container) -> None:
    @app.route("/api/scan", methods=["POST"], endpoint="api_scan")
    def api_scan():
        """Check a participant in or out, whichever their ledger says is next."""
        operator = current_operator(container.operator_service)
        data = request.get_json(silent=True) or {}

        result = container.scan_processor.process(
            ScanRequest(
                token=data.get("token") or "",
                operator=operator,
                event_id=data.get("eventId"),
                gate=(data.get("gate") or None),
                scan_type=data.get("scanType"),
            )
        )
        return jsonify({"success": True, **result.to_dict(), "operator": describe(operator)}), 200
