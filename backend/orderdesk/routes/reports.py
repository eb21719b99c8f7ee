# Overview: Flask API routes for reporting (KPIs and CSV exports).

from flask import Blueprint, Response, request, jsonify, current_app

from ..services import reporting_service
from ..decorators import require_auth
from orderdesk.validation import ValidationError, parse_date_value


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/kpis")
@require_auth
def kpis_route():
    """Query params: start, end (optional, ISO date or date-time)."""
    try:
        start = parse_date_value(request.args.get("start"), "start")
        end = parse_date_value(request.args.get("end"), "end")
        return jsonify({"kpis": reporting_service.kpis(start, end)}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to compute KPIs")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/export/<string:kind>")
@require_auth
def export_route(kind: str):
    exporter = reporting_service.EXPORTS.get(kind)
    if exporter is None:
        return jsonify({"error": "unknown export"}), 404
    try:
        body = exporter()
    except Exception:
        current_app.logger.exception("Failed to export %s", kind)
        return jsonify({"error": "Internal server error"}), 500
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={kind}.csv"},
    )
