# Overview: Flask API routes for background jobs (admin only).

from flask import Blueprint, jsonify, current_app

from ..services import job_service
from ..decorators import require_auth, require_role


jobs_bp = Blueprint("jobs", __name__, url_prefix="/api/jobs")


@jobs_bp.post("/run")
@require_auth
@require_role("admin")
def run_jobs_route():
    try:
        run = job_service.run_jobs()
        return jsonify({"run": run.to_dict()}), 200
    except Exception:
        current_app.logger.exception("Job run failed")
        return jsonify({"error": "Internal server error"}), 500


@jobs_bp.get("/runs")
@require_auth
@require_role("admin")
def list_job_runs_route():
    return jsonify({"runs": [r.to_dict() for r in job_service.list_job_runs()]}), 200
