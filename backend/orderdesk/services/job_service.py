# Overview: Service-layer background jobs; flags sales orders not started on 3D within 72 hours.

from __future__ import annotations

import json
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import JobRun, SalesOrder
from orderdesk.time_utils import utcnow

START3D_JOB = "start3d_check"
START3D_WINDOW = timedelta(hours=72)


def run_start3d_check(now: datetime) -> dict:
    """
    Maintain start3d_due_at (started_at + 72h) and flag overdue orders once.

    Single transaction; the caller commits.
    """
    due_updated = 0
    flagged = 0

    orders = db.session.query(SalesOrder).filter(SalesOrder.started_at.isnot(None)).all()
    for order in orders:
        due = order.started_at + START3D_WINDOW
        if order.start3d_due_at != due:
            order.start3d_due_at = due
            due_updated += 1
        if order.start3d_flagged_at is not None:
            continue
        if now >= due:
            order.start3d_flagged_at = now
            flagged += 1

    return {"start3d_due_updated": due_updated, "start3d_flagged": flagged}


def _record_run(job_type: str, status: str, payload: dict, run_at: datetime, last_error: str | None) -> JobRun:
    run = JobRun(
        type=job_type,
        payload_json=json.dumps(payload),
        status=status,
        attempts=1,
        run_at=run_at,
        last_error=last_error,
        updated_at=utcnow(),
    )
    db.session.add(run)
    db.session.commit()
    return run


def run_jobs(now: datetime | None = None) -> JobRun:
    """
    Execute every configured job once and record the run.

    A failing job is rolled back and recorded as failed; the error is
    re-raised after the record is written.
    """
    now = now or utcnow()
    try:
        result = run_start3d_check(now)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception("Job %s failed", START3D_JOB)
        _record_run(START3D_JOB, "failed", {}, now, str(e))
        raise

    run = _record_run(START3D_JOB, "completed", result, now, None)
    current_app.logger.info(
        "Job %s completed: due_updated=%s flagged=%s",
        START3D_JOB, result["start3d_due_updated"], result["start3d_flagged"],
    )
    return run


def list_job_runs(limit: int = 50) -> list[JobRun]:
    return db.session.query(JobRun).order_by(JobRun.run_at.desc(), JobRun.id.desc()).limit(limit).all()
