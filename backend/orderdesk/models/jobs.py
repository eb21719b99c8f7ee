from __future__ import annotations

import json

from ..extensions import db
from orderdesk.time_utils import to_utc_z


class JobRun(db.Model):
    """Append-only record of background job executions."""
    __tablename__ = "job_runs"
    __table_args__ = (
        db.Index("ix_job_runs_status_run_at", "status", "run_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(64), nullable=False)
    payload_json = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False)  # completed, failed
    attempts = db.Column(db.Integer, nullable=False, default=1)
    run_at = db.Column(db.DateTime(timezone=True), nullable=False)
    last_error = db.Column(db.Text, nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "payload": json.loads(self.payload_json) if self.payload_json else None,
            "status": self.status,
            "attempts": self.attempts,
            "run_at": to_utc_z(self.run_at),
            "last_error": self.last_error,
            "updated_at": to_utc_z(self.updated_at),
        }
