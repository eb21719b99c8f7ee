from __future__ import annotations

from ..extensions import db
from orderdesk.time_utils import to_utc_z


class SalesOrder(db.Model):
    """
    Sales order for a customer.

    created_at is the auto-allocation tie-break key: older orders are paid
    down first. start3d_* columns are maintained by the jobs service.
    """
    __tablename__ = "sales_orders"
    __table_args__ = (
        db.Index("ix_sales_orders_customer_status", "customer_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)

    # Human-readable code (e.g., "SO-1042")
    so_code = db.Column(db.String(64), nullable=False, unique=True, index=True)

    status = db.Column(db.String(32), nullable=False)
    priority = db.Column(db.String(16), nullable=False, default="P2")
    lead_time_days = db.Column(db.Integer, nullable=False, default=28)

    started_at = db.Column(db.DateTime(timezone=True), nullable=True)
    start3d_due_at = db.Column(db.DateTime(timezone=True), nullable=True)
    start3d_flagged_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    customer = db.relationship("Customer", backref=db.backref("sales_orders", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "so_code": self.so_code,
            "status": self.status,
            "priority": self.priority,
            "lead_time_days": self.lead_time_days,
            "started_at": to_utc_z(self.started_at) if self.started_at else None,
            "start3d_due_at": to_utc_z(self.start3d_due_at) if self.start3d_due_at else None,
            "start3d_flagged_at": to_utc_z(self.start3d_flagged_at) if self.start3d_flagged_at else None,
            "created_at": to_utc_z(self.created_at),
        }


class Revision(db.Model):
    """Uploaded file (design revision) attached to a sales order."""
    __tablename__ = "revisions"
    __table_args__ = (
        db.Index("ix_revisions_sales_order_created", "sales_order_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sales_order_id = db.Column(db.Integer, db.ForeignKey("sales_orders.id"), nullable=False, index=True)
    note = db.Column(db.Text, nullable=False, default="")
    file_path = db.Column(db.String(512), nullable=False)
    status = db.Column(db.String(32), nullable=False, default="pending")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sales_order = db.relationship("SalesOrder", backref=db.backref("revisions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sales_order_id": self.sales_order_id,
            "note": self.note,
            "file_path": self.file_path,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }
