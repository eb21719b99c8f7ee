from __future__ import annotations

from ..extensions import db
from orderdesk.money import cents_to_amount
from orderdesk.time_utils import to_utc_z


class Payment(db.Model):
    """
    Incoming customer payment.

    DESIGN: A payment is recorded once, together with its allocations, and
    is immutable afterwards (no update, void or delete path).
    sales_order_id is the optional anchor order; which orders the money
    actually settles is recorded in allocations.
    """
    __tablename__ = "payments"
    __table_args__ = (
        db.Index("ix_payments_order_date", "sales_order_id", "date"),
        db.CheckConstraint("amount_cents > 0", name="ck_payments_amount_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sales_order_id = db.Column(db.Integer, db.ForeignKey("sales_orders.id"), nullable=True)

    date = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    method = db.Column(db.String(64), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    reference = db.Column(db.String(255), nullable=False, default="")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sales_order = db.relationship("SalesOrder", backref=db.backref("anchored_payments", lazy=True))
    allocations = db.relationship(
        "Allocation",
        back_populates="payment",
        order_by="Allocation.id",
        lazy="selectin",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sales_order_id": self.sales_order_id,
            "date": to_utc_z(self.date),
            "method": self.method,
            "amount": cents_to_amount(self.amount_cents),
            "amount_cents": self.amount_cents,
            "reference": self.reference,
            "created_at": to_utc_z(self.created_at),
            "allocations": [a.to_dict() for a in self.allocations],
        }


class Allocation(db.Model):
    """
    Portion of a payment applied to one sales order.

    Never updated after creation. Zero-value rows are never written.
    """
    __tablename__ = "allocations"
    __table_args__ = (
        db.CheckConstraint("amount_cents > 0", name="ck_allocations_amount_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    payment_id = db.Column(db.Integer, db.ForeignKey("payments.id", ondelete="CASCADE"), nullable=False, index=True)
    sales_order_id = db.Column(db.Integer, db.ForeignKey("sales_orders.id"), nullable=False, index=True)
    amount_cents = db.Column(db.Integer, nullable=False)

    payment = db.relationship("Payment", back_populates="allocations")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "payment_id": self.payment_id,
            "sales_order_id": self.sales_order_id,
            "amount": cents_to_amount(self.amount_cents),
            "amount_cents": self.amount_cents,
        }


class AllocationLock(db.Model):
    """
    Single-row write lock for the allocation engine.

    Every payment transaction bumps `version` as its first statement, which
    serializes balance reads and allocation writes across connections
    (database write lock on SQLite, row lock elsewhere).
    """
    __tablename__ = "allocation_locks"

    name = db.Column(db.String(32), primary_key=True)
    version = db.Column(db.Integer, nullable=False, default=0)
