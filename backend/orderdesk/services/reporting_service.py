# Overview: Service-layer read models for KPIs and CSV exports.

"""
Reporting Service

Read-only aggregation over customers, sales orders and payments. Performs no
allocation logic; payment totals come straight from persisted rows.
"""

from __future__ import annotations

import csv
import io
from datetime import datetime

from sqlalchemy import func

from ..extensions import db
from ..models import Customer, Payment, SalesOrder
from orderdesk.money import cents_to_amount, format_cents
from orderdesk.time_utils import to_utc_z, utcnow


def _count(query) -> int:
    return int(query.scalar() or 0)


def kpis(start: datetime | None = None, end: datetime | None = None, now: datetime | None = None) -> dict:
    """
    Summary metrics.

    With `start`, range-bound metrics cover [start, end or now]. Without it
    they cover all time and new_customers is 0.
    """
    now = now or utcnow()

    total_customers = _count(db.session.query(func.count(Customer.id)))
    total_sales_orders = _count(db.session.query(func.count(SalesOrder.id)))

    started_q = db.session.query(func.count(SalesOrder.id)).filter(SalesOrder.started_at.isnot(None))
    payments_q = db.session.query(func.coalesce(func.sum(Payment.amount_cents), 0))

    new_customers = 0
    if start is not None:
        range_end = end or now
        new_customers = _count(
            db.session.query(func.count(Customer.id))
            .filter(Customer.created_at >= start, Customer.created_at <= range_end)
        )
        started_q = started_q.filter(SalesOrder.started_at >= start, SalesOrder.started_at <= range_end)
        payments_q = payments_q.filter(Payment.date >= start, Payment.date <= range_end)

    payments_total_cents = _count(payments_q)

    start3d_flagged = _count(
        db.session.query(func.count(SalesOrder.id)).filter(SalesOrder.start3d_flagged_at.isnot(None))
    )
    start3d_due = _count(
        db.session.query(func.count(SalesOrder.id)).filter(
            SalesOrder.start3d_due_at.isnot(None),
            SalesOrder.start3d_flagged_at.is_(None),
            SalesOrder.start3d_due_at <= now,
        )
    )

    return {
        "total_customers": total_customers,
        "new_customers": new_customers,
        "total_sales_orders": total_sales_orders,
        "orders_started": _count(started_q),
        "payments_total": cents_to_amount(payments_total_cents),
        "payments_total_cents": payments_total_cents,
        "start3d_flagged": start3d_flagged,
        "start3d_due": start3d_due,
    }


# =============================================================================
# CSV EXPORTS
# =============================================================================

def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return to_utc_z(value)
    return str(value)


def _write_csv(headers: list[str], rows) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_cell(v) for v in row])
    return buf.getvalue()


def customers_csv() -> str:
    customers = db.session.query(Customer).order_by(Customer.created_at.desc(), Customer.id.desc()).all()
    return _write_csv(
        ["ID", "Business Name", "Contact Name", "Phone", "Email", "City", "State", "ZIP", "Created At"],
        (
            (c.id, c.business_name, c.contact_name, c.phone, c.email, c.city, c.state, c.zip, c.created_at)
            for c in customers
        ),
    )


def orders_csv() -> str:
    orders = db.session.query(SalesOrder).order_by(SalesOrder.created_at.desc(), SalesOrder.id.desc()).all()
    return _write_csv(
        ["ID", "Customer ID", "SO Code", "Status", "Priority", "Lead Time Days",
         "Started At", "Start3D Due At", "Start3D Flagged At", "Created At"],
        (
            (o.id, o.customer_id, o.so_code, o.status, o.priority, o.lead_time_days,
             o.started_at, o.start3d_due_at, o.start3d_flagged_at, o.created_at)
            for o in orders
        ),
    )


def payments_csv() -> str:
    payments = db.session.query(Payment).order_by(Payment.date.desc(), Payment.id.desc()).all()
    return _write_csv(
        ["ID", "Sales Order ID", "Date", "Method", "Amount", "Reference", "Allocated", "Created At"],
        (
            (p.id, p.sales_order_id, p.date, p.method, format_cents(p.amount_cents), p.reference,
             format_cents(sum(a.amount_cents for a in p.allocations)), p.created_at)
            for p in payments
        ),
    )


EXPORTS = {
    "customers": customers_csv,
    "orders": orders_csv,
    "payments": payments_csv,
}
