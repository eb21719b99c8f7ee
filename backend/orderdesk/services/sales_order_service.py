# Overview: Service-layer operations for sales orders; create, partial update and filtered listing.

from __future__ import annotations

from typing import Any

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Customer, SalesOrder
from orderdesk.time_utils import utcnow
from orderdesk.validation import (
    NotFoundError,
    ValidationError,
    clean_str,
    parse_date_value,
    parse_positive_int,
)

MAX_LIST_ROWS = 200
DEFAULT_PRIORITY = "P2"
DEFAULT_LEAD_TIME_DAYS = 28


def _parse_lead_time(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("lead_time_days must be an integer")
    try:
        days = int(value)
    except (TypeError, ValueError):
        raise ValidationError("lead_time_days must be an integer")
    if days < 0:
        raise ValidationError("lead_time_days cannot be negative")
    return days


def _require_text(value: Any, field: str) -> str:
    text = clean_str(value)
    if not text:
        raise ValidationError(f"{field} cannot be empty")
    return text


def list_sales_orders(customer_id: int | None = None, status: str | None = None) -> list[SalesOrder]:
    query = db.session.query(SalesOrder)
    if customer_id:
        query = query.filter(SalesOrder.customer_id == customer_id)
    status = clean_str(status)
    if status:
        query = query.filter(SalesOrder.status == status)
    return query.order_by(SalesOrder.created_at.desc(), SalesOrder.id.desc()).limit(MAX_LIST_ROWS).all()


def get_sales_order(sales_order_id: int) -> SalesOrder:
    order = db.session.get(SalesOrder, sales_order_id)
    if order is None:
        raise NotFoundError("sales order not found")
    return order


def create_sales_order(data: dict) -> SalesOrder:
    """
    Create a sales order for an existing customer.

    so_code and status are required; priority defaults to P2 and
    lead_time_days to 28 when omitted.
    """
    if not isinstance(data, dict):
        raise ValidationError("invalid JSON body")

    customer_id = parse_positive_int(data.get("customer_id"), "customer_id")
    so_code = clean_str(data.get("so_code"))
    if not so_code:
        raise ValidationError("so_code is required")
    status = clean_str(data.get("status"))
    if not status:
        raise ValidationError("status is required")
    priority = clean_str(data.get("priority")) or DEFAULT_PRIORITY

    lead_raw = data.get("lead_time_days")
    lead_time_days = DEFAULT_LEAD_TIME_DAYS if lead_raw in (None, "") else _parse_lead_time(lead_raw)
    started_at = parse_date_value(data.get("started_at"), "started_at")

    if db.session.get(Customer, customer_id) is None:
        raise ValidationError("customer not found")
    if db.session.query(SalesOrder.id).filter_by(so_code=so_code).first() is not None:
        raise ValidationError(f"so_code '{so_code}' already exists")

    order = SalesOrder(
        customer_id=customer_id,
        so_code=so_code,
        status=status,
        priority=priority,
        lead_time_days=lead_time_days,
        started_at=started_at,
        created_at=utcnow(),
    )
    db.session.add(order)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError(f"so_code '{so_code}' already exists")
    return order


def update_sales_order(sales_order_id: int, data: dict) -> SalesOrder:
    """
    Partial update of status, priority, lead_time_days and started_at.

    Keys that are absent stay untouched. started_at: null clears it.
    """
    if not isinstance(data, dict):
        raise ValidationError("invalid JSON body")

    order = get_sales_order(sales_order_id)

    changes: dict[str, Any] = {}
    if "status" in data:
        changes["status"] = _require_text(data["status"], "status")
    if "priority" in data:
        changes["priority"] = _require_text(data["priority"], "priority")
    if "lead_time_days" in data:
        changes["lead_time_days"] = _parse_lead_time(data["lead_time_days"])
    if "started_at" in data:
        changes["started_at"] = parse_date_value(data["started_at"], "started_at")

    for key, value in changes.items():
        setattr(order, key, value)
    db.session.commit()
    return order
