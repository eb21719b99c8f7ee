# Overview: Service-layer operations for payments; owns the allocation transaction.

"""
Payment Processing Service

WHY: Record incoming customer payments and settle outstanding sales-order
balances with them, either where the caller says or oldest debt first.

DESIGN PRINCIPLES:
- One transaction per payment: lock, read balances, resolve, write, commit
- Balances are recomputed inside that transaction, never cached
- Payments and allocations are immutable once committed
- Validation happens before any row is written; any failure rolls back
- No automatic retries; a failed creation is resubmitted by the caller
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from flask import current_app
from sqlalchemy import case, func, or_, select
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Allocation, Document, Payment, SalesOrder
from ..models.documents import CREDIT_DOC_TYPES, INVOICE_DOC_TYPES
from orderdesk.time_utils import utcnow
from orderdesk.validation import (
    DeadlineExceededError,
    NotFoundError,
    PersistenceError,
    ValidationError,
    clean_str,
    parse_amount_cents,
    parse_date_value,
    parse_positive_int,
)
from .allocation import (
    AllocationLine,
    OutstandingBalance,
    apply_explicit_allocations,
    auto_allocate,
)
from .concurrency import Deadline, acquire_allocation_lock

MAX_LIST_ROWS = 200


# =============================================================================
# INPUT NORMALIZATION
# =============================================================================

@dataclass
class PaymentInput:
    amount_cents: int
    method: str
    date: datetime
    reference: str = ""
    sales_order_id: int | None = None
    allocations: list[AllocationLine] = field(default_factory=list)


def _parse_anchor(value: Any) -> int | None:
    # 0 and missing both mean "no anchor"
    if value is None or value == 0 or value == "0" or value == "":
        return None
    return parse_positive_int(value, "sales_order_id")


def normalize_payment_input(data: dict) -> PaymentInput:
    """
    Validate top-level payment fields and explicit allocation entries.

    Raises ValidationError on the first failing rule.
    """
    if not isinstance(data, dict):
        raise ValidationError("invalid JSON body")

    method = clean_str(data.get("method"))
    if not method:
        raise ValidationError("method is required")

    amount_cents = parse_amount_cents(data.get("amount"), "amount")

    date = parse_date_value(data.get("date"), "date") or utcnow()

    raw_allocations = data.get("allocations") or []
    if not isinstance(raw_allocations, list):
        raise ValidationError("allocations must be a list")

    lines: list[AllocationLine] = []
    for entry in raw_allocations:
        if not isinstance(entry, dict):
            raise ValidationError("each allocation must be an object")
        so_id = parse_positive_int(entry.get("sales_order_id"), "allocation sales_order_id")
        lines.append(AllocationLine(so_id, parse_amount_cents(entry.get("amount"), "allocation amount")))

    return PaymentInput(
        amount_cents=amount_cents,
        method=method,
        date=date,
        reference=clean_str(data.get("reference")),
        sales_order_id=_parse_anchor(data.get("sales_order_id")),
        allocations=lines,
    )


# =============================================================================
# BALANCE CALCULATOR
# =============================================================================

def fetch_outstanding(sales_order_ids: list[int] | None = None) -> dict[int, OutstandingBalance]:
    """
    Outstanding balance per sales order, read in the caller's transaction.

    outstanding = invoices - credits - allocations already recorded.
    Orders without any document are absent from the result.
    """
    invoiced = func.coalesce(
        func.sum(case((Document.doc_type.in_(INVOICE_DOC_TYPES), Document.amount_cents), else_=0)),
        0,
    )
    credited = func.coalesce(
        func.sum(case((Document.doc_type.in_(CREDIT_DOC_TYPES), Document.amount_cents), else_=0)),
        0,
    )
    allocated = (
        select(func.coalesce(func.sum(Allocation.amount_cents), 0))
        .where(Allocation.sales_order_id == SalesOrder.id)
        .correlate(SalesOrder)
        .scalar_subquery()
    )

    stmt = (
        select(
            SalesOrder.id,
            SalesOrder.created_at,
            (invoiced - credited - allocated).label("outstanding_cents"),
        )
        .join(Document, Document.sales_order_id == SalesOrder.id)
        .group_by(SalesOrder.id, SalesOrder.created_at)
    )
    if sales_order_ids is not None:
        stmt = stmt.where(SalesOrder.id.in_(sales_order_ids))

    balances: dict[int, OutstandingBalance] = {}
    for so_id, created_at, outstanding in db.session.execute(stmt):
        balances[so_id] = OutstandingBalance(
            sales_order_id=so_id,
            outstanding_cents=int(outstanding or 0),
            created_at=created_at,
        )
    return balances


def list_outstanding() -> list[OutstandingBalance]:
    """Every order that has documents, in auto-allocation order."""
    try:
        balances = fetch_outstanding()
    except SQLAlchemyError as e:
        raise PersistenceError(f"outstanding balances: {e}") from e
    return sorted(balances.values(), key=OutstandingBalance.sort_key)


def get_order_balance(sales_order_id: int) -> dict:
    """Read-only balance for one order (0 when it has no documents)."""
    try:
        order = db.session.get(SalesOrder, sales_order_id)
        if order is None:
            raise NotFoundError("sales order not found")
        balance = fetch_outstanding([sales_order_id]).get(sales_order_id)
    except SQLAlchemyError as e:
        raise PersistenceError(f"order balance: {e}") from e

    outstanding = balance.outstanding_cents if balance else 0
    return {
        "sales_order_id": sales_order_id,
        "has_documents": balance is not None,
        "outstanding_cents": outstanding,
    }


# =============================================================================
# PERSISTENCE COORDINATOR
# =============================================================================

def create_payment(data: dict, *, timeout: float | None = None) -> Payment:
    """
    Record a payment and its allocations atomically.

    Explicit allocations are applied first in input order; whatever the
    caller did not allocate is swept oldest-order-first. A remainder larger
    than all outstanding balances stays unallocated.

    Raises:
        ValidationError: bad input, unknown order, over-allocation
        DeadlineExceededError: timeout passed before commit
        PersistenceError: storage failure (transaction rolled back)
    """
    cleaned = normalize_payment_input(data)
    deadline = Deadline(timeout)

    try:
        # Lock first: everything below reads and writes under it.
        deadline.check("allocation lock")
        acquire_allocation_lock(deadline=deadline)

        if cleaned.sales_order_id is not None:
            if db.session.get(SalesOrder, cleaned.sales_order_id) is None:
                raise ValidationError("sales order not found")

        deadline.check("balance query")
        balances = fetch_outstanding()

        explicit, explicit_total = apply_explicit_allocations(cleaned.allocations, balances)
        remaining = cleaned.amount_cents - explicit_total
        if remaining < 0:
            raise ValidationError("allocations exceed payment amount")
        automatic = auto_allocate(remaining, balances)

        payment = Payment(
            sales_order_id=cleaned.sales_order_id,
            date=cleaned.date,
            method=cleaned.method,
            amount_cents=cleaned.amount_cents,
            reference=cleaned.reference,
            created_at=utcnow(),
        )
        db.session.add(payment)
        deadline.check("payment insert")
        db.session.flush()

        for line in explicit + automatic:
            if line.amount_cents <= 0:
                continue
            db.session.add(Allocation(
                payment_id=payment.id,
                sales_order_id=line.sales_order_id,
                amount_cents=line.amount_cents,
            ))
        deadline.check("allocation insert")
        db.session.flush()

        deadline.check("commit")
        db.session.commit()
    except (ValidationError, DeadlineExceededError):
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        raise PersistenceError(f"create payment: {e}") from e

    unallocated = remaining - sum(line.amount_cents for line in automatic)
    current_app.logger.info(
        "Payment %s recorded: amount_cents=%s explicit=%s automatic=%s unallocated_cents=%s",
        payment.id, cleaned.amount_cents, len(explicit), len(automatic), unallocated,
    )
    return get_payment(payment.id)


# =============================================================================
# READ PATHS
# =============================================================================

def get_payment(payment_id: int) -> Payment:
    try:
        payment = db.session.get(Payment, payment_id)
    except SQLAlchemyError as e:
        raise PersistenceError(f"get payment: {e}") from e
    if payment is None:
        raise NotFoundError("payment not found")
    return payment


def list_payments(
    *,
    sales_order_id: int | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    limit: int = MAX_LIST_ROWS,
) -> list[Payment]:
    """
    Payments newest first (date, then id).

    sales_order_id matches the anchor or any allocation against that order.
    Date bounds are inclusive.
    """
    query = db.session.query(Payment)
    if sales_order_id:
        allocated_to = select(Allocation.payment_id).where(Allocation.sales_order_id == sales_order_id)
        query = query.filter(or_(Payment.sales_order_id == sales_order_id, Payment.id.in_(allocated_to)))
    if date_from is not None:
        query = query.filter(Payment.date >= date_from)
    if date_to is not None:
        query = query.filter(Payment.date <= date_to)

    try:
        return (
            query.order_by(Payment.date.desc(), Payment.id.desc())
            .limit(min(limit, MAX_LIST_ROWS))
            .all()
        )
    except SQLAlchemyError as e:
        raise PersistenceError(f"list payments: {e}") from e
