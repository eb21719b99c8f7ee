# Overview: Service-layer operations for documents; renders HTML invoices/receipts and records amounts.

"""
Document Service

WHY: Invoices and credits are what an order owes; the Balance Calculator in
payment_service reads the rows written here.

DESIGN:
- The document amount is stored in cents; shipping only appears on the
  rendered HTML, it is not part of the stored amount
- HTML is rendered with Jinja2 and written through the storage adapter
"""

from __future__ import annotations

import io

from flask import render_template

from ..extensions import db
from ..models import Customer, Document, SalesOrder
from ..models.documents import INVOICE_DOC_TYPES, VALID_DOC_TYPES
from orderdesk.money import format_cents
from orderdesk.time_utils import utcnow
from orderdesk.validation import (
    ValidationError,
    clean_str,
    parse_amount_cents,
    parse_positive_int,
)
from .storage import get_storage


# =============================================================================
# SHIPPING RULE
# =============================================================================

FREE_SHIPPING_THRESHOLD_CENTS = 2000_00
FLAT_SHIPPING_CENTS = 50_00


def shipping_for_subtotal(subtotal_cents: int) -> int:
    """Flat 50.00 below a 2000.00 subtotal; free at or above it and for empty subtotals."""
    if subtotal_cents <= 0:
        return 0
    if subtotal_cents < FREE_SHIPPING_THRESHOLD_CENTS:
        return FLAT_SHIPPING_CENTS
    return 0


def shipping_for_document(doc_type: str, subtotal_cents: int) -> int:
    if doc_type in INVOICE_DOC_TYPES:
        return shipping_for_subtotal(subtotal_cents)
    return 0


# =============================================================================
# CREATE / LIST
# =============================================================================

def _document_file_name(doc_type: str, sales_order_id: int) -> str:
    return f"{doc_type.lower().replace(' ', '_')}_{sales_order_id}.html"


def render_document_html(doc_type: str, order: SalesOrder, customer: Customer, amount_cents: int) -> str:
    shipping_cents = shipping_for_document(doc_type, amount_cents)
    return render_template(
        "document.html",
        doc_type=doc_type,
        so_code=order.so_code,
        customer=customer.business_name,
        generated=utcnow().strftime("%a, %d %b %Y %H:%M:%S UTC"),
        amount=format_cents(amount_cents),
        shipping=format_cents(shipping_cents),
        total=format_cents(amount_cents + shipping_cents),
    )


def create_document(data: dict) -> Document:
    """
    Validate, render, store and record a document.

    Raises ValidationError for an unknown type, a negative amount or an
    unknown sales order.
    """
    if not isinstance(data, dict):
        raise ValidationError("invalid JSON body")

    so_id = parse_positive_int(data.get("sales_order_id"), "sales_order_id")
    doc_type = clean_str(data.get("doc_type"))
    if not doc_type:
        raise ValidationError("doc_type is required")
    if doc_type not in VALID_DOC_TYPES:
        raise ValidationError("unsupported doc_type")
    amount_cents = parse_amount_cents(data.get("amount"), "amount", allow_zero=True)

    order = db.session.get(SalesOrder, so_id)
    if order is None:
        raise ValidationError("sales order not found")

    html = render_document_html(doc_type, order, order.customer, amount_cents)
    path = get_storage().save(_document_file_name(doc_type, so_id), io.BytesIO(html.encode("utf-8")))

    document = Document(
        sales_order_id=so_id,
        doc_type=doc_type,
        amount_cents=amount_cents,
        file_path=path,
        created_at=utcnow(),
    )
    db.session.add(document)
    db.session.commit()
    return document


def list_documents(sales_order_id) -> list[Document]:
    so_id = parse_positive_int(sales_order_id, "sales_order_id")
    return (
        db.session.query(Document)
        .filter(Document.sales_order_id == so_id)
        .order_by(Document.created_at.desc(), Document.id.desc())
        .all()
    )


def document_payload(document: Document) -> dict:
    data = document.to_dict()
    data["url"] = get_storage().url(document.file_path)
    return data
