# Overview: Service-layer operations for revisions; stores uploads and records them per sales order.

from __future__ import annotations

from typing import BinaryIO

from ..extensions import db
from ..models import Revision, SalesOrder
from orderdesk.time_utils import utcnow
from orderdesk.validation import ValidationError, clean_str, parse_positive_int
from .storage import get_storage

DEFAULT_STATUS = "pending"


def create_revision(
    sales_order_id,
    file_name: str,
    stream: BinaryIO | None,
    note: str | None = None,
    status: str | None = None,
) -> Revision:
    """
    Save the uploaded file, then record the revision row.

    The file is written before the row; a failed insert leaves an orphan file
    but never a row pointing at nothing.
    """
    so_id = parse_positive_int(sales_order_id, "sales_order_id")
    if stream is None or not clean_str(file_name):
        raise ValidationError("file is required")
    if db.session.get(SalesOrder, so_id) is None:
        raise ValidationError("sales order not found")

    path = get_storage().save(file_name, stream)

    revision = Revision(
        sales_order_id=so_id,
        note=clean_str(note),
        file_path=path,
        status=clean_str(status) or DEFAULT_STATUS,
        created_at=utcnow(),
    )
    db.session.add(revision)
    db.session.commit()
    return revision


def list_revisions(sales_order_id) -> list[Revision]:
    so_id = parse_positive_int(sales_order_id, "sales_order_id")
    return (
        db.session.query(Revision)
        .filter(Revision.sales_order_id == so_id)
        .order_by(Revision.created_at.desc(), Revision.id.desc())
        .all()
    )


def revision_payload(revision: Revision) -> dict:
    data = revision.to_dict()
    data["file_url"] = get_storage().url(revision.file_path)
    return data
