from __future__ import annotations

from ..extensions import db
from orderdesk.money import cents_to_amount
from orderdesk.time_utils import to_utc_z


DOC_DEPOSIT_INVOICE = "Deposit Invoice"
DOC_DEPOSIT_RECEIPT = "Deposit Receipt"
DOC_SALES_INVOICE = "Sales Invoice"
DOC_SALES_RECEIPT = "Sales Receipt"
DOC_CREDIT = "Credit"

VALID_DOC_TYPES = (
    DOC_DEPOSIT_INVOICE,
    DOC_DEPOSIT_RECEIPT,
    DOC_SALES_INVOICE,
    DOC_SALES_RECEIPT,
    DOC_CREDIT,
)

# Invoice-class documents add to what an order owes, credit-class subtract.
# Receipts are informational only.
INVOICE_DOC_TYPES = (DOC_DEPOSIT_INVOICE, DOC_SALES_INVOICE)
CREDIT_DOC_TYPES = (DOC_CREDIT,)


class Document(db.Model):
    """
    Rendered financial document (invoice, receipt, credit) for a sales order.

    The HTML itself lives in storage; the row carries the amount that feeds
    outstanding balance computation.
    """
    __tablename__ = "documents"
    __table_args__ = (
        db.Index("ix_documents_sales_order_created", "sales_order_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sales_order_id = db.Column(db.Integer, db.ForeignKey("sales_orders.id"), nullable=False, index=True)
    doc_type = db.Column(db.String(32), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    file_path = db.Column(db.String(512), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sales_order = db.relationship("SalesOrder", backref=db.backref("documents", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sales_order_id": self.sales_order_id,
            "doc_type": self.doc_type,
            "amount": cents_to_amount(self.amount_cents),
            "amount_cents": self.amount_cents,
            "file_path": self.file_path,
            "created_at": to_utc_z(self.created_at),
        }
