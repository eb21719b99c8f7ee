from __future__ import annotations

from ..extensions import db
from orderdesk.time_utils import to_utc_z


class Customer(db.Model):
    """
    Customer master data (the business placing sales orders).

    Phone is stored as digits only, email lower-cased, state upper-cased.
    Duplicates are allowed but reported back as warnings.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_email", "email"),
        db.Index("ix_customers_phone", "phone"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    business_name = db.Column(db.String(255), nullable=False)
    contact_name = db.Column(db.String(255), nullable=False, default="")
    phone = db.Column(db.String(32), nullable=False, default="")
    email = db.Column(db.String(255), nullable=False, default="")
    city = db.Column(db.String(128), nullable=False, default="")
    state = db.Column(db.String(32), nullable=False, default="")
    zip = db.Column(db.String(16), nullable=False, default="")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "business_name": self.business_name,
            "contact_name": self.contact_name,
            "phone": self.phone,
            "email": self.email,
            "city": self.city,
            "state": self.state,
            "zip": self.zip,
            "created_at": to_utc_z(self.created_at),
        }
