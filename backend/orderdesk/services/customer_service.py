# Overview: Service-layer operations for customers; normalization, soft-duplicate checks and CRUD.

from __future__ import annotations

import re

from sqlalchemy import func, or_

from ..extensions import db
from ..models import Customer
from orderdesk.time_utils import utcnow
from orderdesk.validation import NotFoundError, ValidationError, clean_str

MAX_LIST_ROWS = 200

CUSTOMER_FIELDS = ("business_name", "contact_name", "phone", "email", "city", "state", "zip")

_NON_DIGITS = re.compile(r"\D+")


def normalize_phone(raw) -> str:
    """Digits only; '(555) 010-2000' -> '5550102000'."""
    return _NON_DIGITS.sub("", clean_str(raw))


def normalize_customer_input(data: dict) -> dict:
    if not isinstance(data, dict):
        raise ValidationError("invalid JSON body")

    cleaned = {
        "business_name": clean_str(data.get("business_name")),
        "contact_name": clean_str(data.get("contact_name")),
        "phone": normalize_phone(data.get("phone")),
        "email": clean_str(data.get("email")).lower(),
        "city": clean_str(data.get("city")),
        "state": clean_str(data.get("state")).upper(),
        "zip": clean_str(data.get("zip")),
    }
    if not cleaned["business_name"]:
        raise ValidationError("business_name is required")
    return cleaned


def find_duplicates(cleaned: dict, exclude_id: int | None = None) -> list[str]:
    """
    Field names that another customer already uses.

    Soft check only: duplicates are allowed, the caller gets a warning list.
    Blank phone/email never count as duplicates.
    """
    checks = [("business_name", Customer.business_name == cleaned["business_name"])]
    if cleaned["phone"]:
        checks.append(("phone", Customer.phone == cleaned["phone"]))
    if cleaned["email"]:
        checks.append(("email", func.lower(Customer.email) == cleaned["email"]))

    warnings = []
    for field, condition in checks:
        query = db.session.query(Customer.id).filter(condition)
        if exclude_id:
            query = query.filter(Customer.id != exclude_id)
        if query.first() is not None:
            warnings.append(field)
    return warnings


def list_customers(q: str | None = None) -> list[Customer]:
    """Newest first; `q` is a case-insensitive substring over name, contact, phone and email."""
    query = db.session.query(Customer)
    term = clean_str(q).lower()
    if term:
        like = f"%{term}%"
        query = query.filter(or_(
            func.lower(Customer.business_name).like(like),
            func.lower(Customer.contact_name).like(like),
            func.lower(Customer.phone).like(like),
            func.lower(Customer.email).like(like),
        ))
    return query.order_by(Customer.created_at.desc(), Customer.id.desc()).limit(MAX_LIST_ROWS).all()


def get_customer(customer_id: int) -> Customer:
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError("customer not found")
    return customer


def create_customer(data: dict) -> tuple[Customer, list[str]]:
    """Returns (customer, duplicate-field warnings)."""
    cleaned = normalize_customer_input(data)
    warnings = find_duplicates(cleaned)

    customer = Customer(created_at=utcnow(), **cleaned)
    db.session.add(customer)
    db.session.commit()
    return customer, warnings


def update_customer(customer_id: int, data: dict) -> tuple[Customer, list[str]]:
    """Full replacement of the writable fields."""
    cleaned = normalize_customer_input(data)
    customer = get_customer(customer_id)
    warnings = find_duplicates(cleaned, exclude_id=customer_id)

    for field in CUSTOMER_FIELDS:
        setattr(customer, field, cleaned[field])
    db.session.commit()
    return customer, warnings
