"""
Pytest fixtures for orderdesk backend tests.

Provides an in-memory database app, per-test table cleanup, an
authenticated test client, and small factories for the order data the
payment engine reads.
"""

from datetime import datetime

import pytest

from orderdesk import create_app
from orderdesk.extensions import db
from orderdesk.models import Customer, Document, SalesOrder, User
from orderdesk.services.auth_service import hash_password
from orderdesk.services import session_service


TEST_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'STORAGE_PATH': str(tmp_path_factory.mktemp("files")),
        'BCRYPT_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def admin_user(db_session):
    user = User(email="admin@example.com", password_hash=hash_password(TEST_PASSWORD), role="admin")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def staff_user(db_session):
    user = User(email="staff@example.com", password_hash=hash_password(TEST_PASSWORD), role="staff")
    db_session.add(user)
    db_session.commit()
    return user


def _headers_for(user):
    _, token = session_service.create_session(user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope='function')
def auth_headers(admin_user):
    """Bearer headers for the admin user."""
    return _headers_for(admin_user)


@pytest.fixture(scope='function')
def staff_headers(staff_user):
    return _headers_for(staff_user)


# =============================================================================
# FACTORIES
# =============================================================================

@pytest.fixture(scope='function')
def make_customer(db_session):
    counter = {"n": 0}

    def _make(business_name=None, **fields):
        counter["n"] += 1
        customer = Customer(
            business_name=business_name or f"Customer {counter['n']}",
            **fields,
        )
        db_session.add(customer)
        db_session.commit()
        return customer

    return _make


@pytest.fixture(scope='function')
def make_order(db_session, make_customer):
    """
    Sales order factory. `invoiced` (currency units) adds a Sales Invoice
    document so the order shows up in outstanding balances.
    """
    counter = {"n": 0}

    def _make(invoiced=None, created_at=None, customer=None, credit=None, **fields):
        counter["n"] += 1
        customer = customer or make_customer()
        order = SalesOrder(
            customer_id=customer.id,
            so_code=fields.pop("so_code", f"SO-{1000 + counter['n']}"),
            status=fields.pop("status", "new"),
            created_at=created_at or datetime(2024, 1, 1, 12, 0, counter["n"]),
            **fields,
        )
        db_session.add(order)
        db_session.flush()
        if invoiced is not None:
            db_session.add(Document(
                sales_order_id=order.id,
                doc_type="Sales Invoice",
                amount_cents=int(round(invoiced * 100)),
                file_path=f"files/2024/01/invoice_{order.id}.html",
            ))
        if credit is not None:
            db_session.add(Document(
                sales_order_id=order.id,
                doc_type="Credit",
                amount_cents=int(round(credit * 100)),
                file_path=f"files/2024/01/credit_{order.id}.html",
            ))
        db_session.commit()
        return order

    return _make
