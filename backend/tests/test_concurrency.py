"""
Concurrent payment creation against a file-backed SQLite database.

Each thread runs its own app context (own session, own connection). The
allocation lock must serialize balance reads and allocation writes so no
order is ever allocated more than it was invoiced.
"""

import threading
import time
from datetime import datetime

import pytest
from sqlalchemy import func, text

from orderdesk import create_app
from orderdesk.extensions import db
from orderdesk.models import Allocation, Customer, Document, Payment, SalesOrder
from orderdesk.services import payment_service
from orderdesk.services.concurrency import ensure_allocation_lock
from orderdesk.validation import DeadlineExceededError, PersistenceError


INVOICED_CENTS = [100_00, 50_00, 75_00]


@pytest.fixture
def file_app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'concurrency.sqlite3'}",
        'STORAGE_PATH': str(tmp_path / "files"),
        'BCRYPT_ROUNDS': 4,
    })
    with app.app_context():
        db.create_all()
        ensure_allocation_lock()

        customer = Customer(business_name="Concurrent Co")
        db.session.add(customer)
        db.session.flush()
        for i, cents in enumerate(INVOICED_CENTS):
            order = SalesOrder(customer_id=customer.id, so_code=f"SO-C{i}", status="new",
                               created_at=datetime(2024, 1, 1 + i))
            db.session.add(order)
            db.session.flush()
            db.session.add(Document(sales_order_id=order.id, doc_type="Sales Invoice",
                                    amount_cents=cents, file_path=f"files/c{i}.html"))
        db.session.commit()

    yield app

    with app.app_context():
        db.session.remove()
        db.engine.dispose()


def test_concurrent_payments_never_over_allocate(file_app):
    errors = []
    unexpected = []
    start = threading.Barrier(8)

    def worker(amount):
        with file_app.app_context():
            start.wait()
            try:
                payment_service.create_payment({"amount": amount, "method": "cash"}, timeout=30)
            except PersistenceError as e:
                errors.append(e)
            except Exception as e:
                unexpected.append(e)
            finally:
                db.session.remove()

    threads = [threading.Thread(target=worker, args=(amount,)) for amount in (40, 60, 25, 90, 10, 55, 70, 35)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert unexpected == []

    with file_app.app_context():
        orders = db.session.query(SalesOrder).order_by(SalesOrder.id).all()
        for order, invoiced in zip(orders, INVOICED_CENTS):
            allocated = db.session.query(func.coalesce(func.sum(Allocation.amount_cents), 0)).filter(
                Allocation.sales_order_id == order.id
            ).scalar()
            assert allocated <= invoiced

        for payment in db.session.query(Payment).all():
            assert sum(a.amount_cents for a in payment.allocations) <= payment.amount_cents

        # Total demand (385.00) exceeds total invoiced (225.00): every order ends fully paid.
        assert errors == []
        total_allocated = db.session.query(func.sum(Allocation.amount_cents)).scalar()
        assert total_allocated == sum(INVOICED_CENTS)


def test_lock_wait_stops_at_deadline(file_app):
    with file_app.app_context():
        holder = db.engine.connect()
        tx = holder.begin()
        holder.execute(text("UPDATE allocation_locks SET version = version + 1 WHERE name = 'payments'"))
        try:
            started = time.monotonic()
            with pytest.raises(DeadlineExceededError, match="allocation lock"):
                payment_service.create_payment({"amount": 10, "method": "cash"}, timeout=0.5)
            # well under the driver's default 5s busy timeout
            assert time.monotonic() - started < 3
        finally:
            tx.rollback()
            holder.close()

        assert db.session.query(Payment).count() == 0
        payment = payment_service.create_payment({"amount": 10, "method": "cash"}, timeout=5)
        assert payment.id is not None
