# Overview: Flask API routes for payments operations; parses input and returns JSON responses.

# backend/orderdesk/routes/payments.py
"""
Payment API Routes

DESIGN:
- Record a payment with optional explicit allocations; any unallocated
  remainder is applied oldest order first
- Payments are immutable: there is no update, void or delete route
- Storage failures are logged with detail and answered with a generic 500
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import payment_service
from ..decorators import require_auth
from orderdesk.money import cents_to_amount
from orderdesk.time_utils import to_utc_z
from orderdesk.validation import (
    DeadlineExceededError,
    NotFoundError,
    PersistenceError,
    ValidationError,
    parse_date_value,
    parse_positive_int,
)


payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


# =============================================================================
# PAYMENT CREATION
# =============================================================================

@payments_bp.post("")
@require_auth
def create_payment_route():
    """
    Record a payment.

    Request body:
    {
        "amount": 180.00,
        "method": "check",
        "date": "2024-03-01",          (optional, defaults to now)
        "reference": "CHK-1001",       (optional)
        "sales_order_id": 12,          (optional anchor order)
        "allocations": [               (optional)
            {"sales_order_id": 12, "amount": 100.00}
        ]
    }

    Returns:
        201: {"payment": {..., "allocations": [...]}}
        400: Invalid input or allocation rejected
        504: Deadline exceeded (nothing was written)
        500: Server error
    """
    try:
        payment = payment_service.create_payment(
            request.get_json(silent=True),
            timeout=current_app.config.get("PAYMENT_TIMEOUT_SECONDS"),
        )
        return jsonify({"payment": payment.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except DeadlineExceededError:
        current_app.logger.warning("Payment creation timed out")
        return jsonify({"error": "Request timed out"}), 504
    except PersistenceError:
        current_app.logger.exception("Failed to create payment")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# PAYMENT QUERIES
# =============================================================================

@payments_bp.get("")
@require_auth
def list_payments_route():
    """Query params: sales_order_id, from, to (inclusive; date or date-time)."""
    try:
        sales_order_id = parse_positive_int(request.args.get("sales_order_id"), "sales_order_id", required=False)
        date_from = parse_date_value(request.args.get("from"), "from")
        date_to = parse_date_value(request.args.get("to"), "to")

        payments = payment_service.list_payments(
            sales_order_id=sales_order_id,
            date_from=date_from,
            date_to=date_to,
        )
        return jsonify({"payments": [p.to_dict() for p in payments]}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except PersistenceError:
        current_app.logger.exception("Failed to list payments")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.get("/outstanding")
@require_auth
def list_outstanding_route():
    """Current outstanding balance of every order with documents, oldest order first."""
    try:
        balances = payment_service.list_outstanding()
        return jsonify({
            "balances": [
                {
                    "sales_order_id": b.sales_order_id,
                    "outstanding": cents_to_amount(b.outstanding_cents),
                    "outstanding_cents": b.outstanding_cents,
                    "created_at": to_utc_z(b.created_at),
                }
                for b in balances
            ]
        }), 200
    except PersistenceError:
        current_app.logger.exception("Failed to compute outstanding balances")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.get("/<int:payment_id>")
@require_auth
def get_payment_route(payment_id: int):
    try:
        return jsonify({"payment": payment_service.get_payment(payment_id).to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PersistenceError:
        current_app.logger.exception("Failed to load payment %s", payment_id)
        return jsonify({"error": "Internal server error"}), 500
