# Overview: Flask API routes for sales orders; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..services import sales_order_service, payment_service
from ..decorators import require_auth
from orderdesk.money import cents_to_amount
from orderdesk.validation import NotFoundError, PersistenceError, ValidationError


sales_orders_bp = Blueprint("sales_orders", __name__, url_prefix="/api/sales-orders")


@sales_orders_bp.get("")
@require_auth
def list_sales_orders_route():
    try:
        customer_id = request.args.get("customer_id", type=int)
        orders = sales_order_service.list_sales_orders(customer_id, request.args.get("status"))
        return jsonify({"sales_orders": [o.to_dict() for o in orders]}), 200
    except Exception:
        current_app.logger.exception("Failed to list sales orders")
        return jsonify({"error": "Internal server error"}), 500


@sales_orders_bp.post("")
@require_auth
def create_sales_order_route():
    """
    Request body:
    {
        "customer_id": 1,
        "so_code": "SO-1042",
        "status": "new",
        "priority": "P1",          (optional, default P2)
        "lead_time_days": 21,      (optional, default 28)
        "started_at": "2024-03-01T09:00:00Z"  (optional)
    }
    """
    try:
        order = sales_order_service.create_sales_order(request.get_json(silent=True))
        return jsonify({"sales_order": order.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create sales order")
        return jsonify({"error": "Internal server error"}), 500


@sales_orders_bp.get("/<int:sales_order_id>")
@require_auth
def get_sales_order_route(sales_order_id: int):
    try:
        return jsonify({"sales_order": sales_order_service.get_sales_order(sales_order_id).to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@sales_orders_bp.put("/<int:sales_order_id>")
@require_auth
def update_sales_order_route(sales_order_id: int):
    try:
        order = sales_order_service.update_sales_order(sales_order_id, request.get_json(silent=True))
        return jsonify({"sales_order": order.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update sales order")
        return jsonify({"error": "Internal server error"}), 500


@sales_orders_bp.get("/<int:sales_order_id>/balance")
@require_auth
def get_sales_order_balance_route(sales_order_id: int):
    try:
        balance = payment_service.get_order_balance(sales_order_id)
        balance["outstanding"] = cents_to_amount(balance["outstanding_cents"])
        return jsonify({"balance": balance}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PersistenceError:
        current_app.logger.exception("Failed to compute balance for sales order %s", sales_order_id)
        return jsonify({"error": "Internal server error"}), 500
