# Overview: Flask API routes for financial documents (invoices, receipts, credits).

from flask import Blueprint, request, jsonify, current_app

from ..services import document_service
from ..decorators import require_auth
from orderdesk.validation import ValidationError


documents_bp = Blueprint("documents", __name__, url_prefix="/api/documents")


@documents_bp.post("")
@require_auth
def create_document_route():
    """
    Request body:
    {
        "sales_order_id": 1,
        "doc_type": "Sales Invoice",
        "amount": 1500.00
    }
    """
    try:
        document = document_service.create_document(request.get_json(silent=True))
        return jsonify({"document": document_service.document_payload(document)}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create document")
        return jsonify({"error": "Internal server error"}), 500


@documents_bp.get("")
@require_auth
def list_documents_route():
    try:
        documents = document_service.list_documents(request.args.get("sales_order_id"))
        return jsonify({"documents": [document_service.document_payload(d) for d in documents]}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list documents")
        return jsonify({"error": "Internal server error"}), 500
