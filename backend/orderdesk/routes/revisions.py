# Overview: Flask API routes for revision uploads.

from flask import Blueprint, request, jsonify, current_app

from ..services import revision_service
from ..services.storage import StorageError
from ..decorators import require_auth
from orderdesk.validation import ValidationError


revisions_bp = Blueprint("revisions", __name__, url_prefix="/api/revisions")


@revisions_bp.post("/upload")
@require_auth
def upload_revision_route():
    """
    Multipart form: sales_order_id, file, note (optional), status (optional).
    """
    try:
        upload = request.files.get("file")
        revision = revision_service.create_revision(
            request.form.get("sales_order_id"),
            upload.filename if upload else None,
            upload.stream if upload else None,
            note=request.form.get("note"),
            status=request.form.get("status"),
        )
        return jsonify({"revision": revision_service.revision_payload(revision)}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to upload revision")
        return jsonify({"error": "Internal server error"}), 500


@revisions_bp.get("")
@require_auth
def list_revisions_route():
    try:
        revisions = revision_service.list_revisions(request.args.get("sales_order_id"))
        return jsonify({"revisions": [revision_service.revision_payload(r) for r in revisions]}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StorageError:
        current_app.logger.exception("Stored revision path is invalid")
        return jsonify({"error": "Internal server error"}), 500
