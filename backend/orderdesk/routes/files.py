# Overview: Serves stored files (revisions, rendered documents) under FILES_URL_PREFIX.

import os

from flask import jsonify, send_file

from ..services.storage import StorageError, StoredFileNotFound, get_storage


def serve_stored_file(path: str):
    storage = get_storage()
    try:
        abs_path, _ = storage.resolve(path)
        fh = storage.open(path)
    except StoredFileNotFound:
        return jsonify({"error": "file not found"}), 404
    except StorageError:
        return jsonify({"error": "invalid path"}), 400
    return send_file(fh, download_name=os.path.basename(abs_path))


def register_file_route(app) -> None:
    """Stored paths are public links (same as the URLs returned by the API)."""
    prefix = "/" + app.config.get("FILES_URL_PREFIX", "/files/").strip("/")
    app.add_url_rule(f"{prefix}/<path:path>", "serve_stored_file", serve_stored_file, methods=["GET"])
