# Overview: Local filesystem storage for uploaded revisions and rendered documents.

from __future__ import annotations

import os
import re
import shutil
import uuid
from typing import BinaryIO

from flask import current_app

from orderdesk.time_utils import utcnow

FILES_ROOT = "files"

_INVALID_CHARS = re.compile(r"[^a-zA-Z0-9_-]+")


class StorageError(Exception):
    """Invalid or unsafe storage path."""
    pass


class StoredFileNotFound(StorageError):
    pass


def sanitize_file_name(name: str | None) -> tuple[str, str]:
    """
    Split a client file name into a safe base and a lower-cased extension.

    'My Design (v2).PDF' -> ('my_design_v2', '.pdf')
    """
    base = os.path.basename((name or "").strip().replace("\\", "/"))
    if base in ("", ".", ".."):
        base = "file"
    stem, ext = os.path.splitext(base)
    stem = _INVALID_CHARS.sub("_", stem.lower()).strip("_")
    return stem or "file", ext.lower()


class LocalStorage:
    """
    Files live under base_path/YYYY/MM/. Callers only ever see the relative
    form "files/YYYY/MM/<uuid>_<name>.<ext>".
    """

    def __init__(self, base_path: str, url_prefix: str = "/files/"):
        if not base_path or not base_path.strip():
            raise StorageError("base path is required")
        self.base_path = os.path.abspath(base_path)
        self.url_prefix = url_prefix or "/files/"
        os.makedirs(self.base_path, exist_ok=True)

    def save(self, name: str, stream: BinaryIO) -> str:
        if stream is None:
            raise StorageError("stream is required")
        now = utcnow()
        rel_dir = os.path.join(f"{now.year:04d}", f"{now.month:02d}")
        os.makedirs(os.path.join(self.base_path, rel_dir), exist_ok=True)

        stem, ext = sanitize_file_name(name)
        file_name = f"{uuid.uuid4()}_{stem}{ext}"
        with open(os.path.join(self.base_path, rel_dir, file_name), "wb") as fh:
            shutil.copyfileobj(stream, fh)

        return "/".join([FILES_ROOT, rel_dir.replace(os.sep, "/"), file_name])

    def open(self, path: str) -> BinaryIO:
        abs_path, _ = self.resolve(path)
        try:
            return open(abs_path, "rb")
        except FileNotFoundError:
            raise StoredFileNotFound("file not found")

    def url(self, path: str) -> str:
        _, rel = self.resolve(path)
        prefix = self.url_prefix if self.url_prefix.endswith("/") else self.url_prefix + "/"
        if not prefix.startswith("/"):
            prefix = "/" + prefix
        return prefix + rel

    def resolve(self, path: str) -> tuple[str, str]:
        """
        Map a stored path (with or without the 'files/' root) to
        (absolute path, path relative to base). Rejects traversal.
        """
        cleaned = (path or "").strip().replace("\\", "/")
        if any(segment == ".." for segment in cleaned.split("/")):
            raise StorageError("invalid storage path")
        cleaned = cleaned.lstrip("/")
        if cleaned.startswith(FILES_ROOT + "/"):
            cleaned = cleaned[len(FILES_ROOT) + 1:]
        cleaned = os.path.normpath(cleaned).replace(os.sep, "/") if cleaned else ""
        if not cleaned or cleaned == ".":
            raise StorageError("invalid storage path")

        abs_path = os.path.abspath(os.path.join(self.base_path, cleaned))
        if os.path.commonpath([self.base_path, abs_path]) != self.base_path:
            raise StorageError("invalid storage path")
        return abs_path, cleaned


def get_storage() -> LocalStorage:
    """Storage configured for the current app."""
    return LocalStorage(
        current_app.config["STORAGE_PATH"],
        current_app.config.get("FILES_URL_PREFIX", "/files/"),
    )
