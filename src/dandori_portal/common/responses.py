"""JSON envelopes and error mapping for the API layer.

Every API handler answers ``{"success": true, "data": ...}`` or
``{"success": false, "error": "..."}``. Domain exceptions raised by services
are converted here, so controllers only deal with the happy path.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from flask import Flask, flash, jsonify, redirect, request, url_for
from werkzeug.exceptions import HTTPException

from ..core.exceptions import DomainError, ValidationError
from .pagination import Page

logger = logging.getLogger(__name__)


def success_response(data: Any = None, *, status: int = 200, count: Optional[int] = None, **extra: Any):
    body: dict[str, Any] = {"success": True, "data": data}
    if count is not None:
        body["count"] = count
    body.update(extra)
    return jsonify(body), status


def page_response(page: Page, *, key: Optional[str] = None):
    """Envelope for a Page; ``key`` nests the items under data[key]."""
    items = list(page.items)
    data: Any = {key: items} if key else items
    return success_response(data, count=len(items), pagination=page.meta())


def error_response(message: str, status: int = 400, *, required: Optional[Sequence[str]] = None):
    body: dict[str, Any] = {"success": False, "error": message}
    if required:
        body["required"] = list(required)
    return jsonify(body), status


def _wants_json() -> bool:
    return request.path.startswith("/api/")


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        if _wants_json():
            required = e.required if isinstance(e, ValidationError) else None
            return error_response(str(e), e.status_code, required=required)

        flash(str(e), "danger")
        return redirect(request.referrer or url_for("pages.index"))

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        if _wants_json():
            return error_response(e.description or e.name, e.code or 500)
        return e

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        if _wants_json():
            message = str(e) if app.config.get("DEBUG") else "サーバーエラーが発生しました"
            return error_response(message, 500)
        return "Internal Server Error", 500
