# webapp/errors.py
"""
Error taxonomy for the API.

Every failure a handler can report is one of the AppError subclasses below;
the handlers registered here turn them into the uniform envelope

    {"success": false, "error": "<message>"}

with the status code the subclass carries.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, *, details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_json(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": False, "error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(AppError):
    status_code = 400


class Unauthorized(AppError):
    status_code = 401


class NotFound(AppError):
    status_code = 404


class RateLimitExceeded(AppError):
    status_code = 429

    def __init__(self, message: str = "Too many requests, please try again later", *, retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after


class UpstreamError(AppError):
    """Remote data source (or the cache's backing read) failed."""
    status_code = 503


class StoreError(AppError):
    """Persistent store unreachable or not configured."""
    status_code = 503


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(AppError)
    def handle_app_error(e: AppError):
        if e.status_code >= 500:
            logger.error(
                e.message,
                extra={"operation": request.endpoint, "error_type": type(e).__name__},
            )
        resp = jsonify(e.to_json())
        resp.status_code = e.status_code
        if isinstance(e, RateLimitExceeded) and e.retry_after is not None:
            resp.headers["Retry-After"] = str(e.retry_after)
        return resp

    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        if not request.path.startswith("/api/"):
            return e
        return jsonify({"success": False, "error": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error", extra={"operation": request.endpoint})
        return jsonify({"success": False, "error": "Internal server error"}), 500
