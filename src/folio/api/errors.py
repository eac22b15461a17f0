"""API error types and the Flask handlers that render them as JSON."""

from __future__ import annotations

import logging
from typing import Any

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base exception for errors returned to API clients."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None, details: dict | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message}
        if self.details:
            payload.update(self.details)
        return payload


class BadRequest(ApiError):
    """Malformed body or failed validation."""

    status_code = 400


class Unauthorized(ApiError):
    """Missing or invalid credentials."""

    status_code = 401


class Forbidden(ApiError):
    """Authenticated, but not allowed to do this."""

    status_code = 403


class NotFound(ApiError):
    status_code = 404


class Conflict(ApiError):
    status_code = 409


def register_error_handlers(app: Flask) -> None:
    """Render every error as ``{"error": message}`` with its status code."""

    @app.errorhandler(ApiError)
    def handle_api_error(error: ApiError):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        return jsonify({"error": error.description or error.name}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        logger.exception("Unhandled error: %s", error)
        return jsonify({"error": "Internal server error"}), 500
