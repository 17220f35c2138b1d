"""
Error handling and request logging for the FHE API.

- FheError subclasses become structured JSON errors with their own status
- other HTTP errors become JSON with a generic message
- anything unexpected is logged with traceback and returned as a generic 500,
  without internal detail
"""

import logging
import time

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from ..errors import FheError, InternalCryptoFailure

logger = logging.getLogger(__name__)


def init_error_handlers(app: Flask) -> None:
    """Register JSON error handlers on app."""

    @app.errorhandler(FheError)
    def handle_fhe_error(error: FheError):
        if isinstance(error, InternalCryptoFailure):
            logger.error(f"{request.method} {request.path} - {error.code}: {error.message}")
        else:
            logger.warning(f"{request.method} {request.path} - {error.code}: {error.message}")
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return (
            jsonify({"error": error.name.upper().replace(" ", "_"), "message": error.description}),
            error.code,
        )

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        logger.exception(f"Unexpected error on {request.method} {request.path}")
        return jsonify({"error": "INTERNAL", "message": "An internal error occurred"}), 500


def init_request_logging(app: Flask) -> None:
    """Log method, path, status and duration for every request."""

    @app.before_request
    def start_timer():
        g.request_start_time = time.perf_counter()

    @app.after_request
    def log_request_complete(response):
        if hasattr(g, "request_start_time"):
            duration = time.perf_counter() - g.request_start_time
            logger.info(
                f"REQUEST - {request.method} {request.path} - "
                f"STATUS:{response.status_code} - {duration * 1000:.1f}ms"
            )
        return response
