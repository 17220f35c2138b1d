"""
API Module for the FHE Service

This module provides:
- fhe_bp: Flask blueprint with the key, encrypt, evaluate and decrypt endpoints
- init_error_handlers: JSON rendering of service and HTTP errors
- init_request_logging: per-request access log

Usage:
    from hermetic_fhe.api import fhe_bp, init_error_handlers, init_request_logging

    app.extensions[SERVICE_EXTENSION] = FheService.create()
    app.register_blueprint(fhe_bp, url_prefix='/api')
    init_error_handlers(app)
    init_request_logging(app)
"""

from .middleware import init_error_handlers, init_request_logging
from .routes import SERVICE_EXTENSION, fhe_bp, get_service

__all__ = [
    "fhe_bp",
    "get_service",
    "SERVICE_EXTENSION",
    "init_error_handlers",
    "init_request_logging",
]
