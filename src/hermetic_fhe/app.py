"""
Main Flask Application for the FHE Service

This module creates and configures the Flask application with:
- the FHE service (handle registry, crypto backend, compute pool)
- the key / encrypt / evaluate / decrypt API
- JSON error handling and request logging

Usage:
    # Development
    python -m hermetic_fhe.app

    # With Flask CLI
    flask --app "hermetic_fhe.app:create_app()" run --with-threads

    # Production (one process, threaded: the registry lives in process memory)
    gunicorn --workers 1 --threads 16 "hermetic_fhe.app:create_app()"
"""

import logging
import os

from dotenv import load_dotenv
from flask import Flask, jsonify

from .api import SERVICE_EXTENSION, fhe_bp, init_error_handlers, init_request_logging
from .registry import DEFAULT_SHARD_COUNT
from .service import FheService

# Load environment variables from .env file
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _env_int(name: str, default):
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


def create_app(config_override: dict = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config_override: Optional dictionary to override default configuration.
            "FHE_SERVICE" may carry a ready FheService (used by tests).

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)

    # =========================================================================
    # Configuration
    # =========================================================================

    app.config["FHE_COMPUTE_WORKERS"] = _env_int("FHE_COMPUTE_WORKERS", os.cpu_count())
    app.config["FHE_REGISTRY_SHARDS"] = _env_int("FHE_REGISTRY_SHARDS", DEFAULT_SHARD_COUNT)

    # Inline ciphertexts are large: one serialized BFV ciphertext per value
    app.config["MAX_CONTENT_LENGTH"] = _env_int("MAX_CONTENT_LENGTH", 16 * 1024 * 1024)

    if config_override:
        app.config.update(config_override)

    # =========================================================================
    # FHE Service
    # =========================================================================

    service = app.config.get("FHE_SERVICE")
    if service is None:
        service = FheService.create(
            compute_workers=app.config["FHE_COMPUTE_WORKERS"],
            registry_shards=app.config["FHE_REGISTRY_SHARDS"],
        )
    app.extensions[SERVICE_EXTENSION] = service

    # =========================================================================
    # Blueprints, error handling, logging
    # =========================================================================

    app.register_blueprint(fhe_bp, url_prefix="/api")
    init_error_handlers(app)
    init_request_logging(app)

    # =========================================================================
    # Root Routes
    # =========================================================================

    @app.route("/")
    def index():
        """API root with endpoint overview."""
        return jsonify(
            {
                "service": "Hermetic FHE API",
                "version": "0.1.0",
                "endpoints": {
                    "health": "GET /api/health",
                    "keys": "POST /api/keys",
                    "encrypt": {
                        "boolean": "POST /api/encrypt/boolean",
                        "integer": "POST /api/encrypt/integer",
                    },
                    "evaluate": "POST /api/evaluate",
                    "export": "POST /api/export",
                    "decrypt": {
                        "boolean": "POST /api/decrypt/boolean",
                        "integer": "POST /api/decrypt/integer",
                    },
                },
            }
        )

    logger.info("Application created successfully")
    return app


def run_development_server():
    """Run the development server."""
    app = create_app()
    app.run(
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", 5000)),
        debug=os.getenv("FLASK_DEBUG", "false").lower() == "true",
        threaded=True,
        # The reloader would start a second process with its own registry
        use_reloader=False,
    )


if __name__ == "__main__":
    run_development_server()
