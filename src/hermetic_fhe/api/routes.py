"""
Flask API Routes for the FHE Service

This module exposes the service operations as JSON endpoints:
- POST /keys              - generate a client/server key pair
- POST /encrypt/boolean   - encrypt a boolean
- POST /encrypt/integer   - encrypt a fixed-width signed integer
- POST /evaluate          - evaluate a homomorphic operation
- POST /export            - seal a registered ciphertext for inline transport
- POST /decrypt/boolean   - decrypt a boolean (by handle or inline)
- POST /decrypt/integer   - decrypt an integer (by handle or inline)
- GET  /health            - liveness and registry size

Handles are opaque strings minted by the service. Errors are returned as
{"error": CODE, "message": str, "details": {...}} (see api.middleware).
"""

import logging
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

from ..service import FheService
from .validation import (
    DECRYPT_SCHEMA,
    ENCRYPT_BOOLEAN_SCHEMA,
    ENCRYPT_INTEGER_SCHEMA,
    EVALUATE_SCHEMA,
    EXPORT_SCHEMA,
    GENERATE_KEYS_SCHEMA,
    decode_base64,
    encode_base64,
    validated_json,
)

logger = logging.getLogger(__name__)

fhe_bp = Blueprint("fhe", __name__)

SERVICE_EXTENSION = "hermetic_fhe"


def get_service() -> FheService:
    """Get the FheService created for this application."""
    return current_app.extensions[SERVICE_EXTENSION]


def _inline_ciphertext(data: dict):
    serialized = data.get("serialized_data")
    return decode_base64(serialized) if serialized is not None else None


# ============================================================================
# Health Check
# ============================================================================

@fhe_bp.route("/health", methods=["GET"])
def health():
    service = get_service()
    return jsonify({
        "status": "healthy",
        "backend": service.backend.name,
        "registry_size": len(service.registry),
        "compute_workers": service.pool.max_workers,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }), 200


# ============================================================================
# Key Generation
# ============================================================================

@fhe_bp.route("/keys", methods=["POST"])
def generate_keys():
    """
    Generate a key pair.

    Request Body:
        {
            "parameter_set": "DEFAULT" | "FAST" | "SECURE"  // or 0, 1, 2; default DEFAULT
        }

    Response (201):
        {
            "client_key_id": "handle",
            "server_key_id": "handle"
        }
    """
    data = validated_json(GENERATE_KEYS_SCHEMA)
    client_key_id, server_key_id = get_service().key_manager.generate(
        data.get("parameter_set", "DEFAULT")
    )
    return jsonify({
        "client_key_id": client_key_id,
        "server_key_id": server_key_id,
    }), 201


# ============================================================================
# Encryption
# ============================================================================

def _encrypted_data_response(data: dict, result):
    if not data.get("include_serialized"):
        return jsonify({"encrypted_data_id": result}), 201
    handle, serialized = result
    return jsonify({
        "encrypted_data_id": handle,
        "serialized_data": encode_base64(serialized),
    }), 201


@fhe_bp.route("/encrypt/boolean", methods=["POST"])
def encrypt_boolean():
    """
    Encrypt a boolean.

    Request Body:
        {
            "client_key_id": "handle",
            "value": true,
            "include_serialized": false  // optional
        }

    Response (201):
        {
            "encrypted_data_id": "handle",
            "serialized_data": "base64"  // only if include_serialized
        }
    """
    data = validated_json(ENCRYPT_BOOLEAN_SCHEMA)
    result = get_service().encryptor.encrypt_boolean(
        data["client_key_id"],
        data["value"],
        return_serialized=data.get("include_serialized", False),
    )
    return _encrypted_data_response(data, result)


@fhe_bp.route("/encrypt/integer", methods=["POST"])
def encrypt_integer():
    """
    Encrypt a signed integer of num_bits width (2..64).

    Request Body:
        {
            "client_key_id": "handle",
            "value": -5,
            "num_bits": 8,
            "include_serialized": false  // optional
        }

    Response (201): same as /encrypt/boolean
    """
    data = validated_json(ENCRYPT_INTEGER_SCHEMA)
    result = get_service().encryptor.encrypt_integer(
        data["client_key_id"],
        data["value"],
        data["num_bits"],
        return_serialized=data.get("include_serialized", False),
    )
    return _encrypted_data_response(data, result)


# ============================================================================
# Evaluation
# ============================================================================

@fhe_bp.route("/evaluate", methods=["POST"])
def evaluate_operation():
    """
    Evaluate a homomorphic operation.

    Request Body:
        {
            "server_key_id": "handle",
            "operation": "ADD",  // AND OR XOR NOT ADD SUBTRACT MULTIPLY
                                 // GREATER_THAN LESS_THAN EQUAL, or 0..9
            "operand_ids": ["handle", "handle"]
        }

    Response (201):
        {"result_id": "handle"}
    """
    data = validated_json(EVALUATE_SCHEMA)
    result_id = get_service().dispatcher.evaluate(
        data["server_key_id"], data["operation"], data["operand_ids"]
    )
    return jsonify({"result_id": result_id}), 201


# ============================================================================
# Export
# ============================================================================

@fhe_bp.route("/export", methods=["POST"])
def export_ciphertext():
    """
    Seal a registered ciphertext into an envelope that only the given client
    key can open. Nothing is registered or removed.

    Request Body:
        {
            "client_key_id": "handle",
            "encrypted_data_id": "handle"
        }

    Response:
        {"serialized_data": "base64"}
    """
    data = validated_json(EXPORT_SCHEMA)
    serialized = get_service().export_value(
        data["client_key_id"], data["encrypted_data_id"]
    )
    return jsonify({"serialized_data": encode_base64(serialized)}), 200


# ============================================================================
# Decryption
# ============================================================================

@fhe_bp.route("/decrypt/boolean", methods=["POST"])
def decrypt_boolean():
    """
    Decrypt a boolean.

    Request Body (exactly one of encrypted_data_id / serialized_data):
        {
            "client_key_id": "handle",
            "encrypted_data_id": "handle",
            "serialized_data": "base64"
        }

    Response:
        {"value": true}
    """
    data = validated_json(DECRYPT_SCHEMA)
    value = get_service().decryptor.decrypt_boolean(
        data["client_key_id"],
        data_handle=data.get("encrypted_data_id"),
        serialized=_inline_ciphertext(data),
    )
    return jsonify({"value": value}), 200


@fhe_bp.route("/decrypt/integer", methods=["POST"])
def decrypt_integer():
    """
    Decrypt an integer, sign-extended from its width.

    Request Body: same as /decrypt/boolean

    Response:
        {"value": -5}
    """
    data = validated_json(DECRYPT_SCHEMA)
    value = get_service().decryptor.decrypt_integer(
        data["client_key_id"],
        data_handle=data.get("encrypted_data_id"),
        serialized=_inline_ciphertext(data),
    )
    return jsonify({"value": value}), 200
