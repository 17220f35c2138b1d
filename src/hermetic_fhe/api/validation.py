"""
Request validation for the FHE API.

Request bodies are checked against JSON schemas before any service component
is called. Enumerations (parameter set, operation) are accepted by exact name or
protocol number and parsed by the crypto types themselves.
"""

import base64
import binascii
from typing import Any, Dict

import jsonschema
from flask import request

from ..errors import InvalidArgumentError, SerializationError

BASE64_PATTERN = "^[A-Za-z0-9+/]*={0,2}$"

_HANDLE = {"type": "string", "minLength": 1, "maxLength": 128}
_ENUM_VALUE = {"type": ["string", "integer"]}

GENERATE_KEYS_SCHEMA = {
    "type": "object",
    "properties": {"parameter_set": _ENUM_VALUE},
    "additionalProperties": False,
}

ENCRYPT_BOOLEAN_SCHEMA = {
    "type": "object",
    "properties": {
        "client_key_id": _HANDLE,
        "value": {"type": "boolean"},
        "include_serialized": {"type": "boolean"},
    },
    "required": ["client_key_id", "value"],
    "additionalProperties": False,
}

ENCRYPT_INTEGER_SCHEMA = {
    "type": "object",
    "properties": {
        "client_key_id": _HANDLE,
        "value": {"type": "integer"},
        "num_bits": {"type": "integer"},
        "include_serialized": {"type": "boolean"},
    },
    "required": ["client_key_id", "value", "num_bits"],
    "additionalProperties": False,
}

EVALUATE_SCHEMA = {
    "type": "object",
    "properties": {
        "server_key_id": _HANDLE,
        "operation": _ENUM_VALUE,
        "operand_ids": {"type": "array", "items": _HANDLE},
    },
    "required": ["server_key_id", "operation", "operand_ids"],
    "additionalProperties": False,
}

EXPORT_SCHEMA = {
    "type": "object",
    "properties": {
        "client_key_id": _HANDLE,
        "encrypted_data_id": _HANDLE,
    },
    "required": ["client_key_id", "encrypted_data_id"],
    "additionalProperties": False,
}

DECRYPT_SCHEMA = {
    "type": "object",
    "properties": {
        "client_key_id": _HANDLE,
        "encrypted_data_id": _HANDLE,
        "serialized_data": {"type": "string", "pattern": BASE64_PATTERN},
    },
    "required": ["client_key_id"],
    "additionalProperties": False,
}


def validated_json(schema: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return the request's JSON body after validating it against schema.

    Raises:
        InvalidArgumentError: missing/non-JSON body or schema violation
    """
    data = request.get_json(silent=True)
    if data is None:
        raise InvalidArgumentError("Request body must be a JSON object")
    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        location = "/".join(str(part) for part in e.absolute_path) or "body"
        raise InvalidArgumentError(f"Invalid request ({location}): {e.message}") from e
    return data


def decode_base64(value: str) -> bytes:
    """Decode inline ciphertext text; malformed input is a SerializationError."""
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise SerializationError("serialized_data is not valid base64") from e


def encode_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")
