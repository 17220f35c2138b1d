"""
Crypto layer: key/ciphertext types, the operation table, gate circuits and the
primitive-library boundary.

The OpenFHE backend is imported lazily (see hermetic_fhe.service) so the rest
of the package can be loaded without the native library.
"""

from .backend import CryptoBackend
from .operations import OPERATION_TABLE, OperationSpec, get_operation_spec
from .serialization import Envelope, decode_envelope, encode_envelope, export_value, open_envelope
from .types import (
    MAX_BIT_WIDTH,
    MIN_BIT_WIDTH,
    ClientKey,
    EncryptedBoolean,
    EncryptedInteger,
    EncryptedValue,
    OperationType,
    ParameterSet,
    ServerKey,
    ValueKind,
)

__all__ = [
    "CryptoBackend",
    "OPERATION_TABLE",
    "OperationSpec",
    "get_operation_spec",
    "Envelope",
    "decode_envelope",
    "encode_envelope",
    "export_value",
    "open_envelope",
    "MAX_BIT_WIDTH",
    "MIN_BIT_WIDTH",
    "ClientKey",
    "EncryptedBoolean",
    "EncryptedInteger",
    "EncryptedValue",
    "OperationType",
    "ParameterSet",
    "ServerKey",
    "ValueKind",
]
