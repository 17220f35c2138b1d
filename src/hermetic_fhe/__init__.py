"""
Hermetic FHE: a homomorphic encryption service over a handle registry.

Callers generate keys, encrypt booleans and fixed-width integers, evaluate
operations on the ciphertexts and decrypt the results. Keys and ciphertexts
stay in the service and are referenced by opaque handles.
"""

from .errors import (
    FheError,
    InternalCryptoFailure,
    InvalidArgumentError,
    NotFoundError,
    SerializationError,
    TypeMismatchError,
    UnsupportedOperationError,
)
from .registry import HandleRegistry

__version__ = "0.1.0"

__all__ = [
    "FheError",
    "InternalCryptoFailure",
    "InvalidArgumentError",
    "NotFoundError",
    "SerializationError",
    "TypeMismatchError",
    "UnsupportedOperationError",
    "HandleRegistry",
]
