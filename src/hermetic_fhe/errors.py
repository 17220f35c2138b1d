"""
Error taxonomy for the FHE service.

Every error raised by the registry and the four service components derives
from FheError and carries:
- code: stable machine-readable identifier returned to API callers
- http_status: status code used by the API error handler
- details: structured fields describing the failure

All errors are per-request; none of them leaves the service in a bad state.
"""

from typing import Any, Dict


class FheError(Exception):
    """Base class for all service errors."""

    code = "FHE_ERROR"
    http_status = 500

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message, "details": self.details}


class NotFoundError(FheError):
    """A handle does not reference a stored object of the expected kind."""

    code = "NOT_FOUND"
    http_status = 404

    def __init__(self, kind: str, handle: str):
        super().__init__(f"{kind} not found: {handle}", kind=kind, handle=handle)
        self.kind = kind
        self.handle = handle


class TypeMismatchError(FheError):
    """Operand kinds or widths do not match what the operation requires."""

    code = "TYPE_MISMATCH"
    http_status = 422

    def __init__(self, expected: str, actual: str):
        super().__init__(
            f"Type mismatch: expected {expected}, got {actual}",
            expected=expected,
            actual=actual,
        )
        self.expected = expected
        self.actual = actual


class InvalidArgumentError(FheError):
    """Bad arity, bad bit width, unrepresentable value or malformed request."""

    code = "INVALID_ARGUMENT"
    http_status = 400

    def __init__(self, detail: str):
        super().__init__(detail, detail=detail)
        self.detail = detail


class UnsupportedOperationError(FheError):
    """The operation has no evaluation path for the operand kind."""

    code = "UNSUPPORTED_OPERATION"
    http_status = 422

    def __init__(self, operation: str, kind: str):
        super().__init__(
            f"Operation {operation} is not supported for {kind} operands",
            operation=operation,
            kind=kind,
        )
        self.operation = operation
        self.kind = kind


class SerializationError(FheError):
    """Inline ciphertext bytes could not be decoded."""

    code = "SERIALIZATION_ERROR"
    http_status = 400

    def __init__(self, detail: str):
        super().__init__(f"Malformed ciphertext: {detail}", detail=detail)
        self.detail = detail


class InternalCryptoFailure(FheError):
    """The cryptographic library failed while doing the requested work."""

    code = "INTERNAL_CRYPTO_FAILURE"
    http_status = 500

    def __init__(self, detail: str):
        super().__init__(f"Cryptographic operation failed: {detail}", detail=detail)
        self.detail = detail
