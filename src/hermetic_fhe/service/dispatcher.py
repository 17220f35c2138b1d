"""
Homomorphic operation dispatch.

Validation runs strictly in this order and stops at the first failure, so a
malformed request never reaches the cryptographic library:

1. server key exists                          -> NotFoundError
2. operation is a known OperationType         -> InvalidArgumentError
3. every operand exists                       -> NotFoundError
4. operand count matches the operation        -> InvalidArgumentError
5. operands share one kind and width, and
   logic operations get boolean operands      -> TypeMismatchError
6. the operation has a path for the kind      -> UnsupportedOperationError
7. evaluate on the compute pool               -> InternalCryptoFailure
8. result typed from the operation table
9. result registered, handle returned
"""

import logging
import time
from typing import Any, List, Sequence

from ..crypto.backend import CryptoBackend
from ..crypto.operations import OperationSpec, get_operation_spec
from ..crypto.types import (
    EncryptedBoolean,
    EncryptedInteger,
    EncryptedValue,
    OperationType,
    ServerKey,
    ValueKind,
)
from ..errors import (
    InvalidArgumentError,
    TypeMismatchError,
    UnsupportedOperationError,
)
from ..registry import HandleRegistry
from .compute_pool import ComputePool

logger = logging.getLogger(__name__)

_CIPHERTEXT_TYPES = (EncryptedBoolean, EncryptedInteger)


class Dispatcher:
    """Validates and evaluates operations against registered ciphertexts."""

    def __init__(self, registry: HandleRegistry, backend: CryptoBackend, pool: ComputePool):
        self.registry = registry
        self.backend = backend
        self.pool = pool

    def evaluate(self, server_handle: str, operation: Any, operand_handles: Sequence[str]) -> str:
        """
        Evaluate operation over the ordered operands and register the result.

        Args:
            server_handle: handle of a registered ServerKey
            operation: OperationType, its name, or its protocol number
            operand_handles: ordered handles of registered ciphertexts

        Returns:
            Handle of the new ciphertext
        """
        server_key = self.registry.resolve(server_handle, ServerKey, "Server key")
        operation = OperationType.parse(operation)
        operands = [
            self.registry.resolve(handle, _CIPHERTEXT_TYPES, "Encrypted data")
            for handle in operand_handles
        ]

        spec = get_operation_spec(operation)
        self._check_arity(operation, spec, operands)
        self._check_operand_types(spec, operands)
        self._check_supported(operation, spec, operands)

        start = time.perf_counter()
        payload = self.pool.run(
            f"{operation.value} evaluation",
            self.backend.evaluate,
            server_key,
            operation,
            [operand.payload for operand in operands],
        )

        result = self._wrap_result(spec, operands, payload)
        handle = self.registry.register(result)

        logger.info(
            f"Evaluated {operation.value} on {len(operands)} {operands[0].describe()} "
            f"operand(s) in {time.perf_counter() - start:.3f}s -> {handle}"
        )
        return handle

    @staticmethod
    def _check_arity(
        operation: OperationType, spec: OperationSpec, operands: List[EncryptedValue]
    ) -> None:
        if len(operands) != spec.arity:
            noun = "operand" if spec.arity == 1 else "operands"
            raise InvalidArgumentError(
                f"{operation.value} requires exactly {spec.arity} {noun}, got {len(operands)}"
            )

    @staticmethod
    def _check_operand_types(spec: OperationSpec, operands: List[EncryptedValue]) -> None:
        first = operands[0]
        for operand in operands[1:]:
            if operand.describe() != first.describe():
                raise TypeMismatchError(first.describe(), operand.describe())

        if spec.operand_kind is ValueKind.BOOLEAN and first.kind is not ValueKind.BOOLEAN:
            raise TypeMismatchError(ValueKind.BOOLEAN.value, first.describe())

    @staticmethod
    def _check_supported(
        operation: OperationType, spec: OperationSpec, operands: List[EncryptedValue]
    ) -> None:
        kind = operands[0].kind
        if kind is not spec.operand_kind:
            raise UnsupportedOperationError(operation.value, kind.value)

    @staticmethod
    def _wrap_result(
        spec: OperationSpec, operands: List[EncryptedValue], payload: Any
    ) -> EncryptedValue:
        if spec.result_kind is ValueKind.BOOLEAN:
            return EncryptedBoolean(ciphertext=payload)
        return EncryptedInteger(bits=tuple(payload), num_bits=operands[0].num_bits)
