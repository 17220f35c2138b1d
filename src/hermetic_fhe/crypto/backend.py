"""
Boundary to the cryptographic primitive library.

CryptoBackend groups the five capabilities the service consumes:
- key generation (parameter set -> key pair)
- boolean encryption/decryption
- integer encryption/decryption, parameterized by bit width
- homomorphic evaluation, parameterized by operation and operand payloads
- sealing plaintext bits into bytes for inline transport, and opening them

A concrete backend implements the single-bit primitives, a gate evaluator and
the seal/unseal pair; integers, evaluation dispatch and sign handling are
shared here. Backends do no request validation: callers check kinds, widths
and ranges first.
"""

from typing import Any, List, Sequence, Tuple

from .operations import get_operation_spec
from .types import ClientKey, OperationType, ParameterSet, ServerKey, from_bits, to_bits


class CryptoBackend:
    """Base class for primitive-library adapters."""

    name = "abstract"

    # ------------------------------------------------------------------
    # Primitives implemented by concrete backends
    # ------------------------------------------------------------------

    def generate_keys(self, parameter_set: ParameterSet) -> Tuple[ClientKey, ServerKey]:
        raise NotImplementedError

    def encrypt_bit(self, client_key: ClientKey, bit: int) -> Any:
        raise NotImplementedError

    def decrypt_bit(self, client_key: ClientKey, ciphertext: Any) -> int:
        raise NotImplementedError

    def gates(self, server_key: ServerKey):
        """Return a gate evaluator bound to server_key (see circuits module)."""
        raise NotImplementedError

    def seal_bits(self, client_key: ClientKey, bits: Sequence[int]) -> bytes:
        """Encrypt plaintext bits under client_key into transportable bytes."""
        raise NotImplementedError

    def unseal_bits(self, client_key: ClientKey, data: bytes, count: int) -> List[int]:
        """
        Recover count plaintext bits from bytes produced by seal_bits.

        May raise any exception on bytes it cannot load; callers map those to
        SerializationError.
        """
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Shared capabilities
    # ------------------------------------------------------------------

    def encrypt_boolean(self, client_key: ClientKey, value: bool) -> Any:
        return self.encrypt_bit(client_key, 1 if value else 0)

    def decrypt_boolean(self, client_key: ClientKey, ciphertext: Any) -> bool:
        return bool(self.decrypt_bit(client_key, ciphertext))

    def encrypt_integer(
        self, client_key: ClientKey, value: int, num_bits: int
    ) -> Tuple[Any, ...]:
        """Encrypt value bit by bit in two's complement, least significant bit first."""
        return tuple(self.encrypt_bit(client_key, bit) for bit in to_bits(value, num_bits))

    def decrypt_integer(
        self, client_key: ClientKey, bits: Sequence[Any], num_bits: int
    ) -> int:
        """Decrypt a bit sequence and sign-extend from num_bits."""
        return from_bits(self.decrypt_bits(client_key, bits), num_bits)

    def decrypt_bits(self, client_key: ClientKey, ciphertexts: Sequence[Any]) -> List[int]:
        return [self.decrypt_bit(client_key, ciphertext) for ciphertext in ciphertexts]

    def evaluate(
        self, server_key: ServerKey, operation: OperationType, payloads: Sequence[Any]
    ) -> Any:
        """
        Evaluate operation on operand payloads.

        Returns a single bit ciphertext for boolean results or a tuple of bit
        ciphertexts for integer results.
        """
        spec = get_operation_spec(operation)
        return spec.circuit(self.gates(server_key), *payloads)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name})"
