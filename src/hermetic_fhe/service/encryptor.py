"""Plaintext to registered ciphertext."""

import logging
from typing import Any, List, Optional, Tuple, Union

from ..crypto.backend import CryptoBackend
from ..crypto.serialization import encode_envelope
from ..crypto.types import (
    ClientKey,
    EncryptedBoolean,
    EncryptedInteger,
    EncryptedValue,
    to_bits,
    validate_bit_width,
    validate_integer_value,
)
from ..errors import InvalidArgumentError
from ..registry import HandleRegistry
from .compute_pool import ComputePool

logger = logging.getLogger(__name__)

EncryptResult = Union[str, Tuple[str, bytes]]


class Encryptor:
    """
    Encrypts booleans and fixed-width integers under a registered client key.

    With return_serialized=True the methods return ``(handle, envelope)``.
    The envelope is built before the ciphertext is registered, so a failed
    export leaves the registry untouched.
    """

    def __init__(self, registry: HandleRegistry, backend: CryptoBackend, pool: ComputePool):
        self.registry = registry
        self.backend = backend
        self.pool = pool

    def _client_key(self, client_handle: str) -> ClientKey:
        return self.registry.resolve(client_handle, ClientKey, "Client key")

    def _register(
        self,
        client_key: ClientKey,
        value: EncryptedValue,
        plain_bits: List[int],
        num_bits: Optional[int],
        return_serialized: bool,
    ) -> EncryptResult:
        if not return_serialized:
            return self.registry.register(value)

        serialized = self.pool.run(
            "Ciphertext export", encode_envelope, self.backend, client_key, plain_bits, num_bits
        )
        return self.registry.register(value), serialized

    def encrypt_boolean(
        self, client_handle: str, value: Any, return_serialized: bool = False
    ) -> EncryptResult:
        client_key = self._client_key(client_handle)
        if not isinstance(value, bool):
            raise InvalidArgumentError(f"value must be a boolean, got {value!r}")

        ciphertext = self.pool.run(
            "Boolean encryption", self.backend.encrypt_boolean, client_key, value
        )
        result = self._register(
            client_key,
            EncryptedBoolean(ciphertext=ciphertext),
            [int(value)],
            None,
            return_serialized,
        )
        handle = result[0] if return_serialized else result
        logger.debug(f"Encrypted boolean under {client_handle} -> {handle}")
        return result

    def encrypt_integer(
        self, client_handle: str, value: Any, num_bits: Any, return_serialized: bool = False
    ) -> EncryptResult:
        """
        Encrypt value as a signed num_bits-wide integer.

        Raises:
            NotFoundError: client key not registered
            InvalidArgumentError: width outside the supported range, or value
                not representable in that width
        """
        client_key = self._client_key(client_handle)
        num_bits = validate_bit_width(num_bits)
        value = validate_integer_value(value, num_bits)

        bits = self.pool.run(
            "Integer encryption", self.backend.encrypt_integer, client_key, value, num_bits
        )
        result = self._register(
            client_key,
            EncryptedInteger(bits=tuple(bits), num_bits=num_bits),
            to_bits(value, num_bits),
            num_bits,
            return_serialized,
        )
        handle = result[0] if return_serialized else result
        logger.debug(f"Encrypted {num_bits}-bit integer under {client_handle} -> {handle}")
        return result
