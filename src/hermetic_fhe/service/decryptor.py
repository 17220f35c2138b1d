"""Registered or inline ciphertext to plaintext."""

import logging
from typing import Optional

from ..crypto.backend import CryptoBackend
from ..crypto.serialization import Envelope, decode_envelope, open_envelope
from ..crypto.types import ClientKey, EncryptedBoolean, EncryptedInteger, ValueKind, from_bits
from ..errors import InvalidArgumentError, TypeMismatchError
from ..registry import HandleRegistry
from .compute_pool import ComputePool

logger = logging.getLogger(__name__)


class Decryptor:
    """
    Decrypts ciphertexts with a registered client key.

    The ciphertext is referenced either by handle or supplied inline as
    envelope bytes (see hermetic_fhe.crypto.serialization); exactly one of the
    two must be given. Inline ciphertexts are opened with the same client key
    and never registered.
    """

    def __init__(self, registry: HandleRegistry, backend: CryptoBackend, pool: ComputePool):
        self.registry = registry
        self.backend = backend
        self.pool = pool

    def _resolve(self, data_handle: Optional[str], serialized: Optional[bytes]):
        if (data_handle is None) == (serialized is None):
            raise InvalidArgumentError(
                "Exactly one of encrypted_data_id or serialized_data must be provided"
            )
        if serialized is not None:
            return decode_envelope(serialized)
        return self.registry.resolve(
            data_handle, (EncryptedBoolean, EncryptedInteger), "Encrypted data"
        )

    def _open(self, client_key: ClientKey, envelope: Envelope):
        return self.pool.run(
            "Inline ciphertext opening", open_envelope, self.backend, client_key, envelope
        )

    def decrypt_boolean(
        self,
        client_handle: str,
        data_handle: Optional[str] = None,
        serialized: Optional[bytes] = None,
    ) -> bool:
        client_key = self.registry.resolve(client_handle, ClientKey, "Client key")
        value = self._resolve(data_handle, serialized)
        if value.kind is not ValueKind.BOOLEAN:
            raise TypeMismatchError(ValueKind.BOOLEAN.value, value.describe())

        if isinstance(value, Envelope):
            result = bool(self._open(client_key, value)[0])
        else:
            result = self.pool.run(
                "Boolean decryption", self.backend.decrypt_boolean, client_key, value.ciphertext
            )
        logger.debug(f"Decrypted boolean {data_handle or '<inline>'} with {client_handle}")
        return result

    def decrypt_integer(
        self,
        client_handle: str,
        data_handle: Optional[str] = None,
        serialized: Optional[bytes] = None,
    ) -> int:
        """Decrypt an integer, sign-extended from its stored width."""
        client_key = self.registry.resolve(client_handle, ClientKey, "Client key")
        value = self._resolve(data_handle, serialized)
        if value.kind is not ValueKind.INTEGER:
            raise TypeMismatchError(ValueKind.INTEGER.value, value.describe())

        if isinstance(value, Envelope):
            result = from_bits(self._open(client_key, value), value.num_bits)
        else:
            result = self.pool.run(
                "Integer decryption",
                self.backend.decrypt_integer,
                client_key,
                value.bits,
                value.num_bits,
            )
        logger.debug(
            f"Decrypted {value.num_bits}-bit integer {data_handle or '<inline>'} "
            f"with {client_handle}"
        )
        return result
