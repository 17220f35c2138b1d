"""
Service layer: the four components and the object that wires them together.

Usage:
    from hermetic_fhe.service import FheService

    service = FheService.create(compute_workers=4)
    client_id, server_id = service.key_manager.generate("FAST")
    a = service.encryptor.encrypt_integer(client_id, 3, 8)
    b = service.encryptor.encrypt_integer(client_id, 4, 8)
    total = service.dispatcher.evaluate(server_id, "ADD", [a, b])
    assert service.decryptor.decrypt_integer(client_id, total) == 7
"""

import logging
from typing import Optional

from ..crypto.backend import CryptoBackend
from ..crypto.serialization import export_value
from ..crypto.types import ClientKey, EncryptedBoolean, EncryptedInteger
from ..registry import DEFAULT_SHARD_COUNT, HandleRegistry
from .compute_pool import ComputePool
from .decryptor import Decryptor
from .dispatcher import Dispatcher
from .encryptor import Encryptor
from .key_manager import KeyManager

logger = logging.getLogger(__name__)


def default_backend() -> CryptoBackend:
    """Return the OpenFHE backend (imports the native library on first use)."""
    from ..crypto.openfhe_backend import OpenFHEBackend

    return OpenFHEBackend()


class FheService:
    """
    Owns one registry, one backend and one compute pool, and shares them with
    the KeyManager, Encryptor, Dispatcher and Decryptor.

    Created once at application start and passed to request handlers; nothing
    in the package keeps a module-level instance.
    """

    def __init__(
        self,
        registry: HandleRegistry,
        backend: CryptoBackend,
        pool: ComputePool,
    ):
        self.registry = registry
        self.backend = backend
        self.pool = pool

        self.key_manager = KeyManager(registry, backend, pool)
        self.encryptor = Encryptor(registry, backend, pool)
        self.dispatcher = Dispatcher(registry, backend, pool)
        self.decryptor = Decryptor(registry, backend, pool)

    @classmethod
    def create(
        cls,
        backend: Optional[CryptoBackend] = None,
        compute_workers: Optional[int] = None,
        registry_shards: int = DEFAULT_SHARD_COUNT,
    ) -> "FheService":
        backend = backend if backend is not None else default_backend()
        service = cls(
            registry=HandleRegistry(shard_count=registry_shards),
            backend=backend,
            pool=ComputePool(max_workers=compute_workers),
        )
        logger.info(
            f"FHE service ready: backend={backend.name}, "
            f"compute_workers={service.pool.max_workers}, shards={registry_shards}"
        )
        return service

    def export_value(self, client_handle: str, data_handle: str) -> bytes:
        """
        Seal a registered ciphertext into envelope bytes for client_handle.

        Read-only: the registry is not modified. Keys are never exported.
        """
        client_key = self.registry.resolve(client_handle, ClientKey, "Client key")
        value = self.registry.resolve(
            data_handle, (EncryptedBoolean, EncryptedInteger), "Encrypted data"
        )
        serialized = self.pool.run(
            "Ciphertext export", export_value, self.backend, client_key, value
        )
        logger.debug(f"Exported {value.describe()} {data_handle} for {client_handle}")
        return serialized

    def shutdown(self) -> None:
        self.pool.shutdown()


__all__ = [
    "FheService",
    "ComputePool",
    "KeyManager",
    "Encryptor",
    "Dispatcher",
    "Decryptor",
    "default_backend",
]
