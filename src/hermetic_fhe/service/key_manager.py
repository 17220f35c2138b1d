"""Key generation."""

import logging
import time
from typing import Any, Tuple

from ..crypto.backend import CryptoBackend
from ..crypto.types import ParameterSet
from ..registry import HandleRegistry
from .compute_pool import ComputePool

logger = logging.getLogger(__name__)


class KeyManager:
    """Creates client/server key pairs and registers both keys."""

    def __init__(self, registry: HandleRegistry, backend: CryptoBackend, pool: ComputePool):
        self.registry = registry
        self.backend = backend
        self.pool = pool

    def generate(self, parameter_set: Any = ParameterSet.DEFAULT) -> Tuple[str, str]:
        """
        Generate a key pair for parameter_set.

        Args:
            parameter_set: ParameterSet, its name, or its protocol number

        Returns:
            (client_handle, server_handle)

        Raises:
            InvalidArgumentError: unknown parameter set
            InternalCryptoFailure: the library failed to generate keys
        """
        parameter_set = ParameterSet.parse(parameter_set)

        start = time.perf_counter()
        client_key, server_key = self.pool.run(
            "Key generation", self.backend.generate_keys, parameter_set
        )

        client_handle = self.registry.register(client_key)
        server_handle = self.registry.register(server_key)

        logger.info(
            f"Generated {parameter_set.value} key pair in {time.perf_counter() - start:.2f}s: "
            f"client={client_handle} server={server_handle}"
        )
        return client_handle, server_handle
