"""
Shared fixtures.

Unit tests run against PlaintextBackend (tests/plain_backend.py); tests that
need the real library live in test_openfhe_backend.py.
"""

import pytest

from hermetic_fhe.app import create_app
from hermetic_fhe.registry import HandleRegistry
from hermetic_fhe.service import FheService
from hermetic_fhe.service.compute_pool import ComputePool
from tests.plain_backend import PlaintextBackend


@pytest.fixture
def backend():
    return PlaintextBackend()


@pytest.fixture
def registry():
    return HandleRegistry(shard_count=4)


@pytest.fixture
def service(registry, backend):
    pool = ComputePool(max_workers=2)
    fhe_service = FheService(registry=registry, backend=backend, pool=pool)
    yield fhe_service
    fhe_service.shutdown()


@pytest.fixture
def keys(service):
    """(client_handle, server_handle) for a FAST key pair."""
    return service.key_manager.generate("FAST")


@pytest.fixture
def app(service):
    return create_app({"TESTING": True, "FHE_SERVICE": service})


@pytest.fixture
def client(app):
    return app.test_client()
