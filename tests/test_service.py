"""
KeyManager, Encryptor, Decryptor and export tests against the plaintext backend.
"""

import json
from unittest.mock import patch

import pytest

from hermetic_fhe.crypto.serialization import ENVELOPE_FORMAT
from hermetic_fhe.crypto.types import ClientKey, ParameterSet, ServerKey
from hermetic_fhe.errors import (
    InternalCryptoFailure,
    InvalidArgumentError,
    NotFoundError,
    SerializationError,
    TypeMismatchError,
)
from hermetic_fhe.service import FheService
from hermetic_fhe.service.compute_pool import ComputePool
from tests.plain_backend import PlaintextBackend


# ============================================================================
# KeyManager
# ============================================================================

@pytest.mark.parametrize("parameter_set", list(ParameterSet))
def test_generate_keys_registers_both_keys(service, parameter_set):
    client_id, server_id = service.key_manager.generate(parameter_set)

    assert client_id != server_id
    client_key = service.registry.get(client_id)
    server_key = service.registry.get(server_id)
    assert isinstance(client_key, ClientKey)
    assert isinstance(server_key, ServerKey)
    assert client_key.parameter_set is parameter_set
    assert server_key.parameter_set is parameter_set


def test_generate_keys_defaults_to_default_parameter_set(service, backend):
    service.key_manager.generate()
    assert ("generate_keys", ParameterSet.DEFAULT) in backend.calls


def test_repeated_generation_gives_new_handles(service):
    first = service.key_manager.generate("FAST")
    second = service.key_manager.generate("FAST")
    assert len(set(first) | set(second)) == 4


def test_unknown_parameter_set(service, backend):
    with pytest.raises(InvalidArgumentError):
        service.key_manager.generate("ULTRA")
    assert backend.calls == []
    assert len(service.registry) == 0


def test_keygen_failure_registers_nothing(service, backend):
    with patch.object(backend, "generate_keys", side_effect=RuntimeError("out of memory")):
        with pytest.raises(InternalCryptoFailure):
            service.key_manager.generate("FAST")
    assert len(service.registry) == 0


def test_client_key_repr_hides_secret():
    key = ClientKey(parameter_set=ParameterSet.FAST, context="ctx", secret_key="s3cr3t")
    assert "s3cr3t" not in repr(key)


# ============================================================================
# Encryptor / Decryptor
# ============================================================================

@pytest.mark.parametrize("value", [True, False])
def test_boolean_round_trip(service, keys, value):
    client_id, _ = keys
    handle = service.encryptor.encrypt_boolean(client_id, value)
    assert service.decryptor.decrypt_boolean(client_id, handle) is value


@pytest.mark.parametrize(
    "value, num_bits",
    [(127, 8), (-128, 8), (0, 8), (-1, 2), (1, 2), (12345, 16), (-(2 ** 63), 64), (2 ** 63 - 1, 64)],
)
def test_integer_round_trip(service, keys, value, num_bits):
    client_id, _ = keys
    handle = service.encryptor.encrypt_integer(client_id, value, num_bits)

    assert service.registry.get(handle).num_bits == num_bits
    assert service.decryptor.decrypt_integer(client_id, handle) == value


def test_encrypt_with_unknown_client_key(service):
    with pytest.raises(NotFoundError) as exc_info:
        service.encryptor.encrypt_boolean("missing-client-key", True)
    assert exc_info.value.kind == "Client key"


def test_encrypt_with_server_key_handle(service, keys):
    _, server_id = keys
    with pytest.raises(NotFoundError):
        service.encryptor.encrypt_integer(server_id, 1, 8)


def test_encrypt_with_ciphertext_handle_as_key(service, keys):
    client_id, _ = keys
    ciphertext = service.encryptor.encrypt_boolean(client_id, True)
    with pytest.raises(NotFoundError):
        service.encryptor.encrypt_boolean(ciphertext, True)


def test_client_key_checked_before_arguments(service):
    with pytest.raises(NotFoundError):
        service.encryptor.encrypt_integer("missing-client-key", 1000, 1)


@pytest.mark.parametrize(
    "value, num_bits",
    [(128, 8), (-129, 8), (1, 1), (1, 0), (1, 65), (True, 8), ("3", 8)],
)
def test_encrypt_integer_invalid_arguments(service, backend, keys, value, num_bits):
    client_id, _ = keys
    entries_before = len(service.registry)

    with pytest.raises(InvalidArgumentError):
        service.encryptor.encrypt_integer(client_id, value, num_bits)

    assert len(service.registry) == entries_before
    assert "encrypt_bit" not in backend.calls


@pytest.mark.parametrize("value", [1, 0, "true", None])
def test_encrypt_boolean_requires_bool(service, keys, value):
    client_id, _ = keys
    with pytest.raises(InvalidArgumentError):
        service.encryptor.encrypt_boolean(client_id, value)


def test_decrypt_with_unknown_client_key(service, keys):
    client_id, _ = keys
    handle = service.encryptor.encrypt_boolean(client_id, True)
    with pytest.raises(NotFoundError) as exc_info:
        service.decryptor.decrypt_boolean("missing-client-key", handle)
    assert exc_info.value.kind == "Client key"


def test_decrypt_unknown_ciphertext(service, keys):
    client_id, _ = keys
    with pytest.raises(NotFoundError) as exc_info:
        service.decryptor.decrypt_integer(client_id, "missing-data")
    assert exc_info.value.kind == "Encrypted data"


def test_decrypt_key_handle_as_ciphertext(service, keys):
    client_id, server_id = keys
    with pytest.raises(NotFoundError):
        service.decryptor.decrypt_boolean(client_id, server_id)


def test_decrypt_integer_of_boolean_is_type_mismatch(service, keys):
    client_id, _ = keys
    handle = service.encryptor.encrypt_boolean(client_id, True)
    with pytest.raises(TypeMismatchError) as exc_info:
        service.decryptor.decrypt_integer(client_id, handle)
    assert exc_info.value.expected == "integer"
    assert exc_info.value.actual == "boolean"


def test_decrypt_boolean_of_integer_is_type_mismatch(service, keys):
    client_id, _ = keys
    handle = service.encryptor.encrypt_integer(client_id, 5, 8)
    with pytest.raises(TypeMismatchError) as exc_info:
        service.decryptor.decrypt_boolean(client_id, handle)
    assert exc_info.value.actual == "integer(8)"


def test_decrypt_requires_exactly_one_source(service, keys):
    client_id, _ = keys
    handle = service.encryptor.encrypt_boolean(client_id, True)
    serialized = service.export_value(client_id, handle)

    with pytest.raises(InvalidArgumentError):
        service.decryptor.decrypt_boolean(client_id)
    with pytest.raises(InvalidArgumentError):
        service.decryptor.decrypt_boolean(client_id, handle, serialized)


def test_decrypt_does_not_modify_registry(service, keys):
    client_id, _ = keys
    handle = service.encryptor.encrypt_integer(client_id, 9, 8)
    entries_before = len(service.registry)

    for _ in range(3):
        assert service.decryptor.decrypt_integer(client_id, handle) == 9
    assert len(service.registry) == entries_before


def test_decryption_failure_is_internal_crypto_failure(service, backend, keys):
    client_id, _ = keys
    handle = service.encryptor.encrypt_boolean(client_id, True)

    with patch.object(backend, "decrypt_bit", side_effect=RuntimeError("bad ciphertext")):
        with pytest.raises(InternalCryptoFailure) as exc_info:
            service.decryptor.decrypt_boolean(client_id, handle)
    assert "bad ciphertext" in exc_info.value.detail


# ============================================================================
# Export and inline decryption
# ============================================================================

def test_export_integer_envelope(service, keys):
    client_id, _ = keys
    handle = service.encryptor.encrypt_integer(client_id, 5, 4)

    envelope = json.loads(service.export_value(client_id, handle))

    assert envelope["format"] == ENVELOPE_FORMAT
    assert envelope["kind"] == "integer"
    assert envelope["num_bits"] == 4
    assert envelope["ciphertext"]


def test_export_boolean_envelope(service, keys):
    client_id, _ = keys
    handle = service.encryptor.encrypt_boolean(client_id, False)

    envelope = json.loads(service.export_value(client_id, handle))

    assert envelope["kind"] == "boolean"
    assert "num_bits" not in envelope


def test_export_refuses_keys(service, keys):
    client_id, server_id = keys
    for handle in (client_id, server_id):
        with pytest.raises(NotFoundError):
            service.export_value(client_id, handle)


def test_export_requires_a_client_key(service, keys):
    client_id, server_id = keys
    handle = service.encryptor.encrypt_boolean(client_id, True)
    with pytest.raises(NotFoundError) as exc_info:
        service.export_value(server_id, handle)
    assert exc_info.value.details["kind"] == "Client key"


def test_export_does_not_modify_registry(service, keys):
    client_id, _ = keys
    handle = service.encryptor.encrypt_integer(client_id, 3, 8)
    entries_before = len(service.registry)

    service.export_value(client_id, handle)

    assert len(service.registry) == entries_before


def test_encrypt_with_envelope(service, keys):
    client_id, _ = keys

    handle, serialized = service.encryptor.encrypt_integer(
        client_id, -3, 6, return_serialized=True
    )

    assert service.decryptor.decrypt_integer(client_id, handle) == -3
    assert service.decryptor.decrypt_integer(client_id, serialized=serialized) == -3


def test_encrypt_envelope_is_sealed_from_the_plaintext(service, backend, keys):
    client_id, _ = keys
    del backend.calls[:]

    service.encryptor.encrypt_boolean(client_id, True, return_serialized=True)

    # Encrypting needs no decryption round trip before sealing
    assert "decrypt_bit" not in backend.calls
    assert "seal_bits" in backend.calls


@pytest.mark.parametrize(
    "encrypt",
    [
        lambda encryptor, client_id: encryptor.encrypt_boolean(
            client_id, True, return_serialized=True
        ),
        lambda encryptor, client_id: encryptor.encrypt_integer(
            client_id, 7, 8, return_serialized=True
        ),
    ],
    ids=["boolean", "integer"],
)
def test_failed_envelope_leaves_registry_unchanged(service, backend, keys, encrypt):
    client_id, _ = keys
    entries_before = len(service.registry)

    with patch.object(backend, "seal_bits", side_effect=RuntimeError("sealing failed")):
        with pytest.raises(InternalCryptoFailure):
            encrypt(service.encryptor, client_id)

    assert len(service.registry) == entries_before


def test_inline_decrypt_of_exported_value(service, keys):
    client_id, _ = keys
    handle = service.encryptor.encrypt_integer(client_id, -42, 8)
    serialized = service.export_value(client_id, handle)
    entries_before = len(service.registry)

    assert service.decryptor.decrypt_integer(client_id, serialized=serialized) == -42
    assert len(service.registry) == entries_before


def test_inline_decrypt_of_evaluation_result(service, keys):
    client_id, server_id = keys
    a = service.encryptor.encrypt_integer(client_id, -6, 8)
    b = service.encryptor.encrypt_integer(client_id, 7, 8)
    product = service.dispatcher.evaluate(server_id, "MULTIPLY", [a, b])

    serialized = service.export_value(client_id, product)

    assert service.decryptor.decrypt_integer(client_id, serialized=serialized) == -42


def test_inline_decrypt_checks_kind(service, keys):
    client_id, _ = keys
    handle = service.encryptor.encrypt_boolean(client_id, True)
    serialized = service.export_value(client_id, handle)
    with pytest.raises(TypeMismatchError):
        service.decryptor.decrypt_integer(client_id, serialized=serialized)


def test_inline_decrypt_under_another_client_key(service, keys):
    client_id, _ = keys
    other_client_id, _ = service.key_manager.generate("FAST")
    handle = service.encryptor.encrypt_boolean(client_id, True)
    serialized = service.export_value(client_id, handle)

    with pytest.raises(SerializationError):
        service.decryptor.decrypt_boolean(other_client_id, serialized=serialized)


def test_inline_decrypt_of_garbage(service, keys):
    client_id, _ = keys
    with pytest.raises(SerializationError):
        service.decryptor.decrypt_boolean(client_id, serialized=b"\x00\x01 not an envelope")


def test_inline_decrypt_checks_client_key_first(service):
    with pytest.raises(NotFoundError):
        service.decryptor.decrypt_boolean("missing-client-key", serialized=b"garbage")


# ============================================================================
# Wiring
# ============================================================================

def test_create_uses_given_backend():
    backend = PlaintextBackend()
    service = FheService.create(backend=backend, compute_workers=3, registry_shards=2)
    try:
        assert service.backend is backend
        assert service.pool.max_workers == 3
        assert service.registry.shard_count == 2
    finally:
        service.shutdown()


def test_components_share_one_registry(service):
    for component in (
        service.key_manager,
        service.encryptor,
        service.dispatcher,
        service.decryptor,
    ):
        assert component.registry is service.registry
        assert component.pool is service.pool


def test_compute_pool_passes_service_errors_through():
    pool = ComputePool(max_workers=1)

    def fail():
        raise InvalidArgumentError("nope")

    try:
        with pytest.raises(InvalidArgumentError):
            pool.run("failing task", fail)
    finally:
        pool.shutdown()
