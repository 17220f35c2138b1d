"""Envelope encoding and decoding: every malformed input is a SerializationError."""

import base64
import json

import pytest

from hermetic_fhe.crypto.serialization import (
    ENVELOPE_FORMAT,
    Envelope,
    decode_envelope,
    encode_envelope,
    export_value,
    open_envelope,
)
from hermetic_fhe.crypto.types import (
    EncryptedBoolean,
    EncryptedInteger,
    ParameterSet,
    ValueKind,
)
from hermetic_fhe.errors import SerializationError
from tests.plain_backend import PlaintextBackend


def b64(data):
    return base64.b64encode(data).decode("ascii")


def envelope(**fields):
    body = {"format": ENVELOPE_FORMAT}
    body.update(fields)
    return json.dumps(body).encode("utf-8")


@pytest.fixture
def plain():
    return PlaintextBackend()


@pytest.fixture
def client_key(plain):
    client_key, _ = plain.generate_keys(ParameterSet.FAST)
    return client_key


def test_encoding_is_compact_json(plain, client_key):
    data = encode_envelope(plain, client_key, [1, 0], num_bits=2)
    sealed = b64(f"{client_key.secret_key}:10".encode("ascii"))
    assert data == (
        b'{"format":"hermetic-fhe/1","kind":"integer","num_bits":2,"ciphertext":"'
        + sealed.encode("ascii")
        + b'"}'
    )


def test_integer_envelope_opens_lsb_first(plain, client_key):
    parsed = decode_envelope(encode_envelope(plain, client_key, [1, 0, 1, 0], num_bits=4))

    assert parsed.kind is ValueKind.INTEGER
    assert parsed.num_bits == 4
    assert parsed.describe() == "integer(4)"
    assert open_envelope(plain, client_key, parsed) == [1, 0, 1, 0]


def test_boolean_envelope(plain, client_key):
    parsed = decode_envelope(encode_envelope(plain, client_key, [1]))

    assert parsed.kind is ValueKind.BOOLEAN
    assert parsed.num_bits is None
    assert parsed.bit_count == 1
    assert open_envelope(plain, client_key, parsed) == [1]


def test_export_value_decrypts_before_sealing(plain, client_key):
    data = export_value(plain, client_key, EncryptedInteger(bits=(1, 1, 0), num_bits=3))

    assert plain.calls.count("decrypt_bit") == 3
    assert open_envelope(plain, client_key, decode_envelope(data)) == [1, 1, 0]


def test_export_boolean_value(plain, client_key):
    data = export_value(plain, client_key, EncryptedBoolean(ciphertext=0))
    assert json.loads(data)["kind"] == "boolean"


@pytest.mark.parametrize(
    "data, message",
    [
        (b"\xff\xfe", "not a JSON envelope"),
        (b"not json", "not a JSON envelope"),
        (b"[1, 2]", "must be a JSON object"),
        (json.dumps({"kind": "boolean", "ciphertext": "MQ=="}).encode(), "unsupported envelope format"),
        (envelope(kind="boolean", format="other/2", ciphertext="MQ=="), "unsupported envelope format"),
        (envelope(kind="float", ciphertext="MQ=="), "unknown kind"),
        (envelope(kind="integer", ciphertext="MQ=="), "requires an integer 'num_bits'"),
        (envelope(kind="integer", num_bits=True, ciphertext="MQ=="), "requires an integer 'num_bits'"),
        (envelope(kind="integer", num_bits=1, ciphertext="MQ=="), "unsupported bit width"),
        (envelope(kind="integer", num_bits=65, ciphertext="MQ=="), "unsupported bit width"),
        (envelope(kind="boolean"), "'ciphertext' must be a non-empty base64 string"),
        (envelope(kind="boolean", ciphertext=""), "'ciphertext' must be a non-empty base64 string"),
        (envelope(kind="boolean", ciphertext=["MQ=="]), "'ciphertext' must be a non-empty base64 string"),
        (envelope(kind="boolean", ciphertext="!!not base64!!"), "not valid base64"),
    ],
)
def test_malformed_envelopes(data, message):
    with pytest.raises(SerializationError) as exc_info:
        decode_envelope(data)
    assert message in exc_info.value.detail


@pytest.mark.parametrize(
    "sealed, num_bits, message",
    [
        (b"{key}:1x10", 4, "could not be loaded"),
        (b"{key}:101", 4, "expected 4 bits, got 3"),
        (b"{key}:2", None, "does not open to bits"),
        (b"999:1", None, "could not be loaded"),
        (b"\xff\xfe", None, "could not be loaded"),
    ],
)
def test_unopenable_ciphertexts(plain, client_key, sealed, num_bits, message):
    sealed = sealed.replace(b"{key}", str(client_key.secret_key).encode("ascii"))
    kind = ValueKind.BOOLEAN if num_bits is None else ValueKind.INTEGER
    parsed = Envelope(kind=kind, num_bits=num_bits, ciphertext=sealed)

    with pytest.raises(SerializationError) as exc_info:
        open_envelope(plain, client_key, parsed)
    assert message in exc_info.value.detail
