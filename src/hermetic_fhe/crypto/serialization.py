"""
Envelope format for ciphertexts supplied or returned inline.

An envelope is a UTF-8 JSON object:

    {
        "format": "hermetic-fhe/1",
        "kind": "boolean" | "integer",
        "num_bits": 8,                  # integers only
        "ciphertext": "<base64>"        # backend-sealed bits, LSB first
    }

The ciphertext is sealed under the client key's transport material, so an
envelope can only be opened with the client key that exported it. Keys are
never serialized.
"""

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..errors import SerializationError
from .backend import CryptoBackend
from .types import (
    MAX_BIT_WIDTH,
    MIN_BIT_WIDTH,
    ClientKey,
    EncryptedBoolean,
    EncryptedValue,
    ValueKind,
)

ENVELOPE_FORMAT = "hermetic-fhe/1"


@dataclass(frozen=True)
class Envelope:
    """A structurally valid envelope whose ciphertext has not been opened yet."""

    kind: ValueKind
    num_bits: Optional[int]
    ciphertext: bytes

    @property
    def bit_count(self) -> int:
        return 1 if self.num_bits is None else self.num_bits

    def describe(self) -> str:
        if self.num_bits is None:
            return self.kind.value
        return f"{self.kind.value}({self.num_bits})"


def encode_envelope(
    backend: CryptoBackend,
    client_key: ClientKey,
    bits: Sequence[int],
    num_bits: Optional[int] = None,
) -> bytes:
    """Seal plaintext bits into envelope bytes; num_bits=None marks a boolean."""
    envelope: Dict[str, Any] = {"format": ENVELOPE_FORMAT}
    if num_bits is None:
        envelope["kind"] = ValueKind.BOOLEAN.value
    else:
        envelope["kind"] = ValueKind.INTEGER.value
        envelope["num_bits"] = num_bits
    sealed = backend.seal_bits(client_key, bits)
    envelope["ciphertext"] = base64.b64encode(sealed).decode("ascii")
    return json.dumps(envelope, separators=(",", ":")).encode("utf-8")


def export_value(backend: CryptoBackend, client_key: ClientKey, value: EncryptedValue) -> bytes:
    """Decrypt a registered value with its client key and reseal it as an envelope."""
    if isinstance(value, EncryptedBoolean):
        return encode_envelope(backend, client_key, backend.decrypt_bits(client_key, [value.ciphertext]))
    return encode_envelope(
        backend, client_key, backend.decrypt_bits(client_key, value.bits), value.num_bits
    )


def decode_envelope(data: bytes) -> Envelope:
    """
    Parse envelope bytes without opening the ciphertext.

    Raises:
        SerializationError: on any structural problem
    """
    try:
        envelope = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise SerializationError(f"not a JSON envelope ({e})") from e

    if not isinstance(envelope, dict):
        raise SerializationError("envelope must be a JSON object")
    if envelope.get("format") != ENVELOPE_FORMAT:
        raise SerializationError(f"unsupported envelope format {envelope.get('format')!r}")

    kind = envelope.get("kind")
    if kind == ValueKind.BOOLEAN.value:
        num_bits = None
    elif kind == ValueKind.INTEGER.value:
        num_bits = envelope.get("num_bits")
        if isinstance(num_bits, bool) or not isinstance(num_bits, int):
            raise SerializationError("integer envelope requires an integer 'num_bits'")
        if not MIN_BIT_WIDTH <= num_bits <= MAX_BIT_WIDTH:
            raise SerializationError(f"unsupported bit width {num_bits}")
    else:
        raise SerializationError(f"unknown kind {kind!r}")

    encoded = envelope.get("ciphertext")
    if not isinstance(encoded, str) or not encoded:
        raise SerializationError("'ciphertext' must be a non-empty base64 string")
    try:
        ciphertext = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise SerializationError("'ciphertext' is not valid base64") from e

    return Envelope(kind=ValueKind(kind), num_bits=num_bits, ciphertext=ciphertext)


def open_envelope(backend: CryptoBackend, client_key: ClientKey, envelope: Envelope) -> List[int]:
    """
    Unseal an envelope's plaintext bits with client_key.

    Raises:
        SerializationError: if the library cannot load the ciphertext, or it
            does not open to exactly bit_count bits under this key
    """
    try:
        bits = backend.unseal_bits(client_key, envelope.ciphertext, envelope.bit_count)
    except Exception as e:
        raise SerializationError(f"ciphertext could not be loaded ({e})") from e

    if len(bits) != envelope.bit_count:
        raise SerializationError(f"expected {envelope.bit_count} bits, got {len(bits)}")
    if any(bit not in (0, 1) for bit in bits):
        raise SerializationError("ciphertext does not open to bits under this client key")
    return bits
