"""BinFHE (FHEW/TFHE) backend using OpenFHE"""

import logging
import os
import tempfile
from typing import Any, Callable, Dict, List, Sequence, Tuple

import openfhe

from .backend import CryptoBackend
from .types import MAX_BIT_WIDTH, ClientKey, ParameterSet, ServerKey

logger = logging.getLogger(__name__)


# Parameter set -> BinFHE security preset
PARAMETER_PRESETS: Dict[ParameterSet, Any] = {
    ParameterSet.DEFAULT: openfhe.STD128,
    ParameterSet.FAST: openfhe.TOY,
    ParameterSet.SECURE: openfhe.STD192,
}

# Prime, so packed encoding is available
TRANSPORT_PLAINTEXT_MODULUS = 65537


class BinFHEGates:
    """
    Gate evaluator over a BinFHE context holding bootstrapping keys.

    EvalBinGate refuses two references to the same ciphertext, which happens
    whenever an operand is combined with itself (x + x, x * x). Those cases
    are rewritten with NOT, which yields an independent ciphertext.
    """

    def __init__(self, context):
        self._context = context

    def and_(self, a, b):
        if a is b:
            return self._context.EvalBinGate(openfhe.AND, a, self.not_(self.not_(a)))
        return self._context.EvalBinGate(openfhe.AND, a, b)

    def or_(self, a, b):
        if a is b:
            return self._context.EvalBinGate(openfhe.OR, a, self.not_(self.not_(a)))
        return self._context.EvalBinGate(openfhe.OR, a, b)

    def xor(self, a, b):
        if a is b:
            return self._context.EvalBinGate(openfhe.AND, a, self.not_(a))
        return self._context.EvalBinGate(openfhe.XOR, a, b)

    def xnor(self, a, b):
        if a is b:
            return self._context.EvalBinGate(openfhe.OR, a, self.not_(a))
        return self._context.EvalBinGate(openfhe.XNOR, a, b)

    def not_(self, a):
        # NOT needs no bootstrapping
        return self._context.EvalNOT(a)


class OpenFHEBackend(CryptoBackend):
    """
    Boolean FHE over OpenFHE's BinFHE scheme.

    Each key pair gets its own BinFHE context. Key generation creates the LWE
    secret key (kept in the ClientKey) and loads the bootstrapping keys into
    the context, which then serves as the ServerKey. Gates are evaluated with
    bootstrapping, so ciphertext noise does not grow with circuit depth and
    operations can be chained indefinitely.

    The Python bindings cannot serialize LWE ciphertexts, so inline transport
    goes through a second scheme: every key pair also gets a BFV key pair
    under a shared BFV context, and exported values are packed into one BFV
    ciphertext, one slot per bit.
    """

    name = "openfhe-binfhe"

    def __init__(self, method=None):
        self.method = method if method is not None else openfhe.GINX
        self._transport_context = _create_transport_context()

    def generate_keys(self, parameter_set: ParameterSet) -> Tuple[ClientKey, ServerKey]:
        """Generate a secret key and the bootstrapping keys derived from it."""
        preset = PARAMETER_PRESETS[parameter_set]

        logger.info(f"Setting up BinFHE context with preset {parameter_set.value}...")
        context = openfhe.BinFHEContext()
        context.GenerateBinFHEContext(preset, self.method)

        secret_key = context.KeyGen()

        logger.info("Generating bootstrapping keys...")
        context.BTKeyGen(secret_key)

        logger.info("Generating transport key pair...")
        transport = self._transport_context.KeyGen()

        return (
            ClientKey(
                parameter_set=parameter_set,
                context=context,
                secret_key=secret_key,
                transport=transport,
            ),
            ServerKey(parameter_set=parameter_set, context=context),
        )

    def encrypt_bit(self, client_key: ClientKey, bit: int) -> Any:
        return client_key.context.Encrypt(client_key.secret_key, bit)

    def decrypt_bit(self, client_key: ClientKey, ciphertext: Any) -> int:
        return int(client_key.context.Decrypt(client_key.secret_key, ciphertext))

    def gates(self, server_key: ServerKey) -> BinFHEGates:
        return BinFHEGates(server_key.context)

    # ------------------------------------------------------------------
    # Transport sealing (file-based, the bindings serialize through paths)
    # ------------------------------------------------------------------

    def seal_bits(self, client_key: ClientKey, bits: Sequence[int]) -> bytes:
        plaintext = self._transport_context.MakePackedPlaintext([int(bit) for bit in bits])
        ciphertext = self._transport_context.Encrypt(client_key.transport.publicKey, plaintext)
        return _serialize_via_file(
            lambda path: openfhe.SerializeToFile(path, ciphertext, openfhe.BINARY)
        )

    def unseal_bits(self, client_key: ClientKey, data: bytes, count: int) -> List[int]:
        ciphertext = _deserialize_via_file(
            data, lambda path: openfhe.DeserializeCiphertext(path, openfhe.BINARY)
        )
        plaintext = self._transport_context.Decrypt(client_key.transport.secretKey, ciphertext)
        plaintext.SetLength(count)
        return [int(value) for value in plaintext.GetPackedValue()]

    def get_context_info(self, server_key: ServerKey) -> dict:
        """Get information about a key pair's BinFHE context."""
        context = server_key.context
        return {
            "scheme": "BinFHE",
            "parameter_set": server_key.parameter_set.value,
            "lwe_dimension": context.Getn(),
            "ciphertext_modulus": context.Getq(),
            "method": str(self.method),
            "transport_scheme": "BFVrns",
            "transport_ring_dimension": self._transport_context.GetRingDimension(),
        }


def _create_transport_context():
    """BFV context that carries up to MAX_BIT_WIDTH bits per ciphertext."""
    parameters = openfhe.CCParamsBFVRNS()
    parameters.SetPlaintextModulus(TRANSPORT_PLAINTEXT_MODULUS)
    parameters.SetBatchSize(MAX_BIT_WIDTH)
    parameters.SetMultiplicativeDepth(1)

    context = openfhe.GenCryptoContext(parameters)
    context.Enable(openfhe.PKESchemeFeature.PKE)
    return context


def _serialize_via_file(write: Callable[[str], bool]) -> bytes:
    with tempfile.NamedTemporaryFile(delete=False, suffix=".bin") as f:
        temp_path = f.name

    try:
        if not write(temp_path):
            raise RuntimeError("Serialization failed")
        with open(temp_path, "rb") as f:
            return f.read()
    finally:
        if os.path.exists(temp_path):
            os.remove(temp_path)


def _deserialize_via_file(data: bytes, read: Callable[[str], Tuple[Any, bool]]) -> Any:
    with tempfile.NamedTemporaryFile(delete=False, suffix=".bin") as f:
        f.write(data)
        temp_path = f.name

    try:
        obj, success = read(temp_path)
        if not success:
            raise RuntimeError("Deserialization failed")
        return obj
    finally:
        if os.path.exists(temp_path):
            os.remove(temp_path)
