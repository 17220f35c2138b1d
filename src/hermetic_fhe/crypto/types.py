"""Key, ciphertext and enumeration types shared by the crypto layer and the service."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, List, Sequence, Tuple, Union

from ..errors import InvalidArgumentError

# Integer widths the backend can encrypt. Values use signed two's complement.
MIN_BIT_WIDTH = 2
MAX_BIT_WIDTH = 64


class _WireEnum(str, Enum):
    """Enumeration accepted on the wire either by exact name or by protocol number."""

    @classmethod
    def parse(cls, value: Any):
        if isinstance(value, cls):
            return value
        # bool is an int subclass; True/False are never valid enumerants
        if isinstance(value, int) and not isinstance(value, bool):
            members = list(cls)
            if 0 <= value < len(members):
                return members[value]
        elif isinstance(value, str) and value in cls.__members__:
            return cls.__members__[value]
        allowed = ", ".join(member.name for member in cls)
        raise InvalidArgumentError(
            f"Invalid {cls.__name__} {value!r}; expected one of: {allowed}"
        )


class ParameterSet(_WireEnum):
    """Security/performance trade-off forwarded to key generation."""

    DEFAULT = "DEFAULT"
    FAST = "FAST"
    SECURE = "SECURE"


class OperationType(_WireEnum):
    """Closed set of homomorphic operations, in protocol order."""

    AND = "AND"
    OR = "OR"
    XOR = "XOR"
    NOT = "NOT"
    ADD = "ADD"
    SUBTRACT = "SUBTRACT"
    MULTIPLY = "MULTIPLY"
    GREATER_THAN = "GREATER_THAN"
    LESS_THAN = "LESS_THAN"
    EQUAL = "EQUAL"


class ValueKind(str, Enum):
    BOOLEAN = "boolean"
    INTEGER = "integer"


@dataclass(frozen=True)
class ClientKey:
    """
    Private key material: encrypts and decrypts.

    The library objects are kept out of repr() so the secret key never ends
    up in logs or tracebacks. ``transport`` holds the backend's key material
    for sealing values into exportable envelopes, if it needs any.
    """

    parameter_set: ParameterSet
    context: Any = field(repr=False, compare=False)
    secret_key: Any = field(repr=False, compare=False)
    transport: Any = field(default=None, repr=False, compare=False)


@dataclass(frozen=True)
class ServerKey:
    """Public evaluation material derived from exactly one ClientKey."""

    parameter_set: ParameterSet
    context: Any = field(repr=False, compare=False)


@dataclass(frozen=True)
class EncryptedBoolean:
    """A single encrypted bit."""

    ciphertext: Any = field(repr=False, compare=False)

    kind: ClassVar[ValueKind] = ValueKind.BOOLEAN

    @property
    def payload(self) -> Any:
        return self.ciphertext

    def describe(self) -> str:
        return self.kind.value


@dataclass(frozen=True)
class EncryptedInteger:
    """A fixed-width integer encrypted bit by bit, least significant bit first."""

    bits: Tuple[Any, ...] = field(repr=False, compare=False)
    num_bits: int

    kind: ClassVar[ValueKind] = ValueKind.INTEGER

    def __post_init__(self):
        if len(self.bits) != self.num_bits:
            raise ValueError(
                f"EncryptedInteger expects {self.num_bits} bits, got {len(self.bits)}"
            )

    @property
    def payload(self) -> Tuple[Any, ...]:
        return self.bits

    def describe(self) -> str:
        return f"{self.kind.value}({self.num_bits})"


EncryptedValue = Union[EncryptedBoolean, EncryptedInteger]


def signed_range(num_bits: int) -> Tuple[int, int]:
    """Inclusive range of values representable in num_bits (two's complement)."""
    return -(1 << (num_bits - 1)), (1 << (num_bits - 1)) - 1


def to_bits(value: int, num_bits: int) -> List[int]:
    """Two's complement bits of value, least significant bit first."""
    pattern = value & ((1 << num_bits) - 1)
    return [(pattern >> i) & 1 for i in range(num_bits)]


def from_bits(bits: Sequence[int], num_bits: int) -> int:
    """Inverse of to_bits: sign-extend an LSB-first bit list from num_bits."""
    pattern = 0
    for i, bit in enumerate(bits):
        if bit:
            pattern |= 1 << i
    if pattern & (1 << (num_bits - 1)):
        pattern -= 1 << num_bits
    return pattern


def validate_bit_width(num_bits: Any) -> int:
    if isinstance(num_bits, bool) or not isinstance(num_bits, int):
        raise InvalidArgumentError(f"num_bits must be an integer, got {num_bits!r}")
    if not MIN_BIT_WIDTH <= num_bits <= MAX_BIT_WIDTH:
        raise InvalidArgumentError(
            f"num_bits must be between {MIN_BIT_WIDTH} and {MAX_BIT_WIDTH}, got {num_bits}"
        )
    return num_bits


def validate_integer_value(value: Any, num_bits: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"value must be an integer, got {value!r}")
    low, high = signed_range(num_bits)
    if not low <= value <= high:
        raise InvalidArgumentError(
            f"Value out of range for {num_bits}-bit integer: {value} "
            f"(allowed {low}..{high})"
        )
    return value
