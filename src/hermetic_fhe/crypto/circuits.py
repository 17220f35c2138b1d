"""
Fixed-width integer circuits built from encrypted boolean gates.

Integers are sequences of encrypted bits, least significant bit first, in
signed two's complement. Every circuit takes a gate evaluator exposing:

    and_(a, b), or_(a, b), xor(a, b), xnor(a, b), not_(a)

so the same code runs against the real library and against a plaintext
evaluator in tests. Arithmetic wraps modulo 2**width. Operands must have the
same width; the caller validates this before any gate is evaluated.
"""

from typing import Any, List, Sequence, Tuple

Bits = Sequence[Any]


def _ripple_add(gates, a: Bits, b: Bits, carry_in: bool = False) -> List[Any]:
    """
    Ripple-carry addition a + b (+1 if carry_in), truncated to len(a) bits.

    The constant carry-in is folded into the first stage so no encrypted
    constant is needed:
        carry 0: sum = a ^ b,        carry = a & b
        carry 1: sum = ~(a ^ b),     carry = a | b
    """
    width = len(a)
    if width == 0:
        return []

    if carry_in:
        result = [gates.xnor(a[0], b[0])]
        carry = gates.or_(a[0], b[0]) if width > 1 else None
    else:
        result = [gates.xor(a[0], b[0])]
        carry = gates.and_(a[0], b[0]) if width > 1 else None

    for i in range(1, width):
        partial = gates.xor(a[i], b[i])
        result.append(gates.xor(partial, carry))
        if i < width - 1:
            # carry = (a & b) | ((a ^ b) & carry)
            carry = gates.or_(gates.and_(a[i], b[i]), gates.and_(partial, carry))
    return result


def add(gates, a: Bits, b: Bits) -> Tuple[Any, ...]:
    return tuple(_ripple_add(gates, a, b))


def subtract(gates, a: Bits, b: Bits) -> Tuple[Any, ...]:
    """a - b computed as a + ~b + 1."""
    inverted = [gates.not_(bit) for bit in b]
    return tuple(_ripple_add(gates, a, inverted, carry_in=True))


def multiply(gates, a: Bits, b: Bits) -> Tuple[Any, ...]:
    """
    Shift-and-add multiplication truncated to the operand width.

    The low width bits of the product are identical for signed and unsigned
    operands, so no sign handling is required.
    """
    width = len(a)
    result = [gates.and_(a[i], b[0]) for i in range(width)]
    for j in range(1, width):
        partial = [gates.and_(a[i], b[j]) for i in range(width - j)]
        result[j:] = _ripple_add(gates, result[j:], partial)
    return tuple(result)


def _unsigned_greater_than(gates, a: Bits, b: Bits) -> Any:
    # Scan from the least significant bit; a higher bit that differs overrides.
    greater = gates.and_(a[0], gates.not_(b[0]))
    for i in range(1, len(a)):
        bit_greater = gates.and_(a[i], gates.not_(b[i]))
        bit_equal = gates.xnor(a[i], b[i])
        greater = gates.or_(bit_greater, gates.and_(bit_equal, greater))
    return greater


def greater_than(gates, a: Bits, b: Bits) -> Any:
    """
    Signed a > b.

    Flipping the sign bit maps two's complement order onto unsigned order.
    """
    a_biased = list(a[:-1]) + [gates.not_(a[-1])]
    b_biased = list(b[:-1]) + [gates.not_(b[-1])]
    return _unsigned_greater_than(gates, a_biased, b_biased)


def less_than(gates, a: Bits, b: Bits) -> Any:
    return greater_than(gates, b, a)


def equal(gates, a: Bits, b: Bits) -> Any:
    result = gates.xnor(a[0], b[0])
    for i in range(1, len(a)):
        result = gates.and_(result, gates.xnor(a[i], b[i]))
    return result
