"""
Operation table: the single mapping from OperationType to its evaluation path.

Each entry fixes the operand count, the operand kind the operation is defined
on, the kind of its result and the circuit that evaluates it. The dispatcher
validates requests against this table and the backend evaluates through it;
every OperationType has exactly one entry.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict

from . import circuits
from .types import OperationType, ValueKind


@dataclass(frozen=True)
class OperationSpec:
    arity: int
    operand_kind: ValueKind
    result_kind: ValueKind
    circuit: Callable[..., Any]


_BOOL = ValueKind.BOOLEAN
_INT = ValueKind.INTEGER

OPERATION_TABLE: Dict[OperationType, OperationSpec] = {
    # Logic on single encrypted bits
    OperationType.AND: OperationSpec(2, _BOOL, _BOOL, lambda g, a, b: g.and_(a, b)),
    OperationType.OR: OperationSpec(2, _BOOL, _BOOL, lambda g, a, b: g.or_(a, b)),
    OperationType.XOR: OperationSpec(2, _BOOL, _BOOL, lambda g, a, b: g.xor(a, b)),
    OperationType.NOT: OperationSpec(1, _BOOL, _BOOL, lambda g, a: g.not_(a)),
    # Arithmetic, result has the operands' width
    OperationType.ADD: OperationSpec(2, _INT, _INT, circuits.add),
    OperationType.SUBTRACT: OperationSpec(2, _INT, _INT, circuits.subtract),
    OperationType.MULTIPLY: OperationSpec(2, _INT, _INT, circuits.multiply),
    # Comparisons, result is a single encrypted bit
    OperationType.GREATER_THAN: OperationSpec(2, _INT, _BOOL, circuits.greater_than),
    OperationType.LESS_THAN: OperationSpec(2, _INT, _BOOL, circuits.less_than),
    OperationType.EQUAL: OperationSpec(2, _INT, _BOOL, circuits.equal),
}


def get_operation_spec(operation: OperationType) -> OperationSpec:
    return OPERATION_TABLE[operation]
