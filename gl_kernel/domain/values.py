"""
Values -- monetary helpers for ledger arithmetic.

Responsibility:
    Converts caller-supplied amounts to Decimal and defines the balance
    tolerance used by journal validation.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - No float arithmetic: every amount passes through Decimal(str(value)).
    - A journal is balanced when |debits - credits| <= BALANCE_TOLERANCE.

Failure modes:
    - ValueError on non-numeric or non-finite amounts.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

ZERO = Decimal("0")

# Largest accepted |debits - credits| for a balanced journal
BALANCE_TOLERANCE = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """
    Coerce an int, str, float or Decimal amount to Decimal.

    Floats go through ``str`` first so 0.1 stays 0.1.

    Raises:
        ValueError: If the value is not a finite number.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as exc:
            raise ValueError(f"Invalid amount: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return result


def sum_money(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)


def within_tolerance(
    total_debits: Decimal,
    total_credits: Decimal,
    tolerance: Decimal = BALANCE_TOLERANCE,
) -> bool:
    """True when the two totals differ by no more than ``tolerance``."""
    return abs(total_debits - total_credits) <= tolerance
