"""
Module: gl_kernel.db.types
Responsibility: The Money column type and the single rounding rule for
    ledger amounts.
Architecture position: Kernel > DB.  Imported by models/, domain/ and
    services/; imports none of them.

Invariants enforced:
    - Amounts are stored with 9 decimal places and reported with 2.
    - Cached balances, imbalance differences and journal totals shown to
      users all pass through round_money(), half-up.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from sqlalchemy import Numeric

Money = Annotated[Decimal, Numeric(38, 9)]

CENT = Decimal("0.01")


def round_money(value: Decimal, quantum: Decimal = CENT) -> Decimal:
    """Round ``value`` half-up to ``quantum`` (cents unless told otherwise)."""
    return value.quantize(quantum, rounding=ROUND_HALF_UP)
