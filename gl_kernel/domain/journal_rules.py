"""
Journal rules -- pure validation of a journal payload.

Responsibility:
    Structural and balance checks that run before any storage work on create
    and update.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - At least two lines.
    - No negative debit or credit amount.
    - Non-empty description.
    - Initial status is DRAFT or POSTED.
    - |total debits - total credits| <= tolerance.

Failure modes:
    - InvalidJournalError for structural problems.
    - JournalImbalanceError naming the difference and both totals.
"""

from decimal import Decimal

from gl_kernel.db.types import round_money
from gl_kernel.domain.dtos import JournalInput
from gl_kernel.domain.values import BALANCE_TOLERANCE, ZERO, within_tolerance
from gl_kernel.exceptions import InvalidJournalError, JournalImbalanceError
from gl_kernel.models.journal import JournalStatus

MIN_LINES = 2


def validate_journal_input(
    data: JournalInput,
    tolerance: Decimal = BALANCE_TOLERANCE,
    *,
    for_update: bool = False,
) -> None:
    """
    Validate a journal payload.

    ``for_update`` skips the initial-status check; update never changes
    status.
    """
    if not data.description or not data.description.strip():
        raise InvalidJournalError("Description is required", field="description")

    if len(data.lines) < MIN_LINES:
        raise InvalidJournalError("At least 2 lines required", field="lines")

    for index, line in enumerate(data.lines):
        if line.debit < ZERO or line.credit < ZERO:
            raise InvalidJournalError(
                f"Line {index + 1}: debit and credit must be non-negative",
                field="lines",
            )

    if not for_update and data.status not in (JournalStatus.DRAFT, JournalStatus.POSTED):
        raise InvalidJournalError(
            f"Journals cannot be created with status {data.status.value}",
            field="status",
        )

    total_debits = data.total_debits
    total_credits = data.total_credits
    if not within_tolerance(total_debits, total_credits, tolerance):
        raise JournalImbalanceError(
            difference=str(round_money(abs(total_debits - total_credits))),
            total_debits=str(round_money(total_debits)),
            total_credits=str(round_money(total_credits)),
        )
