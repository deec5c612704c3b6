"""
SequenceService -- journal number allocation via locked counter rows.

Responsibility:
    Issues human-readable journal numbers of the form
    ``<prefix>-<year>-<zero padded value>`` (``JE-2024-000010``), one
    independent sequence per tenant and year.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by JournalLifecycleManager inside the same transaction that
    inserts the journal.

Invariants enforced:
    - The locked (tenant, year) counter row is the source of truth for the
      next value.  The first allocation of a year seeds the counter from the
      count of the tenant's journals already dated in that year, so a tenant
      with N journals in year Y gets ``JE-Y-(N+1)``.
    - Counters only move forward.  A number is never reissued after the
      journal holding it is deleted; gaps are acceptable.
    - Increments are transactional: a rolled-back journal insert returns
      its number.

Failure modes:
    - JournalWriteConflictError when two transactions seed the same counter
      at once; the caller retries the whole transaction.
"""

from gl_kernel.logging_config import get_logger
from gl_kernel.services.base import BaseService

logger = get_logger("services.sequence")

DEFAULT_PREFIX = "JE"
DEFAULT_WIDTH = 6


def format_journal_number(year: int, value: int, prefix: str = DEFAULT_PREFIX, width: int = DEFAULT_WIDTH) -> str:
    return f"{prefix}-{year}-{value:0{width}d}"


class SequenceService(BaseService):
    """
    Journal number allocator.

    Contract:
        ``next_journal_number`` must be called inside the transaction that
        inserts the journal.

    Guarantees:
        - Strictly increasing values per (tenant, year).
        - Values already held by an existing journal are skipped.

    Non-goals:
        - Gap-free numbering.
    """

    def __init__(self, uow, prefix: str = DEFAULT_PREFIX, width: int = DEFAULT_WIDTH):
        super().__init__(uow)
        self._prefix = prefix
        self._width = width

    def next_journal_number(self, tenant_id: str, year: int) -> str:
        """
        Allocate the next journal number for ``tenant_id`` in ``year``.

        Postconditions:
            - The counter row is locked until the caller's transaction ends.
            - The returned number is not held by any existing journal.
        """
        current = self.uow.sequences.lock_current(tenant_id, year)
        seeded = current is None
        if seeded:
            current = self.uow.journals.count_in_year(tenant_id, year)

        value = current + 1
        number = format_journal_number(year, value, self._prefix, self._width)
        while self.uow.journals.number_taken(tenant_id, number):
            value += 1
            number = format_journal_number(year, value, self._prefix, self._width)

        self.uow.sequences.save(tenant_id, year, value)

        logger.debug(
            "journal_number_allocated",
            extra={
                "tenant_id": str(tenant_id),
                "year": year,
                "value": value,
                "journal_number": number,
                "seeded": seeded,
            },
        )
        return number
