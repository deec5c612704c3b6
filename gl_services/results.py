"""
gl_services.results -- Structured outcomes returned by the GL facades.

Responsibility:
    Carries the outcome of every public ledger operation as a value.
    Business failures (imbalance, locked journal, closed period, missing
    accounts) and persistence failures arrive here as data with a
    machine-readable ``error_code``, so UI actions and adapters branch on
    fields instead of catching exceptions.

Architecture position:
    Services -- the boundary between the kernel's typed exceptions and
    outside callers.  ``rejected()`` is the only place a GLKernelError is
    turned into a result.

Invariants enforced:
    - ``success`` and ``error`` are mutually exclusive.
    - ``error_code`` is always the raising exception's class-level ``code``.
    - ``details`` holds the exception's structured attributes, never its
      traceback.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from gl_kernel.domain.dtos import JournalInfo
from gl_kernel.exceptions import GLKernelError
from gl_kernel.models.journal import JournalStatus
from gl_kernel.services.balance_service import RecalculationReport


def _exception_details(exc: GLKernelError) -> dict[str, Any]:
    return {
        key: value
        for key, value in vars(exc).items()
        if not key.startswith("_") and key != "args"
    }


@dataclass(frozen=True)
class OperationResult:
    """
    Outcome of a journal, period or chart-of-accounts operation.

    Contract:
        Build with ``ok()`` or ``rejected()``.  ``data`` carries the
        operation payload: a JournalInfo, a list of them, a period, an
        account or an activity list.
    """

    success: bool
    error: str | None = None
    error_code: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    journal_id: UUID | None = None
    journal_number: str | None = None
    data: Any = None
    recalculation: RecalculationReport | None = None

    @classmethod
    def ok(
        cls,
        *,
        journal_id: UUID | None = None,
        journal_number: str | None = None,
        data: Any = None,
        recalculation: RecalculationReport | None = None,
    ) -> OperationResult:
        return cls(
            success=True,
            journal_id=journal_id,
            journal_number=journal_number,
            data=data,
            recalculation=recalculation,
        )

    @classmethod
    def rejected(cls, exc: GLKernelError, *, journal_id: UUID | None = None) -> OperationResult:
        return cls(
            success=False,
            error=str(exc),
            error_code=exc.code,
            details=_exception_details(exc),
            journal_id=journal_id,
        )

    @property
    def is_rejected(self) -> bool:
        return not self.success


@dataclass(frozen=True)
class GLPostingResult:
    """
    Result handed back to Invoicing and Payables.

    ``posted`` is True both for a new journal and for a source document
    that was already in the ledger; ``already_posted`` tells them apart.
    """

    posted: bool
    already_posted: bool = False
    journal_id: UUID | None = None
    journal_number: str | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def created(cls, journal_id: UUID, journal_number: str | None) -> GLPostingResult:
        return cls(posted=True, journal_id=journal_id, journal_number=journal_number)

    @classmethod
    def existing(cls, journal: JournalInfo) -> GLPostingResult:
        return cls(
            posted=True,
            already_posted=True,
            journal_id=journal.id,
            journal_number=journal.journal_number,
        )

    @classmethod
    def failed(cls, error: str, error_code: str) -> GLPostingResult:
        return cls(posted=False, error=error, error_code=error_code)

    @classmethod
    def from_operation(cls, result: OperationResult) -> GLPostingResult:
        if result.success:
            return cls.created(result.journal_id, result.journal_number)
        return cls.failed(result.error or "", result.error_code or "")

    @property
    def success(self) -> bool:
        return self.posted and self.error is None


@dataclass(frozen=True)
class PostingStatusInfo:
    """
    Whether a source document has reached the ledger.

    ``posted`` is true once any journal exists for the document, the same
    test the adapter uses for ``already_posted``.  ``status`` tells a voided
    or still-draft journal apart from a live one.
    """

    posted: bool
    posted_at: datetime | None = None
    journal_number: str | None = None
    journal_id: UUID | None = None
    status: JournalStatus | None = None
