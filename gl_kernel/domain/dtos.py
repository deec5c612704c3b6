"""
DTOs -- Immutable data transfer objects for the GL kernel.

Responsibility:
    Defines the structures that cross the repository boundary and the public
    service boundary: caller inputs (JournalInput, JournalLineInput,
    DocumentLine, SourceDocumentRef), stored records (JournalInfo,
    AccountInfo, AccountingPeriodInfo) and read projections
    (AccountActivityLine).

Architecture position:
    Kernel > Domain.  Free of ORM sessions and I/O.  Status and type enums are
    shared with models/ so that stored values and DTO values compare equal.

Invariants enforced:
    - Services and repositories accept and return these DTOs, never ORM
      entities.
    - Amounts are Decimal; inputs are coerced with Decimal(str(value)).
    - Line collections are tuples so a record cannot be mutated after it is
      handed out.

Failure modes:
    - ValueError on non-numeric amounts at construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from gl_kernel.domain.values import ZERO, sum_money, to_money
from gl_kernel.models.account import AccountType
from gl_kernel.models.accounting_period import PeriodStatus
from gl_kernel.models.journal import JournalSource, JournalStatus


@dataclass(frozen=True)
class TenantContext:
    """
    Caller identity resolved by the authentication collaborator.

    ``user_id`` is None for anonymous calls.  ``active_tenant_id`` is the
    tenant selected in the caller's session, if any.
    """

    user_id: str | None
    active_tenant_id: UUID | str | None = None


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class JournalLineInput:
    """One caller-supplied journal line. Amounts may be given as str/int/float."""

    account_id: UUID
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    description: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "debit", to_money(self.debit))
        object.__setattr__(self, "credit", to_money(self.credit))


@dataclass(frozen=True)
class JournalInput:
    """
    Payload for creating or replacing a journal.

    Contract:
        posting_date defaults to transaction_date.  status is the requested
        initial status (DRAFT or POSTED) and is ignored by update.
    """

    transaction_date: date
    description: str
    lines: tuple[JournalLineInput, ...]
    posting_date: date | None = None
    reference: str | None = None
    source: JournalSource = JournalSource.MANUAL
    source_id: str | None = None
    status: JournalStatus = JournalStatus.DRAFT

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", tuple(self.lines))
        object.__setattr__(self, "source", JournalSource(self.source))
        object.__setattr__(self, "status", JournalStatus(self.status))

    @property
    def total_debits(self) -> Decimal:
        return sum_money(line.debit for line in self.lines)

    @property
    def total_credits(self) -> Decimal:
        return sum_money(line.credit for line in self.lines)

    @property
    def account_ids(self) -> frozenset[UUID]:
        return frozenset(line.account_id for line in self.lines)


@dataclass(frozen=True)
class SourceDocumentRef:
    """Identity of the originating invoice, bill or other document."""

    source: JournalSource
    source_id: str
    transaction_date: date
    description: str
    reference: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "source", JournalSource(self.source))


@dataclass(frozen=True)
class DocumentLine:
    """Adapter line keyed by account code instead of account id."""

    account_code: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    description: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "debit", to_money(self.debit))
        object.__setattr__(self, "credit", to_money(self.credit))


# ---------------------------------------------------------------------------
# Stored records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class JournalLineInfo:
    id: UUID
    account_id: UUID
    debit: Decimal
    credit: Decimal
    description: str | None
    line_seq: int


@dataclass(frozen=True)
class JournalInfo:
    """
    Journal header with its ordered lines.

    Guarantees:
        - lines are ordered by line_seq.
        - account_ids covers every account any line touches.
    """

    id: UUID
    tenant_id: str
    journal_number: str
    transaction_date: date
    posting_date: date
    description: str
    reference: str | None
    source: JournalSource
    source_id: str | None
    status: JournalStatus
    total_debits: Decimal
    total_credits: Decimal
    created_by: str
    created_at: datetime
    updated_at: datetime
    posted_by: str | None = None
    posted_at: datetime | None = None
    voided_by: str | None = None
    voided_at: datetime | None = None
    lines: tuple[JournalLineInfo, ...] = field(default_factory=tuple)

    @property
    def account_ids(self) -> frozenset[UUID]:
        return frozenset(line.account_id for line in self.lines)

    @property
    def is_draft(self) -> bool:
        return self.status == JournalStatus.DRAFT


@dataclass(frozen=True)
class AccountInfo:
    id: UUID
    tenant_id: str
    code: str
    name: str
    account_type: AccountType
    current_balance: Decimal = ZERO
    is_system: bool = False
    is_active: bool = True


@dataclass(frozen=True)
class AccountingPeriodInfo:
    id: UUID
    tenant_id: str
    name: str
    start_date: date
    end_date: date
    status: PeriodStatus
    is_year_end: bool = False
    closed_by: str | None = None
    closed_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.status == PeriodStatus.OPEN

    def contains_date(self, check_date: date) -> bool:
        return self.start_date <= check_date <= self.end_date


# ---------------------------------------------------------------------------
# Read projections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccountActivityLine:
    """A journal line joined with the header fields reporting needs."""

    line_id: UUID
    journal_id: UUID
    journal_number: str
    transaction_date: date
    journal_description: str
    line_description: str | None
    debit: Decimal
    credit: Decimal
    status: JournalStatus
    source: JournalSource
    reference: str | None = None
