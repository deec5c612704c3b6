"""
Module: gl_kernel.models.accounting_period
Responsibility: ORM persistence for accounting periods -- the date ranges
    that accept postings.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Posting is allowed only when the transaction date falls inside an OPEN
      period, or when the tenant has no periods at all (enforced by
      PeriodService, not this model).
    - Periods of one tenant never overlap (enforced by PeriodService).
"""

from datetime import date, datetime
from enum import Enum

from sqlalchemy import Boolean, Date, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from gl_kernel.db.base import TrackedBase


class PeriodStatus(str, Enum):
    """Lifecycle status of an accounting period.

    Contract: OPEN <-> CLOSED -> LOCKED.  LOCKED is terminal.
    """

    OPEN = "open"
    CLOSED = "closed"
    LOCKED = "locked"


class AccountingPeriod(TrackedBase):
    """
    Accounting period for posting control.

    Guarantees:
        - start_date <= end_date, both inclusive.
        - closed_by / closed_at are stamped when the period leaves OPEN.
    """

    __tablename__ = "gl_accounting_periods"

    __table_args__ = (
        Index("idx_period_tenant_dates", "tenant_id", "start_date", "end_date"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)

    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[PeriodStatus] = mapped_column(
        String(20),
        default=PeriodStatus.OPEN.value,
        nullable=False,
    )

    is_year_end: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    closed_by: Mapped[str | None] = mapped_column(String(100), nullable=True)

    closed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def contains_date(self, check_date: date) -> bool:
        return self.start_date <= check_date <= self.end_date

    def __repr__(self) -> str:
        return f"<AccountingPeriod {self.name} [{self.status}]>"
