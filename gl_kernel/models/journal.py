"""
Module: gl_kernel.models.journal
Responsibility: ORM persistence for journal headers and their debit/credit
    lines.
Architecture position: Kernel > Models.  May import from db/ and sibling
    models only.

Invariants enforced:
    - (tenant_id, journal_number) is unique: the last line of defence for
      number allocation.
    - (tenant_id, source, source_id) is unique: one journal per originating
      document, which backs adapter idempotency.  Rows with a NULL source_id
      (manual journals) never collide.
    - Lines belong to exactly one journal and are deleted with it.

Failure modes:
    - IntegrityError on either uniqueness constraint; translated by the SQL
      repository into JournalWriteConflictError / DuplicateSourceDocumentError.

Audit relevance:
    total_debits / total_credits are denormalised header totals written in
    the same flush as the lines they summarise.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gl_kernel.db.base import Base, TenantScoped, TrackedBase, UUIDString
from gl_kernel.db.types import Money


class JournalStatus(str, Enum):
    """Lifecycle status of a journal.

    Contract: DRAFT -> POSTED -> VOIDED.  Only DRAFT is mutable.
    """

    DRAFT = "draft"
    POSTED = "posted"
    VOIDED = "voided"


class JournalSource(str, Enum):
    """Subsystem that originated the journal."""

    MANUAL = "manual"
    RECEIVABLES = "receivables"
    PAYABLES = "payables"
    PAYROLL = "payroll"
    INVENTORY = "inventory"
    FIXED_ASSETS = "fixed_assets"
    BANKING = "banking"
    SYSTEM = "system"


class Journal(TrackedBase):
    """
    Journal header.

    Contract:
        Header and lines are written in one flush.  Once POSTED, only the
        void stamp fields may change.

    Guarantees:
        - journal_number matches <prefix>-<year>-<zero padded sequence>.
        - lines are ordered by line_seq.
    """

    __tablename__ = "gl_journals"

    __table_args__ = (
        UniqueConstraint("tenant_id", "journal_number", name="uq_journal_tenant_number"),
        UniqueConstraint("tenant_id", "source", "source_id", name="uq_journal_tenant_source_doc"),
        Index("idx_journal_tenant_date", "tenant_id", "transaction_date"),
        Index("idx_journal_tenant_status", "tenant_id", "status"),
    )

    journal_number: Mapped[str] = mapped_column(String(50), nullable=False)

    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)

    posting_date: Mapped[date] = mapped_column(Date, nullable=False)

    description: Mapped[str] = mapped_column(String(4000), nullable=False)

    reference: Mapped[str | None] = mapped_column(String(255), nullable=True)

    source: Mapped[JournalSource] = mapped_column(String(30), nullable=False)

    source_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    status: Mapped[JournalStatus] = mapped_column(String(20), nullable=False)

    total_debits: Mapped[Money] = mapped_column(default=Decimal("0"), nullable=False)

    total_credits: Mapped[Money] = mapped_column(default=Decimal("0"), nullable=False)

    created_by: Mapped[str] = mapped_column(String(100), nullable=False)

    posted_by: Mapped[str | None] = mapped_column(String(100), nullable=True)

    posted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    voided_by: Mapped[str | None] = mapped_column(String(100), nullable=True)

    voided_at: Mapped[datetime | None] = mapped_column(nullable=True)

    lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="journal",
        cascade="all, delete-orphan",
        order_by="JournalLine.line_seq",
    )

    def __repr__(self) -> str:
        return f"<Journal {self.journal_number} [{self.status}]>"


class JournalLine(TenantScoped, Base):
    """Single debit/credit line of a journal. Replaced wholesale on edit."""

    __tablename__ = "gl_journal_lines"

    __table_args__ = (
        Index("idx_line_tenant_account", "tenant_id", "account_id"),
        Index("idx_line_journal", "journal_id"),
    )

    journal_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("gl_journals.id", ondelete="CASCADE"),
        nullable=False,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("gl_accounts.id"),
        nullable=False,
    )

    debit: Mapped[Money] = mapped_column(default=Decimal("0"), nullable=False)

    credit: Mapped[Money] = mapped_column(default=Decimal("0"), nullable=False)

    description: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    line_seq: Mapped[int] = mapped_column(Integer, nullable=False)

    journal: Mapped[Journal] = relationship(back_populates="lines")
