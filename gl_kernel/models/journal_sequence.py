"""
Module: gl_kernel.models.journal_sequence
Responsibility: Counter rows backing journal number allocation.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - One counter per (tenant_id, year).
    - current_value only moves forward; SequenceService reads it under
      SELECT ... FOR UPDATE so concurrent allocators serialize on the row.
"""


from sqlalchemy import BigInteger, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from gl_kernel.db.base import Base, TenantScoped


class JournalSequence(TenantScoped, Base):
    """Last journal number issued for one tenant and year."""

    __tablename__ = "gl_journal_sequences"

    __table_args__ = (
        UniqueConstraint("tenant_id", "year", name="uq_journal_sequence_tenant_year"),
    )

    year: Mapped[int] = mapped_column(Integer, nullable=False)

    current_value: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
