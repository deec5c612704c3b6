"""
Module: gl_kernel.models.account
Responsibility: ORM persistence for the tenant chart of accounts -- the target
    of every journal line and the holder of the cached current balance.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - (tenant_id, code) is unique.
    - current_balance is written ONLY by the balance recalculator; it is a
      cache of the signed sum of posted lines and can always be rebuilt.

Failure modes:
    - IntegrityError on duplicate (tenant_id, code).
"""

from decimal import Decimal
from enum import Enum

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from gl_kernel.db.base import TrackedBase
from gl_kernel.db.types import Money


class AccountType(str, Enum):
    """Types of accounts in the chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"

    @property
    def normal_balance(self) -> "NormalBalance":
        if self in (AccountType.ASSET, AccountType.EXPENSE):
            return NormalBalance.DEBIT
        return NormalBalance.CREDIT


class NormalBalance(str, Enum):
    """Normal balance side for an account."""

    DEBIT = "debit"
    CREDIT = "credit"


class Account(TrackedBase):
    """
    Chart of Accounts entry for one tenant.

    Contract:
        Account.code is unique within a tenant (uq_account_tenant_code).

    Guarantees:
        - account_type is one of ASSET, LIABILITY, EQUITY, REVENUE, EXPENSE.
        - current_balance defaults to zero until the first recalculation.

    Non-goals:
        - Account hierarchy, tags and deletion guards live outside the GL
          engine.
    """

    __tablename__ = "gl_accounts"

    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_account_tenant_code"),
        Index("idx_account_tenant_type", "tenant_id", "account_type"),
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    account_type: Mapped[AccountType] = mapped_column(String(20), nullable=False)

    current_balance: Mapped[Money] = mapped_column(
        default=Decimal("0"),
        nullable=False,
    )

    # Provisioned by ensure_default_accounts; not deletable by users
    is_system: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Account {self.code}: {self.name}>"
