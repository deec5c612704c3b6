"""
Ledger settings schema.

Defines the frozen runtime settings the GL services are built from.  YAML
files are parsed into these types by the loader; callers obtain them only
through ``gl_config.get_active_config()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from gl_kernel.services.account_service import DEFAULT_ACCOUNTS, AccountSpec


@dataclass(frozen=True)
class PostingAccounts:
    """Account codes the GL posting adapter debits and credits."""

    receivables: str = "1200"
    revenue: str = "4000"
    payables: str = "2000"
    expense: str = "6000"


@dataclass(frozen=True)
class LedgerSettings:
    """Runtime settings for the GL engine."""

    balance_tolerance: Decimal = Decimal("0.01")
    journal_number_prefix: str = "JE"
    journal_number_width: int = 6
    number_allocation_retries: int = 3
    recalc_max_workers: int = 4
    default_page_size: int = 50
    auto_provision_accounts: bool = True
    database_url: str | None = None
    log_level: str = "INFO"
    posting_accounts: PostingAccounts = field(default_factory=PostingAccounts)
    default_accounts: tuple[AccountSpec, ...] = DEFAULT_ACCOUNTS
    checksum: str = ""

    def __post_init__(self) -> None:
        if self.balance_tolerance < 0:
            raise ValueError("balance_tolerance must be non-negative")
        if self.journal_number_width < 1:
            raise ValueError("journal_number_width must be at least 1")
        if self.number_allocation_retries < 0:
            raise ValueError("number_allocation_retries must be non-negative")
        if self.recalc_max_workers < 1:
            raise ValueError("recalc_max_workers must be at least 1")
        if self.default_page_size < 1:
            raise ValueError("default_page_size must be at least 1")
