"""Services for the GL kernel (write side)."""

from gl_kernel.services.account_service import DEFAULT_ACCOUNTS, AccountService, AccountSpec
from gl_kernel.services.balance_service import BalanceRecalculator, RecalculationReport, signed_balance
from gl_kernel.services.period_service import PeriodService
from gl_kernel.services.sequence_service import SequenceService, format_journal_number

__all__ = [
    "DEFAULT_ACCOUNTS",
    "AccountService",
    "AccountSpec",
    "BalanceRecalculator",
    "PeriodService",
    "RecalculationReport",
    "SequenceService",
    "format_journal_number",
    "signed_balance",
]
