"""ORM models for the GL kernel."""

from gl_kernel.models.account import Account, AccountType, NormalBalance
from gl_kernel.models.accounting_period import AccountingPeriod, PeriodStatus
from gl_kernel.models.journal import Journal, JournalLine, JournalSource, JournalStatus
from gl_kernel.models.journal_sequence import JournalSequence

__all__ = [
    "Account",
    "AccountType",
    "AccountingPeriod",
    "Journal",
    "JournalLine",
    "JournalSequence",
    "JournalSource",
    "JournalStatus",
    "NormalBalance",
    "PeriodStatus",
]
