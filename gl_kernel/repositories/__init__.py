"""Storage interfaces and their SQLAlchemy / in-memory implementations."""

from gl_kernel.repositories.base import (
    AccountRepository,
    JournalRepository,
    LedgerStore,
    LedgerUnitOfWork,
    PeriodRepository,
    SequenceRepository,
)
from gl_kernel.repositories.memory import InMemoryLedgerStore
from gl_kernel.repositories.sql import SqlLedgerStore

__all__ = [
    "AccountRepository",
    "InMemoryLedgerStore",
    "JournalRepository",
    "LedgerStore",
    "LedgerUnitOfWork",
    "PeriodRepository",
    "SequenceRepository",
    "SqlLedgerStore",
]
