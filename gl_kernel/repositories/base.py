"""
Module: gl_kernel.repositories.base
Responsibility: Storage interfaces the kernel services depend on -- one
    repository per entity, grouped in a unit of work that a LedgerStore opens
    per transaction.
Architecture position: Kernel > Repositories.  May import from domain/ and
    exceptions only.  Implementations: repositories/sql.py (SQLAlchemy) and
    repositories/memory.py (in-process fake).

Invariants enforced:
    - Every method takes the tenant id explicitly; no repository reads
      ambient tenant state.
    - All writes made through one LedgerUnitOfWork commit together or not at
      all.  LedgerStore.transaction() commits on normal exit and rolls back on
      any exception, re-raising it.
    - Records cross this boundary as frozen DTOs, never ORM entities.

Failure modes (raised by implementations):
    - JournalWriteConflictError on (tenant, journal_number) collision.
    - DuplicateSourceDocumentError on (tenant, source, source_id) collision.
    - PersistenceFailureError for any other storage failure, carrying the
      root-cause message.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date
from decimal import Decimal
from uuid import UUID

from gl_kernel.domain.dtos import (
    AccountActivityLine,
    AccountInfo,
    AccountingPeriodInfo,
    JournalInfo,
)
from gl_kernel.models.journal import JournalSource


class JournalRepository(ABC):
    """Journal headers and their lines."""

    @abstractmethod
    def get(self, tenant_id: str, journal_id: UUID, *, for_update: bool = False) -> JournalInfo | None:
        ...

    @abstractmethod
    def find_by_source(self, tenant_id: str, source: JournalSource, source_id: str) -> JournalInfo | None:
        ...

    @abstractmethod
    def list(self, tenant_id: str, *, limit: int, offset: int = 0) -> list[JournalInfo]:
        """Newest transaction date first, then journal number descending."""
        ...

    @abstractmethod
    def count_in_year(self, tenant_id: str, year: int) -> int:
        """Number of journals whose transaction date falls in ``year``."""
        ...

    @abstractmethod
    def number_taken(self, tenant_id: str, journal_number: str) -> bool:
        ...

    @abstractmethod
    def add(self, journal: JournalInfo) -> None:
        ...

    @abstractmethod
    def update(self, journal: JournalInfo, *, replace_lines: bool = False) -> None:
        """Overwrite the header; with ``replace_lines`` delete and re-insert lines."""
        ...

    @abstractmethod
    def delete(self, tenant_id: str, journal_id: UUID) -> None:
        ...

    @abstractmethod
    def posted_totals(self, tenant_id: str, account_id: UUID) -> tuple[Decimal, Decimal]:
        """(sum of debits, sum of credits) over lines of POSTED journals."""
        ...

    @abstractmethod
    def account_activity(
        self,
        tenant_id: str,
        account_id: UUID,
        *,
        limit: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[AccountActivityLine]:
        ...


class AccountRepository(ABC):
    """Chart of accounts and the cached balance column."""

    @abstractmethod
    def get(self, tenant_id: str, account_id: UUID, *, for_update: bool = False) -> AccountInfo | None:
        ...

    @abstractmethod
    def get_by_code(self, tenant_id: str, code: str) -> AccountInfo | None:
        ...

    @abstractmethod
    def list(self, tenant_id: str) -> list[AccountInfo]:
        """Ordered by code."""
        ...

    @abstractmethod
    def find_missing(self, tenant_id: str, account_ids: frozenset[UUID]) -> set[UUID]:
        """Subset of ``account_ids`` that do not exist for the tenant."""
        ...

    @abstractmethod
    def add(self, account: AccountInfo) -> None:
        ...

    @abstractmethod
    def set_balance(self, tenant_id: str, account_id: UUID, balance: Decimal) -> None:
        ...


class PeriodRepository(ABC):
    """Accounting periods."""

    @abstractmethod
    def get(self, tenant_id: str, period_id: UUID) -> AccountingPeriodInfo | None:
        ...

    @abstractmethod
    def list(self, tenant_id: str) -> list[AccountingPeriodInfo]:
        """Ordered by start date."""
        ...

    @abstractmethod
    def any_exist(self, tenant_id: str) -> bool:
        ...

    @abstractmethod
    def find_open_for_date(self, tenant_id: str, check_date: date) -> AccountingPeriodInfo | None:
        ...

    @abstractmethod
    def add(self, period: AccountingPeriodInfo) -> None:
        ...

    @abstractmethod
    def update(self, period: AccountingPeriodInfo) -> None:
        ...


class SequenceRepository(ABC):
    """Journal number counters, one per (tenant, year)."""

    @abstractmethod
    def lock_current(self, tenant_id: str, year: int) -> int | None:
        """Current counter value, row-locked until commit. None if no row yet."""
        ...

    @abstractmethod
    def save(self, tenant_id: str, year: int, value: int) -> None:
        """Insert or advance the counter row."""
        ...


class LedgerUnitOfWork(ABC):
    """Repositories sharing one transaction."""

    journals: JournalRepository
    accounts: AccountRepository
    periods: PeriodRepository
    sequences: SequenceRepository


class LedgerStore(ABC):
    """
    Factory for transactional units of work.

    Contract:
        ``with store.transaction() as uow:`` commits on normal exit, rolls
        back on exception and re-raises.

    Guarantees:
        - Partial writes are never observable by other transactions.
        - Separate transactions may run from separate threads.
    """

    @abstractmethod
    def transaction(self) -> AbstractContextManager[LedgerUnitOfWork]:
        ...
