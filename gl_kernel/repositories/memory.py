"""
Module: gl_kernel.repositories.memory
Responsibility: In-process implementation of the ledger repositories for
    tests and embedded use.
Architecture position: Kernel > Repositories.

Invariants enforced:
    - Transactions are serialized by a re-entrant lock held for the whole
      ``with store.transaction()`` block, which stands in for row locks.
    - Rollback restores a snapshot taken at transaction start, so partial
      writes are never observable.
    - The same uniqueness rules as the SQL schema: (tenant, journal_number),
      (tenant, source, source_id) and (tenant, account code).
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from uuid import UUID

from gl_kernel.domain.dtos import (
    AccountActivityLine,
    AccountInfo,
    AccountingPeriodInfo,
    JournalInfo,
)
from gl_kernel.domain.values import sum_money
from gl_kernel.exceptions import (
    DuplicateSourceDocumentError,
    JournalWriteConflictError,
    PersistenceFailureError,
)
from gl_kernel.models.accounting_period import PeriodStatus
from gl_kernel.models.journal import JournalSource, JournalStatus
from gl_kernel.repositories.base import (
    AccountRepository,
    JournalRepository,
    LedgerStore,
    LedgerUnitOfWork,
    PeriodRepository,
    SequenceRepository,
)


@dataclass
class _State:
    journals: dict[UUID, JournalInfo] = field(default_factory=dict)
    accounts: dict[UUID, AccountInfo] = field(default_factory=dict)
    periods: dict[UUID, AccountingPeriodInfo] = field(default_factory=dict)
    sequences: dict[tuple[str, int], int] = field(default_factory=dict)

    def copy(self) -> "_State":
        # Records are frozen, so copying the dicts is a full snapshot
        return _State(
            journals=dict(self.journals),
            accounts=dict(self.accounts),
            periods=dict(self.periods),
            sequences=dict(self.sequences),
        )


class MemoryJournalRepository(JournalRepository):
    def __init__(self, state: _State):
        self._state = state

    def _tenant_journals(self, tenant_id: str) -> list[JournalInfo]:
        return [j for j in self._state.journals.values() if j.tenant_id == tenant_id]

    def get(self, tenant_id, journal_id, *, for_update=False):
        journal = self._state.journals.get(journal_id)
        if journal is None or journal.tenant_id != tenant_id:
            return None
        return journal

    def find_by_source(self, tenant_id, source, source_id):
        source = JournalSource(source)
        for journal in self._tenant_journals(tenant_id):
            if journal.source == source and journal.source_id == source_id:
                return journal
        return None

    def list(self, tenant_id, *, limit, offset=0):
        journals = sorted(
            self._tenant_journals(tenant_id),
            key=lambda j: (j.transaction_date, j.journal_number),
            reverse=True,
        )
        return journals[offset:offset + limit]

    def count_in_year(self, tenant_id, year):
        return sum(1 for j in self._tenant_journals(tenant_id) if j.transaction_date.year == year)

    def number_taken(self, tenant_id, journal_number):
        return any(j.journal_number == journal_number for j in self._tenant_journals(tenant_id))

    def _check_unique(self, journal: JournalInfo) -> None:
        for other in self._tenant_journals(journal.tenant_id):
            if other.id == journal.id:
                continue
            if other.journal_number == journal.journal_number:
                raise JournalWriteConflictError(journal.journal_number)
            if (
                journal.source_id is not None
                and other.source == journal.source
                and other.source_id == journal.source_id
            ):
                raise DuplicateSourceDocumentError(journal.source.value, journal.source_id)

    def add(self, journal):
        if journal.id in self._state.journals:
            raise PersistenceFailureError(f"Duplicate journal id {journal.id}")
        self._check_unique(journal)
        self._state.journals[journal.id] = journal

    def update(self, journal, *, replace_lines=False):
        current = self.get(journal.tenant_id, journal.id)
        if current is None:
            raise PersistenceFailureError(f"Journal {journal.id} vanished during update")
        self._check_unique(journal)
        if not replace_lines:
            journal = replace(journal, lines=current.lines)
        self._state.journals[journal.id] = journal

    def delete(self, tenant_id, journal_id):
        if self.get(tenant_id, journal_id) is not None:
            del self._state.journals[journal_id]

    def posted_totals(self, tenant_id, account_id):
        lines = [
            line
            for journal in self._tenant_journals(tenant_id)
            if journal.status == JournalStatus.POSTED
            for line in journal.lines
            if line.account_id == account_id
        ]
        return sum_money(ln.debit for ln in lines), sum_money(ln.credit for ln in lines)

    def account_activity(self, tenant_id, account_id, *, limit, start_date=None, end_date=None):
        rows: list[AccountActivityLine] = []
        for journal in self._tenant_journals(tenant_id):
            if start_date is not None and journal.transaction_date < start_date:
                continue
            if end_date is not None and journal.transaction_date > end_date:
                continue
            for line in journal.lines:
                if line.account_id != account_id:
                    continue
                rows.append(
                    AccountActivityLine(
                        line_id=line.id,
                        journal_id=journal.id,
                        journal_number=journal.journal_number,
                        transaction_date=journal.transaction_date,
                        journal_description=journal.description,
                        line_description=line.description,
                        debit=line.debit,
                        credit=line.credit,
                        status=journal.status,
                        source=journal.source,
                        reference=journal.reference,
                    )
                )
        rows.sort(key=lambda r: (r.transaction_date, r.journal_number), reverse=True)
        return rows[:limit]


class MemoryAccountRepository(AccountRepository):
    def __init__(self, state: _State):
        self._state = state

    def get(self, tenant_id, account_id, *, for_update=False):
        account = self._state.accounts.get(account_id)
        if account is None or account.tenant_id != tenant_id:
            return None
        return account

    def get_by_code(self, tenant_id, code):
        for account in self._state.accounts.values():
            if account.tenant_id == tenant_id and account.code == code:
                return account
        return None

    def list(self, tenant_id):
        return sorted(
            (a for a in self._state.accounts.values() if a.tenant_id == tenant_id),
            key=lambda a: a.code,
        )

    def find_missing(self, tenant_id, account_ids):
        return {aid for aid in account_ids if self.get(tenant_id, aid) is None}

    def add(self, account):
        if self.get_by_code(account.tenant_id, account.code) is not None:
            raise PersistenceFailureError(
                f"UNIQUE constraint failed: gl_accounts.tenant_id, gl_accounts.code ({account.code})"
            )
        self._state.accounts[account.id] = account

    def set_balance(self, tenant_id, account_id, balance):
        account = self.get(tenant_id, account_id)
        if account is not None:
            self._state.accounts[account_id] = replace(account, current_balance=balance)


class MemoryPeriodRepository(PeriodRepository):
    def __init__(self, state: _State):
        self._state = state

    def get(self, tenant_id, period_id):
        period = self._state.periods.get(period_id)
        if period is None or period.tenant_id != tenant_id:
            return None
        return period

    def list(self, tenant_id):
        return sorted(
            (p for p in self._state.periods.values() if p.tenant_id == tenant_id),
            key=lambda p: p.start_date,
        )

    def any_exist(self, tenant_id):
        return any(p.tenant_id == tenant_id for p in self._state.periods.values())

    def find_open_for_date(self, tenant_id, check_date):
        for period in self.list(tenant_id):
            if period.status == PeriodStatus.OPEN and period.contains_date(check_date):
                return period
        return None

    def add(self, period):
        self._state.periods[period.id] = period

    def update(self, period):
        if self.get(period.tenant_id, period.id) is None:
            raise PersistenceFailureError(f"Period {period.id} vanished during update")
        self._state.periods[period.id] = period


class MemorySequenceRepository(SequenceRepository):
    def __init__(self, state: _State):
        self._state = state

    def lock_current(self, tenant_id, year):
        return self._state.sequences.get((tenant_id, year))

    def save(self, tenant_id, year, value):
        self._state.sequences[(tenant_id, year)] = value


class MemoryUnitOfWork(LedgerUnitOfWork):
    def __init__(self, state: _State):
        self.journals = MemoryJournalRepository(state)
        self.accounts = MemoryAccountRepository(state)
        self.periods = MemoryPeriodRepository(state)
        self.sequences = MemorySequenceRepository(state)


class InMemoryLedgerStore(LedgerStore):
    """
    LedgerStore holding all tenants' data in process memory.

    Contract:
        Behaves like the SQL store at the repository boundary, including
        constraint violations and all-or-nothing commits.

    Non-goals:
        - Durability.  Data lives as long as the store object.
        - Concurrency beyond one open transaction at a time.
    """

    def __init__(self):
        self._state = _State()
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator[MemoryUnitOfWork]:
        with self._lock:
            snapshot = self._state.copy()
            try:
                yield MemoryUnitOfWork(self._state)
            except BaseException:
                self._restore(snapshot)
                raise

    def _restore(self, snapshot: _State) -> None:
        self._state.journals = snapshot.journals
        self._state.accounts = snapshot.accounts
        self._state.periods = snapshot.periods
        self._state.sequences = snapshot.sequences
