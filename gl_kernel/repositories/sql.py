"""
Module: gl_kernel.repositories.sql
Responsibility: SQLAlchemy implementation of the ledger repositories.
Architecture position: Kernel > Repositories.  May import from db/, models/,
    domain/ and exceptions.

Invariants enforced:
    - One Session per transaction, opened through db.engine.session_scope so
      commit/rollback semantics are identical to every other DB path.
    - Row locks (SELECT ... FOR UPDATE) on the sequence counter, on journals
      being transitioned and on accounts being recalculated.  SQLite has no
      row locks; the engine's BEGIN IMMEDIATE serializes writers instead.
    - Constraint violations are translated into kernel exceptions at flush
      time, and any other SQLAlchemyError leaves the store as
      PersistenceFailureError carrying the root-cause message.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from gl_kernel.db.engine import get_session_factory, session_scope
from gl_kernel.domain.dtos import (
    AccountActivityLine,
    AccountInfo,
    AccountingPeriodInfo,
    JournalInfo,
    JournalLineInfo,
)
from gl_kernel.domain.values import to_money
from gl_kernel.exceptions import (
    DuplicateSourceDocumentError,
    JournalWriteConflictError,
    PersistenceFailureError,
    root_cause_message,
)
from gl_kernel.logging_config import get_logger
from gl_kernel.models.account import Account, AccountType
from gl_kernel.models.accounting_period import AccountingPeriod, PeriodStatus
from gl_kernel.models.journal import Journal, JournalLine, JournalSource, JournalStatus
from gl_kernel.models.journal_sequence import JournalSequence
from gl_kernel.repositories.base import (
    AccountRepository,
    JournalRepository,
    LedgerStore,
    LedgerUnitOfWork,
    PeriodRepository,
    SequenceRepository,
)

logger = get_logger("repositories.sql")


def _aware(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo on DateTime(timezone=True)
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _journal_to_dto(journal: Journal) -> JournalInfo:
    return JournalInfo(
        id=journal.id,
        tenant_id=journal.tenant_id,
        journal_number=journal.journal_number,
        transaction_date=journal.transaction_date,
        posting_date=journal.posting_date,
        description=journal.description,
        reference=journal.reference,
        source=JournalSource(journal.source),
        source_id=journal.source_id,
        status=JournalStatus(journal.status),
        total_debits=to_money(journal.total_debits),
        total_credits=to_money(journal.total_credits),
        created_by=journal.created_by,
        created_at=_aware(journal.created_at),
        updated_at=_aware(journal.updated_at),
        posted_by=journal.posted_by,
        posted_at=_aware(journal.posted_at),
        voided_by=journal.voided_by,
        voided_at=_aware(journal.voided_at),
        lines=tuple(
            JournalLineInfo(
                id=line.id,
                account_id=line.account_id,
                debit=to_money(line.debit),
                credit=to_money(line.credit),
                description=line.description,
                line_seq=line.line_seq,
            )
            for line in sorted(journal.lines, key=lambda ln: ln.line_seq)
        ),
    )


def _account_to_dto(account: Account) -> AccountInfo:
    return AccountInfo(
        id=account.id,
        tenant_id=account.tenant_id,
        code=account.code,
        name=account.name,
        account_type=AccountType(account.account_type),
        current_balance=to_money(account.current_balance),
        is_system=account.is_system,
        is_active=account.is_active,
    )


def _period_to_dto(period: AccountingPeriod) -> AccountingPeriodInfo:
    return AccountingPeriodInfo(
        id=period.id,
        tenant_id=period.tenant_id,
        name=period.name,
        start_date=period.start_date,
        end_date=period.end_date,
        status=PeriodStatus(period.status),
        is_year_end=period.is_year_end,
        closed_by=period.closed_by,
        closed_at=_aware(period.closed_at),
    )


def _new_lines(journal: JournalInfo) -> list[JournalLine]:
    return [
        JournalLine(
            id=line.id,
            tenant_id=journal.tenant_id,
            account_id=line.account_id,
            debit=line.debit,
            credit=line.credit,
            description=line.description,
            line_seq=line.line_seq,
        )
        for line in journal.lines
    ]


def _apply_header(row: Journal, journal: JournalInfo) -> None:
    row.journal_number = journal.journal_number
    row.transaction_date = journal.transaction_date
    row.posting_date = journal.posting_date
    row.description = journal.description
    row.reference = journal.reference
    row.source = journal.source.value
    row.source_id = journal.source_id
    row.status = journal.status.value
    row.total_debits = journal.total_debits
    row.total_credits = journal.total_credits
    row.created_by = journal.created_by
    row.posted_by = journal.posted_by
    row.posted_at = journal.posted_at
    row.voided_by = journal.voided_by
    row.voided_at = journal.voided_at
    row.updated_at = journal.updated_at


class _SessionRepository:
    def __init__(self, session: Session):
        self._session = session

    def _flush_journal(self, journal: JournalInfo) -> None:
        try:
            self._session.flush()
        except IntegrityError as exc:
            message = root_cause_message(exc)
            if "journal_number" in message or "uq_journal_tenant_number" in message:
                raise JournalWriteConflictError(journal.journal_number) from exc
            if "source_id" in message or "uq_journal_tenant_source_doc" in message:
                raise DuplicateSourceDocumentError(
                    journal.source.value, journal.source_id or ""
                ) from exc
            raise


class SqlJournalRepository(_SessionRepository, JournalRepository):

    def _load(self, tenant_id: str, journal_id: UUID, for_update: bool = False) -> Journal | None:
        stmt = select(Journal).where(
            Journal.tenant_id == tenant_id,
            Journal.id == journal_id,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self._session.execute(stmt).scalar_one_or_none()

    def get(self, tenant_id, journal_id, *, for_update=False):
        row = self._load(tenant_id, journal_id, for_update)
        return _journal_to_dto(row) if row is not None else None

    def find_by_source(self, tenant_id, source, source_id):
        row = self._session.execute(
            select(Journal).where(
                Journal.tenant_id == tenant_id,
                Journal.source == JournalSource(source).value,
                Journal.source_id == source_id,
            )
        ).scalar_one_or_none()
        return _journal_to_dto(row) if row is not None else None

    def list(self, tenant_id, *, limit, offset=0):
        rows = self._session.execute(
            select(Journal)
            .options(selectinload(Journal.lines))
            .where(Journal.tenant_id == tenant_id)
            .order_by(Journal.transaction_date.desc(), Journal.journal_number.desc())
            .limit(limit)
            .offset(offset)
        ).scalars()
        return [_journal_to_dto(row) for row in rows]

    def count_in_year(self, tenant_id, year):
        return self._session.execute(
            select(func.count(Journal.id)).where(
                Journal.tenant_id == tenant_id,
                Journal.transaction_date >= date(year, 1, 1),
                Journal.transaction_date <= date(year, 12, 31),
            )
        ).scalar_one()

    def number_taken(self, tenant_id, journal_number):
        return self._session.execute(
            select(Journal.id).where(
                Journal.tenant_id == tenant_id,
                Journal.journal_number == journal_number,
            )
        ).first() is not None

    def add(self, journal):
        row = Journal(
            id=journal.id,
            tenant_id=journal.tenant_id,
            created_at=journal.created_at,
        )
        _apply_header(row, journal)
        row.lines = _new_lines(journal)
        self._session.add(row)
        self._flush_journal(journal)

    def update(self, journal, *, replace_lines=False):
        row = self._load(journal.tenant_id, journal.id)
        if row is None:
            raise PersistenceFailureError(f"Journal {journal.id} vanished during update")
        _apply_header(row, journal)
        if replace_lines:
            row.lines.clear()
            self._session.flush()
            row.lines.extend(_new_lines(journal))
        self._flush_journal(journal)

    def delete(self, tenant_id, journal_id):
        row = self._load(tenant_id, journal_id)
        if row is not None:
            self._session.delete(row)
            self._session.flush()

    def posted_totals(self, tenant_id, account_id):
        debits, credits = self._session.execute(
            select(
                func.coalesce(func.sum(JournalLine.debit), 0),
                func.coalesce(func.sum(JournalLine.credit), 0),
            )
            .join(Journal, Journal.id == JournalLine.journal_id)
            .where(
                JournalLine.tenant_id == tenant_id,
                JournalLine.account_id == account_id,
                Journal.status == JournalStatus.POSTED.value,
            )
        ).one()
        return to_money(debits), to_money(credits)

    def account_activity(self, tenant_id, account_id, *, limit, start_date=None, end_date=None):
        stmt = (
            select(JournalLine, Journal)
            .join(Journal, Journal.id == JournalLine.journal_id)
            .where(
                JournalLine.tenant_id == tenant_id,
                JournalLine.account_id == account_id,
            )
        )
        if start_date is not None:
            stmt = stmt.where(Journal.transaction_date >= start_date)
        if end_date is not None:
            stmt = stmt.where(Journal.transaction_date <= end_date)
        stmt = stmt.order_by(
            Journal.transaction_date.desc(),
            Journal.journal_number.desc(),
            JournalLine.line_seq,
        ).limit(limit)

        return [
            AccountActivityLine(
                line_id=line.id,
                journal_id=journal.id,
                journal_number=journal.journal_number,
                transaction_date=journal.transaction_date,
                journal_description=journal.description,
                line_description=line.description,
                debit=to_money(line.debit),
                credit=to_money(line.credit),
                status=JournalStatus(journal.status),
                source=JournalSource(journal.source),
                reference=journal.reference,
            )
            for line, journal in self._session.execute(stmt)
        ]


class SqlAccountRepository(_SessionRepository, AccountRepository):

    def _load(self, tenant_id: str, account_id: UUID, for_update: bool = False) -> Account | None:
        stmt = select(Account).where(
            Account.tenant_id == tenant_id,
            Account.id == account_id,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self._session.execute(stmt).scalar_one_or_none()

    def get(self, tenant_id, account_id, *, for_update=False):
        row = self._load(tenant_id, account_id, for_update)
        return _account_to_dto(row) if row is not None else None

    def get_by_code(self, tenant_id, code):
        row = self._session.execute(
            select(Account).where(Account.tenant_id == tenant_id, Account.code == code)
        ).scalar_one_or_none()
        return _account_to_dto(row) if row is not None else None

    def list(self, tenant_id):
        rows = self._session.execute(
            select(Account).where(Account.tenant_id == tenant_id).order_by(Account.code)
        ).scalars()
        return [_account_to_dto(row) for row in rows]

    def find_missing(self, tenant_id, account_ids):
        if not account_ids:
            return set()
        found = set(
            self._session.execute(
                select(Account.id).where(
                    Account.tenant_id == tenant_id,
                    Account.id.in_(list(account_ids)),
                )
            ).scalars()
        )
        return set(account_ids) - found

    def add(self, account):
        self._session.add(
            Account(
                id=account.id,
                tenant_id=account.tenant_id,
                code=account.code,
                name=account.name,
                account_type=AccountType(account.account_type).value,
                current_balance=account.current_balance,
                is_system=account.is_system,
                is_active=account.is_active,
            )
        )
        self._session.flush()

    def set_balance(self, tenant_id, account_id, balance):
        row = self._load(tenant_id, account_id)
        if row is not None:
            row.current_balance = balance
            self._session.flush()


class SqlPeriodRepository(_SessionRepository, PeriodRepository):

    def _load(self, tenant_id: str, period_id: UUID) -> AccountingPeriod | None:
        return self._session.execute(
            select(AccountingPeriod).where(
                AccountingPeriod.tenant_id == tenant_id,
                AccountingPeriod.id == period_id,
            )
        ).scalar_one_or_none()

    def get(self, tenant_id, period_id):
        row = self._load(tenant_id, period_id)
        return _period_to_dto(row) if row is not None else None

    def list(self, tenant_id):
        rows = self._session.execute(
            select(AccountingPeriod)
            .where(AccountingPeriod.tenant_id == tenant_id)
            .order_by(AccountingPeriod.start_date)
        ).scalars()
        return [_period_to_dto(row) for row in rows]

    def any_exist(self, tenant_id):
        return self._session.execute(
            select(AccountingPeriod.id).where(AccountingPeriod.tenant_id == tenant_id).limit(1)
        ).first() is not None

    def find_open_for_date(self, tenant_id, check_date):
        row = self._session.execute(
            select(AccountingPeriod)
            .where(
                AccountingPeriod.tenant_id == tenant_id,
                AccountingPeriod.status == PeriodStatus.OPEN.value,
                AccountingPeriod.start_date <= check_date,
                AccountingPeriod.end_date >= check_date,
            )
            .order_by(AccountingPeriod.start_date)
            .limit(1)
        ).scalar_one_or_none()
        return _period_to_dto(row) if row is not None else None

    def add(self, period):
        self._session.add(
            AccountingPeriod(
                id=period.id,
                tenant_id=period.tenant_id,
                name=period.name,
                start_date=period.start_date,
                end_date=period.end_date,
                status=period.status.value,
                is_year_end=period.is_year_end,
                closed_by=period.closed_by,
                closed_at=period.closed_at,
            )
        )
        self._session.flush()

    def update(self, period):
        row = self._load(period.tenant_id, period.id)
        if row is None:
            raise PersistenceFailureError(f"Period {period.id} vanished during update")
        row.name = period.name
        row.start_date = period.start_date
        row.end_date = period.end_date
        row.status = period.status.value
        row.is_year_end = period.is_year_end
        row.closed_by = period.closed_by
        row.closed_at = period.closed_at
        self._session.flush()


class SqlSequenceRepository(_SessionRepository, SequenceRepository):

    def _load(self, tenant_id: str, year: int) -> JournalSequence | None:
        return self._session.execute(
            select(JournalSequence)
            .where(JournalSequence.tenant_id == tenant_id, JournalSequence.year == year)
            .with_for_update()
        ).scalar_one_or_none()

    def lock_current(self, tenant_id, year):
        row = self._load(tenant_id, year)
        return row.current_value if row is not None else None

    def save(self, tenant_id, year, value):
        row = self._load(tenant_id, year)
        if row is None:
            self._session.add(JournalSequence(tenant_id=tenant_id, year=year, current_value=value))
        else:
            row.current_value = value
        try:
            self._session.flush()
        except IntegrityError as exc:
            # Another transaction seeded the counter first
            raise JournalWriteConflictError(f"{year}/{value}") from exc


class SqlUnitOfWork(LedgerUnitOfWork):
    def __init__(self, session: Session):
        self.session = session
        self.journals = SqlJournalRepository(session)
        self.accounts = SqlAccountRepository(session)
        self.periods = SqlPeriodRepository(session)
        self.sequences = SqlSequenceRepository(session)


class SqlLedgerStore(LedgerStore):
    """
    LedgerStore backed by a SQLAlchemy session factory.

    Contract:
        Each transaction() opens a fresh Session from the factory, so the
        store is safe to share across threads.

    Guarantees:
        - Kernel exceptions raised inside the block propagate unchanged
          after rollback.
        - Any SQLAlchemyError is re-raised as PersistenceFailureError with
          the DBAPI root-cause message.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None):
        self._session_factory = session_factory or get_session_factory()

    @contextmanager
    def transaction(self) -> Iterator[SqlUnitOfWork]:
        try:
            with session_scope(self._session_factory) as session:
                yield SqlUnitOfWork(session)
        except SQLAlchemyError as exc:
            message = root_cause_message(exc)
            logger.warning(
                "persistence_failure",
                extra={"error_type": type(exc).__name__, "detail": message},
            )
            raise PersistenceFailureError(message) from exc
