"""Data helpers shared by the GL engine tests."""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from gl_kernel.domain.dtos import JournalInfo, JournalInput, JournalLineInfo, JournalLineInput
from gl_kernel.models.account import AccountType
from gl_kernel.models.accounting_period import PeriodStatus
from gl_kernel.models.journal import JournalSource, JournalStatus
from gl_kernel.services.account_service import AccountService
from gl_kernel.services.period_service import PeriodService


def seed_account(store, tenant_id: str, code: str, account_type: AccountType, name: str | None = None):
    with store.transaction() as uow:
        return AccountService(uow).create_account(
            tenant_id, code, name or f"Account {code}", account_type
        )


def seed_period(
    store,
    tenant_id: str,
    start: date,
    end: date,
    status: PeriodStatus = PeriodStatus.OPEN,
    name: str | None = None,
):
    with store.transaction() as uow:
        return PeriodService(uow).create_period(
            tenant_id, name or f"{start:%Y-%m}", start, end, status=status
        )


def journal_input(
    lines: list[tuple[UUID, str | int, str | int]],
    transaction_date: date = date(2024, 3, 15),
    description: str = "Test journal",
    status: JournalStatus = JournalStatus.DRAFT,
    **kwargs,
) -> JournalInput:
    """Build a JournalInput from (account_id, debit, credit) triples."""
    return JournalInput(
        transaction_date=transaction_date,
        description=description,
        lines=tuple(
            JournalLineInput(account_id=account_id, debit=Decimal(str(debit)), credit=Decimal(str(credit)))
            for account_id, debit, credit in lines
        ),
        status=status,
        **kwargs,
    )


def balance_of(store, tenant_id: str, account_id: UUID) -> Decimal:
    with store.transaction() as uow:
        return uow.accounts.get(tenant_id, account_id).current_balance


def insert_journal_record(
    store,
    tenant_id: str,
    journal_number: str,
    lines: list[tuple[UUID, str | int, str | int]],
    transaction_date: date = date(2024, 3, 15),
    status: JournalStatus = JournalStatus.DRAFT,
) -> JournalInfo:
    """Write a journal straight through the repository, bypassing numbering and validation."""
    now = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)
    line_infos = tuple(
        JournalLineInfo(
            id=uuid4(),
            account_id=account_id,
            debit=Decimal(str(debit)),
            credit=Decimal(str(credit)),
            description=None,
            line_seq=index,
        )
        for index, (account_id, debit, credit) in enumerate(lines)
    )
    journal = JournalInfo(
        id=uuid4(),
        tenant_id=tenant_id,
        journal_number=journal_number,
        transaction_date=transaction_date,
        posting_date=transaction_date,
        description="Imported journal",
        reference=None,
        source=JournalSource.MANUAL,
        source_id=None,
        status=status,
        total_debits=sum((ln.debit for ln in line_infos), Decimal("0")),
        total_credits=sum((ln.credit for ln in line_infos), Decimal("0")),
        created_by="importer",
        created_at=now,
        updated_at=now,
        lines=line_infos,
    )
    with store.transaction() as uow:
        uow.journals.add(journal)
    return journal
