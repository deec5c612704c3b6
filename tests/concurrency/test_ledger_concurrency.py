"""
Concurrency tests.

Verifies:
- Concurrent creates never share a journal number
- Cached balances settle to the posted totals after parallel writers
- Concurrent posting of one source document yields exactly one journal
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from gl_kernel.models.account import AccountType
from gl_kernel.models.journal import JournalStatus
from gl_kernel.services.balance_service import BalanceRecalculator
from tests.helpers import balance_of, journal_input, seed_account

pytestmark = pytest.mark.concurrency

WORKERS = 8


def _create_many(ledger, tenant, cash, revenue, count):
    def create(i):
        return ledger.journals.create_journal(
            journal_input([(cash, i + 1, 0), (revenue, 0, i + 1)], status=JournalStatus.POSTED),
            tenant,
        )

    with ThreadPoolExecutor(max_workers=WORKERS) as executor:
        return list(executor.map(create, range(count)))


class TestMemoryStore:
    def test_unique_numbers(self, ledger, store, tenant, tenant_id, accounts):
        results = _create_many(ledger, tenant, accounts["cash"].id, accounts["revenue"].id, 40)

        assert all(r.success for r in results)
        numbers = sorted(r.journal_number for r in results)
        assert numbers == [f"JE-2024-{n:06d}" for n in range(1, 41)]
        assert balance_of(store, tenant_id, accounts["cash"].id) == Decimal(sum(range(1, 41)))

    def test_parallel_recalculation(self, store, tenant_id):
        ids = [seed_account(store, tenant_id, str(5000 + n), AccountType.EXPENSE).id for n in range(12)]
        report = BalanceRecalculator(store, max_workers=WORKERS).recalculate_many(tenant_id, ids)
        assert report.ok
        assert set(report.balances) == set(ids)


@pytest.mark.sql
class TestSqlStore:
    @pytest.fixture
    def sql_accounts(self, sql_store, tenant_id):
        return (
            seed_account(sql_store, tenant_id, "1000", AccountType.ASSET).id,
            seed_account(sql_store, tenant_id, "4000", AccountType.REVENUE).id,
        )

    def test_unique_numbers(self, sql_ledger, sql_store, tenant, tenant_id, sql_accounts):
        cash, revenue = sql_accounts
        results = _create_many(sql_ledger, tenant, cash, revenue, 16)

        assert all(r.success for r in results), [r.error for r in results if not r.success]
        numbers = [r.journal_number for r in results]
        assert len(set(numbers)) == 16
        assert sorted(numbers) == [f"JE-2024-{n:06d}" for n in range(1, 17)]

        expected = Decimal(sum(range(1, 17)))
        assert balance_of(sql_store, tenant_id, cash) == expected
        assert balance_of(sql_store, tenant_id, revenue) == expected

    def test_one_journal_per_document(self, sql_ledger, tenant):
        invoice_id = uuid4()

        def post(_):
            return sql_ledger.posting.post_invoice(tenant, invoice_id, "INV-77", 500, date(2024, 3, 15))

        # Provision once so the racing calls only contend on the journal
        sql_ledger.accounts.ensure_default_accounts(tenant)
        with ThreadPoolExecutor(max_workers=4) as executor:
            results = list(executor.map(post, range(4)))

        assert all(r.success for r in results), [r.error for r in results if not r.success]
        assert len({r.journal_id for r in results}) == 1
        assert sum(1 for r in results if not r.already_posted) == 1
        assert len(sql_ledger.journals.get_journals(tenant).data) == 1
