"""
Journal number allocation tests.

Verifies:
- N journals in year Y -> next number is JE-Y-(N+1)
- Independent sequences per tenant and per year
- Numbers are never reissued after deletion
- Numbers already held are skipped
"""

from datetime import date
from uuid import uuid4

from gl_kernel.models.account import AccountType
from gl_kernel.services.sequence_service import SequenceService
from tests.helpers import insert_journal_record, journal_input, seed_account


def _allocate(store, tenant_id, year, **kwargs):
    with store.transaction() as uow:
        return SequenceService(uow, **kwargs).next_journal_number(tenant_id, year)


class TestSequenceService:
    def test_first_number_of_year(self, store, tenant_id):
        assert _allocate(store, tenant_id, 2024) == "JE-2024-000001"

    def test_strictly_increasing(self, store, tenant_id):
        numbers = [_allocate(store, tenant_id, 2024) for _ in range(3)]
        assert numbers == ["JE-2024-000001", "JE-2024-000002", "JE-2024-000003"]

    def test_years_are_independent(self, store, tenant_id):
        _allocate(store, tenant_id, 2024)
        _allocate(store, tenant_id, 2024)
        assert _allocate(store, tenant_id, 2025) == "JE-2025-000001"

    def test_tenants_are_independent(self, store):
        a, b = uuid4(), uuid4()
        _allocate(store, a, 2024)
        assert _allocate(store, b, 2024) == "JE-2024-000001"

    def test_rolled_back_allocation_is_returned(self, store, tenant_id):
        try:
            with store.transaction() as uow:
                SequenceService(uow).next_journal_number(tenant_id, 2024)
                raise RuntimeError("insert failed")
        except RuntimeError:
            pass
        assert _allocate(store, tenant_id, 2024) == "JE-2024-000001"

    def test_prefix_and_width_from_settings(self, store, tenant_id):
        assert _allocate(store, tenant_id, 2024, prefix="GJ", width=4) == "GJ-2024-0001"


class TestNumberingThroughLifecycle:
    def test_tenth_journal_of_year(self, ledger, tenant, tenant_id, accounts):
        cash, revenue = accounts["cash"].id, accounts["revenue"].id
        for _ in range(9):
            ledger.journals.create_journal(journal_input([(cash, 10, 0), (revenue, 0, 10)]), tenant)

        result = ledger.journals.create_journal(
            journal_input([(cash, 1000, 0), (revenue, 0, 1000)]), tenant
        )
        assert result.success
        assert result.journal_number == "JE-2024-000010"

    def test_counter_seeded_from_existing_journals(self, store, ledger, tenant, tenant_id, accounts):
        cash, revenue = accounts["cash"].id, accounts["revenue"].id
        # Journals imported without a counter row, e.g. by a data migration
        for n in range(1, 5):
            insert_journal_record(store, tenant_id, f"JE-2024-{n:06d}", [(cash, 1, 0), (revenue, 0, 1)])

        result = ledger.journals.create_journal(journal_input([(cash, 1, 0), (revenue, 0, 1)]), tenant)
        assert result.journal_number == "JE-2024-000005"

    def test_numbers_not_reissued_after_delete(self, ledger, tenant, accounts):
        cash, revenue = accounts["cash"].id, accounts["revenue"].id
        first = ledger.journals.create_journal(journal_input([(cash, 5, 0), (revenue, 0, 5)]), tenant)
        second = ledger.journals.create_journal(journal_input([(cash, 5, 0), (revenue, 0, 5)]), tenant)
        assert ledger.journals.delete_journal(second.journal_id, tenant).success

        third = ledger.journals.create_journal(journal_input([(cash, 5, 0), (revenue, 0, 5)]), tenant)
        assert first.journal_number == "JE-2024-000001"
        assert second.journal_number == "JE-2024-000002"
        assert third.journal_number == "JE-2024-000003"

    def test_year_comes_from_transaction_date(self, ledger, tenant, accounts):
        cash, revenue = accounts["cash"].id, accounts["revenue"].id
        ledger.journals.create_journal(journal_input([(cash, 5, 0), (revenue, 0, 5)]), tenant)
        result = ledger.journals.create_journal(
            journal_input([(cash, 5, 0), (revenue, 0, 5)], transaction_date=date(2023, 12, 31)),
            tenant,
        )
        assert result.journal_number == "JE-2023-000001"

    def test_taken_number_is_skipped(self, store, ledger, tenant, tenant_id, accounts):
        cash, revenue = accounts["cash"].id, accounts["revenue"].id
        ledger.journals.create_journal(journal_input([(cash, 5, 0), (revenue, 0, 5)]), tenant)
        # Counter rewound below an existing number
        with store.transaction() as uow:
            uow.sequences.save(tenant_id, 2024, 0)

        result = ledger.journals.create_journal(journal_input([(cash, 5, 0), (revenue, 0, 5)]), tenant)
        assert result.journal_number == "JE-2024-000002"

    def test_other_tenant_unaffected(self, ledger, tenant, other_tenant, accounts):
        cash, revenue = accounts["cash"].id, accounts["revenue"].id
        ledger.journals.create_journal(journal_input([(cash, 5, 0), (revenue, 0, 5)]), tenant)

        other_cash = seed_account(ledger.store, other_tenant.active_tenant_id, "1000", AccountType.ASSET)
        other_rev = seed_account(ledger.store, other_tenant.active_tenant_id, "4000", AccountType.REVENUE)
        result = ledger.journals.create_journal(
            journal_input([(other_cash.id, 5, 0), (other_rev.id, 0, 5)]), other_tenant
        )
        assert result.journal_number == "JE-2024-000001"
