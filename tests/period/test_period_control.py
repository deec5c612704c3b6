"""
Period control tests.

Verifies:
- Zero periods configured -> every date may be posted (default-open)
- Periods configured -> only dates inside an Open period may be posted
- Closed and Locked both block post_journal; create-as-Posted is not gated
- Period lifecycle: overlap, range and transition rules
"""

from datetime import date
from decimal import Decimal

import pytest

from gl_kernel.exceptions import (
    InvalidPeriodRangeError,
    OutsideOpenPeriodError,
    PeriodNotFoundError,
    PeriodOverlapError,
    PeriodTransitionError,
)
from gl_kernel.models.accounting_period import PeriodStatus
from gl_kernel.models.journal import JournalStatus
from gl_kernel.services.period_service import PeriodService
from tests.helpers import balance_of, journal_input, seed_period


class TestPeriodResolution:
    def test_no_periods_means_control_inactive(self, store, tenant_id, captured_logs):
        with store.transaction() as uow:
            service = PeriodService(uow)
            assert not service.any_periods_exist(tenant_id)
            assert service.validate_posting_date(tenant_id, date(1999, 1, 1)) is None
        assert any(r["message"] == "period_control_inactive" for r in captured_logs())

    def test_open_period_resolved(self, store, tenant_id):
        period = seed_period(store, tenant_id, date(2024, 3, 1), date(2024, 3, 31))
        with store.transaction() as uow:
            service = PeriodService(uow)
            assert service.resolve_open_period(tenant_id, date(2024, 3, 31)).id == period.id
            assert service.validate_posting_date(tenant_id, date(2024, 3, 1)).id == period.id

    def test_date_outside_every_period_is_denied(self, store, tenant_id):
        seed_period(store, tenant_id, date(2024, 3, 1), date(2024, 3, 31))
        with store.transaction() as uow:
            with pytest.raises(OutsideOpenPeriodError):
                PeriodService(uow).validate_posting_date(tenant_id, date(2024, 4, 1))

    @pytest.mark.parametrize("status", [PeriodStatus.CLOSED, PeriodStatus.LOCKED])
    def test_closed_or_locked_period_denies(self, store, tenant_id, status):
        seed_period(store, tenant_id, date(2024, 3, 1), date(2024, 3, 31), status=status)
        with store.transaction() as uow:
            service = PeriodService(uow)
            assert service.any_periods_exist(tenant_id)
            assert service.resolve_open_period(tenant_id, date(2024, 3, 15)) is None
            with pytest.raises(OutsideOpenPeriodError):
                service.validate_posting_date(tenant_id, date(2024, 3, 15))

    def test_periods_are_tenant_scoped(self, store, tenant_id):
        from uuid import uuid4

        seed_period(store, uuid4(), date(2024, 3, 1), date(2024, 3, 31), status=PeriodStatus.CLOSED)
        with store.transaction() as uow:
            assert PeriodService(uow).validate_posting_date(tenant_id, date(2024, 3, 15)) is None


class TestPeriodLifecycle:
    def test_start_after_end_rejected(self, store, tenant_id):
        with store.transaction() as uow:
            with pytest.raises(InvalidPeriodRangeError):
                PeriodService(uow).create_period(tenant_id, "bad", date(2024, 2, 1), date(2024, 1, 1))

    def test_overlap_rejected(self, store, tenant_id):
        seed_period(store, tenant_id, date(2024, 1, 1), date(2024, 1, 31), name="2024-01")
        with store.transaction() as uow:
            with pytest.raises(PeriodOverlapError) as exc_info:
                PeriodService(uow).create_period(tenant_id, "mid", date(2024, 1, 15), date(2024, 2, 15))
        assert exc_info.value.existing_period_name == "2024-01"
        assert exc_info.value.overlap_start == "2024-01-15"
        assert exc_info.value.overlap_end == "2024-01-31"

    def test_adjacent_periods_allowed(self, store, tenant_id):
        seed_period(store, tenant_id, date(2024, 1, 1), date(2024, 1, 31))
        seed_period(store, tenant_id, date(2024, 2, 1), date(2024, 2, 29))
        with store.transaction() as uow:
            assert [p.name for p in PeriodService(uow).list_periods(tenant_id)] == ["2024-01", "2024-02"]

    def test_close_lock_stamps_actor(self, store, tenant_id, deterministic_clock):
        period = seed_period(store, tenant_id, date(2024, 1, 1), date(2024, 1, 31))
        with store.transaction() as uow:
            closed = PeriodService(uow, deterministic_clock).close_period(tenant_id, period.id, "controller")
        assert closed.status == PeriodStatus.CLOSED
        assert closed.closed_by == "controller"
        assert closed.closed_at == deterministic_clock.now()

        with store.transaction() as uow:
            locked = PeriodService(uow, deterministic_clock).lock_period(tenant_id, period.id, "cfo")
        assert locked.status == PeriodStatus.LOCKED

    def test_reopen_clears_stamp(self, store, tenant_id):
        period = seed_period(store, tenant_id, date(2024, 1, 1), date(2024, 1, 31))
        with store.transaction() as uow:
            service = PeriodService(uow)
            service.close_period(tenant_id, period.id, "controller")
            reopened = service.reopen_period(tenant_id, period.id, "controller")
        assert reopened.status == PeriodStatus.OPEN
        assert reopened.closed_by is None
        assert reopened.closed_at is None

    def test_locked_is_terminal(self, store, tenant_id):
        period = seed_period(store, tenant_id, date(2024, 1, 1), date(2024, 1, 31), status=PeriodStatus.LOCKED)
        with store.transaction() as uow:
            with pytest.raises(PeriodTransitionError):
                PeriodService(uow).reopen_period(tenant_id, period.id, "controller")

    def test_open_period_cannot_be_locked_directly(self, store, tenant_id):
        period = seed_period(store, tenant_id, date(2024, 1, 1), date(2024, 1, 31))
        with store.transaction() as uow:
            with pytest.raises(PeriodTransitionError):
                PeriodService(uow).lock_period(tenant_id, period.id, "controller")

    def test_unknown_period(self, store, tenant_id):
        from uuid import uuid4

        with store.transaction() as uow:
            with pytest.raises(PeriodNotFoundError):
                PeriodService(uow).close_period(tenant_id, uuid4(), "controller")


class TestPostingGate:
    """Period gating observed through post_journal."""

    def test_post_inside_only_open_period(self, ledger, store, tenant, tenant_id, accounts):
        seed_period(store, tenant_id, date(2024, 3, 1), date(2024, 3, 31))
        created = ledger.journals.create_journal(
            journal_input([(accounts["cash"].id, 100, 0), (accounts["revenue"].id, 0, 100)]), tenant
        )
        result = ledger.journals.post_journal(created.journal_id, tenant)
        assert result.success
        assert result.data.status == JournalStatus.POSTED

    def test_post_inside_closed_period_fails(self, ledger, store, tenant, tenant_id, accounts):
        seed_period(store, tenant_id, date(2024, 3, 1), date(2024, 3, 31), status=PeriodStatus.CLOSED)
        created = ledger.journals.create_journal(
            journal_input([(accounts["cash"].id, 100, 0), (accounts["revenue"].id, 0, 100)]), tenant
        )
        assert created.success  # drafts are not period-gated

        result = ledger.journals.post_journal(created.journal_id, tenant)
        assert not result.success
        assert result.error_code == "OUTSIDE_OPEN_PERIOD"

        fetched = ledger.journals.get_journal_by_id(created.journal_id, tenant)
        assert fetched.data.status == JournalStatus.DRAFT

    def test_post_with_zero_periods_succeeds_for_any_date(self, ledger, tenant, accounts):
        created = ledger.journals.create_journal(
            journal_input(
                [(accounts["cash"].id, 100, 0), (accounts["revenue"].id, 0, 100)],
                transaction_date=date(1999, 12, 31),
            ),
            tenant,
        )
        assert ledger.journals.post_journal(created.journal_id, tenant).success

    def test_create_as_posted_skips_period_control(self, ledger, store, tenant, tenant_id, accounts):
        seed_period(store, tenant_id, date(2024, 3, 1), date(2024, 3, 31), status=PeriodStatus.CLOSED)
        result = ledger.journals.create_journal(
            journal_input(
                [(accounts["cash"].id, 100, 0), (accounts["revenue"].id, 0, 100)],
                transaction_date=date(2024, 3, 15),
                status=JournalStatus.POSTED,
            ),
            tenant,
        )
        assert result.success
        assert result.data.status == JournalStatus.POSTED
        assert result.data.posted_by is not None
        assert balance_of(store, tenant_id, accounts["cash"].id) == Decimal("100.00")

    def test_reopened_period_allows_posting(self, ledger, store, tenant, tenant_id, accounts):
        period = seed_period(store, tenant_id, date(2024, 3, 1), date(2024, 3, 31))
        ledger.periods.close_period(tenant, period.id)
        created = ledger.journals.create_journal(
            journal_input([(accounts["cash"].id, 100, 0), (accounts["revenue"].id, 0, 100)]), tenant
        )
        assert not ledger.journals.post_journal(created.journal_id, tenant).success

        ledger.periods.reopen_period(tenant, period.id)
        assert ledger.journals.post_journal(created.journal_id, tenant).success
