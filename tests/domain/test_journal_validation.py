"""
Journal payload validation tests (pure, no storage).

Verifies:
- Balance invariant with the 0.01 epsilon boundary
- Structural rules: description, line count, non-negative amounts
- Initial status restricted to Draft or Posted
- Tenant resolution precedence
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from gl_kernel.domain.dtos import JournalInput, JournalLineInput, TenantContext
from gl_kernel.domain.journal_rules import validate_journal_input
from gl_kernel.domain.tenancy import resolve_tenant
from gl_kernel.exceptions import (
    InvalidJournalError,
    JournalImbalanceError,
    NoActiveTenantError,
    UnauthenticatedError,
)
from gl_kernel.models.journal import JournalStatus

CASH = uuid4()
REVENUE = uuid4()


def _input(debit, credit, *, description="Sale", status=JournalStatus.DRAFT, extra_lines=()):
    return JournalInput(
        transaction_date=date(2024, 3, 1),
        description=description,
        lines=(
            JournalLineInput(account_id=CASH, debit=debit),
            JournalLineInput(account_id=REVENUE, credit=credit),
            *extra_lines,
        ),
        status=status,
    )


class TestBalanceInvariant:
    def test_balanced_journal_passes(self):
        validate_journal_input(_input("1000", "1000"))

    def test_difference_of_exactly_one_cent_is_accepted(self):
        validate_journal_input(_input("100.01", "100.00"))

    def test_difference_of_two_cents_is_rejected(self):
        with pytest.raises(JournalImbalanceError) as exc_info:
            validate_journal_input(_input("100.02", "100.00"))
        assert exc_info.value.difference == "0.02"
        assert exc_info.value.total_debits == "100.02"
        assert exc_info.value.total_credits == "100.00"

    def test_large_imbalance_names_difference(self):
        with pytest.raises(JournalImbalanceError, match="Difference: 250.00"):
            validate_journal_input(_input("1000", "750"))

    def test_float_inputs_do_not_drift(self):
        # 0.1 + 0.2 vs 0.3 is exact in Decimal
        data = JournalInput(
            transaction_date=date(2024, 3, 1),
            description="Split",
            lines=(
                JournalLineInput(account_id=CASH, debit=0.1),
                JournalLineInput(account_id=CASH, debit=0.2),
                JournalLineInput(account_id=REVENUE, credit=0.3),
            ),
        )
        assert data.total_debits == Decimal("0.3")
        validate_journal_input(data)

    def test_custom_tolerance(self):
        validate_journal_input(_input("100.05", "100.00"), tolerance=Decimal("0.05"))
        with pytest.raises(JournalImbalanceError):
            validate_journal_input(_input("100.01", "100.00"), tolerance=Decimal("0"))

    def test_per_line_exclusivity_is_not_enforced(self):
        line = JournalLineInput(account_id=CASH, debit="50", credit="50")
        validate_journal_input(_input("10", "10", extra_lines=(line,)))


class TestStructure:
    def test_description_required(self):
        with pytest.raises(InvalidJournalError) as exc_info:
            validate_journal_input(_input("1", "1", description="   "))
        assert exc_info.value.field == "description"

    def test_at_least_two_lines(self):
        data = JournalInput(
            transaction_date=date(2024, 3, 1),
            description="One leg",
            lines=(JournalLineInput(account_id=CASH, debit="0"),),
        )
        with pytest.raises(InvalidJournalError, match="At least 2 lines required"):
            validate_journal_input(data)

    def test_negative_amount_rejected(self):
        with pytest.raises(InvalidJournalError, match="Line 1"):
            validate_journal_input(_input("-5", "-5"))

    def test_voided_initial_status_rejected(self):
        with pytest.raises(InvalidJournalError) as exc_info:
            validate_journal_input(_input("1", "1", status=JournalStatus.VOIDED))
        assert exc_info.value.field == "status"

    def test_status_ignored_for_update(self):
        validate_journal_input(_input("1", "1", status=JournalStatus.VOIDED), for_update=True)

    def test_posted_initial_status_allowed(self):
        validate_journal_input(_input("1", "1", status=JournalStatus.POSTED))

    def test_account_ids_are_distinct(self):
        data = _input("1", "1", extra_lines=(JournalLineInput(account_id=CASH, debit="0"),))
        assert data.account_ids == frozenset({CASH, REVENUE})


class TestTenantResolution:
    def test_explicit_tenant_wins(self):
        ctx = TenantContext(user_id="u1", active_tenant_id="org_session")
        assert resolve_tenant(ctx, "org_abc123") == "org_abc123"

    def test_session_tenant_used_when_no_explicit(self):
        ctx = TenantContext(user_id="u1", active_tenant_id="org_abc123")
        assert resolve_tenant(ctx) == "org_abc123"

    def test_uuid_tenant_returned_as_text(self):
        explicit = uuid4()
        assert resolve_tenant(TenantContext(user_id="u1"), explicit) == str(explicit)

    def test_organisation_key_is_not_parsed(self):
        assert resolve_tenant(TenantContext(user_id="u1"), "org_abc123") == "org_abc123"

    def test_blank_explicit_falls_back_to_session(self):
        ctx = TenantContext(user_id="u1", active_tenant_id="org_abc123")
        assert resolve_tenant(ctx, "  ") == "org_abc123"

    def test_blank_everywhere_is_no_tenant(self):
        with pytest.raises(NoActiveTenantError):
            resolve_tenant(TenantContext(user_id="u1", active_tenant_id=""), " ")

    def test_no_context_is_unauthenticated(self):
        with pytest.raises(UnauthenticatedError):
            resolve_tenant(None, uuid4())

    def test_anonymous_user_is_unauthenticated(self):
        with pytest.raises(UnauthenticatedError):
            resolve_tenant(TenantContext(user_id=None, active_tenant_id=uuid4()))

    def test_no_tenant_anywhere(self):
        with pytest.raises(NoActiveTenantError):
            resolve_tenant(TenantContext(user_id="u1"))
