"""
gl_services.period_admin -- accounting period administration facade.

Responsibility:
    Creates accounting periods and moves them through
    Open -> Closed -> Locked (or back from Closed to Open) for the periods
    subsystem, returning OperationResult values like the journal facade.

Architecture position:
    Services -- thin transactional wrapper over PeriodService.

Invariants enforced:
    - Periods of one tenant never overlap; start <= end.
    - Locked is terminal.
    - A revalidation signal is published after every committed change.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from gl_kernel.domain.clock import Clock, SystemClock
from gl_kernel.domain.dtos import TenantContext
from gl_kernel.logging_config import get_logger
from gl_kernel.models.accounting_period import PeriodStatus
from gl_kernel.repositories.base import LedgerStore
from gl_kernel.services.period_service import PeriodService
from gl_services.boundary import run_operation
from gl_services.results import OperationResult
from gl_services.revalidation import PERIOD_VIEWS, ChangeNotifier, LedgerChange

logger = get_logger("services.period_admin")


class PeriodAdministration:
    """
    Period lifecycle operations for one store.

    Non-goals:
        - Does NOT run year-end close or any closing entries.
    """

    def __init__(
        self,
        store: LedgerStore,
        clock: Clock | None = None,
        notifier: ChangeNotifier | None = None,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._notifier = notifier if notifier is not None else ChangeNotifier()

    def _publish(self, tenant_id: str, action: str) -> None:
        self._notifier.publish(LedgerChange(tenant_id=tenant_id, action=action, views=PERIOD_VIEWS))

    def create_period(
        self,
        tenant: TenantContext | None,
        name: str,
        start_date: date,
        end_date: date,
        *,
        status: PeriodStatus = PeriodStatus.OPEN,
        is_year_end: bool = False,
        tenant_id: UUID | str | None = None,
    ) -> OperationResult:
        def body(resolved: str) -> OperationResult:
            with self._store.transaction() as uow:
                period = PeriodService(uow, self._clock).create_period(
                    resolved,
                    name,
                    start_date,
                    end_date,
                    status=status,
                    is_year_end=is_year_end,
                )
            self._publish(resolved, "period_create")
            return OperationResult.ok(data=period)

        return run_operation(logger, "create_period", tenant, tenant_id, body)

    def list_periods(
        self,
        tenant: TenantContext | None,
        tenant_id: UUID | str | None = None,
    ) -> OperationResult:
        def body(resolved: str) -> OperationResult:
            with self._store.transaction() as uow:
                periods = PeriodService(uow, self._clock).list_periods(resolved)
            return OperationResult.ok(data=periods)

        return run_operation(logger, "list_periods", tenant, tenant_id, body)

    def update_status(
        self,
        tenant: TenantContext | None,
        period_id: UUID,
        status: PeriodStatus,
        tenant_id: UUID | str | None = None,
    ) -> OperationResult:
        """Close, lock or reopen a period, stamping the caller as actor."""

        def body(resolved: str) -> OperationResult:
            with self._store.transaction() as uow:
                period = PeriodService(uow, self._clock).update_status(
                    resolved, period_id, status, tenant.user_id
                )
            self._publish(resolved, f"period_{period.status.value}")
            return OperationResult.ok(data=period)

        return run_operation(logger, "update_period_status", tenant, tenant_id, body)

    def close_period(self, tenant, period_id, tenant_id=None) -> OperationResult:
        return self.update_status(tenant, period_id, PeriodStatus.CLOSED, tenant_id)

    def lock_period(self, tenant, period_id, tenant_id=None) -> OperationResult:
        return self.update_status(tenant, period_id, PeriodStatus.LOCKED, tenant_id)

    def reopen_period(self, tenant, period_id, tenant_id=None) -> OperationResult:
        return self.update_status(tenant, period_id, PeriodStatus.OPEN, tenant_id)
