"""
PeriodService -- accounting period lifecycle and posting-date control.

Responsibility:
    Decides whether a transaction date may be posted for a tenant, and
    manages the period lifecycle (create, close, lock, reopen).

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Consumed by JournalLifecycleManager (posting-date validation) and by the
    PeriodAdministration facade in gl_services.

Invariants enforced:
    - Posting into a date covered only by CLOSED or LOCKED periods, or not
      covered at all while periods exist, is rejected.
    - A tenant with zero periods configured is treated as fully open.  This
      is a deliberate default-open policy and is logged each time it
      applies.
    - Periods of one tenant never overlap.
    - LOCKED is terminal; only CLOSED periods may be locked or reopened.

Failure modes:
    - OutsideOpenPeriodError from validate_posting_date.
    - PeriodOverlapError / InvalidPeriodRangeError on create.
    - PeriodNotFoundError / PeriodTransitionError on lifecycle changes.
"""

from dataclasses import replace
from datetime import date
from uuid import UUID, uuid4

from gl_kernel.domain.clock import Clock, SystemClock
from gl_kernel.domain.dtos import AccountingPeriodInfo
from gl_kernel.exceptions import (
    InvalidPeriodRangeError,
    OutsideOpenPeriodError,
    PeriodNotFoundError,
    PeriodOverlapError,
    PeriodTransitionError,
)
from gl_kernel.logging_config import get_logger
from gl_kernel.models.accounting_period import PeriodStatus
from gl_kernel.services.base import BaseService

logger = get_logger("services.period")


class PeriodService(BaseService):
    """
    Period control and lifecycle.

    Contract:
        Read methods return AccountingPeriodInfo DTOs.  Validation and
        lifecycle methods raise typed PeriodError subclasses.

    Guarantees:
        - validate_posting_date never raises for a tenant without periods.
        - Every status change stamps closed_by / closed_at from the
          injected clock (cleared again on reopen).
    """

    def __init__(self, uow, clock: Clock | None = None):
        super().__init__(uow)
        self._clock = clock or SystemClock()

    # ------------------------------------------------------------------
    # Posting control
    # ------------------------------------------------------------------

    def resolve_open_period(self, tenant_id: str, check_date: date) -> AccountingPeriodInfo | None:
        return self.uow.periods.find_open_for_date(tenant_id, check_date)

    def any_periods_exist(self, tenant_id: str) -> bool:
        return self.uow.periods.any_exist(tenant_id)

    def validate_posting_date(self, tenant_id: str, transaction_date: date) -> AccountingPeriodInfo | None:
        """
        Check that ``transaction_date`` may be posted.

        Returns:
            The open period containing the date, or None when the tenant
            has no periods configured.

        Raises:
            OutsideOpenPeriodError: Periods exist and none that is open
                contains the date.
        """
        if not self.any_periods_exist(tenant_id):
            logger.info(
                "period_control_inactive",
                extra={"tenant_id": str(tenant_id), "transaction_date": str(transaction_date)},
            )
            return None

        period = self.resolve_open_period(tenant_id, transaction_date)
        if period is None:
            logger.warning(
                "posting_date_outside_open_period",
                extra={"tenant_id": str(tenant_id), "transaction_date": str(transaction_date)},
            )
            raise OutsideOpenPeriodError(str(transaction_date))
        return period

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def list_periods(self, tenant_id: str) -> list[AccountingPeriodInfo]:
        return self.uow.periods.list(tenant_id)

    def get_period(self, tenant_id: str, period_id: UUID) -> AccountingPeriodInfo:
        period = self.uow.periods.get(tenant_id, period_id)
        if period is None:
            raise PeriodNotFoundError(period_id)
        return period

    def create_period(
        self,
        tenant_id: str,
        name: str,
        start_date: date,
        end_date: date,
        *,
        status: PeriodStatus = PeriodStatus.OPEN,
        is_year_end: bool = False,
    ) -> AccountingPeriodInfo:
        """
        Create a period for a tenant.

        Raises:
            InvalidPeriodRangeError: start_date is after end_date.
            PeriodOverlapError: Date range overlaps an existing period.
        """
        if start_date > end_date:
            raise InvalidPeriodRangeError(str(start_date), str(end_date))

        self._validate_no_overlap(tenant_id, name, start_date, end_date)

        period = AccountingPeriodInfo(
            id=uuid4(),
            tenant_id=tenant_id,
            name=name,
            start_date=start_date,
            end_date=end_date,
            status=PeriodStatus(status),
            is_year_end=is_year_end,
        )
        self.uow.periods.add(period)

        logger.info(
            "period_created",
            extra={
                "tenant_id": str(tenant_id),
                "period_name": name,
                "start_date": str(start_date),
                "end_date": str(end_date),
                "status": period.status.value,
            },
        )
        return period

    def _validate_no_overlap(self, tenant_id: str, name: str, start_date: date, end_date: date) -> None:
        for existing in self.uow.periods.list(tenant_id):
            if existing.start_date <= end_date and start_date <= existing.end_date:
                overlap_start = max(start_date, existing.start_date)
                overlap_end = min(end_date, existing.end_date)
                raise PeriodOverlapError(
                    name,
                    existing.name,
                    str(overlap_start),
                    str(overlap_end),
                )

    def close_period(self, tenant_id: str, period_id: UUID, actor_id: str) -> AccountingPeriodInfo:
        return self._transition(tenant_id, period_id, PeriodStatus.CLOSED, actor_id, allowed_from=(PeriodStatus.OPEN,))

    def lock_period(self, tenant_id: str, period_id: UUID, actor_id: str) -> AccountingPeriodInfo:
        return self._transition(tenant_id, period_id, PeriodStatus.LOCKED, actor_id, allowed_from=(PeriodStatus.CLOSED,))

    def reopen_period(self, tenant_id: str, period_id: UUID, actor_id: str) -> AccountingPeriodInfo:
        return self._transition(tenant_id, period_id, PeriodStatus.OPEN, actor_id, allowed_from=(PeriodStatus.CLOSED,))

    def update_status(self, tenant_id: str, period_id: UUID, status: PeriodStatus, actor_id: str) -> AccountingPeriodInfo:
        """Dispatch a requested status to the matching lifecycle method."""
        status = PeriodStatus(status)
        if status == PeriodStatus.CLOSED:
            return self.close_period(tenant_id, period_id, actor_id)
        if status == PeriodStatus.LOCKED:
            return self.lock_period(tenant_id, period_id, actor_id)
        return self.reopen_period(tenant_id, period_id, actor_id)

    def _transition(
        self,
        tenant_id: str,
        period_id: UUID,
        to_status: PeriodStatus,
        actor_id: str,
        allowed_from: tuple[PeriodStatus, ...],
    ) -> AccountingPeriodInfo:
        period = self.get_period(tenant_id, period_id)
        if period.status not in allowed_from:
            raise PeriodTransitionError(period.name, period.status.value, to_status.value)

        if to_status == PeriodStatus.OPEN:
            updated = replace(period, status=to_status, closed_by=None, closed_at=None)
        else:
            updated = replace(
                period,
                status=to_status,
                closed_by=actor_id,
                closed_at=self._clock.now(),
            )
        self.uow.periods.update(updated)

        logger.info(
            "period_status_changed",
            extra={
                "tenant_id": str(tenant_id),
                "period_name": period.name,
                "from_status": period.status.value,
                "to_status": to_status.value,
                "actor_id": actor_id,
            },
        )
        return updated
