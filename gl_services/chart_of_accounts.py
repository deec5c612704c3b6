"""
gl_services.chart_of_accounts -- chart-of-accounts queries and bootstrap.

Responsibility:
    Lists a tenant's accounts with their cached balances, returns the
    journal lines posted against one account, and provisions the default
    system accounts the posting adapter relies on.

Architecture position:
    Services -- facade over AccountService and AccountSelector.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from gl_config.schema import LedgerSettings
from gl_kernel.domain.dtos import TenantContext
from gl_kernel.exceptions import AccountNotFoundError
from gl_kernel.logging_config import get_logger
from gl_kernel.repositories.base import LedgerStore
from gl_kernel.selectors.account_selector import DEFAULT_ACTIVITY_LIMIT, AccountSelector
from gl_kernel.services.account_service import AccountService
from gl_services.boundary import run_operation
from gl_services.results import OperationResult
from gl_services.revalidation import ChangeNotifier, LedgerChange, LedgerView

logger = get_logger("services.chart_of_accounts")


class ChartOfAccounts:
    def __init__(
        self,
        store: LedgerStore,
        settings: LedgerSettings | None = None,
        notifier: ChangeNotifier | None = None,
    ):
        self._store = store
        self._settings = settings or LedgerSettings()
        self._notifier = notifier if notifier is not None else ChangeNotifier()

    def get_chart_of_accounts(
        self,
        tenant: TenantContext | None,
        tenant_id: UUID | str | None = None,
        *,
        ensure_defaults: bool = False,
    ) -> OperationResult:
        """Accounts ordered by code; optionally provision the defaults first."""

        def body(resolved: str) -> OperationResult:
            with self._store.transaction() as uow:
                created = []
                if ensure_defaults:
                    created = AccountService(uow).ensure_default_accounts(
                        resolved, self._settings.default_accounts
                    )
                accounts = AccountSelector(uow).list_accounts(resolved)
            if created:
                self._publish_created(resolved)
            return OperationResult.ok(data=accounts)

        return run_operation(logger, "get_chart_of_accounts", tenant, tenant_id, body)

    def get_account(
        self,
        tenant: TenantContext | None,
        account_id: UUID,
        tenant_id: UUID | str | None = None,
    ) -> OperationResult:
        def body(resolved: str) -> OperationResult:
            with self._store.transaction() as uow:
                account = AccountSelector(uow).get_account(resolved, account_id)
            if account is None:
                raise AccountNotFoundError([str(account_id)])
            return OperationResult.ok(data=account)

        return run_operation(logger, "get_account", tenant, tenant_id, body)

    def get_account_activity(
        self,
        tenant: TenantContext | None,
        account_id: UUID,
        limit: int = DEFAULT_ACTIVITY_LIMIT,
        start_date: date | None = None,
        end_date: date | None = None,
        tenant_id: UUID | str | None = None,
    ) -> OperationResult:
        """Journal lines touching the account, newest first."""

        def body(resolved: str) -> OperationResult:
            with self._store.transaction() as uow:
                if uow.accounts.get(resolved, account_id) is None:
                    raise AccountNotFoundError([str(account_id)])
                rows = AccountSelector(uow).account_activity(
                    resolved, account_id, limit, start_date, end_date
                )
            return OperationResult.ok(data=rows)

        return run_operation(logger, "get_account_activity", tenant, tenant_id, body)

    def ensure_default_accounts(
        self,
        tenant: TenantContext | None,
        tenant_id: UUID | str | None = None,
    ) -> OperationResult:
        """``data`` is the list of accounts created (empty when all existed)."""

        def body(resolved: str) -> OperationResult:
            with self._store.transaction() as uow:
                created = AccountService(uow).ensure_default_accounts(
                    resolved, self._settings.default_accounts
                )
            if created:
                self._publish_created(resolved)
            return OperationResult.ok(data=created)

        return run_operation(logger, "ensure_default_accounts", tenant, tenant_id, body)

    def _publish_created(self, tenant_id: str) -> None:
        self._notifier.publish(
            LedgerChange(
                tenant_id=tenant_id,
                action="accounts_provisioned",
                views=frozenset({LedgerView.CHART_OF_ACCOUNTS}),
            )
        )
