"""
Module: gl_kernel.selectors.account_selector
Responsibility: Read-only access to the chart of accounts and to the journal
    lines posted against one account.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Activity rows include lines of every status; callers filter on
      ``status`` when they only want posted activity.
"""

from datetime import date
from uuid import UUID

from gl_kernel.domain.dtos import AccountActivityLine, AccountInfo
from gl_kernel.selectors.base import BaseSelector

DEFAULT_ACTIVITY_LIMIT = 100


class AccountSelector(BaseSelector):
    """Selector for account queries."""

    def list_accounts(self, tenant_id: str) -> list[AccountInfo]:
        return self.uow.accounts.list(tenant_id)

    def get_account(self, tenant_id: str, account_id: UUID) -> AccountInfo | None:
        return self.uow.accounts.get(tenant_id, account_id)

    def account_activity(
        self,
        tenant_id: str,
        account_id: UUID,
        limit: int = DEFAULT_ACTIVITY_LIMIT,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[AccountActivityLine]:
        return self.uow.journals.account_activity(
            tenant_id,
            account_id,
            limit=max(0, limit),
            start_date=start_date,
            end_date=end_date,
        )
