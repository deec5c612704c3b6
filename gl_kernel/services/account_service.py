"""
AccountService -- chart-of-accounts lookups and provisioning.

Responsibility:
    Resolves account ids and codes for journal validation and for the GL
    posting adapter, and provisions the default system accounts a tenant
    needs before receivables and payables can post.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - A journal line may only reference an account of the same tenant.
    - Adapter account codes must all resolve; a partial match is a failure.
    - Default accounts are created once per tenant and flagged is_system.

Failure modes:
    - AccountNotFoundError when any line references an unknown account id.
    - MissingGLAccountError when any required code is not configured.
"""

from dataclasses import dataclass
from uuid import UUID, uuid4

from gl_kernel.domain.dtos import AccountInfo
from gl_kernel.exceptions import AccountNotFoundError, MissingGLAccountError
from gl_kernel.logging_config import get_logger
from gl_kernel.models.account import AccountType
from gl_kernel.services.base import BaseService

logger = get_logger("services.account")


@dataclass(frozen=True)
class AccountSpec:
    """Code, name and type of an account to provision."""

    code: str
    name: str
    account_type: AccountType

    def __post_init__(self) -> None:
        object.__setattr__(self, "account_type", AccountType(self.account_type))


DEFAULT_ACCOUNTS: tuple[AccountSpec, ...] = (
    AccountSpec("1000", "Cash/Bank", AccountType.ASSET),
    AccountSpec("1200", "Accounts Receivable", AccountType.ASSET),
    AccountSpec("2000", "Accounts Payable", AccountType.LIABILITY),
    AccountSpec("4000", "Sales Revenue", AccountType.REVENUE),
    AccountSpec("6000", "Expenses", AccountType.EXPENSE),
)


class AccountService(BaseService):
    """Account lookups inside a caller-owned transaction."""

    def lookup_account(self, tenant_id: str, code: str) -> AccountInfo | None:
        return self.uow.accounts.get_by_code(tenant_id, code)

    def list_accounts(self, tenant_id: str) -> list[AccountInfo]:
        return self.uow.accounts.list(tenant_id)

    def get_account(self, tenant_id: str, account_id: UUID) -> AccountInfo:
        account = self.uow.accounts.get(tenant_id, account_id)
        if account is None:
            raise AccountNotFoundError([str(account_id)])
        return account

    def require_accounts(self, tenant_id: str, account_ids: frozenset[UUID]) -> None:
        """Raise AccountNotFoundError naming every id that does not resolve."""
        missing = self.uow.accounts.find_missing(tenant_id, account_ids)
        if missing:
            raise AccountNotFoundError(sorted(str(a) for a in missing))

    def resolve_codes(self, tenant_id: str, codes: list[str]) -> dict[str, AccountInfo]:
        """
        Map each code to its account.

        Raises:
            MissingGLAccountError: When any code is not configured.  The
                message names every required code in ascending order;
                ``missing`` holds the ones that did not resolve.
        """
        resolved: dict[str, AccountInfo] = {}
        missing: list[str] = []
        for code in codes:
            if code in resolved or code in missing:
                continue
            account = self.lookup_account(tenant_id, code)
            if account is None:
                missing.append(code)
            else:
                resolved[code] = account
        if missing:
            logger.warning(
                "gl_accounts_missing",
                extra={"tenant_id": str(tenant_id), "codes": missing},
            )
            raise MissingGLAccountError(sorted(set(codes)), missing=missing)
        return resolved

    def create_account(
        self,
        tenant_id: str,
        code: str,
        name: str,
        account_type: AccountType,
        *,
        is_system: bool = False,
    ) -> AccountInfo:
        account = AccountInfo(
            id=uuid4(),
            tenant_id=tenant_id,
            code=code,
            name=name,
            account_type=AccountType(account_type),
            is_system=is_system,
        )
        self.uow.accounts.add(account)
        logger.info(
            "account_created",
            extra={
                "tenant_id": str(tenant_id),
                "account_code": code,
                "account_type": account.account_type.value,
            },
        )
        return account

    def ensure_default_accounts(
        self,
        tenant_id: str,
        defaults: tuple[AccountSpec, ...] = DEFAULT_ACCOUNTS,
    ) -> list[AccountInfo]:
        """Create any missing default account. Returns the accounts created."""
        existing = {a.code for a in self.uow.accounts.list(tenant_id)}
        created = [
            self.create_account(
                tenant_id, spec.code, spec.name, spec.account_type, is_system=True
            )
            for spec in defaults
            if spec.code not in existing
        ]
        if created:
            logger.info(
                "default_accounts_provisioned",
                extra={"tenant_id": str(tenant_id), "codes": [a.code for a in created]},
            )
        return created
