"""
BalanceRecalculator -- rebuilds cached account balances from posted lines.

Responsibility:
    Recomputes ``Account.current_balance`` from the source-of-truth rows:
    every line of every POSTED journal that touches the account.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Unlike the unit-of-work scoped services, it owns its transactions: each
    account is recalculated in its own ``store.transaction()`` so it can run
    right after the journal write commits and in parallel across accounts.

Invariants enforced:
    - Full recompute, never a delta.  Any run leaves the balance equal to
      the signed sum of some committed snapshot of posted lines, so
      concurrent recalculations of one account are safe (last writer wins)
      and a stale balance heals on the next trigger.
    - Sign convention: ASSET and EXPENSE are debit-normal
      (debits - credits); LIABILITY, EQUITY and REVENUE are credit-normal
      (credits - debits).
    - Balances are rounded with round_money() before they are stored.
    - Fan-out across accounts is bounded by ``max_workers``.

Failure modes:
    - Unknown account: logged and skipped, returns None.
    - Storage failure for one account: logged and reported in
      RecalculationReport.failed; other accounts still run.  Journal writes
      are already committed when recalculation runs, so nothing is raised.
"""

import contextvars
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable
from uuid import UUID

from gl_kernel.db.types import round_money
from gl_kernel.exceptions import GLKernelError
from gl_kernel.logging_config import get_logger
from gl_kernel.models.account import AccountType, NormalBalance
from gl_kernel.repositories.base import LedgerStore

logger = get_logger("services.balance")

DEFAULT_MAX_WORKERS = 4


def signed_balance(account_type: AccountType, total_debits: Decimal, total_credits: Decimal) -> Decimal:
    """Apply the account type's sign convention and round."""
    if AccountType(account_type).normal_balance == NormalBalance.DEBIT:
        return round_money(total_debits - total_credits)
    return round_money(total_credits - total_debits)


@dataclass(frozen=True)
class RecalculationReport:
    """Outcome of a multi-account recalculation."""

    balances: dict[UUID, Decimal] = field(default_factory=dict)
    skipped: frozenset[UUID] = frozenset()
    failed: frozenset[UUID] = frozenset()

    @property
    def ok(self) -> bool:
        return not self.failed


class BalanceRecalculator:
    """
    Account balance cache maintainer.

    Contract:
        ``recalculate`` for one account, ``recalculate_many`` for the
        distinct accounts a journal touched.

    Guarantees:
        - Each account is read, summed and written inside one transaction
          holding the account row lock where the backend supports it.

    Non-goals:
        - Does NOT run inside the journal write transaction.
        - Does NOT retry; the next trigger recomputes from scratch.
    """

    def __init__(self, store: LedgerStore, max_workers: int = DEFAULT_MAX_WORKERS):
        self._store = store
        self._max_workers = max(1, max_workers)

    def recalculate(self, tenant_id: str, account_id: UUID) -> Decimal | None:
        """
        Rebuild one account's balance.

        Returns:
            The stored balance, or None if the account does not exist.
        """
        with self._store.transaction() as uow:
            account = uow.accounts.get(tenant_id, account_id, for_update=True)
            if account is None:
                logger.warning(
                    "balance_recalc_account_missing",
                    extra={"tenant_id": str(tenant_id), "account_id": str(account_id)},
                )
                return None

            total_debits, total_credits = uow.journals.posted_totals(tenant_id, account_id)
            balance = signed_balance(account.account_type, total_debits, total_credits)
            uow.accounts.set_balance(tenant_id, account_id, balance)

        logger.debug(
            "balance_recalculated",
            extra={
                "tenant_id": str(tenant_id),
                "account_id": str(account_id),
                "account_code": account.code,
                "total_debits": total_debits,
                "total_credits": total_credits,
                "previous_balance": account.current_balance,
                "balance": balance,
            },
        )
        return balance

    def _recalculate_safely(self, tenant_id: str, account_id: UUID) -> tuple[UUID, Decimal | None, bool]:
        try:
            return account_id, self.recalculate(tenant_id, account_id), True
        except GLKernelError:
            logger.error(
                "balance_recalc_failed",
                extra={"tenant_id": str(tenant_id), "account_id": str(account_id)},
                exc_info=True,
            )
            return account_id, None, False

    def recalculate_many(self, tenant_id: str, account_ids: Iterable[UUID]) -> RecalculationReport:
        """
        Rebuild each distinct account once, concurrently up to max_workers.
        """
        unique_ids = list(dict.fromkeys(account_ids))
        if not unique_ids:
            return RecalculationReport()

        if len(unique_ids) == 1 or self._max_workers == 1:
            outcomes = [self._recalculate_safely(tenant_id, aid) for aid in unique_ids]
        else:
            workers = min(self._max_workers, len(unique_ids))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="gl-recalc") as executor:
                # Each task carries the caller's LogContext
                futures = [
                    executor.submit(
                        contextvars.copy_context().run,
                        self._recalculate_safely,
                        tenant_id,
                        aid,
                    )
                    for aid in unique_ids
                ]
                outcomes = [f.result() for f in futures]

        balances = {aid: bal for aid, bal, ok in outcomes if ok and bal is not None}
        skipped = frozenset(aid for aid, bal, ok in outcomes if ok and bal is None)
        failed = frozenset(aid for aid, _, ok in outcomes if not ok)

        logger.info(
            "balances_recalculated",
            extra={
                "tenant_id": str(tenant_id),
                "account_count": len(unique_ids),
                "failed_count": len(failed),
                "skipped_count": len(skipped),
            },
        )
        return RecalculationReport(balances=balances, skipped=skipped, failed=failed)
