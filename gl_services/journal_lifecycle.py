"""
gl_services.journal_lifecycle -- Journal Lifecycle Manager.

Responsibility:
    The orchestrating entry point for manual journals and for the GL
    posting adapter.  Validates, creates, updates, posts, voids and deletes
    journals, calling period control, the journal number generator and the
    balance recalculator as each transition requires.

Architecture position:
    Services -- stateful orchestration over the kernel.  Owns transaction
    boundaries: every mutation runs in exactly one
    ``store.transaction()``; balance recalculation and the revalidation
    signal follow the commit.

Invariants enforced:
    - Tenant is resolved (explicit id wins over the session tenant) before
      any storage work.
    - |total debits - total credits| <= settings.balance_tolerance for
      every created or updated journal and again at posting time.
    - Draft -> Posted -> Voided only.  Posted and voided journals are never
      edited or deleted.
    - Period control gates the Draft -> Posted transition in post_journal.
      Journals created directly as Posted (adapter postings included) are
      not period-checked.
    - Header and lines are written atomically; lines are replaced
      wholesale on update.
    - Every distinct account touched is recalculated once after commit;
      update recalculates the union of the old and new account sets.

Failure modes:
    - Every GLKernelError becomes ``OperationResult.rejected``.  This covers
      business rules, missing records and PersistenceFailureError carrying
      the storage root-cause message.
    - JournalWriteConflictError (journal number collision) is retried up to
      settings.number_allocation_retries times before it is returned.
    - Anything else is a programming error: logged with traceback and
      re-raised.

Audit relevance:
    Each call is logged with correlation_id, tenant_id, actor_id and
    duration_ms.  Journals carry created_by, posted_by/posted_at and
    voided_by/voided_at.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import replace
from typing import TypeVar
from uuid import UUID, uuid4

from gl_config.schema import LedgerSettings
from gl_kernel.db.types import round_money
from gl_kernel.domain.clock import Clock, SystemClock
from gl_kernel.domain.dtos import JournalInfo, JournalInput, JournalLineInfo, TenantContext
from gl_kernel.domain.journal_rules import validate_journal_input
from gl_kernel.domain.values import within_tolerance
from gl_kernel.exceptions import (
    AlreadyPostedError,
    AlreadyVoidedError,
    JournalImbalanceError,
    JournalLockedError,
    JournalNotFoundError,
    JournalNotPostedError,
    JournalWriteConflictError,
)
from gl_kernel.logging_config import get_logger
from gl_kernel.models.journal import JournalStatus
from gl_kernel.repositories.base import LedgerStore, LedgerUnitOfWork
from gl_kernel.selectors.journal_selector import JournalSelector
from gl_kernel.services.account_service import AccountService
from gl_kernel.services.balance_service import BalanceRecalculator, RecalculationReport
from gl_kernel.services.period_service import PeriodService
from gl_kernel.services.sequence_service import SequenceService
from gl_services.boundary import run_operation
from gl_services.results import OperationResult
from gl_services.revalidation import ChangeNotifier, LedgerChange

logger = get_logger("services.journal_lifecycle")

T = TypeVar("T")


def _build_lines(data: JournalInput) -> tuple[JournalLineInfo, ...]:
    return tuple(
        JournalLineInfo(
            id=uuid4(),
            account_id=line.account_id,
            debit=line.debit,
            credit=line.credit,
            description=line.description or data.description,
            line_seq=index,
        )
        for index, line in enumerate(data.lines)
    )


class JournalLifecycleManager:
    """
    Journal create / read / update / post / void / delete.

    Contract:
        Every public method takes the caller's TenantContext plus an
        optional explicit tenant id and returns an OperationResult.

    Guarantees:
        - A rejected operation leaves storage untouched.
        - A successful mutation is committed before recalculation runs, and
          its RecalculationReport is attached to the result.

    Non-goals:
        - Does NOT resolve account codes; lines carry account ids.  Code
          based posting goes through GLPostingAdapter.
        - Does NOT retry recalculation; the next trigger heals a stale
          balance.
    """

    def __init__(
        self,
        store: LedgerStore,
        clock: Clock | None = None,
        settings: LedgerSettings | None = None,
        notifier: ChangeNotifier | None = None,
        recalculator: BalanceRecalculator | None = None,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._settings = settings or LedgerSettings()
        self._notifier = notifier if notifier is not None else ChangeNotifier()
        self._recalculator = recalculator or BalanceRecalculator(
            store, max_workers=self._settings.recalc_max_workers
        )

    @property
    def notifier(self) -> ChangeNotifier:
        return self._notifier

    # ------------------------------------------------------------------
    # Boundary
    # ------------------------------------------------------------------

    def _run(
        self,
        operation: str,
        tenant: TenantContext | None,
        tenant_id: UUID | str | None,
        body: Callable[[str], OperationResult],
        *,
        journal_id: UUID | None = None,
    ) -> OperationResult:
        return run_operation(logger, operation, tenant, tenant_id, body, journal_id=journal_id)

    def _write_with_retry(self, write: Callable[[LedgerUnitOfWork], T]) -> T:
        """Run ``write`` in a fresh transaction, retrying number collisions."""
        attempts = self._settings.number_allocation_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                with self._store.transaction() as uow:
                    return write(uow)
            except JournalWriteConflictError as exc:
                if attempt >= attempts:
                    raise
                logger.warning(
                    "journal_number_conflict_retry",
                    extra={"attempt": attempt, "journal_number": exc.journal_number},
                )
        raise AssertionError("unreachable")

    def _after_commit(
        self,
        tenant_id: str,
        action: str,
        journal_id: UUID,
        account_ids: Iterable[UUID],
    ) -> RecalculationReport:
        account_ids = frozenset(account_ids)
        report = self._recalculator.recalculate_many(tenant_id, account_ids)
        if not report.ok:
            logger.warning(
                "balance_cache_stale",
                extra={
                    "action": action,
                    "failed_accounts": sorted(str(a) for a in report.failed),
                },
            )
        self._notifier.publish(
            LedgerChange(
                tenant_id=tenant_id,
                action=action,
                journal_id=journal_id,
                account_ids=account_ids,
            )
        )
        return report

    @staticmethod
    def _load(uow: LedgerUnitOfWork, tenant_id: str, journal_id: UUID) -> JournalInfo:
        journal = uow.journals.get(tenant_id, journal_id, for_update=True)
        if journal is None:
            raise JournalNotFoundError(journal_id)
        return journal

    @staticmethod
    def _ensure_draft(journal: JournalInfo) -> None:
        if journal.status == JournalStatus.POSTED:
            raise JournalLockedError(journal.id, JournalLockedError.REASON_ALREADY_POSTED)
        if journal.status == JournalStatus.VOIDED:
            raise JournalLockedError(journal.id, JournalLockedError.REASON_VOIDED)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_journal(
        self,
        data: JournalInput,
        tenant: TenantContext | None,
        tenant_id: UUID | str | None = None,
    ) -> OperationResult:
        """
        Validate and insert a journal with its lines.

        Postconditions (on success):
            - The journal holds the next number for its tenant and
              transaction year.
            - It is Draft, or Posted with posted_by/posted_at stamped when
              ``data.status`` asked for it.
        """

        def body(resolved: str) -> OperationResult:
            validate_journal_input(data, self._settings.balance_tolerance)
            journal = self._write_with_retry(
                lambda uow: self._insert(uow, resolved, data, tenant.user_id)
            )
            logger.info(
                "journal_created",
                extra={
                    "journal_id": str(journal.id),
                    "journal_number": journal.journal_number,
                    "status": journal.status.value,
                    "source": journal.source.value,
                    "line_count": len(journal.lines),
                    "total_debits": journal.total_debits,
                },
            )
            report = self._after_commit(resolved, "create", journal.id, journal.account_ids)
            return OperationResult.ok(
                journal_id=journal.id,
                journal_number=journal.journal_number,
                data=journal,
                recalculation=report,
            )

        return self._run("create_journal", tenant, tenant_id, body)

    def _insert(
        self,
        uow: LedgerUnitOfWork,
        tenant_id: str,
        data: JournalInput,
        actor_id: str,
    ) -> JournalInfo:
        AccountService(uow).require_accounts(tenant_id, data.account_ids)

        # Period control gates post_journal only; source documents land as Posted
        posting = data.status == JournalStatus.POSTED

        number = SequenceService(
            uow,
            prefix=self._settings.journal_number_prefix,
            width=self._settings.journal_number_width,
        ).next_journal_number(tenant_id, data.transaction_date.year)

        now = self._clock.now()
        journal = JournalInfo(
            id=uuid4(),
            tenant_id=tenant_id,
            journal_number=number,
            transaction_date=data.transaction_date,
            posting_date=data.posting_date or data.transaction_date,
            description=data.description,
            reference=data.reference,
            source=data.source,
            source_id=data.source_id,
            status=data.status,
            total_debits=data.total_debits,
            total_credits=data.total_credits,
            created_by=actor_id,
            created_at=now,
            updated_at=now,
            posted_by=actor_id if posting else None,
            posted_at=now if posting else None,
            lines=_build_lines(data),
        )
        uow.journals.add(journal)
        return journal

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_journals(
        self,
        tenant: TenantContext | None,
        tenant_id: UUID | str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> OperationResult:
        """Newest journals first; ``data`` is a list of JournalInfo."""
        page_size = self._settings.default_page_size if limit is None else limit

        def body(resolved: str) -> OperationResult:
            with self._store.transaction() as uow:
                journals = JournalSelector(uow).list_journals(resolved, page_size, offset)
            return OperationResult.ok(data=journals)

        return self._run("get_journals", tenant, tenant_id, body)

    def get_journal_by_id(
        self,
        journal_id: UUID,
        tenant: TenantContext | None,
        tenant_id: UUID | str | None = None,
    ) -> OperationResult:
        def body(resolved: str) -> OperationResult:
            with self._store.transaction() as uow:
                journal = JournalSelector(uow).get_journal(resolved, journal_id)
            if journal is None:
                raise JournalNotFoundError(journal_id)
            return OperationResult.ok(
                journal_id=journal.id,
                journal_number=journal.journal_number,
                data=journal,
            )

        return self._run("get_journal_by_id", tenant, tenant_id, body, journal_id=journal_id)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update_journal(
        self,
        journal_id: UUID,
        data: JournalInput,
        tenant: TenantContext | None,
        tenant_id: UUID | str | None = None,
    ) -> OperationResult:
        """
        Replace a draft journal's header fields and all of its lines.

        The journal keeps its number, status, source and source_id.
        """

        def body(resolved: str) -> OperationResult:
            with self._store.transaction() as uow:
                existing = self._load(uow, resolved, journal_id)
                self._ensure_draft(existing)
                validate_journal_input(data, self._settings.balance_tolerance, for_update=True)
                AccountService(uow).require_accounts(resolved, data.account_ids)

                updated = replace(
                    existing,
                    transaction_date=data.transaction_date,
                    posting_date=data.posting_date or data.transaction_date,
                    description=data.description,
                    reference=data.reference,
                    total_debits=data.total_debits,
                    total_credits=data.total_credits,
                    updated_at=self._clock.now(),
                    lines=_build_lines(data),
                )
                uow.journals.update(updated, replace_lines=True)

            touched = existing.account_ids | updated.account_ids
            logger.info(
                "journal_updated",
                extra={
                    "journal_number": updated.journal_number,
                    "line_count": len(updated.lines),
                    "removed_accounts": sorted(
                        str(a) for a in existing.account_ids - updated.account_ids
                    ),
                },
            )
            report = self._after_commit(resolved, "update", updated.id, touched)
            return OperationResult.ok(
                journal_id=updated.id,
                journal_number=updated.journal_number,
                data=updated,
                recalculation=report,
            )

        return self._run("update_journal", tenant, tenant_id, body, journal_id=journal_id)

    # ------------------------------------------------------------------
    # Post / void
    # ------------------------------------------------------------------

    def post_journal(
        self,
        journal_id: UUID,
        tenant: TenantContext | None,
        tenant_id: UUID | str | None = None,
        posted_by: str | None = None,
    ) -> OperationResult:
        """
        Move a draft journal to Posted.

        ``posted_by`` defaults to the caller's user id.  posting_date is
        set to the clock's current date.
        """

        def body(resolved: str) -> OperationResult:
            actor = posted_by or tenant.user_id
            with self._store.transaction() as uow:
                journal = self._load(uow, resolved, journal_id)
                if journal.status == JournalStatus.POSTED:
                    raise AlreadyPostedError(journal.id)
                if journal.status == JournalStatus.VOIDED:
                    raise AlreadyVoidedError(journal.id)

                PeriodService(uow, self._clock).validate_posting_date(
                    resolved, journal.transaction_date
                )
                if not within_tolerance(
                    journal.total_debits, journal.total_credits, self._settings.balance_tolerance
                ):
                    raise JournalImbalanceError(
                        difference=str(round_money(abs(journal.total_debits - journal.total_credits))),
                        total_debits=str(round_money(journal.total_debits)),
                        total_credits=str(round_money(journal.total_credits)),
                    )

                now = self._clock.now()
                posted = replace(
                    journal,
                    status=JournalStatus.POSTED,
                    posted_by=actor,
                    posted_at=now,
                    posting_date=self._clock.today(),
                    updated_at=now,
                )
                uow.journals.update(posted)

            logger.info(
                "journal_posted",
                extra={
                    "journal_number": posted.journal_number,
                    "posted_by": actor,
                    "transaction_date": str(posted.transaction_date),
                },
            )
            report = self._after_commit(resolved, "post", posted.id, posted.account_ids)
            return OperationResult.ok(
                journal_id=posted.id,
                journal_number=posted.journal_number,
                data=posted,
                recalculation=report,
            )

        return self._run("post_journal", tenant, tenant_id, body, journal_id=journal_id)

    def void_journal(
        self,
        journal_id: UUID,
        tenant: TenantContext | None,
        tenant_id: UUID | str | None = None,
        voided_by: str | None = None,
    ) -> OperationResult:
        """
        Move a posted journal to Voided.

        Voided lines stop counting toward balances.  Voiding is not
        subject to period control.
        """

        def body(resolved: str) -> OperationResult:
            actor = voided_by or tenant.user_id
            with self._store.transaction() as uow:
                journal = self._load(uow, resolved, journal_id)
                if journal.status == JournalStatus.VOIDED:
                    raise AlreadyVoidedError(journal.id, "Journal is already voided")
                if journal.status != JournalStatus.POSTED:
                    raise JournalNotPostedError(journal.id, journal.status.value)

                now = self._clock.now()
                voided = replace(
                    journal,
                    status=JournalStatus.VOIDED,
                    voided_by=actor,
                    voided_at=now,
                    updated_at=now,
                )
                uow.journals.update(voided)

            logger.info(
                "journal_voided",
                extra={"journal_number": voided.journal_number, "voided_by": actor},
            )
            report = self._after_commit(resolved, "void", voided.id, voided.account_ids)
            return OperationResult.ok(
                journal_id=voided.id,
                journal_number=voided.journal_number,
                data=voided,
                recalculation=report,
            )

        return self._run("void_journal", tenant, tenant_id, body, journal_id=journal_id)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete_journal(
        self,
        journal_id: UUID,
        tenant: TenantContext | None,
        tenant_id: UUID | str | None = None,
    ) -> OperationResult:
        def body(resolved: str) -> OperationResult:
            with self._store.transaction() as uow:
                journal = self._load(uow, resolved, journal_id)
                self._ensure_draft(journal)
                uow.journals.delete(resolved, journal.id)

            logger.info(
                "journal_deleted",
                extra={"journal_number": journal.journal_number},
            )
            report = self._after_commit(resolved, "delete", journal.id, journal.account_ids)
            return OperationResult.ok(
                journal_id=journal.id,
                journal_number=journal.journal_number,
                recalculation=report,
            )

        return self._run("delete_journal", tenant, tenant_id, body, journal_id=journal_id)
