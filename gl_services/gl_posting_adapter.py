"""
gl_services.gl_posting_adapter -- entry point for Invoicing and Payables.

Responsibility:
    Records the financial effect of a source document (an invoice moving to
    Sent, a bill moving to Approved) as a balanced, Posted journal.  Lines
    arrive keyed by account code; the adapter resolves the codes, guards
    against double posting and delegates to JournalLifecycleManager.

Architecture position:
    Services -- external-facing facade over JournalLifecycleManager.
    Subsystems outside the ledger call this, never the manager directly.

Invariants enforced:
    - Idempotency: at most one journal per (tenant, source, source_id).
      The pre-check returns the existing journal; a concurrent duplicate
      that slips past it is stopped by the unique constraint and reported
      the same way.
    - Every account code must resolve.  A partial match posts nothing.
    - Adapter journals are created Posted, so period control applies.

Failure modes:
    - GLPostingResult(posted=False) with error_code MISSING_GL_ACCOUNT,
      JOURNAL_IMBALANCE, OUTSIDE_OPEN_PERIOD, PERSISTENCE_FAILURE, or an
      access error code.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID

from gl_config.schema import LedgerSettings
from gl_kernel.domain.dtos import (
    DocumentLine,
    JournalInput,
    JournalLineInput,
    SourceDocumentRef,
    TenantContext,
)
from gl_kernel.domain.tenancy import resolve_tenant
from gl_kernel.domain.values import to_money
from gl_kernel.exceptions import DuplicateSourceDocumentError, GLKernelError
from gl_kernel.logging_config import LogContext, get_logger
from gl_kernel.models.journal import JournalSource, JournalStatus
from gl_kernel.repositories.base import LedgerStore
from gl_kernel.services.account_service import AccountService
from gl_services.journal_lifecycle import JournalLifecycleManager
from gl_services.results import GLPostingResult, OperationResult, PostingStatusInfo

logger = get_logger("services.gl_posting")


class GLPostingAdapter:
    """
    Source document to ledger bridge.

    Contract:
        ``post_document_to_gl`` takes account-code lines; ``post_invoice``
        and ``post_bill`` build the standard two-line entries from a
        document total.

    Guarantees:
        - Never raises for business or storage failures; returns a
          GLPostingResult instead.
        - Calling twice for the same document creates one journal.
    """

    def __init__(
        self,
        store: LedgerStore,
        manager: JournalLifecycleManager,
        settings: LedgerSettings | None = None,
    ):
        self._store = store
        self._manager = manager
        self._settings = settings or LedgerSettings()

    def post_document_to_gl(
        self,
        tenant: TenantContext | None,
        source_ref: SourceDocumentRef,
        lines: Sequence[DocumentLine],
        tenant_id: UUID | str | None = None,
    ) -> GLPostingResult:
        """Post a source document whose lines name account codes."""
        return self._post(tenant, source_ref, lines, tenant_id, provision_defaults=False)

    def _post(
        self,
        tenant: TenantContext | None,
        source_ref: SourceDocumentRef,
        lines: Sequence[DocumentLine],
        tenant_id: UUID | str | None,
        *,
        provision_defaults: bool,
    ) -> GLPostingResult:
        with LogContext.bind(source=source_ref.source.value):
            try:
                resolved = resolve_tenant(tenant, tenant_id)
                with self._store.transaction() as uow:
                    existing = uow.journals.find_by_source(
                        resolved, source_ref.source, source_ref.source_id
                    )
                    if existing is None:
                        accounts = AccountService(uow)
                        if provision_defaults:
                            accounts.ensure_default_accounts(
                                resolved, self._settings.default_accounts
                            )
                        resolved_accounts = accounts.resolve_codes(
                            resolved, [line.account_code for line in lines]
                        )
            except GLKernelError as exc:
                return self._rejected(source_ref, exc)

            if existing is not None:
                logger.info(
                    "gl_posting_already_posted",
                    extra={
                        "source_id": source_ref.source_id,
                        "journal_number": existing.journal_number,
                    },
                )
                return GLPostingResult.existing(existing)

            data = JournalInput(
                transaction_date=source_ref.transaction_date,
                description=source_ref.description,
                reference=source_ref.reference,
                source=source_ref.source,
                source_id=source_ref.source_id,
                status=JournalStatus.POSTED,
                lines=tuple(
                    JournalLineInput(
                        account_id=resolved_accounts[line.account_code].id,
                        debit=line.debit,
                        credit=line.credit,
                        description=line.description,
                    )
                    for line in lines
                ),
            )
            result = self._manager.create_journal(data, tenant, resolved)

            if result.error_code == DuplicateSourceDocumentError.code:
                return self._existing_after_race(resolved, source_ref, result)

            if result.success:
                logger.info(
                    "gl_posting_completed",
                    extra={
                        "source_id": source_ref.source_id,
                        "journal_number": result.journal_number,
                    },
                )
            return GLPostingResult.from_operation(result)

    def _existing_after_race(
        self,
        tenant_id: str,
        source_ref: SourceDocumentRef,
        result: OperationResult,
    ) -> GLPostingResult:
        try:
            with self._store.transaction() as uow:
                existing = uow.journals.find_by_source(
                    tenant_id, source_ref.source, source_ref.source_id
                )
        except GLKernelError as exc:
            return self._rejected(source_ref, exc)
        if existing is None:
            return GLPostingResult.from_operation(result)
        logger.info(
            "gl_posting_duplicate_race",
            extra={
                "source_id": source_ref.source_id,
                "journal_number": existing.journal_number,
            },
        )
        return GLPostingResult.existing(existing)

    @staticmethod
    def _rejected(source_ref: SourceDocumentRef, exc: GLKernelError) -> GLPostingResult:
        logger.warning(
            "gl_posting_rejected",
            extra={
                "source_id": source_ref.source_id,
                "error_code": exc.code,
                "error": str(exc),
            },
        )
        return GLPostingResult.failed(str(exc), exc.code)

    # ------------------------------------------------------------------
    # Standard documents
    # ------------------------------------------------------------------

    def post_invoice(
        self,
        tenant: TenantContext | None,
        invoice_id: UUID | str,
        invoice_number: str,
        total: Decimal | str | int,
        issue_date: date,
        client_name: str | None = None,
        tenant_id: UUID | str | None = None,
    ) -> GLPostingResult:
        """Dr Accounts Receivable / Cr Sales Revenue for the invoice total."""
        amount = to_money(total)
        codes = self._settings.posting_accounts
        source_ref = SourceDocumentRef(
            source=JournalSource.RECEIVABLES,
            source_id=str(invoice_id),
            transaction_date=issue_date,
            description=f"Invoice Sent: {invoice_number}",
            reference=invoice_number,
        )
        lines = (
            DocumentLine(
                account_code=codes.receivables,
                debit=amount,
                description=f"Accounts Receivable - {client_name or 'Client'}",
            ),
            DocumentLine(
                account_code=codes.revenue,
                credit=amount,
                description=f"Sales Revenue - {invoice_number}",
            ),
        )
        return self._post(
            tenant,
            source_ref,
            lines,
            tenant_id,
            provision_defaults=self._settings.auto_provision_accounts,
        )

    def post_bill(
        self,
        tenant: TenantContext | None,
        bill_id: UUID | str,
        bill_number: str,
        total: Decimal | str | int,
        bill_date: date,
        vendor_name: str | None = None,
        vendor_invoice_number: str | None = None,
        tenant_id: UUID | str | None = None,
    ) -> GLPostingResult:
        """Dr Expenses / Cr Accounts Payable for the bill total."""
        amount = to_money(total)
        codes = self._settings.posting_accounts
        source_ref = SourceDocumentRef(
            source=JournalSource.PAYABLES,
            source_id=str(bill_id),
            transaction_date=bill_date,
            description=f"Bill Approval: {bill_number}",
            reference=bill_number,
        )
        lines = (
            DocumentLine(
                account_code=codes.expense,
                debit=amount,
                description=f"Bill Expense - {vendor_invoice_number or bill_number}",
            ),
            DocumentLine(
                account_code=codes.payables,
                credit=amount,
                description=f"Accounts Payable - {vendor_name or 'Vendor'}",
            ),
        )
        return self._post(
            tenant,
            source_ref,
            lines,
            tenant_id,
            provision_defaults=self._settings.auto_provision_accounts,
        )

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_posting_status(
        self,
        tenant: TenantContext | None,
        source: JournalSource,
        source_id: UUID | str,
        tenant_id: UUID | str | None = None,
    ) -> OperationResult:
        """``data`` is a PostingStatusInfo for the source document."""
        try:
            resolved = resolve_tenant(tenant, tenant_id)
            with self._store.transaction() as uow:
                journal = uow.journals.find_by_source(resolved, JournalSource(source), str(source_id))
        except GLKernelError as exc:
            return OperationResult.rejected(exc)

        if journal is None:
            return OperationResult.ok(data=PostingStatusInfo(posted=False))
        return OperationResult.ok(
            journal_id=journal.id,
            journal_number=journal.journal_number,
            data=PostingStatusInfo(
                posted=True,
                posted_at=journal.posted_at,
                journal_number=journal.journal_number,
                journal_id=journal.id,
                status=journal.status,
            ),
        )
