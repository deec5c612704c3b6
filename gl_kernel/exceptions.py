"""
Typed Exception Hierarchy for the GL Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers branch on *what* went wrong, never on message wording.  Every
exception here carries:
  1. A TYPED class (catch by type, not message)
  2. A class-level CODE (machine-readable, API-safe)
  3. Structured DATA as attributes (journal id, totals, account codes)

Kernel services raise these.  The outer facades in ``gl_services`` catch
them at the boundary and convert them into result objects, so business
failures (imbalance, locked journal, closed period) reach UI actions and
adapters as values, not as exceptions.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    GLKernelError (base)
    |
    +-- AccessError
    |   +-- UnauthenticatedError
    |   +-- NoActiveTenantError
    |
    +-- JournalError
    |   +-- InvalidJournalError
    |   +-- JournalImbalanceError
    |   +-- JournalNotFoundError
    |   +-- JournalLockedError
    |   |   +-- AlreadyPostedError
    |   |   +-- AlreadyVoidedError
    |   +-- JournalNotPostedError
    |
    +-- PeriodError
    |   +-- OutsideOpenPeriodError
    |   +-- PeriodNotFoundError
    |   +-- PeriodOverlapError
    |   +-- InvalidPeriodRangeError
    |   +-- PeriodTransitionError
    |
    +-- AccountError
    |   +-- AccountNotFoundError
    |   +-- MissingGLAccountError
    |
    +-- PersistenceError
        +-- PersistenceFailureError
        +-- JournalWriteConflictError      (retryable)
        +-- DuplicateSourceDocumentError   (idempotency race)

===============================================================================
"""

from uuid import UUID


class GLKernelError(Exception):
    """
    Base exception for all GL kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "GL_KERNEL_ERROR"


def root_cause_message(exc: BaseException, default: str = "Database error") -> str:
    """
    Extract the innermost human-readable message from an exception chain.

    Follows DBAPI ``orig`` wrappers (SQLAlchemy) and ``__cause__`` /
    ``__context__`` links.  Returns ``default`` when nothing in the chain
    carries a message.
    """
    seen: set[int] = set()
    current: BaseException | None = exc
    message = ""
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        text = str(current).strip()
        if text:
            message = text
        nxt = getattr(current, "orig", None)
        if not isinstance(nxt, BaseException):
            nxt = current.__cause__ or current.__context__
        current = nxt
    return message.splitlines()[0] if message else default


# Access / tenancy


class AccessError(GLKernelError):
    """Base exception for caller-context failures."""

    code: str = "ACCESS_ERROR"


class UnauthenticatedError(AccessError):
    """No authenticated user on the request."""

    code: str = "UNAUTHENTICATED"

    def __init__(self):
        super().__init__("Unauthorized")


class NoActiveTenantError(AccessError):
    """Neither an explicit tenant nor a session tenant was supplied."""

    code: str = "NO_ACTIVE_TENANT"

    def __init__(self):
        super().__init__("No active organization")


# Journal exceptions


class JournalError(GLKernelError):
    """Base exception for journal-related errors."""

    code: str = "JOURNAL_ERROR"


class InvalidJournalError(JournalError):
    """Journal payload fails structural validation."""

    code: str = "INVALID_JOURNAL"

    def __init__(self, reason: str, field: str | None = None):
        self.reason = reason
        self.field = field
        super().__init__(reason)


class JournalImbalanceError(JournalError):
    """Total debits and total credits differ by more than the tolerance."""

    code: str = "JOURNAL_IMBALANCE"

    def __init__(self, difference: str, total_debits: str, total_credits: str):
        self.difference = difference
        self.total_debits = total_debits
        self.total_credits = total_credits
        super().__init__(
            f"Journal is not balanced. Difference: {difference} "
            f"(debits: {total_debits}, credits: {total_credits})"
        )


class JournalNotFoundError(JournalError):
    """Journal does not exist for the resolved tenant."""

    code: str = "JOURNAL_NOT_FOUND"

    def __init__(self, journal_id: UUID | str):
        self.journal_id = str(journal_id)
        super().__init__("Journal not found")


class JournalLockedError(JournalError):
    """Journal is not a draft and therefore cannot be edited or deleted."""

    code: str = "JOURNAL_LOCKED"

    REASON_ALREADY_POSTED = "already-posted"
    REASON_VOIDED = "voided"
    REASON_NOT_DRAFT = "not-draft"

    def __init__(self, journal_id: UUID | str, reason: str, message: str | None = None):
        self.journal_id = str(journal_id)
        self.reason = reason
        super().__init__(
            message
            or "Only draft journals can be edited or deleted. "
            "Posted or voided journals are locked."
        )


class AlreadyPostedError(JournalLockedError):
    """Journal has already been posted."""

    code: str = "ALREADY_POSTED"

    def __init__(self, journal_id: UUID | str):
        super().__init__(
            journal_id,
            JournalLockedError.REASON_ALREADY_POSTED,
            "Journal is already posted",
        )


class AlreadyVoidedError(JournalLockedError):
    """Journal has been voided and is terminal."""

    code: str = "ALREADY_VOIDED"

    def __init__(self, journal_id: UUID | str, message: str = "Cannot post a voided journal"):
        super().__init__(journal_id, JournalLockedError.REASON_VOIDED, message)


class JournalNotPostedError(JournalError):
    """Void requested for a journal that was never posted."""

    code: str = "JOURNAL_NOT_POSTED"

    def __init__(self, journal_id: UUID | str, status: str):
        self.journal_id = str(journal_id)
        self.status = status
        super().__init__(
            f"Only posted journals can be voided (current status: {status})"
        )


# Period exceptions


class PeriodError(GLKernelError):
    """Base exception for period-related errors."""

    code: str = "PERIOD_ERROR"


class OutsideOpenPeriodError(PeriodError):
    """Periods are configured but none that is open contains the date."""

    code: str = "OUTSIDE_OPEN_PERIOD"

    def __init__(self, transaction_date: str):
        self.transaction_date = transaction_date
        super().__init__(
            "Transaction date falls outside an open period. "
            "Open a period that includes this date or change the transaction date."
        )


class PeriodNotFoundError(PeriodError):
    """Period does not exist for the resolved tenant."""

    code: str = "PERIOD_NOT_FOUND"

    def __init__(self, period_id: UUID | str):
        self.period_id = str(period_id)
        super().__init__("Period not found")


class PeriodOverlapError(PeriodError):
    """New period date range overlaps an existing period."""

    code: str = "PERIOD_OVERLAP"

    def __init__(
        self,
        new_period_name: str,
        existing_period_name: str,
        overlap_start: str,
        overlap_end: str,
    ):
        self.new_period_name = new_period_name
        self.existing_period_name = existing_period_name
        self.overlap_start = overlap_start
        self.overlap_end = overlap_end
        super().__init__(
            f"Period {new_period_name} overlaps with {existing_period_name} "
            f"({overlap_start} to {overlap_end})"
        )


class InvalidPeriodRangeError(PeriodError):
    """Period start date is after its end date."""

    code: str = "INVALID_PERIOD_RANGE"

    def __init__(self, start_date: str, end_date: str):
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(f"start_date ({start_date}) cannot be after end_date ({end_date})")


class PeriodTransitionError(PeriodError):
    """Requested period status change is not allowed."""

    code: str = "PERIOD_TRANSITION_INVALID"

    def __init__(self, period_name: str, from_status: str, to_status: str):
        self.period_name = period_name
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Period {period_name} cannot move from {from_status} to {to_status}"
        )


# Account exceptions


class AccountError(GLKernelError):
    """Base exception for account-related errors."""

    code: str = "ACCOUNT_ERROR"


class AccountNotFoundError(AccountError):
    """One or more referenced accounts do not exist for the tenant."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_ids: list[str]):
        self.account_ids = account_ids
        super().__init__(f"GL account not found: {', '.join(account_ids)}")


class MissingGLAccountError(AccountError):
    """Account codes required by a posting adapter are not configured.

    ``codes`` is the full set the posting needed; ``missing`` the subset
    that did not resolve.
    """

    code: str = "MISSING_GL_ACCOUNT"

    def __init__(self, codes: list[str], missing: list[str] | None = None):
        self.codes = codes
        self.missing = missing if missing is not None else list(codes)
        super().__init__(f"GL accounts {' or '.join(codes)} not found.")


# Persistence exceptions


class PersistenceError(GLKernelError):
    """Base exception for storage-layer failures."""

    code: str = "PERSISTENCE_ERROR"


class PersistenceFailureError(PersistenceError):
    """Storage failed; message is the unwrapped root cause."""

    code: str = "PERSISTENCE_FAILURE"

    def __init__(self, message: str):
        self.detail = message
        super().__init__(message)


class JournalWriteConflictError(PersistenceError):
    """Journal number collided with a concurrent writer. Safe to retry."""

    code: str = "JOURNAL_WRITE_CONFLICT"

    def __init__(self, journal_number: str):
        self.journal_number = journal_number
        super().__init__(f"Journal number {journal_number} is already taken")


class DuplicateSourceDocumentError(PersistenceError):
    """A journal already exists for the (source, source_id) pair."""

    code: str = "DUPLICATE_SOURCE_DOCUMENT"

    def __init__(self, source: str, source_id: str):
        self.source = source
        self.source_id = source_id
        super().__init__(f"Source document {source}/{source_id} already has a journal")
