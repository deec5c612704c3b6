"""
gl_services.revalidation -- "this ledger data changed" notifications.

Responsibility:
    Tells the presentation layer which cached views of a tenant's ledger are
    stale after a successful mutation.  How a listener invalidates its cache
    is its own business; the engine only reports the change.

Architecture position:
    Services.  Published by JournalLifecycleManager and PeriodAdministration
    after their transaction commits.

Invariants enforced:
    - Listeners run only after commit, never for a rejected operation.
    - A failing listener is logged and skipped; it cannot undo or fail the
      mutation, and later listeners still run.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID

from gl_kernel.logging_config import get_logger

logger = get_logger("services.revalidation")


class LedgerView(str, Enum):
    """Cached views a ledger mutation can make stale."""

    JOURNALS = "journals"
    JOURNAL_DETAIL = "journal_detail"
    GL_REPORTS = "gl_reports"
    CHART_OF_ACCOUNTS = "chart_of_accounts"
    PERIODS = "periods"


JOURNAL_VIEWS: frozenset[LedgerView] = frozenset(
    {
        LedgerView.JOURNALS,
        LedgerView.JOURNAL_DETAIL,
        LedgerView.GL_REPORTS,
        LedgerView.CHART_OF_ACCOUNTS,
    }
)
PERIOD_VIEWS: frozenset[LedgerView] = frozenset({LedgerView.PERIODS, LedgerView.GL_REPORTS})


@dataclass(frozen=True)
class LedgerChange:
    tenant_id: str
    action: str
    views: frozenset[LedgerView] = JOURNAL_VIEWS
    journal_id: UUID | None = None
    account_ids: frozenset[UUID] = field(default_factory=frozenset)


LedgerListener = Callable[[LedgerChange], None]


class ChangeNotifier:
    """
    Fan-out of LedgerChange events to registered listeners.

    Contract:
        ``subscribe`` returns a callable that removes the listener again.

    Guarantees:
        - Listeners are called in subscription order on the publishing
          thread.
    """

    def __init__(self) -> None:
        self._listeners: list[LedgerListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: LedgerListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def publish(self, change: LedgerChange) -> None:
        with self._lock:
            listeners = list(self._listeners)

        logger.debug(
            "ledger_change_published",
            extra={
                "tenant_id": str(change.tenant_id),
                "action": change.action,
                "views": sorted(v.value for v in change.views),
                "listener_count": len(listeners),
            },
        )
        for listener in listeners:
            try:
                listener(change)
            except Exception:
                logger.error(
                    "ledger_listener_failed",
                    extra={
                        "tenant_id": str(change.tenant_id),
                        "action": change.action,
                        "listener": getattr(listener, "__qualname__", repr(listener)),
                    },
                    exc_info=True,
                )

    def __len__(self) -> int:
        return len(self._listeners)
