"""
gl_services.ledger -- wiring for the GL engine.

Responsibility:
    Builds every GL facade exactly once over one LedgerStore, sharing the
    clock, settings, balance recalculator and change notifier.  This is the
    only place the facades are composed.

Architecture position:
    Services -- top of the service layer.  Callers that already own a
    store construct ``GeneralLedger(store, ...)``; process start-up code
    calls ``GeneralLedger.from_settings()``.

Invariants enforced:
    - One ChangeNotifier per ledger, so a listener subscribed once hears
      journal, period and chart-of-accounts changes alike.
    - One BalanceRecalculator, bounded by settings.recalc_max_workers.

Failure modes:
    - ``from_settings`` raises ValueError when no database_url is
      configured and no store is given.
"""

from __future__ import annotations

from gl_config import get_active_config
from gl_config.schema import LedgerSettings
from gl_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url
from gl_kernel.domain.clock import Clock, SystemClock
from gl_kernel.logging_config import configure_logging, get_logger
from gl_kernel.repositories.base import LedgerStore
from gl_kernel.repositories.sql import SqlLedgerStore
from gl_kernel.services.balance_service import BalanceRecalculator
from gl_services.chart_of_accounts import ChartOfAccounts
from gl_services.gl_posting_adapter import GLPostingAdapter
from gl_services.journal_lifecycle import JournalLifecycleManager
from gl_services.period_admin import PeriodAdministration
from gl_services.revalidation import ChangeNotifier

logger = get_logger("services.ledger")


class GeneralLedger:
    """
    Central factory for the GL facades.

    Contract:
        Exposes ``journals``, ``posting``, ``periods`` and ``accounts``
        plus the shared ``notifier`` and ``recalculator``.

    Non-goals:
        - Does NOT own transactions; each facade call opens its own.
    """

    def __init__(
        self,
        store: LedgerStore,
        settings: LedgerSettings | None = None,
        clock: Clock | None = None,
    ):
        self.store = store
        self.settings = settings or LedgerSettings()
        self.clock = clock or SystemClock()

        self.notifier = ChangeNotifier()
        self.recalculator = BalanceRecalculator(store, max_workers=self.settings.recalc_max_workers)

        self.journals = JournalLifecycleManager(
            store,
            clock=self.clock,
            settings=self.settings,
            notifier=self.notifier,
            recalculator=self.recalculator,
        )
        self.posting = GLPostingAdapter(store, self.journals, settings=self.settings)
        self.periods = PeriodAdministration(store, clock=self.clock, notifier=self.notifier)
        self.accounts = ChartOfAccounts(store, settings=self.settings, notifier=self.notifier)

    @classmethod
    def from_settings(
        cls,
        settings: LedgerSettings | None = None,
        clock: Clock | None = None,
        *,
        create_schema: bool = False,
    ) -> GeneralLedger:
        """Initialise logging and the SQLAlchemy engine, then wire the ledger."""
        settings = settings or get_active_config()
        if not settings.database_url:
            raise ValueError("database_url is not configured (set DATABASE_URL)")

        configure_logging(level=settings.log_level.upper())
        init_engine_from_url(settings.database_url)
        if create_schema:
            create_tables()

        logger.info(
            "general_ledger_started",
            extra={"config_checksum": settings.checksum},
        )
        return cls(SqlLedgerStore(get_session_factory()), settings=settings, clock=clock)
