"""
GL services -- the public facades of the General Ledger engine.

Import from here:
    from gl_services import GeneralLedger, JournalLifecycleManager, GLPostingAdapter
"""

from gl_services.chart_of_accounts import ChartOfAccounts
from gl_services.gl_posting_adapter import GLPostingAdapter
from gl_services.journal_lifecycle import JournalLifecycleManager
from gl_services.ledger import GeneralLedger
from gl_services.period_admin import PeriodAdministration
from gl_services.results import GLPostingResult, OperationResult, PostingStatusInfo
from gl_services.revalidation import ChangeNotifier, LedgerChange, LedgerView

__all__ = [
    "ChangeNotifier",
    "ChartOfAccounts",
    "GLPostingAdapter",
    "GLPostingResult",
    "GeneralLedger",
    "JournalLifecycleManager",
    "LedgerChange",
    "LedgerView",
    "OperationResult",
    "PeriodAdministration",
    "PostingStatusInfo",
]
