"""Read-only query selectors."""

from gl_kernel.selectors.account_selector import AccountSelector
from gl_kernel.selectors.journal_selector import JournalSelector

__all__ = ["AccountSelector", "JournalSelector"]
