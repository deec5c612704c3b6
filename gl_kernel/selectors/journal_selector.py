"""
Module: gl_kernel.selectors.journal_selector
Responsibility: Read-only, tenant-scoped access to journals and their lines.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Every query is filtered by tenant id.
    - Lines are returned in line_seq order.
    - Page size is capped at MAX_PAGE_SIZE.
"""

from uuid import UUID

from gl_kernel.domain.dtos import JournalInfo
from gl_kernel.models.journal import JournalSource
from gl_kernel.selectors.base import BaseSelector

MAX_PAGE_SIZE = 500


class JournalSelector(BaseSelector):
    """Selector for journal queries."""

    def list_journals(self, tenant_id: str, limit: int = 50, offset: int = 0) -> list[JournalInfo]:
        """Newest first by transaction date, then by journal number."""
        limit = max(0, min(limit, MAX_PAGE_SIZE))
        return self.uow.journals.list(tenant_id, limit=limit, offset=max(0, offset))

    def get_journal(self, tenant_id: str, journal_id: UUID) -> JournalInfo | None:
        return self.uow.journals.get(tenant_id, journal_id)

    def get_by_source(self, tenant_id: str, source: JournalSource, source_id: str) -> JournalInfo | None:
        return self.uow.journals.find_by_source(tenant_id, source, source_id)
