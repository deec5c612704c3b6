"""
Repository interface tests.

Verifies:
- Return annotations naming ``list`` resolve to the builtin, even inside
  repository classes that define their own ``list`` method
"""

import typing

from gl_kernel.domain.dtos import AccountActivityLine, AccountingPeriodInfo, AccountInfo, JournalInfo
from gl_kernel.repositories.base import AccountRepository, JournalRepository, PeriodRepository


class TestListAnnotations:
    def test_journal_repository(self):
        assert typing.get_type_hints(JournalRepository.list)["return"] == list[JournalInfo]
        assert typing.get_type_hints(JournalRepository.account_activity)["return"] == list[AccountActivityLine]

    def test_account_repository(self):
        assert typing.get_type_hints(AccountRepository.list)["return"] == list[AccountInfo]

    def test_period_repository(self):
        assert typing.get_type_hints(PeriodRepository.list)["return"] == list[AccountingPeriodInfo]

    def test_annotations_are_deferred(self):
        # Evaluated eagerly, ``list[...]`` would hit the class's own method
        raw = JournalRepository.account_activity.__annotations__["return"]
        assert raw == "list[AccountActivityLine]"
