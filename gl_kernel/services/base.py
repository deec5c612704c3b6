"""
BaseService -- abstract base for unit-of-work scoped kernel services.

Responsibility:
    Common constructor for every kernel service that reads or writes inside
    a caller-owned transaction.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    Transaction boundaries: services write through the unit of work they
    are given and never open, commit or roll back a transaction.  The
    caller (JournalLifecycleManager, the period and chart-of-accounts
    facades, or a test harness) owns the ``store.transaction()`` block.

Failure modes:
    - A service used after its transaction block has exited writes into a
      closed session (SQL) or an unlocked state (memory).  Construct
      services inside the block.
"""

from abc import ABC

from gl_kernel.repositories.base import LedgerUnitOfWork


class BaseService(ABC):
    """
    Abstract base class for unit-of-work scoped kernel services.

    Contract:
        Accepts a LedgerUnitOfWork from the caller.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide query-only listings -- those belong in
          ``gl_kernel/selectors/``.
    """

    def __init__(self, uow: LedgerUnitOfWork):
        self.uow = uow
