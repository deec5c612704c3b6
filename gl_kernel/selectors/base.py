"""
Module: gl_kernel.selectors.base
Responsibility: Abstract base class for read-only query selectors -- the
    query side of the kernel.
Architecture position: Kernel > Selectors.  May import from repositories/
    and domain/.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only access: selectors never call a repository write method.
    - DTO return convention: selectors return frozen DTOs.
    - The caller owns the unit of work and its transaction scope.

Failure modes:
    - Returns None or an empty list on absence of data; never raises on it.
"""

from abc import ABC

from gl_kernel.repositories.base import LedgerUnitOfWork


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Accepts a LedgerUnitOfWork from the caller and performs read-only
        queries through its repositories.
    """

    def __init__(self, uow: LedgerUnitOfWork):
        self.uow = uow
