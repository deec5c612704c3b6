"""
Module: gl_kernel.db.base
Responsibility: Declarative base for the ledger tables.
Architecture position: Kernel > DB.  Imported by every model; imports nothing
    from the rest of the kernel.

Invariants enforced:
    - Money columns are Numeric(38, 9) through the annotation map, never float.
    - Every ledger row carries a tenant_id (opaque text); there are no
      cross-tenant tables.
    - Timestamps are stored timezone-aware.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, Date, DateTime, Numeric, func
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column
from sqlalchemy.types import String, TypeDecorator


class UUIDString(TypeDecorator):
    """UUID kept as its 36-character text form so SQLite and PostgreSQL share one schema."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class TenantKey(TypeDecorator):
    """
    Opaque tenant identifier.  Organisation keys such as ``org_abc123`` and
    UUIDs are both stored as their text form and read back as ``str``.
    """

    impl = String(64)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return value


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        date: Date,
        UUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TenantScoped:
    """Mixin adding the owning tenant.  Every query filters on it."""

    @declared_attr
    def tenant_id(cls) -> Mapped[str]:
        return mapped_column(TenantKey(), nullable=False)


class TrackedBase(TenantScoped, Base):
    """
    Tenant-owned row with created_at / updated_at.

    Repositories write both stamps from the service clock; the server
    defaults only cover rows inserted outside the kernel.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
