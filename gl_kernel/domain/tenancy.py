"""
Tenancy -- explicit tenant resolution.

Responsibility:
    Turns a caller context plus an optional explicit tenant id into the one
    tenant id every engine call operates on.

Architecture position:
    Kernel > Domain -- pure, zero I/O.

Invariants enforced:
    - An explicit tenant id always wins over the session tenant.
    - Tenant ids are opaque text; nothing parses them.
    - There is no default tenant: absence of both is NoActiveTenantError.
    - Every call needs an authenticated user, checked before any storage work.
"""

from uuid import UUID

from gl_kernel.domain.dtos import TenantContext
from gl_kernel.exceptions import NoActiveTenantError, UnauthenticatedError


def _key(value: UUID | str | None) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def resolve_tenant(
    context: TenantContext | None,
    explicit_tenant_id: UUID | str | None = None,
) -> str:
    """
    Resolve the tenant for a call.

    Tenant ids are opaque keys: ``org_abc123`` and a UUID are equally valid
    and are returned in their text form.  A blank id counts as absent.

    Raises:
        UnauthenticatedError: No context or no user on the context.
        NoActiveTenantError: Neither explicit nor session tenant present.
    """
    if context is None or not context.user_id:
        raise UnauthenticatedError()
    tenant_id = _key(explicit_tenant_id) or _key(context.active_tenant_id)
    if tenant_id is None:
        raise NoActiveTenantError()
    return tenant_id
