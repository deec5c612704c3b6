"""
gl_services.boundary -- the exception-to-result boundary shared by facades.

Every public facade call resolves the tenant, binds the log context, runs
its body and converts any GLKernelError into ``OperationResult.rejected``.
Other exceptions are logged with traceback and re-raised.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from uuid import UUID, uuid4

from gl_kernel.domain.dtos import TenantContext
from gl_kernel.domain.tenancy import resolve_tenant
from gl_kernel.exceptions import GLKernelError
from gl_kernel.logging_config import LogContext
from gl_services.results import OperationResult


def run_operation(
    logger: logging.Logger,
    operation: str,
    tenant: TenantContext | None,
    tenant_id: UUID | str | None,
    body: Callable[[str], OperationResult],
    *,
    journal_id: UUID | None = None,
) -> OperationResult:
    t0 = time.monotonic()
    with LogContext.bind(
        correlation_id=str(uuid4()),
        actor_id=tenant.user_id if tenant is not None else None,
        journal_id=journal_id,
    ):
        try:
            resolved = resolve_tenant(tenant, tenant_id)
            with LogContext.bind(tenant_id=resolved):
                result = body(resolved)
                logger.info(
                    "operation_completed",
                    extra={
                        "operation": operation,
                        "journal_number": result.journal_number,
                        "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                    },
                )
                return result
        except GLKernelError as exc:
            logger.warning(
                "operation_rejected",
                extra={
                    "operation": operation,
                    "error_code": exc.code,
                    "error": str(exc),
                    "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                },
            )
            return OperationResult.rejected(exc, journal_id=journal_id)
        except Exception:
            logger.error(
                "operation_failed",
                extra={"operation": operation},
                exc_info=True,
            )
            raise
