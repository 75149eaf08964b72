"""
Append-only audit recording.

Entries are added to the caller's unit of work and flushed immediately, so
they commit or roll back together with the mutation they describe. There is
intentionally no update or delete path.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.tenancy import VerifiedContext
from app.models.audit_log import AuditLogEntry

log = structlog.get_logger()


async def record_audit(
    db: AsyncSession,
    ctx: VerifiedContext,
    action: str,
    entity_type: str,
    entity_id: Any,
    metadata: Optional[dict[str, Any]] = None,
) -> AuditLogEntry:
    """Append one audit entry scoped to the caller's organization."""
    entry = AuditLogEntry(
        organization_id=ctx.organization_id,
        user_id=ctx.user_id,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        details=jsonable_encoder(metadata) if metadata is not None else None,
    )
    db.add(entry)
    await db.flush()
    log.debug("audit.recorded", action=action, entity_type=entity_type, entity_id=str(entity_id))
    return entry


async def list_audit_entries(
    db: AsyncSession, ctx: VerifiedContext, limit: int = 100
) -> list[AuditLogEntry]:
    """Newest-first audit trail of the caller's organization."""
    result = await db.execute(
        select(AuditLogEntry)
        .where(AuditLogEntry.organization_id == ctx.organization_id)
        .order_by(AuditLogEntry.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
