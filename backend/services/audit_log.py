"""
Audit log sink.

Entries are added to the caller's session and flushed, never committed here:
they become durable together with the mutation they describe, and a failed
flush aborts that mutation.
"""

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.caller import CallerContext, require_role
from core.domain.user import UserRole
from infrastructure.database.models.audit import AuditAction, AuditEntityType, AuditLogEntry

logger = logging.getLogger(__name__)


class AuditLogSink:
    """Append-only writer and admin reader for the audit trail."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record(
        self,
        action: AuditAction,
        entity_type: AuditEntityType,
        entity_id: str,
        entity_name: Optional[str],
        actor_id: Optional[str],
        changes: Optional[dict] = None,
    ) -> AuditLogEntry:
        """Append an entry within the current transaction."""
        entry = AuditLogEntry(
            action=AuditAction(action).value,
            entity_type=AuditEntityType(entity_type).value,
            entity_id=entity_id,
            entity_name=entity_name,
            actor_id=actor_id,
            changes=changes,
        )
        self.db.add(entry)
        await self.db.flush()
        logger.debug(
            "audit %s %s %s",
            entry.action,
            entry.entity_type,
            entry.entity_id,
            extra={
                "action": entry.action,
                "entity_type": entry.entity_type,
                "entity_id": entry.entity_id,
                "actor_id": actor_id,
            },
        )
        return entry

    async def list_entries(
        self,
        caller: CallerContext,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        action: Optional[str] = None,
        actor_id: Optional[str] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> tuple[list[AuditLogEntry], int]:
        """List entries newest first. Admins only."""
        require_role(caller, UserRole.ADMIN)

        query = select(AuditLogEntry)
        if entity_type:
            query = query.where(AuditLogEntry.entity_type == entity_type)
        if entity_id:
            query = query.where(AuditLogEntry.entity_id == entity_id)
        if action:
            query = query.where(AuditLogEntry.action == action)
        if actor_id:
            query = query.where(AuditLogEntry.actor_id == actor_id)

        total = (
            await self.db.execute(select(func.count()).select_from(query.subquery()))
        ).scalar() or 0

        result = await self.db.execute(
            query.order_by(AuditLogEntry.created_at.desc(), AuditLogEntry.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list(result.scalars().all()), total
