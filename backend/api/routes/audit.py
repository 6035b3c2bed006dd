"""
Audit log routes (admin only).
"""

import math
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_caller
from api.schemas.audit import AuditLogEntryResponse, AuditLogListResponse
from core.domain.caller import CallerContext
from infrastructure.config.settings import settings
from infrastructure.database.connection import get_db
from infrastructure.database.models.audit import AuditAction, AuditEntityType
from services.audit_log import AuditLogSink

router = APIRouter(prefix="/audit-logs", tags=["Audit"])


@router.get("", response_model=AuditLogListResponse)
async def list_audit_logs(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=settings.audit_page_size_max, description="Items per page"),
    entity_type: Optional[AuditEntityType] = Query(None, description="Filter by entity type"),
    entity_id: Optional[str] = Query(None, description="Filter by entity ID"),
    action: Optional[AuditAction] = Query(None, description="Filter by action"),
    actor_id: Optional[str] = Query(None, description="Filter by actor"),
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """
    List audit log entries, newest first.

    Entries are append-only; there is no endpoint to change or remove them.
    """
    items, total = await AuditLogSink(db).list_entries(
        caller,
        entity_type=entity_type.value if entity_type else None,
        entity_id=entity_id,
        action=action.value if action else None,
        actor_id=actor_id,
        page=page,
        page_size=page_size,
    )
    return AuditLogListResponse(
        items=[AuditLogEntryResponse.model_validate(entry) for entry in items],
        total=total,
        page=page,
        page_size=page_size,
        pages=math.ceil(total / page_size) if total else 0,
    )
