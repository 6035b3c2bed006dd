"""
Audit log API schemas.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class AuditLogEntryResponse(BaseModel):
    """Audit log entry response."""

    id: str
    action: str
    entity_type: str
    entity_id: str
    entity_name: Optional[str] = None
    actor_id: Optional[str] = None
    changes: Optional[dict[str, Any]] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuditLogListResponse(BaseModel):
    """Paginated audit log entries, newest first."""

    items: list[AuditLogEntryResponse]
    total: int
    page: int
    page_size: int
    pages: int
