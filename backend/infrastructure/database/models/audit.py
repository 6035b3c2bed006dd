"""
Audit trail database model.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlalchemy import JSON, ForeignKey, Index, String, event
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UTCDateTime, utcnow


class AuditAction(str, Enum):
    """Audit log action tags."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    SUBMIT_REVIEW = "submit_review"
    APPROVE = "approve"
    PUBLISH = "publish"
    REJECT = "reject"
    ARCHIVE = "archive"
    RESTORE = "restore"


class AuditEntityType(str, Enum):
    """Kinds of entity an audit entry can point at."""

    SUBJECT = "subject"
    CHAPTER = "chapter"
    TOPIC = "topic"


class AuditLogEntry(Base):
    """Append-only record of a content mutation."""

    __tablename__ = "audit_log_entries"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    action: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    # No foreign key: entries outlive the entities they describe
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(36), nullable=False)
    entity_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    actor_id: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    changes: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    """
    Structure depends on the action, e.g.
    {"before": {...}, "after": {...}} for chapter updates,
    {"fields": ["title", "content"], "version": 2} for topic updates,
    {"outcome": "success", "from_status": "draft", "to_status": "in_review"} for workflow calls.
    """

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    __table_args__ = (
        Index("ix_audit_entity", "entity_type", "entity_id"),
        Index("ix_audit_created", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<AuditLogEntry(id={self.id}, action={self.action}, entity_id={self.entity_id})>"


@event.listens_for(AuditLogEntry, "before_update")
def _refuse_audit_update(mapper, connection, target: AuditLogEntry) -> None:
    raise RuntimeError("Audit log entries are append-only")


@event.listens_for(AuditLogEntry, "before_delete")
def _refuse_audit_delete(mapper, connection, target: AuditLogEntry) -> None:
    raise RuntimeError("Audit log entries are append-only")
