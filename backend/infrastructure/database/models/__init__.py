"""
SQLAlchemy database models.
"""

from .audit import AuditAction, AuditEntityType, AuditLogEntry
from .base import Base, TimestampMixin
from .content import Chapter, ContentStatus, Topic, TopicVersion
from .curriculum import Subject
from .reader import Bookmark
from .user import User, UserRole, UserStatus

__all__ = [
    "Base",
    "TimestampMixin",
    "User",
    "UserRole",
    "UserStatus",
    "Subject",
    "Chapter",
    "Topic",
    "TopicVersion",
    "ContentStatus",
    "AuditLogEntry",
    "AuditAction",
    "AuditEntityType",
    "Bookmark",
]
