"""
Service layer for business logic.

Each service takes the request's ``AsyncSession`` explicitly.
"""

from services.audit_log import AuditLogSink
from services.content_revision import ChapterView, ContentRevisionEngine, TopicView
from services.curriculum import CurriculumStore
from services.reader import ReaderService
from services.review_workflow import ReviewWorkflowCoordinator

__all__ = [
    "AuditLogSink",
    "ChapterView",
    "ContentRevisionEngine",
    "CurriculumStore",
    "ReaderService",
    "ReviewWorkflowCoordinator",
    "TopicView",
]
