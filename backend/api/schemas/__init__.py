"""
API request and response schemas.
"""

from .audit import AuditLogEntryResponse, AuditLogListResponse
from .auth import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from .content import (
    ChapterCreateRequest,
    ChapterDetailResponse,
    ChapterListResponse,
    ChapterResponse,
    ChapterUpdateRequest,
    RejectRequest,
    ReorderRequest,
    SubjectListResponse,
    SubjectResponse,
    TopicCreateRequest,
    TopicDetailResponse,
    TopicListResponse,
    TopicResponse,
    TopicUpdateRequest,
    TopicVersionDetailResponse,
    TopicVersionListResponse,
)
from .reader import (
    BookmarkCheckResponse,
    BookmarkCreateRequest,
    BookmarkListResponse,
    BookmarkResponse,
)

__all__ = [
    "AuditLogEntryResponse",
    "AuditLogListResponse",
    "LoginRequest",
    "RegisterRequest",
    "TokenResponse",
    "UserResponse",
    "ChapterCreateRequest",
    "ChapterDetailResponse",
    "ChapterListResponse",
    "ChapterResponse",
    "ChapterUpdateRequest",
    "RejectRequest",
    "ReorderRequest",
    "SubjectListResponse",
    "SubjectResponse",
    "TopicCreateRequest",
    "TopicDetailResponse",
    "TopicListResponse",
    "TopicResponse",
    "TopicUpdateRequest",
    "TopicVersionDetailResponse",
    "TopicVersionListResponse",
    "BookmarkCheckResponse",
    "BookmarkCreateRequest",
    "BookmarkListResponse",
    "BookmarkResponse",
]
