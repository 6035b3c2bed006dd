"""
Content API schemas for subjects, chapters, topics and topic versions.
"""

from datetime import datetime
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from core.domain.content import ContentStatus, allowed_actions
from infrastructure.database.models.base import as_utc

SLUG_PATTERN = r"^[a-z0-9-]+$"


class _PartialUpdate(BaseModel):
    """Base for PATCH bodies: only supplied fields count as changes."""

    model_config = ConfigDict(extra="forbid")

    nullable_fields: ClassVar[frozenset[str]] = frozenset()

    def changes(self, exclude: frozenset[str] = frozenset()) -> dict[str, Any]:
        """Supplied fields, dropping explicit nulls on non-nullable columns."""
        return {
            name: value
            for name, value in self.model_dump(exclude_unset=True).items()
            if name not in exclude and (value is not None or name in self.nullable_fields)
        }


# ============================================================================
# Subject Schemas
# ============================================================================


class SubjectResponse(BaseModel):
    """Subject response."""

    id: str
    code: str
    name: str
    slug: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SubjectListResponse(BaseModel):
    items: list[SubjectResponse]
    total: int


# ============================================================================
# Chapter Schemas
# ============================================================================


class ChapterCreateRequest(BaseModel):
    """Request to create a chapter."""

    subject_id: str
    title: str = Field(..., min_length=1, max_length=200)
    slug: str = Field(..., min_length=1, max_length=100, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    order: Optional[int] = Field(None, ge=0)


class ChapterUpdateRequest(_PartialUpdate):
    """Request to update a chapter. Only supplied fields are applied."""

    nullable_fields: ClassVar[frozenset[str]] = frozenset({"description"})

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = Field(None, min_length=1, max_length=100, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    order: Optional[int] = Field(None, ge=0)
    status: Optional[ContentStatus] = None
    is_visible: Optional[bool] = None


class ReorderRequest(BaseModel):
    """Ids in their new order; each id's order becomes its index."""

    ids: list[str] = Field(..., min_length=1)


class TopicSummary(BaseModel):
    """Topic item for chapter listings (no content body)."""

    id: str
    title: str
    slug: str
    excerpt: Optional[str] = None
    order: int
    status: str
    is_visible: bool

    model_config = ConfigDict(from_attributes=True)


class ChapterResponse(BaseModel):
    """Chapter response."""

    id: str
    subject_id: str
    title: str
    slug: str
    description: Optional[str] = None
    order: int
    status: str
    is_visible: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChapterDetailResponse(ChapterResponse):
    """Chapter with its topics in order."""

    topics: list[TopicSummary] = Field(default_factory=list)


class ChapterListResponse(BaseModel):
    items: list[ChapterDetailResponse]
    total: int


# ============================================================================
# Topic Schemas
# ============================================================================


class TopicCreateRequest(BaseModel):
    """Request to create a topic."""

    chapter_id: str
    title: str = Field(..., min_length=1, max_length=200)
    slug: str = Field(..., min_length=1, max_length=100, pattern=SLUG_PATTERN)
    content: str
    excerpt: Optional[str] = Field(None, max_length=500)
    order: Optional[int] = Field(None, ge=0)
    meta_title: Optional[str] = Field(None, max_length=100)
    meta_description: Optional[str] = Field(None, max_length=200)
    attachment_file_id: Optional[str] = Field(None, max_length=255)


class TopicUpdateRequest(_PartialUpdate):
    """Request to update a topic.

    ``changelog`` describes the new version when ``content`` changes.
    Status cannot be set here; use the workflow endpoints.
    """

    nullable_fields: ClassVar[frozenset[str]] = frozenset({
        "excerpt",
        "meta_title",
        "meta_description",
        "scheduled_at",
        "attachment_file_id",
    })

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = Field(None, min_length=1, max_length=100, pattern=SLUG_PATTERN)
    content: Optional[str] = None
    excerpt: Optional[str] = Field(None, max_length=500)
    order: Optional[int] = Field(None, ge=0)
    is_visible: Optional[bool] = None
    meta_title: Optional[str] = Field(None, max_length=100)
    meta_description: Optional[str] = Field(None, max_length=200)
    scheduled_at: Optional[datetime] = None
    attachment_file_id: Optional[str] = Field(None, max_length=255)
    changelog: Optional[str] = Field(None, max_length=500)

    @field_validator("scheduled_at")
    @classmethod
    def scheduled_at_in_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class ChapterSummary(BaseModel):
    id: str
    subject_id: str
    title: str
    slug: str

    model_config = ConfigDict(from_attributes=True)


class TopicResponse(BaseModel):
    """Topic response, always embedding its chapter."""

    id: str
    chapter_id: str
    title: str
    slug: str
    content: str
    excerpt: Optional[str] = None
    order: int
    status: str
    is_visible: bool
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    current_version: int
    attachment_file_id: Optional[str] = None
    created_by_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    chapter: ChapterSummary

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def workflow_actions(self) -> list[str]:
        """Workflow actions legal from the current status, for the editor."""
        return [action.value for action in allowed_actions(self.status)]


class TopicNavItem(BaseModel):
    id: str
    title: str
    slug: str
    order: int

    model_config = ConfigDict(from_attributes=True)


class TopicNavigation(BaseModel):
    prev: Optional[TopicNavItem] = None
    next: Optional[TopicNavItem] = None


class TopicDetailResponse(BaseModel):
    """Topic with prev/next links among its visible siblings."""

    topic: TopicResponse
    navigation: TopicNavigation


class TopicListResponse(BaseModel):
    items: list[TopicSummary]
    total: int


class RejectRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


# ============================================================================
# Topic Version Schemas
# ============================================================================


class VersionAuthor(BaseModel):
    id: str
    name: str

    model_config = ConfigDict(from_attributes=True)


class TopicVersionResponse(BaseModel):
    """Version item for list endpoints (no content body)."""

    id: str
    topic_id: str
    version: int
    changelog: Optional[str] = None
    created_by_id: Optional[str] = None
    author: Optional[VersionAuthor] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TopicVersionDetailResponse(TopicVersionResponse):
    """Full version snapshot."""

    content: str


class TopicVersionListResponse(BaseModel):
    items: list[TopicVersionResponse]
    total: int
