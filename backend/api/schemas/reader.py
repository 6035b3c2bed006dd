"""
Reader API schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .content import ChapterSummary


class BookmarkCreateRequest(BaseModel):
    topic_id: str
    note: Optional[str] = Field(None, max_length=1000)


class BookmarkedTopic(BaseModel):
    id: str
    title: str
    slug: str
    excerpt: Optional[str] = None
    chapter: ChapterSummary

    model_config = ConfigDict(from_attributes=True)


class BookmarkResponse(BaseModel):
    """Bookmark with the topic it points at."""

    id: str
    topic_id: str
    note: Optional[str] = None
    created_at: datetime
    topic: BookmarkedTopic

    model_config = ConfigDict(from_attributes=True)


class BookmarkListResponse(BaseModel):
    items: list[BookmarkResponse]
    total: int


class BookmarkCheckResponse(BaseModel):
    is_bookmarked: bool
