"""
Content database models for chapters, topics and the topic version ledger.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    event,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.domain.content import ContentStatus

from .base import Base, TimestampMixin, UTCDateTime, utcnow
from .curriculum import Subject
from .user import User


class Chapter(Base, TimestampMixin):
    """Ordered grouping of topics under a subject."""

    __tablename__ = "chapters"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    subject_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("subjects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    order: Mapped[int] = mapped_column("sort_order", Integer, default=0, nullable=False)

    status: Mapped[str] = mapped_column(
        String(50),
        default=ContentStatus.DRAFT.value,
        nullable=False,
    )
    is_visible: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    subject: Mapped["Subject"] = relationship("Subject", lazy="joined")

    __table_args__ = (
        UniqueConstraint("subject_id", "slug", name="uq_chapters_subject_slug"),
        Index("ix_chapters_subject_order", "subject_id", "sort_order"),
    )

    def __repr__(self) -> str:
        return f"<Chapter(id={self.id}, slug={self.slug}, status={self.status})>"


class Topic(Base, TimestampMixin):
    """A documentation page with versioned Markdown content."""

    __tablename__ = "topics"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    chapter_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("chapters.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_by_id: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    excerpt: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    order: Mapped[int] = mapped_column("sort_order", Integer, default=0, nullable=False)

    status: Mapped[str] = mapped_column(
        String(50),
        default=ContentStatus.DRAFT.value,
        nullable=False,
        index=True,
    )
    is_visible: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # SEO hints
    meta_title: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    meta_description: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # Publishing
    scheduled_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(timezone=True), nullable=True
    )
    published_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(timezone=True), nullable=True
    )

    # Highest version number in the ledger; bumped with UPDATE ... SET n = n + 1
    current_version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Opaque reference to an uploaded file in object storage
    attachment_file_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    chapter: Mapped["Chapter"] = relationship("Chapter", lazy="joined")

    __table_args__ = (
        UniqueConstraint("chapter_id", "slug", name="uq_topics_chapter_slug"),
        Index("ix_topics_chapter_order", "chapter_id", "sort_order"),
    )

    def __repr__(self) -> str:
        return f"<Topic(id={self.id}, slug={self.slug}, status={self.status})>"


class TopicVersion(Base):
    """Immutable snapshot of a topic's content."""

    __tablename__ = "topic_versions"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    topic_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("topics.id", ondelete="CASCADE"),
        nullable=False,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    changelog: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_by_id: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    author: Mapped[Optional["User"]] = relationship("User", lazy="joined")

    __table_args__ = (
        UniqueConstraint("topic_id", "version", name="uq_topic_versions_topic_version"),
    )

    def __repr__(self) -> str:
        return f"<TopicVersion(topic_id={self.topic_id}, version={self.version})>"


@event.listens_for(TopicVersion, "before_update")
def _refuse_version_update(mapper, connection, target: TopicVersion) -> None:
    raise RuntimeError("Topic versions are immutable")
