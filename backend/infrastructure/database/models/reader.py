"""
Reader-side models.
"""

from typing import Optional
from uuid import uuid4

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin
from .content import Topic


class Bookmark(Base, TimestampMixin):
    """A topic saved by a reader, with an optional private note."""

    __tablename__ = "bookmarks"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    topic_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("topics.id", ondelete="CASCADE"),
        nullable=False,
    )
    note: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    topic: Mapped["Topic"] = relationship("Topic", lazy="joined")

    __table_args__ = (
        UniqueConstraint("user_id", "topic_id", name="uq_bookmarks_user_topic"),
    )

    def __repr__(self) -> str:
        return f"<Bookmark(user_id={self.user_id}, topic_id={self.topic_id})>"
