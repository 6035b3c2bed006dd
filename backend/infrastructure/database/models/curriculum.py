"""
Curriculum reference data.

Only the subject level is modelled; chapters hang off subjects and the rest of
the institutional hierarchy is owned elsewhere.
"""

from typing import Optional
from uuid import uuid4

from sqlalchemy import String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class Subject(Base, TimestampMixin):
    """A subject within a semester of a programme."""

    __tablename__ = "subjects"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    code: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Subject(id={self.id}, code={self.code})>"
