"""
Read-only lookups into the curriculum hierarchy.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.errors import NotFoundError
from infrastructure.database.models.curriculum import Subject


class CurriculumStore:
    """Subject existence checks for the content engine."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_subject(self, subject_id: str) -> Subject:
        subject = await self.db.get(Subject, subject_id)
        if subject is None:
            raise NotFoundError("Subject not found")
        return subject

    async def subject_exists(self, subject_id: str) -> bool:
        result = await self.db.execute(select(Subject.id).where(Subject.id == subject_id))
        return result.scalar_one_or_none() is not None

    async def list_subjects(self) -> list[Subject]:
        result = await self.db.execute(select(Subject).order_by(Subject.code, Subject.name))
        return list(result.scalars().all())
