"""
Subject lookup routes.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.content import SubjectListResponse, SubjectResponse
from infrastructure.database.connection import get_db
from services.curriculum import CurriculumStore

router = APIRouter(prefix="/subjects", tags=["Subjects"])


@router.get("", response_model=SubjectListResponse)
async def list_subjects(db: AsyncSession = Depends(get_db)):
    subjects = await CurriculumStore(db).list_subjects()
    return SubjectListResponse(
        items=[SubjectResponse.model_validate(s) for s in subjects],
        total=len(subjects),
    )


@router.get("/{subject_id}", response_model=SubjectResponse)
async def get_subject(subject_id: str, db: AsyncSession = Depends(get_db)):
    return await CurriculumStore(db).get_subject(subject_id)
