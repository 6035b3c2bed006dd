"""
Chapter API routes.

Reads are open to anonymous callers (published, visible content only);
mutations need a contributor, deletes a manager. Role checks live in
the content engine.
"""


from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_caller
from api.schemas.content import (
    ChapterCreateRequest,
    ChapterDetailResponse,
    ChapterListResponse,
    ChapterResponse,
    ChapterUpdateRequest,
    ReorderRequest,
    TopicListResponse,
    TopicSummary,
)
from core.domain.caller import CallerContext
from infrastructure.database.connection import get_db
from services.content_revision import ChapterView, ContentRevisionEngine

router = APIRouter(tags=["Chapters"])


def chapter_detail(view: ChapterView) -> ChapterDetailResponse:
    return ChapterDetailResponse(
        **ChapterResponse.model_validate(view.chapter).model_dump(),
        topics=[TopicSummary.model_validate(topic) for topic in view.topics],
    )


def chapter_list(views: list[ChapterView]) -> ChapterListResponse:
    return ChapterListResponse(items=[chapter_detail(v) for v in views], total=len(views))


@router.get("/subjects/{subject_id}/chapters", response_model=ChapterListResponse)
async def list_chapters(
    subject_id: str,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """List a subject's chapters in order, each with its topics."""
    views = await ContentRevisionEngine(db).list_chapters(subject_id, caller)
    return chapter_list(views)


@router.post("/subjects/{subject_id}/chapters/reorder", response_model=ChapterListResponse)
async def reorder_chapters(
    subject_id: str,
    body: ReorderRequest,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """Set each chapter's order to its index in ``ids``."""
    views = await ContentRevisionEngine(db).reorder_chapters(subject_id, body.ids, caller)
    return chapter_list(views)


@router.post("/chapters", response_model=ChapterResponse, status_code=status.HTTP_201_CREATED)
async def create_chapter(
    body: ChapterCreateRequest,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await ContentRevisionEngine(db).create_chapter(
        subject_id=body.subject_id,
        title=body.title,
        slug=body.slug,
        caller=caller,
        description=body.description,
        order=body.order,
    )


@router.get("/chapters/{chapter_id}", response_model=ChapterDetailResponse)
async def get_chapter(
    chapter_id: str,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    view = await ContentRevisionEngine(db).get_chapter(chapter_id, caller)
    return chapter_detail(view)


@router.patch("/chapters/{chapter_id}", response_model=ChapterResponse)
async def update_chapter(
    chapter_id: str,
    body: ChapterUpdateRequest,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await ContentRevisionEngine(db).update_chapter(chapter_id, body.changes(), caller)


@router.delete("/chapters/{chapter_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_chapter(
    chapter_id: str,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """Delete a chapter together with its topics and their history."""
    await ContentRevisionEngine(db).delete_chapter(chapter_id, caller)


@router.get("/chapters/{chapter_id}/topics", response_model=TopicListResponse)
async def list_topics(
    chapter_id: str,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    topics = await ContentRevisionEngine(db).list_topics(chapter_id, caller)
    return TopicListResponse(
        items=[TopicSummary.model_validate(t) for t in topics],
        total=len(topics),
    )


@router.post("/chapters/{chapter_id}/topics/reorder", response_model=TopicListResponse)
async def reorder_topics(
    chapter_id: str,
    body: ReorderRequest,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    topics = await ContentRevisionEngine(db).reorder_topics(chapter_id, body.ids, caller)
    return TopicListResponse(
        items=[TopicSummary.model_validate(t) for t in topics],
        total=len(topics),
    )
