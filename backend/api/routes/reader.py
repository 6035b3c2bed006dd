"""
Reader routes: bookmarks on published topics.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_authenticated_caller
from api.schemas.reader import (
    BookmarkCheckResponse,
    BookmarkCreateRequest,
    BookmarkListResponse,
    BookmarkResponse,
)
from core.domain.caller import Authenticated
from infrastructure.database.connection import get_db
from services.reader import ReaderService

router = APIRouter(prefix="/reader", tags=["Reader"])


@router.get("/bookmarks", response_model=BookmarkListResponse)
async def list_bookmarks(
    caller: Authenticated = Depends(get_authenticated_caller),
    db: AsyncSession = Depends(get_db),
):
    bookmarks = await ReaderService(db).list_bookmarks(caller)
    return BookmarkListResponse(
        items=[BookmarkResponse.model_validate(b) for b in bookmarks],
        total=len(bookmarks),
    )


@router.post("/bookmarks", response_model=BookmarkResponse, status_code=status.HTTP_201_CREATED)
async def add_bookmark(
    body: BookmarkCreateRequest,
    caller: Authenticated = Depends(get_authenticated_caller),
    db: AsyncSession = Depends(get_db),
):
    """Bookmark a topic; bookmarking it again replaces the note."""
    return await ReaderService(db).add_bookmark(caller, body.topic_id, note=body.note)


@router.delete("/bookmarks/{topic_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_bookmark(
    topic_id: str,
    caller: Authenticated = Depends(get_authenticated_caller),
    db: AsyncSession = Depends(get_db),
):
    await ReaderService(db).remove_bookmark(caller, topic_id)


@router.get("/bookmarks/{topic_id}/check", response_model=BookmarkCheckResponse)
async def check_bookmark(
    topic_id: str,
    caller: Authenticated = Depends(get_authenticated_caller),
    db: AsyncSession = Depends(get_db),
):
    return BookmarkCheckResponse(
        is_bookmarked=await ReaderService(db).is_bookmarked(caller, topic_id)
    )
