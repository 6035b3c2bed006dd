"""
Topic API routes: CRUD, version ledger and review workflow.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_caller
from api.schemas.content import (
    RejectRequest,
    TopicCreateRequest,
    TopicDetailResponse,
    TopicNavigation,
    TopicNavItem,
    TopicResponse,
    TopicUpdateRequest,
    TopicVersionDetailResponse,
    TopicVersionListResponse,
    TopicVersionResponse,
)
from core.domain.caller import CallerContext
from infrastructure.database.connection import get_db
from services.content_revision import ContentRevisionEngine
from services.review_workflow import ReviewWorkflowCoordinator

router = APIRouter(prefix="/topics", tags=["Topics"])


@router.post("", response_model=TopicResponse, status_code=status.HTTP_201_CREATED)
async def create_topic(
    body: TopicCreateRequest,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """Create a draft topic at version 1."""
    return await ContentRevisionEngine(db).create_topic(
        chapter_id=body.chapter_id,
        title=body.title,
        slug=body.slug,
        content=body.content,
        caller=caller,
        excerpt=body.excerpt,
        order=body.order,
        meta_title=body.meta_title,
        meta_description=body.meta_description,
        attachment_file_id=body.attachment_file_id,
    )


@router.get("/{topic_id}", response_model=TopicDetailResponse)
async def get_topic(
    topic_id: str,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """Get a topic with prev/next navigation inside its chapter."""
    view = await ContentRevisionEngine(db).get_topic(topic_id, caller)
    return TopicDetailResponse(
        topic=TopicResponse.model_validate(view.topic),
        navigation=TopicNavigation(
            prev=TopicNavItem.model_validate(view.prev) if view.prev else None,
            next=TopicNavItem.model_validate(view.next) if view.next else None,
        ),
    )


@router.patch("/{topic_id}", response_model=TopicResponse)
async def update_topic(
    topic_id: str,
    body: TopicUpdateRequest,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """
    Update a topic.

    Changing ``content`` appends a new version with ``changelog``
    (default "Content updated").
    """
    return await ContentRevisionEngine(db).update_topic(
        topic_id,
        body.changes(exclude=frozenset({"changelog"})),
        caller,
        changelog=body.changelog,
    )


@router.delete("/{topic_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_topic(
    topic_id: str,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    await ContentRevisionEngine(db).delete_topic(topic_id, caller)


# --- Version ledger ---


@router.get("/{topic_id}/versions", response_model=TopicVersionListResponse)
async def list_versions(
    topic_id: str,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """List a topic's versions, newest first."""
    versions = await ContentRevisionEngine(db).list_versions(topic_id, caller)
    return TopicVersionListResponse(
        items=[TopicVersionResponse.model_validate(v) for v in versions],
        total=len(versions),
    )


@router.get("/{topic_id}/versions/{version}", response_model=TopicVersionDetailResponse)
async def get_version(
    topic_id: str,
    version: int = Path(..., ge=1),
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await ContentRevisionEngine(db).get_version(topic_id, version, caller)


@router.post("/{topic_id}/versions/{version}/restore", response_model=TopicResponse)
async def restore_version(
    topic_id: str,
    version: int = Path(..., ge=1),
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """Copy a version's content forward as a new version."""
    return await ContentRevisionEngine(db).restore_version(topic_id, version, caller)


# --- Review workflow ---


@router.post("/{topic_id}/submit-review", response_model=TopicResponse)
async def submit_for_review(
    topic_id: str,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await ReviewWorkflowCoordinator(db).submit_for_review(topic_id, caller)


@router.post("/{topic_id}/approve", response_model=TopicResponse)
async def approve_topic(
    topic_id: str,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await ReviewWorkflowCoordinator(db).approve(topic_id, caller)


@router.post("/{topic_id}/publish", response_model=TopicResponse)
async def publish_topic(
    topic_id: str,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await ReviewWorkflowCoordinator(db).publish(topic_id, caller)


@router.post("/{topic_id}/reject", response_model=TopicResponse)
async def reject_topic(
    topic_id: str,
    body: Optional[RejectRequest] = None,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """Send a topic back to draft; the reason is kept in the audit trail."""
    reason = body.reason if body else None
    return await ReviewWorkflowCoordinator(db).reject(topic_id, caller, reason=reason)


@router.post("/{topic_id}/archive", response_model=TopicResponse)
async def archive_topic(
    topic_id: str,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await ReviewWorkflowCoordinator(db).archive(topic_id, caller)
