"""
Review workflow coordinator.

Moves a topic through draft -> in_review -> approved -> published -> archived.
Every call made by an authenticated caller on an existing topic leaves
exactly one audit entry tagged with the action: refused calls are recorded in
their own transaction before the error propagates.
Reject and archive apply from any status, archived included.
"""

import logging
from datetime import UTC, datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.caller import Authenticated, CallerContext, require_authenticated, require_role
from core.domain.content import ACTION_MIN_ROLE, ContentStatus, WorkflowAction, next_status
from core.domain.errors import ContentError, ForbiddenError, InvalidTransitionError
from infrastructure.database.models.audit import AuditAction, AuditEntityType
from infrastructure.database.models.base import as_utc
from infrastructure.database.models.content import Topic
from services.audit_log import AuditLogSink
from services.content_revision import ContentRevisionEngine

logger = logging.getLogger(__name__)


class ReviewWorkflowCoordinator:
    """Enforces legal status transitions and who may trigger them."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditLogSink(db)
        self.content = ContentRevisionEngine(db)

    async def submit_for_review(self, topic_id: str, caller: CallerContext) -> Topic:
        return await self._transition(topic_id, WorkflowAction.SUBMIT_REVIEW, caller)

    async def approve(self, topic_id: str, caller: CallerContext) -> Topic:
        return await self._transition(topic_id, WorkflowAction.APPROVE, caller)

    async def publish(self, topic_id: str, caller: CallerContext) -> Topic:
        """Publish and stamp ``published_at``; re-publishing stamps it again."""
        return await self._transition(topic_id, WorkflowAction.PUBLISH, caller)

    async def reject(
        self, topic_id: str, caller: CallerContext, reason: Optional[str] = None
    ) -> Topic:
        """Send a topic back to draft. The reason lives in the audit entry only."""
        return await self._transition(topic_id, WorkflowAction.REJECT, caller, reason=reason)

    async def archive(self, topic_id: str, caller: CallerContext) -> Topic:
        return await self._transition(topic_id, WorkflowAction.ARCHIVE, caller)

    async def _transition(
        self,
        topic_id: str,
        action: WorkflowAction,
        caller: CallerContext,
        reason: Optional[str] = None,
    ) -> Topic:
        user = require_authenticated(caller)
        topic = await self.content.load_topic(topic_id)
        current = ContentStatus(topic.status)

        try:
            require_role(caller, ACTION_MIN_ROLE[action])
            target = next_status(action, current)
        except (ForbiddenError, InvalidTransitionError) as exc:
            await self._record_refusal(topic, action, user, current, exc)
            raise

        changes = {
            "outcome": "success",
            "from_status": current.value,
            "to_status": target.value,
        }
        if action is WorkflowAction.REJECT and reason:
            changes["reason"] = reason

        async with self.content.atomic():
            topic.status = target.value
            if action is WorkflowAction.PUBLISH:
                now = datetime.now(UTC)
                previous = as_utc(topic.published_at)
                topic.published_at = max(now, previous) if previous else now
            await self.audit.record(
                AuditAction(action.value),
                AuditEntityType.TOPIC,
                topic.id,
                topic.title,
                user.user_id,
                changes=changes,
            )

        logger.info(
            "Topic %s %s: %s -> %s",
            topic.id,
            action.value,
            current.value,
            target.value,
            extra={"entity_id": topic.id, "actor_id": user.user_id, "action": action.value},
        )
        return topic

    async def _record_refusal(
        self,
        topic: Topic,
        action: WorkflowAction,
        user: Authenticated,
        current: ContentStatus,
        error: ContentError,
    ) -> None:
        logger.warning(
            "Refused %s on topic %s in %s status: %s",
            action.value,
            topic.id,
            current.value,
            error.code,
            extra={"entity_id": topic.id, "actor_id": user.user_id, "action": action.value},
        )
        async with self.content.atomic():
            await self.audit.record(
                AuditAction(action.value),
                AuditEntityType.TOPIC,
                topic.id,
                topic.title,
                user.user_id,
                changes={
                    "outcome": "refused",
                    "from_status": current.value,
                    "error": error.code,
                },
            )
