"""
Reader bookmarks.
"""

import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.caller import CallerContext, require_authenticated
from infrastructure.database.models.reader import Bookmark
from services.content_revision import ContentRevisionEngine

logger = logging.getLogger(__name__)


class ReaderService:
    """Per-user bookmarks on topics the reader can see."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.content = ContentRevisionEngine(db)

    async def list_bookmarks(self, caller: CallerContext) -> list[Bookmark]:
        user = require_authenticated(caller)
        result = await self.db.execute(
            select(Bookmark)
            .where(Bookmark.user_id == user.user_id)
            .order_by(Bookmark.created_at.desc())
        )
        return list(result.scalars().unique().all())

    async def add_bookmark(
        self, caller: CallerContext, topic_id: str, note: Optional[str] = None
    ) -> Bookmark:
        """Bookmark a topic, or update the note of an existing bookmark."""
        user = require_authenticated(caller)
        view = await self.content.get_topic(topic_id, caller)

        result = await self.db.execute(
            select(Bookmark).where(
                Bookmark.user_id == user.user_id,
                Bookmark.topic_id == topic_id,
            )
        )
        bookmark = result.unique().scalar_one_or_none()

        async with self.content.atomic():
            if bookmark is None:
                bookmark = Bookmark(user_id=user.user_id, topic_id=topic_id, note=note)
                bookmark.topic = view.topic
                self.db.add(bookmark)
            else:
                bookmark.note = note

        logger.info("Bookmark saved: user=%s topic=%s", user.user_id, topic_id)
        return bookmark

    async def remove_bookmark(self, caller: CallerContext, topic_id: str) -> None:
        user = require_authenticated(caller)
        async with self.content.atomic():
            await self.db.execute(
                delete(Bookmark)
                .where(Bookmark.user_id == user.user_id, Bookmark.topic_id == topic_id)
                .execution_options(synchronize_session="fetch")
            )

    async def is_bookmarked(self, caller: CallerContext, topic_id: str) -> bool:
        user = require_authenticated(caller)
        result = await self.db.execute(
            select(Bookmark.id).where(
                Bookmark.user_id == user.user_id,
                Bookmark.topic_id == topic_id,
            )
        )
        return result.first() is not None
