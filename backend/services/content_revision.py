"""
Content revision engine.

CRUD for chapters and topics plus the per-topic version ledger. Every
mutation commits the entity change, any version append and its audit entry
in a single transaction.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, AsyncIterator, Optional
from uuid import uuid4

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from core.domain.caller import CallerContext, is_staff, require_role
from core.domain.content import ContentStatus, derive_excerpt
from core.domain.errors import ConflictError, NotFoundError, ValidationError
from core.domain.user import UserRole
from infrastructure.config.settings import settings
from infrastructure.database.models.audit import AuditAction, AuditEntityType
from infrastructure.database.models.base import as_utc
from infrastructure.database.models.content import Chapter, Topic, TopicVersion
from infrastructure.database.models.reader import Bookmark
from services.audit_log import AuditLogSink
from services.curriculum import CurriculumStore

logger = logging.getLogger(__name__)

CHAPTER_FIELDS = frozenset({"title", "slug", "description", "order", "status", "is_visible"})
TOPIC_FIELDS = frozenset({
    "title",
    "slug",
    "content",
    "excerpt",
    "order",
    "is_visible",
    "meta_title",
    "meta_description",
    "scheduled_at",
    "attachment_file_id",
})

DEFAULT_CHANGELOG = "Content updated"
INITIAL_CHANGELOG = "Initial version"


@dataclass
class ChapterView:
    """A chapter with the topics visible to the caller, in order."""

    chapter: Chapter
    topics: list[Topic] = field(default_factory=list)


@dataclass
class TopicView:
    """A topic with its neighbours in the chapter for reader navigation."""

    topic: Topic
    prev: Optional[Topic] = None
    next: Optional[Topic] = None


def _plain(value: Any) -> Any:
    """JSON-safe form of a field value for audit payloads."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return as_utc(value).isoformat()
    return value


def _same(current: Any, new: Any) -> bool:
    if isinstance(current, datetime) or isinstance(new, datetime):
        return as_utc(current) == as_utc(new)
    return _plain(current) == _plain(new)


def _chapter_snapshot(chapter: Chapter) -> dict:
    return {
        "title": chapter.title,
        "slug": chapter.slug,
        "description": chapter.description,
        "order": chapter.order,
        "status": chapter.status,
        "is_visible": chapter.is_visible,
    }


def _readable(status: str, is_visible: bool) -> bool:
    return is_visible and status == ContentStatus.PUBLISHED.value


class ContentRevisionEngine:
    """Chapters, topics and the topic version ledger."""

    def __init__(self, db: AsyncSession, excerpt_length: Optional[int] = None):
        self.db = db
        self.audit = AuditLogSink(db)
        self.curriculum = CurriculumStore(db)
        self.excerpt_length = excerpt_length or settings.excerpt_length

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[None]:
        """Commit everything flushed inside the block, or roll all of it back."""
        try:
            yield
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            logger.warning("Integrity error, transaction rolled back: %s", str(exc.orig)[:200])
            raise ConflictError("Conflicting concurrent change, please retry") from exc
        except Exception:
            await self.db.rollback()
            raise

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def load_chapter(self, chapter_id: str) -> Chapter:
        chapter = await self.db.get(Chapter, chapter_id)
        if chapter is None:
            raise NotFoundError("Chapter not found")
        return chapter

    async def load_topic(self, topic_id: str) -> Topic:
        topic = await self.db.get(Topic, topic_id)
        if topic is None:
            raise NotFoundError("Topic not found")
        return topic

    async def _chapter_slug_taken(
        self, subject_id: str, slug: str, exclude_id: Optional[str] = None
    ) -> bool:
        query = select(Chapter.id).where(Chapter.subject_id == subject_id, Chapter.slug == slug)
        if exclude_id:
            query = query.where(Chapter.id != exclude_id)
        return (await self.db.execute(query)).first() is not None

    async def _topic_slug_taken(
        self, chapter_id: str, slug: str, exclude_id: Optional[str] = None
    ) -> bool:
        query = select(Topic.id).where(Topic.chapter_id == chapter_id, Topic.slug == slug)
        if exclude_id:
            query = query.where(Topic.id != exclude_id)
        return (await self.db.execute(query)).first() is not None

    async def _visible_topics(self, chapter_id: str, staff: bool) -> list[Topic]:
        query = select(Topic).where(Topic.chapter_id == chapter_id)
        if not staff:
            query = query.where(
                Topic.is_visible.is_(True),
                Topic.status == ContentStatus.PUBLISHED.value,
            )
        result = await self.db.execute(query.order_by(Topic.order, Topic.created_at))
        return list(result.scalars().unique().all())

    async def _next_version(self, topic: Topic) -> int:
        """Claim the next version number for ``topic`` inside the open transaction.

        The counter is bumped in SQL so the row lock serialises writers of the
        same topic; a rollback releases the number again.
        """
        await self.db.execute(
            update(Topic)
            .where(Topic.id == topic.id)
            .values({Topic.current_version: Topic.current_version + 1})
            .execution_options(synchronize_session=False)
        )
        version = (
            await self.db.execute(select(Topic.current_version).where(Topic.id == topic.id))
        ).scalar_one()
        set_committed_value(topic, "current_version", version)
        return version

    # ------------------------------------------------------------------
    # Chapters
    # ------------------------------------------------------------------

    async def list_chapters(self, subject_id: str, caller: CallerContext) -> list[ChapterView]:
        """Chapters of a subject in order, each with its visible topics."""
        if not await self.curriculum.subject_exists(subject_id):
            raise NotFoundError("Subject not found")
        staff = is_staff(caller)

        query = select(Chapter).where(Chapter.subject_id == subject_id)
        if not staff:
            query = query.where(
                Chapter.is_visible.is_(True),
                Chapter.status == ContentStatus.PUBLISHED.value,
            )
        result = await self.db.execute(query.order_by(Chapter.order, Chapter.created_at))
        chapters = list(result.scalars().unique().all())

        return [
            ChapterView(chapter=chapter, topics=await self._visible_topics(chapter.id, staff))
            for chapter in chapters
        ]

    async def get_chapter(self, chapter_id: str, caller: CallerContext) -> ChapterView:
        chapter = await self.load_chapter(chapter_id)
        staff = is_staff(caller)
        if not staff and not _readable(chapter.status, chapter.is_visible):
            raise NotFoundError("Chapter not found")
        return ChapterView(chapter=chapter, topics=await self._visible_topics(chapter.id, staff))

    async def create_chapter(
        self,
        subject_id: str,
        title: str,
        slug: str,
        caller: CallerContext,
        description: Optional[str] = None,
        order: Optional[int] = None,
    ) -> Chapter:
        """Create a chapter; ``order`` defaults to one past the last sibling."""
        user = require_role(caller, UserRole.CONTRIBUTOR)
        subject = await self.curriculum.get_subject(subject_id)

        if await self._chapter_slug_taken(subject_id, slug):
            raise ConflictError("A chapter with this slug already exists in this subject")

        if order is None:
            max_order = (
                await self.db.execute(
                    select(func.max(Chapter.order)).where(Chapter.subject_id == subject_id)
                )
            ).scalar()
            order = 0 if max_order is None else max_order + 1

        chapter = Chapter(
            id=str(uuid4()),
            subject_id=subject_id,
            title=title,
            slug=slug,
            description=description,
            order=order,
            status=ContentStatus.DRAFT.value,
            is_visible=True,
        )
        chapter.subject = subject

        async with self.atomic():
            self.db.add(chapter)
            await self.audit.record(
                AuditAction.CREATE,
                AuditEntityType.CHAPTER,
                chapter.id,
                chapter.title,
                user.user_id,
            )

        logger.info(
            "Chapter created: %s (%s)",
            chapter.slug,
            chapter.id,
            extra={"entity_id": chapter.id, "actor_id": user.user_id, "action": "create"},
        )
        return chapter

    async def update_chapter(
        self, chapter_id: str, fields: dict[str, Any], caller: CallerContext
    ) -> Chapter:
        """Apply the supplied fields; the audit entry carries a before/after snapshot."""
        user = require_role(caller, UserRole.CONTRIBUTOR)
        unknown = set(fields) - CHAPTER_FIELDS
        if unknown:
            raise ValidationError(f"Unknown chapter field: {sorted(unknown)[0]}")

        chapter = await self.load_chapter(chapter_id)

        new_slug = fields.get("slug")
        if new_slug and new_slug != chapter.slug:
            if await self._chapter_slug_taken(chapter.subject_id, new_slug, exclude_id=chapter.id):
                raise ConflictError("A chapter with this slug already exists in this subject")

        before = _chapter_snapshot(chapter)
        after = {name: _plain(value) for name, value in fields.items()}

        async with self.atomic():
            for name, value in after.items():
                setattr(chapter, name, value)
            await self.audit.record(
                AuditAction.UPDATE,
                AuditEntityType.CHAPTER,
                chapter.id,
                chapter.title,
                user.user_id,
                changes={"before": before, "after": after},
            )

        logger.info("Chapter updated: %s", chapter.id, extra={"entity_id": chapter.id, "action": "update"})
        return chapter

    async def delete_chapter(self, chapter_id: str, caller: CallerContext) -> None:
        """Hard-delete a chapter with its topics, their versions and bookmarks."""
        user = require_role(caller, UserRole.MANAGER)
        chapter = await self.load_chapter(chapter_id)

        topic_ids = select(Topic.id).where(Topic.chapter_id == chapter.id)

        async with self.atomic():
            await self.db.execute(
                delete(TopicVersion)
                .where(TopicVersion.topic_id.in_(topic_ids))
                .execution_options(synchronize_session=False)
            )
            await self.db.execute(
                delete(Bookmark)
                .where(Bookmark.topic_id.in_(topic_ids))
                .execution_options(synchronize_session=False)
            )
            removed = await self.db.execute(
                delete(Topic)
                .where(Topic.chapter_id == chapter.id)
                .execution_options(synchronize_session="fetch")
            )
            await self.db.delete(chapter)
            await self.audit.record(
                AuditAction.DELETE,
                AuditEntityType.CHAPTER,
                chapter.id,
                chapter.title,
                user.user_id,
                changes={"topics_deleted": removed.rowcount},
            )

        logger.info("Chapter deleted: %s", chapter_id, extra={"entity_id": chapter_id, "action": "delete"})

    async def reorder_chapters(
        self, subject_id: str, ordered_ids: list[str], caller: CallerContext
    ) -> list[ChapterView]:
        """Set ``order`` to each id's index. All-or-nothing."""
        user = require_role(caller, UserRole.CONTRIBUTOR)
        subject = await self.curriculum.get_subject(subject_id)

        in_scope = set(
            (await self.db.execute(select(Chapter.id).where(Chapter.subject_id == subject_id)))
            .scalars()
            .all()
        )
        self._check_ordering(ordered_ids, in_scope, "chapter")

        async with self.atomic():
            for index, chapter_id in enumerate(ordered_ids):
                await self.db.execute(
                    update(Chapter)
                    .where(Chapter.id == chapter_id, Chapter.subject_id == subject_id)
                    .values({Chapter.order: index})
                )
            await self.audit.record(
                AuditAction.UPDATE,
                AuditEntityType.SUBJECT,
                subject.id,
                subject.name,
                user.user_id,
                changes={"order": list(ordered_ids)},
            )

        return await self.list_chapters(subject_id, caller)

    # ------------------------------------------------------------------
    # Topics
    # ------------------------------------------------------------------

    async def list_topics(self, chapter_id: str, caller: CallerContext) -> list[Topic]:
        view = await self.get_chapter(chapter_id, caller)
        return view.topics

    async def get_topic(self, topic_id: str, caller: CallerContext) -> TopicView:
        """A topic plus prev/next among the siblings the caller can see."""
        topic = await self.load_topic(topic_id)
        staff = is_staff(caller)
        if not staff and not _readable(topic.status, topic.is_visible):
            raise NotFoundError("Topic not found")

        siblings = await self._visible_topics(topic.chapter_id, staff)
        index = next((i for i, t in enumerate(siblings) if t.id == topic.id), None)
        if index is None:
            return TopicView(topic=topic)
        return TopicView(
            topic=topic,
            prev=siblings[index - 1] if index > 0 else None,
            next=siblings[index + 1] if index < len(siblings) - 1 else None,
        )

    async def create_topic(
        self,
        chapter_id: str,
        title: str,
        slug: str,
        content: str,
        caller: CallerContext,
        excerpt: Optional[str] = None,
        order: Optional[int] = None,
        meta_title: Optional[str] = None,
        meta_description: Optional[str] = None,
        attachment_file_id: Optional[str] = None,
    ) -> Topic:
        """Create a draft topic at version 1 with its initial ledger entry."""
        user = require_role(caller, UserRole.CONTRIBUTOR)
        chapter = await self.load_chapter(chapter_id)

        if await self._topic_slug_taken(chapter_id, slug):
            raise ConflictError("A topic with this slug already exists in this chapter")

        if order is None:
            max_order = (
                await self.db.execute(
                    select(func.max(Topic.order)).where(Topic.chapter_id == chapter_id)
                )
            ).scalar()
            order = 0 if max_order is None else max_order + 1

        topic = Topic(
            id=str(uuid4()),
            chapter_id=chapter.id,
            created_by_id=user.user_id,
            title=title,
            slug=slug,
            content=content,
            excerpt=excerpt or derive_excerpt(content, self.excerpt_length),
            order=order,
            status=ContentStatus.DRAFT.value,
            is_visible=True,
            meta_title=meta_title,
            meta_description=meta_description,
            attachment_file_id=attachment_file_id,
            current_version=1,
        )
        topic.chapter = chapter

        async with self.atomic():
            self.db.add(topic)
            self.db.add(
                TopicVersion(
                    topic_id=topic.id,
                    version=1,
                    content=content,
                    changelog=INITIAL_CHANGELOG,
                    created_by_id=user.user_id,
                )
            )
            await self.audit.record(
                AuditAction.CREATE,
                AuditEntityType.TOPIC,
                topic.id,
                topic.title,
                user.user_id,
            )

        logger.info(
            "Topic created: %s (%s)",
            topic.slug,
            topic.id,
            extra={"entity_id": topic.id, "actor_id": user.user_id, "action": "create"},
        )
        return topic

    async def update_topic(
        self,
        topic_id: str,
        fields: dict[str, Any],
        caller: CallerContext,
        changelog: Optional[str] = None,
    ) -> Topic:
        """Apply the supplied fields.

        A new version is appended only when ``content`` is supplied and
        differs from the stored content. Status is not updatable here; it
        moves through the review workflow.
        """
        user = require_role(caller, UserRole.CONTRIBUTOR)
        unknown = set(fields) - TOPIC_FIELDS
        if unknown:
            raise ValidationError(f"Unknown topic field: {sorted(unknown)[0]}")

        topic = await self.load_topic(topic_id)

        new_slug = fields.get("slug")
        if new_slug and new_slug != topic.slug:
            if await self._topic_slug_taken(topic.chapter_id, new_slug, exclude_id=topic.id):
                raise ConflictError("A topic with this slug already exists in this chapter")

        changed = {
            name: value for name, value in fields.items() if not _same(getattr(topic, name), value)
        }
        content_changed = "content" in changed

        async with self.atomic():
            payload: dict[str, Any] = {"fields": sorted(changed)}
            if content_changed:
                version = await self._next_version(topic)
                self.db.add(
                    TopicVersion(
                        topic_id=topic.id,
                        version=version,
                        content=changed["content"],
                        changelog=changelog or DEFAULT_CHANGELOG,
                        created_by_id=user.user_id,
                    )
                )
                payload["version"] = version
            for name, value in changed.items():
                setattr(topic, name, value)
            await self.audit.record(
                AuditAction.UPDATE,
                AuditEntityType.TOPIC,
                topic.id,
                topic.title,
                user.user_id,
                changes=payload,
            )

        logger.info(
            "Topic updated: %s fields=%s",
            topic.id,
            ",".join(sorted(changed)) or "-",
            extra={"entity_id": topic.id, "actor_id": user.user_id, "action": "update"},
        )
        return topic

    async def delete_topic(self, topic_id: str, caller: CallerContext) -> None:
        user = require_role(caller, UserRole.MANAGER)
        topic = await self.load_topic(topic_id)

        async with self.atomic():
            await self.db.execute(
                delete(TopicVersion)
                .where(TopicVersion.topic_id == topic.id)
                .execution_options(synchronize_session=False)
            )
            await self.db.execute(
                delete(Bookmark)
                .where(Bookmark.topic_id == topic.id)
                .execution_options(synchronize_session=False)
            )
            await self.db.delete(topic)
            await self.audit.record(
                AuditAction.DELETE,
                AuditEntityType.TOPIC,
                topic.id,
                topic.title,
                user.user_id,
            )

        logger.info("Topic deleted: %s", topic_id, extra={"entity_id": topic_id, "action": "delete"})

    async def reorder_topics(
        self, chapter_id: str, ordered_ids: list[str], caller: CallerContext
    ) -> list[Topic]:
        user = require_role(caller, UserRole.CONTRIBUTOR)
        chapter = await self.load_chapter(chapter_id)

        in_scope = set(
            (await self.db.execute(select(Topic.id).where(Topic.chapter_id == chapter_id)))
            .scalars()
            .all()
        )
        self._check_ordering(ordered_ids, in_scope, "topic")

        async with self.atomic():
            for index, topic_id in enumerate(ordered_ids):
                await self.db.execute(
                    update(Topic)
                    .where(Topic.id == topic_id, Topic.chapter_id == chapter_id)
                    .values({Topic.order: index})
                )
            await self.audit.record(
                AuditAction.UPDATE,
                AuditEntityType.CHAPTER,
                chapter.id,
                chapter.title,
                user.user_id,
                changes={"order": list(ordered_ids)},
            )

        return await self._visible_topics(chapter_id, staff=True)

    @staticmethod
    def _check_ordering(ordered_ids: list[str], in_scope: set[str], kind: str) -> None:
        if len(set(ordered_ids)) != len(ordered_ids):
            raise ValidationError(f"Duplicate {kind} id in ordering")
        outside = [i for i in ordered_ids if i not in in_scope]
        if outside:
            raise ValidationError(f"{kind.capitalize()} {outside[0]} does not belong to this parent")

    # ------------------------------------------------------------------
    # Version ledger
    # ------------------------------------------------------------------

    async def list_versions(self, topic_id: str, caller: CallerContext) -> list[TopicVersion]:
        """All versions of a topic, newest first."""
        require_role(caller, UserRole.CONTRIBUTOR)
        await self.load_topic(topic_id)
        result = await self.db.execute(
            select(TopicVersion)
            .where(TopicVersion.topic_id == topic_id)
            .order_by(TopicVersion.version.desc())
        )
        return list(result.scalars().unique().all())

    async def get_version(self, topic_id: str, version: int, caller: CallerContext) -> TopicVersion:
        require_role(caller, UserRole.CONTRIBUTOR)
        await self.load_topic(topic_id)
        result = await self.db.execute(
            select(TopicVersion).where(
                TopicVersion.topic_id == topic_id,
                TopicVersion.version == version,
            )
        )
        snapshot = result.unique().scalar_one_or_none()
        if snapshot is None:
            raise NotFoundError("Version not found")
        return snapshot

    async def restore_version(self, topic_id: str, version: int, caller: CallerContext) -> Topic:
        """Copy an old version's content forward as a new version.

        History is never rewound: the restored content is appended at the
        next version number.
        """
        user = require_role(caller, UserRole.MANAGER)
        topic = await self.load_topic(topic_id)
        result = await self.db.execute(
            select(TopicVersion.content).where(
                TopicVersion.topic_id == topic_id,
                TopicVersion.version == version,
            )
        )
        restored_content = result.scalar_one_or_none()
        if restored_content is None:
            raise NotFoundError("Version not found")

        async with self.atomic():
            new_version = await self._next_version(topic)
            self.db.add(
                TopicVersion(
                    topic_id=topic.id,
                    version=new_version,
                    content=restored_content,
                    changelog=f"Restored from version {version}",
                    created_by_id=user.user_id,
                )
            )
            topic.content = restored_content
            await self.audit.record(
                AuditAction.RESTORE,
                AuditEntityType.TOPIC,
                topic.id,
                topic.title,
                user.user_id,
                changes={"restored_from_version": version, "version": new_version},
            )

        logger.info(
            "Topic %s restored from version %d as version %d",
            topic.id,
            version,
            new_version,
            extra={"entity_id": topic.id, "actor_id": user.user_id, "action": "restore"},
        )
        return topic
