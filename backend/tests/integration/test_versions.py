"""Integration tests for the topic version ledger."""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.domain.caller import ANONYMOUS, Authenticated
from core.domain.errors import (
    AuthenticationRequiredError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from core.domain.user import UserRole
from infrastructure.database.models import AuditLogEntry, Base, Subject, Topic, TopicVersion, User
from services.audit_log import AuditLogSink
from services.content_revision import ContentRevisionEngine

pytestmark = pytest.mark.asyncio


@pytest.fixture
async def chapter(content_engine: ContentRevisionEngine, subject, contributor):
    return await content_engine.create_chapter(subject.id, "Arrays", "arrays", contributor)


@pytest.fixture
async def topic(content_engine: ContentRevisionEngine, chapter, contributor):
    return await content_engine.create_topic(
        chapter.id, "Intro", "intro", "# Arrays\nOriginal body", contributor
    )


async def _version_numbers(db: AsyncSession, topic_id: str) -> list[int]:
    result = await db.execute(
        select(TopicVersion.version)
        .where(TopicVersion.topic_id == topic_id)
        .order_by(TopicVersion.version)
    )
    return list(result.scalars().all())


class TestVersionNumbering:
    """Version numbers start at 1 and have no gaps."""

    async def test_create_starts_at_version_one(self, db_session, topic):
        assert topic.current_version == 1
        assert await _version_numbers(db_session, topic.id) == [1]

        initial = (
            await db_session.execute(select(TopicVersion).where(TopicVersion.topic_id == topic.id))
        ).unique().scalar_one()
        assert initial.changelog == "Initial version"
        assert initial.content == topic.content

    async def test_content_changes_append_gapless_versions(
        self, db_session, content_engine, topic, contributor
    ):
        for n in range(2, 6):
            updated = await content_engine.update_topic(
                topic.id, {"content": f"body {n}"}, contributor, changelog=f"edit {n}"
            )
            assert updated.current_version == n

        assert await _version_numbers(db_session, topic.id) == [1, 2, 3, 4, 5]

    async def test_unchanged_content_does_not_version(
        self, db_session, content_engine, topic, contributor
    ):
        updated = await content_engine.update_topic(
            topic.id, {"content": topic.content, "title": "Introduction"}, contributor
        )
        assert updated.current_version == 1
        assert updated.title == "Introduction"
        assert await _version_numbers(db_session, topic.id) == [1]

    async def test_default_changelog(self, content_engine, topic, contributor):
        await content_engine.update_topic(topic.id, {"content": "new"}, contributor)
        snapshot = await content_engine.get_version(topic.id, 2, contributor)
        assert snapshot.changelog == "Content updated"
        assert snapshot.content == "new"
        assert snapshot.created_by_id == contributor.user_id

    async def test_stale_topic_object_still_gets_next_number(
        self, db_session, content_engine, topic, contributor, manager
    ):
        """Another writer bumps the counter behind the session's back."""
        table = Topic.__table__
        await db_session.execute(
            table.update().where(table.c.id == topic.id).values(current_version=2)
        )
        db_session.add(
            TopicVersion(
                topic_id=topic.id,
                version=2,
                content="concurrent edit",
                changelog="Content updated",
                created_by_id=manager.user_id,
            )
        )
        await db_session.commit()
        assert topic.current_version == 1  # in-memory copy is stale

        updated = await content_engine.update_topic(topic.id, {"content": "mine"}, contributor)

        assert updated.current_version == 3
        assert await _version_numbers(db_session, topic.id) == [1, 2, 3]

    async def test_duplicate_version_number_is_a_conflict(
        self, db_session, content_engine, topic, contributor, manager
    ):
        """If the counter lags the ledger the unique constraint refuses the insert."""
        topic_id = topic.id
        db_session.add(
            TopicVersion(
                topic_id=topic_id,
                version=2,
                content="sneaked in",
                created_by_id=manager.user_id,
            )
        )
        await db_session.commit()

        with pytest.raises(ConflictError):
            await content_engine.update_topic(topic_id, {"content": "lost"}, contributor)

        content, current = (
            await db_session.execute(
                select(Topic.content, Topic.current_version).where(Topic.id == topic_id)
            )
        ).one()
        assert content == "# Arrays\nOriginal body"
        assert current == 1
        updates = (
            await db_session.execute(
                select(func.count())
                .select_from(AuditLogEntry)
                .where(AuditLogEntry.entity_id == topic_id, AuditLogEntry.action == "update")
            )
        ).scalar()
        assert updates == 0


class TestVersionReads:
    async def test_list_versions_newest_first(self, content_engine, topic, contributor):
        await content_engine.update_topic(topic.id, {"content": "v2"}, contributor)
        await content_engine.update_topic(topic.id, {"content": "v3"}, contributor)

        versions = await content_engine.list_versions(topic.id, contributor)

        assert [v.version for v in versions] == [3, 2, 1]
        assert versions[0].author.id == contributor.user_id

    async def test_students_cannot_read_history(self, content_engine, topic, student):
        with pytest.raises(ForbiddenError):
            await content_engine.list_versions(topic.id, student)

    async def test_anonymous_cannot_read_history(self, content_engine, topic):
        with pytest.raises(AuthenticationRequiredError):
            await content_engine.get_version(topic.id, 1, ANONYMOUS)

    async def test_missing_version(self, content_engine, topic, contributor):
        with pytest.raises(NotFoundError) as exc_info:
            await content_engine.get_version(topic.id, 9, contributor)
        assert exc_info.value.message == "Version not found"

    async def test_missing_topic(self, content_engine, contributor):
        with pytest.raises(NotFoundError):
            await content_engine.list_versions("00000000-0000-0000-0000-000000000000", contributor)


class TestRestoreVersion:
    async def test_restore_appends_instead_of_rewinding(
        self, db_session, content_engine, topic, contributor, manager
    ):
        await content_engine.update_topic(topic.id, {"content": "second"}, contributor)

        restored = await content_engine.restore_version(topic.id, 1, manager)

        assert restored.current_version == 3
        assert restored.content == "# Arrays\nOriginal body"
        assert await _version_numbers(db_session, topic.id) == [1, 2, 3]

        snapshot = await content_engine.get_version(topic.id, 3, manager)
        assert snapshot.changelog == "Restored from version 1"
        assert snapshot.content == "# Arrays\nOriginal body"

        entry = (
            await db_session.execute(
                select(AuditLogEntry).where(
                    AuditLogEntry.entity_id == topic.id,
                    AuditLogEntry.action == "restore",
                )
            )
        ).scalar_one()
        assert entry.changes == {"restored_from_version": 1, "version": 3}
        assert entry.actor_id == manager.user_id

    async def test_restore_keeps_status(self, content_engine, topic, contributor, manager):
        await content_engine.update_topic(topic.id, {"content": "second"}, contributor)
        restored = await content_engine.restore_version(topic.id, 1, manager)
        assert restored.status == "draft"

    async def test_restore_requires_manager(self, content_engine, topic, contributor):
        with pytest.raises(ForbiddenError):
            await content_engine.restore_version(topic.id, 1, contributor)

    async def test_restore_unknown_version(self, db_session, content_engine, topic, manager):
        with pytest.raises(NotFoundError):
            await content_engine.restore_version(topic.id, 42, manager)
        assert await _version_numbers(db_session, topic.id) == [1]


class TestTopicUpdateRules:
    async def test_status_is_not_updatable(self, content_engine, topic, contributor):
        with pytest.raises(ValidationError):
            await content_engine.update_topic(topic.id, {"status": "published"}, contributor)

    async def test_excerpt_derived_on_create(self, content_engine, topic):
        assert topic.excerpt == " Arrays\nOriginal body"

    async def test_explicit_excerpt_kept(self, content_engine, chapter, contributor):
        created = await content_engine.create_topic(
            chapter.id, "Two", "two", "# Body", contributor, excerpt="Custom"
        )
        assert created.excerpt == "Custom"

    async def test_empty_excerpt_is_derived(self, content_engine, chapter, contributor):
        created = await content_engine.create_topic(
            chapter.id, "Two", "two", "# Body", contributor, excerpt=""
        )
        assert created.excerpt == " Body"

    async def test_audit_lists_changed_fields(
        self, db_session, content_engine, topic, contributor
    ):
        await content_engine.update_topic(
            topic.id, {"content": "new body", "title": "Renamed", "order": 0}, contributor
        )
        entry = (
            await db_session.execute(
                select(AuditLogEntry).where(
                    AuditLogEntry.entity_id == topic.id,
                    AuditLogEntry.action == "update",
                )
            )
        ).scalar_one()
        # order was already 0 so it is not a change
        assert entry.changes == {"fields": ["content", "title"], "version": 2}


@pytest.fixture
async def file_engine(tmp_path):
    """A database file that several sessions open their own connections to."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(file_engine):
    return async_sessionmaker(
        file_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
async def shared_topic(session_factory) -> tuple[str, Authenticated]:
    async with session_factory() as session:
        author = User(
            id=str(uuid4()),
            email="writer@example.com",
            name="Writer",
            password_hash="!",
            role=UserRole.CONTRIBUTOR.value,
            status="active",
        )
        subject = Subject(id=str(uuid4()), code="CS102", name="Algorithms", slug="algorithms")
        session.add_all([author, subject])
        await session.commit()

        writer = Authenticated(user_id=author.id, role=UserRole.CONTRIBUTOR)
        engine = ContentRevisionEngine(session)
        chapter = await engine.create_chapter(subject.id, "Sorting", "sorting", writer)
        topic = await engine.create_topic(chapter.id, "Merge sort", "merge-sort", "v1", writer)
        return topic.id, writer


class TestSeparateSessions:
    """Writers on their own sessions share one version sequence per topic."""

    async def test_interleaved_writers(self, session_factory, shared_topic):
        topic_id, writer = shared_topic

        async with session_factory() as first, session_factory() as second:
            engines = [ContentRevisionEngine(first), ContentRevisionEngine(second)]
            # both sessions hold their own, soon stale, copy of the topic
            for engine in engines:
                assert (await engine.load_topic(topic_id)).current_version == 1

            claimed = []
            for n in range(6):
                updated = await engines[n % 2].update_topic(topic_id, {"content": f"edit {n}"}, writer)
                claimed.append(updated.current_version)

        assert claimed == [2, 3, 4, 5, 6, 7]
        async with session_factory() as check:
            assert await _version_numbers(check, topic_id) == [1, 2, 3, 4, 5, 6, 7]
            assert (await check.get(Topic, topic_id)).current_version == 7

    async def test_rolled_back_writer_releases_its_number(self, session_factory, shared_topic):
        topic_id, writer = shared_topic

        async with session_factory() as failing, session_factory() as succeeding:
            with patch.object(
                AuditLogSink, "record", new=AsyncMock(side_effect=RuntimeError("audit store down"))
            ):
                with pytest.raises(RuntimeError):
                    await ContentRevisionEngine(failing).update_topic(
                        topic_id, {"content": "lost"}, writer
                    )

            updated = await ContentRevisionEngine(succeeding).update_topic(
                topic_id, {"content": "kept"}, writer
            )
            assert updated.current_version == 2

        async with session_factory() as check:
            assert await _version_numbers(check, topic_id) == [1, 2]
            kept = (
                await check.execute(
                    select(TopicVersion.content).where(
                        TopicVersion.topic_id == topic_id, TopicVersion.version == 2
                    )
                )
            ).scalar_one()
            assert kept == "kept"
