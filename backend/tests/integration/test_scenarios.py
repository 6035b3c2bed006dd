"""End-to-end authoring scenarios over HTTP."""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


class TestAuthoringLifecycle:
    async def test_draft_to_published_then_edit_and_restore(
        self,
        async_client: AsyncClient,
        contributor_headers: dict,
        manager_headers: dict,
        subject,
    ):
        chapter = await async_client.post(
            "/api/v1/chapters",
            json={"subject_id": subject.id, "title": "Arrays", "slug": "arrays"},
            headers=contributor_headers,
        )
        assert chapter.status_code == 201
        assert chapter.json()["order"] == 0
        chapter_id = chapter.json()["id"]

        created = await async_client.post(
            "/api/v1/topics",
            json={
                "chapter_id": chapter_id,
                "title": "Intro",
                "slug": "intro",
                "content": "Arrays store elements contiguously.",
            },
            headers=contributor_headers,
        )
        assert created.status_code == 201
        topic = created.json()
        assert topic["current_version"] == 1
        assert topic["status"] == "draft"
        base = f"/api/v1/topics/{topic['id']}"

        steps = [
            ("submit-review", contributor_headers, "in_review"),
            ("approve", manager_headers, "approved"),
            ("publish", manager_headers, "published"),
        ]
        for action, headers, expected_status in steps:
            response = await async_client.post(f"{base}/{action}", headers=headers)
            assert response.status_code == 200, response.text
            assert response.json()["status"] == expected_status
        published_at = response.json()["published_at"]
        assert published_at is not None

        edited = await async_client.patch(
            base, json={"content": "Arrays give O(1) indexing."}, headers=contributor_headers
        )
        assert edited.json()["current_version"] == 2
        assert edited.json()["content"] == "Arrays give O(1) indexing."

        restored = await async_client.post(f"{base}/versions/1/restore", headers=manager_headers)
        assert restored.status_code == 200
        final = restored.json()
        assert final["current_version"] == 3
        assert final["content"] == "Arrays store elements contiguously."
        assert final["status"] == "published"
        assert final["published_at"] == published_at

        versions = (await async_client.get(f"{base}/versions", headers=contributor_headers)).json()
        assert versions["total"] == 3
        assert [v["version"] for v in versions["items"]] == [3, 2, 1]

    async def test_reorder_three_topics(
        self,
        async_client: AsyncClient,
        contributor_headers: dict,
        subject,
    ):
        chapter_id = (
            await async_client.post(
                "/api/v1/chapters",
                json={"subject_id": subject.id, "title": "Arrays", "slug": "arrays"},
                headers=contributor_headers,
            )
        ).json()["id"]

        ids = {}
        for slug in ("a", "b", "c"):
            response = await async_client.post(
                "/api/v1/topics",
                json={"chapter_id": chapter_id, "title": slug.upper(), "slug": slug, "content": slug},
                headers=contributor_headers,
            )
            ids[slug] = response.json()["id"]

        reordered = await async_client.post(
            f"/api/v1/chapters/{chapter_id}/topics/reorder",
            json={"ids": [ids["c"], ids["a"], ids["b"]]},
            headers=contributor_headers,
        )
        assert reordered.status_code == 200

        listing = (
            await async_client.get(f"/api/v1/chapters/{chapter_id}/topics", headers=contributor_headers)
        ).json()
        assert [t["id"] for t in listing["items"]] == [ids["c"], ids["a"], ids["b"]]
        assert [t["order"] for t in listing["items"]] == [0, 1, 2]
