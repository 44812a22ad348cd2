"""
Tests for notification endpoints:
- GET /api/v1/notifications
- GET /api/v1/notifications/summary
- POST /api/v1/notifications/{id}/read
- POST /api/v1/notifications/read-all
- DELETE /api/v1/notifications/{id}
- DELETE /api/v1/notifications
"""

import pytest_asyncio
from httpx import AsyncClient

MISSING_ID = "00000000-0000-0000-0000-000000000000"


@pytest_asyncio.fixture
async def mentioned_twice(
    notification_dispatcher,
    test_user: dict,
    second_user: dict,
    create_post,
) -> dict:
    """Two posts by second_user that mention test_user; returns the newer one."""
    await create_post(second_user, "Hello @testuser")
    await notification_dispatcher.drain()
    post = await create_post(second_user, "Again @TestUser, see https://example.com/@thirduser")
    await notification_dispatcher.drain()
    return post


class TestListNotifications:
    """GET /api/v1/notifications tests."""

    async def test_wire_shape(
        self, async_client: AsyncClient, test_user: dict, auth_headers, mentioned_twice: dict
    ):
        response = await async_client.get("/api/v1/notifications", headers=auth_headers(test_user))

        assert response.status_code == 200
        item = response.json()["items"][0]
        assert set(item) == {
            "id",
            "type",
            "message",
            "isRead",
            "createdAt",
            "sender",
            "postId",
            "commentId",
            "relatedPost",
            "relatedComment",
        }
        assert item["type"] == "mention_post"
        assert item["message"] == "seconduser mentioned you in a post"
        assert item["isRead"] is False
        assert item["sender"]["username"] == "seconduser"
        assert set(item["sender"]) == {"id", "username", "profilePic"}
        assert item["postId"] == mentioned_twice["id"]
        assert item["commentId"] is None
        assert item["relatedPost"]["id"] == mentioned_twice["id"]
        assert item["relatedComment"] is None

    async def test_newest_first_with_cursor(
        self,
        async_client: AsyncClient,
        notification_dispatcher,
        test_user: dict,
        second_user: dict,
        auth_headers,
        create_post,
        frozen_time,
    ):
        for hour in range(3):
            with frozen_time(f"2020-01-01 1{hour}:00:00"):
                await create_post(second_user, f"ping {hour} @testuser")
                await notification_dispatcher.drain()

        first = await async_client.get(
            "/api/v1/notifications", params={"limit": 2}, headers=auth_headers(test_user)
        )
        page = first.json()
        assert [i["relatedPost"]["message"] for i in page["items"]] == [
            "ping 2 @testuser",
            "ping 1 @testuser",
        ]
        assert page["hasMore"] is True

        second = await async_client.get(
            "/api/v1/notifications",
            params={"limit": 2, "cursor": page["nextCursor"]},
            headers=auth_headers(test_user),
        )
        page = second.json()
        assert [i["relatedPost"]["message"] for i in page["items"]] == ["ping 0 @testuser"]
        assert page["hasMore"] is False

    async def test_only_own_notifications_are_listed(
        self, async_client: AsyncClient, second_user: dict, auth_headers, mentioned_twice: dict
    ):
        response = await async_client.get(
            "/api/v1/notifications", headers=auth_headers(second_user)
        )
        assert response.json()["items"] == []

    async def test_unread_only_filter(
        self, async_client: AsyncClient, test_user: dict, auth_headers, mentioned_twice: dict
    ):
        items = (
            await async_client.get("/api/v1/notifications", headers=auth_headers(test_user))
        ).json()["items"]
        await async_client.post(
            f"/api/v1/notifications/{items[0]['id']}/read", headers=auth_headers(test_user)
        )

        response = await async_client.get(
            "/api/v1/notifications",
            params={"unreadOnly": "true"},
            headers=auth_headers(test_user),
        )

        assert [i["id"] for i in response.json()["items"]] == [items[1]["id"]]

    async def test_requires_auth(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/notifications")
        assert response.status_code == 401


class TestSummary:
    """GET /api/v1/notifications/summary tests."""

    async def test_counts(
        self, async_client: AsyncClient, test_user: dict, auth_headers, mentioned_twice: dict
    ):
        response = await async_client.get(
            "/api/v1/notifications/summary", headers=auth_headers(test_user)
        )

        assert response.status_code == 200
        assert response.json() == {"unreadCount": 2, "totalCount": 2}

    async def test_empty_summary(self, async_client: AsyncClient, test_user: dict, auth_headers):
        response = await async_client.get(
            "/api/v1/notifications/summary", headers=auth_headers(test_user)
        )
        assert response.json() == {"unreadCount": 0, "totalCount": 0}


class TestMarkAsRead:
    """POST /api/v1/notifications/{id}/read tests."""

    async def test_mark_read(
        self, async_client: AsyncClient, test_user: dict, auth_headers, mentioned_twice: dict
    ):
        items = (
            await async_client.get("/api/v1/notifications", headers=auth_headers(test_user))
        ).json()["items"]

        response = await async_client.post(
            f"/api/v1/notifications/{items[0]['id']}/read", headers=auth_headers(test_user)
        )

        assert response.status_code == 200
        assert response.json()["isRead"] is True
        summary = (
            await async_client.get("/api/v1/notifications/summary", headers=auth_headers(test_user))
        ).json()
        assert summary == {"unreadCount": 1, "totalCount": 2}

    async def test_cannot_read_someone_elses_notification(
        self,
        async_client: AsyncClient,
        test_user: dict,
        second_user: dict,
        auth_headers,
        mentioned_twice: dict,
    ):
        items = (
            await async_client.get("/api/v1/notifications", headers=auth_headers(test_user))
        ).json()["items"]

        response = await async_client.post(
            f"/api/v1/notifications/{items[0]['id']}/read", headers=auth_headers(second_user)
        )
        assert response.status_code == 404

    async def test_mark_read_nonexistent_returns_404(
        self, async_client: AsyncClient, test_user: dict, auth_headers
    ):
        response = await async_client.post(
            f"/api/v1/notifications/{MISSING_ID}/read", headers=auth_headers(test_user)
        )
        assert response.status_code == 404


class TestMarkAllAsRead:
    """POST /api/v1/notifications/read-all tests."""

    async def test_marks_all_and_returns_count(
        self, async_client: AsyncClient, test_user: dict, auth_headers, mentioned_twice: dict
    ):
        response = await async_client.post(
            "/api/v1/notifications/read-all", headers=auth_headers(test_user)
        )

        assert response.status_code == 200
        assert response.json() == {"markedCount": 2}
        again = await async_client.post(
            "/api/v1/notifications/read-all", headers=auth_headers(test_user)
        )
        assert again.json() == {"markedCount": 0}


class TestDeleteNotifications:
    """DELETE /api/v1/notifications endpoints."""

    async def test_delete_one(
        self, async_client: AsyncClient, test_user: dict, auth_headers, mentioned_twice: dict
    ):
        items = (
            await async_client.get("/api/v1/notifications", headers=auth_headers(test_user))
        ).json()["items"]

        response = await async_client.delete(
            f"/api/v1/notifications/{items[0]['id']}", headers=auth_headers(test_user)
        )

        assert response.status_code == 204
        remaining = (
            await async_client.get("/api/v1/notifications", headers=auth_headers(test_user))
        ).json()["items"]
        assert [i["id"] for i in remaining] == [items[1]["id"]]

    async def test_delete_missing_returns_404(
        self, async_client: AsyncClient, test_user: dict, auth_headers
    ):
        response = await async_client.delete(
            f"/api/v1/notifications/{MISSING_ID}", headers=auth_headers(test_user)
        )
        assert response.status_code == 404

    async def test_delete_all(
        self, async_client: AsyncClient, test_user: dict, auth_headers, mentioned_twice: dict
    ):
        response = await async_client.delete(
            "/api/v1/notifications", headers=auth_headers(test_user)
        )

        assert response.status_code == 200
        assert response.json() == {"deletedCount": 2}
        summary = (
            await async_client.get("/api/v1/notifications/summary", headers=auth_headers(test_user))
        ).json()
        assert summary["totalCount"] == 0
