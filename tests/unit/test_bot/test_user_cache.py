"""Tests for the Slack user cache."""

from unittest.mock import AsyncMock

import pytest
from slack_sdk.errors import SlackApiError

from meeting_bot.bot.user_cache import USERS_PAGE_SIZE, UserCache, UserInfo


def _member(user_id: str, **fields) -> dict:
    member = {"id": user_id, "name": user_id.lower(), "profile": {}}
    member.update(fields)
    return member


@pytest.fixture
def mock_client() -> AsyncMock:
    client = AsyncMock()
    client.users_list = AsyncMock(
        return_value={
            "members": [
                _member(
                    "U1", real_name="Alice Smith", profile={"display_name": "alice"}
                ),
                _member("U2", real_name="Bob Jones"),
                _member("U3", deleted=True),
                _member("B1", is_bot=True),
            ],
            "response_metadata": {"next_cursor": ""},
        }
    )
    return client


class TestUserInfo:
    """Display-name fallbacks."""

    def test_prefers_profile_display_name(self):
        info = UserInfo.from_member(
            _member("U1", real_name="Alice Smith", profile={"display_name": "alice"})
        )
        assert info.label == "alice"

    def test_falls_back_to_real_name_then_name(self):
        assert UserInfo.from_member(_member("U1", real_name="Alice")).label == "Alice"
        assert UserInfo.from_member(_member("U1")).label == "u1"

    def test_falls_back_to_id(self):
        assert UserInfo(id="U9").label == "U9"


class TestUserCache:
    """Refresh and lookup behaviour."""

    async def test_refresh_skips_deleted_and_bots(self, mock_client: AsyncMock):
        """Only active humans are cached."""
        cache = UserCache(mock_client)
        await cache.refresh()
        assert len(cache) == 2
        assert cache.is_ready
        assert cache.get("U3") is None
        assert cache.get("B1") is None
        mock_client.users_list.assert_awaited_once_with(
            cursor=None, limit=USERS_PAGE_SIZE
        )

    async def test_refresh_follows_cursor(self, mock_client: AsyncMock):
        mock_client.users_list = AsyncMock(
            side_effect=[
                {
                    "members": [_member("U1")],
                    "response_metadata": {"next_cursor": "page2"},
                },
                {"members": [_member("U2")], "response_metadata": {}},
            ]
        )
        cache = UserCache(mock_client)
        await cache.refresh()
        assert len(cache) == 2
        assert mock_client.users_list.await_args_list[1].kwargs["cursor"] == "page2"

    async def test_refresh_failure_keeps_previous_map(self, mock_client: AsyncMock):
        cache = UserCache(mock_client)
        await cache.refresh()
        mock_client.users_list = AsyncMock(
            side_effect=SlackApiError("ratelimited", {"ok": False})
        )
        with pytest.raises(SlackApiError):
            await cache.refresh()
        assert len(cache) == 2

    async def test_display_name_cached(self, mock_client: AsyncMock):
        cache = UserCache(mock_client)
        await cache.refresh()
        assert await cache.display_name("U1") == "alice"
        assert await cache.display_name("U2") == "Bob Jones"
        mock_client.users_info.assert_not_awaited()

    async def test_display_name_lookup_on_miss(self, mock_client: AsyncMock):
        """A cache miss is fetched once and then remembered."""
        mock_client.users_info = AsyncMock(
            return_value={"user": _member("U7", real_name="Grace")}
        )
        cache = UserCache(mock_client)
        assert await cache.display_name("U7") == "Grace"
        assert await cache.display_name("U7") == "Grace"
        mock_client.users_info.assert_awaited_once_with(user="U7")

    async def test_display_name_falls_back_to_id(self, mock_client: AsyncMock):
        mock_client.users_info = AsyncMock(
            side_effect=SlackApiError("user_not_found", {"ok": False})
        )
        cache = UserCache(mock_client)
        assert await cache.display_name("U404") == "U404"

    async def test_deleted_user_falls_back_to_id(self, mock_client: AsyncMock):
        mock_client.users_info = AsyncMock(
            return_value={"user": _member("U8", deleted=True, real_name="Gone")}
        )
        cache = UserCache(mock_client)
        assert await cache.display_name("U8") == "U8"
