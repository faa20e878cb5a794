"""Cache of Slack workspace members for display-name lookups."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import structlog
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

logger = structlog.get_logger()

# Maximum page size allowed by users.list
USERS_PAGE_SIZE = 200


@dataclass
class UserInfo:
    id: str
    name: Optional[str] = None
    real_name: Optional[str] = None
    display_name: Optional[str] = None

    @classmethod
    def from_member(cls, member: Dict[str, Any]) -> "UserInfo":
        profile = member.get("profile") or {}
        return cls(
            id=member["id"],
            name=member.get("name"),
            real_name=member.get("real_name"),
            display_name=profile.get("display_name")
            or member.get("real_name")
            or member.get("name"),
        )

    @property
    def label(self) -> str:
        return self.display_name or self.real_name or self.name or self.id


class UserCache:
    """Maps Slack user ids to display names.

    ``refresh`` swaps in a freshly fetched map; on failure the previous
    map is kept and the error is re-raised to the caller.
    """

    def __init__(self, client: AsyncWebClient) -> None:
        self.client = client
        self._users: Dict[str, UserInfo] = {}

    def __len__(self) -> int:
        return len(self._users)

    @property
    def is_ready(self) -> bool:
        return bool(self._users)

    def get(self, user_id: str) -> Optional[UserInfo]:
        return self._users.get(user_id)

    async def refresh(self) -> None:
        """Re-fetch every active, non-bot member."""
        logger.info("Refreshing user cache")
        users: Dict[str, UserInfo] = {}
        cursor: Optional[str] = None
        try:
            while True:
                response = await self.client.users_list(
                    cursor=cursor, limit=USERS_PAGE_SIZE
                )
                for member in response.get("members") or []:
                    if member.get("deleted") or member.get("is_bot"):
                        continue
                    users[member["id"]] = UserInfo.from_member(member)
                cursor = (response.get("response_metadata") or {}).get("next_cursor")
                if not cursor:
                    break
        except SlackApiError as e:
            logger.error("Error refreshing user cache", error=str(e))
            raise

        self._users = users
        logger.info("User cache refreshed", users=len(users))

    async def display_name(self, user_id: str) -> str:
        """Display name for ``user_id``, looking it up on a cache miss.

        Falls back to the raw id when the user cannot be resolved.
        """
        cached = self._users.get(user_id)
        if cached:
            return cached.label

        try:
            response = await self.client.users_info(user=user_id)
        except SlackApiError as e:
            logger.warning("Failed to fetch user", user_id=user_id, error=str(e))
            return user_id

        member = response.get("user")
        if not member or member.get("deleted"):
            return user_id
        info = UserInfo.from_member(member)
        self._users[user_id] = info
        return info.label
