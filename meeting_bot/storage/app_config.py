"""Channel configuration saved from the /meeting-config modal.

Stored as camelCase JSON (``channelId``, ``weeklySchedule``...) so files
written by earlier deployments keep loading.
"""

from typing import List, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from ..config.settings import DEFAULT_TIMEZONE
from .json_store import JsonFileStore

logger = structlog.get_logger()


class WeeklySchedule(BaseModel):
    """When the weekly announcement is posted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday")
    time: str = Field(..., description="HH:MM, 24-hour")


class AppConfig(BaseModel):
    """Runtime configuration edited from Slack."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    channel_id: Optional[str] = None
    calendar_id: Optional[str] = None
    timezone: Optional[str] = None
    weekly_schedule: Optional[WeeklySchedule] = None
    reminder_time: Optional[str] = None
    weekly_template: Optional[str] = None
    daily_template: Optional[str] = None
    allowed_channels: Optional[List[str]] = None

    def effective_timezone(self, default: str = DEFAULT_TIMEZONE) -> str:
        return self.timezone or default

    def can_run_in(self, channel_id: str) -> bool:
        """Whether restricted commands may run in ``channel_id``.

        An empty or missing allow-list means every channel is allowed.
        """
        if not self.allowed_channels:
            return True
        return channel_id in self.allowed_channels


class ConfigStore:
    """Loads and saves :class:`AppConfig`."""

    def __init__(self, store: JsonFileStore) -> None:
        self.store = store

    async def read(self) -> AppConfig:
        data = await self.store.read()
        try:
            return AppConfig.model_validate(data)
        except ValidationError as e:
            logger.error("Invalid app config, using defaults", error=str(e))
            return AppConfig()

    async def write(self, config: AppConfig) -> None:
        async with self.store.lock:
            await self.store.write(config.model_dump(by_alias=True, exclude_none=True))
        logger.info(
            "App config saved",
            channel_id=config.channel_id,
            calendar_id=config.calendar_id,
            timezone=config.timezone,
        )
