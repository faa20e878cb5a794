"""Tests for the Bolt wiring in MeetingBot."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from meeting_bot.bot.core import MeetingBot
from meeting_bot.config.settings import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None, slack_bot_token="xoxb-test", slack_app_token="xapp-test"
    )


@pytest.fixture
def bot(settings) -> MeetingBot:
    return MeetingBot(settings, {"config_store": MagicMock()})


class TestInjectDeps:
    """Dependency injection into handlers."""

    async def test_passes_only_declared_args(self, bot):
        received = {}

        async def handler(ack, view, context):
            received.update(ack=ack, view=view, context=context)

        wrapped = bot._inject_deps(handler)
        ack = AsyncMock()
        await wrapped(ack=ack, view={"id": "V1"}, body={"x": 1}, client=MagicMock())

        assert received["ack"] is ack
        assert received["view"] == {"id": "V1"}
        assert received["context"]["deps"] is bot.deps
        assert received["context"]["settings"] is bot.settings

    async def test_keeps_handler_name(self, bot):
        async def meeting_today(ack, command, client, context):
            pass

        assert bot._inject_deps(meeting_today).__name__ == "meeting_today"


class TestRegistration:
    """Commands, actions and views are registered on the app."""

    def test_register_handlers(self, bot):
        bot.app = MagicMock()
        bot._register_handlers()

        commands = [c.args[0] for c in bot.app.command.call_args_list]
        assert commands == [
            "/meeting-today",
            "/meeting-calendar",
            "/daily-reminder",
            "/meeting-config",
            "/create-event",
            "/update-event",
        ]
        actions = [c.args[0] for c in bot.app.action.call_args_list]
        assert actions == [
            "attending",
            "not_attending",
            "attending_all",
            "not_attending_any",
        ]
        views = [c.args[0] for c in bot.app.view.call_args_list]
        assert views == [
            "config_modal",
            "create_event_modal",
            "select_event_modal",
            "select_event_result_modal",
            "update_event_modal",
        ]

    def test_settings_added_to_deps(self, bot, settings):
        assert bot.deps["settings"] is settings

    async def test_health_check_without_app(self, bot):
        assert await bot.health_check() is False
