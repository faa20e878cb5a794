"""Main Slack bot class.

Features:
- Slack Bolt App with Socket Mode
- Slash command, action and view registration
- Dependency injection into handlers
- Graceful shutdown
"""

from typing import Any, Callable, Dict, Optional

import structlog
from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler
from slack_bolt.app.async_app import AsyncApp

from ..config.settings import Settings
from ..exceptions import MeetingBotError

logger = structlog.get_logger()


class MeetingBot:
    """Bolt application wiring for the meeting bot."""

    def __init__(self, settings: Settings, dependencies: Dict[str, Any]):
        """Initialize bot with settings and dependencies."""
        self.settings = settings
        self.deps = dependencies
        self.deps.setdefault("settings", settings)
        self.app: Optional[AsyncApp] = None
        self.socket_handler: Optional[AsyncSocketModeHandler] = None
        self.is_running = False

    async def initialize(self) -> None:
        """Initialize bot application. Idempotent, safe to call multiple times."""
        if self.app is not None:
            return

        logger.info("Initializing Slack bot")

        self.app = AsyncApp(token=self.settings.slack_bot_token_str)
        self._register_handlers()

        logger.info("Bot initialization complete")

    def _inject_deps(self, handler: Callable) -> Callable:  # type: ignore[type-arg]
        """Wrap handler to inject dependencies into Bolt context.

        Bolt uses parameter name introspection to decide what to inject.
        We must declare all possible Bolt arg names so Bolt passes them.
        """

        async def wrapped(
            ack=None,
            say=None,
            event=None,
            command=None,
            body=None,
            action=None,
            view=None,
            client=None,
            context=None,
            respond=None,
        ) -> None:
            if context is None:
                context = {}
            context["deps"] = self.deps
            context["settings"] = self.settings

            # Build kwargs dict with only the non-None Bolt args
            bolt_kwargs: Dict[str, Any] = {"context": context}
            if ack is not None:
                bolt_kwargs["ack"] = ack
            if say is not None:
                bolt_kwargs["say"] = say
            if event is not None:
                bolt_kwargs["event"] = event
            if command is not None:
                bolt_kwargs["command"] = command
            if body is not None:
                bolt_kwargs["body"] = body
            if action is not None:
                bolt_kwargs["action"] = action
            if view is not None:
                bolt_kwargs["view"] = view
            if client is not None:
                bolt_kwargs["client"] = client
            if respond is not None:
                bolt_kwargs["respond"] = respond

            # Pass only what the handler declares.
            accepted = handler.__code__.co_varnames[: handler.__code__.co_argcount]
            await handler(**{k: v for k, v in bolt_kwargs.items() if k in accepted})

        wrapped.__name__ = handler.__name__
        return wrapped

    def _register_handlers(self) -> None:
        """Register commands, attendance actions and modal submissions."""
        from .handlers import attendance, command, events

        commands = [
            ("/meeting-today", command.meeting_today),
            ("/meeting-calendar", command.meeting_calendar),
            ("/daily-reminder", command.daily_reminder),
            ("/meeting-config", command.meeting_config),
            ("/create-event", events.create_event_command),
            ("/update-event", events.update_event_command),
        ]
        for name, handler in commands:
            self.app.command(name)(self._inject_deps(handler))

        actions = [
            ("attending", attendance.handle_attending),
            ("not_attending", attendance.handle_not_attending),
            ("attending_all", attendance.handle_attending_all),
            ("not_attending_any", attendance.handle_not_attending_any),
        ]
        for action_id, handler in actions:
            self.app.action(action_id)(self._inject_deps(handler))

        views = [
            ("config_modal", command.config_submission),
            ("create_event_modal", events.create_event_submission),
            ("select_event_modal", events.select_event_submission),
            ("select_event_result_modal", events.select_event_result_submission),
            ("update_event_modal", events.update_event_submission),
        ]
        for callback_id, handler in views:
            self.app.view(callback_id)(self._inject_deps(handler))

        logger.info(
            "Handlers registered",
            commands=len(commands),
            actions=len(actions),
            views=len(views),
        )

    async def start(self) -> None:
        """Start the bot with Socket Mode."""
        if self.is_running:
            logger.warning("Bot is already running")
            return

        await self.initialize()

        logger.info("Starting bot", mode="socket_mode")

        try:
            self.is_running = True

            self.socket_handler = AsyncSocketModeHandler(
                self.app, self.settings.slack_app_token_str
            )

            # start_async() blocks until the handler is closed
            await self.socket_handler.start_async()

        except Exception as e:
            logger.error("Error running bot", error=str(e))
            raise MeetingBotError(f"Failed to start bot: {str(e)}") from e
        finally:
            self.is_running = False

    async def stop(self) -> None:
        """Gracefully stop the bot."""
        if not self.is_running:
            logger.warning("Bot is not running")
            return

        logger.info("Stopping bot")

        try:
            self.is_running = False
            if self.socket_handler:
                await self.socket_handler.close_async()
            logger.info("Bot stopped successfully")
        except Exception as e:
            logger.error("Error stopping bot", error=str(e))
            raise MeetingBotError(f"Failed to stop bot: {str(e)}") from e

    async def health_check(self) -> bool:
        """Perform health check."""
        try:
            if not self.app:
                return False
            await self.app.client.auth_test()
            return True
        except Exception as e:
            logger.error("Health check failed", error=str(e))
            return False
