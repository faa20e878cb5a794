"""Main entry point for the Slack meeting bot."""

import argparse
import asyncio
import logging
import signal
import sys
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from meeting_bot import __version__
from meeting_bot.attendance import AttendanceService
from meeting_bot.bot.core import MeetingBot
from meeting_bot.bot.user_cache import UserCache
from meeting_bot.calendar import CalendarClient
from meeting_bot.config.settings import Settings
from meeting_bot.exceptions import ConfigurationError
from meeting_bot.notifications import AnnouncementService, AnnouncementTracker
from meeting_bot.scheduler import JobScheduler
from meeting_bot.storage import AttendanceStore, ConfigStore, JsonFileStore


def setup_logging(debug: bool = False) -> None:
    """Configure structured logging."""
    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stdout,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            (
                structlog.processors.JSONRenderer()
                if not debug
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Slack Meeting Bot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version", action="version", version=f"Slack Meeting Bot {__version__}"
    )

    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    parser.add_argument("--config-file", type=Path, help="Path to configuration file")

    return parser.parse_args(argv)


async def create_application(config: Settings) -> Dict[str, Any]:
    """Create and configure the application components."""
    logger = structlog.get_logger()
    logger.info("Creating application components")

    slack_client = AsyncWebClient(token=config.slack_bot_token_str)

    attendance_store = AttendanceStore(JsonFileStore(config.attendance_file))
    config_store = ConfigStore(JsonFileStore(config.app_config_file))
    user_cache = UserCache(slack_client)
    calendar = CalendarClient.from_settings(config)
    attendance = AttendanceService(attendance_store, user_cache)

    announcements = AnnouncementService(
        client=slack_client,
        calendar=calendar,
        config_store=config_store,
        attendance=attendance,
        tracker=AnnouncementTracker(),
        default_timezone=config.default_timezone,
        start_window=timedelta(minutes=config.meeting_start_window_minutes),
    )

    dependencies = {
        "settings": config,
        "config_store": config_store,
        "attendance_store": attendance_store,
        "attendance": attendance,
        "calendar": calendar,
        "user_cache": user_cache,
        "announcements": announcements,
        "scheduler": None,
    }

    bot = MeetingBot(config, dependencies)

    logger.info("Application components created successfully")

    return {
        "bot": bot,
        "config": config,
        "config_store": config_store,
        "user_cache": user_cache,
        "announcements": announcements,
    }


async def run_application(app: Dict[str, Any]) -> None:
    """Run the application with graceful shutdown handling."""
    logger = structlog.get_logger()
    bot: MeetingBot = app["bot"]
    config: Settings = app["config"]
    config_store: ConfigStore = app["config_store"]
    user_cache: UserCache = app["user_cache"]
    announcements: AnnouncementService = app["announcements"]

    scheduler: Optional[JobScheduler] = None

    shutdown_event = asyncio.Event()

    def signal_handler(signum: int, frame: Any) -> None:
        logger.info("Shutdown signal received", signal=signum)
        shutdown_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        logger.info("Starting Slack Meeting Bot")

        await bot.initialize()

        try:
            await user_cache.refresh()
        except SlackApiError as e:
            # Names fall back to per-user lookups until the next refresh.
            logger.warning("Initial user cache load failed", error=str(e))

        tasks = []

        bot_task = asyncio.create_task(bot.start())
        tasks.append(bot_task)

        if config.enable_scheduler:
            scheduler = JobScheduler(
                announcements=announcements,
                user_cache=user_cache,
                timezone=config.default_timezone,
                user_cache_refresh_minutes=config.user_cache_refresh_minutes,
            )
            await scheduler.start(await config_store.read())
            bot.deps["scheduler"] = scheduler
            logger.info("Job scheduler enabled")

        shutdown_task = asyncio.create_task(shutdown_event.wait())
        tasks.append(shutdown_task)

        # Wait for any task to complete or shutdown signal
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)

        for task in done:
            if task.cancelled():
                continue
            exc = task.exception()
            if exc is not None:
                logger.error(
                    "Task failed",
                    task=task.get_name(),
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

        for task in pending:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    except Exception as e:
        logger.error("Application error", error=str(e))
        raise
    finally:
        logger.info("Shutting down application")

        try:
            if scheduler:
                await scheduler.stop()
            await bot.stop()
        except Exception as e:
            logger.error("Error during shutdown", error=str(e))

        logger.info("Application shutdown complete")


async def main(argv: Optional[List[str]] = None) -> None:
    """Main application entry point."""
    args = parse_args(argv)
    setup_logging(debug=args.debug)

    logger = structlog.get_logger()
    logger.info("Starting Slack Meeting Bot", version=__version__)

    try:
        from meeting_bot.config import load_config

        config = load_config(config_file=args.config_file)
        if not args.debug:
            logging.getLogger().setLevel(
                logging.DEBUG if config.debug else config.log_level
            )

        logger.info(
            "Configuration loaded",
            data_dir=str(config.data_dir),
            config_dir=str(config.config_dir),
            default_timezone=config.default_timezone,
            scheduler_enabled=config.enable_scheduler,
            debug=config.debug,
        )

        app = await create_application(config)
        await run_application(app)

    except ConfigurationError as e:
        logger.error("Configuration error", error=str(e))
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected error", error=str(e))
        sys.exit(1)


def run() -> None:
    """Synchronous entry point for setuptools."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nShutdown requested by user")
    sys.exit(0)


if __name__ == "__main__":
    run()
