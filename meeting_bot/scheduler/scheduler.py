"""Job scheduler for the bot's recurring posts.

Wraps APScheduler's AsyncIOScheduler.  Two jobs follow the saved
channel configuration (the daily reminder and the weekly announcement)
and are rescheduled whenever it changes; two run at fixed intervals
(meeting-start checks and the user cache refresh).

IMPORTANT: day-of-week convention:
    Standard crontab:  0=Sun, 1=Mon, 2=Tue, 3=Wed, 4=Thu, 5=Fri, 6=Sat
    APScheduler native: 0=Mon, 1=Tue, 2=Wed, 3=Thu, 4=Fri, 5=Sat, 6=Sun

    APScheduler's CronTrigger.from_crontab() does NOT convert the
    day-of-week field.  The saved weekly schedule uses 0=Sunday, so the
    crontab is parsed here and the field converted explicitly.
"""

import re
from typing import Any, Awaitable, Callable, Dict, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog
from apscheduler.schedulers.asyncio import (
    AsyncIOScheduler,  # type: ignore[import-untyped]
)
from apscheduler.triggers.cron import CronTrigger  # type: ignore[import-untyped]
from apscheduler.triggers.interval import (
    IntervalTrigger,  # type: ignore[import-untyped]
)

from ..bot.user_cache import UserCache
from ..calendar.timezone import parse_hhmm
from ..config.settings import DEFAULT_TIMEZONE
from ..exceptions import InvalidConfigError
from ..notifications.service import AnnouncementService
from ..storage.app_config import AppConfig

logger = structlog.get_logger()

# How long after a missed fire we'll still execute the job (seconds).
MISFIRE_GRACE_SECONDS = 10 * 60

DAILY_REMINDER_JOB = "daily-reminder"
WEEKLY_ANNOUNCEMENT_JOB = "weekly-announcement"
MEETING_STARTS_JOB = "meeting-starts"
USER_CACHE_REFRESH_JOB = "user-cache-refresh"


# ── Crontab → CronTrigger helper ─────────────────────────────────────


# Named days APScheduler understands directly (case-insensitive).
_NAMED_DAYS = {"mon", "tue", "wed", "thu", "fri", "sat", "sun"}

# Mapping from crontab numeric dow (0=Sun … 6=Sat) to APScheduler
# numeric dow (0=Mon … 6=Sun).
_CRONTAB_DOW_TO_APSCHEDULER = {
    0: 6,
    1: 0,
    2: 1,
    3: 2,
    4: 3,
    5: 4,
    6: 5,
    7: 6,
}


def _convert_dow_token(token: str) -> str:
    """Convert a single crontab day-of-week token to APScheduler convention.

    Handles plain numbers (``3``), ranges (``1-5``), stepped ranges
    (``1-5/2``) and named days (``mon``).  Named days and wildcards are
    passed through unchanged.
    """
    if token.lower() in _NAMED_DAYS or token in ("*", "?"):
        return token
    if token.startswith("*/") or token.startswith("?/"):
        return token

    range_match = re.match(r"^(\d+)-(\d+)(/\d+)?$", token)
    if range_match:
        orig_lo, orig_hi = int(range_match.group(1)), int(range_match.group(2))
        lo = _CRONTAB_DOW_TO_APSCHEDULER.get(orig_lo)
        hi = _CRONTAB_DOW_TO_APSCHEDULER.get(orig_hi)
        if lo is None or hi is None:
            return token
        step = range_match.group(3) or ""
        if lo <= hi:
            return f"{lo}-{hi}{step}"
        # Converted range wraps (crontab 0-4 is AP 6,0-3): enumerate it.
        step_val = int(step[1:]) if step else 1
        days = [
            str(_CRONTAB_DOW_TO_APSCHEDULER[d])
            for d in range(orig_lo, orig_hi + 1, step_val)
            if d in _CRONTAB_DOW_TO_APSCHEDULER
        ]
        return ",".join(days) if days else token

    if token.isdigit():
        converted = _CRONTAB_DOW_TO_APSCHEDULER.get(int(token))
        return str(converted) if converted is not None else token

    return token


def _convert_dow_field(field: str) -> str:
    """Convert a full crontab day-of-week field (may be comma-separated)."""
    return ",".join(_convert_dow_token(p.strip()) for p in field.split(","))


def parse_crontab(expression: str, tz: Optional[ZoneInfo] = None) -> CronTrigger:
    """Parse a standard 5-field crontab expression into a CronTrigger.

    Unlike ``CronTrigger.from_crontab()``, this converts the day-of-week
    field from crontab convention (0=Sun) to APScheduler's (0=Mon).
    """
    fields = expression.strip().split()
    if len(fields) != 5:
        raise ValueError(
            f"Expected 5-field crontab expression, got {len(fields)}: {expression!r}"
        )

    minute, hour, day, month, dow = fields
    return CronTrigger(
        minute=minute,
        hour=hour,
        day=day,
        month=month,
        day_of_week=_convert_dow_field(dow),
        timezone=tz,
    )


def daily_cron(reminder_time: str) -> str:
    hour, minute = parse_hhmm(reminder_time)
    return f"{minute} {hour} * * *"


def weekly_cron(day_of_week: int, time: str) -> str:
    if not 0 <= day_of_week <= 6:
        raise ValueError(f"Day of week out of range: {day_of_week}")
    hour, minute = parse_hhmm(time)
    return f"{minute} {hour} * * {day_of_week}"


# ── JobScheduler ─────────────────────────────────────────────────────


class JobScheduler:
    """Runs announcement and maintenance jobs inside the bot's event loop."""

    def __init__(
        self,
        announcements: AnnouncementService,
        user_cache: UserCache,
        timezone: str = DEFAULT_TIMEZONE,
        meeting_check_seconds: int = 60,
        user_cache_refresh_minutes: int = 30,
    ) -> None:
        self.announcements = announcements
        self.user_cache = user_cache
        self.default_timezone = timezone
        self.meeting_check_seconds = meeting_check_seconds
        self.user_cache_refresh_minutes = user_cache_refresh_minutes
        self._scheduler = AsyncIOScheduler(
            job_defaults={"misfire_grace_time": MISFIRE_GRACE_SECONDS},
            timezone=ZoneInfo(timezone),
        )

    # ── Lifecycle ─────────────────────────────────────────────────

    async def start(self, config: Optional[AppConfig] = None) -> None:
        """Add the fixed jobs, sync the configured ones and start."""
        self._scheduler.add_job(
            self._run,
            trigger=IntervalTrigger(seconds=self.meeting_check_seconds),
            args=[MEETING_STARTS_JOB, self.announcements.announce_meeting_starts],
            id=MEETING_STARTS_JOB,
            name=MEETING_STARTS_JOB,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.add_job(
            self._run,
            trigger=IntervalTrigger(minutes=self.user_cache_refresh_minutes),
            args=[USER_CACHE_REFRESH_JOB, self.user_cache.refresh],
            id=USER_CACHE_REFRESH_JOB,
            name=USER_CACHE_REFRESH_JOB,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        if config is not None:
            try:
                self.sync_with_config(config)
            except InvalidConfigError as e:
                logger.error("Saved schedule is invalid", error=str(e))

        self._scheduler.start()
        logger.info("Job scheduler started", jobs=self.job_ids())

    async def stop(self) -> None:
        """Shutdown the scheduler gracefully."""
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        logger.info("Job scheduler stopped")

    # ── Public API ────────────────────────────────────────────────

    def job_ids(self) -> List[str]:
        return sorted(job.id for job in self._scheduler.get_jobs())

    def next_run_time(self, job_id: str) -> Any:
        job = self._scheduler.get_job(job_id)
        # Pending jobs (scheduler not started yet) have no next_run_time.
        return getattr(job, "next_run_time", None)

    def sync_with_config(self, config: AppConfig) -> Dict[str, Optional[str]]:
        """(Re)schedule the daily and weekly jobs from ``config``.

        Jobs whose time is missing are removed; invalid times are logged
        and leave the job unscheduled.  Returns the crontab each job now
        runs on (None when unscheduled).

        Raises:
            InvalidConfigError: if the configured timezone is unknown.
        """
        tz_name = config.effective_timezone(self.default_timezone)
        try:
            tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise InvalidConfigError(f"Unknown timezone: {tz_name}") from e

        schedules: Dict[str, Optional[str]] = {
            DAILY_REMINDER_JOB: None,
            WEEKLY_ANNOUNCEMENT_JOB: None,
        }

        if config.reminder_time:
            try:
                schedules[DAILY_REMINDER_JOB] = daily_cron(config.reminder_time)
            except ValueError as e:
                logger.warning(
                    "Invalid reminder time, skipping daily reminder",
                    reminder_time=config.reminder_time,
                    error=str(e),
                )

        weekly = config.weekly_schedule
        if weekly is not None and weekly.time:
            try:
                schedules[WEEKLY_ANNOUNCEMENT_JOB] = weekly_cron(
                    weekly.day_of_week, weekly.time
                )
            except ValueError as e:
                logger.warning(
                    "Invalid weekly schedule, skipping weekly announcement",
                    day_of_week=weekly.day_of_week,
                    time=weekly.time,
                    error=str(e),
                )

        jobs: Dict[str, Callable[[], Awaitable[Any]]] = {
            DAILY_REMINDER_JOB: self.announcements.post_daily_reminders,
            WEEKLY_ANNOUNCEMENT_JOB: self.announcements.post_weekly_announcement,
        }
        for job_id, cron in schedules.items():
            if cron is None:
                self._remove(job_id)
                continue
            job = self._scheduler.add_job(
                self._run,
                trigger=parse_crontab(cron, tz=tz),
                args=[job_id, jobs[job_id]],
                id=job_id,
                name=job_id,
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )
            logger.info(
                "Scheduled job updated",
                job_id=job_id,
                cron=cron,
                timezone=tz_name,
                next_fire=str(getattr(job, "next_run_time", None) or "pending"),
            )
        return schedules

    # ── Job execution ─────────────────────────────────────────────

    def _remove(self, job_id: str) -> None:
        if self._scheduler.get_job(job_id) is not None:
            self._scheduler.remove_job(job_id)
            logger.info("Scheduled job removed", job_id=job_id)

    async def _run(self, job_id: str, func: Callable[[], Awaitable[Any]]) -> None:
        """Called by APScheduler; failures are logged so the job keeps firing."""
        logger.debug("Scheduled job fired", job_id=job_id)
        try:
            await func()
        except Exception:
            logger.exception("Scheduled job failed", job_id=job_id)
