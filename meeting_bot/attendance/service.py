"""Resolve stored attendance into display names for calendar events."""

import asyncio
from collections import OrderedDict
from datetime import date
from typing import Dict, Iterable, List, Sequence, Tuple

import structlog

from ..bot.user_cache import UserCache
from ..calendar.models import CalendarEvent
from ..storage.attendance import Attendance, AttendanceStatus, AttendanceStore

logger = structlog.get_logger()


def attendance_key(event: CalendarEvent, tz: str) -> str:
    """Stable key under which attendance for ``event`` is stored.

    Instances of a recurring series get new ids whenever the series is
    edited, so they are keyed by series id plus their local start date.
    """
    if event.recurring_event_id:
        key = f"{event.recurring_event_id}|{event.local_date(tz).isoformat()}"
        logger.debug("Recurring attendance key", key=key, instance_id=event.id)
        return key
    return event.id


class AttendanceService:
    """Reads attendance and maps user ids to display names."""

    def __init__(self, store: AttendanceStore, user_cache: UserCache) -> None:
        self.store = store
        self.user_cache = user_cache

    async def attendees(self, key: str) -> Attendance:
        entries = await self.store.get_event(key)
        attendance = Attendance()
        for user_id, entry in entries.items():
            status = entry.get("status")
            if status == AttendanceStatus.ATTENDING.value:
                attendance.attending.append(await self.user_cache.display_name(user_id))
            elif status == AttendanceStatus.NOT_ATTENDING.value:
                attendance.not_attending.append(
                    await self.user_cache.display_name(user_id)
                )
        return attendance

    async def event_with_attendance(
        self, event: CalendarEvent, tz: str
    ) -> Tuple[CalendarEvent, str, Attendance]:
        key = attendance_key(event, tz)
        return event, key, await self.attendees(key)

    async def events_with_attendance(
        self, events: Sequence[CalendarEvent], tz: str
    ) -> List[Tuple[CalendarEvent, str, Attendance]]:
        """``(event, key, attendance)`` for each event, in input order."""
        return list(
            await asyncio.gather(
                *(self.event_with_attendance(event, tz) for event in events)
            )
        )

    async def attendance_by_key(self, keys: Iterable[str]) -> Dict[str, Attendance]:
        unique = list(dict.fromkeys(keys))
        results = await asyncio.gather(*(self.attendees(key) for key in unique))
        return dict(zip(unique, results))


def group_by_date(
    items: Iterable[Tuple[CalendarEvent, str, Attendance]], tz: str
) -> "OrderedDict[date, List[Tuple[CalendarEvent, str, Attendance]]]":
    """Group ``(event, key, attendance)`` tuples by local start date, ascending."""
    groups: Dict[date, List[Tuple[CalendarEvent, str, Attendance]]] = {}
    for item in items:
        groups.setdefault(item[0].local_date(tz), []).append(item)
    return OrderedDict(sorted(groups.items()))
