"""Attendance records keyed by attendance key and Slack user id."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

import structlog

from .json_store import JsonFileStore

logger = structlog.get_logger()


class AttendanceStatus(str, Enum):
    ATTENDING = "attending"
    NOT_ATTENDING = "not_attending"


@dataclass
class Attendance:
    """Display names grouped by status for one event."""

    attending: List[str] = field(default_factory=list)
    not_attending: List[str] = field(default_factory=list)


@dataclass
class AttendanceCounts:
    attending: int = 0
    not_attending: int = 0

    @property
    def total(self) -> int:
        return self.attending + self.not_attending


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class AttendanceStore:
    """Persisted attendance in the shape::

        {attendance_key: {user_id: {"status": ..., "timestamp": iso}}}
    """

    def __init__(self, store: JsonFileStore) -> None:
        self.store = store

    async def read_all(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        return await self.store.read()

    async def get_event(self, key: str) -> Dict[str, Dict[str, Any]]:
        """Entries for one attendance key, in insertion order."""
        data = await self.store.read()
        return dict(data.get(key, {}))

    async def record(
        self,
        key: str,
        user_id: str,
        status: AttendanceStatus,
        timestamp: Optional[str] = None,
    ) -> None:
        """Set one user's status for one event."""
        await self.record_many([(key, user_id, status)], timestamp)

    async def record_many(
        self,
        updates: Iterable[Tuple[str, str, AttendanceStatus]],
        timestamp: Optional[str] = None,
    ) -> None:
        """Apply several updates with one read and one write."""
        stamp = timestamp or _now_iso()
        async with self.store.lock:
            data = await self.store.read_for_update()
            count = 0
            for key, user_id, status in updates:
                data.setdefault(key, {})[user_id] = {
                    "status": AttendanceStatus(status).value,
                    "timestamp": stamp,
                }
                count += 1
            await self.store.write(data)
        logger.info("Attendance recorded", updates=count)

    async def counts(self, key: str) -> AttendanceCounts:
        counts = AttendanceCounts()
        for entry in (await self.get_event(key)).values():
            status = entry.get("status")
            if status == AttendanceStatus.ATTENDING.value:
                counts.attending += 1
            elif status == AttendanceStatus.NOT_ATTENDING.value:
                counts.not_attending += 1
        return counts
