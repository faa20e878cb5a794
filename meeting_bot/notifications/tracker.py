"""In-memory record of what has already been announced."""

from datetime import date, datetime
from typing import Dict, Optional

import structlog

logger = structlog.get_logger()


class AnnouncementTracker:
    """Keys that have been posted, each with an optional expiry.

    Owned by the announcement service rather than held at module level,
    so each bot instance (and each test) starts from a clean slate.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Optional[datetime]] = {}
        self._day: Optional[date] = None

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.seen(key)

    def seen(self, key: str) -> bool:
        return key in self._entries

    def mark(self, key: str, expires_at: Optional[datetime] = None) -> None:
        self._entries[key] = expires_at

    def reset_if_new_day(self, day: date) -> bool:
        """Forget everything when ``day`` differs from the last day seen."""
        if self._day == day:
            return False
        if self._day is not None:
            logger.info(
                "New day, resetting announcement tracking",
                previous_day=self._day.isoformat(),
                day=day.isoformat(),
                cleared=len(self._entries),
            )
            self._entries.clear()
        self._day = day
        return True

    def purge(self, now: datetime) -> int:
        """Drop entries whose expiry is at or before ``now``."""
        expired = [
            key
            for key, expires_at in self._entries.items()
            if expires_at is not None and expires_at <= now
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Purged announcement entries", count=len(expired))
        return len(expired)
