"""Scheduled and ad-hoc channel announcements."""

from .service import AnnouncementService
from .tracker import AnnouncementTracker

__all__ = ["AnnouncementService", "AnnouncementTracker"]
