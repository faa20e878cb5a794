"""Attendance keys, lookups and message refresh."""

from .refresh import has_attendance_markers, rebuild_section_text, refresh_blocks
from .service import AttendanceService, attendance_key, group_by_date

__all__ = [
    "AttendanceService",
    "attendance_key",
    "group_by_date",
    "has_attendance_markers",
    "rebuild_section_text",
    "refresh_blocks",
]
