"""Persistence for attendance and channel configuration."""

from .app_config import AppConfig, ConfigStore, WeeklySchedule
from .attendance import (
    Attendance,
    AttendanceCounts,
    AttendanceStatus,
    AttendanceStore,
)
from .json_store import JsonFileStore

__all__ = [
    "AppConfig",
    "Attendance",
    "AttendanceCounts",
    "AttendanceStatus",
    "AttendanceStore",
    "ConfigStore",
    "JsonFileStore",
    "WeeklySchedule",
]
