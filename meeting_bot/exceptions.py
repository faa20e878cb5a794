"""Custom exceptions for Slack Meeting Bot."""


class MeetingBotError(Exception):
    """Base exception for Slack Meeting Bot."""


class ConfigurationError(MeetingBotError):
    """Configuration-related errors."""


class MissingConfigError(ConfigurationError):
    """Required configuration is missing."""


class InvalidConfigError(ConfigurationError):
    """Configuration is invalid."""


class CalendarError(MeetingBotError):
    """Google Calendar API errors."""


class CalendarPermissionError(CalendarError):
    """Service account lacks permission on the calendar."""


class CalendarNotFoundError(CalendarError):
    """Calendar or event does not exist."""


class StorageError(MeetingBotError):
    """Storage-related errors."""
