"""Slack Bolt handler exports for commands, actions and view submissions."""

from .attendance import (
    handle_attending,
    handle_attending_all,
    handle_not_attending,
    handle_not_attending_any,
)
from .command import (
    config_submission,
    daily_reminder,
    meeting_calendar,
    meeting_config,
    meeting_today,
)
from .events import (
    create_event_command,
    create_event_submission,
    select_event_result_submission,
    select_event_submission,
    update_event_command,
    update_event_submission,
)

__all__ = [
    # Slash command handlers
    "meeting_today",
    "meeting_calendar",
    "daily_reminder",
    "meeting_config",
    "create_event_command",
    "update_event_command",
    # Action handlers (attendance buttons)
    "handle_attending",
    "handle_not_attending",
    "handle_attending_all",
    "handle_not_attending_any",
    # View submission handlers
    "config_submission",
    "create_event_submission",
    "select_event_submission",
    "select_event_result_submission",
    "update_event_submission",
]
