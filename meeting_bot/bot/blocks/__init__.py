"""Block Kit builders for messages and modals."""

from .event_blocks import (
    EventDisplayOptions,
    attendance_buttons,
    attendance_text,
    attending_all_button,
    bulk_attendance_buttons,
    date_header,
    divider,
    event_section,
    event_text,
    event_with_buttons,
    intro_section,
    not_attending_any_button,
)
from .modal_blocks import (
    config_modal,
    config_saved_view,
    create_event_modal,
    event_selection_modal,
    search_event_modal,
    success_modal,
    update_event_modal,
    view_values,
)

__all__ = [
    # Message blocks
    "EventDisplayOptions",
    "attendance_buttons",
    "attendance_text",
    "attending_all_button",
    "bulk_attendance_buttons",
    "date_header",
    "divider",
    "event_section",
    "event_text",
    "event_with_buttons",
    "intro_section",
    "not_attending_any_button",
    # Modals
    "config_modal",
    "config_saved_view",
    "create_event_modal",
    "event_selection_modal",
    "search_event_modal",
    "success_modal",
    "update_event_modal",
    "view_values",
]
