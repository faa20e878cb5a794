"""RRULE generation for the create-event modal's recurrence picker."""

from datetime import datetime, timedelta
from typing import List, Optional, Tuple

# Index by Python weekday(): Monday = 0.
_RRULE_DAYS = ["MO", "TU", "WE", "TH", "FR", "SA", "SU"]

RECURRENCE_OPTIONS: List[Tuple[str, str]] = [
    ("none", "Does not repeat"),
    ("daily", "Daily"),
    ("weekly", "Weekly on the same day"),
    ("monthly_weekday", "Monthly on the same weekday"),
    ("monthly_date", "Monthly on the same date"),
    ("yearly", "Annually"),
    ("weekday", "Every weekday (Monday to Friday)"),
]


def build_rrule(option: Optional[str], start: datetime) -> Optional[str]:
    """Return an RRULE line for ``option`` anchored at ``start``, or None.

    ``monthly_weekday`` uses the ordinal weekday of ``start`` (``2TU``);
    when ``start`` is the last such weekday of its month and at least the
    fourth, ``-1`` is used instead so the rule keeps landing on the last
    occurrence in shorter months.
    """
    if not option or option == "none":
        return None

    day_abbrev = _RRULE_DAYS[start.weekday()]

    if option == "daily":
        return "RRULE:FREQ=DAILY"
    if option == "weekly":
        return f"RRULE:FREQ=WEEKLY;BYDAY={day_abbrev}"
    if option == "monthly_weekday":
        week_number = (start.day + 6) // 7
        is_last = (start + timedelta(days=7)).month != start.month
        if is_last and week_number >= 4:
            return f"RRULE:FREQ=MONTHLY;BYDAY=-1{day_abbrev}"
        return f"RRULE:FREQ=MONTHLY;BYDAY={week_number}{day_abbrev}"
    if option == "monthly_date":
        return f"RRULE:FREQ=MONTHLY;BYMONTHDAY={start.day}"
    if option == "yearly":
        return "RRULE:FREQ=YEARLY"
    if option == "weekday":
        return "RRULE:FREQ=WEEKLY;BYDAY=MO,TU,WE,TH,FR"
    return None
