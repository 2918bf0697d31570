from datetime import date, time
from typing import Optional


def format_date_for_display(value: Optional[date], long: bool = False) -> str:
    """e.g. "Mon, 5 Jan 2026" or, with long=True, "Monday, 5 January 2026"."""
    if value is None:
        return "TBD"
    if long:
        return f"{value.strftime('%A')}, {value.day} {value.strftime('%B %Y')}"
    return f"{value.strftime('%a')}, {value.day} {value.strftime('%b %Y')}"


def format_time_for_display(value: Optional[time]) -> str:
    """12-hour clock, e.g. "07:00 PM"."""
    if value is None:
        return "TBD"
    return value.strftime("%I:%M %p")
