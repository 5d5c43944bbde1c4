"""Display labels for events shown on the signage page."""
from datetime import datetime
from typing import Optional, Tuple

from processor.models import DisplayRecord, NormalizedEvent, Page

SAME_INSTANT_SECONDS = 60
RANGE_DASH = '–'
ALL_DAY_LABEL = 'All day'


def format_day(value: datetime) -> str:
    """Format a date like "Fri, Jan 9"."""
    return f"{value:%a}, {value:%b} {value.day}"


def format_clock(value: datetime) -> str:
    """Format a time like "5:00 PM"."""
    hour = value.hour % 12 or 12
    meridiem = 'AM' if value.hour < 12 else 'PM'
    return f"{hour}:{value.minute:02d} {meridiem}"


def is_same_instant(start: datetime, end: Optional[datetime]) -> bool:
    """True when there is no end or it lies within a minute of the start."""
    if end is None:
        return True
    return abs((end - start).total_seconds()) <= SAME_INSTANT_SECONDS


def format_date_label(start: datetime, end: Optional[datetime] = None) -> str:
    label = format_day(start)
    if end is not None and end.date() != start.date():
        label = f"{label} {RANGE_DASH} {format_day(end)}"
    return label


def format_time_label(
    start: datetime,
    end: Optional[datetime] = None,
    all_day: bool = False
) -> str:
    """Clock time or range, or ALL_DAY_LABEL when the feed gave no time."""
    if all_day:
        return ALL_DAY_LABEL
    if is_same_instant(start, end):
        return format_clock(start)
    return f"{format_clock(start)} {RANGE_DASH} {format_clock(end)}"


def to_display_record(event: NormalizedEvent) -> DisplayRecord:
    """
    Build the renderer payload for one event.

    Title and location are passed through unescaped.

    Args:
        event: Windowed event, which always has a start

    Returns:
        DisplayRecord with formatted date and time labels
    """
    return DisplayRecord(
        date_label=format_date_label(event.start, event.end),
        time_label=format_time_label(event.start, event.end, event.all_day),
        title=event.title,
        location=event.location
    )


def page_records(page: Page) -> Tuple[DisplayRecord, ...]:
    return tuple(to_display_record(event) for event in page.items)
