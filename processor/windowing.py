"""Time windowing and ranking of normalized events."""
import logging
from datetime import datetime, time
from typing import Iterable, List, Tuple

from dateutil.relativedelta import relativedelta

from processor.models import NormalizedEvent

logger = logging.getLogger(__name__)

EVENTS_MAX = 32
HORIZON_MONTHS = 4


def horizon_end(now: datetime, horizon_months: int = HORIZON_MONTHS) -> datetime:
    """Return ``now`` advanced by whole calendar months."""
    return now + relativedelta(months=horizon_months)


def filter_window(
    events: Iterable[NormalizedEvent],
    now: datetime,
    horizon_months: int = HORIZON_MONTHS
) -> List[NormalizedEvent]:
    """
    Keep events starting between ``now`` and the horizon, both inclusive.

    Events without a start timestamp are dropped.

    Args:
        events: Normalized events
        now: Reference time captured once for the run
        horizon_months: Calendar months to look ahead

    Returns:
        Events inside the window, in input order
    """
    max_date = horizon_end(now, horizon_months)
    kept = []
    undated = 0

    for event in events:
        if event.start is None:
            undated += 1
            continue
        if now <= event.start <= max_date:
            kept.append(event)

    if undated:
        logger.debug(f"Dropped {undated} events without a start date from window")
    return kept


def rank_events(
    events: Iterable[NormalizedEvent],
    limit: int = EVENTS_MAX
) -> List[NormalizedEvent]:
    """
    Sort events by start, then title, and keep the first ``limit``.

    Args:
        events: Events with a start timestamp
        limit: Maximum number of events to return

    Returns:
        Ranked and capped list
    """
    ranked = sorted(events, key=lambda event: (event.start, event.title))
    if len(ranked) > limit:
        logger.info(f"Capping {len(ranked)} events to {limit}")
    return ranked[:limit]


def build_window(
    events: Iterable[NormalizedEvent],
    now: datetime,
    horizon_months: int = HORIZON_MONTHS,
    limit: int = EVENTS_MAX
) -> Tuple[NormalizedEvent, ...]:
    """Filter to the horizon, rank, and cap in one step."""
    return tuple(rank_events(filter_window(events, now, horizon_months), limit))


def is_past_event(event: NormalizedEvent, now: datetime) -> bool:
    """
    Check whether an event has fully ended.

    An event stays current until the end of the day of its end (or start,
    when it has no end). Events without a parsable start, or whose end
    date could not be read, are never past.

    Args:
        event: Normalized event
        now: Reference time

    Returns:
        True if the event ended before ``now``
    """
    if event.start is None or event.end_unparsed:
        return False

    last_day = (event.end or event.start).date()
    return datetime.combine(last_day, time.max) < now


def drop_past_events(
    events: Iterable[NormalizedEvent],
    now: datetime
) -> Tuple[List[NormalizedEvent], int]:
    """
    Remove events that have already ended.

    Returns:
        Tuple of (remaining events, number dropped)
    """
    remaining = []
    dropped = 0

    for event in events:
        if is_past_event(event, now):
            dropped += 1
        else:
            remaining.append(event)

    return remaining, dropped


def sort_for_snapshot(events: Iterable[NormalizedEvent]) -> List[NormalizedEvent]:
    """Order dated events by start then title, followed by undated events by title."""
    return sorted(
        events,
        key=lambda event: (
            event.start is None,
            event.start or datetime.min,
            event.title
        )
    )
