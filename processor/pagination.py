"""Partitioning of ranked events into display pages."""
from typing import Sequence, Tuple

from processor.models import NormalizedEvent, Page

EVENTS_PER_PAGE = 4


def paginate(
    ranked_events: Sequence[NormalizedEvent],
    page_size: int = EVENTS_PER_PAGE
) -> Tuple[Page, ...]:
    """
    Split ranked events into fixed-size pages.

    The final page may be short. No events means no pages.

    Args:
        ranked_events: Events in display order
        page_size: Events per page

    Returns:
        Tuple of Page objects indexed from 0

    Raises:
        ValueError: If page_size is less than 1
    """
    if page_size < 1:
        raise ValueError(f"page_size must be at least 1, got {page_size}")

    return tuple(
        Page(
            index=index,
            items=tuple(ranked_events[offset:offset + page_size])
        )
        for index, offset in enumerate(range(0, len(ranked_events), page_size))
    )
