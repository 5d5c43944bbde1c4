"""Refresh cycle that feeds windowed, paginated events to the rotation."""
import asyncio
import logging
from datetime import datetime
from typing import Callable, Tuple

from display.rotation import RotationScheduler
from feed.exceptions import FeedError
from processor.models import NormalizedEvent, Page
from processor.pagination import EVENTS_PER_PAGE, paginate
from processor.windowing import EVENTS_MAX, HORIZON_MONTHS, build_window

logger = logging.getLogger(__name__)


class EventBoard:
    """
    Owner of the current event window and its pages.

    Each refresh reloads events from the source, recomputes the window
    against a single captured ``now`` and installs fresh pages on the
    scheduler. A failed refresh keeps the previous window on screen.
    """

    def __init__(
        self,
        source,
        scheduler: RotationScheduler,
        clock: Callable[[], datetime] = datetime.now,
        horizon_months: int = HORIZON_MONTHS,
        events_max: int = EVENTS_MAX,
        page_size: int = EVENTS_PER_PAGE
    ):
        self.source = source
        self.scheduler = scheduler
        self.clock = clock
        self.horizon_months = horizon_months
        self.events_max = events_max
        self.page_size = page_size

        self.window: Tuple[NormalizedEvent, ...] = ()
        self.pages: Tuple[Page, ...] = ()
        self.last_refresh_time = None

        self._latest_request = 0

    async def refresh(self) -> bool:
        """
        Reload events and install a new window.

        Only the most recently issued refresh may install its result.

        Returns:
            True if a new window was installed
        """
        self._latest_request += 1
        request_id = self._latest_request

        try:
            events = await self.source.load_events()
        except FeedError as e:
            logger.error(
                f"Event refresh failed, keeping {len(self.window)} events on screen: {e}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            return False

        if request_id != self._latest_request:
            logger.warning(
                f"Discarding result of refresh {request_id}, "
                f"refresh {self._latest_request} is newer"
            )
            return False

        now = self.clock()
        self.window = build_window(
            events,
            now,
            horizon_months=self.horizon_months,
            limit=self.events_max
        )
        self.pages = paginate(self.window, self.page_size)
        self.last_refresh_time = now
        self.scheduler.install(self.pages)

        logger.info(
            f"Refreshed events: {len(self.window)} of {len(events)} in window, "
            f"{len(self.pages)} pages"
        )
        return True

    async def run(self, refresh_seconds: float) -> None:
        """Refresh immediately, then on every ``refresh_seconds`` until cancelled."""
        while True:
            try:
                await self.refresh()
            except Exception as e:
                logger.error(f"Unexpected refresh error: {e}", exc_info=True)
            await asyncio.sleep(refresh_seconds)
