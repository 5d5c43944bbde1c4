"""Timed page rotation for the events panel."""
import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional, Sequence, Tuple

from display.formatting import page_records
from display.renderers import PageRenderer
from processor.models import Page, RotationState

logger = logging.getLogger(__name__)

IDLE = 'idle'
DISPLAYING = 'displaying'
TRANSITIONING = 'transitioning'


class RotationScheduler:
    """
    Cycles installed pages on a fixed interval.

    Owns the installed pages and their RotationState. ``install`` and
    ``advance`` are the only operations that change them, and both run on
    the event loop.
    """

    PAGE_SECONDS = 20
    SETTLE_SECONDS = 0.35

    def __init__(
        self,
        renderer: PageRenderer,
        interval: float = PAGE_SECONDS,
        settle_delay: float = SETTLE_SECONDS,
        clock: Callable[[], datetime] = datetime.now
    ):
        """
        Initialize the scheduler in the idle state.

        Args:
            renderer: Receiver of fade and render signals
            interval: Seconds each page stays on screen
            settle_delay: Seconds between fade-out and fade-in
            clock: Source of the current time
        """
        self.renderer = renderer
        self.interval = interval
        self.settle_delay = settle_delay
        self.clock = clock
        self.pages: Tuple[Page, ...] = ()
        self.state: Optional[RotationState] = None

        self._generation = 0
        self._transitioning = False
        self._running = False
        self._timer_task: Optional[asyncio.Task] = None

    @property
    def phase(self) -> str:
        if self.state is None:
            return IDLE
        return TRANSITIONING if self._transitioning else DISPLAYING

    @property
    def current_page(self) -> Optional[Page]:
        if self.state is None:
            return None
        return self.pages[self.state.current_index]

    @property
    def running(self) -> bool:
        return self._running

    def install(self, pages: Sequence[Page]) -> None:
        """
        Replace the installed pages and show the first one.

        Any transition in flight is abandoned and the rotation timer
        restarts from zero.

        Args:
            pages: Pages of a freshly computed event window
        """
        self._generation += 1
        self.pages = tuple(pages)

        if not self.pages:
            self.state = None
            self.renderer.clear()
        else:
            self.state = RotationState(
                page_count=len(self.pages),
                current_index=0,
                last_advance_time=self.clock()
            )
            self.renderer.render(0, page_records(self.pages[0]), hidden=False)

        logger.info(f"Installed {len(self.pages)} pages")

        if self._running:
            self._restart_timer()

    async def advance(self) -> bool:
        """
        Move to the next page with a fade transition.

        Returns:
            True if the next page was shown, False if there was nothing to
            rotate or a newer install superseded the transition
        """
        state = self.state
        if state is None or state.page_count == 0:
            return False
        if self._transitioning:
            logger.debug("Transition already in progress")
            return False

        if state.current_index >= state.page_count:
            state.current_index = 0

        generation = self._generation
        current_index = state.current_index
        next_index = (current_index + 1) % state.page_count

        self._transitioning = True
        try:
            self.renderer.fade_out(current_index)
            self.renderer.render(
                next_index,
                page_records(self.pages[next_index]),
                hidden=True
            )
            await asyncio.sleep(self.settle_delay)
        finally:
            self._transitioning = False

        if generation != self._generation:
            logger.debug(f"Discarding transition to page {next_index} after refresh")
            return False

        self.renderer.fade_in(next_index)
        state.current_index = next_index
        state.last_advance_time = self.clock()
        return True

    async def start(self) -> None:
        """Start the rotation timer."""
        self._running = True
        if self._timer_task is None or self._timer_task.done():
            self._restart_timer()
            logger.debug("Rotation timer started")

    async def stop(self) -> None:
        """Stop the rotation timer."""
        self._running = False
        if self._timer_task and not self._timer_task.done():
            self._timer_task.cancel()
            try:
                await self._timer_task
            except asyncio.CancelledError:
                pass
            logger.debug("Rotation timer stopped")
        self._timer_task = None

    def _restart_timer(self) -> None:
        if self._timer_task and not self._timer_task.done():
            self._timer_task.cancel()
        self._timer_task = asyncio.create_task(self._rotate_loop())

    async def _rotate_loop(self) -> None:
        # Ticks land on fixed deadlines so transition time does not accumulate
        loop = asyncio.get_running_loop()
        deadline = loop.time()
        while True:
            deadline += self.interval
            await asyncio.sleep(max(0.0, deadline - loop.time()))
            try:
                await self.advance()
            except Exception as e:
                logger.error(f"Page rotation failed: {e}", exc_info=True)
            if deadline + self.interval < loop.time():
                logger.warning("Page rotation fell behind, resetting timer")
                deadline = loop.time()
