"""Signage display process: hourly event refresh plus page rotation."""
import asyncio
import contextlib
import logging
import signal
from typing import Optional

from display.event_board import EventBoard
from display.renderers import JsonFileRenderer, LogRenderer, PageRenderer
from display.rotation import RotationScheduler
from display.sources import FeedSource, SnapshotSource
from feed.romeoville_feed import RomeovilleFeedClient
from logging_setup import setup_logging
from settings import Settings, load_settings
from storage.snapshot_store import create_snapshot_store

logger = logging.getLogger(__name__)


def build_source(settings: Settings):
    if settings.events_source == 'feed':
        return FeedSource(
            RomeovilleFeedClient(url=settings.feed_url, timeout=settings.timeout_seconds)
        )
    return SnapshotSource(
        create_snapshot_store(
            path=settings.snapshot_path,
            bucket=settings.snapshot_bucket,
            key=settings.snapshot_key
        )
    )


def build_renderer(settings: Settings) -> PageRenderer:
    if settings.render_path:
        return JsonFileRenderer(settings.render_path)
    return LogRenderer()


def build_board(settings: Settings, renderer: Optional[PageRenderer] = None) -> EventBoard:
    """Wire source, scheduler and board from settings."""
    scheduler = RotationScheduler(
        renderer=renderer or build_renderer(settings),
        interval=settings.page_seconds,
        settle_delay=settings.settle_seconds
    )
    return EventBoard(
        source=build_source(settings),
        scheduler=scheduler,
        horizon_months=settings.horizon_months,
        events_max=settings.events_max,
        page_size=settings.events_per_page
    )


async def run_display(settings: Settings, stop_event: Optional[asyncio.Event] = None) -> None:
    """
    Run refresh and rotation until ``stop_event`` is set.

    SIGINT and SIGTERM set the stop event when none is supplied.
    """
    board = build_board(settings)
    own_stop_event = stop_event is None
    stop_event = stop_event or asyncio.Event()

    if own_stop_event:
        loop = asyncio.get_running_loop()

        def _on_signal() -> None:
            logger.info("Shutdown signal received")
            stop_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, _on_signal)

    await board.scheduler.start()
    refresher = asyncio.create_task(board.run(settings.refresh_seconds))
    logger.info(
        "Signage display started",
        extra={
            'events_source': settings.events_source,
            'page_seconds': settings.page_seconds,
            'refresh_seconds': settings.refresh_seconds
        }
    )

    await stop_event.wait()
    logger.info("Stopping signage display")

    refresher.cancel()
    try:
        await refresher
    except asyncio.CancelledError:
        pass
    await board.scheduler.stop()


def main() -> None:
    settings = load_settings()
    setup_logging(settings.log_level)
    asyncio.run(run_display(settings))


if __name__ == '__main__':
    main()
