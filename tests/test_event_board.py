"""Unit tests for the EventBoard refresh cycle."""
import asyncio
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, Mock

import pytest

from display.event_board import EventBoard
from display.renderers import PageRenderer
from display.rotation import RotationScheduler
from feed.exceptions import FeedFetchError, FeedShapeError
from processor.models import NormalizedEvent

NOW = datetime(2025, 11, 15, 9, 0)


def make_events(count, prefix="Event", days_offset=1):
    return [
        NormalizedEvent(
            title=f"{prefix} {index:02d}",
            start=NOW + timedelta(days=days_offset + index),
            end=None,
            location="Village Hall"
        )
        for index in range(count)
    ]


class GatedSource:
    """Source whose responses are released by the test."""

    def __init__(self):
        self.calls = []

    async def load_events(self):
        gate = asyncio.Event()
        call = {'gate': gate, 'events': None}
        self.calls.append(call)
        await gate.wait()
        return call['events']

    def release(self, index, events):
        self.calls[index]['events'] = events
        self.calls[index]['gate'].set()


@pytest.fixture
def renderer():
    """Create a mock renderer."""
    return Mock(spec=PageRenderer)


@pytest.fixture
def scheduler(renderer):
    """Create a scheduler with no settle delay."""
    return RotationScheduler(renderer, settle_delay=0, clock=lambda: NOW)


def make_board(source, scheduler):
    return EventBoard(source=source, scheduler=scheduler, clock=lambda: NOW)


class TestRefresh:
    """Test cases for EventBoard.refresh."""

    @pytest.mark.asyncio
    async def test_refresh_installs_pages(self, scheduler):
        """Test a successful refresh windows, pages and installs events."""
        events = make_events(10) + [
            NormalizedEvent(title="Past", start=NOW - timedelta(days=1), end=None, location=""),
            NormalizedEvent(title="Undated", start=None, end=None, location=""),
        ]
        source = Mock()
        source.load_events = AsyncMock(return_value=events)
        board = make_board(source, scheduler)

        assert await board.refresh() is True

        assert len(board.window) == 10
        assert [len(page.items) for page in board.pages] == [4, 4, 2]
        assert scheduler.state.page_count == 3
        assert scheduler.state.current_index == 0
        assert board.last_refresh_time == NOW

    @pytest.mark.asyncio
    async def test_refresh_caps_window(self, scheduler):
        """Test 40 future events are capped to 32 across 8 pages."""
        source = Mock()
        source.load_events = AsyncMock(return_value=make_events(40))
        board = make_board(source, scheduler)

        await board.refresh()

        assert len(board.window) == 32
        assert len(board.pages) == 8
        assert board.window[-1].title == "Event 31"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        FeedFetchError("connection refused"),
        FeedShapeError("Snapshot must be a list of events, got dict"),
    ])
    async def test_failed_refresh_keeps_last_good_state(self, scheduler, renderer, error):
        """Test stale-on-error keeps the window, page and timer untouched."""
        source = Mock()
        source.load_events = AsyncMock(return_value=make_events(10))
        board = make_board(source, scheduler)
        await scheduler.start()
        await board.refresh()
        await scheduler.advance()

        window = board.window
        pages = board.pages
        timer_task = scheduler._timer_task
        renderer.reset_mock()

        source.load_events = AsyncMock(side_effect=error)
        assert await board.refresh() is False

        assert board.window is window
        assert board.pages is pages
        assert scheduler.state.current_index == 1
        assert scheduler._timer_task is timer_task
        assert not timer_task.done()
        renderer.render.assert_not_called()
        renderer.clear.assert_not_called()
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_empty_result_goes_idle(self, scheduler, renderer):
        """Test that a successful but empty refresh clears the display."""
        source = Mock()
        source.load_events = AsyncMock(return_value=[])
        board = make_board(source, scheduler)

        assert await board.refresh() is True

        assert board.pages == ()
        assert scheduler.state is None
        renderer.clear.assert_called_once()

    @pytest.mark.asyncio
    async def test_stale_response_discarded(self, scheduler):
        """Test only the most recently issued refresh may install."""
        source = GatedSource()
        board = make_board(source, scheduler)

        older = asyncio.create_task(board.refresh())
        await asyncio.sleep(0)
        newer = asyncio.create_task(board.refresh())
        await asyncio.sleep(0)

        source.release(1, make_events(3, prefix="Fresh"))
        assert await newer is True
        source.release(0, make_events(9, prefix="Stale"))
        assert await older is False

        assert [event.title for event in board.window] == ["Fresh 00", "Fresh 01", "Fresh 02"]
        assert scheduler.state.page_count == 1

    @pytest.mark.asyncio
    async def test_idempotent_refresh(self, scheduler):
        """Test identical input and now give identical window and pages."""
        source = Mock()
        source.load_events = AsyncMock(return_value=make_events(7))
        board = make_board(source, scheduler)

        await board.refresh()
        first_window, first_pages = board.window, board.pages
        await board.refresh()

        assert board.window == first_window
        assert board.pages == first_pages


class TestRun:
    """Test cases for the refresh loop."""

    @pytest.mark.asyncio
    async def test_run_refreshes_periodically(self, scheduler):
        """Test the loop keeps refreshing until cancelled."""
        source = Mock()
        source.load_events = AsyncMock(return_value=make_events(2))
        board = make_board(source, scheduler)

        task = asyncio.create_task(board.run(0.01))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert source.load_events.await_count >= 2

    @pytest.mark.asyncio
    async def test_run_survives_unexpected_errors(self, scheduler):
        """Test unexpected source errors do not end the loop."""
        source = Mock()
        source.load_events = AsyncMock(side_effect=RuntimeError("boom"))
        board = make_board(source, scheduler)

        task = asyncio.create_task(board.run(0.01))
        await asyncio.sleep(0.05)

        assert not task.done()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert source.load_events.await_count >= 2
