"""Event sources used by the display refresh cycle."""
import asyncio
import logging
from typing import List

from feed.romeoville_feed import RomeovilleFeedClient
from processor.event_processor import EventProcessor
from processor.models import NormalizedEvent
from storage.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


class SnapshotSource:
    """Loads events from the snapshot written by the ingestion job."""

    def __init__(self, store: SnapshotStore):
        self.store = store

    async def load_events(self) -> List[NormalizedEvent]:
        events = await asyncio.to_thread(self.store.load_events)
        logger.info(f"Loaded {len(events)} events from {self.store.describe()}")
        return events


class FeedSource:
    """Loads events straight from the RSS feed."""

    def __init__(self, client: RomeovilleFeedClient, processor: EventProcessor = None):
        self.client = client
        self.processor = processor or EventProcessor()

    async def load_events(self) -> List[NormalizedEvent]:
        items = await asyncio.to_thread(self.client.fetch_items)
        return self.processor.process_items(items)
