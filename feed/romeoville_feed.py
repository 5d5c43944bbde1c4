"""RSS feed client for the Village of Romeoville event calendar."""
import logging
import time
from typing import List

import feedparser
import requests

from feed.exceptions import FeedFetchError, FeedShapeError
from processor.models import RawEventItem

logger = logging.getLogger(__name__)


class RomeovilleFeedClient:
    """Client for the Romeoville calendar RSS feed."""

    DEFAULT_URL = (
        "https://www.romeoville.org/RSSFeed.aspx?ModID=58&CID=All-calendar.xml"
    )
    USER_AGENT = "romeoville-signage"
    MAX_RETRIES = 3
    BASE_DELAY = 1  # seconds

    def __init__(self, url: str = None, timeout: int = 30):
        """
        Initialize the feed client.

        Args:
            url: Feed URL (default: DEFAULT_URL)
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.url = url or self.DEFAULT_URL
        self.timeout = timeout

    def fetch_items(self) -> List[RawEventItem]:
        """
        Fetch the feed and decode it into raw event items.

        Returns:
            List of RawEventItem objects in feed order

        Raises:
            FeedFetchError: If the feed cannot be downloaded
            FeedShapeError: If the document is not a readable feed
        """
        logger.info(f"Fetching RSS feed: {self.url}")

        content = self._fetch_feed_content()
        items = self._parse_items(content)

        logger.info(f"Decoded {len(items)} items from feed")
        return items

    def _fetch_feed_content(self) -> bytes:
        """
        Download the feed document with retry logic.

        Returns:
            Raw response body

        Raises:
            FeedFetchError: If all retry attempts fail
        """
        for attempt in range(self.MAX_RETRIES):
            try:
                logger.info(
                    f"Fetching feed (attempt {attempt + 1}/{self.MAX_RETRIES})"
                )
                response = requests.get(
                    self.url,
                    headers={'User-Agent': self.USER_AGENT},
                    timeout=self.timeout
                )
                response.raise_for_status()
                return response.content

            except requests.RequestException as e:
                if attempt < self.MAX_RETRIES - 1:
                    # Calculate exponential backoff delay
                    delay = self.BASE_DELAY * (2 ** attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{self.MAX_RETRIES}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {self.MAX_RETRIES} retry attempts failed. Last error: {e}"
                    )
                    raise FeedFetchError(
                        f"Failed to fetch feed: {self.url} ({e})"
                    ) from e

    def _parse_items(self, content: bytes) -> List[RawEventItem]:
        """
        Decode an RSS document into raw items.

        Args:
            content: Feed document bytes

        Returns:
            List of RawEventItem objects

        Raises:
            FeedShapeError: If the document has no usable item list
        """
        feed = feedparser.parse(content)
        entries = getattr(feed, 'entries', None)

        if not isinstance(entries, list):
            raise FeedShapeError(f"Feed has no entry list: {self.url}")

        if getattr(feed, 'bozo', 0):
            exc = getattr(feed, 'bozo_exception', None)
            if not entries:
                raise FeedShapeError(f"Invalid RSS feed: {self.url} ({exc})")
            logger.warning(f"Feed is malformed but has entries, continuing: {exc}")

        items = []
        for entry in entries:
            items.append(
                RawEventItem(
                    title=entry.get('title') or '',
                    body=entry.get('description') or entry.get('summary') or '',
                    link=entry.get('link') or ''
                )
            )
        return items
