"""Renderers that receive page-rotation signals."""
import html
import json
import logging
from pathlib import Path
from typing import Sequence

from processor.models import DisplayRecord

logger = logging.getLogger(__name__)


class PageRenderer:
    """
    Receiver of rotation signals.

    A transition is ``fade_out(current)``, ``render(next, records,
    hidden=True)``, then ``fade_in(next)`` once the settle delay has passed.
    Record titles and locations are raw text.
    """

    def clear(self) -> None:
        pass

    def render(self, page_index: int, records: Sequence[DisplayRecord], hidden: bool = False) -> None:
        pass

    def fade_out(self, page_index: int) -> None:
        pass

    def fade_in(self, page_index: int) -> None:
        pass


class LogRenderer(PageRenderer):
    """Renderer that writes page changes to the log."""

    def clear(self) -> None:
        logger.info("No upcoming events to display")

    def render(self, page_index: int, records: Sequence[DisplayRecord], hidden: bool = False) -> None:
        logger.info(
            f"Rendering page {page_index} with {len(records)} events"
            f"{' (hidden)' if hidden else ''}"
        )
        for record in records:
            logger.debug(
                f"{record.date_label} | {record.time_label} | "
                f"{record.title} | {record.location}"
            )

    def fade_in(self, page_index: int) -> None:
        logger.info(f"Showing page {page_index}")


class JsonFileRenderer(PageRenderer):
    """
    Renderer that publishes the visible page as JSON for a kiosk browser.

    Text fields are HTML-escaped so the page can insert them as markup.
    """

    def __init__(self, path):
        self.path = Path(path)
        self._pending = None

    def clear(self) -> None:
        self._pending = None
        self._publish({'page': None, 'visible': False, 'events': []})

    def render(self, page_index: int, records: Sequence[DisplayRecord], hidden: bool = False) -> None:
        document = {
            'page': page_index,
            'visible': not hidden,
            'events': [self._record_to_dict(record) for record in records]
        }
        if hidden:
            self._pending = document
        else:
            self._pending = None
            self._publish(document)

    def fade_out(self, page_index: int) -> None:
        logger.debug(f"Fading out page {page_index}")

    def fade_in(self, page_index: int) -> None:
        if self._pending is None or self._pending['page'] != page_index:
            logger.warning(f"No rendered content for page {page_index}")
            return
        document = dict(self._pending, visible=True)
        self._pending = None
        self._publish(document)

    def _record_to_dict(self, record: DisplayRecord) -> dict:
        return {
            'date': record.date_label,
            'time': record.time_label,
            'title': html.escape(record.title),
            'location': html.escape(record.location)
        }

    def _publish(self, document: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
        tmp_path.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding='utf-8')
        tmp_path.replace(self.path)
