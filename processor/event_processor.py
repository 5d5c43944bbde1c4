"""Event processor for normalizing feed items into typed event records."""
import logging
import re
from datetime import datetime, time, timezone
from typing import List, Optional, Tuple

from dateutil import parser as date_parser

from processor.description_parser import clean_line, parse_description
from processor.models import NormalizedEvent, RawEventItem

logger = logging.getLogger(__name__)

_ISO_PREFIX = re.compile(r'^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}')
_RANGE_SEPARATOR = re.compile(r'\s*(?:-|–|—|\bto\b)\s*', re.IGNORECASE)
_MERIDIEM = re.compile(r'(AM|PM)$')


class EventProcessor:
    """Processor for validating and normalizing event data."""

    MAX_TITLE_LENGTH = 200
    END_OF_DAY = time(23, 59)

    DATE_FORMATS = [
        '%B %d, %Y',     # Full month name
        '%b %d, %Y',     # Abbreviated month name
        '%m/%d/%Y',      # US format
        '%m-%d-%Y',      # US format with dashes
        '%Y-%m-%d',      # ISO 8601 date
        '%Y/%m/%d',      # Alternative ISO format
    ]

    TIME_FORMATS = [
        '%I:%M %p',      # 12-hour format with AM/PM
        '%I:%M%p',       # 12-hour format without space
        '%I %p',         # Hour only with AM/PM
        '%I%p',          # Hour only without space
        '%I:%M:%S %p',   # 12-hour with seconds and AM/PM
        '%H:%M',         # 24-hour format
        '%H:%M:%S',      # 24-hour with seconds
    ]

    def process_items(self, raw_items: List[RawEventItem]) -> List[NormalizedEvent]:
        """
        Parse and normalize raw feed items.

        Items without a title are skipped. Items whose dates cannot be
        parsed are still returned, with an absent start.

        Args:
            raw_items: List of RawEventItem objects from the feed

        Returns:
            List of NormalizedEvent objects in feed order
        """
        events = []

        for item in raw_items:
            title = clean_line(item.title)
            if not title:
                logger.warning(f"Skipping feed item without title: {item.link}")
                continue

            try:
                fields = parse_description(item.body)
                events.append(
                    self.normalize(
                        title=title,
                        date_start=fields.date_start,
                        date_end=fields.date_end,
                        time_text=fields.time,
                        location=fields.location,
                        link=clean_line(item.link)
                    )
                )
            except Exception as e:
                logger.warning(f"Failed to process feed item '{title}': {e}")
                continue

        logger.info(
            f"Normalized {len(events)} events out of "
            f"{len(raw_items)} feed items"
        )
        return events

    def normalize(
        self,
        title: str,
        date_start: str,
        date_end: str,
        time_text: str,
        location: str,
        link: str = ''
    ) -> NormalizedEvent:
        """
        Build a NormalizedEvent from raw strings.

        ISO-8601 timestamps are parsed exactly. Free-text dates such as
        "August 6, 2025" are parsed best-effort and combined with the clock
        times found in ``time_text``. Unparsable dates yield ``None``. A start
        with no clock time is flagged ``all_day`` and an end date that cannot
        be read is flagged ``end_unparsed``.

        Args:
            title: Event title (required)
            date_start: Start date, free text or ISO-8601
            date_end: End date, free text or ISO-8601, may be empty
            time_text: Time or time range such as "6:00 PM - 8:00 PM"
            location: Location text
            link: Source link

        Returns:
            NormalizedEvent

        Raises:
            ValueError: If the title is empty after trimming
        """
        title = clean_line(title)
        if not title:
            raise ValueError("Event title is required")

        start_clock, end_clock = self._parse_time_range(time_text)
        start = self._resolve_start(date_start, start_clock)
        end_day = self._resolve_end_day(date_end)
        end = self._resolve_end(date_end, end_day, start, end_clock)
        end_unparsed = bool(clean_line(date_end)) and end_day is None

        if start is None and date_start:
            logger.debug(f"Unparsable start date for '{title}': {date_start}")
        if end_unparsed:
            logger.debug(f"Unparsable end date for '{title}': {date_end}")

        return NormalizedEvent(
            title=title[:self.MAX_TITLE_LENGTH],
            start=start,
            end=end,
            location=clean_line(location),
            link=link or '',
            all_day=(
                start is not None
                and start_clock is None
                and self.parse_iso(date_start) is None
            ),
            end_unparsed=end_unparsed
        )

    def parse_iso(self, value: str) -> Optional[datetime]:
        """
        Parse an ISO-8601 timestamp exactly.

        Offset-aware values are converted to local time and returned naive so
        they compare with the display clock.

        Args:
            value: Timestamp string such as "2025-08-06T18:00:00"

        Returns:
            datetime or None if the value is not an ISO timestamp
        """
        if not value or not _ISO_PREFIX.match(value.strip()):
            return None

        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'

        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None

        if parsed.tzinfo is not None:
            parsed = parsed.astimezone().replace(tzinfo=None)
        return parsed

    def parse_calendar_date(self, value: str) -> Optional[datetime]:
        """
        Parse a free-text calendar date to midnight of that day.

        Args:
            value: Date string in various formats

        Returns:
            datetime at 00:00 or None if parsing fails
        """
        value = clean_line(value)
        if not value:
            return None

        for fmt in self.DATE_FORMATS:
            try:
                return datetime.strptime(value, fmt)
            except ValueError:
                continue

        try:
            parsed = date_parser.parse(value)
        except (ValueError, OverflowError):
            return None

        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return datetime.combine(parsed.date(), time.min)

    def _resolve_start(self, date_start: str, clock: Optional[time]) -> Optional[datetime]:
        exact = self.parse_iso(date_start)
        if exact is not None:
            return exact

        day = self.parse_calendar_date(date_start)
        if day is None:
            return None
        return datetime.combine(day.date(), clock or time.min)

    def _resolve_end_day(self, date_end: str) -> Optional[datetime]:
        return self.parse_iso(date_end) or self.parse_calendar_date(date_end)

    def _resolve_end(
        self,
        date_end: str,
        day: Optional[datetime],
        start: Optional[datetime],
        clock: Optional[time]
    ) -> Optional[datetime]:
        exact = self.parse_iso(date_end)
        if exact is not None:
            return exact
        if start is None:
            return None
        # An end date that was given but not understood leaves the end unknown
        if clean_line(date_end) and day is None:
            return None

        if clock is not None:
            end = datetime.combine((day or start).date(), clock)
            # "11:00 PM - 1:00 AM" style ranges are not supported
            return end if end >= start else None

        if day is not None and day.date() != start.date():
            return datetime.combine(day.date(), self.END_OF_DAY)

        return None

    def _parse_time_range(self, time_text: str) -> Tuple[Optional[time], Optional[time]]:
        """
        Parse a time range from text.

        Args:
            time_text: Time text (e.g., "6:00 PM - 8:00 PM", "6 - 8 PM")

        Returns:
            Tuple of (start, end) clock times, either may be None
        """
        time_text = clean_line(time_text)
        if not time_text:
            return None, None

        parts = _RANGE_SEPARATOR.split(time_text, maxsplit=1)
        start_text = self._canonical_time(parts[0])
        end_text = self._canonical_time(parts[1]) if len(parts) > 1 else ''

        # "6 - 8 PM" shares the trailing meridiem
        end_meridiem = _MERIDIEM.search(end_text)
        if end_meridiem and start_text and not _MERIDIEM.search(start_text):
            start_text = f"{start_text} {end_meridiem.group(1)}"

        return self._normalize_time(start_text), self._normalize_time(end_text)

    def _canonical_time(self, text: str) -> str:
        text = clean_line(text).upper().replace('.', '')
        if text == 'NOON':
            return '12:00 PM'
        if text == 'MIDNIGHT':
            return '12:00 AM'
        return text

    def _normalize_time(self, time_str: str) -> Optional[time]:
        """
        Parse a clock time.

        Args:
            time_str: Time string in various formats

        Returns:
            time or None if parsing fails
        """
        if not time_str:
            return None

        for fmt in self.TIME_FORMATS:
            try:
                return datetime.strptime(time_str, fmt).time()
            except ValueError:
                continue

        return None
