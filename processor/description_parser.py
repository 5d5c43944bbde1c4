"""Field extraction from free-text event descriptions.

Romeoville calendar items carry their details as loosely formatted text in
the RSS description, for example::

    Event dates: August 4, 2025 - August 10, 2025<br>
    Event Time: 6:00 PM - 8:00 PM<br>
    Location: Village Board Room

Each field is pulled out by an independent rule. A rule that finds nothing
leaves its field empty; the feed omits sections inconsistently.
"""
import logging
import re
from dataclasses import dataclass
from typing import Callable, List

from bs4 import BeautifulSoup

from processor.models import ParsedFields

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r'\s+')
_CALENDAR_DATE = r'[A-Za-z]+\s+\d{1,2},\s+\d{4}'


def clean_line(text: str) -> str:
    """Collapse runs of whitespace to single spaces and trim."""
    return _WHITESPACE.sub(' ', text or '').strip()


def strip_html(body: str) -> str:
    """
    Convert an HTML description to plain multi-line text.

    ``<br>`` and closing ``</p>`` become line breaks, other tags are dropped
    and entities are decoded. Lines are trimmed and blank lines removed.

    Args:
        body: Description markup or plain text

    Returns:
        Plain text with one logical line per source line
    """
    if not body:
        return ''

    soup = BeautifulSoup(body, 'html.parser')
    for br in soup.find_all('br'):
        br.replace_with('\n')
    for paragraph in soup.find_all('p'):
        paragraph.append('\n')

    text = soup.get_text().replace('\xa0', ' ')
    lines = [line.strip() for line in text.split('\n')]
    return '\n'.join(line for line in lines if line)


@dataclass(frozen=True)
class FieldRule:
    """Pattern plus the setter that stores its first match."""
    name: str
    pattern: re.Pattern
    apply: Callable[[ParsedFields, re.Match], None]


def _set_dates(fields: ParsedFields, match: re.Match) -> None:
    fields.date_start = clean_line(match.group('start'))
    fields.date_end = clean_line(match.group('end') or '')


def _set_time(fields: ParsedFields, match: re.Match) -> None:
    fields.time = clean_line(match.group(1))


def _set_location(fields: ParsedFields, match: re.Match) -> None:
    fields.location = clean_line(match.group(1))


FIELD_RULES: List[FieldRule] = [
    FieldRule(
        name='date',
        pattern=re.compile(
            rf'Event dates?:\s*(?P<start>{_CALENDAR_DATE})'
            rf'(?:\s*[-–]\s*(?P<end>{_CALENDAR_DATE}))?',
            re.IGNORECASE
        ),
        apply=_set_dates
    ),
    FieldRule(
        name='time',
        pattern=re.compile(r'Event Time:\s*(.+)', re.IGNORECASE),
        apply=_set_time
    ),
    FieldRule(
        name='location',
        pattern=re.compile(r'Location:\s*(.+)', re.IGNORECASE),
        apply=_set_location
    ),
]


def parse_description(body: str, rules: List[FieldRule] = None) -> ParsedFields:
    """
    Extract date range, time and location from an event description.

    Every rule is matched against the whole normalized text and only its
    first match is used.

    Args:
        body: Raw description, possibly HTML
        rules: Extraction rules to apply (default: FIELD_RULES)

    Returns:
        ParsedFields with empty strings for anything not found
    """
    text = strip_html(body)
    fields = ParsedFields()

    for rule in rules if rules is not None else FIELD_RULES:
        match = rule.pattern.search(text)
        if match:
            rule.apply(fields, match)
        else:
            logger.debug(f"No '{rule.name}' field in description")

    return fields
