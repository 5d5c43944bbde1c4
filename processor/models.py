"""Data models for event processing."""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple


@dataclass
class RawEventItem:
    """Raw item from the event feed."""
    title: str
    body: str
    link: str


@dataclass
class ParsedFields:
    """Fields extracted from an item body. Missing fields are empty strings."""
    date_start: str = ''
    date_end: str = ''
    time: str = ''
    location: str = ''


@dataclass(frozen=True)
class NormalizedEvent:
    """
    Typed event record with parsed timestamps.

    ``all_day`` marks a start taken from a bare date with no clock time.
    ``end_unparsed`` marks an end date that was given but could not be read.
    """
    title: str
    start: Optional[datetime]
    end: Optional[datetime]
    location: str
    link: str = ''
    all_day: bool = False
    end_unparsed: bool = False


@dataclass(frozen=True)
class Page:
    """One fixed-size slice of the ranked event list."""
    index: int
    items: Tuple[NormalizedEvent, ...]


@dataclass
class RotationState:
    """Rotation position over the currently installed pages."""
    page_count: int
    current_index: int
    last_advance_time: datetime


@dataclass(frozen=True)
class DisplayRecord:
    """Display-formatted event handed to a renderer."""
    date_label: str
    time_label: str
    title: str
    location: str


@dataclass
class IngestResult:
    """Result of an ingestion run."""
    items_fetched: int
    events_kept: int
    past_dropped: int
    items_dropped: int
