"""Environment-driven configuration."""
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from feed.romeoville_feed import RomeovilleFeedClient

EVENT_SOURCES = ('snapshot', 'feed')


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the ingestion job and the display."""
    feed_url: str = RomeovilleFeedClient.DEFAULT_URL
    log_level: str = 'INFO'
    timeout_seconds: int = 30
    snapshot_path: str = 'data/events.json'
    snapshot_bucket: str = ''
    snapshot_key: str = 'events.json'
    events_source: str = 'snapshot'
    render_path: str = 'data/current_page.json'
    events_max: int = 32
    events_per_page: int = 4
    horizon_months: int = 4
    page_seconds: float = 20
    settle_seconds: float = 0.35
    refresh_seconds: float = 3600


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Read settings from environment variables.

    Args:
        environ: Mapping to read from (default: os.environ)

    Returns:
        Settings

    Raises:
        ValueError: If a numeric value is malformed or EVENTS_SOURCE is unknown
    """
    env = os.environ if environ is None else environ

    events_source = env.get('EVENTS_SOURCE', 'snapshot').strip().lower()
    if events_source not in EVENT_SOURCES:
        raise ValueError(
            f"EVENTS_SOURCE must be one of {', '.join(EVENT_SOURCES)}, got '{events_source}'"
        )

    return Settings(
        feed_url=env.get('ROMEOVILLE_RSS_URL', RomeovilleFeedClient.DEFAULT_URL),
        log_level=env.get('LOG_LEVEL', 'INFO'),
        timeout_seconds=int(env.get('TIMEOUT_SECONDS', '30')),
        snapshot_path=env.get('SNAPSHOT_PATH', 'data/events.json'),
        snapshot_bucket=env.get('SNAPSHOT_BUCKET', ''),
        snapshot_key=env.get('SNAPSHOT_KEY', 'events.json'),
        events_source=events_source,
        render_path=env.get('RENDER_PATH', 'data/current_page.json'),
        events_max=int(env.get('EVENTS_MAX', '32')),
        events_per_page=int(env.get('EVENTS_PER_PAGE', '4')),
        horizon_months=int(env.get('EVENTS_HORIZON_MONTHS', '4')),
        page_seconds=float(env.get('EVENTS_PAGE_SECONDS', '20')),
        settle_seconds=float(env.get('EVENTS_SETTLE_SECONDS', '0.35')),
        refresh_seconds=float(env.get('EVENTS_REFRESH_SECONDS', '3600'))
    )
