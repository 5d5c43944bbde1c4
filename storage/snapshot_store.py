"""Persistence of the event snapshot consumed by signage displays."""
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from feed.exceptions import FeedShapeError, SnapshotReadError
from processor.event_processor import EventProcessor
from processor.models import NormalizedEvent

logger = logging.getLogger(__name__)


def event_to_record(event: NormalizedEvent) -> Dict[str, Any]:
    """
    Convert a NormalizedEvent to its snapshot record.

    Args:
        event: NormalizedEvent object

    Returns:
        Record with title, start, optional end, location, optional link
        and the all_day flag when set
    """
    # Undated events keep a null start; records_to_events reads it back as None
    record = {
        'title': event.title,
        'start': event.start.isoformat() if event.start else None,
    }

    # Add optional fields if present
    if event.end:
        record['end'] = event.end.isoformat()
    record['location'] = event.location
    if event.link:
        record['link'] = event.link
    if event.all_day:
        record['all_day'] = True

    return record


def _text(record: Dict[str, Any], key: str) -> str:
    value = record.get(key)
    return value if isinstance(value, str) else ''


def records_to_events(
    records: Any,
    processor: Optional[EventProcessor] = None
) -> List[NormalizedEvent]:
    """
    Convert snapshot records back into NormalizedEvent objects.

    Malformed records are skipped. Records whose timestamps cannot be parsed
    come back with an absent start.

    Args:
        records: Decoded snapshot payload
        processor: EventProcessor used for timestamp parsing

    Returns:
        List of NormalizedEvent objects

    Raises:
        FeedShapeError: If the payload is not a list
    """
    if not isinstance(records, list):
        raise FeedShapeError(
            f"Snapshot must be a list of events, got {type(records).__name__}"
        )

    processor = processor or EventProcessor()
    events = []

    for position, record in enumerate(records):
        if not isinstance(record, dict):
            logger.warning(f"Skipping snapshot record {position}: not an object")
            continue

        title = _text(record, 'title')
        if not title.strip():
            logger.warning(f"Skipping snapshot record {position}: missing title")
            continue

        event = processor.normalize(
            title=title,
            date_start=_text(record, 'start'),
            date_end=_text(record, 'end'),
            time_text='',
            location=_text(record, 'location'),
            link=_text(record, 'link')
        )
        events.append(replace(event, all_day=record.get('all_day') is True))

    return events


class SnapshotStore:
    """Base class for snapshot stores backed by a single JSON document."""

    def write_events(self, events: List[NormalizedEvent]) -> int:
        """
        Serialize and store events as the current snapshot.

        Args:
            events: Events in snapshot order

        Returns:
            Number of events written
        """
        records = [event_to_record(event) for event in events]
        payload = json.dumps(records, indent=2, ensure_ascii=False)
        self._write_bytes(payload.encode('utf-8'))
        logger.info(f"Wrote {len(records)} events to {self.describe()}")
        return len(records)

    def read_records(self) -> Any:
        """
        Read and decode the stored snapshot.

        Returns:
            Decoded JSON payload

        Raises:
            SnapshotReadError: If the snapshot cannot be read
            FeedShapeError: If the snapshot is not valid JSON
        """
        content = self._read_bytes()
        try:
            return json.loads(content.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise FeedShapeError(
                f"Snapshot {self.describe()} is not valid JSON: {e}"
            ) from e

    def load_events(self) -> List[NormalizedEvent]:
        """Read the snapshot and convert it to NormalizedEvent objects."""
        return records_to_events(self.read_records())

    def describe(self) -> str:
        raise NotImplementedError

    def _write_bytes(self, content: bytes) -> None:
        raise NotImplementedError

    def _read_bytes(self) -> bytes:
        raise NotImplementedError


class FileSnapshotStore(SnapshotStore):
    """Snapshot stored as a local JSON file."""

    def __init__(self, path):
        self.path = Path(path)

    def describe(self) -> str:
        return str(self.path)

    def _write_bytes(self, content: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(content)

    def _read_bytes(self) -> bytes:
        try:
            return self.path.read_bytes()
        except OSError as e:
            raise SnapshotReadError(f"Cannot read snapshot {self.path}: {e}") from e


class S3SnapshotStore(SnapshotStore):
    """Snapshot stored as a JSON object in S3."""

    def __init__(self, bucket: str, key: str = 'events.json'):
        """
        Initialize S3 client and object location.

        Args:
            bucket: Name of the S3 bucket
            key: Object key of the snapshot
        """
        self.bucket = bucket
        self.key = key
        self.s3 = boto3.client('s3')
        logger.info(f"Initialized S3SnapshotStore for s3://{bucket}/{key}")

    def describe(self) -> str:
        return f"s3://{self.bucket}/{self.key}"

    def _write_bytes(self, content: bytes) -> None:
        try:
            self.s3.put_object(
                Bucket=self.bucket,
                Key=self.key,
                Body=content,
                ContentType='application/json',
                CacheControl='no-store'
            )
        except ClientError as e:
            logger.error(f"Error writing snapshot to {self.describe()}: {e}")
            raise

    def _read_bytes(self) -> bytes:
        try:
            response = self.s3.get_object(Bucket=self.bucket, Key=self.key)
            return response['Body'].read()
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error reading snapshot from {self.describe()}: {e}")
            raise SnapshotReadError(
                f"Cannot read snapshot {self.describe()}: {e}"
            ) from e


def create_snapshot_store(
    path: str = 'data/events.json',
    bucket: str = '',
    key: str = 'events.json'
) -> SnapshotStore:
    """Return an S3 store when a bucket is configured, otherwise a file store."""
    if bucket:
        return S3SnapshotStore(bucket=bucket, key=key)
    return FileSnapshotStore(path)
