"""Unit tests for snapshot stores."""
import json
from datetime import datetime

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from feed.exceptions import FeedShapeError, SnapshotReadError
from processor.models import NormalizedEvent
from storage.snapshot_store import (
    FileSnapshotStore,
    S3SnapshotStore,
    create_snapshot_store,
    event_to_record,
    records_to_events,
)


@pytest.fixture
def s3_bucket(monkeypatch):
    """Create a mock S3 bucket for testing."""
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    with mock_aws():
        s3 = boto3.client('s3', region_name='us-east-1')
        s3.create_bucket(Bucket='test-signage-events')
        yield s3


@pytest.fixture
def sample_events():
    """Create sample NormalizedEvent objects."""
    return [
        NormalizedEvent(
            title='Movie in the Park',
            start=datetime(2026, 6, 5, 19, 30),
            end=datetime(2026, 6, 5, 21, 30),
            location='Deer Crossing Park',
            link='https://www.romeoville.org/Calendar.aspx?EID=10'
        ),
        NormalizedEvent(
            title='Farmers Market',
            start=datetime(2026, 6, 6, 8, 0),
            end=None,
            location='Village Hall Lot'
        ),
        NormalizedEvent(
            title='Date To Be Announced',
            start=None,
            end=None,
            location=''
        ),
    ]


class TestRecords:
    """Test cases for record serialization."""

    def test_event_to_record(self, sample_events):
        """Test record fields and optional fields."""
        record = event_to_record(sample_events[0])

        assert record == {
            'title': 'Movie in the Park',
            'start': '2026-06-05T19:30:00',
            'end': '2026-06-05T21:30:00',
            'location': 'Deer Crossing Park',
            'link': 'https://www.romeoville.org/Calendar.aspx?EID=10'
        }

    def test_event_to_record_without_optional_fields(self, sample_events):
        """Test that end and link are omitted when absent."""
        record = event_to_record(sample_events[1])

        assert 'end' not in record
        assert 'link' not in record

    def test_undated_event_record(self, sample_events):
        """Test that an undated event is written with a null start."""
        assert event_to_record(sample_events[2])['start'] is None

    def test_all_day_flag_persisted(self):
        """Test the all-day flag survives the snapshot."""
        event = NormalizedEvent(
            title='Book Sale',
            start=datetime(2026, 6, 6),
            end=None,
            location='Library',
            all_day=True
        )

        record = event_to_record(event)

        assert record['all_day'] is True
        assert records_to_events([record]) == [event]

    def test_records_to_events(self, sample_events):
        """Test reading records back yields the same events."""
        records = [event_to_record(event) for event in sample_events]

        assert records_to_events(records) == sample_events

    def test_records_to_events_rejects_non_list(self):
        """Test that a non-list payload is a shape error."""
        with pytest.raises(FeedShapeError):
            records_to_events({'events': []})

    def test_records_to_events_skips_malformed(self):
        """Test that malformed records are skipped."""
        records = [
            'not an object',
            {'start': '2026-06-05T19:30:00'},
            {'title': 42, 'start': '2026-06-05T19:30:00'},
            {'title': 'Good', 'start': '2026-06-05T19:30:00', 'location': None},
            {'title': 'Bad Date', 'start': 'someday'},
        ]

        events = records_to_events(records)

        assert [event.title for event in events] == ['Good', 'Bad Date']
        assert events[0].location == ''
        assert events[1].start is None


class TestFileSnapshotStore:
    """Test cases for the local file store."""

    def test_write_and_load(self, tmp_path, sample_events):
        """Test events survive a write and load."""
        store = FileSnapshotStore(tmp_path / 'data' / 'events.json')

        assert store.write_events(sample_events) == 3
        assert store.load_events() == sample_events

    def test_written_document_is_json_list(self, tmp_path, sample_events):
        """Test the stored document is a JSON array of records."""
        path = tmp_path / 'events.json'
        FileSnapshotStore(path).write_events(sample_events)

        document = json.loads(path.read_text(encoding='utf-8'))

        assert isinstance(document, list)
        assert document[0]['title'] == 'Movie in the Park'

    def test_missing_file(self, tmp_path):
        """Test a missing snapshot raises SnapshotReadError."""
        store = FileSnapshotStore(tmp_path / 'missing.json')

        with pytest.raises(SnapshotReadError):
            store.load_events()

    def test_invalid_json(self, tmp_path):
        """Test an unreadable document raises FeedShapeError."""
        path = tmp_path / 'events.json'
        path.write_text('{not json', encoding='utf-8')

        with pytest.raises(FeedShapeError):
            FileSnapshotStore(path).load_events()


class TestS3SnapshotStore:
    """Test cases for the S3 store."""

    def test_write_and_load(self, s3_bucket, sample_events):
        """Test events survive a round trip through S3."""
        store = S3SnapshotStore('test-signage-events', 'signage/events.json')

        store.write_events(sample_events)

        obj = s3_bucket.get_object(Bucket='test-signage-events', Key='signage/events.json')
        assert obj['ContentType'] == 'application/json'
        assert store.load_events() == sample_events

    def test_missing_object(self, s3_bucket):
        """Test a missing object raises SnapshotReadError."""
        store = S3SnapshotStore('test-signage-events', 'absent.json')

        with pytest.raises(SnapshotReadError):
            store.read_records()

    def test_write_to_missing_bucket_raises(self, s3_bucket, sample_events):
        """Test write errors propagate."""
        store = S3SnapshotStore('no-such-bucket', 'events.json')

        with pytest.raises(ClientError):
            store.write_events(sample_events)


def test_create_snapshot_store_file(tmp_path):
    """Test a file store is used without a bucket."""
    store = create_snapshot_store(path=str(tmp_path / 'events.json'))

    assert isinstance(store, FileSnapshotStore)


def test_create_snapshot_store_s3(s3_bucket):
    """Test an S3 store is used when a bucket is configured."""
    store = create_snapshot_store(bucket='test-signage-events', key='events.json')

    assert isinstance(store, S3SnapshotStore)
    assert store.describe() == 's3://test-signage-events/events.json'
