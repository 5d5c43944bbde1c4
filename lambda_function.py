"""AWS Lambda handler that builds the signage event snapshot."""
import json
import logging
import sys
import time
from datetime import datetime
from typing import Any, Dict

from feed.romeoville_feed import RomeovilleFeedClient
from logging_setup import setup_logging
from processor.event_processor import EventProcessor
from processor.models import IngestResult
from processor.windowing import drop_past_events, sort_for_snapshot
from settings import load_settings
from storage.snapshot_store import create_snapshot_store


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Fetch the Romeoville calendar feed and write the event snapshot.

    Args:
        event: EventBridge event payload
        context: Lambda context object

    Returns:
        Response dict with statusCode and summary statistics
    """
    settings = load_settings()

    # Initialize logging
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    logger.info(
        "Snapshot build started",
        extra={
            'feed_url': settings.feed_url,
            'snapshot_bucket': settings.snapshot_bucket,
            'timeout_seconds': settings.timeout_seconds
        }
    )

    try:
        # Instantiate components
        client = RomeovilleFeedClient(
            url=settings.feed_url,
            timeout=settings.timeout_seconds
        )
        processor = EventProcessor()
        store = create_snapshot_store(
            path=settings.snapshot_path,
            bucket=settings.snapshot_bucket,
            key=settings.snapshot_key
        )

        # Fetch feed items with error handling
        try:
            raw_items = client.fetch_items()
        except Exception as e:
            logger.error(
                f"Failed to fetch event feed: {str(e)}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            duration = time.time() - start_time
            return {
                'statusCode': 500,
                'body': json.dumps({
                    'message': 'Failed to fetch event feed',
                    'error': str(e),
                    'error_type': type(e).__name__,
                    'note': 'Previous snapshot remains in place',
                    'duration_seconds': round(duration, 2)
                })
            }

        events = processor.process_items(raw_items)
        current_events, past_dropped = drop_past_events(events, datetime.now())
        ordered = sort_for_snapshot(current_events)

        result = IngestResult(
            items_fetched=len(raw_items),
            events_kept=len(ordered),
            past_dropped=past_dropped,
            items_dropped=len(raw_items) - len(events)
        )

        # Write snapshot with error handling
        try:
            store.write_events(ordered)
        except Exception as e:
            logger.error(
                f"Failed to write event snapshot: {str(e)}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            duration = time.time() - start_time
            return {
                'statusCode': 500,
                'body': json.dumps({
                    'message': 'Failed to write event snapshot',
                    'error': str(e),
                    'error_type': type(e).__name__,
                    'note': 'Previous snapshot remains in place',
                    'duration_seconds': round(duration, 2)
                })
            }

        duration = time.time() - start_time

        logger.info(
            "Snapshot build completed successfully",
            extra={
                'duration_seconds': round(duration, 2),
                'items_fetched': result.items_fetched,
                'events_kept': result.events_kept,
                'past_dropped': result.past_dropped,
                'items_dropped': result.items_dropped
            }
        )

        return {
            'statusCode': 200,
            'body': json.dumps({
                'message': 'Snapshot written successfully',
                'statistics': {
                    'items_fetched': result.items_fetched,
                    'events_kept': result.events_kept,
                    'past_events_dropped': result.past_dropped,
                    'items_dropped': result.items_dropped,
                    'duration_seconds': round(duration, 2)
                },
                'snapshot': store.describe()
            })
        }

    except Exception as e:
        duration = time.time() - start_time

        logger.error(
            f"Snapshot build failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )

        return {
            'statusCode': 500,
            'body': json.dumps({
                'message': 'Snapshot build failed',
                'error': str(e),
                'error_type': type(e).__name__,
                'duration_seconds': round(duration, 2)
            })
        }


if __name__ == '__main__':
    response = lambda_handler({}, None)
    print(response['body'])
    sys.exit(0 if response['statusCode'] == 200 else 1)
