"""AWS Lambda handler for the PlaceCal events feed."""
import json
import logging
import os
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests
from botocore.exceptions import BotoCoreError, ClientError
from dateutil.parser import isoparse

from feed.placecal_client import FeedError, PlaceCalClient
from processor.display import to_display_list
from processor.event_normalizer import EventNormalizer
from processor.structured_data import Organizer, StructuredDataBuilder, json_ld_document
from storage.dynamodb_cache import DynamoDBEventCache

STATE_EVENTS = 'events'
STATE_EMPTY = 'empty'
STATE_ERROR = 'error'


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def _int_env(name: str, default: int) -> int:
    """Non-negative integer from the environment, default when unusable."""
    try:
        value = int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default
    return value if value >= 0 else default


@dataclass(frozen=True)
class Settings:
    """Runtime configuration read from environment variables."""
    partner_id: Optional[str]
    endpoint: str
    future_days: int
    cache_table_name: str
    cache_ttl_seconds: int
    timeout_seconds: int
    log_level: str
    organizer: Organizer

    @classmethod
    def from_env(cls) -> 'Settings':
        defaults = Organizer()
        return cls(
            partner_id=os.environ.get('PLACECAL_PARTNER_ID') or None,
            endpoint=os.environ.get('PLACECAL_ENDPOINT', PlaceCalClient.DEFAULT_ENDPOINT),
            future_days=_int_env('FUTURE_DAYS', EventNormalizer.DEFAULT_HORIZON_DAYS),
            cache_table_name=os.environ.get('CACHE_TABLE_NAME', 'placecal-events-cache'),
            cache_ttl_seconds=_int_env('CACHE_TTL_SECONDS', DynamoDBEventCache.DEFAULT_TTL_SECONDS),
            timeout_seconds=_int_env('TIMEOUT_SECONDS', 30),
            log_level=os.environ.get('LOG_LEVEL', 'INFO'),
            organizer=Organizer(
                name=os.environ.get('ORGANIZER_NAME', defaults.name),
                url=os.environ.get('ORGANIZER_URL', defaults.url),
                logo_url=os.environ.get('ORGANIZER_LOGO_URL', defaults.logo_url),
                event_base_url=os.environ.get('EVENT_BASE_URL', defaults.event_base_url),
                price_currency=os.environ.get('PRICE_CURRENCY', defaults.price_currency)
            )
        )


def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'statusCode': status_code,
        'headers': {'Content-Type': 'application/json'},
        'body': json.dumps(body)
    }


def _error_response(
    status_code: int,
    message: str,
    error: Exception,
    start_time: float
) -> Dict[str, Any]:
    return _response(status_code, {
        'state': STATE_ERROR,
        'message': message,
        'error': str(error),
        'error_type': type(error).__name__,
        'events': [],
        'structured_data': None,
        'duration_seconds': round(time.time() - start_time, 2)
    })


def _resolve_now(event: Dict[str, Any]) -> datetime:
    """Current instant, or the 'now' override carried by the invocation."""
    override = (event or {}).get('now')
    if override:
        now = isoparse(override)
        return now if now.tzinfo else now.replace(tzinfo=timezone.utc)
    return datetime.now(timezone.utc)


def _open_cache(settings: Settings) -> Optional[DynamoDBEventCache]:
    logger = logging.getLogger(__name__)
    try:
        return DynamoDBEventCache(
            table_name=settings.cache_table_name,
            ttl_seconds=settings.cache_ttl_seconds
        )
    except (ClientError, BotoCoreError) as e:
        logger.warning(f"Event cache unavailable, continuing without it: {e}")
        return None


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler function for the PlaceCal events feed.

    Args:
        event: API Gateway or direct invocation payload
        context: Lambda context object

    Returns:
        Response dict with statusCode and the display state as JSON body
    """
    settings = Settings.from_env()

    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    logger.info(
        "Lambda execution started",
        extra={
            'partner_id': settings.partner_id,
            'future_days': settings.future_days,
            'cache_table_name': settings.cache_table_name
        }
    )

    if not settings.partner_id:
        logger.error("PLACECAL_PARTNER_ID is not configured")
        return _error_response(
            500,
            'Partner is not configured',
            ValueError('PLACECAL_PARTNER_ID is required'),
            start_time
        )

    try:
        now = _resolve_now(event)
    except (TypeError, ValueError) as e:
        logger.error(f"Invalid 'now' override: {e}")
        return _error_response(400, 'Invalid now override', e, start_time)

    cache = _open_cache(settings)
    records = cache.get(settings.partner_id) if cache else None
    source = 'cache'

    if records is None:
        source = 'feed'
        client = PlaceCalClient(
            endpoint=settings.endpoint,
            timeout=settings.timeout_seconds
        )
        try:
            logger.info("Fetching events from feed")
            records = client.fetch_events(settings.partner_id)
            logger.info(f"Fetched {len(records)} raw events from feed")
        except (requests.RequestException, FeedError) as e:
            logger.error(
                f"Failed to fetch events from feed: {str(e)}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            return _error_response(502, 'Failed to fetch events', e, start_time)

        if cache:
            cache.set(settings.partner_id, records)

    try:
        logger.info("Normalizing events")
        normalizer = EventNormalizer(StructuredDataBuilder(settings.organizer))
        result = normalizer.process(records, settings.future_days, now)
    except Exception as e:
        logger.error(
            f"Event normalization failed: {str(e)}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        return _error_response(500, 'Failed to normalize events', e, start_time)

    state = STATE_EMPTY if result.is_empty else STATE_EVENTS
    duration = time.time() - start_time

    logger.info(
        "Lambda execution completed successfully",
        extra={
            'state': state,
            'source': source,
            'events_displayed': len(result.events),
            'duration_seconds': round(duration, 2)
        }
    )

    return _response(200, {
        'state': state,
        'source': source,
        'events': to_display_list(result.events, settings.organizer),
        'structured_data': json_ld_document(result.structured_data),
        'statistics': {
            'raw_events': result.raw_count,
            'valid_events': result.valid_count,
            'events_displayed': len(result.events),
            'duration_seconds': round(duration, 2)
        }
    })
