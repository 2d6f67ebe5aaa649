"""DynamoDB-backed time-boxed cache for raw feed responses."""
import json
import logging
import time
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = 'placecal_events_v3_'


class DynamoDBEventCache:
    """Cache of raw feed events keyed by partner."""

    DEFAULT_TTL_SECONDS = 30 * 60

    def __init__(self, table_name: str, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        """
        Initialize DynamoDB resource and table reference.

        Args:
            table_name: Name of the DynamoDB table
            ttl_seconds: Lifetime of a cache entry in seconds
        """
        self.table_name = table_name
        self.ttl_seconds = ttl_seconds
        self.dynamodb = boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized DynamoDBEventCache for table: {table_name}")

    @staticmethod
    def cache_key(partner_id: Optional[str]) -> str:
        return CACHE_KEY_PREFIX + (str(partner_id) if partner_id else 'all')

    def get(
        self,
        partner_id: Optional[str],
        now: Optional[float] = None
    ) -> Optional[List[Dict[str, Any]]]:
        """
        Return cached events if a fresh entry exists.

        Expired entries are deleted. Storage failures count as a miss.

        Args:
            partner_id: Partner the events belong to
            now: Current epoch seconds (defaults to time.time())

        Returns:
            Cached event dictionaries, or None on a miss
        """
        now = time.time() if now is None else now
        key = self.cache_key(partner_id)

        try:
            response = self.table.get_item(Key={'cache_key': key})
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"Error reading cache entry {key}: {e}")
            return None

        item = response.get('Item')
        if not item:
            logger.info(f"Cache miss for {key}")
            return None

        try:
            stored_at = float(item['timestamp'])
            events = json.loads(item['events'])
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding malformed cache entry {key}: {e}")
            self.invalidate(partner_id)
            return None

        if now - stored_at > self.ttl_seconds:
            logger.info(f"Cache entry {key} expired")
            self.invalidate(partner_id)
            return None

        logger.info(f"Cache hit for {key} with {len(events)} events")
        return events

    def set(
        self,
        partner_id: Optional[str],
        events: List[Dict[str, Any]],
        now: Optional[float] = None
    ) -> bool:
        """
        Store events for a partner.

        Args:
            partner_id: Partner the events belong to
            events: Raw event dictionaries from the feed
            now: Current epoch seconds (defaults to time.time())

        Returns:
            True if stored, False if the write failed
        """
        now = time.time() if now is None else now
        key = self.cache_key(partner_id)

        item = {
            'cache_key': key,
            'timestamp': int(now),
            'events': json.dumps(events),
            'ttl': int(now) + self.ttl_seconds
        }

        try:
            self.table.put_item(Item=item)
        except (ClientError, BotoCoreError) as e:
            # Quota or throttling errors leave the request uncached
            logger.warning(f"Error writing cache entry {key}: {e}")
            return False

        logger.info(f"Cached {len(events)} events under {key}")
        return True

    def invalidate(self, partner_id: Optional[str]) -> None:
        key = self.cache_key(partner_id)
        try:
            self.table.delete_item(Key={'cache_key': key})
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"Error deleting cache entry {key}: {e}")
