"""Unit tests for the DynamoDB event cache."""
import json
from unittest.mock import patch

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from storage.dynamodb_cache import DynamoDBEventCache

TABLE_NAME = 'test-placecal-events-cache'
NOW = 1_800_000_000

SAMPLE_EVENTS = [
    {'id': '1', 'name': 'Hack Night', 'startDate': '2027-01-08T19:00:00+00:00'},
    {'id': '2', 'name': 'Repair Cafe', 'startDate': '2027-01-10T10:00:00+00:00'},
]


@pytest.fixture
def dynamodb_table():
    """Create a mock DynamoDB table for testing."""
    with mock_aws():
        dynamodb = boto3.resource('dynamodb', region_name='us-east-1')
        table = dynamodb.create_table(
            TableName=TABLE_NAME,
            KeySchema=[{'AttributeName': 'cache_key', 'KeyType': 'HASH'}],
            AttributeDefinitions=[
                {'AttributeName': 'cache_key', 'AttributeType': 'S'}
            ],
            BillingMode='PAY_PER_REQUEST'
        )
        yield table


@pytest.fixture
def cache(dynamodb_table):
    """Create DynamoDBEventCache instance with mock table."""
    return DynamoDBEventCache(TABLE_NAME, ttl_seconds=1800)


def test_cache_key():
    """Test keys are namespaced by partner."""
    assert DynamoDBEventCache.cache_key('42') == 'placecal_events_v3_42'
    assert DynamoDBEventCache.cache_key(None) == 'placecal_events_v3_all'


def test_get_miss_on_empty_table(cache):
    """Test get returns None when nothing is cached."""
    assert cache.get('42', now=NOW) is None


def test_set_then_get(cache, dynamodb_table):
    """Test stored events come back while fresh."""
    assert cache.set('42', SAMPLE_EVENTS, now=NOW) is True

    assert cache.get('42', now=NOW + 60) == SAMPLE_EVENTS

    item = dynamodb_table.get_item(Key={'cache_key': 'placecal_events_v3_42'})['Item']
    assert int(item['ttl']) == NOW + 1800
    assert json.loads(item['events']) == SAMPLE_EVENTS


def test_partners_do_not_share_entries(cache):
    """Test one partner's events are not served for another."""
    cache.set('42', SAMPLE_EVENTS, now=NOW)

    assert cache.get('43', now=NOW) is None


def test_expired_entry_removed(cache, dynamodb_table):
    """Test entries older than the lifetime are a miss and get deleted."""
    cache.set('42', SAMPLE_EVENTS, now=NOW)

    assert cache.get('42', now=NOW + 1801) is None
    assert 'Item' not in dynamodb_table.get_item(
        Key={'cache_key': 'placecal_events_v3_42'}
    )


def test_malformed_entry_is_a_miss(cache, dynamodb_table):
    """Test an unreadable entry is discarded."""
    dynamodb_table.put_item(Item={
        'cache_key': 'placecal_events_v3_42',
        'timestamp': NOW,
        'events': 'not json'
    })

    assert cache.get('42', now=NOW) is None


def test_set_failure_returns_false(cache):
    """Test write errors such as throughput limits are swallowed."""
    error = ClientError(
        {'Error': {'Code': 'ProvisionedThroughputExceededException', 'Message': 'Slow down'}},
        'PutItem'
    )

    with patch.object(cache.table, 'put_item', side_effect=error):
        assert cache.set('42', SAMPLE_EVENTS, now=NOW) is False


def test_get_failure_is_a_miss(cache):
    """Test read errors fall back to a miss."""
    error = ClientError(
        {'Error': {'Code': 'ResourceNotFoundException', 'Message': 'No table'}},
        'GetItem'
    )

    with patch.object(cache.table, 'get_item', side_effect=error):
        assert cache.get('42', now=NOW) is None
