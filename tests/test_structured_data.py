"""Unit tests for schema.org structured data."""
import logging
from datetime import datetime, timezone

import pytest

from processor.models import NormalizedEvent, PostalAddress
from processor.structured_data import (
    MIXED_ATTENDANCE,
    OFFLINE_ATTENDANCE,
    ONLINE_ATTENDANCE,
    Organizer,
    StructuredDataBuilder,
    event_url,
    json_ld_document,
)

START = datetime(2026, 2, 3, 18, 30, tzinfo=timezone.utc)
ADDRESS = PostalAddress('1 High Street', 'Manchester', 'M1 1AA')


def make_event(**kwargs):
    values = {'id': '77', 'name': 'Hack Night', 'start': START}
    values.update(kwargs)
    return NormalizedEvent(**values)


@pytest.fixture
def builder():
    return StructuredDataBuilder()


class TestStructuredDataBuilder:
    """Test cases for StructuredDataBuilder."""

    def test_basic_record(self, builder):
        """Test the fixed record shape."""
        record = builder.build_record(make_event())

        assert record['@type'] == 'Event'
        assert record['name'] == 'Hack Night'
        assert record['startDate'] == '2026-02-03T18:30:00+00:00'
        assert record['eventStatus'] == 'https://schema.org/EventScheduled'
        assert record['organizer'] == {
            '@type': 'Organization',
            'name': 'Geeks for Social Change',
            'url': 'https://gfsc.community/'
        }
        assert record['offers']['price'] == '0'
        assert record['offers']['priceCurrency'] == 'GBP'
        assert record['url'] == 'https://manchester.placecal.org/events/77'
        assert record['offers']['url'] == record['url']
        assert 'endDate' not in record
        assert 'description' not in record

    def test_optional_end_and_summary(self, builder):
        """Test endDate and description appear when present."""
        end = datetime(2026, 2, 3, 20, 0, tzinfo=timezone.utc)

        record = builder.build_record(make_event(end=end, summary='Build things'))

        assert record['endDate'] == '2026-02-03T20:00:00+00:00'
        assert record['description'] == 'Build things'

    def test_publisher_url_preferred(self, builder):
        """Test the publisher URL beats the fallback page."""
        record = builder.build_record(
            make_event(publisher_url='https://example.com/hack')
        )

        assert record['url'] == 'https://example.com/hack'

    def test_mixed_attendance(self, builder):
        """Test address plus online URL gives two locations."""
        record = builder.build_record(
            make_event(address=ADDRESS, online_event_url='https://zoom.us/j/1')
        )

        assert record['eventAttendanceMode'] == MIXED_ATTENDANCE
        assert len(record['location']) == 2
        place, virtual = record['location']
        assert place['@type'] == 'Place'
        assert place['address'] == {
            '@type': 'PostalAddress',
            'streetAddress': '1 High Street',
            'addressLocality': 'Manchester',
            'postalCode': 'M1 1AA'
        }
        assert virtual == {'@type': 'VirtualLocation', 'url': 'https://zoom.us/j/1'}

    def test_online_only(self, builder):
        """Test an online-only event has a single virtual location."""
        record = builder.build_record(
            make_event(online_event_url='https://discord.com/invite/x')
        )

        assert record['eventAttendanceMode'] == ONLINE_ATTENDANCE
        assert record['location']['@type'] == 'VirtualLocation'

    def test_address_only(self, builder):
        """Test a physical event has a single place with blank missing parts."""
        record = builder.build_record(
            make_event(address=PostalAddress(postal_code='M1 1AA'))
        )

        assert record['eventAttendanceMode'] == OFFLINE_ATTENDANCE
        assert record['location']['address']['streetAddress'] == ''
        assert record['location']['address']['postalCode'] == 'M1 1AA'

    def test_no_location(self, builder):
        """Test location fields are omitted entirely when unknown."""
        record = builder.build_record(
            make_event(address=PostalAddress(address_locality='Manchester'))
        )

        assert 'location' not in record
        assert 'eventAttendanceMode' not in record

    def test_custom_organizer(self):
        """Test branding comes from configuration."""
        organizer = Organizer(
            name='Test Org',
            url='https://org.test/',
            logo_url='https://org.test/logo.png',
            event_base_url='https://org.test/events/',
            price_currency='EUR'
        )

        record = StructuredDataBuilder(organizer).build_record(make_event())

        assert record['organizer']['name'] == 'Test Org'
        assert record['image'] == 'https://org.test/logo.png'
        assert record['url'] == 'https://org.test/events/77'
        assert record['offers']['priceCurrency'] == 'EUR'

    def test_build_preserves_order(self, builder):
        """Test one record per event in input order."""
        events = [make_event(id='1', name='A'), make_event(id='2', name='B')]

        assert [record['name'] for record in builder.build(events)] == ['A', 'B']
        assert builder.build([]) == []

    def test_build_logs_record_count(self, builder, caplog):
        """Test the number of built records is logged."""
        with caplog.at_level(logging.DEBUG, logger='processor.structured_data'):
            builder.build([make_event(id='1'), make_event(id='2')])

        assert any('Built 2 structured data records' in msg for msg in caplog.messages)


def test_event_url_fallback():
    """Test fallback URL is built from the event id."""
    assert event_url(make_event(), 'https://x.test/events') == 'https://x.test/events/77'


def test_json_ld_document():
    """Test the graph wrapper and the empty case."""
    assert json_ld_document([]) is None
    assert json_ld_document([{'@type': 'Event'}]) == {
        '@context': 'https://schema.org',
        '@graph': [{'@type': 'Event'}]
    }
