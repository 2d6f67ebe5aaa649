"""Build schema.org Event records for search engine structured data."""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from processor.models import NormalizedEvent, PostalAddress

logger = logging.getLogger(__name__)

SCHEMA_CONTEXT = 'https://schema.org'
EVENT_SCHEDULED = 'https://schema.org/EventScheduled'
IN_STOCK = 'https://schema.org/InStock'
MIXED_ATTENDANCE = 'https://schema.org/MixedEventAttendanceMode'
ONLINE_ATTENDANCE = 'https://schema.org/OnlineEventAttendanceMode'
OFFLINE_ATTENDANCE = 'https://schema.org/OfflineEventAttendanceMode'


@dataclass(frozen=True)
class Organizer:
    """Deployment-specific branding attached to every record."""
    name: str = 'Geeks for Social Change'
    url: str = 'https://gfsc.community/'
    logo_url: str = (
        'https://gfsc.community/content/images/2025/02/'
        'GFSC_Community_Logo_Orange_RGB.png'
    )
    event_base_url: str = 'https://manchester.placecal.org/events'
    price_currency: str = 'GBP'


def event_url(event: NormalizedEvent, base_url: str) -> str:
    """Publisher URL of an event, or a page under base_url keyed by its id."""
    if event.publisher_url:
        return event.publisher_url
    return f"{base_url.rstrip('/')}/{event.id}"


class StructuredDataBuilder:
    """Maps normalized events onto schema.org Event records."""

    def __init__(self, organizer: Optional[Organizer] = None):
        """
        Initialize the builder.

        Args:
            organizer: Branding used for organizer, image and fallback URLs
        """
        self.organizer = organizer or Organizer()

    def build(self, events: List[NormalizedEvent]) -> List[Dict[str, Any]]:
        """
        Build one record per event, preserving order.

        Args:
            events: Normalized events

        Returns:
            List of schema.org Event dictionaries
        """
        records = [self.build_record(event) for event in events]
        logger.debug(f"Built {len(records)} structured data records")
        return records

    def build_record(self, event: NormalizedEvent) -> Dict[str, Any]:
        """
        Build the schema.org record for a single event.

        Args:
            event: Normalized event

        Returns:
            Event dictionary ready for JSON serialization
        """
        url = event_url(event, self.organizer.event_base_url)

        record = {
            '@type': 'Event',
            'name': event.name,
            'startDate': event.start.isoformat(),
            'eventStatus': EVENT_SCHEDULED,
            'image': self.organizer.logo_url,
            'organizer': {
                '@type': 'Organization',
                'name': self.organizer.name,
                'url': self.organizer.url
            },
            'offers': {
                '@type': 'Offer',
                'price': '0',
                'priceCurrency': self.organizer.price_currency,
                'availability': IN_STOCK,
                'url': url
            },
            'url': url
        }

        if event.end:
            record['endDate'] = event.end.isoformat()

        if event.summary:
            record['description'] = event.summary

        has_address = event.address is not None and event.address.is_locatable()
        has_online = bool(event.online_event_url)

        if has_address and has_online:
            record['eventAttendanceMode'] = MIXED_ATTENDANCE
            record['location'] = [
                self._place(event.address),
                self._virtual_location(event.online_event_url)
            ]
        elif has_online:
            record['eventAttendanceMode'] = ONLINE_ATTENDANCE
            record['location'] = self._virtual_location(event.online_event_url)
        elif has_address:
            record['eventAttendanceMode'] = OFFLINE_ATTENDANCE
            record['location'] = self._place(event.address)

        return record

    def _place(self, address: PostalAddress) -> Dict[str, Any]:
        return {
            '@type': 'Place',
            'address': {
                '@type': 'PostalAddress',
                'streetAddress': address.street_address or '',
                'addressLocality': address.address_locality or '',
                'postalCode': address.postal_code or ''
            }
        }

    def _virtual_location(self, url: str) -> Dict[str, Any]:
        return {'@type': 'VirtualLocation', 'url': url}


def json_ld_document(records: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Wrap records in a JSON-LD graph document.

    Args:
        records: Records from StructuredDataBuilder.build()

    Returns:
        Document dictionary, or None when there are no records to embed
    """
    if not records:
        return None
    return {'@context': SCHEMA_CONTEXT, '@graph': records}
