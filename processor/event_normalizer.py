"""Event normalizer turning feed records into an ordered display sequence."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from dateutil.parser import isoparse

from processor.models import NormalizedEvent, PipelineResult, PostalAddress, RawEvent
from processor.series_collapser import collapse_series
from processor.structured_data import StructuredDataBuilder

logger = logging.getLogger(__name__)


class InvalidEventError(ValueError):
    """Raised when a feed record cannot be turned into a RawEvent."""


class EventNormalizer:
    """Normalizer for windowing, ordering and collapsing feed events."""

    DEFAULT_HORIZON_DAYS = 90

    def __init__(self, builder: Optional[StructuredDataBuilder] = None):
        """
        Initialize the normalizer.

        Args:
            builder: Structured data builder used by process()
        """
        self.builder = builder or StructuredDataBuilder()

    def parse_events(self, records: List[Dict[str, Any]]) -> List[RawEvent]:
        """
        Parse feed records, skipping malformed ones.

        Args:
            records: Event dictionaries as returned by the feed

        Returns:
            List of RawEvent objects in feed order
        """
        events = []

        for record in records:
            try:
                events.append(self.parse_event(record))
            except InvalidEventError as e:
                logger.warning(f"Skipping feed record: {e}")
                continue

        logger.info(
            f"Parsed {len(events)} valid events out of "
            f"{len(records)} feed records"
        )
        return events

    def parse_event(self, record: Dict[str, Any]) -> RawEvent:
        """
        Parse a single feed record.

        Args:
            record: Event dictionary from the feed

        Returns:
            RawEvent object

        Raises:
            InvalidEventError: If a required field is missing or invalid
        """
        if not isinstance(record, dict):
            raise InvalidEventError(f"record is not an object: {record!r}")

        event_id = record.get('id')
        name = record.get('name')
        if event_id is None or not str(event_id).strip():
            raise InvalidEventError("record missing required field: id")
        if not name or not str(name).strip():
            raise InvalidEventError(
                f"record {event_id} missing required field: name"
            )

        start = self._parse_timestamp(record.get('startDate'))
        if start is None:
            raise InvalidEventError(
                f"event '{name}' has missing or invalid startDate: "
                f"{record.get('startDate')!r}"
            )

        end = self._parse_timestamp(record.get('endDate'))
        if record.get('endDate') and end is None:
            logger.warning(
                f"Ignoring invalid endDate for event '{name}': "
                f"{record.get('endDate')!r}"
            )

        return RawEvent(
            id=str(event_id),
            name=str(name),
            start=start,
            summary=self._optional_text(record, 'summary', name),
            description=self._optional_text(record, 'description', name),
            end=end,
            repeat_frequency=self._optional_text(record, 'repeatFrequency', name),
            publisher_url=self._optional_text(record, 'publisherUrl', name),
            online_event_url=self._optional_text(record, 'onlineEventUrl', name),
            address=self._parse_address(record.get('address'), name)
        )

    def normalize(
        self,
        raw_events: List[RawEvent],
        horizon_days: int,
        now: datetime
    ) -> List[NormalizedEvent]:
        """
        Window, sort and collapse events.

        Args:
            raw_events: Parsed events, any order
            horizon_days: Days after now beyond which events are dropped
            now: Current instant, assumed UTC when naive

        Returns:
            One event per series, ascending by start; empty when nothing
            falls inside the horizon
        """
        if horizon_days < 0:
            raise ValueError(f"horizon_days must be >= 0, got {horizon_days}")

        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        cutoff = now + timedelta(days=horizon_days)
        retained = [event for event in raw_events if event.start <= cutoff]
        retained.sort(key=lambda event: event.start)

        logger.info(
            f"Retained {len(retained)} of {len(raw_events)} events "
            f"starting on or before {cutoff.isoformat()}"
        )

        if not retained:
            return []

        return collapse_series(retained)

    def process(
        self,
        records: List[Dict[str, Any]],
        horizon_days: int,
        now: datetime
    ) -> PipelineResult:
        """
        Run the full pipeline from feed records to display and schema output.

        Args:
            records: Event dictionaries as returned by the feed
            horizon_days: Forward window in days
            now: Current instant, assumed UTC when naive

        Returns:
            PipelineResult with normalized events and structured data
        """
        raw_events = self.parse_events(records)
        events = self.normalize(raw_events, horizon_days, now)
        return PipelineResult(
            events=events,
            structured_data=self.builder.build(events),
            raw_count=len(records),
            valid_count=len(raw_events)
        )

    def _parse_timestamp(self, value: Any) -> Optional[datetime]:
        """
        Parse an ISO 8601 timestamp, assuming UTC when no offset is given.

        Args:
            value: Timestamp string from the feed

        Returns:
            Timezone-aware datetime or None if parsing fails
        """
        if not value or not isinstance(value, str):
            return None

        try:
            parsed = isoparse(value.strip())
        except (ValueError, OverflowError):
            return None

        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def _optional_text(
        self,
        record: Dict[str, Any],
        key: str,
        name: Any
    ) -> Optional[str]:
        """
        Read an optional string field, dropping values of the wrong type.

        Args:
            record: Event dictionary from the feed
            key: Field name
            name: Event name used in log messages

        Returns:
            Non-empty string or None
        """
        value = record.get(key)
        if value is None:
            return None
        if not isinstance(value, str):
            logger.warning(
                f"Ignoring non-text {key} for event '{name}': {value!r}"
            )
            return None
        return value or None

    def _parse_address(self, value: Any, name: Any = None) -> Optional[PostalAddress]:
        if value is None:
            return None
        if not isinstance(value, dict):
            logger.warning(f"Ignoring invalid address for event '{name}': {value!r}")
            return None

        address = PostalAddress(
            street_address=self._optional_text(value, 'streetAddress', name),
            address_locality=self._optional_text(value, 'addressLocality', name),
            postal_code=self._optional_text(value, 'postalCode', name)
        )
        if not any([
            address.street_address,
            address.address_locality,
            address.postal_code
        ]):
            return None
        return address
