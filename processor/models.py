"""Data models for event normalization."""
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Dict, List, Optional


DAILY = 'daily'
WEEKLY = 'weekly'
FORTNIGHTLY = 'fortnightly'
MONTHLY = 'monthly'

RECURRENCE_LABELS = (DAILY, WEEKLY, FORTNIGHTLY, MONTHLY)


@dataclass(frozen=True)
class PostalAddress:
    """Postal address attached to an event."""
    street_address: Optional[str] = None
    address_locality: Optional[str] = None
    postal_code: Optional[str] = None

    def is_locatable(self) -> bool:
        """Whether the address has enough detail to describe a place."""
        return bool(self.street_address or self.postal_code)


@dataclass(frozen=True)
class RawEvent:
    """Event as received from the calendar feed."""
    id: str
    name: str
    start: datetime
    summary: Optional[str] = None
    description: Optional[str] = None
    end: Optional[datetime] = None
    repeat_frequency: Optional[str] = None
    publisher_url: Optional[str] = None
    online_event_url: Optional[str] = None
    address: Optional[PostalAddress] = None


@dataclass(frozen=True)
class NormalizedEvent(RawEvent):
    """Next occurrence chosen for a series, with its recurrence label."""
    recurrence: Optional[str] = None

    @classmethod
    def from_raw(
        cls,
        event: RawEvent,
        recurrence: Optional[str] = None
    ) -> 'NormalizedEvent':
        """Copy every field of a raw event and attach a recurrence label."""
        values = {f.name: getattr(event, f.name) for f in fields(RawEvent)}
        return cls(recurrence=recurrence, **values)


@dataclass
class PipelineResult:
    """Outputs of one normalization run."""
    events: List[NormalizedEvent]
    structured_data: List[Dict[str, Any]]
    raw_count: int = 0
    valid_count: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.events
