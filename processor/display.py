"""Display formatting for normalized events."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from processor.models import NormalizedEvent, PostalAddress
from processor.structured_data import Organizer, event_url
from processor.text_sanitizer import sanitize_description

DAY_NAMES = ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']
MONTH_NAMES = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
               'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']

# Substring of the meeting URL -> link label
JOIN_LINK_LABELS = [
    ('meet.google.com', 'Join on Google Meet'),
    ('discord.com', 'Join on Discord'),
    ('zoom.us', 'Join on Zoom'),
]
DEFAULT_JOIN_LABEL = 'Join online'


def short_date(value: datetime) -> str:
    """Format a date as e.g. 'Mon 3 Mar'."""
    return (
        f"{DAY_NAMES[value.weekday()]} {value.day} "
        f"{MONTH_NAMES[value.month - 1]}"
    )


def time_range(start: datetime, end: Optional[datetime] = None) -> str:
    """
    Format a start/end pair as e.g. '18:30 – 20:00 BST'.

    Args:
        start: Start timestamp
        end: Optional end timestamp

    Returns:
        Time range with the start's timezone abbreviation when known
    """
    text = start.strftime('%H:%M')
    if end:
        text += ' – ' + end.strftime('%H:%M')

    tz_name = start.tzname()
    if tz_name:
        text += ' ' + tz_name
    return text


def recurrence_text(recurrence: Optional[str]) -> str:
    return f"Repeats {recurrence}" if recurrence else ''


def join_link_label(url: str) -> str:
    """Link label naming the video-conferencing service when recognised."""
    for domain, label in JOIN_LINK_LABELS:
        if domain in url:
            return label
    return DEFAULT_JOIN_LABEL


def address_text(address: Optional[PostalAddress]) -> str:
    if address is None:
        return ''
    parts = [address.street_address, address.address_locality, address.postal_code]
    return ', '.join(part for part in parts if part)


def paragraphs_html(paragraphs: List[str]) -> str:
    """Wrap escaped paragraphs in <p> tags, newlines becoming <br>."""
    return ''.join(
        '<p>' + paragraph.replace('\n', '<br>') + '</p>'
        for paragraph in paragraphs
    )


def description_html(text: Optional[str]) -> str:
    return paragraphs_html(sanitize_description(text))


def to_display_dict(
    event: NormalizedEvent,
    organizer: Optional[Organizer] = None
) -> Dict[str, Any]:
    """
    Project a normalized event into display-ready fields.

    Args:
        event: Normalized event
        organizer: Branding providing the fallback event page URL

    Returns:
        JSON-serializable dictionary for a renderer
    """
    organizer = organizer or Organizer()
    paragraphs = sanitize_description(event.description)

    when = short_date(event.start) + ', ' + time_range(event.start, event.end)
    if event.recurrence:
        when += ' | ' + recurrence_text(event.recurrence)

    display = {
        'id': event.id,
        'name': event.name,
        'url': event_url(event, organizer.event_base_url),
        'datetime': event.start.isoformat(),
        'when': when,
        'recurrence': event.recurrence,
        'paragraphs': paragraphs,
        'description_html': paragraphs_html(paragraphs),
        'location': address_text(event.address),
        'join_url': event.online_event_url,
        'join_label': None
    }

    if event.online_event_url:
        display['join_label'] = join_link_label(event.online_event_url)

    return display


def to_display_list(
    events: List[NormalizedEvent],
    organizer: Optional[Organizer] = None
) -> List[Dict[str, Any]]:
    return [to_display_dict(event, organizer) for event in events]
