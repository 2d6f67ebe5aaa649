"""Collapse recurring events down to their next occurrence."""
import logging
from typing import Dict, Hashable, List, Optional, Sequence, Set

from processor.models import RECURRENCE_LABELS, NormalizedEvent, RawEvent
from processor.recurrence import day_intervals, detect_recurrence

logger = logging.getLogger(__name__)


def series_key(event: RawEvent, tagged_names: Set[str]) -> Hashable:
    """
    Grouping key for the series an event belongs to.

    Names that carry a repeat frequency anywhere in the feed are grouped
    by name alone so daylight-saving shifts do not split the series.
    Untagged events are grouped by name and clock time.

    Args:
        event: Event to classify
        tagged_names: Names of events carrying a repeat frequency

    Returns:
        Hashable series key
    """
    if event.name in tagged_names:
        return event.name
    return (event.name, event.start.strftime('%H:%M'))


def group_series(events: Sequence[RawEvent]) -> List[List[RawEvent]]:
    """Partition events into series, in order of first appearance."""
    tagged_names = {event.name for event in events if event.repeat_frequency}

    series: Dict[Hashable, List[RawEvent]] = {}
    for event in events:
        series.setdefault(series_key(event, tagged_names), []).append(event)

    return list(series.values())


def _declared_recurrence(members: Sequence[RawEvent]) -> Optional[str]:
    """Recurrence label from the first repeat frequency tag in the series."""
    for event in members:
        if not event.repeat_frequency:
            continue
        label = event.repeat_frequency.strip().lower()
        if label in RECURRENCE_LABELS:
            return label
        logger.warning(
            f"Unknown repeat frequency '{event.repeat_frequency}' for event "
            f"'{event.name}', ignoring it"
        )
    return None


def collapse_series(events: Sequence[RawEvent]) -> List[NormalizedEvent]:
    """
    Emit one NormalizedEvent per series, the earliest member of each.

    Start timestamps must be present and comparable; callers filter out
    records with unparseable dates beforehand.

    Args:
        events: Raw events in any order

    Returns:
        Representatives sorted ascending by start timestamp
    """
    collapsed = []

    for members in group_series(events):
        members = sorted(members, key=lambda event: event.start)
        representative = members[0]

        recurrence = _declared_recurrence(members)
        if recurrence is None and len(members) > 1:
            intervals = day_intervals([event.start for event in members])
            recurrence = detect_recurrence(intervals)

        collapsed.append(NormalizedEvent.from_raw(representative, recurrence))

    collapsed.sort(key=lambda event: event.start)

    logger.info(
        f"Collapsed {len(events)} events into {len(collapsed)} series"
    )
    return collapsed
