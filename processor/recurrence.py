"""Infer a recurrence cadence from the spacing of event occurrences."""
import logging
import math
from collections import Counter
from datetime import datetime
from typing import List, Optional, Sequence

from processor.models import DAILY, FORTNIGHTLY, MONTHLY, WEEKLY

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60

# Inclusive day ranges for each cadence
RECURRENCE_RANGES = (
    (1, 2, DAILY),
    (6, 8, WEEKLY),
    (13, 15, FORTNIGHTLY),
    (27, 32, MONTHLY),
)


def day_intervals(starts: Sequence[datetime]) -> List[int]:
    """
    Whole-day gaps between consecutive start timestamps.

    Args:
        starts: Start timestamps in chronological order

    Returns:
        One rounded day count per consecutive pair
    """
    intervals = []
    for previous, current in zip(starts, starts[1:]):
        days = (current - previous).total_seconds() / SECONDS_PER_DAY
        intervals.append(int(math.floor(days + 0.5)))
    return intervals


def modal_interval(intervals: Sequence[int]) -> int:
    """Most frequent interval, the smallest value winning a tie."""
    counts = Counter(intervals)
    return sorted(counts, key=lambda days: (-counts[days], days))[0]


def label_for_interval(days: int) -> Optional[str]:
    """Map a day count onto a recurrence label, or None outside every range."""
    for low, high, label in RECURRENCE_RANGES:
        if low <= days <= high:
            return label
    return None


def detect_recurrence(intervals: Sequence[int]) -> Optional[str]:
    """
    Detect a recurrence label from day intervals between occurrences.

    At least two intervals are needed before a cadence is asserted.

    Args:
        intervals: Day gaps between chronologically sorted occurrences

    Returns:
        'daily', 'weekly', 'fortnightly', 'monthly' or None
    """
    if len(intervals) < 2:
        return None

    mode = modal_interval(intervals)
    label = label_for_interval(mode)
    logger.debug(f"Modal interval {mode} days from {list(intervals)} -> {label}")
    return label
