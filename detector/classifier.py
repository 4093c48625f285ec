"""Conflict type, severity and presentation labels for matched pairs."""
from datetime import timedelta
from typing import List, Optional

from detector.constants import (
    HIGH_SEVERITY_PERCENT,
    MEDIUM_SEVERITY_PERCENT,
    SAME_VENUE_DISTANCE_KM,
    SAME_VENUE_NAME_SIMILARITY,
)
from detector.geo import venue_distance
from detector.similarity import venue_name_similarity
from processor.models import (
    CROSS_PLATFORM_DUPLICATE,
    CROSS_PLATFORM_PROXIMITY,
    SAME_VENUE_CONFLICT,
    SEVERITY_HIGH,
    SEVERITY_LOW,
    SEVERITY_MEDIUM,
    TIME_VENUE_CONFLICT,
    Event,
)


def is_same_venue(event1: Event, event2: Event) -> bool:
    """
    Decide whether two events take place at the same venue.

    Venue names must match exactly, or the venues must be under 50m apart
    with names more than 70% similar. Shared rounded coordinates alone are
    not enough.
    """
    if event1.venue.name == event2.venue.name:
        return True

    distance = venue_distance(event1.venue, event2.venue)
    return (
        distance < SAME_VENUE_DISTANCE_KM
        and venue_name_similarity(event1.venue, event2.venue) > SAME_VENUE_NAME_SIMILARITY
    )


def determine_conflict_type(event1: Event, event2: Event) -> str:
    """
    Label a conflicting pair by venue identity and source.

    Args:
        event1: First event
        event2: Second event

    Returns:
        One of the conflict type constants in processor.models
    """
    same_venue = is_same_venue(event1, event2)
    different_sources = event1.source != event2.source

    if same_venue and different_sources:
        return CROSS_PLATFORM_DUPLICATE
    if same_venue:
        return SAME_VENUE_CONFLICT
    if different_sources:
        return CROSS_PLATFORM_PROXIMITY
    return TIME_VENUE_CONFLICT


def overlap_percentage(event1: Event, event2: Event) -> float:
    """Share of the two events' combined duration during which both run."""
    overlap_start = max(event1.start, event2.start)
    overlap_end = min(event1.end, event2.end)
    overlap = max(timedelta(0), overlap_end - overlap_start)

    total = (event1.end - event1.start) + (event2.end - event2.start)
    if total <= timedelta(0):
        return 0.0

    return overlap / total * 100


def calculate_severity(
    event1: Event,
    event2: Event,
    buffer: Optional[timedelta] = None
) -> str:
    """
    Grade a conflict by how much of the events' time actually overlaps.

    Only the events' own time counts. The buffer that widened the overlap
    test never changes the grade; two events that only touch within the
    buffer are always low.

    Args:
        event1: First event
        event2: Second event
        buffer: Time buffer used for matching, ignored for grading

    Returns:
        'high' above 50% overlap, 'medium' above 25%, otherwise 'low'
    """
    percentage = overlap_percentage(event1, event2)

    if percentage > HIGH_SEVERITY_PERCENT:
        return SEVERITY_HIGH
    if percentage > MEDIUM_SEVERITY_PERCENT:
        return SEVERITY_MEDIUM
    return SEVERITY_LOW


def get_time_slot_string(event1: Event, event2: Event) -> str:
    """Readable label for the earlier start, e.g. 'Mon, Jan 15, 08:00 PM'."""
    earlier = min(event1.start, event2.start)
    return f"{earlier:%a, %b} {earlier.day}, {earlier:%I:%M %p}"


def find_shared_genres(event1: Event, event2: Event) -> List[str]:
    """Genre tags carried by both events, in the first event's order."""
    other = {genre.lower().strip() for genre in event2.genres if genre}
    shared = []
    for genre in event1.genres:
        normalized = (genre or '').lower().strip()
        if normalized and normalized in other and normalized not in shared:
            shared.append(normalized)
    return shared
