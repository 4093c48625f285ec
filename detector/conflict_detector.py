"""Pairwise conflict matching over normalized events."""
import logging
from datetime import timedelta
from typing import List, Optional, Tuple

from detector.classifier import (
    calculate_severity,
    determine_conflict_type,
    find_shared_genres,
    get_time_slot_string,
)
from detector.constants import (
    DEFAULT_EVENT_DURATION,
    DEFAULT_TIME_BUFFER_MINUTES,
    DISSIMILAR_VENUE_SIMILARITY,
    DISSIMILAR_VENUE_THRESHOLD_KM,
)
from detector.duplicate_filter import filter_duplicates
from detector.geo import venue_distance
from detector.similarity import venue_name_similarity
from detector.threshold import calculate_dynamic_threshold
from processor.models import (
    THRESHOLD_MODE_DYNAMIC,
    THRESHOLD_MODE_MANUAL,
    Conflict,
    DetectionResult,
    Event,
)

logger = logging.getLogger(__name__)


def check_time_overlap(event1: Event, event2: Event, buffer: timedelta) -> bool:
    """True if the events overlap once each is widened by the buffer."""
    return (
        event1.start <= event2.end + buffer
        and event1.end >= event2.start - buffer
    )


def pair_key(event1: Event, event2: Event) -> Tuple[str, str]:
    """Order-independent key for a pair of events."""
    return tuple(sorted((str(event1.id), str(event2.id))))


def find_conflicts(
    events: List[Event],
    time_buffer: int = DEFAULT_TIME_BUFFER_MINUTES,
    venue_proximity_threshold: Optional[float] = None,
    skip_duplicate_filter: bool = False,
    assumed_duration: timedelta = DEFAULT_EVENT_DURATION
) -> List[Conflict]:
    """
    Find pairs of events that overlap in time at the same or nearby venues.

    Args:
        events: Normalized events
        time_buffer: Minutes added around each event when testing overlap
        venue_proximity_threshold: Maximum venue distance in kilometers;
            estimated from venue density when None
        skip_duplicate_filter: Set when events were already deduplicated
        assumed_duration: Passed to the duplicate filter

    Returns:
        One Conflict per conflicting pair
    """
    unique_events = (
        events if skip_duplicate_filter
        else filter_duplicates(events, assumed_duration)
    )

    if venue_proximity_threshold is not None:
        threshold = venue_proximity_threshold
    else:
        threshold = calculate_dynamic_threshold(unique_events)

    buffer = timedelta(minutes=time_buffer)
    conflicts = []
    processed_pairs = set()

    for i, event1 in enumerate(unique_events):
        if not event1.is_matchable:
            continue

        for event2 in unique_events[i + 1:]:
            if not event2.is_matchable:
                continue

            if event1.id == event2.id:
                continue

            key = pair_key(event1, event2)
            if key in processed_pairs:
                continue

            if not check_time_overlap(event1, event2, buffer):
                continue

            distance = venue_distance(event1.venue, event2.venue)
            effective_threshold = threshold
            # Differently named venues must be practically next door
            if (venue_name_similarity(event1.venue, event2.venue) < DISSIMILAR_VENUE_SIMILARITY
                    and distance > DISSIMILAR_VENUE_THRESHOLD_KM):
                effective_threshold = DISSIMILAR_VENUE_THRESHOLD_KM

            if distance >= effective_threshold:
                continue

            conflicts.append(Conflict(
                events=[event1, event2],
                conflict_type=determine_conflict_type(event1, event2),
                time_slot=get_time_slot_string(event1, event2),
                severity=calculate_severity(event1, event2),
                shared_genres=find_shared_genres(event1, event2)
            ))
            processed_pairs.add(key)

    logger.info(
        f"Found {len(conflicts)} conflicts among {len(unique_events)} events "
        f"(threshold {threshold} km, buffer {time_buffer} min)"
    )
    return conflicts


def detect_conflicts(
    events: List[Event],
    time_buffer: int = DEFAULT_TIME_BUFFER_MINUTES,
    venue_proximity_threshold: Optional[float] = None,
    assumed_duration: timedelta = DEFAULT_EVENT_DURATION
) -> DetectionResult:
    """
    Deduplicate events, find conflicts and report the threshold that was used.

    Args:
        events: Normalized events
        time_buffer: Minutes added around each event when testing overlap
        venue_proximity_threshold: Manual threshold in kilometers, or None
            for the density-based estimate
        assumed_duration: Passed to the duplicate filter

    Returns:
        DetectionResult with conflicts and summary counts
    """
    unique_events = filter_duplicates(events, assumed_duration)

    if venue_proximity_threshold is not None:
        threshold = venue_proximity_threshold
        mode = THRESHOLD_MODE_MANUAL
    else:
        threshold = calculate_dynamic_threshold(unique_events)
        mode = THRESHOLD_MODE_DYNAMIC

    conflicts = find_conflicts(
        unique_events,
        time_buffer=time_buffer,
        venue_proximity_threshold=threshold,
        skip_duplicate_filter=True,
        assumed_duration=assumed_duration
    )

    return DetectionResult(
        conflicts=conflicts,
        total_events=len(events),
        unique_events=len(unique_events),
        time_buffer=time_buffer,
        venue_proximity_threshold=threshold,
        threshold_mode=mode
    )
