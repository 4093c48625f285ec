"""Duplicate filtering for events republished by several sources."""
import logging
from datetime import timedelta
from typing import List

from detector.constants import (
    DEFAULT_EVENT_DURATION,
    DUPLICATE_TIME_WINDOW,
    NEARBY_DISTANCE_KM,
    OVERLAP_NAME_SIMILARITY,
    SAME_SPOT_DISTANCE_KM,
    SAME_SPOT_NAME_SIMILARITY,
)
from detector.geo import venue_distance
from detector.similarity import name_similarity, normalize_event_name
from processor.models import Event, EventSignature, Venue

logger = logging.getLogger(__name__)


def create_event_signature(event: Event) -> EventSignature:
    """
    Build the comparison key used to match later events against this one.

    Args:
        event: A matchable Event

    Returns:
        EventSignature for the event
    """
    return EventSignature(
        name=(event.name or '').lower().strip(),
        normalized_name=normalize_event_name(event.name),
        venue_name=(event.venue.name or '').lower().strip(),
        venue_lat=event.venue.lat,
        venue_lon=event.venue.lon,
        start_time=event.start
    )


def is_duplicate_event(
    event: Event,
    signature: EventSignature,
    assumed_duration: timedelta = DEFAULT_EVENT_DURATION
) -> bool:
    """
    Check whether an event is a re-listing of the event behind a signature.

    Matches on any of:
        1. same name, same venue name, start within five minutes
        2. same normalized name, same venue name, start within five minutes
        3. venues under 50m apart, start within five minutes and
           normalized names more than 85% similar
        4. venues under 100m apart, overlapping times and normalized
           names more than 80% similar

    Args:
        event: Candidate event
        signature: Signature of an event already kept
        assumed_duration: Duration assumed for the kept event, whose end
            time is not part of its signature

    Returns:
        True if the event is a duplicate
    """
    event_name = (event.name or '').lower().strip()
    normalized_name = normalize_event_name(event.name)
    venue_name = (event.venue.name or '').lower().strip()
    time_difference = abs(event.start - signature.start_time)
    within_window = time_difference <= DUPLICATE_TIME_WINDOW

    if (event_name == signature.name
            and venue_name == signature.venue_name
            and within_window):
        return True

    if (normalized_name
            and normalized_name == signature.normalized_name
            and venue_name == signature.venue_name
            and within_window):
        return True

    distance = venue_distance(
        event.venue,
        Venue(name=signature.venue_name, lat=signature.venue_lat, lon=signature.venue_lon)
    )

    if distance < SAME_SPOT_DISTANCE_KM and within_window:
        if name_similarity(normalized_name, signature.normalized_name) > SAME_SPOT_NAME_SIMILARITY:
            return True

    if distance < NEARBY_DISTANCE_KM:
        other_start = signature.start_time
        other_end = other_start + assumed_duration
        if event.start <= other_end and event.end >= other_start:
            if name_similarity(normalized_name, signature.normalized_name) > OVERLAP_NAME_SIMILARITY:
                return True

    return False


def filter_duplicates(
    events: List[Event],
    assumed_duration: timedelta = DEFAULT_EVENT_DURATION
) -> List[Event]:
    """
    Remove exact and near-duplicate events.

    Events missing a start, an end or venue coordinates are dropped. The
    first listing of each logical event is kept, in input order.

    Args:
        events: Events, possibly listed more than once across sources
        assumed_duration: Duration assumed for kept events when matching
            overlapping re-listings

    Returns:
        List of unique events
    """
    unique_events = []
    seen_ids = set()
    signatures = []
    skipped = 0

    for event in events:
        if not event.is_matchable:
            skipped += 1
            continue

        if event.id in seen_ids:
            continue

        if any(is_duplicate_event(event, signature, assumed_duration)
               for signature in signatures):
            continue

        unique_events.append(event)
        seen_ids.add(event.id)
        signatures.append(create_event_signature(event))

    logger.debug(
        f"Kept {len(unique_events)} unique events out of {len(events)} "
        f"({skipped} without time or venue data)"
    )
    return unique_events
