"""Venue proximity threshold derived from local venue density."""
import logging
from typing import List

from detector.constants import (
    BASE_THRESHOLD_KM,
    DENSE_MEDIAN_KM,
    DENSE_THRESHOLD_KM,
    DENSITY_RADIUS_KM,
    DENSITY_SAMPLE_SIZE,
    MEDIUM_MEDIAN_KM,
    MEDIUM_THRESHOLD_KM,
)
from detector.geo import venue_distance
from processor.models import Event

logger = logging.getLogger(__name__)


def calculate_dynamic_threshold(
    events: List[Event],
    base_threshold: float = BASE_THRESHOLD_KM
) -> float:
    """
    Pick a venue proximity threshold from the density of nearby venues.

    The first 200 events with venue coordinates are sampled and the median
    of all pairwise distances under 1 km decides the threshold: dense
    areas get a tighter radius so neighbouring venues are not lumped
    together.

    Args:
        events: Events to sample
        base_threshold: Threshold for sparse areas, in kilometers

    Returns:
        Proximity threshold in kilometers
    """
    sample = [
        event for event in events
        if event.venue is not None and event.venue.has_coordinates
    ][:DENSITY_SAMPLE_SIZE]

    distances = []
    for i, event1 in enumerate(sample):
        for event2 in sample[i + 1:]:
            distance = venue_distance(event1.venue, event2.venue)
            if distance < DENSITY_RADIUS_KM:
                distances.append(distance)

    if not distances:
        return base_threshold

    distances.sort()
    median_distance = distances[len(distances) // 2]

    if median_distance < DENSE_MEDIAN_KM:
        threshold = DENSE_THRESHOLD_KM
    elif median_distance < MEDIUM_MEDIAN_KM:
        threshold = MEDIUM_THRESHOLD_KM
    else:
        threshold = base_threshold

    logger.debug(
        f"Median venue distance {median_distance:.3f} km over "
        f"{len(distances)} pairs, threshold {threshold} km"
    )
    return threshold
