"""Shared fixtures for conflict detection tests."""
from datetime import datetime, timezone

import pytest

from processor.models import Event, Venue

# Washington Square area, New York
BASE_LAT = 40.73094
BASE_LON = -74.00065

# Degrees of latitude per kilometer along a meridian
DEG_PER_KM = 1 / 111.195


def at(hour: int, minute: int = 0, day: int = 15) -> datetime:
    """Timestamp on January 2024 in UTC."""
    return datetime(2024, 1, day, hour, minute, tzinfo=timezone.utc)


def north_of(km: float) -> float:
    """Latitude the given distance north of the base location."""
    return BASE_LAT + km * DEG_PER_KM


@pytest.fixture
def make_event():
    """Factory for matchable events with sensible defaults."""
    def _make_event(
        event_id,
        name='Jazz Concert',
        start=None,
        end=None,
        venue_name='Blue Note',
        lat=BASE_LAT,
        lon=BASE_LON,
        source='ticketmaster',
        genres=None
    ):
        return Event(
            id=event_id,
            name=name,
            start=start if start is not None else at(20),
            end=end if end is not None else at(22),
            venue=Venue(name=venue_name, lat=lat, lon=lon),
            source=source,
            genres=genres or []
        )

    return _make_event
