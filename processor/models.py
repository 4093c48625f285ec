"""Data models for conflict detection."""
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


SAME_VENUE_CONFLICT = 'same_venue_conflict'
CROSS_PLATFORM_DUPLICATE = 'cross_platform_duplicate'
CROSS_PLATFORM_PROXIMITY = 'cross_platform_proximity'
TIME_VENUE_CONFLICT = 'time_venue_conflict'

SEVERITY_HIGH = 'high'
SEVERITY_MEDIUM = 'medium'
SEVERITY_LOW = 'low'

THRESHOLD_MODE_MANUAL = 'manual'
THRESHOLD_MODE_DYNAMIC = 'dynamic'


@dataclass
class Venue:
    """Venue of an event."""
    name: str
    lat: Optional[float]
    lon: Optional[float]
    address: str = ''

    @property
    def has_coordinates(self) -> bool:
        try:
            return math.isfinite(self.lat) and math.isfinite(self.lon)
        except TypeError:
            return False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'lat': self.lat,
            'lon': self.lon,
            'address': self.address
        }


@dataclass
class Event:
    """Normalized event from a ticketing source."""
    id: str
    name: str
    start: Optional[datetime]
    end: Optional[datetime]
    venue: Optional[Venue]
    source: str
    genres: List[str] = field(default_factory=list)
    url: Optional[str] = None

    @property
    def is_matchable(self) -> bool:
        """True when the event has both timestamps and venue coordinates."""
        return (
            self.start is not None
            and self.end is not None
            and self.venue is not None
            and self.venue.has_coordinates
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'start': self.start.isoformat() if self.start else None,
            'end': self.end.isoformat() if self.end else None,
            'venue': self.venue.to_dict() if self.venue else None,
            'source': self.source,
            'genres': list(self.genres),
            'url': self.url
        }


@dataclass
class EventSignature:
    """Comparison key for an event kept by the duplicate filter."""
    name: str
    normalized_name: str
    venue_name: str
    venue_lat: float
    venue_lon: float
    start_time: datetime


@dataclass
class Conflict:
    """Two events that cannot both be attended."""
    events: List[Event]
    conflict_type: str
    time_slot: str
    severity: str
    shared_genres: List[str] = field(default_factory=list)

    @property
    def direct_competition(self) -> bool:
        return bool(self.shared_genres)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'events': [event.to_dict() for event in self.events],
            'conflictType': self.conflict_type,
            'timeSlot': self.time_slot,
            'severity': self.severity,
            'sharedGenres': list(self.shared_genres),
            'directCompetition': self.direct_competition
        }


@dataclass
class DetectionResult:
    """Result of a conflict detection run."""
    conflicts: List[Conflict]
    total_events: int
    unique_events: int
    time_buffer: int
    venue_proximity_threshold: float
    threshold_mode: str

    @property
    def duplicates_filtered(self) -> int:
        return self.total_events - self.unique_events

    @property
    def conflict_count(self) -> int:
        return len(self.conflicts)

    @property
    def conflict_rate(self) -> str:
        if self.unique_events == 0:
            return '0.0%'
        return f"{self.conflict_count / self.unique_events * 100:.1f}%"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'conflicts': [conflict.to_dict() for conflict in self.conflicts],
            'totalEvents': self.total_events,
            'uniqueEvents': self.unique_events,
            'duplicatesFiltered': self.duplicates_filtered,
            'conflictCount': self.conflict_count,
            'timeBuffer': self.time_buffer,
            'venueProximityThreshold': self.venue_proximity_threshold,
            'thresholdMode': self.threshold_mode
        }
