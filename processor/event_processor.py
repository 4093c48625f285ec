"""Event processor for converting raw event payloads into Event objects."""
import hashlib
import logging
import math
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, List, Optional

from processor.models import Event, Venue

logger = logging.getLogger(__name__)


class EventProcessor:
    """Processor for normalizing raw event dicts from clients and sources."""

    MAX_NAME_LENGTH = 200
    UNTITLED = 'Untitled Event'

    def process_events(self, raw_events: List[Dict[str, Any]]) -> List[Event]:
        """
        Convert raw event dicts into Event objects.

        Events missing timestamps or coordinates are converted as-is; the
        conflict detector leaves them out of matching.

        Args:
            raw_events: List of event dicts in the common event shape

        Returns:
            List of Event objects

        Raises:
            ValueError: If a timestamp is present but cannot be parsed
        """
        processed_events = []

        for raw_event in raw_events:
            if not isinstance(raw_event, dict):
                logger.warning(
                    f"Skipping event of unexpected type: {type(raw_event).__name__}"
                )
                continue
            processed_events.append(self._process_single_event(raw_event))

        logger.info(
            f"Processed {len(processed_events)} events out of "
            f"{len(raw_events)} total events"
        )
        return processed_events

    def _process_single_event(self, raw_event: Dict[str, Any]) -> Event:
        """
        Process a single event.

        Args:
            raw_event: Raw event dict

        Returns:
            Event object
        """
        name = str(raw_event.get('name') or self.UNTITLED)[:self.MAX_NAME_LENGTH]
        start = self.parse_timestamp(raw_event.get('start'))
        end = self.parse_timestamp(raw_event.get('end'))
        venue = self._process_venue(raw_event.get('venue'))

        event_id = raw_event.get('id')
        if event_id is None or event_id == '':
            event_id = self.generate_event_id(
                name=name,
                start=start.isoformat() if start else '',
                venue_name=venue.name if venue else ''
            )

        return Event(
            id=str(event_id),
            name=name,
            start=start,
            end=end,
            venue=venue,
            source=str(raw_event.get('source') or ''),
            genres=self._normalize_genres(raw_event.get('genres')),
            url=raw_event.get('url')
        )

    def _process_venue(self, raw_venue: Any) -> Optional[Venue]:
        """
        Convert a raw venue dict, coercing coordinates to floats.

        Args:
            raw_venue: Venue dict with name, lat and lon

        Returns:
            Venue object or None if no venue was given
        """
        if not isinstance(raw_venue, dict):
            return None

        return Venue(
            name=str(raw_venue.get('name') or ''),
            lat=self._parse_coordinate(raw_venue.get('lat')),
            lon=self._parse_coordinate(raw_venue.get('lon')),
            address=str(raw_venue.get('address') or '')
        )

    def _parse_coordinate(self, value: Any) -> Optional[float]:
        if value is None or value == '' or isinstance(value, bool):
            return None
        try:
            coordinate = float(value)
        except (TypeError, ValueError):
            return None
        return coordinate if math.isfinite(coordinate) else None

    def parse_timestamp(
        self,
        value: Any,
        default_tz: Optional[tzinfo] = None
    ) -> Optional[datetime]:
        """
        Parse an ISO 8601 timestamp into a timezone-aware datetime.

        Args:
            value: ISO 8601 string, date-only string or datetime
            default_tz: Zone for values without an offset (default: UTC)

        Returns:
            Aware datetime, or None if the value is missing

        Raises:
            ValueError: If the value is present but not a valid timestamp
        """
        if value is None or value == '':
            return None

        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, str):
            text = value.strip()
            if text.endswith(('Z', 'z')):
                text = text[:-1] + '+00:00'
            parsed = datetime.fromisoformat(text)
        else:
            raise ValueError(f"Invalid timestamp: {value!r}")

        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=default_tz or timezone.utc)
        return parsed

    def _normalize_genres(self, raw_genres: Any) -> List[str]:
        """Lowercase genre tags, collapse whitespace and drop repeats."""
        if not isinstance(raw_genres, (list, tuple)):
            return []

        genres = []
        for genre in raw_genres:
            if not isinstance(genre, str):
                continue
            normalized = ' '.join(genre.lower().split())
            if normalized and normalized not in genres:
                genres.append(normalized)
        return genres

    def generate_event_id(self, name: str, start: str, venue_name: str) -> str:
        """
        Generate identifier for an event without one, from name + start + venue.

        Args:
            name: Event name
            start: Start timestamp (ISO 8601) or empty string
            venue_name: Venue name

        Returns:
            Event ID (SHA256 hash)
        """
        composite = f"{name}|{start}|{venue_name}"

        hash_obj = hashlib.sha256(composite.encode('utf-8'))
        return hash_obj.hexdigest()
