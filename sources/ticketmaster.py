"""Ticketmaster Discovery API adapter."""
import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from detector.constants import DEFAULT_EVENT_DURATION
from processor.event_processor import EventProcessor
from sources.http import get_json_with_retry

logger = logging.getLogger(__name__)


class TicketmasterSource:
    """Fetches events near a location from Ticketmaster."""

    BASE_URL = "https://app.ticketmaster.com/discovery/v2"
    SOURCE = 'ticketmaster'
    CLASSIFICATIONS = 'music,sports,arts,theater,comedy,family'

    def __init__(
        self,
        api_key: Optional[str],
        timeout: int = 10,
        enabled: bool = True,
        default_duration: timedelta = DEFAULT_EVENT_DURATION
    ):
        """
        Initialize the Ticketmaster adapter.

        Args:
            api_key: Discovery API key
            timeout: HTTP request timeout in seconds (default: 10)
            enabled: Whether the source is queried at all
            default_duration: Duration used when an event has no end time
        """
        self.api_key = api_key
        self.timeout = timeout
        self.enabled = enabled
        self.default_duration = default_duration
        self._processor = EventProcessor()

    def fetch_events(self, lat: float, lon: float, radius: float = 10) -> List[Dict[str, Any]]:
        """
        Fetch events around a coordinate.

        Args:
            lat: Latitude of the search center
            lon: Longitude of the search center
            radius: Search radius in miles

        Returns:
            List of event dicts in the common event shape
        """
        if not self.enabled:
            logger.info("Ticketmaster source is disabled, skipping")
            return []

        if not self.api_key:
            logger.warning("Ticketmaster API key not configured, skipping")
            return []

        params = {
            'apikey': self.api_key,
            'latlong': f"{lat},{lon}",
            'radius': str(radius),
            'size': str(min(200, max(50, round(radius * 2)))),
            'sort': 'date,asc',
            'classificationName': self.CLASSIFICATIONS
        }
        data = get_json_with_retry(
            f"{self.BASE_URL}/events.json",
            params=params,
            timeout=self.timeout
        )

        raw_events = ((data or {}).get('_embedded') or {}).get('events') or []
        events = []
        for raw_event in raw_events:
            try:
                event = self.transform_event(raw_event)
            except ValueError as e:
                logger.warning(
                    f"Failed to process Ticketmaster event '{raw_event.get('id')}': {e}"
                )
                continue
            if event:
                events.append(event)

        logger.info(f"Fetched {len(events)} Ticketmaster events")
        return events

    def transform_event(self, event_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Convert a Discovery API event into the common event shape.

        Args:
            event_data: Event object from the API response

        Returns:
            Event dict, or None if the event has no public URL, no
            start time or no venue coordinates

        Raises:
            ValueError: If the start time cannot be parsed
        """
        url = self.get_public_event_url(event_data)
        if not url:
            return None

        venues = (event_data.get('_embedded') or {}).get('venues') or [{}]
        venue = venues[0] or {}
        location = venue.get('location') or {}
        dates = event_data.get('dates') or {}
        start_info = dates.get('start') or {}
        end_info = dates.get('end') or {}

        start = start_info.get('dateTime') or start_info.get('localDate')
        end = end_info.get('dateTime') or end_info.get('localDate')
        lat = location.get('latitude') or venue.get('latitude')
        lon = location.get('longitude') or venue.get('longitude')
        if not start or not lat or not lon:
            return None

        start_time = self._processor.parse_timestamp(start)
        if end:
            self._processor.parse_timestamp(end)
        elif start_info.get('dateTime'):
            end = (start_time + self.default_duration).isoformat()

        address = venue.get('address')
        if isinstance(address, dict):
            address = address.get('line1', '')

        return {
            'id': f"tm_{event_data.get('id')}",
            'name': event_data.get('name') or 'Untitled Event',
            'start': start,
            'end': end or start,
            'venue': {
                'name': venue.get('name') or 'Unknown Venue',
                'lat': lat,
                'lon': lon,
                'address': address or ''
            },
            'source': self.SOURCE,
            'genres': self._extract_genres(event_data),
            'url': url
        }

    def get_public_event_url(self, event_data: Dict[str, Any]) -> Optional[str]:
        candidates = [
            event_data.get('url'),
            ((event_data.get('_links') or {}).get('web') or {}).get('href')
        ]
        for candidate in candidates:
            if not isinstance(candidate, str):
                continue
            candidate = candidate.strip()
            if candidate.lower().startswith(('http://', 'https://')) and 'ticketmaster' in candidate:
                return candidate
        return None

    def _extract_genres(self, event_data: Dict[str, Any]) -> List[str]:
        genres = []
        for classification in event_data.get('classifications') or []:
            for key in ('segment', 'genre', 'subGenre'):
                name = (classification.get(key) or {}).get('name')
                if name and name != 'Undefined':
                    genres.append(name)
        return genres
