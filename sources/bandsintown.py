"""Bandsintown API adapter."""
import logging
import math
from datetime import timedelta
from typing import Any, Dict, List, Optional
from urllib.parse import quote
from zoneinfo import ZoneInfo

import requests

from detector.constants import DEFAULT_EVENT_DURATION
from detector.geo import haversine_km
from processor.event_processor import EventProcessor
from sources.http import get_json_with_retry

logger = logging.getLogger(__name__)

KM_PER_MILE = 1.60934
KM_PER_DEGREE = 111


class BandsintownSource:
    """
    Fetches upcoming concerts near a location from Bandsintown.

    Bandsintown only searches by artist, so events for a fixed list of
    artists are fetched and then filtered to the search radius.

    Bandsintown times carry no offset and are local to the venue. They are
    read in venue_timezone when one is given, otherwise as UTC.
    """

    BASE_URL = "https://rest.bandsintown.com"
    SOURCE = 'bandsintown'
    DEFAULT_ARTISTS = [
        'Taylor Swift', 'The Weeknd', 'Bad Bunny', 'Drake', 'Harry Styles',
        'Ed Sheeran', 'Billie Eilish', 'Post Malone', 'Ariana Grande', 'Dua Lipa'
    ]

    def __init__(
        self,
        app_id: str = 'EventConflictFinder',
        artists: Optional[List[str]] = None,
        timeout: int = 10,
        enabled: bool = True,
        default_duration: timedelta = DEFAULT_EVENT_DURATION,
        venue_timezone: Optional[str] = None
    ):
        self.app_id = app_id
        self.artists = artists or list(self.DEFAULT_ARTISTS)
        self.timeout = timeout
        self.enabled = enabled
        self.default_duration = default_duration
        self.venue_timezone = ZoneInfo(venue_timezone) if venue_timezone else None
        self._processor = EventProcessor()

    def fetch_events(self, lat: float, lon: float, radius: float = 10) -> List[Dict[str, Any]]:
        """
        Fetch events within a radius of a coordinate.

        Args:
            lat: Latitude of the search center
            lon: Longitude of the search center
            radius: Search radius in miles

        Returns:
            List of event dicts in the common event shape, unique by id
        """
        if not self.enabled:
            logger.info("Bandsintown source is disabled, skipping")
            return []

        radius_km = radius * KM_PER_MILE
        lat_buffer = radius_km / KM_PER_DEGREE
        lon_buffer = radius_km / (KM_PER_DEGREE * math.cos(math.radians(lat)))

        events = []
        seen_ids = set()
        for artist in self.artists:
            try:
                raw_events = self.fetch_artist_events(artist)
            except requests.RequestException as e:
                logger.warning(f"Failed to fetch Bandsintown events for {artist}: {e}")
                continue

            for raw_event in raw_events:
                try:
                    event = self.transform_event(raw_event, artist)
                except ValueError as e:
                    logger.warning(
                        f"Failed to process Bandsintown event "
                        f"'{raw_event.get('id')}' for {artist}: {e}"
                    )
                    continue
                if not event or event['id'] in seen_ids:
                    continue

                event_lat = event['venue']['lat']
                event_lon = event['venue']['lon']
                # Cheap bounding box check before the exact distance
                if abs(event_lat - lat) > lat_buffer or abs(event_lon - lon) > lon_buffer:
                    continue
                if haversine_km(lat, lon, event_lat, event_lon) > radius_km:
                    continue

                seen_ids.add(event['id'])
                events.append(event)

        logger.info(
            f"Fetched {len(events)} Bandsintown events for "
            f"{len(self.artists)} artists"
        )
        return events

    def fetch_artist_events(self, artist: str) -> List[Dict[str, Any]]:
        """
        Fetch upcoming events for one artist.

        Args:
            artist: Artist name

        Returns:
            Raw event dicts; empty if the artist is unknown
        """
        data = get_json_with_retry(
            f"{self.BASE_URL}/artists/{quote(artist, safe='')}/events",
            params={'app_id': self.app_id, 'date': 'upcoming'},
            timeout=self.timeout,
            allow_not_found=True
        )
        if not isinstance(data, list):
            return []
        return data

    def transform_event(
        self,
        event_data: Dict[str, Any],
        artist_name: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Convert a Bandsintown event into the common event shape.

        Args:
            event_data: Event object from the API response
            artist_name: Artist the event was fetched for

        Returns:
            Event dict, or None without a start time or venue coordinates

        Raises:
            ValueError: If the start time cannot be parsed
        """
        venue = event_data.get('venue') or {}
        start = event_data.get('datetime') or event_data.get('date')
        lat = self._to_float(venue.get('latitude') or venue.get('lat'))
        lon = self._to_float(venue.get('longitude') or venue.get('lng') or venue.get('lon'))
        if not start or lat is None or lon is None:
            return None

        start_time = self._processor.parse_timestamp(start, default_tz=self.venue_timezone)

        lineup = event_data.get('lineup') or []
        if lineup:
            name = ', '.join(lineup)
        else:
            name = artist_name or (event_data.get('artist') or {}).get('name') or 'Untitled Event'

        event_id = event_data.get('id') or f"{venue.get('name')}_{start}"

        return {
            'id': f"bit_{event_id}",
            'name': name,
            'start': start_time.isoformat(),
            'end': (start_time + self.default_duration).isoformat(),
            'venue': {
                'name': venue.get('name') or 'Unknown Venue',
                'lat': lat,
                'lon': lon,
                'address': venue.get('location') or venue.get('city') or ''
            },
            'source': self.SOURCE,
            'genres': self.extract_genres(event_data),
            'url': (
                event_data.get('url')
                or event_data.get('facebook_rsvp_url')
                or f"https://www.bandsintown.com/e/{event_data.get('id')}"
            )
        }

    def extract_genres(self, event_data: Dict[str, Any]) -> List[str]:
        """Collect genre tags from the event, artist and lineup size."""
        candidates = []
        if isinstance(event_data.get('genres'), list):
            candidates.extend(event_data['genres'])
        if event_data.get('genre'):
            candidates.append(event_data['genre'])
        if event_data.get('type'):
            candidates.append(event_data['type'])
        if (event_data.get('artist') or {}).get('genre'):
            candidates.append(event_data['artist']['genre'])

        lineup = event_data.get('lineup')
        if isinstance(lineup, list) and lineup:
            candidates.append('music')
            if len(lineup) >= 4:
                candidates.append('festival')

        tags = []
        for candidate in candidates:
            if not isinstance(candidate, str):
                continue
            normalized = ' '.join(candidate.lower().split())
            if normalized and normalized not in tags:
                tags.append(normalized)

        return tags or ['music']

    def _to_float(self, value: Any) -> Optional[float]:
        try:
            return float(value)
        except (TypeError, ValueError):
            return None
