"""Great-circle distance between venues."""
import math
from typing import Optional

from processor.models import Venue

EARTH_RADIUS_KM = 6371


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in kilometers between two coordinates."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def venue_distance(venue1: Optional[Venue], venue2: Optional[Venue]) -> float:
    """
    Distance between two venues in kilometers.

    Returns infinity when either venue lacks usable coordinates, so any
    "closer than" comparison fails.
    """
    if not venue1 or not venue2:
        return math.inf
    if not venue1.has_coordinates or not venue2.has_coordinates:
        return math.inf

    return haversine_km(venue1.lat, venue1.lon, venue2.lat, venue2.lon)
