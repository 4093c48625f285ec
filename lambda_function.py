"""AWS Lambda handler for the event conflict detection API."""
import json
import logging
import os
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from detector.conflict_detector import detect_conflicts
from processor.event_processor import EventProcessor
from sources.bandsintown import BandsintownSource
from sources.ticketmaster import TicketmasterSource


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


logger = logging.getLogger(__name__)


class RequestValidationError(ValueError):
    """Client input that cannot be processed."""

    def __init__(self, error: str, message: str):
        super().__init__(message)
        self.error = error
        self.message = message


def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'statusCode': status_code,
        'headers': {'Content-Type': 'application/json'},
        'body': json.dumps(body)
    }


def _analyzed_at() -> str:
    return datetime.now(timezone.utc).isoformat()


def _env_flag(name: str, default: bool = True) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() != 'false'


def parse_time_buffer(value: Any, default: int) -> int:
    """
    Validate the time buffer parameter.

    Args:
        value: Raw value from the body or query string
        default: Value used when the parameter is absent

    Returns:
        Time buffer in minutes

    Raises:
        RequestValidationError: If the value is not a non-negative integer
    """
    if value is None or value == '':
        return default

    try:
        buffer = int(value)
    except (TypeError, ValueError):
        buffer = -1
    if isinstance(value, bool) or buffer < 0:
        raise RequestValidationError(
            'Invalid time buffer',
            'Time buffer must be a non-negative number (in minutes)'
        )
    return buffer


def parse_proximity_threshold(value: Any) -> Optional[float]:
    """
    Validate the venue proximity threshold parameter.

    Args:
        value: Raw value from the body or query string

    Returns:
        Threshold in kilometers, or None for a density-based threshold

    Raises:
        RequestValidationError: If the value is not a non-negative number
    """
    if value is None or value == '':
        return None

    try:
        threshold = float(value)
    except (TypeError, ValueError):
        threshold = -1.0
    if isinstance(value, bool) or not threshold >= 0:
        raise RequestValidationError(
            'Invalid venue proximity threshold',
            'Venue proximity threshold must be a non-negative number (in kilometers)'
        )
    return threshold


def parse_timezone(value: Any, default: Optional[str]) -> Optional[str]:
    """
    Validate the timezone parameter.

    Args:
        value: IANA zone name from the query string
        default: Zone used when the parameter is absent

    Returns:
        Zone name, or None to read source times as UTC

    Raises:
        RequestValidationError: If the zone is unknown
    """
    if value is None or value == '':
        return default

    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        raise RequestValidationError(
            'Invalid timezone',
            'Timezone must be an IANA zone name such as America/New_York'
        )
    return value


def _parse_coordinate(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise RequestValidationError(
            'Invalid coordinates',
            'Latitude and longitude must be valid numbers'
        )


def handle_detect(request: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
    """
    POST /conflicts/detect: find conflicts among events supplied by the client.

    Args:
        request: API Gateway proxy event
        config: Settings read from the environment

    Returns:
        API Gateway proxy response
    """
    try:
        body = json.loads(request.get('body') or '{}')
    except json.JSONDecodeError:
        body = None

    raw_events = body.get('events') if isinstance(body, dict) else None
    if not isinstance(raw_events, list):
        raise RequestValidationError(
            'Invalid request',
            'Valid events array is required'
        )

    time_buffer = parse_time_buffer(body.get('timeBuffer'), config['default_time_buffer'])
    threshold = parse_proximity_threshold(body.get('venueProximityThreshold'))

    events = EventProcessor().process_events(raw_events)
    result = detect_conflicts(
        events,
        time_buffer=time_buffer,
        venue_proximity_threshold=threshold,
        assumed_duration=config['default_event_duration']
    )

    payload = result.to_dict()
    payload['analyzedAt'] = _analyzed_at()
    return _response(200, payload)


def _fetch_source(source: Any, lat: float, lon: float, radius: float) -> List[Dict[str, Any]]:
    """Fetch events from one source; a failing source yields no events."""
    try:
        return source.fetch_events(lat, lon, radius)
    except Exception as e:
        logger.warning(
            f"Failed to fetch events from {source.SOURCE}: {str(e)}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        return []


def handle_location(request: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
    """
    GET /conflicts/location: fetch events near a point and find conflicts.

    Args:
        request: API Gateway proxy event
        config: Settings read from the environment

    Returns:
        API Gateway proxy response
    """
    params = request.get('queryStringParameters') or {}

    if not params.get('lat') or not params.get('lon'):
        raise RequestValidationError(
            'Latitude and longitude are required',
            'Please provide lat and lon query parameters'
        )

    lat = _parse_coordinate(params['lat'])
    lon = _parse_coordinate(params['lon'])
    radius = _parse_coordinate(params.get('radius') or 10)
    time_buffer = parse_time_buffer(params.get('timeBuffer'), config['default_time_buffer'])
    threshold = parse_proximity_threshold(params.get('venueProximityThreshold'))
    venue_timezone = parse_timezone(params.get('timezone'), config['bandsintown_timezone'])

    ticketmaster = TicketmasterSource(
        api_key=config['ticketmaster_api_key'],
        timeout=config['timeout_seconds'],
        enabled=config['ticketmaster_enabled'],
        default_duration=config['default_event_duration']
    )
    bandsintown = BandsintownSource(
        app_id=config['bandsintown_app_id'],
        artists=config['bandsintown_artists'],
        timeout=config['timeout_seconds'],
        enabled=config['bandsintown_enabled'],
        default_duration=config['default_event_duration'],
        venue_timezone=venue_timezone
    )

    ticketmaster_events = _fetch_source(ticketmaster, lat, lon, radius)
    bandsintown_events = _fetch_source(bandsintown, lat, lon, radius)

    events = EventProcessor().process_events(ticketmaster_events + bandsintown_events)
    result = detect_conflicts(
        events,
        time_buffer=time_buffer,
        venue_proximity_threshold=threshold,
        assumed_duration=config['default_event_duration']
    )

    return _response(200, {
        'location': {'lat': lat, 'lon': lon, 'radius': radius},
        'conflicts': [conflict.to_dict() for conflict in result.conflicts],
        'summary': {
            'totalEvents': result.total_events,
            'uniqueEvents': result.unique_events,
            'duplicatesFiltered': result.duplicates_filtered,
            'conflictCount': result.conflict_count,
            'conflictRate': result.conflict_rate,
            'sources': {
                'ticketmaster': len(ticketmaster_events),
                'bandsintown': len(bandsintown_events)
            }
        },
        'analyzedAt': _analyzed_at(),
        'timeBuffer': result.time_buffer,
        'venueProximityThreshold': result.venue_proximity_threshold,
        'thresholdMode': result.threshold_mode
    })


ROUTES = {
    ('POST', '/conflicts/detect'): handle_detect,
    ('GET', '/conflicts/location'): handle_location,
}


def _resolve_route(request: Dict[str, Any]):
    method = (request.get('httpMethod') or '').upper()
    path = (request.get('path') or '').rstrip('/')
    for (route_method, route_path), route_handler in ROUTES.items():
        if method == route_method and path.endswith(route_path):
            return route_handler
    return None


def load_config() -> Dict[str, Any]:
    """Read handler settings from environment variables."""
    artists = os.environ.get('BANDSINTOWN_ARTISTS', '')
    return {
        'log_level': os.environ.get('LOG_LEVEL', 'INFO'),
        'default_time_buffer': int(os.environ.get('DEFAULT_TIME_BUFFER', '30')),
        'default_event_duration': timedelta(
            minutes=int(os.environ.get('DEFAULT_EVENT_DURATION_MINUTES', '120'))
        ),
        'timeout_seconds': int(os.environ.get('TIMEOUT_SECONDS', '10')),
        'ticketmaster_api_key': os.environ.get('TICKETMASTER_API_KEY'),
        'ticketmaster_enabled': _env_flag('TICKETMASTER_ENABLED'),
        'bandsintown_app_id': os.environ.get('BANDSINTOWN_APP_ID', 'EventConflictFinder'),
        'bandsintown_enabled': _env_flag('BANDSINTOWN_ENABLED'),
        'bandsintown_timezone': os.environ.get('BANDSINTOWN_TIMEZONE') or None,
        'bandsintown_artists': [a.strip() for a in artists.split(',') if a.strip()] or None
    }


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler function for conflict detection requests.

    Args:
        event: API Gateway proxy event
        context: Lambda context object

    Returns:
        API Gateway proxy response
    """
    config = load_config()

    setup_logging(config['log_level'])

    start_time = time.time()
    method = event.get('httpMethod')
    path = event.get('path')
    logger.info(
        f"Request started: {method} {path}",
        extra={'method': method, 'path': path}
    )

    route_handler = _resolve_route(event)
    if route_handler is None:
        return _response(404, {
            'error': 'Not found',
            'message': f"No route for {method} {path}"
        })

    try:
        response = route_handler(event, config)

    except RequestValidationError as e:
        logger.warning(f"Rejected request: {e.message}")
        return _response(400, {'error': e.error, 'message': e.message})

    except Exception as e:
        duration = time.time() - start_time
        logger.error(
            f"Request failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )
        return _response(500, {
            'error': 'Internal server error',
            'message': 'Failed to detect conflicts. Please try again later.',
            'error_type': type(e).__name__,
            'duration_seconds': round(duration, 2)
        })

    duration = time.time() - start_time
    logger.info(
        f"Request completed successfully",
        extra={
            'duration_seconds': round(duration, 2),
            'status_code': response['statusCode']
        }
    )
    return response
