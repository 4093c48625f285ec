"""Tunable values for duplicate filtering and conflict matching."""
from datetime import timedelta

# Duration assumed for a kept event when only its start time is known
DEFAULT_EVENT_DURATION = timedelta(hours=2)

# Duplicate filter
DUPLICATE_TIME_WINDOW = timedelta(minutes=5)
SAME_SPOT_DISTANCE_KM = 0.05
NEARBY_DISTANCE_KM = 0.10
SAME_SPOT_NAME_SIMILARITY = 0.85
OVERLAP_NAME_SIMILARITY = 0.80

# Proximity threshold estimator
BASE_THRESHOLD_KM = 0.3
DENSITY_SAMPLE_SIZE = 200
DENSITY_RADIUS_KM = 1.0
DENSE_MEDIAN_KM = 0.2
MEDIUM_MEDIAN_KM = 0.5
DENSE_THRESHOLD_KM = 0.15
MEDIUM_THRESHOLD_KM = 0.2

# Conflict matcher
DEFAULT_TIME_BUFFER_MINUTES = 30
DISSIMILAR_VENUE_SIMILARITY = 0.3
DISSIMILAR_VENUE_THRESHOLD_KM = 0.1

# Classifier
SAME_VENUE_DISTANCE_KM = 0.05
SAME_VENUE_NAME_SIMILARITY = 0.7
HIGH_SEVERITY_PERCENT = 50
MEDIUM_SEVERITY_PERCENT = 25
