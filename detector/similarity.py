"""String similarity helpers for event and venue names."""
import re
from typing import Optional

from processor.models import Venue

_TRAILING_PARENS = re.compile(r'\s*\([^)]*\)\s*$')
_EVENT_LOCATION_SUFFIX = re.compile(
    r'\s*-\s*(ny|new york|nyc|manhattan|brooklyn|queens|bronx)\s*$',
    re.IGNORECASE
)
_VENUE_SUFFIX = re.compile(
    r'\s*-\s*(ny|new york|nyc|theater|theatre|hall|center|centre)\s*$',
    re.IGNORECASE
)


def levenshtein_distance(str1: str, str2: str) -> int:
    """
    Compute the edit distance between two strings.

    Args:
        str1: First string
        str2: Second string

    Returns:
        Minimum number of single-character insertions, deletions and
        substitutions turning str1 into str2
    """
    previous = list(range(len(str2) + 1))

    for i, char1 in enumerate(str1, start=1):
        current = [i]
        for j, char2 in enumerate(str2, start=1):
            if char1 == char2:
                current.append(previous[j - 1])
            else:
                current.append(min(
                    previous[j - 1] + 1,  # substitution
                    current[j - 1] + 1,   # insertion
                    previous[j] + 1       # deletion
                ))
        previous = current

    return previous[-1]


def name_similarity(str1: str, str2: str) -> float:
    """
    Similarity between two strings on a 0..1 scale.

    Args:
        str1: First string
        str2: Second string

    Returns:
        1.0 for identical strings, 0.0 if either is empty or one is more
        than twice as long as the other, otherwise
        1 - levenshtein / max length
    """
    if not str1 or not str2:
        return 0.0
    if str1 == str2:
        return 1.0

    longer = max(len(str1), len(str2))
    shorter = min(len(str1), len(str2))
    if longer / shorter > 2:
        return 0.0

    return 1 - levenshtein_distance(str1, str2) / longer


def normalize_event_name(name: Optional[str]) -> str:
    """Lowercase an event name and strip trailing location qualifiers."""
    if not name:
        return ''

    normalized = name.lower().strip()
    normalized = _TRAILING_PARENS.sub('', normalized)
    normalized = _EVENT_LOCATION_SUFFIX.sub('', normalized)
    return normalized.strip()


def normalize_venue_name(name: str) -> str:
    """Strip trailing city and building-type qualifiers from a venue name."""
    normalized = _VENUE_SUFFIX.sub('', name)
    normalized = _TRAILING_PARENS.sub('', normalized)
    return normalized.strip()


def venue_name_similarity(venue1: Optional[Venue], venue2: Optional[Venue]) -> float:
    """Case-insensitive similarity of two venue names after normalization."""
    if not venue1 or not venue2 or not venue1.name or not venue2.name:
        return 0.0

    name1 = venue1.name.lower().strip()
    name2 = venue2.name.lower().strip()
    if name1 == name2:
        return 1.0

    norm1 = normalize_venue_name(name1)
    norm2 = normalize_venue_name(name2)
    if norm1 == norm2:
        return 1.0

    return name_similarity(norm1, norm2)
