"""Unit tests for pairwise conflict matching."""
from datetime import timedelta

import pytest

from conftest import at, north_of
from detector.conflict_detector import (
    check_time_overlap,
    detect_conflicts,
    find_conflicts,
    pair_key,
)

# Madison Square Garden
GARDEN_LAT = 40.7505
GARDEN_LON = -73.9934


@pytest.fixture
def jazz_events(make_event):
    """Two overlapping jazz listings at the same venue from different sources."""
    return [
        make_event('tm_jazz', name='Jazz Concert', start=at(20), end=at(22), source='ticketmaster'),
        make_event('bit_jazz', name='Jazz Night', start=at(20, 30), end=at(22, 30), source='bandsintown'),
    ]


def conflict_pairs(conflicts):
    return {frozenset(event.id for event in conflict.events) for conflict in conflicts}


class TestFindConflicts:
    """Test cases for find_conflicts."""

    def test_same_venue_overlap(self, jazz_events):
        """Test that overlapping listings at one venue produce one conflict."""
        conflicts = find_conflicts(jazz_events, time_buffer=30)

        assert len(conflicts) == 1
        conflict = conflicts[0]
        assert [event.id for event in conflict.events] == ['tm_jazz', 'bit_jazz']
        assert conflict.conflict_type == 'cross_platform_duplicate'
        assert conflict.severity == 'medium'
        assert conflict.time_slot == 'Mon, Jan 15, 08:00 PM'

    def test_ids_with_underscores_all_pairs_reported(self, make_event):
        """Test that every pair is reported when ids share underscore-joined text."""
        events = [make_event(event_id) for event_id in ('a_b', 'c', 'a', 'b_c')]

        conflicts = find_conflicts(
            events, venue_proximity_threshold=0.3, skip_duplicate_filter=True
        )

        assert len(conflicts) == 6
        assert frozenset({'a', 'b_c'}) in conflict_pairs(conflicts)
        assert frozenset({'a_b', 'c'}) in conflict_pairs(conflicts)

    def test_same_venue_same_source(self, make_event):
        events = [
            make_event('1', name='Jazz Concert'),
            make_event('2', name='Jazz Night', start=at(20, 30), end=at(22, 30)),
        ]

        conflicts = find_conflicts(events)

        assert len(conflicts) == 1
        assert conflicts[0].conflict_type == 'same_venue_conflict'

    def test_no_time_overlap(self, make_event, jazz_events):
        """Test that a late show at the Garden conflicts with nothing."""
        garden = make_event(
            'garden', name='Knicks vs Celtics', venue_name='Madison Square Garden',
            lat=GARDEN_LAT, lon=GARDEN_LON,
            start=at(23), end=at(1, day=16)
        )

        conflicts = find_conflicts(jazz_events + [garden], time_buffer=30)

        assert all('garden' not in pair for pair in conflict_pairs(conflicts))
        assert len(conflicts) == 1

    def test_distant_venues_sparse_area(self, make_event):
        """Test that venues 2 km apart do not conflict under the dynamic threshold."""
        events = [
            make_event('1', venue_name='Blue Note Jazz Club'),
            make_event('2', venue_name='Blue Note Jazz Bar', lat=north_of(2)),
        ]

        assert find_conflicts(events) == []

    def test_manual_threshold_overrides_dynamic(self, make_event):
        events = [
            make_event('1', venue_name='Blue Note Jazz Club'),
            make_event('2', venue_name='Blue Note Jazz Bar', lat=north_of(2)),
        ]

        conflicts = find_conflicts(events, venue_proximity_threshold=3.0)

        assert len(conflicts) == 1
        assert conflicts[0].conflict_type == 'time_venue_conflict'

    def test_dissimilar_venue_names_beyond_100m(self, make_event):
        """Test that differently named venues 120m apart do not conflict."""
        events = [
            make_event('1', venue_name='Blue Note'),
            make_event(
                '2', name='Late Night Comedy', venue_name='The Village Vanguard Jazz Club',
                lat=north_of(0.12)
            ),
        ]

        assert find_conflicts(events) == []
        assert find_conflicts(events, venue_proximity_threshold=0.3) == []

    def test_dissimilar_venue_names_within_100m(self, make_event):
        """Test that differently named venues 80m apart still conflict."""
        events = [
            make_event('1', venue_name='Blue Note'),
            make_event(
                '2', name='Late Night Comedy', venue_name='The Village Vanguard Jazz Club',
                lat=north_of(0.08)
            ),
        ]

        conflicts = find_conflicts(events)

        assert len(conflicts) == 1
        assert conflicts[0].conflict_type == 'time_venue_conflict'

    def test_time_buffer_widens_overlap(self, make_event):
        """Test that a 20 minute gap conflicts only with a large enough buffer."""
        events = [
            make_event('1', name='Early Set', start=at(20), end=at(22)),
            make_event('2', name='Late Set', start=at(22, 20), end=at(23, 30)),
        ]

        assert len(find_conflicts(events, time_buffer=30)) == 1
        assert find_conflicts(events, time_buffer=10) == []

    def test_duplicates_filtered_before_matching(self, make_event):
        events = [
            make_event('tm_1', name='Hamilton', venue_name='Richard Rodgers'),
            make_event('bit_1', name='Hamilton (NY)', venue_name='Richard Rodgers', source='bandsintown'),
        ]

        assert find_conflicts(events) == []
        assert len(find_conflicts(events, skip_duplicate_filter=True)) == 1

    def test_symmetric_in_input_order(self, make_event, jazz_events):
        events = jazz_events + [
            make_event('3', name='Poetry Slam', venue_name='Cafe Wha', lat=north_of(0.06)),
            make_event('4', name='Open Mic', venue_name='Cafe Wha', lat=north_of(0.06), start=at(21)),
            make_event('5', name='Matinee', start=at(14), end=at(16)),
        ]

        forward = conflict_pairs(find_conflicts(events))
        backward = conflict_pairs(find_conflicts(list(reversed(events))))

        assert forward == backward
        assert len(forward) > 1

    def test_no_self_conflict_and_unique_pairs(self, make_event):
        """Test that repeated ids never pair with themselves or repeat a pair."""
        first = make_event('a', name='Jazz Concert')
        other = make_event('b', name='Blues Night')
        repeat = make_event('a', name='Jazz Concert (NY)')

        conflicts = find_conflicts([first, other, repeat], skip_duplicate_filter=True)

        assert len(conflicts) == 1
        for conflict in conflicts:
            assert len(conflict.events) == 2
            assert conflict.events[0].id != conflict.events[1].id

    def test_event_in_several_conflicts(self, make_event):
        """Test that one event yields a separate record per conflicting event."""
        events = [
            make_event('main', name='Headliner', start=at(19), end=at(23)),
            make_event('x', name='Opening Act', start=at(19), end=at(20)),
            make_event('y', name='Late Show', start=at(22), end=at(23, 59)),
        ]

        conflicts = find_conflicts(events)

        assert conflict_pairs(conflicts) == {
            frozenset({'main', 'x'}),
            frozenset({'main', 'y'}),
        }

    def test_incomplete_events_never_conflict(self, make_event, jazz_events):
        missing_lat = make_event('no_lat', name='Mystery Gig', lat=None)

        conflicts = find_conflicts(jazz_events + [missing_lat], skip_duplicate_filter=True)

        assert all('no_lat' not in pair for pair in conflict_pairs(conflicts))

    def test_shared_genres_annotated(self, make_event):
        events = [
            make_event('1', name='Rock Show', genres=['rock', 'indie']),
            make_event('2', name='Folk Night', genres=['folk', 'indie']),
        ]

        conflict = find_conflicts(events)[0]

        assert conflict.shared_genres == ['indie']
        assert conflict.direct_competition


class TestHelpers:
    """Test cases for overlap and pair key helpers."""

    def test_check_time_overlap_is_symmetric(self, make_event):
        event1 = make_event('1', start=at(20), end=at(22))
        event2 = make_event('2', start=at(22, 30), end=at(23))
        buffer = timedelta(minutes=30)

        assert check_time_overlap(event1, event2, buffer)
        assert check_time_overlap(event2, event1, buffer)
        assert not check_time_overlap(event1, event2, timedelta(minutes=29))

    def test_pair_key_order_independent(self, make_event):
        event1 = make_event('b')
        event2 = make_event('a')

        assert pair_key(event1, event2) == pair_key(event2, event1) == ('a', 'b')

    def test_pair_key_keeps_ids_apart(self, make_event):
        assert pair_key(make_event('a_b'), make_event('c')) != pair_key(make_event('a'), make_event('b_c'))


class TestDetectConflicts:
    """Test cases for detect_conflicts."""

    def test_dynamic_mode(self, make_event, jazz_events):
        events = jazz_events + [
            make_event('tm_jazz', name='Jazz Concert'),
            make_event('broken', lat=None),
        ]

        result = detect_conflicts(events)

        assert result.total_events == 4
        assert result.unique_events == 2
        assert result.duplicates_filtered == 2
        assert result.conflict_count == 1
        assert result.threshold_mode == 'dynamic'
        assert result.venue_proximity_threshold == 0.15
        assert result.conflict_rate == '50.0%'

    def test_manual_mode(self, jazz_events):
        result = detect_conflicts(jazz_events, time_buffer=0, venue_proximity_threshold=0.5)

        assert result.threshold_mode == 'manual'
        assert result.venue_proximity_threshold == 0.5
        assert result.time_buffer == 0

    def test_empty_input(self):
        result = detect_conflicts([])

        assert result.conflicts == []
        assert result.conflict_rate == '0.0%'
        assert result.venue_proximity_threshold == 0.3
        assert result.to_dict()['thresholdMode'] == 'dynamic'
