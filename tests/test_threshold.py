"""Unit tests for the density-based proximity threshold."""
from conftest import north_of
from detector.threshold import calculate_dynamic_threshold


class TestCalculateDynamicThreshold:
    """Test cases for calculate_dynamic_threshold."""

    def test_no_events_returns_base(self):
        assert calculate_dynamic_threshold([]) == 0.3

    def test_single_event_returns_base(self, make_event):
        assert calculate_dynamic_threshold([make_event('1')]) == 0.3

    def test_dense_cluster(self, make_event):
        """Test that venues within 200m of each other tighten the threshold."""
        events = [
            make_event('1'),
            make_event('2', lat=north_of(0.05)),
            make_event('3', lat=north_of(0.1)),
        ]

        assert calculate_dynamic_threshold(events) == 0.15

    def test_medium_density(self, make_event):
        events = [make_event('1'), make_event('2', lat=north_of(0.3))]

        assert calculate_dynamic_threshold(events) == 0.2

    def test_sparse_area_uses_base(self, make_event):
        events = [make_event('1'), make_event('2', lat=north_of(0.7))]

        assert calculate_dynamic_threshold(events) == 0.3
        assert calculate_dynamic_threshold(events, base_threshold=0.4) == 0.4

    def test_only_distant_pairs_returns_base(self, make_event):
        """Test that pairs a kilometer or more apart are ignored."""
        events = [make_event('1'), make_event('2', lat=north_of(2))]

        assert calculate_dynamic_threshold(events, base_threshold=0.25) == 0.25

    def test_upper_median_is_used(self, make_event):
        """Test that the median of distances 0.15, 0.3, 0.45 km is 0.3 km."""
        events = [
            make_event('1'),
            make_event('2', lat=north_of(0.15)),
            make_event('3', lat=north_of(0.45)),
        ]

        assert calculate_dynamic_threshold(events) == 0.2

    def test_events_without_coordinates_ignored(self, make_event):
        events = [
            make_event('1'),
            make_event('2', lat=None),
            make_event('3', lat=north_of(0.7)),
        ]

        assert calculate_dynamic_threshold(events) == 0.3

    def test_sample_capped_at_200_events(self, make_event):
        """Test that only the first 200 located events are sampled."""
        spread_out = [
            make_event(f"far_{i}", lat=north_of(5 * i)) for i in range(200)
        ]
        clustered = [make_event(f"near_{i}") for i in range(50)]

        assert calculate_dynamic_threshold(spread_out + clustered) == 0.3
        assert calculate_dynamic_threshold(clustered + spread_out) == 0.15
