"""
Tests for Two-Hand Zoom Aggregation
====================================
"""

import pytest

from gesture_shortcut.control.session import HandSessionState
from gesture_shortcut.recognition.gesture_classifier import GestureClassifier, GestureType
from gesture_shortcut.recognition.multi_hand import MultiHandAggregator, MultiHandConfig

import hands


def two_hands(pose, spread):
    """Two copies of `pose` whose pinch midpoints are `spread` apart."""
    return [pose(offset=(-spread / 2, 0.0), handedness="Left"),
            pose(offset=(spread / 2, 0.0), handedness="Right")]


class TestMultiHandAggregator:
    """Test suite for pinch-to-zoom detection."""

    @pytest.fixture
    def classifier(self):
        return GestureClassifier()

    @pytest.fixture
    def aggregator(self):
        return MultiHandAggregator(MultiHandConfig(jitter_threshold=0.03))

    @pytest.fixture
    def session(self):
        return HandSessionState()

    def _update(self, aggregator, classifier, session, frames, **kw):
        labels = [classifier.classify(f) for f in frames]
        return aggregator.update(labels, frames, session, **kw)

    def test_first_two_hand_pinch_seeds_baseline(self, aggregator, classifier, session):
        result = self._update(aggregator, classifier, session, two_hands(hands.pinch, 0.3))

        assert result.pinch_count == 2
        assert result.tracking_started
        assert result.zoom is None
        assert session.last_pinch_distance == pytest.approx(0.3)

    def test_hands_apart_zooms_in(self, aggregator, classifier, session):
        self._update(aggregator, classifier, session, two_hands(hands.pinch, 0.3))
        result = self._update(aggregator, classifier, session, two_hands(hands.pinch, 0.4))

        assert result.zoom == GestureType.ZOOM_IN
        assert session.last_pinch_distance == pytest.approx(0.4)

    def test_hands_together_zooms_out(self, aggregator, classifier, session):
        self._update(aggregator, classifier, session, two_hands(hands.zoom_pinch, 0.4))
        result = self._update(aggregator, classifier, session, two_hands(hands.zoom_pinch, 0.3))

        assert result.zoom == GestureType.ZOOM_OUT
        assert session.last_pinch_distance == pytest.approx(0.3)

    def test_jitter_absorbed(self, aggregator, classifier, session):
        self._update(aggregator, classifier, session, two_hands(hands.pinch, 0.3))
        result = self._update(aggregator, classifier, session, two_hands(hands.pinch, 0.32))

        assert result.zoom is None
        # Baseline kept so slow drift still adds up
        assert session.last_pinch_distance == pytest.approx(0.3)

        result = self._update(aggregator, classifier, session, two_hands(hands.pinch, 0.34))
        assert result.zoom == GestureType.ZOOM_IN

    def test_one_zoom_per_step(self, aggregator, classifier, session):
        self._update(aggregator, classifier, session, two_hands(hands.pinch, 0.3))
        first = self._update(aggregator, classifier, session, two_hands(hands.pinch, 0.4))
        second = self._update(aggregator, classifier, session, two_hands(hands.pinch, 0.4))

        assert first.zoom == GestureType.ZOOM_IN
        assert second.zoom is None

    def test_hand_order_does_not_matter(self, aggregator, classifier, session):
        self._update(aggregator, classifier, session, two_hands(hands.pinch, 0.3))
        swapped = list(reversed(two_hands(hands.pinch, 0.4)))
        result = self._update(aggregator, classifier, session, swapped)

        assert result.zoom == GestureType.ZOOM_IN

    def test_baseline_reset_when_pinch_released(self, aggregator, classifier, session):
        self._update(aggregator, classifier, session, two_hands(hands.pinch, 0.3))
        frames = [hands.pinch(offset=(-0.2, 0.0)), hands.palm(offset=(0.2, 0.0))]
        result = self._update(aggregator, classifier, session, frames)

        assert result.pinch_count == 1
        assert session.last_pinch_distance is None

        # Next two-hand pinch starts over instead of comparing to stale data
        result = self._update(aggregator, classifier, session, two_hands(hands.pinch, 0.6))
        assert result.tracking_started
        assert result.zoom is None

    def test_single_hand_resets_baseline(self, aggregator, classifier, session):
        session.last_pinch_distance = 0.3
        self._update(aggregator, classifier, session, [hands.pinch()])
        assert session.last_pinch_distance is None

    def test_reset_drops_baseline(self, aggregator, classifier, session):
        self._update(aggregator, classifier, session, two_hands(hands.pinch, 0.3))
        aggregator.reset(session)

        assert session.last_pinch_distance is None
        result = self._update(aggregator, classifier, session, two_hands(hands.pinch, 0.6))
        assert result.tracking_started

    def test_closed_gate_holds_baseline(self, aggregator, classifier, session):
        self._update(aggregator, classifier, session, two_hands(hands.pinch, 0.3))
        result = self._update(aggregator, classifier, session,
                              two_hands(hands.pinch, 0.5), gate_open=False)

        assert result.zoom is None
        assert result.distance == pytest.approx(0.5)
        assert session.last_pinch_distance == pytest.approx(0.3)

    def test_closed_gate_does_not_seed(self, aggregator, classifier, session):
        result = self._update(aggregator, classifier, session,
                              two_hands(hands.pinch, 0.3), gate_open=False)
        assert not result.tracking_started
        assert session.last_pinch_distance is None

    def test_midpoint_is_thumb_index_average(self):
        frame = hands.pinch()
        candidates = MultiHandAggregator.collect_candidates([GestureType.PINCH], [frame])

        midpoint = candidates[0].midpoint
        assert midpoint.x == pytest.approx((frame.thumb_tip.x + frame.index_tip.x) / 2)
        assert midpoint.y == pytest.approx((frame.thumb_tip.y + frame.index_tip.y) / 2)

    def test_negative_jitter_rejected(self):
        with pytest.raises(ValueError):
            MultiHandConfig(jitter_threshold=-0.01)
