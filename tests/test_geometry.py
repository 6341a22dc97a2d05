"""
Tests for Geometry Utilities and Landmark Frames
=================================================
"""

import pytest
import numpy as np

from gesture_shortcut.detection.landmarks import (
    Landmark, LandmarkFrame, LandmarkIndex, MalformedFrameError, parse_frames,
)
from gesture_shortcut.recognition import geometry

from hands import closed_fist, as_points


class TestGeometry:
    """Test suite for the geometric helpers."""

    def test_distance(self):
        assert geometry.distance(Landmark(0.0, 0.0), Landmark(0.3, 0.4)) == pytest.approx(0.5)

    def test_distance_ignores_depth(self):
        assert geometry.distance(Landmark(0.1, 0.1, 0.0), Landmark(0.1, 0.1, 0.9)) == 0.0

    def test_y_offset_positive_when_tip_above_base(self):
        base, tip = Landmark(0.5, 0.4), Landmark(0.5, 0.3)
        assert geometry.y_offset(base, tip) == pytest.approx(0.1)
        assert geometry.y_offset(tip, base) == pytest.approx(-0.1)

    def test_right_angle(self):
        a = geometry.angle(Landmark(1.0, 0.0), Landmark(0.0, 0.0), Landmark(0.0, 1.0))
        assert a == pytest.approx(90.0)

    def test_straight_angle(self):
        a = geometry.angle(Landmark(-1.0, 0.0), Landmark(0.0, 0.0), Landmark(1.0, 0.0))
        assert a == pytest.approx(180.0)

    def test_midpoint(self):
        m = geometry.midpoint(Landmark(0.2, 0.4), Landmark(0.4, 0.8))
        assert (m.x, m.y) == pytest.approx((0.3, 0.6))

    def test_vectorized_distances_match_scalar(self):
        frame = closed_fist()
        tips = [LandmarkIndex.THUMB_TIP, LandmarkIndex.INDEX_TIP]
        dists = geometry.distances_from(frame, LandmarkIndex.WRIST, tips)

        expected = [geometry.distance(frame.wrist, frame[i]) for i in tips]
        np.testing.assert_allclose(dists, expected)


class TestLandmarkFrame:
    """Test suite for LandmarkFrame construction."""

    def test_from_tuples(self):
        frame = LandmarkFrame.from_points(as_points(closed_fist()))
        assert len(frame) == 21
        assert frame.to_numpy().shape == (21, 3)

    def test_from_objects_with_xyz(self):
        class Point:
            def __init__(self, x, y, z):
                self.x, self.y, self.z = x, y, z

        frame = LandmarkFrame.from_points([Point(0.1 * (i % 10), 0.5, 0.0) for i in range(21)])
        assert frame.index_tip.x == pytest.approx(0.8)

    def test_two_dimensional_points(self):
        frame = LandmarkFrame.from_points([(0.5, 0.5)] * 21)
        assert frame.wrist.z == 0.0

    @pytest.mark.parametrize("count", [0, 20, 22])
    def test_wrong_point_count_rejected(self, count):
        with pytest.raises(MalformedFrameError):
            LandmarkFrame.from_points([(0.5, 0.5, 0.0)] * count)

    def test_frame_is_immutable(self):
        frame = closed_fist()
        with pytest.raises(AttributeError):
            frame.handedness = "Left"


class TestParseFrames:
    """Test suite for raw hand parsing."""

    def test_malformed_hand_dropped(self):
        good = as_points(closed_fist())
        frames = parse_frames([good[:15], good])
        assert len(frames) == 1

    def test_garbage_dropped(self):
        assert parse_frames([None, [("a",)] * 21]) == []

    def test_capped_at_max_hands(self):
        hand = closed_fist()
        assert len(parse_frames([hand, hand, hand], max_hands=2)) == 2

    def test_frames_pass_through(self):
        hand = closed_fist()
        assert parse_frames([hand])[0] is hand
