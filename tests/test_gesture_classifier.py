"""
Tests for Gesture Recognition Module
=====================================
"""

import math

import pytest

from gesture_shortcut.detection.landmarks import Landmark, LandmarkFrame
from gesture_shortcut.recognition.gesture_classifier import (
    ClassifierThresholds,
    DEFAULT_RULE_ORDER,
    GestureClassifier,
    GestureClassifierConfig,
    GestureType,
)

import hands


class TestGestureClassifier:
    """Test suite for the default rule cascade."""

    @pytest.fixture
    def classifier(self):
        return GestureClassifier(GestureClassifierConfig(debug=True))

    @pytest.mark.parametrize("pose, expected", [
        (hands.palm, GestureType.PALM),
        (hands.closed_fist, GestureType.CLOSED_FIST),
        (hands.pinch, GestureType.PINCH),
        (hands.zoom_pinch, GestureType.ZOOM_PINCH),
        (hands.mouse_control, GestureType.MOUSE_CONTROL),
        (hands.mouse_click, GestureType.MOUSE_CLICK),
        (hands.finger_gun, GestureType.FINGER_GUN),
        (hands.thumbs_up, GestureType.THUMBS_UP),
        (hands.thumbs_down, GestureType.THUMBS_DOWN),
        (hands.two_fingers, GestureType.TWO_FINGERS),
        (hands.three_fingers, GestureType.THREE_FINGERS),
        (hands.one_finger, GestureType.ONE_FINGER),
    ])
    def test_poses(self, classifier, pose, expected):
        assert classifier.classify(pose()) == expected

    def test_unknown_fallback(self, classifier):
        assert classifier.classify(hands.pinky_only()) == GestureType.UNKNOWN

    def test_pure_function(self, classifier):
        frame = hands.palm()
        labels = {classifier.classify(frame) for _ in range(10)}
        assert labels == {GestureType.PALM}

    def test_position_independent(self, classifier):
        """Translating the whole hand does not change the label."""
        assert classifier.classify(hands.palm(offset=(0.1, -0.1))) == GestureType.PALM
        assert classifier.classify(hands.closed_fist(offset=(-0.2, 0.1))) == GestureType.CLOSED_FIST

    def test_pinch_takes_priority_over_fist(self, classifier):
        frame = hands.pinch()
        matches = classifier.matching_rules(frame)

        assert GestureType.PINCH in matches
        assert GestureType.CLOSED_FIST in matches
        assert classifier.classify(frame) == GestureType.PINCH

    def test_click_takes_priority_over_mouse_control(self, classifier):
        frame = hands.mouse_click()
        matches = classifier.matching_rules(frame)

        assert matches[0] == GestureType.MOUSE_CLICK
        assert GestureType.MOUSE_CONTROL in matches
        assert classifier.classify(frame) == GestureType.MOUSE_CLICK

    def test_fist_scenario(self, classifier):
        """Wrist at (0.5, 0.5) with every fingertip within 0.1 of it."""
        frame = hands.closed_fist(offset=(0.0, -0.1))
        assert (frame.wrist.x, frame.wrist.y) == pytest.approx((0.5, 0.5))
        assert classifier.classify(frame) == GestureType.CLOSED_FIST

    def test_mouse_control_scenario(self, classifier):
        """Index tip 0.1 above its base, other fingers curled."""
        frame = hands.build_hand(fingers={"index": ((0.5, 0.4), (0.5, 0.3))})
        assert classifier.classify(frame) == GestureType.MOUSE_CONTROL

    def test_slightly_raised_index_is_one_finger(self, classifier):
        """Index y-offset 0.075, base distance ~0.076: short of pointer control."""
        frame = hands.one_finger()
        matches = classifier.matching_rules(frame)

        assert GestureType.MOUSE_CONTROL not in matches
        assert classifier.classify(frame) == GestureType.ONE_FINGER


class TestPalmAndFistProperties:
    """Palm / fist hold for any frame past / within the extension threshold."""

    @pytest.fixture
    def classifier(self):
        return GestureClassifier()

    def _radial_hand(self, radius, thumb_angle=200.0):
        # Fingertips on a circle around the wrist, joints spaced along the ray
        wrist = (0.5, 0.5)
        points = [Landmark(*wrist)] * 21
        angles = {4: thumb_angle, 8: 250.0, 12: 270.0, 16: 290.0, 20: 310.0}
        for tip, deg in angles.items():
            rad = math.radians(deg)
            tx, ty = wrist[0] + radius * math.cos(rad), wrist[1] + radius * math.sin(rad)
            for j, frac in zip(range(tip - 3, tip + 1), (0.25, 0.5, 0.75, 1.0)):
                points[j] = Landmark(wrist[0] + (tx - wrist[0]) * frac,
                                     wrist[1] + (ty - wrist[1]) * frac)
        return LandmarkFrame(tuple(points))

    @pytest.mark.parametrize("radius", [0.11, 0.15, 0.25, 0.4])
    def test_far_tips_are_palm(self, classifier, radius):
        assert classifier.classify(self._radial_hand(radius)) == GestureType.PALM

    @pytest.mark.parametrize("radius", [0.06, 0.08, 0.095])
    def test_near_tips_are_fist(self, classifier, radius):
        # Thumb swung away from the index so no pinch is seen
        frame = self._radial_hand(radius, thumb_angle=90.0)
        assert classifier.classify(frame) == GestureType.CLOSED_FIST


class TestRuleOrder:
    """Test suite for configurable rule ordering."""

    def test_default_order(self):
        order = GestureClassifier().rule_order
        assert order[0] == GestureType.MOUSE_CLICK
        assert order.index(GestureType.PINCH) < order.index(GestureType.CLOSED_FIST)
        assert GestureType.VICTORY_SIGN not in order
        assert order.index(GestureType.ONE_FINGER) == order.index(GestureType.MOUSE_CONTROL) + 1

    def test_override_changes_winner(self):
        frame = hands.mouse_control()
        classifier = GestureClassifier(GestureClassifierConfig(
            rule_order=("pointing_up", "mouse_control")))
        assert classifier.classify(frame) == GestureType.POINTING_UP

    def test_optional_rules(self):
        classifier = GestureClassifier(GestureClassifierConfig(
            rule_order=("ok_sign", "victory_sign", "one_finger")))
        assert classifier.classify(hands.zoom_pinch()) == GestureType.OK_SIGN
        assert classifier.classify(hands.two_fingers()) == GestureType.VICTORY_SIGN
        assert classifier.classify(hands.mouse_control()) == GestureType.ONE_FINGER

    def test_disabled_rule_never_matches(self):
        order = tuple(r for r in DEFAULT_RULE_ORDER if r != "closed_fist")
        classifier = GestureClassifier(GestureClassifierConfig(rule_order=order))
        assert classifier.classify(hands.closed_fist()) == GestureType.UNKNOWN

    def test_unknown_and_duplicate_rules_skipped(self):
        classifier = GestureClassifier(GestureClassifierConfig(
            rule_order=("palm", "jazz_hands", "palm", "Closed_Fist")))
        assert classifier.rule_order == [GestureType.PALM, GestureType.CLOSED_FIST]


class TestClassifierConfig:
    """Test suite for classifier configuration."""

    def test_from_dict(self):
        config = GestureClassifierConfig.from_dict({
            "thresholds": {"pinch": 0.05, "extension": 0.12},
            "rule_order": ["palm", "closed_fist"],
        })
        assert config.thresholds.pinch == 0.05
        assert config.thresholds.extension == 0.12
        assert config.thresholds.click_distance == 0.05
        assert config.rule_order == ("palm", "closed_fist")

    def test_from_empty_dict(self):
        config = GestureClassifierConfig.from_dict({})
        assert config.rule_order == DEFAULT_RULE_ORDER
        assert config.thresholds == ClassifierThresholds()

    def test_unknown_threshold_ignored(self):
        thresholds = ClassifierThresholds.from_dict({"wiggle": 1.0})
        assert thresholds == ClassifierThresholds()

    def test_single_rule_name_string(self):
        config = GestureClassifierConfig.from_dict({"rule_order": "palm"})
        assert config.rule_order == ("palm",)
        assert GestureClassifier(config).classify(hands.palm()) == GestureType.PALM

    def test_null_threshold_uses_default(self):
        thresholds = ClassifierThresholds.from_dict({"pinch": None, "extension": 0.12})
        assert thresholds.pinch == ClassifierThresholds().pinch
        assert thresholds.extension == 0.12

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValueError):
            ClassifierThresholds(pinch=-0.1)

    def test_tighter_pinch_threshold(self):
        classifier = GestureClassifier(GestureClassifierConfig(
            thresholds=ClassifierThresholds(pinch=0.01)))
        # Thumb no longer close enough: the pinch pose falls through to fist
        assert classifier.classify(hands.pinch()) == GestureType.CLOSED_FIST


class TestGestureType:
    """Test suite for gesture labels."""

    def test_from_string(self):
        assert GestureType.from_string("Closed Fist") == GestureType.CLOSED_FIST
        assert GestureType.from_string("thumbs-up") == GestureType.THUMBS_UP
        assert GestureType.from_string("nope") == GestureType.UNKNOWN

    def test_display_name(self):
        assert GestureType.MOUSE_CONTROL.display_name == "Mouse Control"
        assert GestureType.OK_SIGN.display_name == "OK Sign"

    def test_only_pointer_control_is_continuous(self):
        continuous = [g for g in GestureType if g.is_continuous]
        assert continuous == [GestureType.MOUSE_CONTROL]
