"""
Static Gesture Classifier
==========================

Rule-based gesture recognition using hand landmark geometry.

Each gesture is a standalone predicate over a small set of geometric
features. Predicates are evaluated in a fixed, configurable priority order
and the first one that matches decides the label. Anything that matches
no rule is UNKNOWN.

Features used by the rules:
    - fingers_extended: fingertip-to-wrist distance per finger
    - y_offsets: fingertip height above its base knuckle (thumb unused)
    - extended_from_base: fingertip-to-base distance per finger
    - thumb_index_distance: pinch / OK-sign signal
    - thumb_y / wrist_y: thumb polarity
"""

import logging
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..detection.landmarks import (
    LandmarkFrame, LandmarkIndex, FINGER_TIPS, FINGER_BASES,
)
from . import geometry

logger = logging.getLogger(__name__)


class GestureType(Enum):
    """All gesture labels, keyed by their config name."""
    UNKNOWN = "unknown"
    PALM = "palm"
    CLOSED_FIST = "closed_fist"
    POINTING_UP = "pointing_up"
    THUMBS_UP = "thumbs_up"
    THUMBS_DOWN = "thumbs_down"
    PINCH = "pinch"
    ZOOM_PINCH = "zoom_pinch"
    VICTORY_SIGN = "victory_sign"
    THREE_FINGERS = "three_fingers"
    ONE_FINGER = "one_finger"
    TWO_FINGERS = "two_fingers"
    FINGER_GUN = "finger_gun"
    OK_SIGN = "ok_sign"
    MOUSE_CONTROL = "mouse_control"
    MOUSE_CLICK = "mouse_click"
    # Two-hand composites produced by the multi-hand aggregator
    ZOOM_IN = "zoom_in"
    ZOOM_OUT = "zoom_out"

    @classmethod
    def from_string(cls, name: str) -> "GestureType":
        """Convert a config key or display name to GestureType, safely."""
        key = str(name).strip().lower().replace(" ", "_").replace("-", "_")
        try:
            return cls(key)
        except ValueError:
            return cls.UNKNOWN

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES.get(self, self.value.replace("_", " ").title())

    @property
    def is_continuous(self) -> bool:
        """Continuous gestures drive analog control and skip the cooldown."""
        return self in CONTINUOUS_GESTURES

    @property
    def is_composite(self) -> bool:
        return self in (GestureType.ZOOM_IN, GestureType.ZOOM_OUT)

    @property
    def is_pinch(self) -> bool:
        return self in (GestureType.PINCH, GestureType.ZOOM_PINCH)


_DISPLAY_NAMES = {
    GestureType.OK_SIGN: "OK Sign",
}

CONTINUOUS_GESTURES = frozenset({GestureType.MOUSE_CONTROL})


@dataclass
class ClassifierThresholds:
    """Tunable geometric thresholds, all in normalized image units."""
    # Fingertip-to-wrist distance separating "away from palm" from curled
    extension: float = 0.10
    # Thumb tip to index tip
    pinch: float = 0.07
    # Victory / one / two fingers
    raised_y_offset: float = 0.02
    lowered_y_offset: float = 0.015
    raised_extension: float = 0.07
    # Three fingers
    three_y_offset: float = 0.015
    three_extension: float = 0.06
    # Finger gun
    finger_gun_index_extension: float = 0.15
    finger_gun_curl: float = 0.12
    thumb_up_margin: float = 0.05
    # Pointing up
    pointing_y_offset: float = 0.08
    pointing_down_margin: float = 0.03
    # Pointer control
    mouse_y_offset: float = 0.05
    mouse_extension: float = 0.08
    click_distance: float = 0.05

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, (int, float)) or value < 0:
                raise ValueError(f"threshold '{f.name}' must be a non-negative number, got {value!r}")

    @classmethod
    def from_dict(cls, d: dict) -> "ClassifierThresholds":
        """Create thresholds from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(d) - known
        if unknown:
            logger.warning("Ignoring unknown classifier thresholds: %s", sorted(unknown))
        return cls(**{k: float(v) for k, v in d.items() if k in known and v is not None})


@dataclass(frozen=True)
class HandFeatures:
    """Geometric features of one hand, computed once per frame."""
    fingers_extended: np.ndarray
    y_offsets: np.ndarray
    extended_from_base: np.ndarray
    thumb_index_distance: float
    thumb_y: float
    wrist_y: float

    @classmethod
    def from_frame(cls, frame: LandmarkFrame) -> "HandFeatures":
        fingers_extended = geometry.distances_from(frame, LandmarkIndex.WRIST, FINGER_TIPS)
        extended_from_base = geometry.pairwise_distances(frame, FINGER_TIPS, FINGER_BASES)
        y_offsets = np.array(
            [0.0] + [geometry.y_offset(frame[base], frame[tip])
                     for tip, base in zip(FINGER_TIPS[1:], FINGER_BASES[1:])]
        )
        return cls(
            fingers_extended=fingers_extended,
            y_offsets=y_offsets,
            extended_from_base=extended_from_base,
            thumb_index_distance=geometry.distance(frame.thumb_tip, frame.index_tip),
            thumb_y=frame.thumb_tip.y,
            wrist_y=frame.wrist.y,
        )


Predicate = Callable[[HandFeatures, ClassifierThresholds], bool]


# =============================================================================
# Gesture predicates
# =============================================================================

def _others_curled(f: HandFeatures, limit: float) -> bool:
    """Middle, ring and pinky tips all within `limit` of the wrist."""
    return bool(np.all(f.fingers_extended[2:] < limit))


def _only_index_raised(f: HandFeatures, t: ClassifierThresholds,
                       y_offset: float, extension: float) -> bool:
    return bool(
        f.y_offsets[1] > y_offset
        and f.extended_from_base[1] > extension
        and np.all(f.y_offsets[2:] < t.lowered_y_offset)
        and np.all(f.extended_from_base[2:] < t.raised_extension)
    )


def _index_middle_raised(f: HandFeatures, t: ClassifierThresholds) -> bool:
    y, base = f.y_offsets, f.extended_from_base
    return bool(
        y[1] > t.raised_y_offset and y[2] > t.raised_y_offset
        and y[3] < t.lowered_y_offset and y[4] < t.lowered_y_offset
        and base[1] > t.raised_extension and base[2] > t.raised_extension
        and base[3] < t.raised_extension and base[4] < t.raised_extension
    )


def is_palm(f: HandFeatures, t: ClassifierThresholds) -> bool:
    return bool(np.all(f.fingers_extended > t.extension))


def is_closed_fist(f: HandFeatures, t: ClassifierThresholds) -> bool:
    return bool(np.all(f.fingers_extended < t.extension))


def _thumb_only(f: HandFeatures, t: ClassifierThresholds) -> bool:
    return bool(f.fingers_extended[0] > t.extension
                and np.all(f.fingers_extended[1:] < t.extension))


def is_thumbs_up(f: HandFeatures, t: ClassifierThresholds) -> bool:
    return _thumb_only(f, t) and f.thumb_y < f.wrist_y


def is_thumbs_down(f: HandFeatures, t: ClassifierThresholds) -> bool:
    return _thumb_only(f, t) and f.thumb_y > f.wrist_y


def is_pinch(f: HandFeatures, t: ClassifierThresholds) -> bool:
    return f.thumb_index_distance < t.pinch and _others_curled(f, t.extension)


def is_zoom_pinch(f: HandFeatures, t: ClassifierThresholds) -> bool:
    # Relaxed pinch used for two-hand zoom: other fingers may be open
    return f.thumb_index_distance < t.pinch and not _others_curled(f, t.extension)


def is_ok_sign(f: HandFeatures, t: ClassifierThresholds) -> bool:
    return bool(f.thumb_index_distance < t.pinch
                and np.all(f.fingers_extended[2:] > t.extension))


def is_victory_sign(f: HandFeatures, t: ClassifierThresholds) -> bool:
    return _index_middle_raised(f, t)


def is_two_fingers(f: HandFeatures, t: ClassifierThresholds) -> bool:
    return _index_middle_raised(f, t)


def is_one_finger(f: HandFeatures, t: ClassifierThresholds) -> bool:
    return _only_index_raised(f, t, t.raised_y_offset, t.raised_extension)


def is_three_fingers(f: HandFeatures, t: ClassifierThresholds) -> bool:
    y, base = f.y_offsets, f.extended_from_base
    return bool(
        np.all(y[1:4] > t.three_y_offset) and y[4] < t.three_y_offset
        and np.all(base[1:4] > t.three_extension) and base[4] < t.three_extension
    )


def is_finger_gun(f: HandFeatures, t: ClassifierThresholds) -> bool:
    thumb_up = f.thumb_y < f.wrist_y - t.thumb_up_margin
    return bool(thumb_up
                and f.fingers_extended[1] > t.finger_gun_index_extension
                and _others_curled(f, t.finger_gun_curl))


def is_pointing_up(f: HandFeatures, t: ClassifierThresholds) -> bool:
    y = f.y_offsets
    thumb_down = f.wrist_y - f.thumb_y <= t.pointing_down_margin
    return bool(y[1] > t.pointing_y_offset
                and np.all(y[2:] <= t.pointing_down_margin)
                and thumb_down)


def is_mouse_control(f: HandFeatures, t: ClassifierThresholds) -> bool:
    return _only_index_raised(f, t, t.mouse_y_offset, t.mouse_extension)


def is_mouse_click(f: HandFeatures, t: ClassifierThresholds) -> bool:
    return is_mouse_control(f, t) and f.thumb_index_distance < t.click_distance


RULES: Dict[str, Tuple[GestureType, Predicate]] = {
    GestureType.MOUSE_CLICK.value: (GestureType.MOUSE_CLICK, is_mouse_click),
    GestureType.MOUSE_CONTROL.value: (GestureType.MOUSE_CONTROL, is_mouse_control),
    GestureType.FINGER_GUN.value: (GestureType.FINGER_GUN, is_finger_gun),
    GestureType.VICTORY_SIGN.value: (GestureType.VICTORY_SIGN, is_victory_sign),
    GestureType.THREE_FINGERS.value: (GestureType.THREE_FINGERS, is_three_fingers),
    GestureType.TWO_FINGERS.value: (GestureType.TWO_FINGERS, is_two_fingers),
    GestureType.ONE_FINGER.value: (GestureType.ONE_FINGER, is_one_finger),
    GestureType.POINTING_UP.value: (GestureType.POINTING_UP, is_pointing_up),
    GestureType.OK_SIGN.value: (GestureType.OK_SIGN, is_ok_sign),
    GestureType.PINCH.value: (GestureType.PINCH, is_pinch),
    GestureType.ZOOM_PINCH.value: (GestureType.ZOOM_PINCH, is_zoom_pinch),
    GestureType.PALM.value: (GestureType.PALM, is_palm),
    GestureType.CLOSED_FIST.value: (GestureType.CLOSED_FIST, is_closed_fist),
    GestureType.THUMBS_UP.value: (GestureType.THUMBS_UP, is_thumbs_up),
    GestureType.THUMBS_DOWN.value: (GestureType.THUMBS_DOWN, is_thumbs_down),
}

# Most constrained first. Pinch must precede the palm/fist catch-alls and
# pointer control must precede the generic one-finger gestures.
DEFAULT_RULE_ORDER = (
    "mouse_click",
    "finger_gun",
    "mouse_control",
    "one_finger",
    "three_fingers",
    "two_fingers",
    "pinch",
    "zoom_pinch",
    "palm",
    "closed_fist",
    "thumbs_up",
    "thumbs_down",
)


@dataclass
class GestureClassifierConfig:
    """Gesture classifier configuration."""
    thresholds: ClassifierThresholds = field(default_factory=ClassifierThresholds)
    rule_order: Tuple[str, ...] = DEFAULT_RULE_ORDER
    debug: bool = False

    @classmethod
    def from_dict(cls, config: dict) -> "GestureClassifierConfig":
        """Create config from the `recognition` section."""
        rule_order = config.get("rule_order") or DEFAULT_RULE_ORDER
        if isinstance(rule_order, str):
            # A single rule name, not a sequence of characters
            rule_order = (rule_order,)
        return cls(
            thresholds=ClassifierThresholds.from_dict(config.get("thresholds", {}) or {}),
            rule_order=tuple(rule_order),
            debug=config.get("debug", False),
        )


class GestureClassifier:
    """
    Rule-cascade static gesture classifier.

    Pure function of its input: the same landmark frame always yields the
    same label, and no state is carried between calls.

    Example:
        >>> classifier = GestureClassifier()
        >>> label = classifier.classify(frame)
        >>> print(label.display_name)
    """

    def __init__(self, config: Optional[GestureClassifierConfig] = None):
        self.config = config or GestureClassifierConfig()
        self._rules = self._build_rules(self.config.rule_order)

    @staticmethod
    def _build_rules(order: Sequence[str]) -> List[Tuple[GestureType, Predicate]]:
        rules = []
        seen = set()
        for name in order:
            key = str(name).strip().lower()
            if key not in RULES:
                logger.warning("Unknown gesture rule '%s' in rule_order, skipping", name)
                continue
            if key in seen:
                continue
            seen.add(key)
            rules.append(RULES[key])
        return rules

    @property
    def rule_order(self) -> List[GestureType]:
        return [label for label, _ in self._rules]

    @property
    def thresholds(self) -> ClassifierThresholds:
        return self.config.thresholds

    def features(self, frame: LandmarkFrame) -> HandFeatures:
        return HandFeatures.from_frame(frame)

    def classify(self, frame: LandmarkFrame) -> GestureType:
        """
        Classify one hand.

        Args:
            frame: 21-point landmark frame

        Returns:
            First matching gesture label, or UNKNOWN
        """
        features = self.features(frame)
        if self.config.debug:
            logger.debug(
                "y-offsets=%s from-base=%s wrist-dist=%s pinch=%.3f",
                np.round(features.y_offsets[1:], 3),
                np.round(features.extended_from_base, 3),
                np.round(features.fingers_extended, 3),
                features.thumb_index_distance,
            )

        for label, predicate in self._rules:
            if predicate(features, self.config.thresholds):
                return label
        return GestureType.UNKNOWN

    def matching_rules(self, frame: LandmarkFrame) -> List[GestureType]:
        """Every enabled rule that matches, in priority order. For diagnostics."""
        features = self.features(frame)
        return [label for label, predicate in self._rules
                if predicate(features, self.config.thresholds)]
