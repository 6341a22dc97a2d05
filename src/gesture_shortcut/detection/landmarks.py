"""
Hand Landmark Frames
=====================

Immutable per-hand snapshot of the 21 normalized landmark points produced
by the hand landmarker for one video frame.
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Optional, Sequence, Tuple, NamedTuple

import numpy as np

logger = logging.getLogger(__name__)

NUM_LANDMARKS = 21


class MalformedFrameError(ValueError):
    """Raised when a landmark frame does not hold exactly 21 points."""


class LandmarkIndex(IntEnum):
    """Hand landmark indices following MediaPipe convention."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


# Thumb, index, middle, ring, pinky
FINGER_TIPS = (
    LandmarkIndex.THUMB_TIP,
    LandmarkIndex.INDEX_TIP,
    LandmarkIndex.MIDDLE_TIP,
    LandmarkIndex.RING_TIP,
    LandmarkIndex.PINKY_TIP,
)

# Reference joint each fingertip is measured against. The thumb uses its MCP.
FINGER_BASES = (
    LandmarkIndex.THUMB_MCP,
    LandmarkIndex.INDEX_MCP,
    LandmarkIndex.MIDDLE_MCP,
    LandmarkIndex.RING_MCP,
    LandmarkIndex.PINKY_MCP,
)


class Landmark(NamedTuple):
    """A single landmark point with normalized coordinates."""
    x: float  # 0.0 to 1.0, normalized by image width
    y: float  # 0.0 to 1.0, normalized by image height, grows downward
    z: float = 0.0  # Depth relative to wrist, unused by classification


@dataclass(frozen=True)
class LandmarkFrame:
    """Ordered, immutable set of 21 landmarks for one detected hand.

    Use :meth:`from_points` to build one from raw landmarker output; it
    rejects anything that is not exactly 21 points.
    """
    landmarks: Tuple[Landmark, ...]
    handedness: str = "unknown"
    score: float = 0.0

    def __post_init__(self):
        if len(self.landmarks) != NUM_LANDMARKS:
            raise MalformedFrameError(
                f"expected {NUM_LANDMARKS} landmarks, got {len(self.landmarks)}"
            )

    @classmethod
    def from_points(
        cls,
        points: Iterable,
        handedness: str = "unknown",
        score: float = 0.0,
    ) -> "LandmarkFrame":
        """Build a frame from (x, y[, z]) tuples or objects with x/y/z attributes."""
        landmarks = []
        for point in points:
            if hasattr(point, "x"):
                landmarks.append(Landmark(float(point.x), float(point.y),
                                          float(getattr(point, "z", 0.0) or 0.0)))
            else:
                coords = tuple(point)
                if len(coords) < 2:
                    raise MalformedFrameError(f"landmark needs at least x and y, got {coords!r}")
                z = float(coords[2]) if len(coords) > 2 else 0.0
                landmarks.append(Landmark(float(coords[0]), float(coords[1]), z))
        return cls(tuple(landmarks), handedness=handedness, score=score)

    def __getitem__(self, index: int) -> Landmark:
        return self.landmarks[index]

    def __len__(self) -> int:
        return len(self.landmarks)

    @property
    def wrist(self) -> Landmark:
        return self.landmarks[LandmarkIndex.WRIST]

    @property
    def thumb_tip(self) -> Landmark:
        return self.landmarks[LandmarkIndex.THUMB_TIP]

    @property
    def index_tip(self) -> Landmark:
        return self.landmarks[LandmarkIndex.INDEX_TIP]

    def to_numpy(self) -> np.ndarray:
        """Convert landmarks to numpy array of shape (21, 3)."""
        return np.array(self.landmarks, dtype=np.float64)


def parse_frames(raw_hands: Sequence, max_hands: Optional[int] = None) -> list:
    """Convert raw per-hand point lists into LandmarkFrames.

    Malformed hands are dropped and logged; they count as "no hand" for
    this frame. Already-built LandmarkFrames pass through untouched.
    """
    frames = []
    for raw in raw_hands:
        if isinstance(raw, LandmarkFrame):
            frames.append(raw)
        else:
            try:
                frames.append(LandmarkFrame.from_points(raw))
            except (MalformedFrameError, TypeError, ValueError) as e:
                logger.debug("Dropping malformed hand: %s", e)
                continue
        if max_hands is not None and len(frames) >= max_hands:
            break
    return frames
