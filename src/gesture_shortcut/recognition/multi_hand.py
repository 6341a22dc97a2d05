"""
Two-hand gesture correlation.

Detects pinch-to-zoom by tracking the distance between the pinch
midpoints of two pinching hands across frames. Hand order is not assumed
to be stable between frames; the midpoint distance does not depend on it.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..control.session import HandSessionState
from ..detection.landmarks import Landmark, LandmarkFrame
from . import geometry
from .gesture_classifier import GestureType

logger = logging.getLogger(__name__)


@dataclass
class MultiHandConfig:
    """Multi-hand aggregator configuration."""
    # Minimum change in midpoint distance treated as intentional
    jitter_threshold: float = 0.03

    def __post_init__(self):
        if self.jitter_threshold < 0:
            raise ValueError(f"jitter_threshold must be >= 0, got {self.jitter_threshold}")

    @classmethod
    def from_dict(cls, config: dict) -> "MultiHandConfig":
        return cls(jitter_threshold=float(config.get("jitter_threshold", 0.03)))


@dataclass
class PinchCandidate:
    """A hand currently pinching, with the midpoint of its thumb and index tips."""
    label: GestureType
    midpoint: Landmark


@dataclass
class AggregateResult:
    """Outcome of correlating all hands in one frame."""
    candidates: List[PinchCandidate]
    zoom: Optional[GestureType] = None
    distance: Optional[float] = None
    tracking_started: bool = False

    @property
    def pinch_count(self) -> int:
        return len(self.candidates)


class MultiHandAggregator:
    """Turns per-hand pinch labels into Zoom In / Zoom Out intents.

    Only ``last_pinch_distance`` in the session state is touched here.
    """

    def __init__(self, config: Optional[MultiHandConfig] = None):
        self.config = config or MultiHandConfig()

    @staticmethod
    def collect_candidates(labels: Sequence[GestureType],
                           frames: Sequence[LandmarkFrame]) -> List[PinchCandidate]:
        candidates = []
        for label, frame in zip(labels, frames):
            if label.is_pinch:
                candidates.append(PinchCandidate(
                    label=label,
                    midpoint=geometry.midpoint(frame.thumb_tip, frame.index_tip),
                ))
        return candidates

    def update(
        self,
        labels: Sequence[GestureType],
        frames: Sequence[LandmarkFrame],
        session: HandSessionState,
        gate_open: bool = True,
    ) -> AggregateResult:
        """
        Correlate pinch state across hands for one frame.

        Args:
            labels: Per-hand labels from the classifier
            frames: The landmark frames the labels were computed from
            session: Session state holding the pinch-distance baseline
            gate_open: False while the cooldown gate is closed; the baseline
                is then held without emitting

        Returns:
            AggregateResult, with `zoom` set to ZOOM_IN or ZOOM_OUT when the
            hands moved apart or together by more than the jitter floor
        """
        candidates = self.collect_candidates(labels, frames)
        result = AggregateResult(candidates=candidates)

        if len(candidates) != 2:
            if session.last_pinch_distance is not None:
                logger.debug("Pinch tracking reset (%d pinching hands)", len(candidates))
            session.last_pinch_distance = None
            return result

        dist = geometry.distance(candidates[0].midpoint, candidates[1].midpoint)
        result.distance = dist

        if not gate_open:
            return result

        if session.last_pinch_distance is None:
            session.last_pinch_distance = dist
            result.tracking_started = True
            logger.debug("Zoom tracking started at %.3f", dist)
            return result

        delta = dist - session.last_pinch_distance
        if abs(delta) > self.config.jitter_threshold:
            result.zoom = GestureType.ZOOM_IN if delta > 0 else GestureType.ZOOM_OUT
            session.last_pinch_distance = dist
            logger.debug("%s (delta=%.3f)", result.zoom.display_name, delta)

        return result

    @staticmethod
    def reset(session: HandSessionState) -> None:
        """Drop the pinch-distance baseline; the next two-hand pinch re-seeds it."""
        session.last_pinch_distance = None
