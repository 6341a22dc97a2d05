"""
Per-frame gesture pipeline.

Architecture:
    LandmarkFrames -> GestureClassifier (per hand) -> MultiHandAggregator
    -> CooldownGate -> ActionDispatcher -> ActionSink

The host calls `process()` once per video frame with whatever hands the
landmarker found. Everything runs synchronously; the only state kept
between frames is the HandSessionState.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .control.action_dispatcher import ActionDispatcher, DispatcherConfig
from .control.action_sink import ActionSink
from .control.actions import ActionCommand, ActionPolicy
from .control.debouncer import CooldownGate, DebouncerConfig, now_ms
from .control.session import HandSessionState
from .detection.landmarks import LandmarkFrame, parse_frames
from .recognition.gesture_classifier import (
    GestureClassifier, GestureClassifierConfig, GestureType,
)
from .recognition.multi_hand import MultiHandAggregator, MultiHandConfig
from .utils.logger import GestureLogger

logger = logging.getLogger(__name__)

MODES = ("control", "demo")


@dataclass
class PipelineConfig:
    """Pipeline-level settings."""
    max_hands: int = 2
    mode: str = "control"  # control: dispatch actions, demo: classify only

    def __post_init__(self):
        if self.max_hands not in (1, 2):
            raise ValueError(f"max_hands must be 1 or 2, got {self.max_hands}")
        if self.mode not in MODES:
            raise ValueError(f"mode must be one of {MODES}, got {self.mode!r}")

    @classmethod
    def from_dict(cls, config: dict) -> "PipelineConfig":
        detection = config.get("detection", {}) or {}
        return cls(
            max_hands=int(detection.get("max_hands", 2)),
            mode=config.get("mode", "control"),
        )


@dataclass
class FrameResult:
    """What the UI needs to know about one processed frame."""
    timestamp: float
    hand_count: int = 0
    labels: List[GestureType] = field(default_factory=list)
    command: Optional[ActionCommand] = None
    last_action: Optional[str] = None
    pinch_count: int = 0
    cooldown_remaining_ms: float = 0.0
    error_notice: Optional[str] = None

    @property
    def gesture(self) -> Optional[GestureType]:
        """Label of the first hand, which is the one shown to the user."""
        return self.labels[0] if self.labels else None

    @property
    def gesture_name(self) -> str:
        return self.gesture.display_name if self.gesture else "None"

    @property
    def hand_detected(self) -> bool:
        return self.hand_count > 0

    @property
    def action_executed(self) -> bool:
        return self.command is not None

    @property
    def cooling(self) -> bool:
        return self.cooldown_remaining_ms > 0


class GesturePipeline:
    """
    Classify, correlate, debounce and dispatch, one frame at a time.

    Calls are serialized with a lock so a host may feed frames from a
    capture thread while the UI reads results from another.

    Example:
        >>> pipeline = GesturePipeline.from_config(config, sink)
        >>> result = pipeline.process(hands)
        >>> print(result.gesture_name, result.last_action)
    """

    def __init__(
        self,
        classifier: GestureClassifier,
        aggregator: MultiHandAggregator,
        gate: CooldownGate,
        dispatcher: ActionDispatcher,
        session: HandSessionState,
        config: Optional[PipelineConfig] = None,
        gesture_logger: Optional[GestureLogger] = None,
    ):
        self.config = config or PipelineConfig()
        self._classifier = classifier
        self._aggregator = aggregator
        self._gate = gate
        self._dispatcher = dispatcher
        self._session = session
        self._events = gesture_logger or GestureLogger()
        self._lock = threading.Lock()

        self._mode = self.config.mode
        self._last_action: Optional[str] = None
        self._frame_count = 0

    @classmethod
    def from_config(
        cls,
        config: dict,
        sink: ActionSink,
        session: Optional[HandSessionState] = None,
    ) -> "GesturePipeline":
        """Build a pipeline from a loaded configuration dict."""
        session = session or HandSessionState()
        dispatcher = ActionDispatcher(
            session,
            sink,
            policy=ActionPolicy.from_dict(config.get("actions", {}) or {}),
            config=DispatcherConfig.from_dict(config.get("control", {}) or {}),
        )
        return cls(
            classifier=GestureClassifier(
                GestureClassifierConfig.from_dict(config.get("recognition", {}) or {})),
            aggregator=MultiHandAggregator(
                MultiHandConfig.from_dict(config.get("multi_hand", {}) or {})),
            gate=CooldownGate(session, DebouncerConfig.from_dict(config.get("debouncing", {}) or {})),
            dispatcher=dispatcher,
            session=session,
            config=PipelineConfig.from_dict(config),
        )

    # -------------------------------------------------------------------------
    # Frame processing
    # -------------------------------------------------------------------------

    def process(self, hands: Sequence, now: Optional[float] = None) -> FrameResult:
        """
        Run one frame through the pipeline.

        Args:
            hands: LandmarkFrames, or raw 21-point sequences, one per
                detected hand. Malformed hands are ignored.
            now: Frame time in milliseconds (defaults to wall clock)

        Returns:
            FrameResult for the UI
        """
        with self._lock:
            now = now_ms() if now is None else now
            self._frame_count += 1
            self._dispatcher.collect_results()

            frames = parse_frames(hands, self.config.max_hands)
            result = FrameResult(timestamp=now, hand_count=len(frames))

            if not frames:
                self._on_tracking_lost()
            else:
                result.labels = [self._classifier.classify(f) for f in frames]
                self._decide(frames, result, now)

            result.last_action = self._last_action
            result.cooldown_remaining_ms = self._gate.remaining_ms(now)
            result.error_notice = self._session.take_error_notice()
            return result

    def _decide(self, frames: List[LandmarkFrame], result: FrameResult, now: float) -> None:
        labels = result.labels
        aggregate = self._aggregator.update(
            labels, frames, self._session, gate_open=self._gate.is_ready(now)
        )
        result.pinch_count = aggregate.pinch_count

        if len(frames) == 1:
            self._decide_single(labels[0], frames[0], result, now)
            return

        # Two hands: only the composite zoom gesture acts
        self._dispatcher.end_pointer()
        if aggregate.zoom is not None:
            self._fire(aggregate.zoom, result, now)
        elif aggregate.tracking_started:
            self._last_action = "Zoom tracking started"
        elif aggregate.pinch_count == 2:
            self._last_action = "Pinch points: 2 (ready for zoom)"

    def _decide_single(self, label: GestureType, frame: LandmarkFrame,
                       result: FrameResult, now: float) -> None:
        if label.is_continuous:
            if self._mode == "control":
                result.command = self._dispatcher.dispatch_pointer(frame)
                self._last_action = "Mouse control"
            return

        self._dispatcher.end_pointer()
        if self._gate.allows(label, now):
            self._fire(label, result, now)

    def _fire(self, label: GestureType, result: FrameResult, now: float) -> None:
        if self._mode != "control":
            return
        command = self._dispatcher.dispatch(label)
        if command is None:
            return
        self._gate.record(now)
        result.command = command
        self._last_action = command.describe()
        self._events.log_gesture(label.display_name, action=command.describe())

    def _on_tracking_lost(self) -> None:
        # Cooldown is kept so a gesture reappearing right away stays gated
        self._aggregator.reset(self._session)
        self._dispatcher.end_pointer()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def stop(self) -> None:
        """Tracking stopped: clear transient session state, keep the cooldown."""
        with self._lock:
            # Fold outcomes still pending so they cannot re-latch after the reset
            self._dispatcher.collect_results()
            self._dispatcher.end_pointer()
            self._session.clear_tracking()
            self._last_action = None
        logger.info("Pipeline stopped, session state cleared")

    def set_mode(self, mode: str) -> None:
        """Set pipeline mode: 'control' or 'demo'."""
        if mode not in MODES:
            raise ValueError(f"mode must be one of {MODES}, got {mode!r}")
        with self._lock:
            self._mode = mode
            if mode != "control":
                self._dispatcher.end_pointer()
        logger.info("Pipeline mode set to: %s", mode)

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def session(self) -> HandSessionState:
        return self._session

    @property
    def dispatcher(self) -> ActionDispatcher:
        return self._dispatcher

    @property
    def gate(self) -> CooldownGate:
        return self._gate

    @property
    def classifier(self) -> GestureClassifier:
        return self._classifier

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def gesture_log(self) -> GestureLogger:
        return self._events
