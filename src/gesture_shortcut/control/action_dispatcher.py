"""
Action dispatcher: turns decided gestures into commands for the action sink.

Discrete gestures go through the policy table. Pointer control maps the
index fingertip to mirrored screen coordinates and smooths them with an
exponential filter against the previously emitted position.
"""

import logging
import threading
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..detection.landmarks import LandmarkFrame
from ..recognition.gesture_classifier import GestureType
from .actions import ActionCommand, ActionPolicy, MOVE_CURSOR, CLICK
from .action_sink import ActionSink, SinkResult
from .session import HandSessionState

logger = logging.getLogger(__name__)

KEYBOARD_PERMISSION_NOTICE = "Error: Please enable accessibility permissions"
MOUSE_PERMISSION_NOTICE = "Error: Please enable mouse control permissions"


@dataclass
class DispatcherConfig:
    """Pointer mapping configuration."""
    screen_width: int = 1920
    screen_height: int = 1080
    # 0 = follow the fingertip exactly, closer to 1 = smoother/slower
    smoothing_factor: float = 0.5

    def __post_init__(self):
        if not 0.0 <= self.smoothing_factor < 1.0:
            raise ValueError(f"smoothing_factor must be in [0, 1), got {self.smoothing_factor}")
        if self.screen_width <= 0 or self.screen_height <= 0:
            raise ValueError(
                f"screen size must be positive, got {self.screen_width}x{self.screen_height}"
            )

    @classmethod
    def from_dict(cls, config: dict) -> "DispatcherConfig":
        """Create config from the `control` section."""
        screen = config.get("screen", {}) or {}
        return cls(
            screen_width=int(screen.get("width", 1920)),
            screen_height=int(screen.get("height", 1080)),
            smoothing_factor=float(config.get("smoothing_factor", 0.5)),
        )


class ActionDispatcher:
    """Maps gesture decisions to commands and hands them to the sink.

    Sink failures never stop the pipeline. A permission failure raises a
    single error notice on the session; further failures stay quiet until
    a command succeeds again.
    """

    def __init__(
        self,
        session: HandSessionState,
        sink: ActionSink,
        policy: Optional[ActionPolicy] = None,
        config: Optional[DispatcherConfig] = None,
    ):
        self.config = config or DispatcherConfig()
        self.policy = policy or ActionPolicy()
        self._session = session
        self._sink = sink
        self._lock = threading.Lock()
        self._pending: List[Tuple[ActionCommand, SinkResult]] = []
        self._action_count = 0
        self._last_action: Optional[str] = None

        self._sink.on_result(self._on_result)

    # -------------------------------------------------------------------------
    # Pointer control
    # -------------------------------------------------------------------------

    def set_screen_size(self, width: int, height: int) -> None:
        self.config = DispatcherConfig(width, height, self.config.smoothing_factor)
        logger.info("Pointer mapped to %dx%d screen", width, height)

    def to_screen(self, x: float, y: float) -> Tuple[float, float]:
        """Normalized camera coordinates -> mirrored screen pixels."""
        return ((1.0 - x) * self.config.screen_width, y * self.config.screen_height)

    def smooth(self, raw: Tuple[float, float]) -> Tuple[float, float]:
        """Exponential smoothing against the last emitted position."""
        prev = self._session.last_mouse_position
        if prev is None:
            return raw
        keep = 1.0 - self.config.smoothing_factor
        return (prev[0] + (raw[0] - prev[0]) * keep,
                prev[1] + (raw[1] - prev[1]) * keep)

    def dispatch_pointer(self, frame: LandmarkFrame) -> ActionCommand:
        """Emit a cursor move for the index fingertip of `frame`."""
        tip = frame.index_tip
        position = self.smooth(self.to_screen(tip.x, tip.y))
        self._session.last_mouse_position = position
        if not self._session.mouse_control_active:
            logger.debug("Pointer control started")
        self._session.mouse_control_active = True

        command = ActionCommand.move_cursor(*position)
        self._send(command)
        return command

    def end_pointer(self) -> None:
        """Leave pointer mode; the next activation starts from a fresh baseline."""
        if self._session.mouse_control_active:
            logger.debug("Pointer control ended")
        self._session.last_mouse_position = None
        self._session.mouse_control_active = False

    # -------------------------------------------------------------------------
    # Discrete actions
    # -------------------------------------------------------------------------

    def command_for(self, gesture: GestureType) -> Optional[ActionCommand]:
        return self.policy.lookup(gesture)

    def dispatch(self, gesture: GestureType) -> Optional[ActionCommand]:
        """Emit the mapped command for a discrete gesture, if any."""
        command = self.policy.lookup(gesture)
        if command is None:
            return None
        self._send(command)
        self._last_action = command.describe()
        self._action_count += 1
        logger.info("Action: %-18s <- %s", command.describe(), gesture.display_name)
        return command

    # -------------------------------------------------------------------------
    # Sink results
    # -------------------------------------------------------------------------

    def _send(self, command: ActionCommand) -> None:
        try:
            self._sink.send(command)
        except Exception as e:
            logger.error("Action sink raised for %s: %s", command.to_dict(), e)
            self._on_result(command, SinkResult(ok=False, message=str(e)))
        self.collect_results()

    def _on_result(self, command: ActionCommand, result: SinkResult) -> None:
        # May run on the sink's worker thread
        with self._lock:
            self._pending.append((command, result))

    def collect_results(self) -> None:
        """Fold delivery outcomes reported so far into the session state."""
        with self._lock:
            pending, self._pending = self._pending, []

        for command, result in pending:
            if result.ok:
                self._session.error_reported = False
                self._session.mouse_control_error = False
                continue

            logger.warning("Action %s failed: %s", command.to_dict(), result.message or "unknown error")
            if result.permission_denied and not self._session.error_reported:
                self._session.error_reported = True
                if command.kind in (MOVE_CURSOR, CLICK):
                    self._session.mouse_control_error = True
                    self._session.error_notice = MOUSE_PERMISSION_NOTICE
                else:
                    self._session.error_notice = KEYBOARD_PERMISSION_NOTICE

    @property
    def last_action(self) -> Optional[str]:
        return self._last_action

    @property
    def action_count(self) -> int:
        return self._action_count
