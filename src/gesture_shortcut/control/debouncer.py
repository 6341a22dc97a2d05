"""
Cooldown gate for discrete gesture actions.

    READY   --discrete action fires-->   COOLING
    COOLING --now - last > cooldown-->   READY

While COOLING, gestures are still classified (for feedback) but no
discrete action is dispatched. Continuous gestures (pointer control) pass
the gate on every frame. Losing the hand does not reset the cooldown.
"""

import time
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..recognition.gesture_classifier import GestureType
from .session import HandSessionState

logger = logging.getLogger(__name__)


def now_ms() -> float:
    return time.time() * 1000


class GateState(Enum):
    READY = "ready"
    COOLING = "cooling"


@dataclass
class DebouncerConfig:
    """Cooldown configuration."""
    cooldown_ms: float = 1500.0

    def __post_init__(self):
        if self.cooldown_ms < 0:
            raise ValueError(f"cooldown_ms must be >= 0, got {self.cooldown_ms}")

    @classmethod
    def from_dict(cls, config: dict) -> "DebouncerConfig":
        """Create config from the `debouncing` section."""
        return cls(cooldown_ms=float(config.get("cooldown_ms", 1500.0)))


class CooldownGate:
    """Rate limits discrete actions using the session's last gesture time."""

    def __init__(self, session: HandSessionState, config: Optional[DebouncerConfig] = None):
        self.config = config or DebouncerConfig()
        self._session = session

    @property
    def cooldown_ms(self) -> float:
        return self.config.cooldown_ms

    def state(self, now: Optional[float] = None) -> GateState:
        return GateState.READY if self.is_ready(now) else GateState.COOLING

    def is_ready(self, now: Optional[float] = None) -> bool:
        last = self._session.last_gesture_time
        if last is None:
            return True
        now = now_ms() if now is None else now
        return now - last > self.config.cooldown_ms

    def allows(self, gesture: GestureType, now: Optional[float] = None) -> bool:
        """Whether an action for `gesture` may be dispatched this frame."""
        if gesture.is_continuous:
            return True
        return self.is_ready(now)

    def record(self, now: Optional[float] = None) -> None:
        """Enter COOLING: a discrete action just fired."""
        self._session.last_gesture_time = now_ms() if now is None else now
        logger.debug("Cooldown started (%.0fms)", self.config.cooldown_ms)

    def remaining_ms(self, now: Optional[float] = None) -> float:
        """Milliseconds left before the gate reopens (0 when READY)."""
        last = self._session.last_gesture_time
        if last is None:
            return 0.0
        now = now_ms() if now is None else now
        return max(0.0, self.config.cooldown_ms - (now - last))

    def progress(self, now: Optional[float] = None) -> float:
        """Fraction of the cooldown already elapsed (1.0 when READY)."""
        if self.config.cooldown_ms <= 0:
            return 1.0
        return 1.0 - self.remaining_ms(now) / self.config.cooldown_ms
