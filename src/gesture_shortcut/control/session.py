"""
Hand session state: the only data that survives from one frame to the next.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass
class HandSessionState:
    """Cross-frame state owned by the cooldown gate and the dispatcher."""
    last_gesture_time: Optional[float] = None  # ms timestamp of last discrete action
    last_pinch_distance: Optional[float] = None
    last_mouse_position: Optional[Tuple[float, float]] = None
    mouse_control_active: bool = False
    mouse_control_error: bool = False
    error_reported: bool = False  # one notice per run of failures
    error_notice: Optional[str] = None

    def clear_tracking(self) -> None:
        """Reset everything except the cooldown timestamp.

        Used when tracking stops, so a restart starts from a clean baseline
        while a gesture seen right after the restart still respects the
        cooldown.
        """
        self.last_pinch_distance = None
        self.last_mouse_position = None
        self.mouse_control_active = False
        self.mouse_control_error = False
        self.error_reported = False
        self.error_notice = None

    def take_error_notice(self) -> Optional[str]:
        """Return the pending error notice once, then clear it."""
        notice, self.error_notice = self.error_notice, None
        return notice
