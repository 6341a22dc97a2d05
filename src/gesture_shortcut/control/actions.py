"""
Abstract input commands and the gesture → command policy table.

Commands describe *what* to do (press a key, move the cursor, click);
how they reach the operating system is up to the action sink.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from ..recognition.gesture_classifier import GestureType

logger = logging.getLogger(__name__)

KEY = "key"
MOVE_CURSOR = "move_cursor"
CLICK = "click"

MOUSE_BUTTONS = ("left", "right")


@dataclass(frozen=True)
class ActionCommand:
    """One abstract input command."""
    kind: str
    code: Optional[str] = None
    x: Optional[float] = None
    y: Optional[float] = None
    button: Optional[str] = None
    label: Optional[str] = None  # Human-readable "last action" text

    @classmethod
    def key(cls, code: str, label: Optional[str] = None) -> "ActionCommand":
        return cls(KEY, code=code, label=label)

    @classmethod
    def move_cursor(cls, x: float, y: float) -> "ActionCommand":
        return cls(MOVE_CURSOR, x=float(x), y=float(y))

    @classmethod
    def click(cls, button: str = "left", label: Optional[str] = None) -> "ActionCommand":
        if button not in MOUSE_BUTTONS:
            raise ValueError(f"click button must be one of {MOUSE_BUTTONS}, got {button!r}")
        return cls(CLICK, button=button, label=label)

    def to_dict(self) -> dict:
        """Channel form: {kind, code} / {kind, x, y} / {kind, button}."""
        if self.kind == KEY:
            return {"kind": KEY, "code": self.code}
        if self.kind == MOVE_CURSOR:
            return {"kind": MOVE_CURSOR, "x": self.x, "y": self.y}
        return {"kind": CLICK, "button": self.button}

    def describe(self) -> str:
        if self.label:
            return self.label
        if self.kind == KEY:
            return f"{self.code} pressed"
        if self.kind == MOVE_CURSOR:
            return f"Cursor -> ({self.x:.0f}, {self.y:.0f})"
        return f"{self.button.capitalize()} click"


DEFAULT_ACTIONS: Dict[GestureType, ActionCommand] = {
    GestureType.PALM: ActionCommand.key("space", "Spacebar pressed"),
    GestureType.CLOSED_FIST: ActionCommand.key("escape", "Escape pressed"),
    GestureType.FINGER_GUN: ActionCommand.key("tab", "Tab pressed"),
    GestureType.THUMBS_UP: ActionCommand.key("enter", "Enter pressed"),
    GestureType.ONE_FINGER: ActionCommand.key("pagedown", "Page Down"),
    GestureType.TWO_FINGERS: ActionCommand.key("pageup", "Page Up"),
    GestureType.PINCH: ActionCommand.key("left", "Arrow Left pressed"),
    GestureType.MOUSE_CLICK: ActionCommand.click("left", "Mouse click"),
    GestureType.ZOOM_IN: ActionCommand.key("ctrl+plus", "Zoom In"),
    GestureType.ZOOM_OUT: ActionCommand.key("ctrl+minus", "Zoom Out"),
}


def _parse_entry(name: str, entry) -> Optional[ActionCommand]:
    """Parse one `actions` entry: a key string, {key: ...} or {click: ...}."""
    if entry is None:
        return None
    if isinstance(entry, str):
        return ActionCommand.key(entry)
    if isinstance(entry, dict):
        label = entry.get("label")
        if "key" in entry:
            return ActionCommand.key(str(entry["key"]), label)
        if "click" in entry:
            return ActionCommand.click(str(entry["click"]), label)
    raise ValueError(f"Invalid action for gesture '{name}': {entry!r}")


class ActionPolicy:
    """Replaceable table mapping discrete gesture labels to commands.

    Labels without an entry emit nothing. Pointer control is not part of
    the table; the dispatcher computes its cursor commands.
    """

    def __init__(self, table: Optional[Dict[GestureType, ActionCommand]] = None):
        self._table = dict(DEFAULT_ACTIONS if table is None else table)

    @classmethod
    def from_dict(cls, config: dict, merge_defaults: bool = True) -> "ActionPolicy":
        """Build from the `actions` config section.

        A null entry removes a default mapping.
        """
        table = dict(DEFAULT_ACTIONS) if merge_defaults else {}
        for name, entry in (config or {}).items():
            gesture = GestureType.from_string(name)
            if gesture == GestureType.UNKNOWN:
                logger.warning("Unknown gesture '%s' in actions table, skipping", name)
                continue
            if gesture.is_continuous:
                logger.warning("'%s' is continuous and cannot map to a discrete action", name)
                continue
            command = _parse_entry(name, entry)
            if command is None:
                table.pop(gesture, None)
            else:
                table[gesture] = command
        return cls(table)

    def lookup(self, gesture: GestureType) -> Optional[ActionCommand]:
        return self._table.get(gesture)

    def __contains__(self, gesture: GestureType) -> bool:
        return gesture in self._table

    def __len__(self) -> int:
        return len(self._table)

    def as_dict(self) -> Dict[str, dict]:
        return {g.value: c.to_dict() for g, c in self._table.items()}
