"""
Logging setup and gesture/action event logging.
"""

import os
import logging
import logging.handlers
import time


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Configure console and optional rotating file logging."""
    console_format = "%(asctime)s  %(levelname)-5s  %(message)s"
    file_format = "%(asctime)s [%(levelname)-7s] %(name)-30s | %(message)s"
    date_format = "%H:%M:%S"

    root_logger = logging.getLogger()
    level_value = getattr(logging, str(level).upper(), logging.INFO)
    root_logger.setLevel(level_value)

    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(level_value)
    console.setFormatter(logging.Formatter(console_format, datefmt=date_format))
    root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(file_format, datefmt=date_format))
        root_logger.addHandler(file_handler)

    return root_logger


class GestureLogger:
    """Logs triggered gestures and keeps them for the running session."""

    def __init__(self, max_history: int = 500):
        self.logger = logging.getLogger("gesture_events")
        self._history = []
        self._max_history = max_history

    def log_gesture(self, gesture_name, action=None):
        """Log a gesture that triggered an action."""
        self._history.append({
            "timestamp": time.time(),
            "gesture": gesture_name,
            "action": action,
        })
        if len(self._history) > self._max_history:
            self._history = self._history[-self._max_history:]
        self.logger.info("Gesture: %-15s | Action: %s", gesture_name, action or "none")

    def get_history(self, last_n=None):
        """Get recent gesture history."""
        if last_n:
            return self._history[-last_n:]
        return self._history.copy()

    @property
    def total_gestures(self):
        return len(self._history)
