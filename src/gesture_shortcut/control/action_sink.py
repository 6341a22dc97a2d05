"""
Action sinks deliver abstract input commands to the operating system.

Supports an xdotool (X11) backend and a simulated backend that only logs.
The xdotool sink can hand commands to a single worker thread so the frame
loop never waits on the OS. Commands are delivered in the order they were
sent; completion is reported through callbacks.
"""

import logging
import queue
import subprocess
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .actions import ActionCommand, KEY, MOVE_CURSOR, CLICK

logger = logging.getLogger(__name__)

# stderr fragments that mean the OS refused input injection
_PERMISSION_MARKERS = (
    "can't open display",
    "cannot open display",
    "not allowed",
    "authorization",
    "permission denied",
)


@dataclass
class SinkResult:
    """Outcome of delivering one command."""
    ok: bool
    permission_denied: bool = False
    message: str = ""


@dataclass
class SinkConfig:
    """Action sink configuration."""
    backend: str = "xdotool"  # xdotool or simulated
    async_exec: bool = True
    timeout_s: float = 1.0

    @classmethod
    def from_dict(cls, config: dict) -> "SinkConfig":
        return cls(
            backend=config.get("sink", "xdotool"),
            async_exec=config.get("async_exec", True),
            timeout_s=float(config.get("timeout_s", 1.0)),
        )


ResultCallback = Callable[[ActionCommand, SinkResult], None]


class ActionSink:
    """Base capability for delivering commands.

    `send()` returns a result immediately. Sinks that deliver in the
    background report the final outcome through callbacks registered with
    `on_result()`; synchronous sinks report it from `send()` as well.
    """

    def __init__(self):
        self._callbacks: List[ResultCallback] = []

    def send(self, command: ActionCommand) -> SinkResult:
        raise NotImplementedError

    def on_result(self, callback: ResultCallback) -> None:
        """Register callback(command, result) for delivery outcomes."""
        self._callbacks.append(callback)

    def remove_callback(self, callback: ResultCallback) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _notify(self, command: ActionCommand, result: SinkResult) -> None:
        for callback in list(self._callbacks):
            try:
                callback(command, result)
            except Exception as e:
                logger.error("Action result callback error: %s", e)

    def screen_size(self) -> Optional[Tuple[int, int]]:
        """Screen resolution in pixels, if the backend can tell."""
        return None

    def close(self) -> None:
        pass


class SimulatedSink(ActionSink):
    """Logs commands instead of injecting them. Used in demo mode and tests."""

    def __init__(self):
        super().__init__()
        self.sent: List[ActionCommand] = []

    def send(self, command: ActionCommand) -> SinkResult:
        self.sent.append(command)
        if command.kind == MOVE_CURSOR:
            logger.debug("[SIMULATED] %s", command.to_dict())
        else:
            logger.info("[SIMULATED] %s", command.to_dict())
        result = SinkResult(ok=True, message="simulated")
        self._notify(command, result)
        return result


class XdotoolSink(ActionSink):
    """
    Injects keyboard and mouse input with xdotool.

    Falls back to logging only when xdotool is not installed.

    Example:
        >>> sink = XdotoolSink(SinkConfig(async_exec=False))
        >>> sink.send(ActionCommand.key("space"))
    """

    # Config key names -> xdotool keysyms
    KEY_MAP = {
        "space": "space",
        "escape": "Escape",
        "enter": "Return",
        "tab": "Tab",
        "pagedown": "Next",
        "pageup": "Prior",
        "left": "Left",
        "right": "Right",
        "up": "Up",
        "down": "Down",
    }

    BUTTON_MAP = {"left": "1", "right": "3"}

    def __init__(self, config: Optional[SinkConfig] = None):
        super().__init__()
        self.config = config or SinkConfig()
        self._xdotool_available = self._check_xdotool()

        # None on the queue stops the worker
        self._queue: "queue.Queue[Optional[Tuple[ActionCommand, List[str]]]]" = queue.Queue()
        self._worker: Optional[threading.Thread] = None
        self._worker_lock = threading.Lock()

        if not self._xdotool_available:
            logger.warning("xdotool not found - actions will be simulated (logged only)")

    @staticmethod
    def _check_xdotool() -> bool:
        """Check if xdotool is installed and available."""
        try:
            result = subprocess.run(
                ["which", "xdotool"],
                capture_output=True,
                text=True,
                timeout=2,
            )
            return result.returncode == 0
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("Error checking xdotool: %s", e)
            return False

    @property
    def is_available(self) -> bool:
        return self._xdotool_available

    def _normalize_key(self, code: str) -> str:
        """Map config key names to xdotool keysyms, keeping modifiers."""
        parts = code.split("+")
        return "+".join(self.KEY_MAP.get(p.lower(), p) for p in parts)

    def build_args(self, command: ActionCommand) -> List[str]:
        if command.kind == KEY:
            return ["xdotool", "key", self._normalize_key(command.code)]
        if command.kind == MOVE_CURSOR:
            return ["xdotool", "mousemove", str(round(command.x)), str(round(command.y))]
        if command.kind == CLICK:
            return ["xdotool", "click", self.BUTTON_MAP[command.button]]
        raise ValueError(f"Unsupported command kind: {command.kind}")

    def send(self, command: ActionCommand) -> SinkResult:
        args = self.build_args(command)

        if not self._xdotool_available:
            logger.info("[SIMULATED] %s", " ".join(args))
            result = SinkResult(ok=True, message="simulated")
            self._notify(command, result)
            return result

        if self.config.async_exec:
            self._ensure_worker()
            self._queue.put((command, args))
            return SinkResult(ok=True, message="queued")

        return self._deliver(command, args)

    def _ensure_worker(self) -> None:
        with self._worker_lock:
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(
                    target=self._worker_loop, name="xdotool-sink", daemon=True
                )
                self._worker.start()

    def _worker_loop(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is None:
                    return
                self._deliver(*item)
            finally:
                self._queue.task_done()

    def close(self) -> None:
        """Deliver queued commands, then stop the worker thread."""
        with self._worker_lock:
            worker, self._worker = self._worker, None
        if worker is None:
            return
        self._queue.put(None)
        worker.join(timeout=self.config.timeout_s * (self._queue.qsize() + 1) + 1.0)
        if worker.is_alive():
            logger.warning("xdotool worker did not finish, %d commands dropped",
                           self._queue.qsize())

    def _deliver(self, command: ActionCommand, args: List[str]) -> SinkResult:
        result = self._run(args)
        if result.ok:
            logger.debug("Sent %s", " ".join(args))
        else:
            logger.error("xdotool failed for %s: %s", command.to_dict(), result.message)
        self._notify(command, result)
        return result

    def _run(self, args: List[str]) -> SinkResult:
        try:
            proc = subprocess.run(
                args,
                capture_output=True,
                text=True,
                timeout=self.config.timeout_s,
            )
        except subprocess.TimeoutExpired:
            return SinkResult(ok=False, message="xdotool timed out")
        except OSError as e:
            return SinkResult(ok=False, message=str(e))

        if proc.returncode != 0:
            stderr = (proc.stderr or "").strip()
            denied = any(marker in stderr.lower() for marker in _PERMISSION_MARKERS)
            return SinkResult(ok=False, permission_denied=denied, message=stderr)
        return SinkResult(ok=True)

    def screen_size(self) -> Optional[Tuple[int, int]]:
        if not self._xdotool_available:
            return None
        try:
            proc = subprocess.run(
                ["xdotool", "getdisplaygeometry"],
                capture_output=True,
                text=True,
                timeout=2,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("Could not query display geometry: %s", e)
            return None
        if proc.returncode != 0:
            return None
        try:
            width, height = proc.stdout.split()[:2]
            return int(width), int(height)
        except ValueError:
            return None


def create_sink(config: Optional[SinkConfig] = None) -> ActionSink:
    """Build the sink named by `config.backend`."""
    config = config or SinkConfig()
    if config.backend == "simulated":
        return SimulatedSink()
    if config.backend != "xdotool":
        logger.warning("Unknown sink backend '%s', using xdotool", config.backend)
    return XdotoolSink(config)
