"""
Gesture Shortcut - Main Application
====================================

Entry point: webcam -> hand landmarker -> gesture pipeline -> input sink,
with a minimal OpenCV preview window.
"""

import argparse
import logging
import signal
import sys
from typing import Optional

import cv2

from .capture.camera import Camera, CameraConfig
from .control.action_sink import SinkConfig, create_sink
from .detection.hand_detector import HandDetector, HandDetectorConfig
from .pipeline import GesturePipeline, FrameResult, MODES
from .utils.config import load_config
from .utils.logger import setup_logging

logger = logging.getLogger(__name__)

WINDOW_NAME = "Gesture Shortcut"

# BGR
COLOR_READY = (0, 200, 0)
COLOR_COOLING = (0, 165, 255)
COLOR_ERROR = (0, 0, 255)
COLOR_TEXT = (255, 255, 255)


class GestureShortcutApp:
    """
    Host loop around the gesture pipeline.

    Keys:
        q/ESC  quit
        m      toggle control/demo mode
        s      stop/start tracking
    """

    def __init__(self, config: dict):
        self.config = config
        self.camera = Camera(CameraConfig.from_dict(config.get("camera", {}) or {}))
        self.detector = HandDetector(HandDetectorConfig.from_dict(config.get("detection", {}) or {}))
        self.sink = create_sink(SinkConfig.from_dict(config.get("control", {}) or {}))
        self.pipeline = GesturePipeline.from_config(config, self.sink)

        self._running = False
        self._tracking = True
        self._notice: Optional[str] = None

    def start(self) -> bool:
        """Start camera and detector."""
        if not self.camera.start():
            logger.error("Failed to start camera")
            return False
        if not self.detector.start():
            logger.error("Failed to start hand detector")
            self.camera.stop()
            return False

        screen = (self.config.get("control", {}) or {}).get("screen", {}) or {}
        if screen.get("auto_detect", True):
            size = self.sink.screen_size()
            if size:
                self.pipeline.dispatcher.set_screen_size(*size)

        self._running = True
        logger.info("Gesture Shortcut started in %s mode", self.pipeline.mode)
        return True

    def stop(self) -> None:
        """Stop all components."""
        self._running = False
        self.pipeline.stop()
        self.camera.stop()
        self.detector.stop()
        self.sink.close()
        cv2.destroyAllWindows()
        logger.info("Gesture Shortcut stopped (%d gestures triggered)",
                    self.pipeline.gesture_log.total_gestures)

    def run(self) -> int:
        if not self.start():
            return 1

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        try:
            self._main_loop()
        finally:
            self.stop()
        return 0

    def _main_loop(self) -> None:
        last_frame_number = -1
        while self._running:
            frame = self.camera.read()
            if frame is None or frame.frame_number == last_frame_number:
                if not self._handle_key(cv2.waitKey(1) & 0xFF):
                    break
                continue
            last_frame_number = frame.frame_number

            result = None
            if self._tracking:
                hands = self.detector.detect(frame.rgb, int(frame.timestamp_ms))
                result = self.pipeline.process(hands, frame.timestamp_ms)
                if result.error_notice:
                    self._notice = result.error_notice
                    logger.error(result.error_notice)

            display = frame.preview(self.camera.config.mirror)
            self._draw_hud(display, result)
            cv2.imshow(WINDOW_NAME, display)

            if not self._handle_key(cv2.waitKey(1) & 0xFF):
                break

    def _handle_key(self, key: int) -> bool:
        """Apply a key press. Returns False to quit."""
        if key == ord("q") or key == 27:
            return False
        if key == ord("m"):
            mode = "demo" if self.pipeline.mode == "control" else "control"
            self.pipeline.set_mode(mode)
        elif key == ord("s"):
            self._tracking = not self._tracking
            if not self._tracking:
                self.pipeline.stop()
            logger.info("Tracking %s", "started" if self._tracking else "stopped")
        return True

    def _draw_hud(self, image, result: Optional[FrameResult]) -> None:
        def put(text, y, color=COLOR_TEXT, scale=0.6):
            cv2.putText(image, text, (10, y), cv2.FONT_HERSHEY_SIMPLEX, scale, color, 2)

        put(f"Mode: {self.pipeline.mode.upper()}", 25)
        if not self._tracking:
            put("Tracking stopped (press s)", 55, COLOR_COOLING)
            return
        if result is None:
            return

        status_color = COLOR_COOLING if result.cooling else COLOR_READY
        put(f"Gesture: {result.gesture_name}", 55, status_color)
        put(f"Last action: {result.last_action or '-'}", 85)
        if result.cooling:
            put(f"Cooldown: {result.cooldown_remaining_ms / 1000:.1f}s", 115, COLOR_COOLING)
        if self._notice:
            put(self._notice, image.shape[0] - 15, COLOR_ERROR, 0.5)

    def _signal_handler(self, signum, frame) -> None:
        logger.info("Received signal %s, shutting down...", signum)
        self._running = False


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Turn webcam hand gestures into keyboard shortcuts and mouse input",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Modes:
  control   - Recognize gestures and send input (default)
  demo      - Recognize and display only, no input is sent

Keyboard Controls:
  q/ESC     - Quit
  m         - Toggle control/demo mode
  s         - Stop/start tracking
        """,
    )
    parser.add_argument("--config", "-c", default=None, help="Path to configuration file")
    parser.add_argument("--mode", "-m", choices=MODES, default=None, help="Operating mode")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    setup_logging(level="DEBUG" if args.debug else "INFO", log_file=args.log_file)
    config = load_config(args.config)

    log_cfg = config.get("logging", {}) or {}
    setup_logging(
        level="DEBUG" if args.debug else log_cfg.get("level", "INFO"),
        log_file=args.log_file or log_cfg.get("file"),
        max_size_mb=log_cfg.get("max_size_mb", 10),
        backup_count=log_cfg.get("backup_count", 3),
    )
    if args.mode:
        config["mode"] = args.mode
    if args.debug:
        config.setdefault("recognition", {})["debug"] = True

    try:
        app = GestureShortcutApp(config)
    except (ValueError, TypeError) as e:
        logger.error("Invalid configuration: %s", e)
        return 2
    return app.run()


if __name__ == "__main__":
    sys.exit(main())
