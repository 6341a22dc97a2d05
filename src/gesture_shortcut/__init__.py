"""
Gesture Shortcut
================

Hand gesture recognition that turns webcam hand poses into keyboard
shortcuts, cursor movement and mouse clicks.

Modules:
    - capture: Camera frame acquisition
    - detection: MediaPipe hand landmarker and landmark frames
    - recognition: Geometry, rule-cascade classifier, two-hand zoom
    - control: Cooldown gate, action dispatch and input sinks
    - pipeline: Per-frame orchestration
    - utils: Configuration and logging
"""

__version__ = "1.0.0"
__author__ = "HCI Team"
