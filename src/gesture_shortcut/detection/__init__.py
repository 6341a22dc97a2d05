"""Hand landmark frames and the MediaPipe hand detector.

`hand_detector` pulls in MediaPipe and is imported explicitly by the host.
"""
from .landmarks import Landmark, LandmarkFrame, LandmarkIndex, MalformedFrameError, parse_frames

__all__ = ["Landmark", "LandmarkFrame", "LandmarkIndex", "MalformedFrameError", "parse_frames"]
