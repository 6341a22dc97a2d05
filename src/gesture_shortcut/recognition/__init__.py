"""Gesture recognition module."""
from .gesture_classifier import GestureClassifier, GestureClassifierConfig, GestureType
from .multi_hand import MultiHandAggregator, MultiHandConfig

__all__ = [
    "GestureClassifier",
    "GestureClassifierConfig",
    "GestureType",
    "MultiHandAggregator",
    "MultiHandConfig",
]
