"""Camera capture module (requires OpenCV)."""
