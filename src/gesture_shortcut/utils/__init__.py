"""Configuration and logging utilities."""
from .config import load_config
from .logger import GestureLogger, setup_logging

__all__ = ["load_config", "GestureLogger", "setup_logging"]
