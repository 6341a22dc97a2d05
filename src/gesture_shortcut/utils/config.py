"""
Centralized configuration loading.
Loads the YAML config, merges it over built-in defaults and checks the
value types of known fields.
"""

import copy
import os
import logging

import yaml

logger = logging.getLogger(__name__)

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))
_CONFIG_DIR = os.path.join(_BASE_DIR, "config")
DEFAULT_CONFIG_PATH = os.path.join(_CONFIG_DIR, "config.yaml")

DEFAULTS = {
    "mode": "control",
    "camera": {
        "device_id": 0,
        "width": 640,
        "height": 480,
        "fps": 30,
        "mirror": True,
        "threaded": False,
    },
    "detection": {
        "model_path": "",
        "max_hands": 2,
        "min_detection_confidence": 0.5,
        "min_presence_confidence": 0.5,
        "min_tracking_confidence": 0.5,
    },
    "recognition": {
        "thresholds": {},
        "rule_order": None,
        "debug": False,
    },
    "multi_hand": {
        "jitter_threshold": 0.03,
    },
    "debouncing": {
        "cooldown_ms": 1500,
    },
    "control": {
        "sink": "xdotool",
        "async_exec": True,
        "timeout_s": 1.0,
        "smoothing_factor": 0.5,
        "screen": {"width": 1920, "height": 1080, "auto_detect": True},
    },
    "actions": {},
    "logging": {
        "level": "INFO",
        "file": None,
        "max_size_mb": 10,
        "backup_count": 3,
    },
}

# Schema: sections and the expected types of their fields
_CONFIG_SCHEMA = {
    "camera": {
        "device_id": int,
        "width": int,
        "height": int,
        "fps": int,
        "mirror": bool,
    },
    "detection": {
        "max_hands": int,
        "min_detection_confidence": float,
        "min_tracking_confidence": float,
    },
    "recognition": {
        "thresholds": dict,
        "rule_order": list,
    },
    "multi_hand": {
        "jitter_threshold": float,
    },
    "debouncing": {
        "cooldown_ms": float,
    },
    "control": {
        "sink": str,
        "smoothing_factor": float,
        "screen": dict,
    },
    "actions": {},
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base dict."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def validate(data: dict) -> list:
    """Check config fields against the schema. Returns warning strings."""
    warnings = []
    for section_name, fields in _CONFIG_SCHEMA.items():
        section = data.get(section_name)
        if section is None:
            continue
        if not isinstance(section, dict):
            warnings.append(f"Section '{section_name}' should be a dict, got {type(section).__name__}")
            continue
        for field_name, expected_type in fields.items():
            if field_name not in section or section[field_name] is None:
                continue
            value = section[field_name]
            # Allow int where float is expected
            if expected_type is float and isinstance(value, (int, float)) and not isinstance(value, bool):
                continue
            if not isinstance(value, expected_type):
                warnings.append(
                    f"{section_name}.{field_name}: expected {expected_type.__name__}, "
                    f"got {type(value).__name__} ({value!r})"
                )
    return warnings


def load_config(config_path=None) -> dict:
    """Load a YAML config file merged over the built-in defaults.

    A missing file is not an error: the defaults are returned.
    """
    config_path = config_path or DEFAULT_CONFIG_PATH
    user = {}
    try:
        with open(config_path, "r") as f:
            user = yaml.safe_load(f) or {}
        logger.info("Loaded config from %s", config_path)
    except FileNotFoundError:
        logger.warning("Config file not found: %s, using defaults", config_path)

    if not isinstance(user, dict):
        logger.warning("Config root should be a mapping, got %s; using defaults",
                       type(user).__name__)
        user = {}

    data = _deep_merge(copy.deepcopy(DEFAULTS), user)

    warnings = validate(data)
    if warnings:
        for w in warnings:
            logger.warning("Config validation: %s", w)
    else:
        logger.debug("Config validation passed")
    return data
