"""
==========================
Helpers - Configurations
==========================

This module provides configurations for the recorder, including the output paths,
the capture cadence and the GIF settings.

Features:
- Loads configuration from a YAML file (`.config.yml`, or the file named by `SCREENGIF_CONFIG`).
- Falls back to built-in defaults for every key the file does not set.
- Defines paths for the output directory, the captured frames and the final GIF.
- Defines constants for the capture cadence, the worker pool and the animation.


Usage:
>>> import screengif.helpers.config as cfg
>>> print(cfg.CAPTURE_FPS)  # Access the capture frame rate

*Created: 2026-10-19*
"""

import copy
import math
import os
from pathlib import Path

import yaml

from screengif.errors import ConfigError

CONFIG_ENV_VAR = "SCREENGIF_CONFIG"
DEFAULT_CONFIG_FILE = ".config.yml"

DEFAULTS = {
    "app": {"name": "ScreenGif"},
    "paths": {
        "base_dir": "~/Desktop",
        "out_dir": "out",
    },
    "capture": {
        "fps": 15,
        "duration_seconds": 2,
        "workers": 0,
        "extension": "png",
        "sequence_width": 6,
    },
    "gif": {
        "loop": False,
        "comment": "Created by ScreenGif",
        "file_name": "out.gif",
    },
}


def _merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path=None) -> dict:
    """
    Load the YAML configuration and merge it over the defaults.

    Args:
        path (str | Path, optional): Config file. Defaults to `$SCREENGIF_CONFIG` or `.config.yml`.

    Returns:
        dict: The merged configuration.

    Raises:
        ConfigError: If the file cannot be parsed or is not a mapping.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_FILE)
    path = Path(path)

    if not path.exists():
        return copy.deepcopy(DEFAULTS)

    try:
        with open(path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(loaded, dict):
        raise ConfigError(f"Config root in {path} must be a mapping")

    return _merge(DEFAULTS, loaded)


def _positive_int(section: dict, key: str, allow_zero: bool = False) -> int:
    try:
        value = int(section[key])
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key} must be an integer, got {section[key]!r}") from e
    if value < 0 or (value == 0 and not allow_zero):
        raise ConfigError(f"{key} must be positive, got {value}")
    return value


def _non_negative_float(section: dict, key: str) -> float:
    value = section[key]
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be a number, got {value!r}")
    try:
        value = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key} must be a number, got {value!r}") from e
    if math.isnan(value) or value < 0:
        raise ConfigError(f"{key} must be zero or positive, got {value}")
    return value


def _optional_text(section: dict, key: str):
    value = section[key]
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{key} must be text, got {value!r}")
    return value


# =========================
# CONFIG
# =========================

cfg = load_config()

# App Name
APP_NAME = str(cfg["app"]["name"])

# Main Dirs
BASE_DIR = Path(os.path.expanduser(str(cfg["paths"]["base_dir"])))
OUT_DIR = Path(os.path.join(BASE_DIR, str(cfg["paths"]["out_dir"])))
FRAMES_DIR = Path(os.path.join(OUT_DIR, "captured"))
LOG_FOLDER = Path(os.path.join(OUT_DIR, "Logs"))

# All Paths Array
MAIN_PATHS = [BASE_DIR, OUT_DIR, FRAMES_DIR, LOG_FOLDER]

# Capture Configs
CAPTURE_FPS = _positive_int(cfg["capture"], "fps")
# 0 means no deadline, capture until stopped
CAPTURE_DURATION_SECONDS = _non_negative_float(cfg["capture"], "duration_seconds")
CAPTURE_WORKERS = _positive_int(cfg["capture"], "workers", allow_zero=True)
FRAME_EXTENSION = str(cfg["capture"]["extension"]).lstrip(".").lower()
SEQUENCE_WIDTH = _positive_int(cfg["capture"], "sequence_width")

# GIF Configs
GIF_LOOP = bool(cfg["gif"]["loop"])
GIF_COMMENT = _optional_text(cfg["gif"], "comment")
GIF_PATH = Path(os.path.join(OUT_DIR, str(cfg["gif"]["file_name"])))
